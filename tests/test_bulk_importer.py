"""Tests for accountmaps.database.bulk_importer — per-line classification
and all-or-nothing durability of one import call.
"""

import sqlite3

import pytest

from accountmaps.database.account_repository import AccountRepository
from accountmaps.database.bulk_importer import BulkImporter, split_lines
from accountmaps.database.db_manager import DatabaseManager
from accountmaps.database.map_repository import MapRepository
from accountmaps.errors import NotFoundError, StoreError
from accountmaps.models.catalog import LineError


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(tmp_path / "test.sqlite")
    manager.ensure_schema()
    yield manager
    manager.close()


@pytest.fixture
def importer(db):
    return BulkImporter(db)


@pytest.fixture
def accounts(db):
    return AccountRepository(db)


@pytest.fixture
def map_id(db):
    return MapRepository(db).create_map("Dust II")


# ── Line splitting ───────────────────────────────────────────────────

class TestSplitLines:

    def test_drops_blank_lines_and_trims(self):
        text = "  a:1 \r\n\n   \nb:2\r\n"
        assert split_lines(text) == ["a:1", "b:2"]

    def test_empty(self):
        assert split_lines("") == []
        assert split_lines(None) == []


# ── Classification ───────────────────────────────────────────────────

class TestImportPairs:

    def test_mixed_batch(self, importer, accounts, map_id):
        result = importer.import_pairs(map_id, "a:1\na:1\nb:2\nmalformed")

        assert result.added == 2
        assert result.duplicates == 1
        assert len(result.errors) == 1
        assert result.errors[0].line == "malformed"
        assert result.errors[0].message
        assert result.total == 4

        logins = [a.login for a in accounts.list_accounts_by_map(map_id)]
        assert logins == ["a", "b"]

    def test_first_occurrence_wins(self, importer, accounts, map_id):
        importer.import_pairs(map_id, "same:first\nsame:second")
        (only,) = accounts.list_accounts_by_map(map_id)
        assert only.password == "first"

    def test_duplicate_of_existing_account(self, importer, accounts, map_id):
        accounts.add_account(map_id, "Existing", "pw")
        result = importer.import_pairs(map_id, "existing:other\nfresh:pw")
        assert result.added == 1
        assert result.duplicates == 1
        assert result.errors == []

    def test_error_lines_keep_original_text(self, importer, map_id):
        result = importer.import_pairs(map_id, "   user:   \n:pass\nok:1")
        assert [e.line for e in result.errors] == ["user:", ":pass"]
        assert all(isinstance(e, LineError) for e in result.errors)
        assert result.added == 1

    def test_blank_input(self, importer, map_id):
        result = importer.import_pairs(map_id, "\n\n   \n")
        assert (result.added, result.duplicates, result.errors) == (0, 0, [])

    def test_imported_accounts_have_no_label(self, importer, accounts, map_id, db):
        importer.import_pairs(map_id, "zoe:pw")
        (acc,) = accounts.list_accounts_by_map(map_id)
        assert acc.label is None
        assert acc.display_label == "zoe"
        name, data = db.connect().execute(
            "SELECT name, data FROM accounts WHERE id = ?", (acc.id,)
        ).fetchone()
        assert (name, data) == ("zoe", None)

    def test_missing_map(self, importer, db):
        with pytest.raises(NotFoundError):
            importer.import_pairs(4040, "a:1")
        count = db.connect().execute("SELECT COUNT(*) FROM accounts").fetchone()[0]
        assert count == 0

    def test_single_ops_work_after_import(self, importer, accounts, map_id):
        importer.import_pairs(map_id, "a:1\na:1")
        assert accounts.add_account(map_id, "b", "2") > 0


# ── Atomicity ────────────────────────────────────────────────────────

class TestAtomicity:

    def test_store_failure_rolls_back_whole_call(self, importer, accounts, map_id, monkeypatch):
        real_insert = AccountRepository.insert
        calls = {"n": 0}

        def flaky_insert(conn, *args):
            calls["n"] += 1
            if calls["n"] == 3:
                raise sqlite3.OperationalError("disk I/O error")
            return real_insert(conn, *args)

        monkeypatch.setattr(AccountRepository, "insert", staticmethod(flaky_insert))

        with pytest.raises(StoreError):
            importer.import_pairs(map_id, "a:1\nb:2\nc:3\nd:4")

        monkeypatch.undo()
        assert accounts.list_accounts_by_map(map_id) == []

    def test_earlier_imports_survive_later_failure(self, importer, accounts, map_id, monkeypatch):
        importer.import_pairs(map_id, "kept:1")

        def broken_insert(conn, *args):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(AccountRepository, "insert", staticmethod(broken_insert))
        with pytest.raises(StoreError):
            importer.import_pairs(map_id, "lost:2")
        monkeypatch.undo()

        assert [a.login for a in accounts.list_accounts_by_map(map_id)] == ["kept"]
