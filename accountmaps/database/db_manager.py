"""SQLite database manager — connection, schema creation, and migration.

Creates 2 tables on first run: maps, accounts.

The accounts table historically carried only ``name``/``data``. Stores
created before ``login``/``password``/``label`` existed are upgraded in
place by :meth:`DatabaseManager.ensure_schema`.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from accountmaps.constants import DB_BUSY_TIMEOUT_S, DB_FILENAME
from accountmaps.errors import StoreError

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
-- Named containers
CREATE TABLE IF NOT EXISTS maps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

-- Credential records (name/data are the legacy columns)
CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT COLLATE NOCASE,
    map_id INTEGER NOT NULL,
    data TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (map_id) REFERENCES maps(id) ON DELETE CASCADE
);
"""

# Columns added after the first release, in the order they were introduced
_ACCOUNT_MIGRATIONS: list[tuple[str, str]] = [
    ("login", "TEXT COLLATE NOCASE"),
    ("password", "TEXT"),
    ("label", "TEXT"),
]

# Uniqueness applies only to rows that have a login; legacy rows may not.
_LOGIN_INDEX_SQL = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_accounts_login_map_nocase
    ON accounts(login COLLATE NOCASE, map_id)
    WHERE login IS NOT NULL
"""

# Case-sensitive index created by earlier releases, superseded by the above
_LEGACY_INDEXES = ["idx_accounts_login_map"]

EXPECTED_TABLES = [
    "accounts",
    "maps",
]


def is_unique_violation(exc: sqlite3.Error) -> bool:
    """True if *exc* is a UNIQUE (or PRIMARY KEY) constraint failure."""
    return getattr(exc, "sqlite_errorcode", None) in (
        sqlite3.SQLITE_CONSTRAINT_UNIQUE,
        sqlite3.SQLITE_CONSTRAINT_PRIMARYKEY,
    )


def is_foreign_key_violation(exc: sqlite3.Error) -> bool:
    """True if *exc* is a FOREIGN KEY constraint failure."""
    return (
        getattr(exc, "sqlite_errorcode", None)
        == sqlite3.SQLITE_CONSTRAINT_FOREIGNKEY
    )


def _fold_login_collisions(conn: sqlite3.Connection) -> int:
    """Demote logins that collide case-insensitively within a map.

    Stores written with the old case-sensitive index may hold ``Bob`` and
    ``bob`` in one map. The lowest id keeps its login; every later row is
    folded back to legacy form (login NULL, ``name`` set to its effective
    label). Password and label are kept, nothing is deleted.
    """
    rows = conn.execute(
        """SELECT a.id FROM accounts a
           WHERE a.login IS NOT NULL
             AND EXISTS (
                 SELECT 1 FROM accounts b
                 WHERE b.map_id = a.map_id
                   AND b.login = a.login COLLATE NOCASE
                   AND b.id < a.id
             )"""
    ).fetchall()
    if not rows:
        return 0

    ids = [r[0] for r in rows]
    conn.executemany(
        """UPDATE accounts
           SET name = COALESCE(label, login, name), login = NULL
           WHERE id = ?""",
        [(account_id,) for account_id in ids],
    )
    logger.warning(
        "Folded %d account(s) with case-colliding logins to legacy form: ids %s",
        len(ids), ", ".join(str(i) for i in ids),
    )
    return len(ids)


class DatabaseManager:
    """Manages SQLite database connection and schema lifecycle."""

    def __init__(self, db_path: Path | str | None = None):
        if db_path is None:
            db_path = Path.cwd() / DB_FILENAME
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """Open (or return existing) database connection."""
        if self._conn is None:
            try:
                self._conn = sqlite3.connect(
                    str(self._db_path), timeout=DB_BUSY_TIMEOUT_S,
                )
                self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.execute("PRAGMA foreign_keys=ON")
            except sqlite3.Error as exc:
                self._conn = None
                raise StoreError(
                    f"Cannot open database {self._db_path}: {exc}"
                ) from exc
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def ensure_schema(self) -> None:
        """Create missing tables, add missing columns, build indexes.

        Safe to call on every start. Raises StoreError if any DDL fails.
        """
        conn = self.connect()
        try:
            conn.executescript(_SCHEMA_SQL)

            # Column and index changes apply together or not at all
            conn.execute("BEGIN")
            existing = set(self.get_columns("accounts"))
            for column, decl in _ACCOUNT_MIGRATIONS:
                if column not in existing:
                    conn.execute(f"ALTER TABLE accounts ADD COLUMN {column} {decl}")
                    logger.info("Added column accounts.%s", column)

            for index in _LEGACY_INDEXES:
                conn.execute(f"DROP INDEX IF EXISTS {index}")
            _fold_login_collisions(conn)
            conn.execute(_LOGIN_INDEX_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Schema setup failed: {exc}") from exc

    def get_tables(self) -> list[str]:
        """Return list of table names in the database."""
        conn = self.connect()
        cursor = conn.execute(
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in cursor.fetchall()]

    def get_columns(self, table: str) -> list[str]:
        """Return the column names of *table*, in declaration order."""
        conn = self.connect()
        return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in one write transaction.

        The write lock is taken up front, so competing writers wait for the
        busy timeout instead of failing halfway. Commits on success, rolls
        back on any exception. Failures to begin or commit raise StoreError.
        """
        conn = self.connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot begin transaction: {exc}") from exc
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        try:
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Commit failed: {exc}") from exc

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
