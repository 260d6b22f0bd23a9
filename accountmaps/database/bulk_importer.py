"""Bulk importer — many ``login:password`` lines into one map.

Each call runs in a single write transaction. Lines are classified in
input order:

  - unparsable line            -> error (line text + message)
  - login already in the map   -> duplicate
  - other constraint failure   -> error
  - otherwise                  -> added

A failed line is rolled back on its own (sqlite aborts only the failing
statement), so earlier inserts of the same call stay in the transaction.
Any store failure that is not a constraint violation rolls back the
whole call and raises StoreError.
"""

from __future__ import annotations

import logging
import re
import sqlite3

from accountmaps.database.account_repository import (
    AccountRepository,
    parse_credential_pair,
)
from accountmaps.database.db_manager import DatabaseManager, is_unique_violation
from accountmaps.errors import NotFoundError, StoreError, ValidationError
from accountmaps.models.catalog import ImportResult, LineError

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Trimmed, non-empty lines of *text* in their original order."""
    return [s for s in (line.strip() for line in _LINE_SPLIT.split(text or "")) if s]


class BulkImporter:
    """Apply multi-line credential text to a map with per-line outcomes."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def import_pairs(self, map_id: int, text: str) -> ImportResult:
        """Add every ``login:password`` line of *text* to the map.

        Returns:
            ImportResult with added/duplicate counts and rejected lines.

        Raises:
            NotFoundError: If the map does not exist.
            StoreError: If the store fails; nothing from this call persists.
        """
        lines = split_lines(text)
        result = ImportResult()

        try:
            with self._db.transaction() as conn:
                exists = conn.execute(
                    "SELECT 1 FROM maps WHERE id = ?", (map_id,)
                ).fetchone()
                if exists is None:
                    raise NotFoundError(f"Map not found: {map_id}")

                for line in lines:
                    self._apply_line(conn, map_id, line, result)
        except sqlite3.Error as exc:
            raise StoreError(f"Bulk import into map {map_id} failed: {exc}") from exc

        logger.info(
            "Bulk import into map id=%d: %d added, %d duplicates, %d errors",
            map_id, result.added, result.duplicates, len(result.errors),
        )
        return result

    def _apply_line(
        self,
        conn: sqlite3.Connection,
        map_id: int,
        line: str,
        result: ImportResult,
    ) -> None:
        try:
            login, password = parse_credential_pair(line)
            AccountRepository.insert(conn, map_id, login, password, None)
        except ValidationError as exc:
            result.errors.append(LineError(line=line, message=str(exc)))
            logger.debug("Rejected line: %s", exc)
            return
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                result.duplicates += 1
            else:
                result.errors.append(LineError(line=line, message=str(exc)))
                logger.debug("Rejected line: %s", exc)
            return
        result.added += 1
