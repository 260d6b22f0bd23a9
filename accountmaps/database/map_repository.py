"""Map repository — CRUD operations and listing for maps.

All SQL operates against the schema defined in ``db_manager.py``. Map
names are compared case-insensitively (``COLLATE NOCASE``) after trimming.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator

from accountmaps.database.db_manager import DatabaseManager, is_unique_violation
from accountmaps.errors import DuplicateError, StoreError, ValidationError
from accountmaps.models.catalog import Map, MapSummary, parse_timestamp

logger = logging.getLogger(__name__)


class MapRepository:
    """CRUD repository for maps."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    # ------------------------------------------------------------------
    # Map CRUD
    # ------------------------------------------------------------------

    def create_map(self, name: str) -> int:
        """Insert a new map. Returns map_id.

        Raises:
            ValidationError: If the trimmed name is empty.
            DuplicateError: If a map with the same name (ignoring case) exists.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Map name is required")

        conn = self._db.connect()
        try:
            cursor = conn.execute("INSERT INTO maps (name) VALUES (?)", (name,))
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if is_unique_violation(exc):
                raise DuplicateError(f"Map already exists: {name}") from exc
            raise StoreError(f"Cannot create map {name!r}: {exc}") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Cannot create map {name!r}: {exc}") from exc

        logger.info("Created map %r (id=%d)", name, cursor.lastrowid)
        return cursor.lastrowid

    def get_map_by_name(self, name: str) -> Map | None:
        """Look up a map by name, ignoring case and surrounding whitespace."""
        return self._fetch_one(
            "SELECT id, name, created_at FROM maps WHERE name = ?",
            ((name or "").strip(),),
        )

    def get_map_by_id(self, map_id: int) -> Map | None:
        """Look up a map by id."""
        return self._fetch_one(
            "SELECT id, name, created_at FROM maps WHERE id = ?", (map_id,)
        )

    def delete_map(self, map_id: int) -> int:
        """Delete map and cascade to its accounts. Returns rows affected."""
        conn = self._db.connect()
        try:
            cursor = conn.execute("DELETE FROM maps WHERE id = ?", (map_id,))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Cannot delete map {map_id}: {exc}") from exc

        if cursor.rowcount:
            logger.info("Deleted map id=%d", map_id)
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_maps_with_account_counts(self) -> Iterator[MapSummary]:
        """Yield every map with its account count, ordered by name."""
        conn = self._db.connect()
        try:
            cursor = conn.execute(
                """SELECT m.id, m.name, m.created_at, COUNT(a.id)
                   FROM maps m
                   LEFT JOIN accounts a ON a.map_id = m.id
                   GROUP BY m.id
                   ORDER BY m.name COLLATE NOCASE ASC, m.id ASC"""
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot list maps: {exc}") from exc

        for r in cursor:
            yield MapSummary(
                id=r[0],
                name=r[1],
                created_at=parse_timestamp(r[2]),
                account_count=r[3],
            )

    def _fetch_one(self, sql: str, params: tuple) -> Map | None:
        conn = self._db.connect()
        try:
            row = conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot read map: {exc}") from exc
        if row is None:
            return None
        return Map(id=row[0], name=row[1], created_at=parse_timestamp(row[2]))
