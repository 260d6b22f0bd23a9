"""Application factory — database setup and repository wiring.

Front ends build one :class:`Application` at startup and pass its
repositories to their handlers instead of sharing a module-level handle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from accountmaps.database import (
    AccountRepository,
    BulkImporter,
    DatabaseManager,
    MapRepository,
)
from accountmaps.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Repositories bound to one open database."""
    db: DatabaseManager
    maps: MapRepository
    accounts: AccountRepository
    importer: BulkImporter

    def close(self) -> None:
        self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_application(db_path: Path | str | None = None) -> Application:
    """Open the database, bring its schema up to date, wire repositories.

    Raises:
        StoreError: If the database cannot be opened or migrated.
    """
    db = DatabaseManager(db_path)
    try:
        db.ensure_schema()
    except StoreError:
        db.close()
        raise
    logger.info("Database ready at %s", db.db_path)

    return Application(
        db=db,
        maps=MapRepository(db),
        accounts=AccountRepository(db),
        importer=BulkImporter(db),
    )
