"""Database layer — SQLite connection, schema, repositories, bulk import."""

from accountmaps.database.account_repository import (
    AccountRepository,
    parse_credential_pair,
)
from accountmaps.database.bulk_importer import BulkImporter
from accountmaps.database.db_manager import DatabaseManager
from accountmaps.database.map_repository import MapRepository

__all__ = [
    "AccountRepository",
    "BulkImporter",
    "DatabaseManager",
    "MapRepository",
    "parse_credential_pair",
]
