"""Catalog dataclasses returned by the database layer."""

from accountmaps.models.catalog import (
    Account,
    ImportResult,
    LineError,
    Map,
    MapSummary,
)

__all__ = [
    "Account",
    "ImportResult",
    "LineError",
    "Map",
    "MapSummary",
]
