"""Catalog models: maps, accounts, and bulk import reports.

Lightweight dataclasses returned by the repositories. Timestamps are UTC
``datetime`` instants parsed from the store's ``CURRENT_TIMESTAMP`` text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def parse_timestamp(value: str | None) -> datetime | None:
    """Convert a stored ``YYYY-MM-DD HH:MM:SS`` value to an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Map:
    """Named container grouping credential records."""
    id: int
    name: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class MapSummary:
    """Map row with the number of accounts it owns, for list views."""
    id: int
    name: str
    created_at: datetime | None = None
    account_count: int = 0


@dataclass(frozen=True)
class Account:
    """Single credential record owned by exactly one map.

    ``login``, ``password`` and ``label`` are authoritative. Rows written
    before those columns existed may have ``login`` set to None; for such
    rows ``display_label`` falls back to the legacy ``name`` column.
    """
    id: int
    map_id: int
    display_label: str
    login: str | None = None
    password: str | None = None
    label: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class LineError:
    """A bulk import line that was rejected, with the reason."""
    line: str
    message: str


@dataclass
class ImportResult:
    """Per-call outcome of a bulk import."""
    added: int = 0
    duplicates: int = 0
    errors: list[LineError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.added + self.duplicates + len(self.errors)
