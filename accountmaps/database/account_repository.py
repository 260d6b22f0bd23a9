"""Account repository — credential records scoped to a map.

Every write keeps the legacy ``name`` column equal to the effective label
and clears the legacy ``data`` column. Reads derive the display label as
``label``, else ``login``, else ``name``.
"""

from __future__ import annotations

import logging
import sqlite3

from accountmaps.constants import (
    DEFAULT_ACCOUNT_LIST_LIMIT,
    PAIR_FORMAT_HINT,
    PAIR_SEPARATOR,
)
from accountmaps.database.db_manager import (
    DatabaseManager,
    is_foreign_key_violation,
    is_unique_violation,
)
from accountmaps.errors import (
    DuplicateError,
    FormatError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from accountmaps.models.catalog import Account, parse_timestamp

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = """id, map_id,
       COALESCE(label, login, name, '') AS display_label,
       login, password, label, created_at"""


def parse_credential_pair(text: str) -> tuple[str, str]:
    """Split ``login:password`` on the first colon.

    The password may itself contain colons.

    Raises:
        FormatError: If there is no colon after the first character, or
            either side is blank after trimming.
    """
    s = (text or "").strip()
    idx = s.find(PAIR_SEPARATOR)
    if idx <= 0:
        raise FormatError(PAIR_FORMAT_HINT)
    login = s[:idx].strip()
    password = s[idx + 1:].strip()
    if not login or not password:
        raise FormatError("Both login and password are required")
    return login, password


def _row_to_account(r: tuple) -> Account:
    return Account(
        id=r[0],
        map_id=r[1],
        display_label=r[2],
        login=r[3],
        password=r[4],
        label=r[5],
        created_at=parse_timestamp(r[6]),
    )


class AccountRepository:
    """CRUD repository for accounts."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_account(
        self,
        map_id: int,
        login: str,
        password: str,
        label: str | None = None,
    ) -> int:
        """Insert an account into a map. Returns account_id.

        Login and label are trimmed; a blank label is stored as NULL. The
        password is stored exactly as given.

        Raises:
            ValidationError: If login or password is blank.
            DuplicateError: If the login already exists in this map.
            NotFoundError: If map_id does not reference a map.
        """
        conn = self._db.connect()
        try:
            account_id = self.insert(conn, map_id, login, password, label)
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if is_unique_violation(exc):
                raise DuplicateError(
                    f"Login {login.strip()!r} already exists in this map"
                ) from exc
            if is_foreign_key_violation(exc):
                raise NotFoundError(f"Map not found: {map_id}") from exc
            raise StoreError(f"Cannot add account: {exc}") from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Cannot add account: {exc}") from exc

        logger.info("Added account id=%d to map id=%d", account_id, map_id)
        return account_id

    def add_account_pair(
        self,
        map_id: int,
        pair: str,
        label: str | None = None,
    ) -> int:
        """Parse a ``login:password`` pair and add it. Returns account_id."""
        login, password = parse_credential_pair(pair)
        return self.add_account(map_id, login, password, label)

    @staticmethod
    def insert(
        conn: sqlite3.Connection,
        map_id: int,
        login: str,
        password: str,
        label: str | None,
    ) -> int:
        """Execute the account INSERT on *conn* without committing.

        Shared by :meth:`add_account` and the bulk importer, which owns the
        surrounding transaction. sqlite errors propagate unchanged.
        """
        login = (login or "").strip()
        password = password or ""
        label = (label or "").strip() or None
        if not login or not password.strip():
            raise ValidationError("Both login and password are required")

        cursor = conn.execute(
            """INSERT INTO accounts (login, password, label, map_id, name, data)
               VALUES (?, ?, ?, ?, ?, NULL)""",
            (login, password, label, map_id, label or login),
        )
        return cursor.lastrowid

    def remove_account_by_login(self, map_id: int, login: str) -> int:
        """Delete the account with this login in the map. Returns 0 or 1."""
        login = (login or "").strip()
        return self._delete(
            "DELETE FROM accounts WHERE map_id = ? AND login = ? COLLATE NOCASE",
            (map_id, login),
        )

    def remove_account_by_id(self, account_id: int) -> int:
        """Delete an account by id. Returns rows affected."""
        return self._delete("DELETE FROM accounts WHERE id = ?", (account_id,))

    def _delete(self, sql: str, params: tuple) -> int:
        conn = self._db.connect()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"Cannot remove account: {exc}") from exc
        logger.debug("Removed %d account row(s)", cursor.rowcount)
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account_by_id(self, account_id: int) -> Account | None:
        """Fetch one account with its display label, or None."""
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = ?",
                (account_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot read account {account_id}: {exc}") from exc
        return _row_to_account(row) if row else None

    def list_accounts_by_map(
        self,
        map_id: int,
        limit: int = DEFAULT_ACCOUNT_LIST_LIMIT,
    ) -> list[Account]:
        """List up to *limit* accounts of a map, ordered by display label."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"""SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts
                    WHERE map_id = ?
                    ORDER BY COALESCE(label, login, name, '') COLLATE NOCASE ASC,
                             id ASC
                    LIMIT ?""",
                (map_id, max(limit, 0)),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot list accounts: {exc}") from exc
        return [_row_to_account(r) for r in rows]
