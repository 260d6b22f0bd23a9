"""Error taxonomy shared by the repositories and the bulk importer.

Presentation layers catch :class:`AccountMapsError` and turn the message
into user-facing text. ``StoreError`` always carries the underlying
``sqlite3.Error`` as ``__cause__``.
"""


class AccountMapsError(Exception):
    """Base class for every error raised by the data layer."""


class ValidationError(AccountMapsError):
    """Required input is empty or malformed."""


class FormatError(ValidationError):
    """A ``login:password`` pair could not be parsed."""


class DuplicateError(AccountMapsError):
    """A map name or a login within a map already exists."""


class NotFoundError(AccountMapsError):
    """The operation requires a map or account that does not exist."""


class StoreError(AccountMapsError):
    """The underlying store failed for a reason unrelated to constraints."""
