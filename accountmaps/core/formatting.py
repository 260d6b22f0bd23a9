"""Display helpers shared by the front ends."""

from __future__ import annotations

from accountmaps.constants import (
    ELLIPSIS,
    EMPTY_PLACEHOLDER,
    MASK_CHAR,
    MASK_MAX_LENGTH,
    MASK_MIN_LENGTH,
)


def mask(password: str | None) -> str:
    """Hide a password behind bullets.

    The bullet count is clamped to [MASK_MIN_LENGTH, MASK_MAX_LENGTH] so
    the real length is not revealed for short or long values.
    """
    s = password or ""
    if not s:
        return EMPTY_PLACEHOLDER
    length = max(MASK_MIN_LENGTH, min(MASK_MAX_LENGTH, len(s)))
    return MASK_CHAR * length


def truncate(text: str | None, max_len: int) -> str | None:
    """Shorten *text* to *max_len* characters, ending with an ellipsis."""
    if not text:
        return text
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + ELLIPSIS
