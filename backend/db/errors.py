"""Translation of driver-level integrity failures."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _error_text(error: IntegrityError) -> str:
    return str(getattr(error, "orig", None) or error).lower()


def is_unique_violation(error: IntegrityError, *, target: str | None = None) -> bool:
    """Return True when ``error`` is a unique-constraint conflict.

    ``target`` narrows the match to a column or index name as it appears in
    the driver message (``users.email`` on SQLite, ``ix_users_email`` on
    PostgreSQL).
    """
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    text = _error_text(error)
    is_unique = sqlstate == UNIQUE_VIOLATION_SQLSTATE or (
        "duplicate key" in text or "unique constraint" in text
    )
    if not is_unique or target is None:
        return is_unique
    return target.lower() in text


__all__ = ["UNIQUE_VIOLATION_SQLSTATE", "is_unique_violation"]
