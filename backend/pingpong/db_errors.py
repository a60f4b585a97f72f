"""Classify database errors raised while reading persisted game state."""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

# PostgreSQL "undefined_table"
_MISSING_TABLE_SQLSTATES = {"42P01"}
_MISSING_TABLE_MARKERS = ("no such table", "does not exist")


def is_missing_table_error(exc: SQLAlchemyError, table_name: str) -> bool:
    """Return ``True`` if ``exc`` says ``table_name`` has not been created.

    asyncpg reports a SQLSTATE on the wrapped driver error; SQLite only gives
    a message such as ``no such table: game_state``.
    """

    if not isinstance(exc, DBAPIError) or exc.orig is None:
        return False

    if getattr(exc.orig, "sqlstate", None) in _MISSING_TABLE_SQLSTATES:
        return True

    message = str(exc.orig).lower()
    return table_name.lower() in message and any(
        marker in message for marker in _MISSING_TABLE_MARKERS
    )
