"""Helpers for working with timezone-aware datetimes and rally spans."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def elapsed_since(start: datetime, now: datetime) -> timedelta:
    """Return ``now - start``, clamped to zero when ``start`` lies in the future.

    A start in the future only happens with a misbehaving clock; the span is
    logged and treated as empty rather than raising.
    """

    span = now - start
    if span < timedelta(0):
        logger.warning(
            "Rally start %s is after current time %s; using zero duration",
            start.isoformat(),
            now.isoformat(),
        )
        return timedelta(0)
    return span


def to_unix_millis(value: datetime | None) -> int | None:
    """Convert ``value`` to integer milliseconds since the unix epoch."""

    if value is None:
        return None
    return int(coerce_utc(value).timestamp() * 1000)
