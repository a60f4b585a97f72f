"""Clock abstraction for rally timeouts.

Tables take a clock instead of reading the system time directly, so tests can
drive hit deadlines and rally durations without sleeping.

Production code uses :class:`SystemClock`; tests inject :class:`MockClock`
and move it forward with :meth:`MockClock.advance`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

from .time_utils import coerce_utc


class Clock(Protocol):
    """Source of the current instant used by a table."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock:
    """Controllable clock for deterministic tests.

    Example:
        clock = MockClock()
        table = TableState(clock=clock)
        await table.attempt_hit(Side.PING)
        clock.advance(31)
        assert await table.check_timeout()
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._current = coerce_utc(start) or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def advance(self, amount: float | timedelta) -> None:
        """Move the clock forward by ``amount`` (seconds or a timedelta).

        Raises:
            ValueError: If ``amount`` is negative.
        """
        delta = amount if isinstance(amount, timedelta) else timedelta(seconds=amount)
        if delta < timedelta(0):
            raise ValueError(f"Cannot advance time by negative amount: {amount}")
        self._current += delta

    def set(self, value: datetime) -> None:
        """Jump to an absolute instant, possibly in the past."""
        self._current = coerce_utc(value)


DEFAULT_CLOCK: Clock = SystemClock()
