"""Background loop that settles rallies whose hit deadline has passed."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from .table import TableState

LOGGER = logging.getLogger(__name__)


class TimeoutTicker:
    """Periodically awards the point when a rally's hit deadline has passed.

    Checks are level-triggered against the current rally, so a late or
    skipped tick is caught up by the next one.
    """

    def __init__(self, table: TableState, *, interval: float = 1.0) -> None:
        self._table = table
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"timeout-ticker-{self._table.table_id}"
        )
        LOGGER.info(
            "Timeout ticker started for table %s (every %ss)",
            self._table.table_id,
            self._interval,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        LOGGER.info("Timeout ticker stopped for table %s", self._table.table_id)

    async def tick(self) -> bool:
        try:
            return await self._table.check_timeout()
        except Exception:
            LOGGER.exception("Timeout check failed for table %s", self._table.table_id)
            return False

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()
