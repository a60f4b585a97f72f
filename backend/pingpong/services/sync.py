"""Background forwarding of game state snapshots to storage.

Gameplay hands snapshots to :class:`GameStateSync` without waiting; a single
worker task writes them in the order they were produced. Failed writes are
logged and dropped, since the next settled point carries fresher state.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Protocol

from ..schemas import GameState

LOGGER = logging.getLogger(__name__)


class GameStateStore(Protocol):
    async def load_latest(self, table_id: int) -> GameState | None: ...

    async def replace_with(self, table_id: int, snapshot: GameState) -> None: ...


class GameStateSync:
    """Bounded queue of ``(table_id, snapshot)`` pairs with one consumer."""

    def __init__(self, store: GameStateStore, *, maxsize: int = 64) -> None:
        self._store = store
        self._queue: asyncio.Queue[tuple[int, GameState]] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._closed = False
        self._task = asyncio.create_task(self._run(), name="game-state-sync")
        LOGGER.info("Game state sync worker started")

    def submit(self, table_id: int, snapshot: GameState) -> bool:
        """Queue ``snapshot`` for writing; never blocks and never raises.

        Returns ``False`` when the snapshot was not queued.
        """
        if self._closed:
            LOGGER.warning(
                "Game state sync is closed; dropping snapshot for table %s", table_id
            )
            return False

        if self._queue.full():
            # The oldest pending write is superseded by this one.
            with suppress(asyncio.QueueEmpty):
                stale_table_id, _ = self._queue.get_nowait()
                self._queue.task_done()
                LOGGER.warning(
                    "Game state sync queue full; dropped stale snapshot for table %s",
                    stale_table_id,
                )

        try:
            self._queue.put_nowait((table_id, snapshot))
        except asyncio.QueueFull:
            LOGGER.warning(
                "Game state sync queue full; dropping snapshot for table %s", table_id
            )
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued snapshot has been handled."""
        await self._queue.join()

    async def stop(self, *, flush_timeout: float = 5.0) -> None:
        """Stop accepting snapshots, flush what is queued, then stop the worker."""
        self._closed = True
        if self._task is None:
            return

        if self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=flush_timeout)
            except asyncio.TimeoutError:
                LOGGER.warning(
                    "Gave up flushing %d pending game state snapshot(s)",
                    self._queue.qsize(),
                )

        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        LOGGER.info("Game state sync worker stopped")

    async def _run(self) -> None:
        while True:
            table_id, snapshot = await self._queue.get()
            try:
                await self._store.replace_with(table_id, snapshot)
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception(
                    "Error while updating game state of table %s in database", table_id
                )
            finally:
                self._queue.task_done()
