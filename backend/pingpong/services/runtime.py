"""Wiring of one table with its timeout ticker and persistence worker."""

from __future__ import annotations

import logging
from datetime import timedelta

from ..clock import DEFAULT_CLOCK, Clock
from .sync import GameStateStore, GameStateSync
from .table import DEFAULT_BALL_AIR_TIME, TableState
from .ticker import TimeoutTicker

LOGGER = logging.getLogger(__name__)


class TableRuntime:
    """Owns a table and the background tasks that serve it."""

    def __init__(
        self,
        table: TableState,
        ticker: TimeoutTicker,
        sync: GameStateSync | None = None,
        *,
        flush_timeout: float = 5.0,
    ) -> None:
        self.table = table
        self.ticker = ticker
        self.sync = sync
        self._flush_timeout = flush_timeout

    @classmethod
    async def create(
        cls,
        store: GameStateStore | None = None,
        *,
        table_id: int = 1,
        clock: Clock = DEFAULT_CLOCK,
        ball_air_time: timedelta = DEFAULT_BALL_AIR_TIME,
        tick_interval: float = 1.0,
        queue_size: int = 64,
        flush_timeout: float = 5.0,
    ) -> "TableRuntime":
        """Build a runtime, resuming from the latest stored snapshot if any."""

        game_state = None
        sync = None
        if store is not None:
            game_state = await store.load_latest(table_id)
            if game_state is None:
                LOGGER.info("No stored game state for table %s; starting fresh", table_id)
            else:
                LOGGER.info(
                    "Loaded game state for table %s (ping=%d pong=%d)",
                    table_id,
                    game_state.score.ping,
                    game_state.score.pong,
                )
            sync = GameStateSync(store, maxsize=queue_size)
        else:
            LOGGER.info("No storage configured; table %s state is kept in memory", table_id)

        table = TableState(
            game_state,
            clock=clock,
            ball_air_time=ball_air_time,
            table_id=table_id,
            sync=sync,
        )
        ticker = TimeoutTicker(table, interval=tick_interval)
        return cls(table, ticker, sync, flush_timeout=flush_timeout)

    def start(self) -> None:
        if self.sync is not None:
            self.sync.start()
        self.ticker.start()

    async def stop(self) -> None:
        # Ticker first so no point is settled after the sync channel closes.
        await self.ticker.stop()
        if self.sync is not None:
            await self.sync.stop(flush_timeout=self._flush_timeout)
