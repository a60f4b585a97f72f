"""Rally engine for a single ping pong table.

A table keeps two separately locked cells: the rally in progress and the
settled game state. Hits only touch the rally; settling a point touches both,
always taking the game lock before the rally lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from ..clock import DEFAULT_CLOCK, Clock
from ..locks import ReadWriteLock
from ..schemas import GameState, RallyState, RallyStatistics, Side, TableStateOut
from ..time_utils import elapsed_since

if TYPE_CHECKING:  # pragma: no cover
    from .sync import GameStateSync

LOGGER = logging.getLogger(__name__)

DEFAULT_BALL_AIR_TIME = timedelta(seconds=30)


@dataclass(frozen=True)
class HitOutcome:
    """Result of a hit attempt; ``next_side`` is set only when accepted."""

    accepted: bool
    next_side: Optional[Side] = None

    @classmethod
    def accept(cls, next_side: Side) -> "HitOutcome":
        return cls(accepted=True, next_side=next_side)

    @classmethod
    def reject(cls) -> "HitOutcome":
        return cls(accepted=False)


def update_longest_rally(game: GameState, rally: RallyState, now: datetime) -> None:
    """Merge the rally being closed into the longest rally record.

    Hit count decides; duration only breaks ties, so a rally with more hits
    replaces a longer-lasting one with fewer. Rallies in which no hit landed
    are not counted.
    """

    if rally.first_hit_at is None:
        return

    duration = elapsed_since(rally.first_hit_at, now)
    record = game.longest_rally
    if record is None:
        game.longest_rally = RallyStatistics(hit_count=rally.hit_count, duration=duration)
    elif rally.hit_count > record.hit_count:
        record.hit_count = rally.hit_count
        record.duration = duration
    elif rally.hit_count == record.hit_count and duration > record.duration:
        record.duration = duration


class TableState:
    """Rally and game state of one table plus the operations that mutate them."""

    def __init__(
        self,
        game_state: GameState | None = None,
        *,
        clock: Clock = DEFAULT_CLOCK,
        ball_air_time: timedelta = DEFAULT_BALL_AIR_TIME,
        table_id: int = 1,
        sync: "GameStateSync | None" = None,
    ) -> None:
        self.table_id = table_id
        self.game_state = game_state or GameState()
        self.rally_state = RallyState(side=self.game_state.server)
        self.ball_air_time = ball_air_time
        self._clock = clock
        self._sync = sync
        self._game_lock = ReadWriteLock()
        self._rally_lock = ReadWriteLock()

    def with_sync(self, sync: "GameStateSync") -> "TableState":
        self._sync = sync
        return self

    async def get_state(self) -> TableStateOut:
        """Return a consistent copy of both cells."""
        async with self._game_lock.read():
            async with self._rally_lock.read():
                return TableStateOut(
                    rally_state=self.rally_state.model_copy(deep=True),
                    game_state=self.game_state.model_copy(deep=True),
                )

    async def attempt_hit(self, side: Side) -> HitOutcome:
        async with self._rally_lock.read():
            expected = self.rally_state.side

        if side == expected:
            async with self._rally_lock.write():
                rally = self.rally_state
                # Another hit may have landed between the two acquisitions.
                if rally.side == side:
                    now = self._clock.now()
                    rally.side = side.flip()
                    rally.hit_count += 1
                    rally.hit_timeout = now + self.ball_air_time
                    if rally.first_hit_at is None:
                        rally.first_hit_at = now
                    LOGGER.debug(
                        "table=%s %s hit #%d, %s to return by %s",
                        self.table_id,
                        side,
                        rally.hit_count,
                        rally.side,
                        rally.hit_timeout.isoformat(),
                    )
                    return HitOutcome.accept(rally.side)

        await self.lose_point(side)
        return HitOutcome.reject()

    async def lose_point(self, side: Side) -> None:
        """Charge ``side`` with a miss and settle the point."""
        async with self._game_lock.write():
            async with self._rally_lock.write():
                snapshot = self._settle(side, self._clock.now())
        self._forward(snapshot)

    async def check_timeout(self) -> bool:
        """Settle the point if the ball has been in the air past its deadline.

        Returns ``True`` when a point was awarded. Safe to race with other
        checks and with hits: expiry is re-checked under the write locks, so
        one expired rally yields exactly one point.
        """
        async with self._rally_lock.read():
            deadline = self.rally_state.hit_timeout
        if deadline is None or self._clock.now() < deadline:
            return False

        snapshot = None
        async with self._game_lock.write():
            async with self._rally_lock.write():
                rally = self.rally_state
                now = self._clock.now()
                if rally.hit_timeout is not None and now >= rally.hit_timeout:
                    missed = rally.side
                    snapshot = self._settle(missed, now)

        if snapshot is None:
            return False
        LOGGER.info("table=%s rally timed out; %s missed", self.table_id, missed)
        self._forward(snapshot)
        return True

    def _settle(self, side: Side, now: datetime) -> GameState:
        # Caller holds both write locks.
        game = self.game_state
        rally = self.rally_state

        game.score.lose_point(side)
        game.server = game.server.flip()
        rally.side = game.server

        update_longest_rally(game, rally, now)

        rally.hit_timeout = None
        rally.first_hit_at = None
        rally.hit_count = 0

        LOGGER.debug(
            "table=%s %s lost the point; score ping=%d pong=%d, %s serves",
            self.table_id,
            side,
            game.score.ping,
            game.score.pong,
            game.server,
        )
        return game.model_copy(deep=True)

    def _forward(self, snapshot: GameState) -> None:
        if self._sync is not None:
            self._sync.submit(self.table_id, snapshot)
