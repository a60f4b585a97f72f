from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .time_utils import to_unix_millis


class Side(str, Enum):
    PING = "ping"
    PONG = "pong"

    def flip(self) -> "Side":
        return Side.PONG if self is Side.PING else Side.PING

    def __str__(self) -> str:
        return self.value


class Score(BaseModel):
    ping: int = Field(default=0, ge=0)
    pong: int = Field(default=0, ge=0)

    def increment(self, side: Side) -> None:
        setattr(self, side.value, getattr(self, side.value) + 1)

    def lose_point(self, side: Side) -> None:
        """Award the point to the opponent of ``side``."""
        self.increment(side.flip())


class RallyStatistics(BaseModel):
    hit_count: int = Field(default=0, ge=0, alias="hitCount")
    duration: timedelta = Field(default=timedelta(0), ge=timedelta(0))

    model_config = ConfigDict(populate_by_name=True)


class GameState(BaseModel):
    """Settled state of a table; the unit that gets persisted."""

    server: Side = Side.PING
    score: Score = Field(default_factory=Score)
    longest_rally: Optional[RallyStatistics] = Field(default=None, alias="longestRally")

    model_config = ConfigDict(populate_by_name=True)


class RallyState(BaseModel):
    """The rally in progress.

    ``hit_timeout`` and ``first_hit_at`` are either both set (a rally is
    live) or both ``None`` (waiting for a serve).
    """

    side: Side = Side.PING
    hit_timeout: Optional[datetime] = Field(default=None, alias="hitTimeoutTimestamp")
    first_hit_at: Optional[datetime] = Field(default=None, alias="serveTimestamp")
    hit_count: int = Field(default=0, ge=0, alias="hitCount")

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("hit_timeout", "first_hit_at")
    def _serialize_instant(self, value: Optional[datetime]) -> Optional[int]:
        return to_unix_millis(value)


class TableStateOut(BaseModel):
    rally_state: RallyState = Field(alias="rallyState")
    game_state: GameState = Field(alias="gameState")

    model_config = ConfigDict(populate_by_name=True)
