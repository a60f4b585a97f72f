"""Table services: the rally engine and the tasks that keep it running."""

from .runtime import TableRuntime
from .storage import SqlGameStateStore
from .sync import GameStateStore, GameStateSync
from .table import HitOutcome, TableState, update_longest_rally
from .ticker import TimeoutTicker

__all__ = [
    "GameStateStore",
    "GameStateSync",
    "HitOutcome",
    "SqlGameStateStore",
    "TableRuntime",
    "TableState",
    "TimeoutTicker",
    "update_longest_rally",
]
