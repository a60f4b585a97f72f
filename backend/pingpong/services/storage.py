"""SQL-backed storage for game state snapshots."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..db_errors import is_missing_table_error
from ..exceptions import StorageError
from ..models import GameStateRecord
from ..schemas import GameState

LOGGER = logging.getLogger(__name__)


class SqlGameStateStore:
    """Keeps exactly one current ``game_state`` row per table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def load_latest(self, table_id: int) -> GameState | None:
        """Return the newest snapshot of ``table_id``, or ``None`` if there is none.

        Raises:
            StorageError: If the stored snapshot cannot be decoded.
        """

        async with self._session_factory() as session:
            try:
                data = (
                    await session.execute(
                        select(GameStateRecord.data_dump)
                        .where(GameStateRecord.table_id == table_id)
                        .order_by(GameStateRecord.id.desc())
                        .limit(1)
                    )
                ).scalar_one_or_none()
            except SQLAlchemyError as exc:
                if is_missing_table_error(exc, GameStateRecord.__tablename__):
                    LOGGER.warning("game_state table missing; starting table %s fresh", table_id)
                    return None
                raise

        if data is None:
            return None

        try:
            return GameState.model_validate(data)
        except ValidationError as exc:
            raise StorageError(table_id, str(exc)) from exc

    async def replace_with(self, table_id: int, snapshot: GameState) -> None:
        data_dump = snapshot.model_dump(mode="json", by_alias=True)

        async with self._session_factory() as session:
            async with session.begin():
                # Only the current state of a table is kept.
                await session.execute(
                    delete(GameStateRecord).where(GameStateRecord.table_id == table_id)
                )
                session.add(GameStateRecord(table_id=table_id, data_dump=data_dump))
