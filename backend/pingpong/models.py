from sqlalchemy import JSON, Column, DateTime, Index, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from .db import Base


class GameStateRecord(Base):
    """Persisted snapshot of one table's game state.

    Writers replace all rows of a table in one transaction, so each table
    holds exactly one current row.
    """

    __tablename__ = "game_state"
    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, nullable=False)
    data_dump = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_game_state_table_id", "table_id"),)
