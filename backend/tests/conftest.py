import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pingpong import db, models  # noqa: F401
from pingpong.clock import MockClock
from pingpong.schemas import GameState


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return MockClock()


class MemoryStore:
    """Store double that keeps every write so tests can inspect ordering."""

    def __init__(self, initial: GameState | None = None):
        self.latest = {} if initial is None else {1: initial}
        self.writes = []

    async def load_latest(self, table_id):
        snapshot = self.latest.get(table_id)
        return snapshot.model_copy(deep=True) if snapshot else None

    async def replace_with(self, table_id, snapshot):
        self.writes.append((table_id, snapshot))
        self.latest[table_id] = snapshot


class UnreachableStore:
    """Store double whose writes always fail like a dropped connection."""

    def __init__(self):
        self.attempts = 0

    async def load_latest(self, table_id):
        return None

    async def replace_with(self, table_id, snapshot):
        self.attempts += 1
        raise ConnectionRefusedError("database unreachable")


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def unreachable_store():
    return UnreachableStore()


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.create_all)
    try:
        yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
