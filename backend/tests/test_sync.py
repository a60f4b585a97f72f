import asyncio
import logging

import pytest

from pingpong.schemas import GameState, Score, Side
from pingpong.services.sync import GameStateSync
from pingpong.services.table import TableState


def _snapshot(ping, pong=0):
    return GameState(score=Score(ping=ping, pong=pong))


@pytest.mark.anyio
async def test_snapshots_are_written_in_order(memory_store):
    sync = GameStateSync(memory_store)
    sync.start()
    try:
        for ping in range(1, 6):
            assert sync.submit(1, _snapshot(ping))
        await sync.join()
    finally:
        await sync.stop()

    assert [snap.score.ping for _, snap in memory_store.writes] == [1, 2, 3, 4, 5]
    assert memory_store.latest[1].score.ping == 5


@pytest.mark.anyio
async def test_failed_writes_are_logged_and_dropped(unreachable_store, caplog):
    sync = GameStateSync(unreachable_store)
    sync.start()
    try:
        with caplog.at_level(logging.ERROR):
            sync.submit(1, _snapshot(1))
            sync.submit(1, _snapshot(2))
            await sync.join()
        assert sync.running
    finally:
        await sync.stop()

    assert unreachable_store.attempts == 2
    assert "Error while updating game state of table 1" in caplog.text


@pytest.mark.anyio
async def test_full_queue_drops_the_oldest_snapshot(memory_store, caplog):
    sync = GameStateSync(memory_store, maxsize=2)
    with caplog.at_level(logging.WARNING):
        assert sync.submit(1, _snapshot(1))
        assert sync.submit(1, _snapshot(2))
        assert sync.submit(1, _snapshot(3))
    assert sync.pending == 2
    assert "dropped stale snapshot" in caplog.text

    sync.start()
    try:
        await sync.join()
    finally:
        await sync.stop()

    assert [snap.score.ping for _, snap in memory_store.writes] == [2, 3]


@pytest.mark.anyio
async def test_submit_after_stop_is_refused(memory_store, caplog):
    sync = GameStateSync(memory_store)
    sync.start()
    await sync.stop()

    with caplog.at_level(logging.WARNING):
        assert sync.submit(1, _snapshot(1)) is False
    assert "closed" in caplog.text
    assert memory_store.writes == []


@pytest.mark.anyio
async def test_stop_flushes_pending_writes(memory_store):
    sync = GameStateSync(memory_store)
    sync.start()
    sync.submit(1, _snapshot(1))
    sync.submit(1, _snapshot(2))

    await sync.stop()

    assert len(memory_store.writes) == 2
    assert not sync.running


@pytest.mark.anyio
async def test_stop_gives_up_on_a_hanging_store(caplog):
    class HangingStore:
        async def load_latest(self, table_id):
            return None

        async def replace_with(self, table_id, snapshot):
            await asyncio.sleep(10)

    sync = GameStateSync(HangingStore())
    sync.start()
    sync.submit(1, _snapshot(1))

    with caplog.at_level(logging.WARNING):
        await sync.stop(flush_timeout=0.01)

    assert "Gave up flushing" in caplog.text
    assert not sync.running


@pytest.mark.anyio
async def test_gameplay_continues_when_store_is_unreachable(clock, unreachable_store):
    sync = GameStateSync(unreachable_store)
    table = TableState(clock=clock, sync=sync)
    sync.start()
    try:
        assert (await table.attempt_hit(Side.PING)).accepted
        outcome = await table.attempt_hit(Side.PING)
        assert not outcome.accepted
        await sync.join()
    finally:
        await sync.stop()

    assert unreachable_store.attempts == 1
    assert table.game_state.score == Score(ping=0, pong=1)


@pytest.mark.anyio
async def test_points_are_synced_with_latest_state(clock, memory_store):
    sync = GameStateSync(memory_store)
    table = TableState(clock=clock, sync=sync, table_id=3)
    sync.start()
    try:
        await table.lose_point(Side.PING)
        await table.lose_point(Side.PING)
        await sync.join()
    finally:
        await sync.stop()

    assert [table_id for table_id, _ in memory_store.writes] == [3, 3]
    assert memory_store.latest[3] == table.game_state
