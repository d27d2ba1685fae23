"""
Tests for SyncBridge, Debouncer and the background summary sink.
"""
import asyncio

import pytest

from gamedetect.controllers.sync_bridge import (
    GAMES_DETECTED,
    BackgroundSummarySink,
    Debouncer,
    SyncBridge,
    summarize_games,
)
from gamedetect.stores.base import Platform


@pytest.mark.asyncio
async def test_publish_reaches_sync_and_async_subscribers(make_game):
    bridge = SyncBridge()
    seen_sync, seen_async = [], []

    async def on_games(message):
        seen_async.append(message)

    bridge.subscribe(seen_sync.append)
    bridge.subscribe(on_games)

    message = await bridge.publish([make_game("steam-730")])

    assert seen_sync == [message]
    assert seen_async == [message]
    assert message.topic == GAMES_DETECTED
    assert bridge.last_message is message
    assert message.to_dict()["games"][0]["id"] == "steam-730"


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others(make_game):
    bridge = SyncBridge()
    received = []

    def broken(message):
        raise RuntimeError("ui went away")

    bridge.subscribe(broken)
    bridge.subscribe(received.append)

    await bridge.publish([make_game("steam-730")])

    assert len(received) == 1


@pytest.mark.asyncio
async def test_unsubscribe(make_game):
    bridge = SyncBridge()
    received = []
    unsubscribe = bridge.subscribe(received.append)
    assert bridge.subscriber_count == 1

    unsubscribe()
    unsubscribe()
    await bridge.publish([make_game("steam-730")])

    assert received == []
    assert bridge.subscriber_count == 0


@pytest.mark.asyncio
async def test_queue_subscriber_drops_oldest(make_game):
    bridge = SyncBridge()
    queue = bridge.subscribe_queue(maxsize=2)

    for i in range(3):
        await bridge.publish([make_game(f"steam-{i}")])

    assert queue.qsize() == 2
    first = queue.get_nowait()
    second = queue.get_nowait()
    assert [g.id for g in first.games] == ["steam-1"]
    assert [g.id for g in second.games] == ["steam-2"]


def test_summary_is_capped_and_sanitized(make_game):
    games = [make_game(f"steam-{i}", icon_url=f"http://icons/{i}.jpg", size_bytes=i) for i in range(15)]
    summary = summarize_games(games)
    assert len(summary) == 10
    assert summary[0] == {"id": "steam-0", "name": "steam-0", "platform": "Steam", "icon": "http://icons/0.jpg"}
    assert all(set(entry) == {"id", "name", "platform", "icon"} for entry in summary)


def test_summary_of_few_games(make_game):
    summary = summarize_games([make_game("epic-Sugar", Platform.EPIC)])
    assert summary == [{"id": "epic-Sugar", "name": "epic-Sugar", "platform": "Epic", "icon": None}]


@pytest.mark.asyncio
async def test_debouncer_delivers_latest_once():
    delivered = []
    debouncer = Debouncer(0.05, delivered.append)

    for value in ("a", "b", "c"):
        debouncer.push(value)
        await asyncio.sleep(0.01)
    assert delivered == []
    assert debouncer.pending

    await asyncio.sleep(0.1)
    assert delivered == ["c"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_debouncer_flush_and_cancel():
    delivered = []
    debouncer = Debouncer(10, delivered.append)

    debouncer.push(1)
    await debouncer.flush()
    assert delivered == [1]

    debouncer.push(2)
    await debouncer.cancel()
    await asyncio.sleep(0)
    assert delivered == [1]
    assert debouncer.pending


@pytest.mark.asyncio
async def test_background_sink_coalesces_bursts(make_game):
    bridge = SyncBridge()
    delivered = []
    sink = BackgroundSummarySink(delivered.append, debounce=0.05)
    bridge.subscribe(sink)

    await bridge.publish([make_game("steam-1")])
    await bridge.publish([make_game("steam-1"), make_game("epic-2", Platform.EPIC)])
    await asyncio.sleep(0.15)

    assert sink.deliveries == 1
    assert [entry["id"] for entry in delivered[0]] == ["steam-1", "epic-2"]
    assert sink.latest == delivered[0]
    await sink.close()


@pytest.mark.asyncio
async def test_background_sink_flush(make_game):
    delivered = []
    sink = BackgroundSummarySink(delivered.append, limit=1, debounce=10)
    bridge = SyncBridge()
    bridge.subscribe(sink)

    await bridge.publish([make_game("steam-1"), make_game("steam-2")])
    await sink.flush()

    assert delivered == [[{"id": "steam-1", "name": "steam-1", "platform": "Steam", "icon": None}]]
