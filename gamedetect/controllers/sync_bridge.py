"""Publish/subscribe channel carrying detected game lists to their consumers.

Every successful scan publishes one `GamesDetected` message with the complete
current game list. Subscribers are plain callables (sync or async) or
bounded queues. The background summary sees a capped projection and sits
behind a `Debouncer` so a burst of platform rescans is delivered once.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..stores.base import GameRecord, format_time

logger = logging.getLogger(__name__)

GAMES_DETECTED = "games-detected"

SUMMARY_LIMIT = 10
SUMMARY_DEBOUNCE = 0.5  # seconds


@dataclass(frozen=True)
class GamesDetected:
    """Message published after a scan"""
    games: Tuple[GameRecord, ...]
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    topic: str = GAMES_DETECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic': self.topic,
            'publishedAt': format_time(self.published_at),
            'games': [game.to_dict() for game in self.games],
        }


Subscriber = Callable[[GamesDetected], Union[None, Awaitable[None]]]


async def _call(callback, *args):
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class SyncBridge:
    """In-process topic for `games-detected` messages"""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self.last_message: Optional[GamesDetected] = None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def subscribe_queue(self, maxsize: int = 16) -> "asyncio.Queue[GamesDetected]":
        """
        Subscribe with a bounded queue. When the queue is full the oldest
        message is dropped; only the newest list matters to a consumer.
        """
        queue: "asyncio.Queue[GamesDetected]" = asyncio.Queue(maxsize=maxsize)

        def enqueue(message: GamesDetected):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(message)

        self.subscribe(enqueue)
        return queue

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, games: Sequence[GameRecord]) -> GamesDetected:
        """Deliver one message to every subscriber. A failing subscriber is logged and skipped."""
        message = GamesDetected(games=tuple(games))
        self.last_message = message
        logger.debug(f"[SyncBridge] Publishing {len(message.games)} games to {len(self._subscribers)} subscribers")
        for callback in list(self._subscribers):
            try:
                await _call(callback, message)
            except Exception as e:
                logger.error(f"[SyncBridge] Subscriber {callback!r} failed: {e}", exc_info=True)
        return message


class Debouncer:
    """
    Coalesce rapid pushes into one delayed delivery of the latest value.

    The window starts at the first push after the last delivery; every push
    inside it replaces the pending value.
    """

    def __init__(self, delay: float, deliver: Callable[[Any], Union[None, Awaitable[None]]]):
        self.delay = delay
        self._deliver = deliver
        self._pending: Any = None
        self._has_pending = False
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._has_pending

    def push(self, value: Any):
        self._pending = value
        self._has_pending = True
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._deliver_later())

    async def _deliver_later(self):
        await asyncio.sleep(self.delay)
        self._task = None
        await self._deliver_pending()

    async def _deliver_pending(self):
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        try:
            await _call(self._deliver, value)
        except Exception as e:
            logger.error(f"[SyncBridge] Debounced delivery failed: {e}", exc_info=True)

    async def flush(self):
        """Deliver a pending value now instead of waiting for the window."""
        await self.cancel()
        await self._deliver_pending()

    async def cancel(self):
        """Stop the pending timer (the pending value is kept)."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def summarize_games(games: Sequence[GameRecord], limit: int = SUMMARY_LIMIT) -> List[Dict[str, Any]]:
    """Sanitized projection for the background surface: id, name, platform, icon."""
    return [
        {
            'id': game.id,
            'name': game.name,
            'platform': game.platform,
            'icon': game.icon_url,
        }
        for game in list(games)[:max(0, limit)]
    ]


class BackgroundSummarySink:
    """
    SyncBridge subscriber feeding the background summary view.

    `deliver` receives the capped summary list at most once per debounce
    window, always with the latest state.
    """

    def __init__(self, deliver: Callable[[List[Dict[str, Any]]], Union[None, Awaitable[None]]],
                 limit: int = SUMMARY_LIMIT, debounce: float = SUMMARY_DEBOUNCE):
        self.deliver = deliver
        self.limit = limit
        self.latest: List[Dict[str, Any]] = []
        self.deliveries = 0
        self._debouncer = Debouncer(debounce, self._deliver_summary)

    def __call__(self, message: GamesDetected):
        self._debouncer.push(message.games)

    async def _deliver_summary(self, games: Sequence[GameRecord]):
        summary = summarize_games(games, self.limit)
        self.latest = summary
        self.deliveries += 1
        logger.debug(f"[SyncBridge] Background summary updated ({len(summary)} entries)")
        await _call(self.deliver, summary)

    async def flush(self):
        await self._debouncer.flush()

    async def close(self):
        await self._debouncer.cancel()
