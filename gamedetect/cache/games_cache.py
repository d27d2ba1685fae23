"""
Detected games cache with JSON storage.

One document holds the last known game list and the time of the scan that
produced it:

    {"games": [GameRecord, ...], "lastScanTime": "2025-05-26T18:33:14+00:00"}

Writes go through a single lock and are rejected when their scan started
before the stored one, so a slow scan can never overwrite a newer result.
Reads are served from memory without locking.
"""
import asyncio
import json
import logging
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ..stores.base import GameRecord, format_time, parse_time
from ..utils.paths import GAMES_CACHE_PATH

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600  # seconds


class GamesCache:
    """
    Persisted snapshot of detected games, keyed by game id.

    The in-memory copy is authoritative for reads; every accepted write is
    saved to disk immediately.
    """

    def __init__(self, path: str = GAMES_CACHE_PATH):
        self.path = path
        self._games: Dict[str, GameRecord] = {}
        self._last_scan_time: Optional[datetime] = None
        self._write_lock = asyncio.Lock()
        self._load()

    def _load(self):
        """Load the cache from disk; a missing or corrupt file starts empty"""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"[Cache] Failed to load {self.path}: {e}")
            return
        if not isinstance(data, dict):
            logger.error(f"[Cache] Ignoring {self.path}: not a cache document")
            return

        for entry in data.get('games') or []:
            try:
                game = GameRecord.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Cache] Skipping bad cache entry: {e}")
                continue
            self._games[game.id] = game
        self._last_scan_time = parse_time(data.get('lastScanTime'))
        logger.info(f"[Cache] Loaded {len(self._games)} games (last scan {data.get('lastScanTime')})")

    def _save(self):
        """Write the document atomically (temp file + rename)"""
        tmp_path = self.path + '.tmp'
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
            logger.debug(f"[Cache] Saved {len(self._games)} games to {self.path}")
        except OSError as e:
            logger.error(f"[Cache] Failed to save {self.path}: {e}")

    def to_dict(self) -> Dict:
        return {
            'games': [game.to_dict() for game in self._games.values()],
            'lastScanTime': format_time(self._last_scan_time),
        }

    # --- reads -----------------------------------------------------------

    @property
    def last_scan_time(self) -> Optional[datetime]:
        return self._last_scan_time

    @property
    def has_entry(self) -> bool:
        return self._last_scan_time is not None

    def get_games(self) -> List[GameRecord]:
        return list(self._games.values())

    def get(self, game_id: str) -> Optional[GameRecord]:
        return self._games.get(game_id)

    def is_fresh(self, ttl: float = DEFAULT_TTL, now: Optional[datetime] = None) -> bool:
        """True if a scan happened less than `ttl` seconds before `now`."""
        if self._last_scan_time is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now - self._last_scan_time < timedelta(seconds=ttl)

    # --- writes ----------------------------------------------------------

    def _accepts(self, scan_time: datetime) -> bool:
        if self._last_scan_time is not None and scan_time < self._last_scan_time:
            logger.warning(
                f"[Cache] Rejected write from scan at {scan_time.isoformat()}, "
                f"cache already holds scan at {self._last_scan_time.isoformat()}"
            )
            return False
        return True

    def _carry_flags(self, game: GameRecord) -> GameRecord:
        previous = self._games.get(game.id)
        if previous is not None and previous.optimized and not game.optimized:
            return replace(game, optimized=True)
        return game

    async def replace_all(self, games: Iterable[GameRecord], scan_time: datetime) -> bool:
        """
        Replace the whole game set with the result of a full scan.

        Returns:
            False if a newer scan is already stored (nothing changes).
        """
        async with self._write_lock:
            if not self._accepts(scan_time):
                return False
            new_games = {}
            for game in games:
                new_games.setdefault(game.id, self._carry_flags(game))
            self._games = new_games
            self._last_scan_time = scan_time
            self._save()
            logger.info(f"[Cache] Stored {len(new_games)} games from full scan")
            return True

    async def replace_platform(self, platform: str, games: Iterable[GameRecord],
                               scan_time: datetime) -> bool:
        """
        Replace only the games of one platform; other platforms are untouched.

        A record whose id already belongs to another platform is dropped,
        since an id never changes platform.

        Returns:
            False if a newer scan is already stored (nothing changes).
        """
        async with self._write_lock:
            if not self._accepts(scan_time):
                return False
            kept = {gid: g for gid, g in self._games.items() if g.platform != platform}
            added = 0
            for game in games:
                existing = kept.get(game.id)
                if existing is not None:
                    # a repeated id in this batch is silently dropped
                    if existing.platform != platform:
                        logger.warning(
                            f"[Cache] {game.id} already belongs to {existing.platform}, "
                            f"ignoring {platform} record"
                        )
                    continue
                kept[game.id] = self._carry_flags(game)
                added += 1
            self._games = kept
            self._last_scan_time = scan_time
            self._save()
            logger.info(f"[Cache] Replaced {platform} games ({added} now cached)")
            return True

    async def set_optimized(self, game_id: str, optimized: bool = True) -> Optional[GameRecord]:
        """Set the optimized flag of one game, keeping every other field."""
        async with self._write_lock:
            game = self._games.get(game_id)
            if game is None:
                return None
            updated = replace(game, optimized=optimized)
            self._games[game_id] = updated
            self._save()
            return updated

    async def clear(self) -> bool:
        """
        Delete the persisted entry and empty the in-memory state.

        Raises:
            OSError: the cache file exists but could not be removed.
        """
        async with self._write_lock:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                pass
            self._games = {}
            self._last_scan_time = None
            logger.info("[Cache] Cleared")
            return True
