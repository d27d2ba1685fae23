"""Scan progress tracking for game detection.

Tracks which phase a scan is in and how many platforms have reported, with
a percentage for progress bars.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional


class ScanProgress:
    """Track detection progress with phase-based percentage tracking."""

    # Phase percentage allocations: (start_pct, end_pct)
    PHASE_RANGES = {
        'idle': (0, 0),
        'checking_cache': (0, 5),
        'detecting': (5, 90),
        'saving': (90, 100),
        'complete': (100, 100),
        'error': (100, 100),
    }

    def __init__(self):
        self.status = "idle"  # idle, checking_cache, detecting, saving, complete, error
        self.platforms_total = 0
        self.platforms_done = 0
        self.pending_platforms: List[str] = []
        self.failed_platforms: List[str] = []
        self.games_found = 0
        self.error: Optional[str] = None

        self._lock = asyncio.Lock()

    def start(self, platforms: Iterable[str]):
        self.status = "detecting"
        self.pending_platforms = list(platforms)
        self.platforms_total = len(self.pending_platforms)
        self.platforms_done = 0
        self.failed_platforms = []
        self.games_found = 0
        self.error = None

    async def platform_done(self, platform: str, games: int = 0, error: Optional[str] = None) -> int:
        """Record one finished platform; returns how many have finished"""
        async with self._lock:
            self.platforms_done += 1
            self.games_found += games
            if platform in self.pending_platforms:
                self.pending_platforms.remove(platform)
            if error:
                self.failed_platforms.append(platform)
            return self.platforms_done

    def complete(self, games: int):
        self.status = "complete"
        self.games_found = games
        self.pending_platforms = []

    def fail(self, error: str):
        self.status = "error"
        self.error = error

    @property
    def is_running(self) -> bool:
        return self.status in ('checking_cache', 'detecting', 'saving')

    def _calculate_progress(self) -> int:
        start_pct, end_pct = self.PHASE_RANGES.get(self.status, (0, 0))
        if self.status == 'detecting' and self.platforms_total > 0:
            sub_progress = self.platforms_done / self.platforms_total
            return int(start_pct + (end_pct - start_pct) * sub_progress)
        return start_pct

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'progress_percent': self._calculate_progress(),
            'platforms_total': self.platforms_total,
            'platforms_done': self.platforms_done,
            'pending_platforms': list(self.pending_platforms),
            'failed_platforms': list(self.failed_platforms),
            'games_found': self.games_found,
            'error': self.error,
        }
