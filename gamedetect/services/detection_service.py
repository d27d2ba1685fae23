"""
DetectionService - Orchestrates game detection across all platforms.

Responsibilities:
- Serve the cached game list while it is fresh
- Run every platform detector concurrently, each bounded by a timeout
- Merge results in fixed platform order, keeping the first record per id
- Rescan a single platform and replace only that platform's games
- Write the cache and publish the new list on the sync bridge
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..cache.games_cache import DEFAULT_TTL, GamesCache
from ..stores.base import (
    DetectOptions,
    DetectionResult,
    Detector,
    GameRecord,
    Platform,
    PLATFORM_ORDER,
    format_time,
)
from ..stores.manager import DetectorRegistry

logger = logging.getLogger(__name__)

DEFAULT_DETECTOR_TIMEOUT = 30.0  # seconds
DETECTOR_TIMED_OUT = "Detector timed out"


def merge_results(results: Iterable[DetectionResult]) -> List[GameRecord]:
    """Flatten results in the given order, keeping the first record seen per id."""
    merged: Dict[str, GameRecord] = {}
    for result in results:
        for game in result.games:
            if game.id not in merged:
                merged[game.id] = game
            else:
                logger.debug(f"[Detection] Duplicate {game.id} from {result.platform} ignored")
    return list(merged.values())


@dataclass
class ScanReport:
    """Outcome of a scan request as seen by the UI"""
    games: List[GameRecord]
    results: List[DetectionResult] = field(default_factory=list)
    from_cache: bool = False
    scanned_at: Optional[datetime] = None
    cache_written: bool = False

    @property
    def failed_platforms(self) -> List[str]:
        return [r.platform for r in self.results if r.error]

    @property
    def warnings(self) -> List[str]:
        return [f"{r.platform} failed: {r.error}" for r in self.results if r.error]

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and all(r.error for r in self.results)

    def summary(self) -> str:
        """One line for the UI, e.g. "6 of 7 platforms scanned, Xbox failed: <reason>"."""
        if self.from_cache:
            return f"{len(self.games)} games from cache"
        if not self.games and not self.warnings:
            return "No games found, click scan"
        scanned = len(self.results) - len(self.failed_platforms)
        line = f"{scanned} of {len(self.results)} platforms scanned"
        if self.warnings:
            line += ", " + "; ".join(self.warnings)
        return line

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': not self.all_failed,
            'games': [game.to_dict() for game in self.games],
            'results': [result.to_dict() for result in self.results],
            'fromCache': self.from_cache,
            'scannedAt': format_time(self.scanned_at),
            'warnings': self.warnings,
            'summary': self.summary(),
        }


class DetectionService:
    """Service for scanning platforms and keeping the games cache current."""

    def __init__(
        self,
        registry: DetectorRegistry,
        cache: GamesCache,
        sync_bridge=None,
        scan_progress=None,
        icon_service=None,
        detector_timeout: float = DEFAULT_DETECTOR_TIMEOUT,
        cache_ttl: float = DEFAULT_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize DetectionService with its collaborators.

        Args:
            registry: DetectorRegistry with the platform detectors
            cache: GamesCache holding the last scan
            sync_bridge: SyncBridge to publish new lists on (optional)
            scan_progress: ScanProgress tracker (optional)
            icon_service: IconService for icon verification (optional)
            detector_timeout: Default per-detector timeout in seconds
            cache_ttl: Seconds a full scan stays fresh
            clock: Returns the current aware datetime (for tests)
        """
        self.registry = registry
        self.cache = cache
        self.sync_bridge = sync_bridge
        self.scan_progress = scan_progress
        self.icon_service = icon_service
        self.detector_timeout = detector_timeout
        self.cache_ttl = cache_ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        # Scan state
        self._full_scan: Optional[asyncio.Future] = None
        self._platform_locks: Dict[Platform, asyncio.Lock] = {p: asyncio.Lock() for p in PLATFORM_ORDER}

    @property
    def is_scanning(self) -> bool:
        return self._full_scan is not None and not self._full_scan.done()

    def get_cached_games(self) -> List[GameRecord]:
        """Current game list without scanning."""
        return self.cache.get_games()

    async def scan_all_platforms(self, force_refresh: bool = False,
                                 timeout: Optional[float] = None) -> ScanReport:
        """Scan every platform, or return the cached list while it is fresh.

        Args:
            force_refresh: Ignore a fresh cache and rescan
            timeout: Per-detector timeout in seconds (default: detector_timeout)

        Returns:
            ScanReport with the merged games and per-platform results
        """
        if self.scan_progress:
            self.scan_progress.status = "checking_cache"

        if not force_refresh and self.cache.is_fresh(self.cache_ttl, self._clock()):
            games = self.cache.get_games()
            logger.info(f"[Detection] Using cached games ({len(games)}) from {self.cache.last_scan_time}")
            if self.scan_progress:
                self.scan_progress.complete(len(games))
            return ScanReport(games=games, from_cache=True, scanned_at=self.cache.last_scan_time)

        # One full scan at a time; later callers share the running one
        if self.is_scanning:
            logger.info("[Detection] Full scan already in progress, waiting for it")
            return await asyncio.shield(self._full_scan)

        self._full_scan = asyncio.ensure_future(self._scan_all(timeout))
        try:
            return await self._full_scan
        finally:
            if self._full_scan is not None and self._full_scan.done():
                self._full_scan = None

    async def _scan_all(self, timeout: Optional[float]) -> ScanReport:
        started = self._clock()
        detectors = self.registry.detectors()
        logger.info(f"[Detection] Scanning {len(detectors)} platforms...")
        if self.scan_progress:
            self.scan_progress.start(d.platform_name for d in detectors)

        outcomes = await asyncio.gather(
            *(self._run_detector(detector, timeout) for detector in detectors),
            return_exceptions=True,
        )

        results = []
        for detector, outcome in zip(detectors, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"[Detection] {detector.platform_name} detector raised: {outcome!r}")
                outcome = DetectionResult(
                    platform=detector.platform_name,
                    error=str(outcome) or type(outcome).__name__,
                )
                if self.scan_progress:
                    await self.scan_progress.platform_done(detector.platform_name, error=outcome.error)
            results.append(outcome)

        games = merge_results(results)
        games = await self._verify_icons(games)

        # A platform that failed keeps its previously cached games
        failed = {r.platform for r in results if r.error}
        retained = [g for g in self.cache.get_games() if g.platform in failed]
        to_store = merge_results([
            DetectionResult(platform='scan', games=games),
            DetectionResult(platform='retained', games=retained),
        ])

        if self.scan_progress:
            self.scan_progress.status = "saving"
        written = await self.cache.replace_all(to_store, started)
        if written:
            await self._publish()

        report = ScanReport(games=games, results=results, scanned_at=started, cache_written=written)
        if report.all_failed:
            logger.warning(f"[Detection] All detectors failed: {report.summary()}")
        else:
            logger.info(f"[Detection] Scan complete: {len(games)} games, {report.summary()}")
        if self.scan_progress:
            self.scan_progress.complete(len(games))
        return report

    async def scan_platform(self, platform: Union[str, Platform],
                            timeout: Optional[float] = None) -> ScanReport:
        """Rescan one platform and replace only its games in the cache.

        Raises:
            UnknownPlatformError: no detector is registered under that name
        """
        detector = self.registry.get_detector(platform)
        started = self._clock()
        logger.info(f"[Detection] Rescanning {detector.platform_name}...")
        if self.scan_progress:
            self.scan_progress.start([detector.platform_name])

        try:
            result = await self._run_detector(detector, timeout)
        except Exception as e:
            logger.error(f"[Detection] {detector.platform_name} detector raised: {e!r}")
            result = DetectionResult(platform=detector.platform_name, error=str(e) or type(e).__name__)

        if result.error:
            # Keep the previous games of this platform rather than erase them
            logger.warning(f"[Detection] {detector.platform_name} rescan failed: {result.error}")
            if self.scan_progress:
                self.scan_progress.complete(len(self.cache.get_games()))
            return ScanReport(games=self.cache.get_games(), results=[result], scanned_at=started)

        games = await self._verify_icons(result.games)
        written = await self.cache.replace_platform(detector.platform_name, games, started)
        if written:
            await self._publish()

        current = self.cache.get_games()
        if self.scan_progress:
            self.scan_progress.complete(len(current))
        return ScanReport(games=current, results=[result], scanned_at=started, cache_written=written)

    async def clear_cache(self) -> bool:
        """Delete the cached games. Does not scan.

        Raises:
            OSError: the cache file could not be removed
        """
        cleared = await self.cache.clear()
        logger.info("[Detection] Cache cleared")
        return cleared

    async def set_optimized(self, game_id: str, optimized: bool = True) -> Optional[GameRecord]:
        """Set a game's optimized flag (the only field the UI may change)."""
        game = await self.cache.set_optimized(game_id, optimized)
        if game is None:
            logger.warning(f"[Detection] Cannot mark unknown game {game_id} as optimized")
        return game

    async def _run_detector(self, detector: Detector, timeout: Optional[float]) -> DetectionResult:
        """Run one detector under its platform lock, bounded by the timeout."""
        timeout = self.detector_timeout if timeout is None else timeout
        lock = self._platform_locks.setdefault(detector.platform, asyncio.Lock())

        async def locked_detect() -> DetectionResult:
            async with lock:
                return await detector.detect(DetectOptions(force_refresh=True, timeout=timeout))

        try:
            result = await asyncio.wait_for(locked_detect(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[Detection] {detector.platform_name} timed out after {timeout}s")
            result = DetectionResult(platform=detector.platform_name, error=DETECTOR_TIMED_OUT)

        if self.scan_progress:
            await self.scan_progress.platform_done(detector.platform_name, len(result.games), result.error)
        return result

    async def _verify_icons(self, games: List[GameRecord]) -> List[GameRecord]:
        if not self.icon_service:
            return games
        try:
            return await self.icon_service.verify_icons(games)
        except Exception as e:
            logger.warning(f"[Detection] Icon verification failed: {e}")
            return games

    async def _publish(self):
        if not self.sync_bridge:
            return
        try:
            await self.sync_bridge.publish(self.cache.get_games())
        except Exception as e:
            logger.error(f"[Detection] Failed to publish games: {e}")
