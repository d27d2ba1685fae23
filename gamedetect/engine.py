"""
Wiring for the detection engine.

Builds every service with explicit dependencies; callers own the returned
Engine and its lifecycle (start/stop of background work, closing sessions).
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .cache.games_cache import GamesCache
from .controllers.background_scan_service import BackgroundScanService
from .controllers.scan_progress import ScanProgress
from .controllers.sync_bridge import BackgroundSummarySink, SyncBridge
from .services.detection_service import DetectionService
from .services.icon_service import IconService
from .services.launch_service import LaunchService
from .settings import ScanSettings, load_settings
from .stores.battlenet import BattleNetDetector
from .stores.epic import EpicDetector
from .stores.gog import GOGDetector
from .stores.manager import DetectorRegistry
from .stores.origin import OriginDetector
from .stores.steam import SteamDetector
from .stores.uplay import UplayDetector
from .stores.xbox import XboxDetector
from .utils.paths import DEFAULT_STEAM_PATHS, GAMES_CACHE_PATH
from .utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    settings: ScanSettings
    detection_service: DetectionService
    launch_service: LaunchService
    sync_bridge: SyncBridge
    summary_sink: BackgroundSummarySink
    scan_progress: ScanProgress
    background: BackgroundScanService
    icon_service: Optional[IconService] = None

    async def close(self):
        await self.background.stop()
        await self.summary_sink.close()
        if self.icon_service:
            await self.icon_service.close()


def build_detectors(registry: RegistryReader, settings: ScanSettings) -> DetectorRegistry:
    """All seven platform detectors sharing one registry reader."""
    return DetectorRegistry([
        SteamDetector(registry, fallback_roots=DEFAULT_STEAM_PATHS + list(settings.extra_steam_roots)),
        EpicDetector(),
        XboxDetector(registry),
        OriginDetector(),
        BattleNetDetector(registry),
        GOGDetector(registry),
        UplayDetector(registry),
    ])


def build_engine(
    settings: Optional[ScanSettings] = None,
    registry: Optional[RegistryReader] = None,
    detectors: Optional[DetectorRegistry] = None,
    cache_path: str = GAMES_CACHE_PATH,
    summary_callback: Optional[Callable[[List[Dict[str, Any]]], Any]] = None,
) -> Engine:
    """Create the services and connect them."""
    settings = settings or load_settings()
    if detectors is None:
        detectors = build_detectors(registry if registry is not None else default_registry(), settings)

    sync_bridge = SyncBridge()
    summary_sink = BackgroundSummarySink(
        summary_callback or (lambda summary: None),
        limit=settings.summary_limit,
        debounce=settings.summary_debounce,
    )
    sync_bridge.subscribe(summary_sink)

    scan_progress = ScanProgress()
    icon_service = IconService() if settings.verify_icons else None
    detection_service = DetectionService(
        detectors,
        GamesCache(cache_path),
        sync_bridge=sync_bridge,
        scan_progress=scan_progress,
        icon_service=icon_service,
        detector_timeout=settings.detector_timeout,
        cache_ttl=settings.cache_ttl,
    )
    logger.debug(f"[Engine] Built with {len(detectors)} detectors")
    return Engine(
        settings=settings,
        detection_service=detection_service,
        launch_service=LaunchService(detection_service),
        sync_bridge=sync_bridge,
        summary_sink=summary_sink,
        scan_progress=scan_progress,
        background=BackgroundScanService(detection_service, interval=settings.background_interval),
        icon_service=icon_service,
    )
