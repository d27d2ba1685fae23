# gamedetect: installed-game detection across PC launchers
# Detectors per platform, a scan orchestrator with a JSON cache, and a
# publish/subscribe bridge for UI and background consumers.

from .stores import (
    Detector,
    DetectOptions,
    DetectionResult,
    GameRecord,
    Platform,
    PLATFORM_ORDER,
    UnknownPlatformError,
    DetectorRegistry,
)
from .cache import GamesCache
from .services import DetectionService, ScanReport, LaunchService, IconService
from .controllers import SyncBridge, GamesDetected, BackgroundSummarySink, ScanProgress, BackgroundScanService
from .settings import ScanSettings, load_settings
from .engine import Engine, build_engine
