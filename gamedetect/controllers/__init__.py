# Controllers package
from .sync_bridge import (
    GAMES_DETECTED,
    GamesDetected,
    SyncBridge,
    Debouncer,
    BackgroundSummarySink,
    summarize_games,
)
from .scan_progress import ScanProgress
from .background_scan_service import BackgroundScanService
