# Stores package: one detector per distribution platform
from .base import (
    Detector,
    DetectOptions,
    DetectionResult,
    GameRecord,
    Platform,
    PLATFORM_ORDER,
    SourceUnreadableError,
    UnknownPlatformError,
)
from .manager import DetectorRegistry
from .steam import SteamDetector
from .epic import EpicDetector
from .xbox import XboxDetector
from .origin import OriginDetector
from .battlenet import BattleNetDetector
from .gog import GOGDetector
from .uplay import UplayDetector
