"""
Base Detector class defining the interface for all platform detectors.

All detector implementations (Steam, Epic, Xbox, Origin, Battle.net, GOG,
Uplay) inherit from this and implement `_scan`.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Any, Optional


logger = logging.getLogger(__name__)

BYTES_PER_GB = 1024 ** 3


class Platform(str, Enum):
    """Distribution platforms with a registered detector."""
    STEAM = 'Steam'
    EPIC = 'Epic'
    XBOX = 'Xbox'
    ORIGIN = 'Origin'
    BATTLENET = 'BattleNet'
    GOG = 'GOG'
    UPLAY = 'Uplay'

    @classmethod
    def parse(cls, name) -> 'Platform':
        """Resolve a platform from its value, member name or display alias."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for platform in cls:
            if key in (platform.value.lower(), platform.name.lower()):
                return platform
        if key in _PLATFORM_ALIASES:
            return _PLATFORM_ALIASES[key]
        raise UnknownPlatformError(name)


_PLATFORM_ALIASES = {
    'battle.net': Platform.BATTLENET,
    'ubisoft': Platform.UPLAY,
    'ubisoft connect': Platform.UPLAY,
    'ea': Platform.ORIGIN,
}

# Detector invocation order. Deduplication keeps the first record per id in
# this order, so it must stay fixed.
PLATFORM_ORDER = (
    Platform.STEAM,
    Platform.EPIC,
    Platform.XBOX,
    Platform.ORIGIN,
    Platform.BATTLENET,
    Platform.GOG,
    Platform.UPLAY,
)


class UnknownPlatformError(ValueError):
    """Raised when a caller names a platform with no registered detector."""

    def __init__(self, name):
        super().__init__(f"Unknown platform: {name}")
        self.name = name


class SourceUnreadableError(Exception):
    """The platform is installed but its data could not be read."""


def format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_time(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class GameRecord:
    """An installed game found by a detector"""
    id: str
    name: str
    platform: str  # Platform value, e.g. 'Steam'
    install_path: str
    executable_path: Optional[str] = None
    size_bytes: int = 0  # 0 = unknown
    icon_url: Optional[str] = None
    last_played: Optional[datetime] = None
    optimized: bool = False

    @property
    def size_gb(self) -> int:
        return round(self.size_bytes / BYTES_PER_GB)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'platform': self.platform,
            'installPath': self.install_path,
            'executablePath': self.executable_path,
            'sizeBytes': self.size_bytes,
            'sizeGb': self.size_gb,
            'iconUrl': self.icon_url,
            'lastPlayed': format_time(self.last_played),
            'optimized': self.optimized,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameRecord':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            platform=data['platform'],
            install_path=data.get('installPath', ''),
            executable_path=data.get('executablePath'),
            size_bytes=max(0, int(data.get('sizeBytes') or 0)),
            icon_url=data.get('iconUrl'),
            last_played=parse_time(data.get('lastPlayed')),
            optimized=bool(data.get('optimized', False)),
        )


@dataclass
class DetectionResult:
    """Outcome of one platform scan.

    `error` is set only when the platform could not be scanned at all. Zero
    games without an error means the platform is not installed or empty.
    """
    platform: str
    games: List[GameRecord] = field(default_factory=list)
    error: Optional[str] = None
    skipped: int = 0  # malformed entries that were skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'games': [game.to_dict() for game in self.games],
            'error': self.error,
            'skipped': self.skipped,
        }


@dataclass
class DetectOptions:
    force_refresh: bool = False
    timeout: Optional[float] = None  # seconds


class Detector(ABC):
    """
    Abstract base class for platform detectors.

    Each detector reads one launcher's on-disk and registry data. `detect`
    never raises: failures become either an empty result (not installed) or
    a result carrying `error` (installed but unreadable).
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Return the platform this detector scans"""
        pass

    @property
    def platform_name(self) -> str:
        return self.platform.value

    async def detect(self, options: Optional[DetectOptions] = None) -> DetectionResult:
        """
        Scan the platform for installed games.

        Blocking filesystem and registry reads run in the default executor so
        several detectors can scan at the same time.

        Args:
            options: Detection options. The timeout is enforced by the caller.

        Returns:
            DetectionResult for this platform.
        """
        result = DetectionResult(platform=self.platform_name)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._scan, result)
        except SourceUnreadableError as e:
            logger.error(f"[{self.platform_name}] Installed but unreadable: {e}")
            return DetectionResult(platform=self.platform_name, error=str(e))
        except Exception as e:
            logger.error(f"[{self.platform_name}] Detection failed: {e}", exc_info=True)
            return DetectionResult(platform=self.platform_name, error=str(e) or type(e).__name__)

        if result.skipped:
            logger.warning(f"[{self.platform_name}] Skipped {result.skipped} malformed entries")
        logger.info(f"[{self.platform_name}] Found {len(result.games)} games")
        return result

    @abstractmethod
    def _scan(self, result: DetectionResult) -> None:
        """
        Fill `result.games` (and `result.skipped`) from the platform's data.

        Runs in a worker thread. Return without adding games when the
        platform is not installed; raise SourceUnreadableError when it is
        installed but cannot be read.
        """
        pass
