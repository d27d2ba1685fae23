"""gamedetect settings, stored as JSON next to the games cache."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List

from .utils.paths import SETTINGS_PATH

logger = logging.getLogger(__name__)


@dataclass
class ScanSettings:
    detector_timeout: float = 30.0  # seconds per detector
    cache_ttl: float = 3600  # seconds a full scan stays fresh
    summary_limit: int = 10
    summary_debounce: float = 0.5  # seconds
    background_interval: float = 300
    verify_icons: bool = False
    extra_steam_roots: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScanSettings':
        """Build settings from a dict; unknown keys are ignored, bad values use the default."""
        settings = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(settings, f.name)
            try:
                if isinstance(default, bool):
                    if not isinstance(value, bool):
                        raise TypeError("expected true/false")
                elif isinstance(default, (int, float)):
                    if isinstance(value, bool) or float(value) < 0:
                        raise ValueError("expected a non-negative number")
                    value = type(default)(value)
                elif isinstance(default, list):
                    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                        raise TypeError("expected a list of paths")
            except (TypeError, ValueError) as e:
                logger.warning(f"[Settings] Invalid {f.name}={value!r} ({e}), using {default!r}")
                continue
            setattr(settings, f.name, value)
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(path: str = SETTINGS_PATH) -> ScanSettings:
    """Load settings from JSON file; a missing or unreadable file gives defaults."""
    try:
        if os.path.exists(path):
            with open(path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                return ScanSettings.from_dict(data)
            logger.warning(f"[Settings] {path} is not an object, using defaults")
    except (OSError, ValueError) as e:
        logger.warning(f"[Settings] Could not load settings: {e}")
    return ScanSettings()


def save_settings(settings: ScanSettings, path: str = SETTINGS_PATH) -> bool:
    """Save settings to JSON file."""
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as f:
            json.dump(settings.to_dict(), f, indent=2)
        return True
    except OSError as e:
        logger.error(f"[Settings] Error saving settings: {e}")
        return False
