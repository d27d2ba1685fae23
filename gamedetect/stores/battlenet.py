"""
Battle.net detector.

Blizzard and Activision titles installed through Battle.net register a
regular Uninstall entry under a fixed name. Only the known names are looked
up; a missing key just means that title is not installed.
"""
import logging
import os
from typing import Optional, Sequence, Tuple

from .base import Detector, DetectionResult, GameRecord, Platform
from ..utils.files import find_executable
from ..utils.paths import UNINSTALL_KEY
from ..utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)

# (id suffix, Uninstall subkey, fallback display name)
KNOWN_TITLES: Tuple[Tuple[str, str, str], ...] = (
    ('overwatch', 'Overwatch', 'Overwatch 2'),
    ('wow', 'World of Warcraft', 'World of Warcraft'),
    ('wow-classic', 'World of Warcraft Classic', 'World of Warcraft Classic'),
    ('diablo3', 'Diablo III', 'Diablo III'),
    ('diablo4', 'Diablo IV', 'Diablo IV'),
    ('diablo2r', 'Diablo II Resurrected', 'Diablo II: Resurrected'),
    ('hearthstone', 'Hearthstone', 'Hearthstone'),
    ('heroes', 'Heroes of the Storm', 'Heroes of the Storm'),
    ('starcraft', 'StarCraft', 'StarCraft: Remastered'),
    ('starcraft2', 'StarCraft II', 'StarCraft II'),
    ('warcraft3', 'Warcraft III', 'Warcraft III: Reforged'),
    ('cod', 'Call of Duty', 'Call of Duty'),
    ('cod-bo6', 'Call of Duty Black Ops 6', 'Call of Duty: Black Ops 6'),
)


class BattleNetDetector(Detector):
    """Known Battle.net titles from their Uninstall registry entries"""

    def __init__(self, registry: Optional[RegistryReader] = None,
                 titles: Sequence[Tuple[str, str, str]] = KNOWN_TITLES):
        self.registry = registry if registry is not None else default_registry()
        self.titles = tuple(titles)

    @property
    def platform(self) -> Platform:
        return Platform.BATTLENET

    def _scan(self, result: DetectionResult) -> None:
        for slug, subkey, default_name in self.titles:
            values = self.registry.get_values(f"{UNINSTALL_KEY}\\{subkey}")
            if not values:
                continue

            install_path = values.get('InstallLocation')
            if not install_path:
                logger.warning(f"[BattleNet] {subkey} has no InstallLocation, skipping")
                result.skipped += 1
                continue
            if not os.path.isdir(install_path):
                logger.debug(f"[BattleNet] {subkey} points at missing folder {install_path}")
                continue

            name = values.get('DisplayName') or default_name
            result.games.append(GameRecord(
                id=f"battlenet-{slug}",
                name=name,
                platform=self.platform_name,
                install_path=install_path,
                executable_path=find_executable(install_path, subkey),
                size_bytes=_kib_to_bytes(values.get('EstimatedSize')),
            ))


def _kib_to_bytes(value) -> int:
    try:
        return max(0, int(value)) * 1024
    except (TypeError, ValueError):
        return 0
