"""
Xbox / Microsoft Store detector.

Gaming Services must be registered (its GameInstallPath value is only used as
an installed gate). Each package folder in WindowsApps is read through its
AppxManifest.xml; runtime and framework packages are filtered out.
"""
import logging
import os
from typing import Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.appx import MANIFEST_NAME, package_id_segment, parse_appx_manifest
from ..utils.files import directory_size, iter_game_dirs
from ..utils.paths import XBOX_GAMING_SERVICES_KEY, XBOX_PACKAGES_DIR
from ..utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)


class XboxDetector(Detector):
    """Installed Microsoft Store / Game Pass packages"""

    def __init__(self, registry: Optional[RegistryReader] = None,
                 packages_dir: str = XBOX_PACKAGES_DIR):
        self.registry = registry if registry is not None else default_registry()
        self.packages_dir = packages_dir

    @property
    def platform(self) -> Platform:
        return Platform.XBOX

    def _scan(self, result: DetectionResult) -> None:
        if not self.registry.get_value(XBOX_GAMING_SERVICES_KEY, 'GameInstallPath'):
            logger.info("[Xbox] Gaming Services not installed")
            return

        try:
            packages = iter_game_dirs(self.packages_dir)
        except PermissionError as e:
            raise SourceUnreadableError(f"Cannot list {self.packages_dir}: access denied") from e

        seen = set()
        for dir_name in packages:
            package_path = os.path.join(self.packages_dir, dir_name)
            game = self._read_package(package_path, dir_name, result)
            if game is None or game.id in seen:
                continue
            seen.add(game.id)
            result.games.append(game)

    def _read_package(self, package_path: str, dir_name: str,
                      result: DetectionResult) -> Optional[GameRecord]:
        manifest_path = os.path.join(package_path, MANIFEST_NAME)
        try:
            with open(manifest_path, 'r', encoding='utf-8', errors='ignore') as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"[Xbox] Skipping {dir_name}: {e}")
            result.skipped += 1
            return None

        info = parse_appx_manifest(text)
        if info is None:
            return None

        executable_path = None
        if info.executable:
            candidate = os.path.join(package_path, *info.executable.replace('\\', '/').split('/'))
            if os.path.isfile(candidate):
                executable_path = candidate

        logger.debug(f"[Xbox] Found {info.display_name} ({dir_name})")
        return GameRecord(
            id=f"xbox-{package_id_segment(dir_name)}",
            name=info.display_name,
            platform=self.platform_name,
            install_path=package_path,
            executable_path=executable_path,
            size_bytes=directory_size(package_path),
        )
