"""
Ubisoft Connect (Uplay) detector.

The launcher records installs under Launcher\\Installs\\<install id> with an
InstallDir value. Without that key, the launcher's games folder is scanned.
"""
import logging
import os
from typing import Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.files import directory_size, find_executable, iter_game_dirs, slugify
from ..utils.paths import DEFAULT_UPLAY_GAMES_PATH, UPLAY_INSTALLS_KEY
from ..utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)


class UplayDetector(Detector):
    """Ubisoft Connect installs"""

    def __init__(self, registry: Optional[RegistryReader] = None,
                 games_dir: str = DEFAULT_UPLAY_GAMES_PATH):
        self.registry = registry if registry is not None else default_registry()
        self.games_dir = games_dir

    @property
    def platform(self) -> Platform:
        return Platform.UPLAY

    def _scan(self, result: DetectionResult) -> None:
        if self.registry.key_exists(UPLAY_INSTALLS_KEY):
            self._scan_registry(result)
        else:
            self._scan_folder(result)

    def _scan_registry(self, result: DetectionResult) -> None:
        for install_id in self.registry.enumerate(UPLAY_INSTALLS_KEY):
            install_dir = self.registry.get_value(f"{UPLAY_INSTALLS_KEY}\\{install_id}", 'InstallDir')
            if not install_dir:
                logger.warning(f"[Uplay] Install {install_id} has no InstallDir, skipping")
                result.skipped += 1
                continue
            install_path = os.path.normpath(install_dir)
            if not os.path.isdir(install_path):
                logger.debug(f"[Uplay] Install {install_id} folder is gone: {install_path}")
                continue
            name = os.path.basename(install_path.rstrip('\\/'))
            result.games.append(self._record(f"uplay-{install_id}", name, install_path))

    def _scan_folder(self, result: DetectionResult) -> None:
        try:
            folders = iter_game_dirs(self.games_dir)
        except PermissionError as e:
            raise SourceUnreadableError(f"Cannot list {self.games_dir}: access denied") from e
        except NotADirectoryError:
            return
        for folder in folders:
            install_path = os.path.join(self.games_dir, folder)
            result.games.append(self._record(f"uplay-{slugify(folder)}", folder, install_path))

    def _record(self, game_id: str, name: str, install_path: str) -> GameRecord:
        return GameRecord(
            id=game_id,
            name=name,
            platform=self.platform_name,
            install_path=install_path,
            executable_path=find_executable(install_path, name),
            size_bytes=directory_size(install_path),
        )
