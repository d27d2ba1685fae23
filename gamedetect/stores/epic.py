"""
Epic Games detector.

LauncherInstalled.dat lists every installation; per-game .item manifests in
the launcher's Manifests folder add the display name and launch executable.
Sizes come from the install directory because the manifests don't report
them reliably.
"""
import glob
import logging
import os
from typing import Any, Dict, Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.files import directory_size, find_executable
from ..utils.manifests import ManifestError, read_json_manifest, require_fields, valid_entries
from ..utils.paths import EPIC_LAUNCHER_INSTALLED, EPIC_MANIFESTS_DIR

logger = logging.getLogger(__name__)

# Optional .item fields that must be text when present
ITEM_TEXT_FIELDS = ('DisplayName', 'LaunchExecutable', 'MainGameAppName')


class EpicDetector(Detector):
    """Installed Epic Games Launcher titles"""

    def __init__(self, launcher_installed_path: str = EPIC_LAUNCHER_INSTALLED,
                 manifests_dir: str = EPIC_MANIFESTS_DIR):
        self.launcher_installed_path = launcher_installed_path
        self.manifests_dir = manifests_dir

    @property
    def platform(self) -> Platform:
        return Platform.EPIC

    def _scan(self, result: DetectionResult) -> None:
        try:
            installed = read_json_manifest(self.launcher_installed_path)
        except (FileNotFoundError, NotADirectoryError):
            logger.info("[Epic] Epic Games Launcher not installed")
            return
        except (OSError, ManifestError) as e:
            raise SourceUnreadableError(f"Cannot read {self.launcher_installed_path}: {e}") from e

        entries, skipped = valid_entries(installed.get('InstallationList'),
                                         ('AppName', 'InstallLocation'),
                                         source=self.launcher_installed_path)
        result.skipped += skipped
        items = self._load_items(result)

        for entry in entries:
            app_name = entry['AppName']
            item = items.get(app_name, {})
            if item.get('bIsIncompleteInstall'):
                logger.debug(f"[Epic] Skipping incomplete install {app_name}")
                continue
            main_game = item.get('MainGameAppName')
            if main_game and main_game != app_name:
                logger.debug(f"[Epic] Skipping add-on {app_name} of {main_game}")
                continue

            install_path = entry['InstallLocation']
            if not os.path.isdir(install_path):
                logger.debug(f"[Epic] Install folder for {app_name} is gone: {install_path}")
                continue

            result.games.append(GameRecord(
                id=f"epic-{app_name}",
                name=item.get('DisplayName') or app_name,
                platform=self.platform_name,
                install_path=install_path,
                executable_path=self._executable(install_path, item),
                size_bytes=directory_size(install_path),
            ))

    def _load_items(self, result: DetectionResult) -> Dict[str, Dict[str, Any]]:
        """Per-game .item manifests keyed by AppName. Malformed ones are skipped."""
        items = {}
        pattern = os.path.join(glob.escape(self.manifests_dir), '*.item')
        for item_path in sorted(glob.glob(pattern)):
            try:
                item = require_fields(read_json_manifest(item_path), ('AppName',), ITEM_TEXT_FIELDS)
            except (OSError, ManifestError) as e:
                logger.warning(f"[Epic] Skipping manifest {item_path}: {e}")
                result.skipped += 1
                continue
            items[item['AppName']] = item
        return items

    @staticmethod
    def _executable(install_path: str, item: Dict[str, Any]) -> Optional[str]:
        launch = item.get('LaunchExecutable')
        if launch:
            path = os.path.join(install_path, *launch.replace('\\', '/').split('/'))
            if os.path.isfile(path):
                return path
        return find_executable(install_path, os.path.basename(install_path.rstrip('\\/')))
