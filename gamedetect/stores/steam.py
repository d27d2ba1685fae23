"""
Steam detector.

Finds the Steam install through the registry (or well-known folders), reads
libraryfolders.vdf for additional library roots and parses every
appmanifest_*.acf in each library's steamapps folder.
"""
import glob
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.files import find_executable
from ..utils.kv import KVParseError, kv_get, kv_root, library_paths, load_kv_file
from ..utils.paths import DEFAULT_STEAM_PATHS, STEAM_ICON_URL, STEAM_MACHINE_KEY, STEAM_USER_KEY
from ..utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.normpath(a)) == os.path.normcase(os.path.normpath(b))


class SteamDetector(Detector):
    """Installed Steam apps from local app manifests"""

    def __init__(self, registry: Optional[RegistryReader] = None,
                 fallback_roots: Optional[List[str]] = None):
        self.registry = registry if registry is not None else default_registry()
        self.fallback_roots = list(DEFAULT_STEAM_PATHS if fallback_roots is None else fallback_roots)

    @property
    def platform(self) -> Platform:
        return Platform.STEAM

    def find_install_path(self) -> Optional[str]:
        """Steam root from the registry, else the first fallback root that exists."""
        candidates = [
            self.registry.get_value(STEAM_USER_KEY, 'SteamPath'),
            self.registry.get_value(STEAM_MACHINE_KEY, 'InstallPath'),
        ]
        candidates.extend(self.fallback_roots)
        for path in candidates:
            if path and os.path.isdir(path):
                return os.path.normpath(path)
        return None

    def library_roots(self, steam_path: str, result: DetectionResult) -> List[str]:
        """Primary root followed by every extra library listed in libraryfolders.vdf."""
        roots = [steam_path]
        for vdf_path in (os.path.join(steam_path, 'steamapps', 'libraryfolders.vdf'),
                         os.path.join(steam_path, 'config', 'libraryfolders.vdf')):
            try:
                data = load_kv_file(vdf_path)
            except FileNotFoundError:
                continue
            except (OSError, KVParseError) as e:
                logger.warning(f"[Steam] Could not read {vdf_path}: {e}")
                result.skipped += 1
                continue
            for path in library_paths(data):
                if not any(_same_path(path, root) for root in roots):
                    roots.append(path)
            break
        return roots

    def _scan(self, result: DetectionResult) -> None:
        steam_path = self.find_install_path()
        if not steam_path:
            logger.info("[Steam] Steam not installed")
            return

        primary_apps = os.path.join(steam_path, 'steamapps')
        if os.path.isdir(primary_apps) and not os.access(primary_apps, os.R_OK | os.X_OK):
            raise SourceUnreadableError(f"Cannot read {primary_apps}")

        seen = set()
        for root in self.library_roots(steam_path, result):
            steamapps = os.path.join(root, 'steamapps')
            if not os.path.isdir(steamapps):
                logger.debug(f"[Steam] Library {root} has no steamapps folder, skipping")
                continue
            manifests = sorted(glob.glob(os.path.join(glob.escape(steamapps), 'appmanifest_*.acf')))
            logger.debug(f"[Steam] {len(manifests)} manifests in {steamapps}")
            for manifest_path in manifests:
                game = self._read_manifest(manifest_path, steamapps, result)
                if game and game.id not in seen:
                    seen.add(game.id)
                    result.games.append(game)

    def _read_manifest(self, manifest_path: str, steamapps: str,
                       result: DetectionResult) -> Optional[GameRecord]:
        try:
            state = kv_root(load_kv_file(manifest_path), 'AppState')
        except (OSError, KVParseError) as e:
            logger.warning(f"[Steam] Skipping unreadable manifest {manifest_path}: {e}")
            result.skipped += 1
            return None

        app_id = kv_get(state, 'appid')
        name = kv_get(state, 'name')
        install_dir = kv_get(state, 'installdir')
        if not all(value and isinstance(value, str) for value in (app_id, name, install_dir)):
            logger.warning(f"[Steam] Skipping manifest without appid/name/installdir: {manifest_path}")
            result.skipped += 1
            return None

        install_path = os.path.join(steamapps, 'common', install_dir)
        return GameRecord(
            id=f"steam-{app_id}",
            name=name,
            platform=self.platform_name,
            install_path=install_path,
            executable_path=find_executable(install_path, install_dir),
            size_bytes=_to_int(kv_get(state, 'SizeOnDisk')),
            icon_url=STEAM_ICON_URL.format(app_id=app_id),
            last_played=_to_datetime(kv_get(state, 'LastPlayed')),
        )


def _to_int(value) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _to_datetime(value) -> Optional[datetime]:
    seconds = _to_int(value)
    if not seconds:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
