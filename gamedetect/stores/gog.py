"""
GOG detector.

GOG Galaxy registers each installed game under GOG.com\\Games. Offline
installer games may not be registered, so the usual "GOG Games" folders are
scanned afterwards; a goggame-<id>.info file there gives the real id.
"""
import glob
import logging
import os
from typing import Dict, List, Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.files import directory_size, find_executable, iter_game_dirs, slugify
from ..utils.manifests import ManifestError, read_json_manifest
from ..utils.paths import DEFAULT_GOG_PATHS, GOG_GAMES_KEY
from ..utils.registry import RegistryReader, default_registry

logger = logging.getLogger(__name__)


def _norm(path: str) -> str:
    return os.path.normcase(os.path.normpath(path))


class GOGDetector(Detector):
    """GOG Galaxy registrations plus GOG Games folders"""

    def __init__(self, registry: Optional[RegistryReader] = None,
                 roots: Optional[List[str]] = None):
        self.registry = registry if registry is not None else default_registry()
        self.roots = list(DEFAULT_GOG_PATHS if roots is None else roots)

    @property
    def platform(self) -> Platform:
        return Platform.GOG

    def _scan(self, result: DetectionResult) -> None:
        found_paths = set()
        seen = set()

        def add(game: GameRecord):
            if game.id in seen:
                return
            seen.add(game.id)
            found_paths.add(_norm(game.install_path))
            result.games.append(game)

        for key_name in self.registry.enumerate(GOG_GAMES_KEY):
            game = self._from_registry(key_name, result)
            if game:
                add(game)

        for root in self.roots:
            try:
                folders = iter_game_dirs(root)
            except PermissionError as e:
                raise SourceUnreadableError(f"Cannot list {root}: access denied") from e
            except NotADirectoryError:
                continue
            for folder in folders:
                install_path = os.path.join(root, folder)
                if _norm(install_path) in found_paths:
                    continue
                add(self._from_folder(install_path, folder))

    def _from_registry(self, key_name: str, result: DetectionResult) -> Optional[GameRecord]:
        values = self.registry.get_values(f"{GOG_GAMES_KEY}\\{key_name}")
        install_path = values.get('path')
        name = values.get('gameName')
        if not install_path or not name:
            logger.warning(f"[GOG] Registry entry {key_name} lacks path/gameName, skipping")
            result.skipped += 1
            return None
        if not os.path.isdir(install_path):
            logger.debug(f"[GOG] {name} registered at missing folder {install_path}")
            return None

        game_id = values.get('gameID') or key_name
        exe = values.get('exe')
        if not (exe and os.path.isfile(exe)):
            exe = find_executable(install_path, name)
        return GameRecord(
            id=f"gog-{game_id}",
            name=name,
            platform=self.platform_name,
            install_path=install_path,
            executable_path=exe,
            size_bytes=directory_size(install_path),
        )

    def _from_folder(self, install_path: str, folder: str) -> GameRecord:
        info = self._read_info(install_path)
        game_id = str(info.get('gameId') or '') or slugify(folder)
        name = info.get('name') or folder
        return GameRecord(
            id=f"gog-{game_id}",
            name=name,
            platform=self.platform_name,
            install_path=install_path,
            executable_path=find_executable(install_path, folder),
            size_bytes=directory_size(install_path),
        )

    @staticmethod
    def _read_info(install_path: str) -> Dict:
        """goggame-<id>.info in the game root, or {}"""
        pattern = os.path.join(glob.escape(install_path), 'goggame-*.info')
        for info_path in sorted(glob.glob(pattern)):
            try:
                return read_json_manifest(info_path)
            except (OSError, ManifestError) as e:
                logger.debug(f"[GOG] Ignoring {info_path}: {e}")
        return {}
