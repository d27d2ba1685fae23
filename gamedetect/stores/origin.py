"""
Origin / EA app detector.

Origin has no usable install index, so every folder under the known game
roots counts as a game, except the launcher's own folder.
"""
import logging
import os
from typing import List, Optional

from .base import Detector, DetectionResult, GameRecord, Platform, SourceUnreadableError
from ..utils.files import directory_size, find_executable, iter_game_dirs, slugify
from ..utils.paths import DEFAULT_ORIGIN_PATHS

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = ('Launcher',)


class OriginDetector(Detector):
    """Games in Origin / EA Games library folders"""

    def __init__(self, roots: Optional[List[str]] = None):
        self.roots = list(DEFAULT_ORIGIN_PATHS if roots is None else roots)

    @property
    def platform(self) -> Platform:
        return Platform.ORIGIN

    def _scan(self, result: DetectionResult) -> None:
        seen = set()
        for root in self.roots:
            try:
                folders = iter_game_dirs(root, exclude=EXCLUDED_DIRS)
            except PermissionError as e:
                raise SourceUnreadableError(f"Cannot list {root}: access denied") from e
            except NotADirectoryError:
                continue

            for folder in folders:
                game_id = f"origin-{slugify(folder)}"
                if game_id in seen:
                    continue
                seen.add(game_id)
                install_path = os.path.join(root, folder)
                logger.debug(f"[Origin] Found {folder} in {root}")
                result.games.append(GameRecord(
                    id=game_id,
                    name=folder,
                    platform=self.platform_name,
                    install_path=install_path,
                    executable_path=find_executable(install_path, folder),
                    size_bytes=directory_size(install_path),
                ))
