"""Filesystem helpers shared by the folder-scanning detectors."""

import glob
import logging
import os
import re
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

# Executables that ship next to games but never launch them
SKIP_EXE_PATTERNS = [
    'unins', 'setup', 'install', 'updater', 'crash', 'bugreport', 'report',
    'helper', 'redist', 'vcredist', 'vc_redist', 'dxsetup', 'dotnet',
    'prereq', 'physx', 'directx', 'launcherpatcher',
]

EXE_SEARCH_DEPTH = 2


def slugify(name: str) -> str:
    """Lowercase, dash-separated id fragment ("Apex Legends" -> "apex-legends")."""
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    return slug or 'unknown'


def iter_game_dirs(root: str, exclude: Iterable[str] = ()) -> List[str]:
    """
    List subdirectories of `root` that may be games.

    Hidden directories and names in `exclude` (case-insensitive) are left
    out. A missing root returns []; other OSErrors propagate.
    """
    excluded = {name.lower() for name in exclude}
    try:
        entries = sorted(os.listdir(root), key=str.lower)
    except FileNotFoundError:
        return []
    dirs = []
    for name in entries:
        if name.startswith('.') or name.lower() in excluded:
            continue
        if os.path.isdir(os.path.join(root, name)):
            dirs.append(name)
    return dirs


def _is_skipped_exe(file_name: str) -> bool:
    lowered = file_name.lower()
    return any(skip in lowered for skip in SKIP_EXE_PATTERNS)


def find_executable(install_path: str, preferred: Optional[str] = None,
                    max_depth: int = EXE_SEARCH_DEPTH) -> Optional[str]:
    """
    Find the game executable in an install directory.

    Priority:
        1. `<preferred>.exe` in the install root (usually the folder name)
        2. a non-helper .exe whose name matches `preferred`
        3. the largest non-helper .exe within `max_depth` levels
    """
    if not os.path.isdir(install_path):
        return None

    if preferred:
        direct = os.path.join(install_path, preferred + '.exe')
        if os.path.isfile(direct):
            return direct

    candidates = []
    for depth in range(max_depth + 1):
        pattern = os.path.join(glob.escape(install_path), *(['*'] * depth), '*.exe')
        for exe_path in glob.glob(pattern):
            base = os.path.basename(exe_path)
            if _is_skipped_exe(base):
                continue
            try:
                size = os.path.getsize(exe_path)
            except OSError:
                continue
            candidates.append((exe_path, size, depth))

    if not candidates:
        return None

    if preferred:
        wanted = slugify(preferred)
        for exe_path, _, _ in sorted(candidates, key=lambda c: c[2]):
            if slugify(os.path.splitext(os.path.basename(exe_path))[0]) == wanted:
                return exe_path

    # Largest is most likely the game
    candidates.sort(key=lambda c: c[1], reverse=True)
    return candidates[0][0]


def directory_size(path: str) -> int:
    """Total size of files under `path` in bytes (0 if unreadable)."""
    total = 0
    for root, dirs, files in os.walk(path):
        for f in files:
            try:
                total += os.path.getsize(os.path.join(root, f))
            except OSError:
                pass
    return total
