from __future__ import annotations

import asyncio
from pathlib import Path
import sys
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from gamedetect.stores.base import Detector, DetectionResult, GameRecord, Platform  # noqa: E402


class FakeDetector(Detector):
    """Detector returning canned results, for orchestrator tests."""

    def __init__(self, platform: Platform, games: Optional[List[GameRecord]] = None,
                 delay: float = 0, error: Optional[str] = None,
                 raises: Optional[Exception] = None, hang: bool = False):
        self._platform = platform
        self.games = list(games or [])
        self.delay = delay
        self.error = error
        self.raises = raises
        self.hang = hang
        self.calls = 0

    @property
    def platform(self) -> Platform:
        return self._platform

    async def detect(self, options=None) -> DetectionResult:
        self.calls += 1
        if self.raises is not None:
            raise self.raises
        if self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        return DetectionResult(platform=self.platform_name, games=list(self.games), error=self.error)

    def _scan(self, result):
        pass


def game(game_id: str, platform: Platform = Platform.STEAM, name: Optional[str] = None, **kwargs) -> GameRecord:
    return GameRecord(
        id=game_id,
        name=name or game_id,
        platform=platform.value,
        install_path=f"/games/{game_id}",
        **kwargs,
    )


@pytest.fixture
def make_game():
    return game


@pytest.fixture
def make_detector():
    return FakeDetector


@pytest.fixture
def write_file():
    """Write text to a path, creating parent folders."""
    def _write(path: Path, text: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


def acf(app_id: str, name: str, install_dir: str, size: Optional[int] = None, last_played: Optional[int] = None) -> str:
    lines = [
        '"AppState"',
        '{',
        f'\t"appid"\t\t"{app_id}"',
        '\t"Universe"\t\t"1"',
        f'\t"name"\t\t"{name}"',
        '\t"StateFlags"\t\t"4"',
        f'\t"installdir"\t\t"{install_dir}"',
    ]
    if size is not None:
        lines.append(f'\t"SizeOnDisk"\t\t"{size}"')
    if last_played is not None:
        lines.append(f'\t"LastPlayed"\t\t"{last_played}"')
    lines += [
        '\t"UserConfig"',
        '\t{',
        '\t\t"language"\t\t"english"',
        '\t}',
        '}',
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def steam_root(tmp_path, write_file):
    """Steam install with Counter-Strike 2 (730) and Team Fortress 2 (440)."""
    root = tmp_path / "Steam"
    steamapps = root / "steamapps"
    write_file(steamapps / "appmanifest_730.acf", acf("730", "Counter-Strike 2", "Counter-Strike Global Offensive",
                                                      size=34359738368, last_played=1716742800))
    write_file(steamapps / "appmanifest_440.acf", acf("440", "Team Fortress 2", "Team Fortress 2", size=26843545600))
    write_file(steamapps / "common" / "Counter-Strike Global Offensive" / "game" / "cs2.exe", "x")
    write_file(steamapps / "common" / "Team Fortress 2" / "tf_win64.exe", "xx")
    return root


@pytest.fixture
def make_acf():
    return acf
