"""
Tests for settings loading, engine wiring and the command line.
"""
import asyncio
import json

import pytest

from gamedetect import __main__ as cli
from gamedetect.engine import build_detectors, build_engine
from gamedetect.settings import ScanSettings, load_settings, save_settings
from gamedetect.stores.base import PLATFORM_ORDER, Platform
from gamedetect.stores.manager import DetectorRegistry
from gamedetect.utils.registry import DictRegistry


def test_defaults():
    settings = ScanSettings()
    assert settings.detector_timeout == 30.0
    assert settings.cache_ttl == 3600
    assert settings.summary_limit == 10
    assert settings.summary_debounce == 0.5


def test_from_dict_rejects_bad_values():
    settings = ScanSettings.from_dict({
        "detector_timeout": "10",
        "cache_ttl": -5,
        "verify_icons": "yes",
        "extra_steam_roots": ["D:\\SteamLibrary"],
        "unknown": 1,
    })
    assert settings.detector_timeout == 10.0
    assert settings.cache_ttl == 3600
    assert settings.verify_icons is False
    assert settings.extra_steam_roots == ["D:\\SteamLibrary"]


def test_save_and_load(tmp_path):
    path = str(tmp_path / "conf" / "settings.json")
    assert save_settings(ScanSettings(summary_limit=5), path)
    assert load_settings(path).summary_limit == 5


def test_load_missing_or_corrupt(tmp_path):
    assert load_settings(str(tmp_path / "none.json")) == ScanSettings()
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]")
    assert load_settings(str(bad)) == ScanSettings()


def test_build_detectors_covers_every_platform():
    detectors = build_detectors(DictRegistry(), ScanSettings())
    assert detectors.platforms == list(PLATFORM_ORDER)
    assert detectors.missing_platforms() == []


@pytest.mark.asyncio
async def test_engine_publishes_summary(tmp_path, make_detector, make_game):
    summaries = []
    detectors = DetectorRegistry([make_detector(Platform.STEAM, [make_game("steam-730")])])
    engine = build_engine(
        settings=ScanSettings(summary_debounce=10),
        detectors=detectors,
        cache_path=str(tmp_path / "games_cache.json"),
        summary_callback=summaries.append,
    )

    await engine.detection_service.scan_all_platforms(force_refresh=True)
    await engine.summary_sink.flush()
    await engine.close()

    assert summaries == [[{"id": "steam-730", "name": "steam-730", "platform": "Steam", "icon": None}]]
    assert engine.icon_service is None


def test_parser():
    args = cli.build_parser().parse_args(["scan", "--platform", "Epic", "--timeout", "5", "--json"])
    assert args.command == "scan"
    assert args.platform == "Epic"
    assert args.timeout == 5.0
    assert args.json and not args.force


@pytest.fixture
def fake_engine(monkeypatch, tmp_path, make_detector, make_game):
    detectors = DetectorRegistry([
        make_detector(Platform.STEAM, [make_game("steam-730", name="Counter-Strike 2", size_bytes=32 * 1024 ** 3)]),
        make_detector(Platform.EPIC, error="Cannot read LauncherInstalled.dat"),
    ])

    def factory():
        return build_engine(settings=ScanSettings(), detectors=detectors,
                            cache_path=str(tmp_path / "games_cache.json"))

    monkeypatch.setattr(cli, "build_engine", factory)
    return detectors


def test_cli_scan_json(fake_engine, capsys):
    assert cli.main(["scan", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert [g["id"] for g in report["games"]] == ["steam-730"]
    assert report["warnings"] == ["Epic failed: Cannot read LauncherInstalled.dat"]


def test_cli_scan_then_list(fake_engine, capsys):
    cli.main(["scan"])
    out = capsys.readouterr().out
    assert "Counter-Strike 2" in out
    assert "1 of 2 platforms scanned" in out

    assert cli.main(["list"]) == 0
    assert "Counter-Strike 2" in capsys.readouterr().out


def test_cli_unknown_platform(fake_engine, capsys):
    assert cli.main(["scan", "--platform", "Itch"]) == 2
    assert "Itch" in capsys.readouterr().err


def test_cli_clear(fake_engine, capsys):
    cli.main(["scan"])
    assert cli.main(["clear"]) == 0
    capsys.readouterr()
    cli.main(["list"])
    assert "No games found" in capsys.readouterr().out


def test_engine_built_outside_event_loop(tmp_path, make_detector, make_game):
    steam = make_detector(Platform.STEAM, [make_game("steam-730")], delay=0.02)
    engine = build_engine(settings=ScanSettings(), detectors=DetectorRegistry([steam]),
                          cache_path=str(tmp_path / "games_cache.json"))
    service = engine.detection_service

    async def contend():
        await asyncio.gather(service.scan_all_platforms(force_refresh=True), service.scan_platform("Steam"))
        await engine.close()

    asyncio.run(contend())

    assert steam.calls == 2
    assert [g.id for g in service.get_cached_games()] == ["steam-730"]
