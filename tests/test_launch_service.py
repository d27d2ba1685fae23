"""
Tests for LaunchService dispatch and the optimize flow.
"""
import asyncio
import os
import sys
from unittest.mock import AsyncMock, Mock, patch

import pytest

from gamedetect.services import launch_service
from gamedetect.services.launch_service import LaunchService, executable_launcher, native_id, uri_launcher
from gamedetect.stores.base import Platform


@pytest.fixture
def detection_service():
    service = Mock()
    service.set_optimized = AsyncMock()
    return service


@pytest.mark.asyncio
async def test_launch_dispatches_by_platform(make_game):
    steam = AsyncMock(return_value={'success': True})
    epic = AsyncMock(return_value={'success': True})
    service = LaunchService(launchers={Platform.STEAM: steam, Platform.EPIC: epic})

    game = make_game("epic-Fortnite", Platform.EPIC)
    result = await service.launch_game(game)

    assert result == {'success': True}
    epic.assert_awaited_once_with(game)
    steam.assert_not_awaited()


@pytest.mark.asyncio
async def test_launch_unknown_platform_is_an_error_result(make_game):
    game = make_game("itch-1")
    game.platform = "Itch"
    result = await LaunchService().launch_game(game)
    assert result['success'] is False


@pytest.mark.asyncio
async def test_launcher_exception_becomes_error_result(make_game):
    broken = AsyncMock(side_effect=OSError("steam.exe missing"))
    service = LaunchService(launchers={Platform.STEAM: broken})
    result = await service.launch_game(make_game("steam-730"))
    assert result == {'success': False, 'error': "steam.exe missing"}


@pytest.mark.asyncio
async def test_executable_launcher_requires_an_executable(make_game):
    result = await LaunchService().launch_game(make_game("gog-witcher", Platform.GOG))
    assert result['success'] is False
    assert "No executable" in result['error']


@pytest.mark.asyncio
async def test_uri_launcher_builds_platform_uri(make_game):
    with patch("gamedetect.services.launch_service.open_uri", return_value=True) as opened:
        result = await uri_launcher("steam://rungameid/{native_id}", make_game("steam-730"))
    opened.assert_called_once_with("steam://rungameid/730")
    assert result == {'success': True, 'uri': "steam://rungameid/730"}


def test_native_id(make_game):
    assert native_id(make_game("xbox-Microsoft.254428597CFE2", Platform.XBOX)) == "Microsoft.254428597CFE2"
    assert native_id(make_game("gog-the-witcher", Platform.GOG)) == "the-witcher"


@pytest.mark.asyncio
async def test_optimize_marks_game_optimized(make_game, detection_service):
    optimizer = AsyncMock(return_value={'success': True, 'profile': 'performance'})
    service = LaunchService(detection_service, optimizers={Platform.STEAM: optimizer})

    game = make_game("steam-730")
    result = await service.optimize_game(game, 'performance')

    assert result['success'] is True
    optimizer.assert_awaited_once_with(game, 'performance')
    detection_service.set_optimized.assert_awaited_once_with("steam-730", True)


@pytest.mark.asyncio
async def test_failed_optimize_does_not_mark(make_game, detection_service):
    optimizer = AsyncMock(return_value={'success': False, 'error': 'driver too old'})
    service = LaunchService(detection_service, optimizers={Platform.STEAM: optimizer})

    result = await service.optimize_game(make_game("steam-730"))

    assert result['success'] is False
    detection_service.set_optimized.assert_not_awaited()


@pytest.mark.asyncio
async def test_optimize_without_optimizer(make_game, detection_service):
    result = await LaunchService(detection_service).optimize_game(make_game("steam-730"))
    assert result == {'success': False, 'error': 'No optimizer for Steam'}


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as the game")
@pytest.mark.asyncio
async def test_executable_launch_reaps_the_child(tmp_path, make_game):
    exe = tmp_path / "Game" / "game.sh"
    exe.parent.mkdir()
    exe.write_text("#!/bin/sh\nexit 0\n")
    exe.chmod(0o755)
    game = make_game("gog-game", Platform.GOG, executable_path=str(exe))

    result = await executable_launcher(game)

    assert result['success'] is True
    await asyncio.wait_for(asyncio.gather(*launch_service._reapers), 5)
    assert not launch_service._reapers
    with pytest.raises(ChildProcessError):
        os.waitpid(result['pid'], os.WNOHANG)
