"""
LaunchService - Dispatches launch and optimize requests by platform.

Responsibilities:
- Route launch_game to the launcher registered for the game's platform
- Route optimize_game to the optimizer for the platform, then persist the
  optimized flag through the detection service
- Report success/failure as result dicts instead of raising
"""

import asyncio
import logging
import os
import sys
import webbrowser
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ..stores.base import GameRecord, Platform, UnknownPlatformError

logger = logging.getLogger(__name__)

Launcher = Callable[[GameRecord], Awaitable[Dict[str, Any]]]
Optimizer = Callable[[GameRecord, str], Awaitable[Dict[str, Any]]]

# Launcher URI per platform; None means run the executable directly
LAUNCH_URIS = {
    Platform.STEAM: "steam://rungameid/{native_id}",
    Platform.EPIC: "com.epicgames.launcher://apps/{native_id}?action=launch&silent=true",
    Platform.XBOX: "ms-xbox-game://{native_id}",
    Platform.UPLAY: "uplay://launch/{native_id}/0",
    Platform.ORIGIN: None,
    Platform.BATTLENET: None,
    Platform.GOG: None,
}


def native_id(game: GameRecord) -> str:
    """Platform-native identifier ("steam-730" -> "730")."""
    prefix, _, rest = game.id.partition('-')
    return rest or prefix


def open_uri(uri: str) -> bool:
    """Hand a launcher URI to the OS."""
    if sys.platform == 'win32':
        os.startfile(uri)
        return True
    return webbrowser.open(uri)


async def uri_launcher(template: str, game: GameRecord) -> Dict[str, Any]:
    uri = template.format(native_id=native_id(game))
    loop = asyncio.get_running_loop()
    opened = await loop.run_in_executor(None, open_uri, uri)
    if not opened:
        return {'success': False, 'error': f'No handler for {uri}'}
    return {'success': True, 'uri': uri}


# Reaper tasks of launched executables, kept so they are not garbage collected
_reapers: Set[asyncio.Task] = set()


async def _reap(game: GameRecord, process: asyncio.subprocess.Process):
    returncode = await process.wait()
    logger.info(f"[Launch] {game.name} exited with code {returncode}")


async def executable_launcher(game: GameRecord) -> Dict[str, Any]:
    if not game.executable_path or not os.path.isfile(game.executable_path):
        return {'success': False, 'error': f'No executable found for {game.name}'}
    process = await asyncio.create_subprocess_exec(
        game.executable_path,
        cwd=os.path.dirname(game.executable_path),
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
        start_new_session=True,
    )
    reaper = asyncio.ensure_future(_reap(game, process))
    _reapers.add(reaper)
    reaper.add_done_callback(_reapers.discard)
    return {'success': True, 'pid': process.pid}


class LaunchService:
    """Service for launching and optimizing detected games."""

    def __init__(self, detection_service=None,
                 launchers: Optional[Dict[Platform, Launcher]] = None,
                 optimizers: Optional[Dict[Platform, Optimizer]] = None):
        """Initialize LaunchService.

        Args:
            detection_service: DetectionService used to persist the optimized flag
            launchers: Per-platform launch callables (default: URI or executable)
            optimizers: Per-platform optimize callables (none by default)
        """
        self.detection_service = detection_service
        self.launchers: Dict[Platform, Launcher] = self._default_launchers()
        self.launchers.update(launchers or {})
        self.optimizers: Dict[Platform, Optimizer] = dict(optimizers or {})

    @staticmethod
    def _default_launchers() -> Dict[Platform, Launcher]:
        launchers = {}
        for platform, template in LAUNCH_URIS.items():
            if template:
                launchers[platform] = lambda game, t=template: uri_launcher(t, game)
            else:
                launchers[platform] = executable_launcher
        return launchers

    async def launch_game(self, game: GameRecord) -> Dict[str, Any]:
        """Launch a game through its platform's launcher.

        Returns:
            Dict with success status and launcher details or error
        """
        try:
            platform = Platform.parse(game.platform)
        except UnknownPlatformError as e:
            return {'success': False, 'error': str(e)}

        launcher = self.launchers.get(platform)
        if launcher is None:
            return {'success': False, 'error': f'No launcher for {platform.value}'}

        logger.info(f"[Launch] Launching {game.name} ({game.id}) via {platform.value}")
        try:
            result = await launcher(game)
        except Exception as e:
            logger.error(f"[Launch] Failed to launch {game.id}: {e}")
            return {'success': False, 'error': str(e)}

        if not result.get('success'):
            logger.error(f"[Launch] Launch failed for {game.id}: {result.get('error')}")
        return result

    async def optimize_game(self, game: GameRecord, profile: str = 'balanced') -> Dict[str, Any]:
        """Apply an optimization profile to a game and mark it optimized.

        Returns:
            Dict with success status and optimizer details or error
        """
        try:
            platform = Platform.parse(game.platform)
        except UnknownPlatformError as e:
            return {'success': False, 'error': str(e)}

        optimizer = self.optimizers.get(platform)
        if optimizer is None:
            return {'success': False, 'error': f'No optimizer for {platform.value}'}

        logger.info(f"[Optimize] Applying '{profile}' to {game.name} ({game.id})")
        try:
            result = await optimizer(game, profile)
        except Exception as e:
            logger.error(f"[Optimize] Failed for {game.id}: {e}")
            return {'success': False, 'error': str(e)}

        if result.get('success') and self.detection_service:
            await self.detection_service.set_optimized(game.id, True)
        return result
