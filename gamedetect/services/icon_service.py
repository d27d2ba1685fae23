"""Icon URL verification against the CDN.

Detectors build icon URLs from templates without touching the network. This
optional pass HEAD-checks them and drops the ones the CDN reports missing.
Network trouble leaves icons as they are.
"""
import asyncio
import logging
import ssl
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import aiohttp
import certifi

from ..stores.base import GameRecord

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8
DEFAULT_TIMEOUT = 5.0  # seconds per request

# Statuses that mean the image is really gone
MISSING_STATUSES = (404, 410)


class IconService:
    """HEAD-checks icon URLs with a shared aiohttp session"""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 concurrency: int = DEFAULT_CONCURRENCY, timeout: float = DEFAULT_TIMEOUT):
        self._session = session
        self._owns_session = session is None
        self.concurrency = concurrency
        self.timeout = timeout
        self._results: Dict[str, Optional[bool]] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session with certifi's CA bundle."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=self.concurrency)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the HTTP session if this service created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def check_url(self, url: str) -> Optional[bool]:
        """
        Returns:
            True if the CDN serves the URL, False if it reports it missing,
            None if it could not be determined.
        """
        if url in self._results:
            return self._results[url]
        session = await self._get_session()
        try:
            async with session.head(
                url,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if resp.status in MISSING_STATUSES:
                    found = False
                elif resp.status < 400:
                    found = True
                else:
                    found = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"[Icons] Could not check {url}: {e}")
            return None
        self._results[url] = found
        return found

    async def verify_icons(self, games: Sequence[GameRecord]) -> List[GameRecord]:
        """Return the games with icons the CDN does not serve cleared."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def verify(game: GameRecord) -> GameRecord:
            if not game.icon_url:
                return game
            async with semaphore:
                found = await self.check_url(game.icon_url)
            if found is False:
                logger.debug(f"[Icons] No icon on CDN for {game.id}")
                return replace(game, icon_url=None)
            return game

        checked = await asyncio.gather(*(verify(game) for game in games))
        cleared = sum(1 for before, after in zip(games, checked) if before.icon_url != after.icon_url)
        logger.info(f"[Icons] Verified icons for {len(games)} games, cleared {cleared}")
        return list(checked)
