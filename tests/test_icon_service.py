"""
Tests for IconService against a fake aiohttp session.
"""
import asyncio
from unittest.mock import MagicMock

import aiohttp
import pytest

from gamedetect.services.icon_service import IconService


class FakeResponse:
    def __init__(self, status):
        self.status = status

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def fake_session(statuses):
    """Session whose HEAD answers from a url -> status (or exception) map."""
    session = MagicMock()
    session.closed = False

    def head(url, **kwargs):
        outcome = statuses[url]
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResponse(outcome)

    session.head = MagicMock(side_effect=head)
    return session


@pytest.mark.asyncio
async def test_check_url_statuses():
    session = fake_session({
        "http://cdn/ok.jpg": 200,
        "http://cdn/gone.jpg": 404,
        "http://cdn/removed.jpg": 410,
        "http://cdn/busy.jpg": 503,
        "http://cdn/down.jpg": aiohttp.ClientConnectionError("refused"),
        "http://cdn/slow.jpg": asyncio.TimeoutError(),
    })
    icons = IconService(session=session)

    assert await icons.check_url("http://cdn/ok.jpg") is True
    assert await icons.check_url("http://cdn/gone.jpg") is False
    assert await icons.check_url("http://cdn/removed.jpg") is False
    assert await icons.check_url("http://cdn/busy.jpg") is None
    assert await icons.check_url("http://cdn/down.jpg") is None
    assert await icons.check_url("http://cdn/slow.jpg") is None


@pytest.mark.asyncio
async def test_results_are_cached():
    session = fake_session({"http://cdn/ok.jpg": 200})
    icons = IconService(session=session)
    await icons.check_url("http://cdn/ok.jpg")
    await icons.check_url("http://cdn/ok.jpg")
    assert session.head.call_count == 1


@pytest.mark.asyncio
async def test_verify_icons_clears_only_missing(make_game):
    session = fake_session({
        "http://cdn/730.jpg": 200,
        "http://cdn/440.jpg": 404,
        "http://cdn/570.jpg": aiohttp.ClientConnectionError("refused"),
    })
    games = [
        make_game("steam-730", icon_url="http://cdn/730.jpg"),
        make_game("steam-440", icon_url="http://cdn/440.jpg"),
        make_game("steam-570", icon_url="http://cdn/570.jpg"),
        make_game("steam-10"),
    ]

    checked = await IconService(session=session).verify_icons(games)

    assert [g.icon_url for g in checked] == ["http://cdn/730.jpg", None, "http://cdn/570.jpg", None]
    assert games[1].icon_url == "http://cdn/440.jpg"


@pytest.mark.asyncio
async def test_close_leaves_injected_session_open():
    session = fake_session({})
    icons = IconService(session=session)
    await icons.close()
    session.close.assert_not_called()
