"""Detected games cache."""

from .games_cache import GamesCache, DEFAULT_TTL

__all__ = ["GamesCache", "DEFAULT_TTL"]
