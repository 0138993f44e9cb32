"""Data acquisition: stats sources, the player-stats cache and the fetch gateway."""

from .cache import CacheEntry, PlayerStatsCache, register_shutdown_flush
from .gateway import FetchGateway, FetchResult, is_transient_error
from .sources import FixtureStatsSource, HttpStatsSource, StatsSource

__all__ = [
    "CacheEntry",
    "FetchGateway",
    "FetchResult",
    "FixtureStatsSource",
    "HttpStatsSource",
    "PlayerStatsCache",
    "StatsSource",
    "is_transient_error",
    "register_shutdown_flush",
]
