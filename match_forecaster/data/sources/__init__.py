"""Stats source implementations."""

from .base import StatsSource
from .fixture_source import FixtureStatsSource
from .http_source import HttpStatsSource

__all__ = ["FixtureStatsSource", "HttpStatsSource", "StatsSource"]
