"""Shared test helpers: stub sources, a recording sleep and gateway factories."""

import json
from pathlib import Path

import pytest

from match_forecaster.config import ApiConfig
from match_forecaster.data.cache import PlayerStatsCache
from match_forecaster.data.gateway import FetchGateway
from match_forecaster.data.sources.base import StatsSource
from match_forecaster.data.sources.fixture_source import FixtureStatsSource
from match_forecaster.models.team import HeadToHeadRecord

FIXTURE_FILE = Path(__file__).parent / "fixtures" / "sample_day.json"


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class Responses:
    """Successive responses for one stub call; the last one repeats."""

    def __init__(self, *items):
        self.items = list(items)

    def next(self):
        return self.items.pop(0) if len(self.items) > 1 else self.items[0]


class StubSource(StatsSource):
    """
    Scripted stats source.

    A response may be a value, an exception instance (raised), or a
    Responses sequence consumed one per call.
    """

    def __init__(self, rosters=None, stats=None, h2h=None, matches=None, results=None):
        self.rosters = rosters or {}
        self.stats = stats or {}
        self.h2h = h2h
        self.matches = matches if matches is not None else []
        self.results = results or {}
        self.calls = []

    @staticmethod
    def _respond(value):
        if isinstance(value, Responses):
            value = value.next()
        if isinstance(value, BaseException):
            raise value
        return value

    def get_roster(self, team_name):
        self.calls.append(("get_roster", team_name))
        return self._respond(self.rosters.get(team_name))

    def get_player_stats(self, player_id):
        self.calls.append(("get_player_stats", player_id))
        return self._respond(self.stats.get(player_id))

    def get_head_to_head(self, team1_id, team2_id):
        self.calls.append(("get_head_to_head", team1_id, team2_id))
        if self.h2h is None:
            return HeadToHeadRecord.empty()
        return self._respond(self.h2h)

    def get_daily_matches(self):
        self.calls.append(("get_daily_matches",))
        return self._respond(self.matches)

    def get_match_result(self, match_id):
        self.calls.append(("get_match_result", match_id))
        return self._respond(self.results.get(match_id))

    def call_count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


def fast_api_config(**overrides) -> ApiConfig:
    """API settings with no waiting, for tests that do not inspect delays."""
    values = {"delay_between_calls_s": 0, "retry_delay_s": 0}
    values.update(overrides)
    return ApiConfig(**values)


def memory_cache() -> PlayerStatsCache:
    return PlayerStatsCache("unused.json", enabled=False)


def make_gateway(source, config=None, sleep=None, cache=None) -> FetchGateway:
    return FetchGateway(
        source,
        cache if cache is not None else memory_cache(),
        config or fast_api_config(),
        sleep=sleep or RecordingSleep(),
    )


@pytest.fixture
def fixture_data():
    with open(FIXTURE_FILE, "r") as f:
        return json.load(f)


@pytest.fixture
def fixture_gateway(fixture_data):
    return make_gateway(FixtureStatsSource(fixture_data))

