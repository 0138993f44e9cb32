"""Tests for the HTTP and fixture stats sources."""

import pytest
import requests

from conftest import FIXTURE_FILE
from match_forecaster.config import ApiConfig
from match_forecaster.data.gateway import is_transient_error
from match_forecaster.data.sources.fixture_source import FixtureStatsSource
from match_forecaster.data.sources.http_source import HttpStatsSource
from match_forecaster.errors import DataValidationError, PermanentSourceError, SourceError, TransientSourceError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text_only=False):
        self.status_code = status_code
        self._payload = payload
        self._text_only = text_only

    def json(self):
        if self._text_only:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def http_source(**kwargs):
    session = FakeSession(**kwargs)
    return HttpStatsSource("https://stats.test/api/", timeout=7, h2h_result_count=10, session=session), session


class TestHttpStatsSource:
    def test_roster_request(self):
        payload = {"id": 9565, "name": "Vitality", "rank": 1, "players": [{"id": 11893, "name": "ZywOo"}]}
        source, session = http_source(response=FakeResponse(payload=payload))

        roster = source.get_roster("Vitality")

        assert roster.name == "Vitality"
        assert roster.players[0].id == 11893
        assert session.requests == [("https://stats.test/api/teams", {"name": "Vitality"}, 7)]
        assert session.headers["Accept"] == "application/json"

    def test_invalid_roster_raises_validation_error(self):
        source, _ = http_source(response=FakeResponse(payload={"id": 1, "name": ""}))
        with pytest.raises(DataValidationError):
            source.get_roster("Nameless")

    def test_not_found_returns_none(self):
        source, _ = http_source(response=FakeResponse(status_code=404))
        assert source.get_player_stats(1) is None
        assert source.get_roster("Nobody") is None

    def test_player_stats(self):
        source, session = http_source(response=FakeResponse(payload={"rating": 1.2, "kpr": 0.8}))

        stats = source.get_player_stats(7998)

        assert stats.rating == 1.2
        assert session.requests[0][0] == "https://stats.test/api/players/7998/stats"

    def test_player_stats_with_bad_rating(self):
        source, _ = http_source(response=FakeResponse(payload={"rating": "n/a"}))
        with pytest.raises(DataValidationError):
            source.get_player_stats(1)

    def test_head_to_head_counts_results(self):
        payload = {"results": [
            {"winner_id": 1, "date": "2026-10-01T00:00:00Z", "map": "Nuke"},
            {"winner_id": 2, "date": "2026-09-01T00:00:00Z", "map": "Mirage"},
            {"winner_id": 1},
        ]}
        source, session = http_source(response=FakeResponse(payload=payload))

        record = source.get_head_to_head(1, 2)

        assert (record.team1_wins, record.team2_wins, record.total_matches) == (2, 1, 3)
        assert record.count_on_map("nuke") == 1
        assert session.requests[0][1] == {"team1": 1, "team2": 2, "count": 10}

    def test_head_to_head_bad_format_is_empty(self):
        source, _ = http_source(response=FakeResponse(payload={"results": "nope"}))
        assert source.get_head_to_head(1, 2).total_matches == 0

    def test_daily_matches(self):
        payload = [{"id": 1, "team1Name": "A", "team2Name": "B"}, {"team1Name": "no id"}]
        source, _ = http_source(response=FakeResponse(payload=payload))

        matches = source.get_daily_matches()

        assert [m.id for m in matches] == [1]

    def test_match_result_without_winner_is_none(self):
        source, _ = http_source(response=FakeResponse(payload={"id": 5, "winner_id": None}))
        assert source.get_match_result(5) is None

    def test_timeout_is_transient(self):
        source, _ = http_source(error=requests.Timeout("read timed out"))
        with pytest.raises(TransientSourceError) as excinfo:
            source.get_player_stats(1)
        assert excinfo.value.code == "ETIMEDOUT"

    def test_connection_error_is_transient(self):
        source, _ = http_source(error=requests.ConnectionError("refused"))
        with pytest.raises(TransientSourceError) as excinfo:
            source.get_player_stats(1)
        assert excinfo.value.code == "ECONNREFUSED"

    @pytest.mark.parametrize("status", [400, 401, 403, 422])
    def test_client_errors_are_permanent(self, status):
        source, _ = http_source(response=FakeResponse(status_code=status))
        with pytest.raises(PermanentSourceError) as excinfo:
            source.get_player_stats(1)
        assert excinfo.value.status == status

    @pytest.mark.parametrize("status, transient", [(429, True), (503, True), (500, False), (502, False)])
    def test_other_statuses_are_classified_by_config(self, status, transient):
        source, _ = http_source(response=FakeResponse(status_code=status))
        with pytest.raises(SourceError) as excinfo:
            source.get_player_stats(1)
        assert is_transient_error(excinfo.value, ApiConfig()) is transient

    def test_non_json_body(self):
        source, _ = http_source(response=FakeResponse(text_only=True))
        with pytest.raises(DataValidationError):
            source.get_daily_matches()


class TestFixtureStatsSource:
    @pytest.fixture
    def source(self):
        return FixtureStatsSource.from_json(str(FIXTURE_FILE))

    def test_roster_and_stats(self, source):
        roster = source.get_roster("Vitality")
        assert roster.rank == 1
        assert len(roster.players) == 5
        assert source.get_player_stats(11893).rating == 1.31
        assert source.get_player_stats(9216) is None

    def test_head_to_head_is_symmetric(self, source):
        forward = source.get_head_to_head(9565, 5995)
        reverse = source.get_head_to_head(5995, 9565)
        assert (forward.team1_wins, forward.team2_wins) == (3, 2)
        assert (reverse.team1_wins, reverse.team2_wins) == (2, 3)

    def test_unknown_pair_is_empty(self, source):
        assert source.get_head_to_head(1, 2).total_matches == 0

    def test_matches_and_results(self, source):
        assert [m.id for m in source.get_daily_matches()] == [2376001, 2376002, 2376003]
        assert source.get_match_result(2376001).winner_id == 9565
        assert source.get_match_result(2376002) is None
