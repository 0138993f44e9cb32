"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone

import pytest

from match_forecaster.models import (
    H2HMatch,
    HeadToHeadRecord,
    PlayerRef,
    PlayerStat,
    ScheduledMatch,
    TeamRoster,
    TeamStrengthSummary,
)
from match_forecaster.models.team import parse_timestamp


class TestPlayerStat:
    def test_from_dict_accepts_source_spellings(self):
        stats = PlayerStat.from_dict({
            "rating": 1.12,
            "killsPerRound": "0.72",
            "headshots": 56,
            "roundsContributed": 72.4,
            "maps": 87,
            "dpr": 0.64,
        })

        assert stats.rating == 1.12
        assert stats.kills_per_round == 0.72
        assert stats.headshot_percent == 56
        assert stats.round_contribution == 72.4
        assert stats.maps_played == 87
        assert stats.deaths_per_round == 0.64

    @pytest.mark.parametrize("rating", [None, "n/a", float("nan"), float("inf"), True])
    def test_invalid_rating_is_dropped(self, rating):
        stats = PlayerStat.from_dict({"rating": rating, "kpr": 0.7})
        assert stats.rating is None
        assert not stats.has_valid_rating()
        assert stats.kills_per_round == 0.7

    def test_round_trip_dict(self):
        stats = PlayerStat(kills_per_round=0.8, rating=1.1)
        assert PlayerStat.from_dict(stats.to_dict()) == stats


class TestTeamModels:
    def test_roster_from_dict(self):
        roster = TeamRoster.from_dict({
            "id": 9565,
            "name": "Vitality",
            "rank": 1,
            "players": [{"id": 11893, "name": "ZywOo"}],
        })
        assert roster.players == [PlayerRef(11893, "ZywOo")]
        assert roster.has_valid_rank

    @pytest.mark.parametrize("rank", [None, float("nan"), True, "3"])
    def test_invalid_rank(self, rank):
        assert not TeamRoster(id=1, name="X", rank=rank).has_valid_rank

    def test_strength_summary_rejects_more_missing_than_analyzed(self):
        with pytest.raises(ValueError):
            TeamStrengthSummary(average_rating=0.9, players_analyzed=2, players_missing_stats=3)

    def test_strength_summary_players_with_stats(self):
        summary = TeamStrengthSummary(average_rating=1.0, players_analyzed=5, players_missing_stats=2)
        assert summary.players_with_stats == 3

    def test_scheduled_match_accepts_camel_case(self):
        match = ScheduledMatch.from_dict({"id": 7, "team1Name": "Vitality", "team2Name": "G2"})
        assert (match.team1_name, match.team2_name) == ("Vitality", "G2")
        assert match.label == "MatchID 7 (Vitality vs G2)"


class TestHeadToHeadRecord:
    def test_wins_cannot_exceed_total(self):
        with pytest.raises(ValueError):
            HeadToHeadRecord(team1_wins=3, team2_wins=2, total_matches=4)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            HeadToHeadRecord(team1_wins=-1, team2_wins=0, total_matches=0)

    def test_from_matches_compares_ids_as_strings(self):
        matches = [H2HMatch(winner_id="9565"), H2HMatch(winner_id=9565), H2HMatch(winner_id=5995), H2HMatch()]
        record = HeadToHeadRecord.from_matches(9565, "5995", matches)

        assert record.team1_wins == 2
        assert record.team2_wins == 1
        assert record.total_matches == 4

    def test_count_recent_uses_dates(self):
        now = datetime(2026, 10, 19, tzinfo=timezone.utc)
        record = HeadToHeadRecord.from_matches(1, 2, [
            H2HMatch(winner_id=1, date=now - timedelta(days=10)),
            H2HMatch(winner_id=2, date=now - timedelta(days=89)),
            H2HMatch(winner_id=1, date=now - timedelta(days=120)),
        ])
        assert record.count_recent(90, now=now) == 2

    def test_count_recent_without_dates_counts_everything(self):
        record = HeadToHeadRecord(team1_wins=2, team2_wins=1, total_matches=3)
        assert record.count_recent(90) == 3

    def test_count_on_map_is_case_insensitive(self):
        record = HeadToHeadRecord.from_matches(1, 2, [
            H2HMatch(winner_id=1, map_name="Mirage"),
            H2HMatch(winner_id=2, map_name="mirage "),
            H2HMatch(winner_id=2, map_name="Nuke"),
        ])
        assert record.count_on_map("MIRAGE") == 2
        assert record.count_on_map(None) == 0


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-09-28T18:00:00Z", datetime(2026, 9, 28, 18, tzinfo=timezone.utc)),
        (1_790_000_000, datetime.fromtimestamp(1_790_000_000, tz=timezone.utc)),
        (1_790_000_000_000, datetime.fromtimestamp(1_790_000_000, tz=timezone.utc)),
        ("yesterday", None),
        (None, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected
