"""End-to-end tests for single-match prediction."""

import asyncio
import math
from datetime import datetime, timezone

import pytest

from conftest import StubSource, make_gateway
from match_forecaster.config import ForecasterConfig
from match_forecaster.errors import TransientSourceError
from match_forecaster.models.player import PlayerRef, PlayerStat
from match_forecaster.models.team import TeamRoster
from match_forecaster.predictors.match_predictor import MatchPredictor

NOW = datetime(2026, 10, 19, 12, tzinfo=timezone.utc)


def team(team_id, name, rank, player_ids):
    return TeamRoster(id=team_id, name=name, rank=rank, players=[PlayerRef(pid, f"p{pid}") for pid in player_ids])


def test_rank_breaks_tie_when_no_stats_resolve():
    gateway = make_gateway(StubSource())
    predictor = MatchPredictor(gateway, ForecasterConfig())

    outcome = asyncio.run(predictor.predict(team(1, "A", 1, range(5)), team(2, "B", 2, range(5, 10))))

    assert outcome.raw_difference == 0
    assert outcome.team1_probability == pytest.approx(1 / (1 + math.exp(-10 * 0.001)))
    assert outcome.team1_probability + outcome.team2_probability == 1.0
    assert "RankNudge: +0.0010 (ranks 1 vs 2)" in outcome.adjustments
    assert "H2HNudge: skipped (matches 0 < 3)" in outcome.adjustments
    assert outcome.metrics.players_with_stats == 0
    assert outcome.predicted_winner_id == 1


def test_uniform_roster_matches_hand_computed_rating():
    stats = {pid: PlayerStat(rating=1.15, maps_played=50) for pid in range(10)}
    gateway = make_gateway(StubSource(stats=stats))
    predictor = MatchPredictor(gateway, ForecasterConfig())

    outcome = asyncio.run(predictor.predict(team(1, "A", 3, range(5)), team(2, "B", None, range(5, 10))))

    expected = (0.3 * 1.15 + 0.2 * (50 / 50)) / (0.3 + 0.2)
    assert outcome.raw_difference == pytest.approx(0.0)
    assert predictor.rating_model.compute_rating(stats[0]) == pytest.approx(expected)
    assert outcome.metrics.data_points_used == 20
    assert "RankNudge: skipped (missing ranks)" in outcome.adjustments
    assert "missing_team_ranks" in outcome.confidence.factors


def test_fixture_match_collects_metrics(fixture_gateway):
    predictor = MatchPredictor(fixture_gateway, ForecasterConfig())
    vitality = asyncio.run(fixture_gateway.get_roster("Vitality"))
    g2 = asyncio.run(fixture_gateway.get_roster("G2"))

    outcome = asyncio.run(predictor.predict(vitality, g2, map_name="Mirage", now=NOW))

    metrics = outcome.metrics
    assert metrics.total_players == 10
    assert metrics.players_with_stats == 8
    assert metrics.data_points_used == 39
    assert metrics.h2h_matches == 5
    assert metrics.recent_h2h_matches == 2
    assert metrics.map_specific_matches == 2
    assert metrics.map_name_provided
    assert metrics.has_valid_ranks

    assert "H2HNudge: +0.0400 (3-2 in 5, win-rate diff +0.2000)" in outcome.adjustments
    assert outcome.adjustments[-1] == "MapNudge (Mirage): skipped (not implemented)"
    assert outcome.confidence.quality_level == "high"
    assert outcome.confidence.level == pytest.approx(0.9)
    assert outcome.map_name == "Mirage"
    assert outcome.team1_probability + outcome.team2_probability == 1.0


def test_head_to_head_failure_still_predicts():
    source = StubSource(
        stats={1: PlayerStat(rating=1.3), 2: PlayerStat(rating=0.8)},
        h2h=TransientSourceError("timeout"),
    )
    predictor = MatchPredictor(make_gateway(source), ForecasterConfig())

    outcome = asyncio.run(predictor.predict(team(1, "A", 5, [1]), team(2, "B", 9, [2])))

    assert outcome.metrics.h2h_matches == 0
    assert "insufficient_h2h_matches" in outcome.confidence.factors
    assert outcome.team1_probability > 0.5
    assert outcome.predicted_winner_id == 1


def test_outcome_to_dict_shape():
    predictor = MatchPredictor(make_gateway(StubSource()), ForecasterConfig())
    outcome = asyncio.run(predictor.predict(team(1, "A", 1, [1]), team(2, "B", 2, [2])))

    data = outcome.to_dict()

    assert data["team1"] == {"id": 1, "name": "A", "probability": outcome.team1_probability}
    assert data["confidence"] == outcome.confidence.level
    assert data["details"]["adjustments"] == outcome.adjustments
    assert data["details"]["confidence_metrics"]["total_players"] == 2


def test_win_probability_shortcut():
    predictor = MatchPredictor(make_gateway(StubSource()), ForecasterConfig())
    probability = asyncio.run(predictor.get_win_probability(team(1, "A", 2, [1]), team(2, "B", 1, [2])))
    assert probability == pytest.approx(1 / (1 + math.exp(-10 * -0.001)))
