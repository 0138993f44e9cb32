"""End-to-end prediction for one match."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..config import ForecasterConfig
from ..data.gateway import FetchGateway
from ..models.prediction import ConfidenceMetrics, PredictionOutcome
from ..models.team import TeamRoster
from .adjustments import AdjustmentPipeline
from .base import BasePredictor
from .confidence import ConfidenceScorer
from .player_rating import PlayerRatingModel
from .probability import ProbabilityResolver
from .team_strength import TeamStrengthAggregator

logger = logging.getLogger(__name__)


class MatchPredictor(BasePredictor):
    """
    Predicts a match from player ratings, ranks and head-to-head history.

    Both team strengths are computed concurrently, the head-to-head record
    is fetched through the same gateway, and the pieces are combined by the
    adjustment pipeline, confidence scorer and probability resolver. Every
    data failure has already been absorbed by the gateway, so a prediction
    is always produced.

    Usage:
        predictor = MatchPredictor(gateway, config)
        outcome = await predictor.predict(team1, team2, map_name="Mirage")
    """

    def __init__(self, gateway: FetchGateway, config: Optional[ForecasterConfig] = None):
        super().__init__("player_strength")
        self.config = config or ForecasterConfig()
        self.gateway = gateway
        self.rating_model = PlayerRatingModel(self.config.player)
        self.aggregator = TeamStrengthAggregator(gateway, self.rating_model)
        self.pipeline = AdjustmentPipeline(self.config.prediction)
        self.scorer = ConfidenceScorer(self.config.quality)
        self.resolver = ProbabilityResolver(self.config.prediction)

    async def predict(
        self,
        team1: TeamRoster,
        team2: TeamRoster,
        map_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PredictionOutcome:
        logger.info(
            f"Predicting win probability: {team1.name} vs {team2.name}"
            + (f" on {map_name}" if map_name else "")
        )

        strength1, strength2, h2h = await asyncio.gather(
            self.aggregator.compute_strength(team1.players, team1.name),
            self.aggregator.compute_strength(team2.players, team2.name),
            self.gateway.get_head_to_head(team1.id, team2.id),
        )

        metrics = ConfidenceMetrics(
            total_players=strength1.players_analyzed + strength2.players_analyzed,
            players_with_stats=strength1.players_with_stats + strength2.players_with_stats,
            data_points_used=strength1.data_points_used + strength2.data_points_used,
            h2h_matches=h2h.total_matches,
            recent_h2h_matches=h2h.count_recent(self.config.quality.recent_window_days, now=now),
            map_specific_matches=h2h.count_on_map(map_name),
            map_name_provided=bool(map_name),
            has_valid_ranks=team1.has_valid_rank and team2.has_valid_rank,
        )

        adjusted = self.pipeline.compute_effective_difference(
            strength1,
            strength2,
            ranks=(team1.rank, team2.rank),
            h2h=h2h,
            map_name=map_name,
        )
        p1, p2 = self.resolver.resolve(adjusted.effective_difference)
        confidence = self.scorer.score(metrics)

        logger.info(f"Prediction result: {team1.name} {p1:.3f} vs {team2.name} {p2:.3f}")
        return PredictionOutcome(
            team1_id=team1.id,
            team1_name=team1.name,
            team2_id=team2.id,
            team2_name=team2.name,
            team1_probability=p1,
            team2_probability=p2,
            confidence=confidence,
            adjustments=adjusted.adjustments,
            raw_difference=adjusted.base_difference,
            effective_difference=adjusted.effective_difference,
            metrics=metrics,
            map_name=map_name,
        )
