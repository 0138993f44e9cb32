"""Confidence score and quality tier from data-quality counters."""

import logging
from typing import List, Optional

from ..config import DataQualityConfig
from ..models.prediction import (
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
    ConfidenceMetrics,
    ConfidenceResult,
)

logger = logging.getLogger(__name__)


class ConfidenceScorer:
    """
    Scores how much of the expected data backed a prediction.

    Two independent outputs are produced. The quality tier comes from a
    weighted blend of four sub-scores (player stats, head-to-head, map
    data, ranks). The confidence level starts at 1.0 and is multiplied by
    a penalty for every unmet requirement, then by the base confidence,
    and is capped when the tier is low.

    The two head-to-head penalties do not stack: a record short on total
    matches takes only the total-matches penalty, and the recent-matches
    penalty applies only once the total requirement is met.
    """

    def __init__(self, config: Optional[DataQualityConfig] = None):
        self.config = config or DataQualityConfig()

    def score(self, metrics: ConfidenceMetrics) -> ConfidenceResult:
        cfg = self.config
        confidence = 1.0
        factors: List[str] = []

        def penalize(multiplier: float, factor: str) -> None:
            nonlocal confidence
            confidence *= multiplier
            if factor not in factors:
                factors.append(factor)

        # Player stats
        player_quality = 0.0
        if metrics.total_players > 0:
            basic_ratio = metrics.players_with_stats / metrics.total_players
            max_points = metrics.total_players * cfg.expected_data_points
            detail_ratio = min(metrics.data_points_used / max_points, 1.0) if max_points > 0 else 0.0
            player_quality = basic_ratio * 0.5 + detail_ratio * 0.5
            # Both rosters are counted together.
            if metrics.players_with_stats < cfg.min_players_with_stats * 2:
                penalize(cfg.no_player_stats_penalty, "insufficient_player_stats")

        # Head-to-head
        total_met = metrics.h2h_matches >= cfg.min_h2h_matches
        recent_met = metrics.recent_h2h_matches >= cfg.min_recent_h2h_matches
        h2h_quality = (0.6 if total_met else 0.0) + (0.4 if recent_met else 0.0)
        if not total_met:
            penalize(cfg.insufficient_h2h_penalty, "insufficient_h2h_matches")
        elif not recent_met:
            penalize(cfg.insufficient_recent_h2h_penalty, "insufficient_recent_h2h")

        # Map data only counts when a map was requested
        map_quality = 0.0
        if metrics.map_name_provided:
            if metrics.map_specific_matches >= cfg.min_map_matches:
                map_quality = 1.0
            else:
                penalize(cfg.insufficient_map_data_penalty, "insufficient_map_data")

        rank_quality = 1.0 if metrics.has_valid_ranks else 0.0
        if not metrics.has_valid_ranks:
            penalize(cfg.missing_rank_penalty, "missing_team_ranks")

        weights = dict(cfg.weights)
        if not metrics.map_name_provided:
            weights["map_stats"] = 0.0
        total_weight = sum(weights.values())
        quality_score = 0.0
        if total_weight > 0:
            quality_score = (
                player_quality * weights["player_stats"]
                + h2h_quality * weights["h2h"]
                + map_quality * weights["map_stats"]
                + rank_quality * weights["rank"]
            ) / total_weight
        else:
            logger.warning("Total weight for confidence calculation is zero.")

        quality_level = self.classify(quality_score)

        confidence *= cfg.default_confidence
        if quality_level == QUALITY_LOW:
            confidence = min(confidence, cfg.low_quality_cap)
            if "low_overall_data_quality" not in factors:
                factors.append("low_overall_data_quality")
        confidence = max(0.0, min(1.0, confidence))

        logger.info(
            f"Confidence score: {confidence:.3f}, quality level: {quality_level}, "
            f"score: {quality_score:.3f}, factors: [{', '.join(factors) or 'none'}]"
        )
        return ConfidenceResult(
            level=confidence,
            quality_level=quality_level,
            factors=factors,
            quality_score=quality_score,
        )

    def classify(self, quality_score: float) -> str:
        if quality_score >= self.config.high_threshold:
            return QUALITY_HIGH
        if quality_score >= self.config.medium_threshold:
            return QUALITY_MEDIUM
        return QUALITY_LOW
