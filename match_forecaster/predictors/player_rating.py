"""Player impact rating from raw statistics."""

import logging
from typing import Optional

from ..config import PlayerImpactConfig
from ..models.player import PlayerImpactScore, PlayerStat

logger = logging.getLogger(__name__)

DIMENSIONS = ("fragging", "consistency", "impact", "survival")


class PlayerRatingModel:
    """
    Converts one player's statistics into a bounded rating.

    Four dimensions are scored from whichever sub-metrics are present:

    - fragging: kills per round and headshot percentage, each normalized
      against a base value and capped
    - consistency: round contribution and maps played, same treatment
    - impact: the source's own rating, used as-is
    - survival: 1 - deaths_per_round / base, floored (lower is better)

    The final rating is the weighted mean over dimensions that had data,
    renormalized by the weights actually used, then clamped.
    """

    def __init__(self, config: Optional[PlayerImpactConfig] = None):
        self.config = config or PlayerImpactConfig()

    @property
    def default_rating(self) -> float:
        return self.config.default_rating

    def impact_scores(self, stats: Optional[PlayerStat]) -> Optional[PlayerImpactScore]:
        """
        Score each dimension from the available sub-metrics.

        Args:
            stats: Raw player statistics

        Returns:
            PlayerImpactScore, or None when no stats were given
        """
        if stats is None:
            return None

        cfg = self.config
        scores = PlayerImpactScore()

        fragging = []
        if stats.kills_per_round is not None:
            fragging.append(min(stats.kills_per_round / cfg.kpr_base, cfg.kpr_max_multiplier))
        if stats.headshot_percent is not None:
            fragging.append(min(stats.headshot_percent / cfg.headshot_base, cfg.headshot_max_multiplier))

        consistency = []
        if stats.round_contribution is not None:
            consistency.append(
                min(stats.round_contribution / cfg.round_contribution_base, cfg.round_contribution_max_multiplier)
            )
        if stats.maps_played is not None:
            consistency.append(min(stats.maps_played / cfg.maps_played_base, cfg.maps_played_max_multiplier))

        impact = [stats.rating] if stats.rating is not None else []

        survival = []
        if stats.deaths_per_round is not None:
            survival.append(max(1 - stats.deaths_per_round / cfg.dpr_base, cfg.dpr_min_multiplier))

        for dimension, values in zip(DIMENSIONS, (fragging, consistency, impact, survival)):
            if values:
                setattr(scores, dimension, sum(values) / len(values))
            scores.factors_used[dimension] = len(values)
            scores.data_points_used += len(values)

        logger.debug(f"Player impact scores: {scores}")
        return scores

    def compute_rating(self, stats: Optional[PlayerStat], scores: Optional[PlayerImpactScore] = None) -> float:
        """
        Calculate a single weighted rating for one player.

        Args:
            stats: Raw player statistics, or None if unavailable
            scores: Impact scores already computed for these stats

        Returns:
            Rating within [min_rating, max_rating]; the default rating when
            no usable statistic exists
        """
        if scores is None:
            scores = self.impact_scores(stats)
        if scores is None:
            logger.debug("No stats provided, returning default rating.")
            return self.default_rating

        weighted_sum = 0.0
        total_weight = 0.0
        for dimension in DIMENSIONS:
            if not scores.has_data(dimension):
                continue
            weight = self.config.weights[dimension]
            weighted_sum += scores.score(dimension) * weight
            total_weight += weight

        if total_weight <= 0:
            logger.debug("No dimension had data, returning default rating.")
            return self.default_rating

        rating = weighted_sum / total_weight
        rating = max(self.config.min_rating, min(rating, self.config.max_rating))
        logger.debug(f"Calculated weighted rating: {rating:.3f} (total weight: {total_weight:.2f})")
        return rating
