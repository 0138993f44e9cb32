"""Scoring pipeline: player ratings to calibrated-looking match probabilities."""

from .adjustments import AdjustmentPipeline, AdjustmentResult
from .base import BasePredictor
from .confidence import ConfidenceScorer
from .match_predictor import MatchPredictor
from .player_rating import PlayerRatingModel
from .probability import ProbabilityResolver
from .team_strength import TeamStrengthAggregator

__all__ = [
    "AdjustmentPipeline",
    "AdjustmentResult",
    "BasePredictor",
    "ConfidenceScorer",
    "MatchPredictor",
    "PlayerRatingModel",
    "ProbabilityResolver",
    "TeamStrengthAggregator",
]
