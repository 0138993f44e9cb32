"""Logistic mapping from strength difference to win probabilities."""

import math
from typing import Optional, Tuple

from ..config import PredictionConfig


class ProbabilityResolver:
    """Maps an effective strength difference to a clamped probability pair."""

    def __init__(self, config: Optional[PredictionConfig] = None):
        self.config = config or PredictionConfig()

    def resolve(self, effective_difference: float) -> Tuple[float, float]:
        """
        Convert a strength difference into win probabilities.

        Args:
            effective_difference: Team 1 strength minus team 2 strength, after nudges

        Returns:
            (team1_probability, team2_probability); team 2's is derived as
            1 - team 1's so the pair always sums to 1
        """
        if math.isnan(effective_difference):
            effective_difference = 0.0
        raw = self._logistic(self.config.scaling_factor * effective_difference)
        p1 = max(self.config.min_probability, min(self.config.max_probability, raw))
        return p1, 1.0 - p1

    @staticmethod
    def _logistic(x: float) -> float:
        try:
            return 1.0 / (1.0 + math.exp(-x))
        except OverflowError:
            return 0.0 if x < 0 else 1.0
