"""Base predictor interface for match predictions."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.prediction import PredictionOutcome
from ..models.team import TeamRoster


class BasePredictor(ABC):
    """Abstract base class for match prediction models."""

    def __init__(self, name: str):
        """
        Initialize predictor.

        Args:
            name: Name of the predictor model
        """
        self.name = name

    @abstractmethod
    async def predict(self, team1: TeamRoster, team2: TeamRoster, map_name: Optional[str] = None) -> PredictionOutcome:
        """
        Predict a matchup between two teams.

        Args:
            team1: First team
            team2: Second team
            map_name: Optional map the match is played on

        Returns:
            PredictionOutcome with both probabilities and a confidence score
        """

    async def get_win_probability(self, team1: TeamRoster, team2: TeamRoster) -> float:
        """Probability that team1 beats team2."""
        outcome = await self.predict(team1, team2)
        return outcome.team1_probability
