"""Confidence and prediction outcome models."""

from dataclasses import dataclass, field, asdict
from typing import List, Optional

from .team import TeamId

QUALITY_LOW = "low"
QUALITY_MEDIUM = "medium"
QUALITY_HIGH = "high"


@dataclass
class ConfidenceMetrics:
    """Data-quality counters gathered while building one prediction."""

    total_players: int = 0
    players_with_stats: int = 0
    data_points_used: int = 0
    h2h_matches: int = 0
    recent_h2h_matches: int = 0
    map_specific_matches: int = 0
    map_name_provided: bool = False
    has_valid_ranks: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ConfidenceResult:
    level: float
    quality_level: str
    factors: List[str] = field(default_factory=list)
    quality_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "quality_level": self.quality_level,
            "factors": list(self.factors),
            "quality_score": self.quality_score,
        }


@dataclass
class PredictionOutcome:
    """
    Final prediction for one match.

    team2_probability is always derived as 1 - team1_probability.
    """

    team1_id: TeamId
    team1_name: str
    team2_id: TeamId
    team2_name: str
    team1_probability: float
    team2_probability: float
    confidence: ConfidenceResult
    adjustments: List[str] = field(default_factory=list)
    raw_difference: float = 0.0
    effective_difference: float = 0.0
    metrics: Optional[ConfidenceMetrics] = None
    map_name: Optional[str] = None

    @property
    def predicted_winner_id(self) -> TeamId:
        return self.team1_id if self.team1_probability > self.team2_probability else self.team2_id

    def to_dict(self) -> dict:
        return {
            "team1": {"id": self.team1_id, "name": self.team1_name, "probability": self.team1_probability},
            "team2": {"id": self.team2_id, "name": self.team2_name, "probability": self.team2_probability},
            "confidence": self.confidence.level,
            "quality_level": self.confidence.quality_level,
            "confidence_factors": list(self.confidence.factors),
            "map_name": self.map_name,
            "details": {
                "raw_difference": self.raw_difference,
                "effective_difference": self.effective_difference,
                "adjustments": list(self.adjustments),
                "confidence_metrics": self.metrics.to_dict() if self.metrics else None,
            },
        }
