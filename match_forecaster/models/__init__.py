"""Data models for match predictions."""

from .match import MatchResult, ScheduledMatch
from .player import PlayerImpactScore, PlayerRef, PlayerStat
from .prediction import (
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
    ConfidenceMetrics,
    ConfidenceResult,
    PredictionOutcome,
)
from .team import H2HMatch, HeadToHeadRecord, TeamRoster, TeamStrengthSummary

__all__ = [
    "ConfidenceMetrics",
    "ConfidenceResult",
    "H2HMatch",
    "HeadToHeadRecord",
    "MatchResult",
    "PlayerImpactScore",
    "PlayerRef",
    "PlayerStat",
    "PredictionOutcome",
    "QUALITY_HIGH",
    "QUALITY_LOW",
    "QUALITY_MEDIUM",
    "ScheduledMatch",
    "TeamRoster",
    "TeamStrengthSummary",
]
