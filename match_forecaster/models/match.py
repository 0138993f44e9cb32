"""Scheduled matches and their final results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from .team import TeamId, parse_timestamp


@dataclass
class ScheduledMatch:
    id: TeamId
    team1_name: Optional[str] = None
    team2_name: Optional[str] = None

    @property
    def label(self) -> str:
        return f"MatchID {self.id} ({self.team1_name or 'N/A'} vs {self.team2_name or 'N/A'})"

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduledMatch":
        return cls(
            id=data["id"],
            team1_name=data.get("team1_name") or data.get("team1Name"),
            team2_name=data.get("team2_name") or data.get("team2Name"),
        )


@dataclass
class MatchResult:
    """Final result of a played match."""

    winner_id: TeamId
    winner_name: str = ""
    scores: Dict[str, Optional[int]] = field(default_factory=dict)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "winner_id": self.winner_id,
            "winner_name": self.winner_name,
            "scores": self.scores,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchResult":
        return cls(
            winner_id=data["winner_id"],
            winner_name=data.get("winner_name") or "",
            scores=dict(data.get("scores") or {}),
            completed_at=parse_timestamp(data.get("completed_at")),
        )
