"""Team models for match predictions."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union

from .player import PlayerRef

TeamId = Union[int, str]


@dataclass
class TeamRoster:
    """A team with its current rank and lineup."""

    id: TeamId
    name: str
    rank: Optional[int] = None
    players: List[PlayerRef] = field(default_factory=list)

    @property
    def has_valid_rank(self) -> bool:
        return (
            isinstance(self.rank, (int, float))
            and not isinstance(self.rank, bool)
            and math.isfinite(self.rank)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rank": self.rank,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamRoster":
        return cls(
            id=data["id"],
            name=data["name"],
            rank=data.get("rank"),
            players=[PlayerRef.from_dict(p) for p in data.get("players") or []],
        )


@dataclass
class TeamStrengthSummary:
    """Aggregated player ratings for one roster."""

    average_rating: float
    players_analyzed: int = 0
    players_missing_stats: int = 0
    data_points_used: int = 0

    def __post_init__(self):
        if self.players_missing_stats > self.players_analyzed:
            raise ValueError(
                f"players_missing_stats ({self.players_missing_stats}) exceeds "
                f"players_analyzed ({self.players_analyzed})"
            )

    @property
    def players_with_stats(self) -> int:
        return self.players_analyzed - self.players_missing_stats


@dataclass
class H2HMatch:
    """One historical meeting between the two teams."""

    winner_id: Optional[TeamId] = None
    date: Optional[datetime] = None
    map_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "winner_id": self.winner_id,
            "date": self.date.isoformat() if self.date else None,
            "map_name": self.map_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "H2HMatch":
        return cls(
            winner_id=data.get("winner_id"),
            date=parse_timestamp(data.get("date")),
            map_name=data.get("map_name") or data.get("map"),
        )


@dataclass
class HeadToHeadRecord:
    """
    Win counts between two teams.

    Draws and unfinished matches count toward total_matches without
    crediting either side, so team1_wins + team2_wins <= total_matches.
    """

    team1_wins: int = 0
    team2_wins: int = 0
    total_matches: int = 0
    matches: List[H2HMatch] = field(default_factory=list)

    def __post_init__(self):
        if min(self.team1_wins, self.team2_wins, self.total_matches) < 0:
            raise ValueError("head-to-head counts must be non-negative")
        if self.team1_wins + self.team2_wins > self.total_matches:
            raise ValueError(
                f"head-to-head wins ({self.team1_wins}+{self.team2_wins}) exceed "
                f"total matches ({self.total_matches})"
            )

    @classmethod
    def empty(cls) -> "HeadToHeadRecord":
        return cls()

    @classmethod
    def from_matches(cls, team1_id: TeamId, team2_id: TeamId, matches: List[H2HMatch]) -> "HeadToHeadRecord":
        """Count wins for each side from individual results."""
        winners = [str(m.winner_id) for m in matches if m.winner_id is not None]
        team1_wins = winners.count(str(team1_id))
        team2_wins = winners.count(str(team2_id))
        return cls(
            team1_wins=team1_wins,
            team2_wins=team2_wins,
            total_matches=len(matches),
            matches=list(matches),
        )

    def count_recent(self, window_days: int, now: Optional[datetime] = None) -> int:
        """
        Count matches played within the last ``window_days``.

        Records without per-match dates treat every match as recent.
        """
        dated = [m for m in self.matches if m.date is not None]
        if not dated:
            return self.total_matches
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=window_days)
        return sum(1 for m in dated if _as_utc(m.date) >= cutoff)

    def count_on_map(self, map_name: Optional[str]) -> int:
        if not map_name:
            return 0
        wanted = map_name.strip().lower()
        return sum(1 for m in self.matches if m.map_name and m.map_name.strip().lower() == wanted)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO string or epoch (seconds or milliseconds) into a UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 1e11 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    try:
        return _as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None
