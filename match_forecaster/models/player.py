"""Player models for match predictions."""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

PlayerId = Union[int, str]


def _to_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class PlayerRef:
    """A rostered player as listed by the stats source."""

    id: PlayerId
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerRef":
        return cls(id=data["id"], name=data.get("name") or "Unknown")


# Source payloads use several spellings for the same metric.
_STAT_ALIASES = {
    "kills_per_round": ("kills_per_round", "killsPerRound", "kpr"),
    "headshot_percent": ("headshot_percent", "headshotPercent", "headshots"),
    "round_contribution": ("round_contribution", "roundContribution", "roundsContributed"),
    "maps_played": ("maps_played", "mapsPlayed", "maps"),
    "rating": ("rating",),
    "deaths_per_round": ("deaths_per_round", "deathsPerRound", "dpr"),
}


@dataclass
class PlayerStat:
    """
    Raw player statistics supplied by the stats source.

    Every field is independently optional; a missing or non-finite value
    means the metric was not available.
    """

    kills_per_round: Optional[float] = None
    headshot_percent: Optional[float] = None
    round_contribution: Optional[float] = None
    maps_played: Optional[float] = None
    rating: Optional[float] = None
    deaths_per_round: Optional[float] = None

    def has_valid_rating(self) -> bool:
        rating = self.rating
        if not isinstance(rating, (int, float)) or isinstance(rating, bool):
            return False
        return math.isfinite(rating)

    def to_dict(self) -> dict:
        return {
            "kills_per_round": self.kills_per_round,
            "headshot_percent": self.headshot_percent,
            "round_contribution": self.round_contribution,
            "maps_played": self.maps_played,
            "rating": self.rating,
            "deaths_per_round": self.deaths_per_round,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerStat":
        """Create stats from a payload, coercing numeric strings and dropping junk."""
        values = {}
        for attr, keys in _STAT_ALIASES.items():
            raw = next((data[k] for k in keys if data.get(k) is not None), None)
            values[attr] = _to_float(raw)
        return cls(**values)


@dataclass
class PlayerImpactScore:
    """Per-dimension scores derived from one player's statistics."""

    fragging: float = 0.0
    consistency: float = 0.0
    impact: float = 0.0
    survival: float = 0.0
    factors_used: Dict[str, int] = field(
        default_factory=lambda: {"fragging": 0, "consistency": 0, "impact": 0, "survival": 0}
    )
    data_points_used: int = 0

    def score(self, dimension: str) -> float:
        return getattr(self, dimension)

    def has_data(self, dimension: str) -> bool:
        return self.factors_used.get(dimension, 0) > 0
