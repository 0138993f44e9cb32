"""Rank, head-to-head and map nudges on top of the raw strength difference."""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import PredictionConfig
from ..models.team import HeadToHeadRecord, TeamStrengthSummary

logger = logging.getLogger(__name__)


def _clamp(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


def _valid_rank(rank) -> bool:
    return isinstance(rank, (int, float)) and not isinstance(rank, bool) and math.isfinite(rank)


@dataclass
class AdjustmentResult:
    base_difference: float
    effective_difference: float
    rank_nudge: float = 0.0
    h2h_nudge: float = 0.0
    map_nudge: float = 0.0
    adjustments: List[str] = field(default_factory=list)


class AdjustmentPipeline:
    """
    Turns two team strengths into an effective strength difference.

    Stages, applied in order and each recorded in ``adjustments``:

    1. Rank nudge: tie-breaker used only when the strengths are within
       ``rating_threshold`` and both ranks are known. A lower (better)
       rank for team 1 gives a positive nudge.
    2. Head-to-head nudge: win-rate differential scaled and capped, used
       only with at least ``h2h_min_matches`` meetings.
    3. Map nudge: extension point, currently always 0.
    """

    def __init__(self, config: Optional[PredictionConfig] = None):
        self.config = config or PredictionConfig()

    def compute_effective_difference(
        self,
        team1: TeamStrengthSummary,
        team2: TeamStrengthSummary,
        ranks: Tuple[Optional[float], Optional[float]] = (None, None),
        h2h: Optional[HeadToHeadRecord] = None,
        map_name: Optional[str] = None,
    ) -> AdjustmentResult:
        base_difference = team1.average_rating - team2.average_rating
        adjustments: List[str] = []

        rank_nudge = self._rank_nudge(base_difference, ranks, adjustments)
        h2h_nudge = self._h2h_nudge(h2h, adjustments)
        map_nudge = self._map_nudge(map_name, adjustments)

        effective = base_difference + rank_nudge + h2h_nudge + map_nudge
        logger.debug(
            f"BaseDiff: {base_difference:.3f}, EffectiveDiff: {effective:.3f}, "
            f"Adjustments: [{'; '.join(adjustments)}]"
        )
        return AdjustmentResult(
            base_difference=base_difference,
            effective_difference=effective,
            rank_nudge=rank_nudge,
            h2h_nudge=h2h_nudge,
            map_nudge=map_nudge,
            adjustments=adjustments,
        )

    def _rank_nudge(self, base_difference: float, ranks, adjustments: List[str]) -> float:
        threshold = self.config.rating_threshold
        if abs(base_difference) >= threshold:
            adjustments.append(
                f"RankNudge: skipped (|difference| {abs(base_difference):.3f} >= threshold {threshold})"
            )
            return 0.0

        rank1, rank2 = ranks
        if not (_valid_rank(rank1) and _valid_rank(rank2)):
            adjustments.append("RankNudge: skipped (missing ranks)")
            return 0.0

        rank_difference = rank2 - rank1  # lower rank is better
        nudge = _clamp(rank_difference * self.config.rank_nudge_scale, self.config.rank_nudge_max)
        adjustments.append(f"RankNudge: {nudge:+.4f} (ranks {rank1} vs {rank2})")
        return nudge

    def _h2h_nudge(self, h2h: Optional[HeadToHeadRecord], adjustments: List[str]) -> float:
        min_matches = self.config.h2h_min_matches
        total = h2h.total_matches if h2h is not None else 0
        if h2h is None or total < min_matches or total == 0:
            adjustments.append(f"H2HNudge: skipped (matches {total} < {min_matches})")
            return 0.0

        win_rate_diff = h2h.team1_wins / total - h2h.team2_wins / total
        nudge = _clamp(win_rate_diff * self.config.h2h_scale, self.config.h2h_max_effect)
        adjustments.append(
            f"H2HNudge: {nudge:+.4f} ({h2h.team1_wins}-{h2h.team2_wins} in {total}, "
            f"win-rate diff {win_rate_diff:+.4f})"
        )
        return nudge

    def _map_nudge(self, map_name: Optional[str], adjustments: List[str]) -> float:
        label = f"MapNudge ({map_name})" if map_name else "MapNudge"
        adjustments.append(f"{label}: skipped (not implemented)")
        return 0.0
