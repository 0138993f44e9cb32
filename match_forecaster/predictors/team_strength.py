"""Team strength from concurrently fetched player ratings."""

import asyncio
import logging
from typing import List, Optional, Sequence

import numpy as np

from ..data.gateway import FetchGateway, FetchResult
from ..models.player import PlayerRef
from ..models.team import TeamStrengthSummary
from .player_rating import PlayerRatingModel

logger = logging.getLogger(__name__)


class TeamStrengthAggregator:
    """
    Averages player ratings over a whole roster.

    Players without usable stats contribute the default rating and stay in
    the denominator, so sparse data pulls a team toward the default instead
    of amplifying whatever partial data exists.
    """

    def __init__(self, gateway: FetchGateway, rating_model: Optional[PlayerRatingModel] = None):
        self.gateway = gateway
        self.rating_model = rating_model or PlayerRatingModel()

    async def compute_strength(self, roster: Sequence[PlayerRef], team_name: str = "team") -> TeamStrengthSummary:
        """
        Fetch every player's stats concurrently and reduce them to one rating.

        Args:
            roster: Players to analyze
            team_name: Name used in log messages

        Returns:
            TeamStrengthSummary with data-quality counters
        """
        default_rating = self.rating_model.default_rating
        if not roster:
            logger.warning(f"Cannot calculate strength for {team_name}: no players provided.")
            return TeamStrengthSummary(average_rating=default_rating)

        results = await asyncio.gather(
            *(self.gateway.fetch_player_stats(p.id, p.name) for p in roster),
            return_exceptions=True,
        )

        ratings: List[float] = []
        missing = 0
        data_points = 0
        for player, result in zip(roster, results):
            if isinstance(result, BaseException):
                logger.warning(f"Stats fetch failed for {player.name} (ID: {player.id}): {result!r}. Using default rating.")
                result = FetchResult(stats=None, cause=result)

            stats = result.stats
            if stats is not None and stats.has_valid_rating():
                scores = self.rating_model.impact_scores(stats)
                rating = self.rating_model.compute_rating(stats, scores=scores)
                data_points += scores.data_points_used
                logger.debug(f"Using calculated rating {rating:.3f} for {player.name}")
            else:
                rating = default_rating
                missing += 1
                logger.debug(f"Using default rating {default_rating} for {player.name} (stats null or invalid)")
            ratings.append(rating)

        summary = TeamStrengthSummary(
            average_rating=float(np.mean(ratings)),
            players_analyzed=len(roster),
            players_missing_stats=missing,
            data_points_used=data_points,
        )
        logger.info(
            f"Team strength for {team_name}: {summary.average_rating:.3f} "
            f"(based on {summary.players_with_stats}/{summary.players_analyzed} players)"
        )
        return summary
