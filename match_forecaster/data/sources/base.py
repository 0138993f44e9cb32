"""Stats source interface consumed by the fetch gateway."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ...models.match import MatchResult, ScheduledMatch
from ...models.player import PlayerId, PlayerStat
from ...models.team import HeadToHeadRecord, TeamId, TeamRoster


class StatsSource(ABC):
    """
    Upstream provider of rosters, player statistics and match data.

    Implementations return ``None`` or an empty value for ordinary
    "not found" conditions and raise only for malformed calls or
    connectivity problems; the gateway classifies and absorbs those.
    """

    @abstractmethod
    def get_roster(self, team_name: str) -> Optional[TeamRoster]:
        """
        Look up a team and its current lineup.

        Args:
            team_name: Display name of the team

        Returns:
            TeamRoster, or None if the team is unknown
        """

    @abstractmethod
    def get_player_stats(self, player_id: PlayerId) -> Optional[PlayerStat]:
        """
        Fetch aggregate statistics for one player.

        Args:
            player_id: Source identifier of the player

        Returns:
            PlayerStat, or None if the player has no statistics
        """

    @abstractmethod
    def get_head_to_head(self, team1_id: TeamId, team2_id: TeamId) -> HeadToHeadRecord:
        """Fetch the recent head-to-head record between two teams."""

    @abstractmethod
    def get_daily_matches(self) -> List[ScheduledMatch]:
        """List today's scheduled matches."""

    @abstractmethod
    def get_match_result(self, match_id) -> Optional[MatchResult]:
        """Fetch the final result of a match, or None if not decided yet."""
