"""Stats source that serves a local JSON fixture file."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ...models.match import MatchResult, ScheduledMatch
from ...models.player import PlayerId, PlayerStat
from ...models.team import H2HMatch, HeadToHeadRecord, TeamId, TeamRoster
from ..validators import validate_roster_payload
from .base import StatsSource

logger = logging.getLogger(__name__)


class FixtureStatsSource(StatsSource):
    """
    Offline stats source for dry runs and tests.

    Fixture layout::

        {
            "teams": {"Vitality": {"id": 9565, "name": "Vitality", "rank": 3, "players": [...]}},
            "player_stats": {"11893": {"rating": 1.31, "killsPerRound": 0.86}},
            "head_to_head": [{"team1": 9565, "team2": 5995, "results": [{"winner_id": 9565}]}],
            "matches": [{"id": 1, "team1_name": "Vitality", "team2_name": "G2"}],
            "results": {"1": {"winner_id": 9565, "winner_name": "Vitality"}}
        }
    """

    def __init__(self, data: Dict):
        self.data = data

    @classmethod
    def from_json(cls, file_path: str) -> "FixtureStatsSource":
        with open(Path(file_path), "r") as f:
            return cls(json.load(f))

    def get_roster(self, team_name: str) -> Optional[TeamRoster]:
        payload = (self.data.get("teams") or {}).get(team_name)
        if payload is None:
            return None
        errors = validate_roster_payload(payload)
        if errors:
            logger.warning(f"Ignoring invalid fixture roster for {team_name}: {errors[0]}")
            return None
        return TeamRoster.from_dict(payload)

    def get_player_stats(self, player_id: PlayerId) -> Optional[PlayerStat]:
        payload = (self.data.get("player_stats") or {}).get(str(player_id))
        if payload is None:
            return None
        return PlayerStat.from_dict(payload)

    def get_head_to_head(self, team1_id: TeamId, team2_id: TeamId) -> HeadToHeadRecord:
        for entry in self.data.get("head_to_head") or []:
            pair = {str(entry.get("team1")), str(entry.get("team2"))}
            if pair == {str(team1_id), str(team2_id)}:
                matches = [H2HMatch.from_dict(row) for row in entry.get("results") or []]
                return HeadToHeadRecord.from_matches(team1_id, team2_id, matches)
        return HeadToHeadRecord.empty()

    def get_daily_matches(self) -> List[ScheduledMatch]:
        return [ScheduledMatch.from_dict(row) for row in self.data.get("matches") or []]

    def get_match_result(self, match_id) -> Optional[MatchResult]:
        payload = (self.data.get("results") or {}).get(str(match_id))
        if not payload or payload.get("winner_id") is None:
            return None
        return MatchResult.from_dict(payload)
