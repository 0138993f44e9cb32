"""JSON-over-HTTP stats source."""

import logging
from typing import Dict, List, Optional

import requests

from ...errors import DataValidationError, PermanentSourceError, SourceError, TransientSourceError
from ...models.match import MatchResult, ScheduledMatch
from ...models.player import PlayerId, PlayerStat
from ...models.team import H2HMatch, HeadToHeadRecord, TeamId, TeamRoster
from ..validators import validate_player_stats_payload, validate_roster_payload
from .base import StatsSource

logger = logging.getLogger(__name__)


class HttpStatsSource(StatsSource):
    """
    Stats source backed by a JSON API.

    Endpoints (relative to ``base_url``):
        GET /teams?name=<team name>
        GET /players/<id>/stats
        GET /results?team1=<id>&team2=<id>&count=<n>
        GET /matches/today
        GET /matches/<id>

    Usage:
        source = HttpStatsSource("https://stats.example.com/api")
        roster = source.get_roster("Vitality")
    """

    def __init__(self, base_url: str, timeout: float = 30.0, h2h_result_count: int = 20,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.h2h_result_count = h2h_result_count
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "cs-match-forecaster/0.1",
            "Accept": "application/json",
        })

    def get_roster(self, team_name: str) -> Optional[TeamRoster]:
        payload = self._get_json("/teams", params={"name": team_name})
        if not payload:
            logger.warning(f"No team data found for name: {team_name}")
            return None
        errors = validate_roster_payload(payload)
        if errors:
            raise DataValidationError(f"invalid roster for {team_name}: {'; '.join(errors)}")
        return TeamRoster.from_dict(payload)

    def get_player_stats(self, player_id: PlayerId) -> Optional[PlayerStat]:
        payload = self._get_json(f"/players/{player_id}/stats")
        if not payload:
            return None
        errors = validate_player_stats_payload(payload)
        if errors:
            raise DataValidationError(f"invalid stats for player {player_id}: {'; '.join(errors)}")
        return PlayerStat.from_dict(payload)

    def get_head_to_head(self, team1_id: TeamId, team2_id: TeamId) -> HeadToHeadRecord:
        payload = self._get_json(
            "/results",
            params={"team1": team1_id, "team2": team2_id, "count": self.h2h_result_count},
        )
        results = payload.get("results") if isinstance(payload, dict) else payload
        if not isinstance(results, list):
            logger.warning(f"Invalid H2H results format for {team1_id} vs {team2_id}. Expected list.")
            return HeadToHeadRecord.empty()
        matches = [H2HMatch.from_dict(row) for row in results if isinstance(row, dict)]
        return HeadToHeadRecord.from_matches(team1_id, team2_id, matches)

    def get_daily_matches(self) -> List[ScheduledMatch]:
        payload = self._get_json("/matches/today")
        rows = payload.get("matches") if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            return []
        return [ScheduledMatch.from_dict(row) for row in rows if isinstance(row, dict) and "id" in row]

    def get_match_result(self, match_id) -> Optional[MatchResult]:
        payload = self._get_json(f"/matches/{match_id}")
        if not isinstance(payload, dict) or payload.get("winner_id") is None:
            return None
        return MatchResult.from_dict(payload)

    def _get_json(self, path: str, params: Optional[Dict] = None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise TransientSourceError(f"timeout requesting {url}: {exc}", code="ETIMEDOUT") from exc
        except requests.ConnectionError as exc:
            raise TransientSourceError(f"network error requesting {url}: {exc}", code="ECONNREFUSED") from exc

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            message = f"HTTP {response.status_code} from {url}"
            if response.status_code in (400, 401, 403, 405, 422):
                raise PermanentSourceError(message, status=response.status_code)
            # Retried or not according to the gateway's configured status set.
            raise SourceError(message, status=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise DataValidationError(f"non-JSON response from {url}") from exc
