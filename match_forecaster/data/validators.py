"""Schema validators for stats-source payloads."""

from __future__ import annotations

import math
from typing import Dict, List, Optional


def parse_finite_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def validate_roster_payload(payload: Dict) -> List[str]:
    errors: List[str] = []
    if not isinstance(payload, dict):
        return ["roster payload must be an object"]

    team_id = payload.get("id")
    if team_id is None or isinstance(team_id, bool) or not isinstance(team_id, (int, str)):
        errors.append("roster missing or invalid id")
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append(f"roster {team_id} missing or invalid name")

    rank = payload.get("rank")
    if rank is not None and parse_finite_number(rank) is None:
        errors.append(f"roster {name or team_id} has invalid rank format")

    players = payload.get("players")
    if players is None:
        return errors
    if not isinstance(players, list):
        errors.append(f"roster {name or team_id} 'players' must be a list")
        return errors

    for idx, player in enumerate(players):
        if not isinstance(player, dict):
            errors.append(f"players[{idx}] must be an object")
            continue
        player_id = player.get("id")
        if player_id is None or isinstance(player_id, bool) or not isinstance(player_id, (int, str)):
            errors.append(f"players[{idx}] missing or invalid id")
        player_name = player.get("name")
        if not isinstance(player_name, str) or not player_name.strip():
            errors.append(f"players[{idx}] missing or invalid name")
    return errors


def validate_player_stats_payload(payload: Dict) -> List[str]:
    if not isinstance(payload, dict):
        return ["player stats payload must be an object"]
    if parse_finite_number(payload.get("rating")) is None:
        return [f"invalid rating: {payload.get('rating')!r}"]
    return []
