"""
Prediction tracking.

Each stored prediction is one JSON file in the tracker directory, named
``{match_id}_{timestamp_ms}.json``. Records start ``pending`` and become
``completed`` once the match result is known, at which point ``correct``
records whether the higher-probability team won.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from ..models.prediction import PredictionOutcome
from ..models.team import TeamId, parse_timestamp

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

ACCURACY_WINDOWS = {
    "week": 7,
    "month": 30,
    "year": 365,
    "total": None,
}

EXPORT_COLUMNS = [
    "match_id",
    "predicted_at",
    "status",
    "team1_id",
    "team1_name",
    "team1_probability",
    "team2_id",
    "team2_name",
    "team2_probability",
    "confidence",
    "quality_level",
    "map_name",
    "winner_id",
    "winner_name",
    "completed_at",
    "correct",
]


class PredictionTracker:
    """
    Stores predictions on disk and scores them against final results.

    Usage:
        tracker = PredictionTracker("data/predictions")
        tracker.store_prediction(match.id, outcome)
        await tracker.update_pending_results(gateway)
        stats = tracker.accuracy_stats()
    """

    def __init__(self, directory: str = "data/predictions", clock: Callable[[], float] = time.time):
        self.directory = Path(directory)
        self.clock = clock

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            logger.info(f"Creating predictions directory: {self.directory}")
            self.directory.mkdir(parents=True, exist_ok=True)

    def store_prediction(self, match_id, outcome: PredictionOutcome) -> Optional[Path]:
        """
        Persist a new pending prediction.

        Args:
            match_id: Identifier of the predicted match
            outcome: Prediction to store

        Returns:
            Path of the written record, or None if it could not be stored
        """
        if match_id is None or outcome.team1_id is None or outcome.team2_id is None:
            logger.error("Cannot store prediction: missing match or team id")
            return None

        self._ensure_directory()
        timestamp = self.clock()
        record = {
            "timestamp": timestamp,
            "match_id": match_id,
            **outcome.to_dict(),
            "status": STATUS_PENDING,
            "result": None,
            "correct": None,
        }
        path = self.directory / f"{match_id}_{int(timestamp * 1000)}.json"
        try:
            with open(path, "w") as f:
                json.dump(record, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to store prediction for match {match_id}: {e}")
            return None
        logger.info(f"Prediction for match {match_id} stored successfully.")
        return path

    def _records(self) -> List[Tuple[Path, Dict]]:
        if not self.directory.exists():
            return []
        records = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                with open(path, "r") as f:
                    records.append((path, json.load(f)))
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error reading prediction file {path.name}: {e}")
        return records

    def load_history(self) -> List[Dict]:
        return [record for _, record in self._records()]

    async def update_pending_results(self, gateway) -> int:
        """
        Fetch results for every pending prediction and score the finished ones.

        Args:
            gateway: FetchGateway used to look up match results

        Returns:
            Number of predictions marked completed
        """
        records = self._records()
        pending = [(path, record) for path, record in records if record.get("status") == STATUS_PENDING]
        logger.info(f"Found {len(records)} prediction files, {len(pending)} pending.")

        updated = 0
        for path, record in pending:
            match_id = record.get("match_id")
            result = await gateway.get_match_result(match_id)
            if result is None:
                logger.warning(f"Could not retrieve a result for match ID {match_id}; leaving it pending.")
                continue
            if result.winner_id is None:
                logger.debug(f"Match ID {match_id} has no final result yet.")
                continue

            completed_at = result.completed_at or datetime.fromtimestamp(self.clock(), tz=timezone.utc)
            record["result"] = {
                "winner_id": result.winner_id,
                "winner_name": result.winner_name,
                "scores": result.scores,
                "completed_at": completed_at.isoformat(),
            }
            record["status"] = STATUS_COMPLETED
            record["correct"] = _same_id(_predicted_winner(record), result.winner_id)
            logger.info(f"Result for match ID {match_id}: winner {result.winner_name}. Prediction correct: {record['correct']}")

            with open(path, "w") as f:
                json.dump(record, f, indent=2)
            updated += 1

        logger.info(f"Finished checking {len(pending)} pending predictions. Updated {updated} results.")
        return updated

    def accuracy_stats(self, now: Optional[datetime] = None) -> Dict[str, Dict[str, float]]:
        """
        Accuracy of completed predictions over rolling windows.

        Returns:
            Mapping of window name (week, month, year, total) to
            ``{"accuracy": percent, "count": n, "correct": k}``
        """
        now = now or datetime.fromtimestamp(self.clock(), tz=timezone.utc)
        counts = {name: {"correct": 0, "count": 0} for name in ACCURACY_WINDOWS}

        for record in self.load_history():
            if record.get("status") != STATUS_COMPLETED or not isinstance(record.get("correct"), bool):
                continue
            when = parse_timestamp((record.get("result") or {}).get("completed_at")) or parse_timestamp(
                record.get("timestamp")
            )
            age_days = (now - when).total_seconds() / 86400.0 if when else None

            for name, days in ACCURACY_WINDOWS.items():
                if days is not None and (age_days is None or age_days > days):
                    continue
                counts[name]["count"] += 1
                counts[name]["correct"] += int(record["correct"])

        stats = {
            name: {
                "accuracy": (c["correct"] / c["count"]) * 100.0 if c["count"] else 0.0,
                "count": c["count"],
                "correct": c["correct"],
            }
            for name, c in counts.items()
        }
        logger.info(f"Accuracy stats: total {stats['total']['correct']}/{stats['total']['count']}")
        return stats

    def history_frame(self) -> pd.DataFrame:
        rows = [_flatten(record) for record in self.load_history()]
        if not rows:
            return pd.DataFrame(columns=EXPORT_COLUMNS)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        df["predicted_at"] = pd.to_datetime(df["predicted_at"], unit="s", utc=True)
        df["completed_at"] = pd.to_datetime(df["completed_at"], errors="coerce", utc=True)
        return df.sort_values("predicted_at", ignore_index=True)

    def export_history(self, path: str) -> int:
        """Write the prediction history as a flat CSV table. Returns the row count."""
        df = self.history_frame()
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out, index=False)
        logger.info(f"Exported {len(df)} predictions to {out}")
        return len(df)


def _predicted_winner(record: Dict) -> TeamId:
    team1, team2 = record.get("team1") or {}, record.get("team2") or {}
    if (team1.get("probability") or 0) > (team2.get("probability") or 0):
        return team1.get("id")
    return team2.get("id")


def _same_id(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def _flatten(record: Dict) -> Dict:
    team1, team2 = record.get("team1") or {}, record.get("team2") or {}
    result = record.get("result") or {}
    return {
        "match_id": record.get("match_id"),
        "predicted_at": record.get("timestamp"),
        "status": record.get("status"),
        "team1_id": team1.get("id"),
        "team1_name": team1.get("name"),
        "team1_probability": team1.get("probability"),
        "team2_id": team2.get("id"),
        "team2_name": team2.get("name"),
        "team2_probability": team2.get("probability"),
        "confidence": record.get("confidence"),
        "quality_level": record.get("quality_level"),
        "map_name": record.get("map_name"),
        "winner_id": result.get("winner_id"),
        "winner_name": result.get("winner_name"),
        "completed_at": result.get("completed_at"),
        "correct": record.get("correct"),
    }
