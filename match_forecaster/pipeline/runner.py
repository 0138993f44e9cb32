"""Daily prediction run: fetch matches, resolve rosters, predict, track."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..data.gateway import FetchGateway
from ..models.match import ScheduledMatch
from ..models.prediction import PredictionOutcome
from ..predictors.match_predictor import MatchPredictor

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Result of one batch run."""

    matches_found: int = 0
    predictions: List[Tuple[ScheduledMatch, PredictionOutcome]] = field(default_factory=list)
    failed: int = 0
    stored: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.predictions)

    def rows(self) -> List[dict]:
        """One display row per prediction."""
        return [
            {
                "match": f"{outcome.team1_name} vs {outcome.team2_name}",
                "prediction": f"{outcome.team1_probability * 100:.1f}% - {outcome.team2_probability * 100:.1f}%",
                "confidence": f"{outcome.confidence.level:.2f}",
                "quality": outcome.confidence.quality_level,
            }
            for _, outcome in self.predictions
        ]


class PredictionRunner:
    """
    Predicts every match scheduled for today.

    A match with a missing team name or a roster that cannot be resolved is
    skipped and counted as failed; the rest of the batch continues.

    Usage:
        runner = PredictionRunner(gateway, predictor, tracker)
        summary = await runner.run(map_name="Inferno", track=True)
    """

    def __init__(self, gateway: FetchGateway, predictor: MatchPredictor, tracker=None):
        self.gateway = gateway
        self.predictor = predictor
        self.tracker = tracker

    async def run(self, map_name: Optional[str] = None, track: bool = False) -> RunSummary:
        logger.info("--- Running match predictor ---")
        logger.info(f"Store predictions (tracking): {track}")
        if map_name:
            logger.info(f"Map filter: {map_name}")
        if track and self.tracker is None:
            logger.warning("Tracking requested but no tracker configured; predictions will not be stored.")

        matches = await self.gateway.get_daily_matches()
        summary = RunSummary(matches_found=len(matches))
        if not matches:
            logger.info("No matches found for today.")
            return summary

        logger.info(f"Found {len(matches)} matches. Processing predictions...")
        for match in matches:
            outcome = await self._predict_match(match, map_name)
            if outcome is None:
                summary.failed += 1
                continue
            summary.predictions.append((match, outcome))

            if track and self.tracker is not None:
                if self.tracker.store_prediction(match.id, outcome) is not None:
                    summary.stored += 1

        logger.info(
            f"Processed: {summary.matches_found} matches. "
            f"Successful predictions: {summary.succeeded}, Failed/Skipped: {summary.failed}"
        )
        return summary

    async def _predict_match(self, match: ScheduledMatch, map_name: Optional[str]) -> Optional[PredictionOutcome]:
        logger.info(f"Processing {match.label}")
        if not match.team1_name or not match.team2_name:
            logger.warning(f"Skipping {match.label} due to missing team name(s).")
            return None

        team1, team2 = await asyncio.gather(
            self.gateway.get_roster(match.team1_name),
            self.gateway.get_roster(match.team2_name),
        )
        if team1 is None or team2 is None:
            missing = [name for name, team in ((match.team1_name, team1), (match.team2_name, team2)) if team is None]
            logger.warning(f"Skipping prediction for {match.label}: no roster for {', '.join(missing)}.")
            return None

        outcome = await self.predictor.predict(team1, team2, map_name=map_name)
        logger.info(
            f"Prediction: {outcome.team1_name} {outcome.team1_probability * 100:.1f}% vs "
            f"{outcome.team2_name} {outcome.team2_probability * 100:.1f}% "
            f"(Confidence: {outcome.confidence.level:.2f})"
        )
        logger.debug(
            f"Quality: {outcome.confidence.quality_level}, Factors: {', '.join(outcome.confidence.factors) or 'none'}"
        )
        return outcome
