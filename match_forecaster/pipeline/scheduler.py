"""Recurring prediction and result-update cycles."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..config import SchedulerConfig
from .runner import PredictionRunner, RunSummary

logger = logging.getLogger(__name__)


class PredictionScheduler:
    """
    Runs the tracked daily prediction batch and the result update on an interval.

    Each cycle predicts today's matches with tracking on, then scores pending
    predictions and logs accuracy. A failing job is logged and the loop keeps
    going. The runner's gateway (and its cache) is shared by every cycle.

    Usage:
        scheduler = PredictionScheduler(runner, tracker, config.scheduler)
        await scheduler.run_forever()
    """

    def __init__(
        self,
        runner: PredictionRunner,
        tracker,
        config: Optional[SchedulerConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.runner = runner
        self.tracker = tracker
        self.config = config or SchedulerConfig()
        self._sleep = sleep

    async def run_predictions_job(self, map_name: Optional[str] = None) -> Optional[RunSummary]:
        logger.info("[Scheduler] Starting predictions job...")
        try:
            summary = await self.runner.run(map_name=map_name, track=True)
        except Exception as e:
            logger.error(f"[Scheduler] Error in predictions job: {e!r}")
            return None
        logger.info(f"[Scheduler] Predictions completed: {summary.succeeded} predicted, {summary.stored} stored.")
        return summary

    async def run_results_job(self) -> Optional[Dict[str, Dict[str, float]]]:
        logger.info("[Scheduler] Starting results update job...")
        try:
            await self.tracker.update_pending_results(self.runner.gateway)
            stats = self.tracker.accuracy_stats()
        except Exception as e:
            logger.error(f"[Scheduler] Error in results job: {e!r}")
            return None

        week = stats["week"]
        threshold = self.config.accuracy_alert_threshold
        if week["count"] > 0 and week["accuracy"] < threshold:
            logger.warning(
                f"[Scheduler] Recent prediction accuracy ({week['accuracy']:.1f}%) "
                f"is below threshold ({threshold}%)"
            )
        return stats

    async def run_cycle(self, map_name: Optional[str] = None) -> None:
        await self.run_predictions_job(map_name)
        await self.run_results_job()

    async def run_forever(self, map_name: Optional[str] = None, max_cycles: Optional[int] = None) -> int:
        """
        Run cycles until cancelled, or until ``max_cycles`` cycles have run.

        Returns:
            Number of cycles completed
        """
        interval = self.config.interval_s
        logger.info(f"[Scheduler] Running continuously with interval of {interval} seconds")
        cycles = 0
        while True:
            await self.run_cycle(map_name)
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                logger.info(f"[Scheduler] Stopping after {cycles} cycle(s).")
                return cycles
            logger.info(f"[Scheduler] Sleeping for {interval} seconds")
            await self._sleep(interval)
