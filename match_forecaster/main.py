"""Main CLI interface for the CS match forecaster."""

import argparse
import asyncio
import logging
import os
import sys

from .config import ForecasterConfig, load_config
from .data.cache import PlayerStatsCache, register_shutdown_flush
from .data.gateway import FetchGateway
from .data.sources.fixture_source import FixtureStatsSource
from .data.sources.http_source import HttpStatsSource
from .errors import ConfigurationError, ForecasterError
from .pipeline.runner import PredictionRunner
from .pipeline.scheduler import PredictionScheduler
from .predictors.match_predictor import MatchPredictor
from .tracking.tracker import PredictionTracker
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "CS_FORECASTER_LOG_LEVEL"


def create_source(config: ForecasterConfig, fixtures: str = None):
    """
    Create the stats source for a run.

    Args:
        config: Loaded configuration
        fixtures: Optional fixture JSON file; the HTTP source is used when omitted

    Returns:
        StatsSource instance
    """
    if fixtures:
        logger.info(f"Using fixture data from {fixtures}")
        return FixtureStatsSource.from_json(fixtures)
    return HttpStatsSource(
        config.api.base_url,
        timeout=config.api.request_timeout_s,
        h2h_result_count=config.api.h2h_result_count,
    )


def create_gateway(config: ForecasterConfig, fixtures: str = None) -> FetchGateway:
    cache = PlayerStatsCache.from_config(config.cache)
    cache.load()
    register_shutdown_flush(cache)
    return FetchGateway(create_source(config, fixtures), cache, config.api)


def run_predict(args, config: ForecasterConfig) -> int:
    """Predict today's matches."""
    gateway = create_gateway(config, args.fixtures)
    tracker = PredictionTracker(args.predictions_dir)
    runner = PredictionRunner(gateway, MatchPredictor(gateway, config), tracker)
    try:
        summary = asyncio.run(runner.run(map_name=args.map, track=args.track))
    finally:
        gateway.cache.close()

    if not summary.predictions:
        print("No predictions were generated in this run.")
    for row in summary.rows():
        print(f"{row['match']:<40} {row['prediction']:<18} confidence {row['confidence']} ({row['quality']})")
    print(
        f"\nProcessed {summary.matches_found} matches: "
        f"{summary.succeeded} predicted, {summary.failed} failed/skipped"
        + (f", {summary.stored} stored" if args.track else "")
    )
    return 0


def run_update_results(args, config: ForecasterConfig) -> int:
    """Score pending predictions against final results."""
    gateway = create_gateway(config, args.fixtures)
    tracker = PredictionTracker(args.predictions_dir)
    try:
        updated = asyncio.run(tracker.update_pending_results(gateway))
    finally:
        gateway.cache.close()
    print(f"Updated {updated} pending predictions")
    return 0


def run_schedule(args, config: ForecasterConfig) -> int:
    """Run predictions and result updates on the configured interval."""
    gateway = create_gateway(config, args.fixtures)
    tracker = PredictionTracker(args.predictions_dir)
    runner = PredictionRunner(gateway, MatchPredictor(gateway, config), tracker)
    scheduler = PredictionScheduler(runner, tracker, config.scheduler)
    try:
        cycles = asyncio.run(scheduler.run_forever(map_name=args.map, max_cycles=args.cycles))
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user")
        return 0
    finally:
        gateway.cache.close()
    print(f"Scheduler finished after {cycles} cycle(s)")
    return 0


def run_accuracy(args, config: ForecasterConfig) -> int:
    """Print accuracy over rolling windows."""
    stats = PredictionTracker(args.predictions_dir).accuracy_stats()
    print("Prediction accuracy")
    for window, values in stats.items():
        print(f"  {window:<6} {values['accuracy']:6.1f}%  ({values['correct']}/{values['count']})")
    return 0


def run_export(args, config: ForecasterConfig) -> int:
    """Export prediction history as CSV."""
    rows = PredictionTracker(args.predictions_dir).export_history(args.output)
    print(f"✓ Exported {rows} predictions to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CS Match Forecaster - win probabilities for professional Counter-Strike matches"
    )
    parser.add_argument("--config", "-c", default=None, help="JSON config file overriding the defaults")
    parser.add_argument(
        "--predictions-dir",
        default="data/predictions",
        help="Directory holding tracked predictions (default: data/predictions)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv(LOG_LEVEL_ENV, "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {LOG_LEVEL_ENV} or INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    predict_parser = subparsers.add_parser("predict", help="Predict today's matches")
    predict_parser.add_argument("--map", default=None, help="Map the matches are played on")
    predict_parser.add_argument("--track", action="store_true", help="Store predictions for accuracy tracking")
    predict_parser.add_argument("--fixtures", default=None, help="Read data from a fixture JSON file instead of the API")

    update_parser = subparsers.add_parser("update-results", help="Fetch results for pending predictions")
    update_parser.add_argument("--fixtures", default=None, help="Read data from a fixture JSON file instead of the API")

    schedule_parser = subparsers.add_parser("schedule", help="Predict and update results on a recurring interval")
    schedule_parser.add_argument("--map", default=None, help="Map the matches are played on")
    schedule_parser.add_argument(
        "--cycles", type=int, default=None, help="Stop after this many cycles (default: run until interrupted)"
    )
    schedule_parser.add_argument("--fixtures", default=None, help="Read data from a fixture JSON file instead of the API")

    subparsers.add_parser("accuracy", help="Show prediction accuracy statistics")

    export_parser = subparsers.add_parser("export", help="Export prediction history to CSV")
    export_parser.add_argument("--output", "-o", default="predictions.csv", help="Output CSV file")

    return parser


COMMANDS = {
    "predict": run_predict,
    "update-results": run_update_results,
    "schedule": run_schedule,
    "accuracy": run_accuracy,
    "export": run_export,
}


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.log_file, getattr(logging, args.log_level, logging.INFO))

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error loading configuration: {e}")
        return 1

    try:
        return COMMANDS[args.command](args, config)
    except (ForecasterError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
