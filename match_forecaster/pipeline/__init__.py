"""Batch prediction over the day's scheduled matches."""

from .runner import PredictionRunner, RunSummary
from .scheduler import PredictionScheduler

__all__ = ["PredictionRunner", "RunSummary", "PredictionScheduler"]
