"""Prediction history and accuracy tracking."""

from .tracker import PredictionTracker, STATUS_COMPLETED, STATUS_PENDING

__all__ = ["PredictionTracker", "STATUS_COMPLETED", "STATUS_PENDING"]
