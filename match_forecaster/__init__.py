"""Match win-probability forecaster."""

__version__ = "0.1.0"
