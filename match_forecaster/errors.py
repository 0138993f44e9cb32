"""Error taxonomy shared by sources, the fetch gateway and configuration."""

from typing import Optional


class ForecasterError(Exception):
    """Base class for all forecaster errors."""


class SourceError(ForecasterError):
    """Failure raised by a statistics source call."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status = status


class TransientSourceError(SourceError):
    """Network, timeout or rate-limit failure that may succeed on retry."""


class PermanentSourceError(SourceError):
    """Invalid request or similar failure that retrying will not fix."""


class DataValidationError(ForecasterError):
    """Well-formed response whose content is semantically invalid."""


class ConfigurationError(ForecasterError):
    """Missing or invalid startup configuration."""
