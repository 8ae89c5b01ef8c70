"""Error taxonomy for the telemetry simulator."""

from typing import Optional


class CamcogniError(Exception):
    """Base class for simulator errors."""


class InvalidSampleSize(CamcogniError, ValueError):
    """Requested more distinct elements than the pool holds."""

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Cannot sample {requested} distinct elements from a pool of {available}"
        )
        self.requested = requested
        self.available = available


class GenerationError(CamcogniError):
    """Snapshot generation hit a structural precondition (fatal to session start)."""


class SaveTriggerError(CamcogniError):
    """The run-analysis trigger failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReportsFetchError(CamcogniError):
    """Fetching the AI reports document failed."""


class ConfigError(CamcogniError, ValueError):
    """A configuration value is outside its allowed set."""
