"""Exception hierarchy for the FRED loader.

Each pipeline stage raises its own error type so the CLI can report which
stage failed. Every error is fatal to the run.
"""
from __future__ import annotations


class FredLoadError(Exception):
    """Base exception for all loader failures."""

    stage = "load"


class ConfigError(FredLoadError):
    """Raised for missing or invalid runtime configuration."""

    stage = "config"


class FetchError(FredLoadError):
    """Raised when the FRED API cannot be reached or its payload cannot be decoded."""

    stage = "fetch"


class NoDataError(FetchError):
    """Raised when a well-formed response carries no observations."""

    def __init__(self, series_id: str) -> None:
        super().__init__(f"no data returned for series {series_id}")
        self.series_id = series_id


class SchemaError(FredLoadError):
    """Raised when the destination table cannot be (re)created."""

    stage = "schema"


class WriteError(FredLoadError):
    """Raised when a row cannot be serialized or buffered at the sink."""

    stage = "write"


class CommitError(FredLoadError):
    """Raised when the final insert of buffered rows fails."""

    stage = "commit"


class LoadCancelledError(FredLoadError):
    """Raised when a cancellation token is set before a blocking call."""

    stage = "cancelled"
