"""Load a single FRED time series into an analytical table."""
from fred_loader.errors import (
    CommitError,
    ConfigError,
    FetchError,
    FredLoadError,
    LoadCancelledError,
    NoDataError,
    SchemaError,
    WriteError,
)

__version__ = "0.1.0"

__all__ = [
    "CommitError",
    "ConfigError",
    "FetchError",
    "FredLoadError",
    "LoadCancelledError",
    "NoDataError",
    "SchemaError",
    "WriteError",
    "__version__",
]
