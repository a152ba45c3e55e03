"""Sink-side helpers: engine factories, table schema, writer and load operations."""
from .ops_series import LoadStats, load_series
from .schema import ColumnSpec, TableSchema, build_schema, materialize
from .session import build_dsn, sink_engine
from .utils import DateFloorPolicy, DateRules, rules_for
from .writer import TableWriter

__all__ = [
    "ColumnSpec",
    "DateFloorPolicy",
    "DateRules",
    "LoadStats",
    "TableSchema",
    "TableWriter",
    "build_dsn",
    "build_schema",
    "load_series",
    "materialize",
    "rules_for",
    "sink_engine",
]
