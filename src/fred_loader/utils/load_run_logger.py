"""Record load outcomes into the warehouse for observability."""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from clickhouse_sqlalchemy import Table as ClickHouseTable
from clickhouse_sqlalchemy import engines
from clickhouse_sqlalchemy import types as ch_types
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, Text, insert
from sqlalchemy.engine import Engine

from fred_loader.db.schema import CLICKHOUSE_DIALECT
from fred_loader.db.session import SINK_ERRORS
from fred_loader.db.utils import split_table
from fred_loader.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="load_run_logger")


def run_log_table_from_env() -> Optional[str]:
    """Name of the run log table, or None when run logging is disabled."""
    return os.getenv("LOAD_RUN_LOG_TABLE") or None


@dataclass
class LoadRunRecord:
    """One row of the run log."""

    series_id: str
    target_table: str
    state: str
    started_at: datetime
    finished_at: datetime
    rows_loaded: int = 0
    error: Optional[str] = None


def _run_log_table(identifier: str, metadata: MetaData, dialect_name: str) -> Table:
    schema, table = split_table(identifier)
    is_clickhouse = dialect_name == CLICKHOUSE_DIALECT
    columns = [
        Column("series_id", String(64), nullable=False),
        Column("target_table", String(255), nullable=False),
        Column("state", String(16), nullable=False),
        Column("rows_loaded", Integer, nullable=False),
        Column("error", ch_types.Nullable(ch_types.String) if is_clickhouse else Text, nullable=True),
        Column("started_at", DateTime, nullable=False),
        Column("finished_at", DateTime, nullable=False),
    ]
    if is_clickhouse:
        return ClickHouseTable(
            table, metadata, *columns, engines.MergeTree(order_by=("started_at",)), schema=schema
        )
    return Table(table, metadata, *columns, schema=schema)


def record_load_run(engine: Engine, run_table: str, record: LoadRunRecord) -> bool:
    """Append ``record`` to ``run_table``, creating it when needed; best-effort, never raises."""
    metadata = MetaData()
    table = _run_log_table(run_table, metadata, engine.dialect.name)
    try:
        with engine.begin() as conn:
            table.create(conn, checkfirst=True)
            conn.execute(insert(table), [asdict(record)])
    except SINK_ERRORS as exc:
        logger.warning("Failed to write load run log: %s", exc)
        return False
    logger.info(f"Recorded {record.state} run for '{record.series_id}' in '{run_table}'")
    return True
