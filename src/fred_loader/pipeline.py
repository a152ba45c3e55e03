"""Fetch -> recreate table -> load, for one FRED series."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.engine import Engine

from fred_loader.clients.fred_client import (
    DEFAULT_TIMEOUT,
    FRED_OBSERVATIONS_URL,
    FredClient,
    FredClientConfig,
)
from fred_loader.db.ops_series import LoadStats, load_series
from fred_loader.db.schema import build_schema, materialize
from fred_loader.db.session import build_dsn, redact_dsn, sink_engine
from fred_loader.db.utils import DateFloorPolicy, rules_for, utcnow
from fred_loader.errors import ConfigError, FredLoadError
from fred_loader.utils.load_run_logger import LoadRunRecord, record_load_run
from fred_loader.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="pipeline")


@dataclass
class PipelineConfig:
    """Everything one run needs; ``dsn`` defaults to ``build_dsn()``."""

    series_id: str
    table: str
    api_key: str
    dsn: Optional[str] = None
    base_url: str = FRED_OBSERVATIONS_URL
    timeout_seconds: float = DEFAULT_TIMEOUT
    floor_policy: DateFloorPolicy = DateFloorPolicy.DROP
    run_log_table: Optional[str] = None

    def validate(self) -> None:
        missing = [name for name in ("series_id", "table", "api_key") if not getattr(self, name)]
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")


@dataclass
class PipelineResult:
    series_id: str
    table: str
    stats: LoadStats
    elapsed_seconds: float

    @property
    def rows_loaded(self) -> int:
        return self.stats.rows_loaded

    def elapsed_text(self) -> str:
        total = int(self.elapsed_seconds)
        return f"elapsed time: {total // 60} minutes {total % 60} seconds"


def run_pipeline(
    config: PipelineConfig,
    *,
    client: Optional[FredClient] = None,
    engine: Optional[Engine] = None,
    cancel_event: Optional[threading.Event] = None,
) -> PipelineResult:
    """
    Run one load end to end.

    The table is only touched after a non-empty response has been decoded,
    so a failed or empty fetch leaves any previous table in place. Any
    FredLoadError propagates after the run log (if configured) is written.
    """
    config.validate()
    rules = rules_for(config.floor_policy)
    client = client or FredClient(
        FredClientConfig(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
        )
    )
    dsn = config.dsn or (None if engine is not None else build_dsn())
    if dsn:
        logger.info(f"Using sink {redact_dsn(dsn)}")

    started_at = utcnow()
    start = time.monotonic()
    with sink_engine(dsn, engine=engine) as sink:
        try:
            response = client.fetch_series(config.series_id, config.api_key, cancel_event=cancel_event)
            schema = build_schema(config.series_id, wide_dates=rules.wide_dates)
            table = materialize(schema, config.table, sink)
            stats = load_series(
                response,
                config.series_id,
                table,
                sink,
                rules=rules,
                cancel_event=cancel_event,
            )
        except FredLoadError as exc:
            logger.error(f"{exc.stage} stage failed for '{config.series_id}': {exc}")
            _record_run(sink, config, started_at, state="failed", error=str(exc))
            raise

        _record_run(sink, config, started_at, state="success", rows_loaded=stats.rows_loaded)

    return PipelineResult(
        series_id=config.series_id,
        table=config.table,
        stats=stats,
        elapsed_seconds=time.monotonic() - start,
    )


def _record_run(
    sink: Engine,
    config: PipelineConfig,
    started_at: datetime,
    *,
    state: str,
    rows_loaded: int = 0,
    error: Optional[str] = None,
) -> None:
    if not config.run_log_table:
        return
    record_load_run(
        sink,
        config.run_log_table,
        LoadRunRecord(
            series_id=config.series_id,
            target_table=config.table,
            state=state,
            rows_loaded=rows_loaded,
            error=error,
            started_at=started_at,
            finished_at=utcnow(),
        ),
    )
