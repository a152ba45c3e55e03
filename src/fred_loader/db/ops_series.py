"""Load decoded FRED observations into a freshly created series table."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Table
from sqlalchemy.engine import Engine

from fred_loader.db.utils import DROP_RULES, DateRules, format_observation_date
from fred_loader.db.writer import TableWriter
from fred_loader.errors import LoadCancelledError, WriteError
from fred_loader.models import MISSING_VALUE_TOKEN, Observation, SeriesResponse
from fred_loader.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_series")


@dataclass
class LoadStats:
    """Counters for one load."""

    rows_loaded: int = 0
    dropped_below_floor: int = 0
    substituted_dates: int = 0
    missing_values: int = 0


def serialize_row(series_id: str, obs_date: date, raw_value: Any) -> Dict[str, Any]:
    """
    Build the ``(seriesId, date, value)`` row for one observation.

    The value is passed through untouched except FRED's missing token,
    which becomes NULL.
    """
    if not isinstance(raw_value, str) or not raw_value.strip():
        raise WriteError(f"cannot serialize value {raw_value!r} for {series_id} on {obs_date}")
    return {
        "seriesId": series_id,
        "date": obs_date,
        "value": None if raw_value.strip() == MISSING_VALUE_TOKEN else raw_value,
    }


def format_row_literal(row: Dict[str, Any]) -> str:
    """Render a row as ``'SERIES','YYYY-MM-DD',value`` for log output."""
    series_id = str(row["seriesId"]).replace("'", "\\'")
    value = "NULL" if row["value"] is None else row["value"]
    return f"'{series_id}','{format_observation_date(row['date'])}',{value}"


def iter_rows(
    observations: list[Observation],
    series_id: str,
    rules: DateRules,
    stats: LoadStats,
) -> Iterator[Dict[str, Any]]:
    """Yield serialized rows in API order, applying the date rules to each observation."""
    for obs in observations:
        obs_date, substituted = rules.resolve(obs.date)
        if substituted:
            stats.substituted_dates += 1
            logger.debug(f"Unparseable date {obs.date!r}; using {obs_date.isoformat()}")
        if rules.below_floor(obs_date):
            stats.dropped_below_floor += 1
            logger.debug(f"Skipping {series_id} observation dated {obs_date.isoformat()} (floor {rules.floor})")
            continue
        if not rules.representable(obs_date):
            raise WriteError(
                f"{series_id} observation dated {obs_date.isoformat()} is older than "
                f"{rules.earliest.isoformat()}, the earliest date the table can store"
            )
        if obs.is_missing:
            stats.missing_values += 1
        yield serialize_row(series_id, obs_date, obs.value)


def load_series(
    response: SeriesResponse,
    series_id: str,
    table: Table,
    engine: Engine,
    *,
    rules: DateRules = DROP_RULES,
    cancel_event: Optional[threading.Event] = None,
) -> LoadStats:
    """
    Stream every observation of ``response`` into ``table`` and insert them in one batch.

    Raises WriteError if a row cannot be buffered and CommitError if the
    final insert fails; in both cases no rows become visible.
    """
    stats = LoadStats()
    logger.info(
        f"Loading {len(response.observations)} observations of '{series_id}' into "
        f"'{table.fullname}' (date policy={rules.policy.value})"
    )
    with TableWriter(table, engine) as writer:
        for row in iter_rows(response.observations, series_id, rules, stats):
            writer.write(row)
            stats.rows_loaded += 1
            logger.debug(format_row_literal(row))

        if cancel_event is not None and cancel_event.is_set():
            raise LoadCancelledError(f"load of {series_id} into {table.fullname} cancelled before insert")
        writer.insert()

    if stats.substituted_dates:
        logger.warning(f"{stats.substituted_dates} observations had unparseable dates")
    if stats.dropped_below_floor:
        logger.warning(f"{stats.dropped_below_floor} observations fell before {rules.floor} and were skipped")
    logger.info(
        f"Loaded {stats.rows_loaded} rows for '{series_id}' "
        f"({stats.missing_values} with missing values)"
    )
    return stats
