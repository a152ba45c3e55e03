"""Date normalization rules applied before rows reach the sink."""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

OBSERVATION_DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# ClickHouse Date starts at 1970-01-01, Date32 at 1900-01-01.
CLICKHOUSE_MIN_DATE = date(1970, 1, 1)
CLICKHOUSE_DATE32_MIN = date(1900, 1, 1)


class DateFloorPolicy(str, enum.Enum):
    """How observations dated before the sink's floor are treated."""

    DROP = "drop"
    KEEP = "keep"


@dataclass(frozen=True)
class DateRules:
    """
    Sentinel and floor applied to every observation of a single load.

    ``floor`` dates are skipped quietly; ``earliest`` is the oldest date the
    date column can hold, and anything older must fail the load.
    """

    policy: DateFloorPolicy
    missing_date: date
    floor: Optional[date]
    earliest: date
    wide_dates: bool = False

    def resolve(self, raw: str) -> tuple[date, bool]:
        """Return the normalized date and whether the sentinel was substituted."""
        parsed = parse_observation_date(raw)
        if parsed is None:
            return self.missing_date, True
        return parsed, False

    def below_floor(self, value: date) -> bool:
        return self.floor is not None and value < self.floor

    def representable(self, value: date) -> bool:
        return value >= self.earliest


DROP_RULES = DateRules(
    policy=DateFloorPolicy.DROP,
    missing_date=date(1969, 1, 1),
    floor=CLICKHOUSE_MIN_DATE,
    earliest=CLICKHOUSE_MIN_DATE,
)
KEEP_RULES = DateRules(
    policy=DateFloorPolicy.KEEP,
    missing_date=CLICKHOUSE_DATE32_MIN,
    floor=None,
    earliest=CLICKHOUSE_DATE32_MIN,
    wide_dates=True,
)


def rules_for(policy: DateFloorPolicy | str) -> DateRules:
    """Look up the DateRules for a policy name or member."""
    policy = DateFloorPolicy(policy)
    if policy is DateFloorPolicy.KEEP:
        return KEEP_RULES
    return DROP_RULES


def parse_observation_date(value: object) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning None when it does not match."""
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, OBSERVATION_DATE_FORMAT).date()
    except ValueError:
        return None


def format_observation_date(value: date) -> str:
    return value.isoformat()


def split_table(identifier: str) -> tuple[str | None, str]:
    """Split a possibly schema-qualified table name."""
    if "." in identifier:
        schema, table = identifier.split(".", 1)
        return schema, table
    return None, identifier


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)
