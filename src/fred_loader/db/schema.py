"""Table definition for a single FRED series and its (re)creation at the sink."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from clickhouse_sqlalchemy import Table as ClickHouseTable
from clickhouse_sqlalchemy import engines
from clickhouse_sqlalchemy import types as ch_types
from sqlalchemy import Column, Date, Float, Index, MetaData, String, Table
from sqlalchemy.engine import Engine

from fred_loader.db.session import SINK_ERRORS
from fred_loader.db.utils import split_table
from fred_loader.errors import SchemaError
from fred_loader.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="schema")

CLICKHOUSE_DIALECT = "clickhouse"
COLUMN_KINDS = ("string", "date", "date32", "float32")


@dataclass(frozen=True)
class ColumnSpec:
    """One column of the destination table."""

    name: str
    kind: str
    description: str = ""


@dataclass(frozen=True)
class TableSchema:
    """Ordered column layout for a series table, keyed by ``order_by``."""

    series_id: str
    columns: Tuple[ColumnSpec, ...]
    order_by: str = "date"

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def check(self) -> None:
        """Validate the column definitions; raise SchemaError when the sink would reject them."""
        if not self.columns:
            raise SchemaError("table schema has no columns")
        seen = set()
        for col in self.columns:
            if not col.name:
                raise SchemaError("column with an empty name")
            if col.name in seen:
                raise SchemaError(f"duplicate column '{col.name}'")
            if col.kind not in COLUMN_KINDS:
                raise SchemaError(f"column '{col.name}' has unsupported type '{col.kind}'")
            seen.add(col.name)
        if self.order_by not in seen:
            raise SchemaError(f"order-by column '{self.order_by}' is not defined")

    def to_table(self, name: str, metadata: MetaData, dialect_name: str) -> Table:
        """Render the schema as a SQLAlchemy Table for ``dialect_name``."""
        schema, table_name = split_table(name)
        is_clickhouse = dialect_name == CLICKHOUSE_DIALECT
        columns = [
            Column(col.name, _column_type(col.kind, is_clickhouse), comment=col.description or None)
            for col in self.columns
        ]
        if is_clickhouse:
            return ClickHouseTable(
                table_name,
                metadata,
                *columns,
                engines.MergeTree(order_by=(self.order_by,)),
                schema=schema,
            )
        index = Index(f"ix_{table_name}_{self.order_by}", self.order_by)
        return Table(table_name, metadata, *columns, index, schema=schema)


def _column_type(kind: str, is_clickhouse: bool):
    if is_clickhouse:
        return {
            "string": ch_types.String,
            "date": ch_types.Date,
            "date32": ch_types.Date32,
            "float32": ch_types.Nullable(ch_types.Float32),
        }[kind]
    return {
        "string": String(64),
        "date": Date,
        "date32": Date,
        "float32": Float(precision=24),
    }[kind]


def build_schema(series_id: str, *, wide_dates: bool = False) -> TableSchema:
    """
    Three-column layout for ``series_id``; only the descriptions depend on it.

    ``wide_dates`` stores the date column as ClickHouse ``Date32`` so dates
    back to 1900-01-01 fit.
    """
    return TableSchema(
        series_id=series_id,
        columns=(
            ColumnSpec("seriesId", "string", "Fred II series ID"),
            ColumnSpec("date", "date32" if wide_dates else "date", "date of metric value"),
            ColumnSpec("value", "float32", f"metric value for series {series_id}"),
        ),
        order_by="date",
    )


def materialize(schema: TableSchema, table: str, engine: Engine) -> Table:
    """
    Drop ``table`` if it exists and create it from ``schema``.

    Destructive: any rows already in ``table`` are gone once this returns.
    """
    schema.check()
    metadata = MetaData()
    try:
        sa_table = schema.to_table(table, metadata, engine.dialect.name)
    except (KeyError, ValueError, TypeError) as exc:
        raise SchemaError(f"invalid column definitions for table {table}: {exc}") from exc

    logger.info(f"Recreating table '{table}' for series '{schema.series_id}'")
    try:
        with engine.begin() as conn:
            sa_table.drop(conn, checkfirst=True)
            sa_table.create(conn)
    except SINK_ERRORS as exc:
        logger.error(f"Could not create table '{table}': {exc}")
        raise SchemaError(f"could not create table {table}: {exc}") from exc
    return sa_table


__all__ = ["ColumnSpec", "TableSchema", "build_schema", "materialize"]
