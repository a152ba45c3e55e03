import pytest
from clickhouse_sqlalchemy import types as ch_types
from sqlalchemy import MetaData, inspect, insert, select, text

from fred_loader.db.schema import ColumnSpec, TableSchema, build_schema, materialize
from fred_loader.errors import SchemaError


def test_build_schema_has_fixed_three_columns():
    schema = build_schema("UNRATE")
    assert schema.column_names == ["seriesId", "date", "value"]
    assert [c.kind for c in schema.columns] == ["string", "date", "float32"]
    assert schema.order_by == "date"


def test_build_schema_only_descriptions_depend_on_series():
    a, b = build_schema("UNRATE"), build_schema("GDP")
    assert a.column_names == b.column_names
    assert [c.kind for c in a.columns] == [c.kind for c in b.columns]
    assert a.columns[2].description == "metric value for series UNRATE"
    assert b.columns[2].description == "metric value for series GDP"


def test_check_rejects_unknown_type():
    schema = TableSchema(series_id="X", columns=(ColumnSpec("date", "date"), ColumnSpec("v", "decimal")))
    with pytest.raises(SchemaError):
        schema.check()


def test_check_rejects_duplicate_columns():
    schema = TableSchema(series_id="X", columns=(ColumnSpec("date", "date"), ColumnSpec("date", "string")))
    with pytest.raises(SchemaError):
        schema.check()


def test_check_requires_order_by_column():
    schema = TableSchema(series_id="X", columns=(ColumnSpec("value", "float32"),), order_by="date")
    with pytest.raises(SchemaError):
        schema.check()


def test_clickhouse_rendering_uses_native_types():
    table = build_schema("UNRATE").to_table("fred.unrate", MetaData(), "clickhouse")
    assert table.name == "unrate"
    assert table.schema == "fred"
    assert isinstance(table.c.value.type, ch_types.Nullable)
    assert [c.name for c in table.columns] == ["seriesId", "date", "value"]


def test_generic_rendering_indexes_date():
    table = build_schema("UNRATE").to_table("unrate", MetaData(), "sqlite")
    assert [list(ix.columns.keys()) for ix in table.indexes] == [["date"]]


def test_materialize_creates_table(sqlite_engine):
    materialize(build_schema("UNRATE"), "unrate", sqlite_engine)
    columns = [c["name"] for c in inspect(sqlite_engine).get_columns("unrate")]
    assert columns == ["seriesId", "date", "value"]


def test_materialize_replaces_existing_table(sqlite_engine):
    with sqlite_engine.begin() as conn:
        conn.execute(text("CREATE TABLE unrate (legacy TEXT)"))
        conn.execute(text("INSERT INTO unrate VALUES ('old')"))

    table = materialize(build_schema("UNRATE"), "unrate", sqlite_engine)

    columns = [c["name"] for c in inspect(sqlite_engine).get_columns("unrate")]
    assert columns == ["seriesId", "date", "value"]
    with sqlite_engine.connect() as conn:
        assert conn.execute(select(table)).all() == []


def test_materialize_twice_leaves_empty_table(sqlite_engine):
    schema = build_schema("UNRATE")
    table = materialize(schema, "unrate", sqlite_engine)
    with sqlite_engine.begin() as conn:
        conn.execute(insert(table), [{"seriesId": "UNRATE", "date": None, "value": 1.0}])

    table = materialize(schema, "unrate", sqlite_engine)
    with sqlite_engine.connect() as conn:
        assert conn.execute(select(table)).all() == []


def test_materialize_wraps_sink_failures(sqlite_engine):
    with pytest.raises(SchemaError):
        materialize(build_schema("UNRATE"), "nosuchdb.unrate", sqlite_engine)


def test_materialize_rejects_invalid_schema_before_touching_sink(sqlite_engine):
    bad = TableSchema(series_id="X", columns=(ColumnSpec("date", "timestamp"),))
    with pytest.raises(SchemaError):
        materialize(bad, "unrate", sqlite_engine)
    assert not inspect(sqlite_engine).has_table("unrate")


def test_materialize_wraps_unreachable_sink(unreachable_engine):
    with pytest.raises(SchemaError) as excinfo:
        materialize(build_schema("UNRATE"), "fred.unrate", unreachable_engine)
    assert excinfo.value.stage == "schema"
    assert "connection refused" in str(excinfo.value)


def test_wide_dates_render_as_date32_on_clickhouse():
    schema = build_schema("UNRATE", wide_dates=True)
    assert [c.kind for c in schema.columns] == ["string", "date32", "float32"]
    table = schema.to_table("fred.unrate", MetaData(), "clickhouse")
    assert isinstance(table.c.date.type, ch_types.Date32)


def test_default_dates_render_as_date_on_clickhouse():
    table = build_schema("UNRATE").to_table("fred.unrate", MetaData(), "clickhouse")
    assert type(table.c.date.type) is ch_types.Date
