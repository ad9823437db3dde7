"""Tests for the SQLite execution sink and schema export."""
import sqlite3

import pytest

from querygpt.adapters import (
    DatabaseConnectionError,
    QueryExecutionError,
    SQLiteAdapter,
    create_sqlite_adapter,
)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "demo.db"
    conn = sqlite3.connect(path)
    conn.executescript("""
        CREATE TABLE trips (trip_id TEXT, city TEXT, fare_amount REAL);
        CREATE TABLE drivers (driver_id TEXT, name TEXT);
        CREATE TABLE schema_migrations (version TEXT);
        INSERT INTO trips VALUES ('t1', 'Seattle', 12.5), ('t2', 'Seattle', 8.0), ('t3', 'Austin', 20.0);
    """)
    conn.commit()
    conn.close()
    return str(path)


def test_run_returns_columns_and_rows(db_path):
    with SQLiteAdapter(db_path) as adapter:
        result = adapter.run("SELECT city, count(*) AS trips FROM trips GROUP BY city ORDER BY city")
    assert result == {"columns": ["city", "trips"], "rows": [["Austin", 1], ["Seattle", 2]]}


def test_run_sanitizes_model_output(db_path):
    adapter = create_sqlite_adapter(db_path)
    raw = "```sql\nSQL: SELECT count(*) AS n FROM trips\n```\nExplanation: counts trips"
    assert adapter.run(raw)["rows"] == [[3]]
    adapter.disconnect()
    assert not adapter.is_connected


def test_run_failure_raises_execution_error(db_path):
    with SQLiteAdapter(db_path) as adapter:
        with pytest.raises(QueryExecutionError):
            adapter.run("SELECT nope FROM missing_table")


def test_missing_database_file(tmp_path):
    with pytest.raises(DatabaseConnectionError):
        SQLiteAdapter(str(tmp_path / "absent.db")).connect()


def test_export_catalog_applies_default_excludes(db_path):
    with SQLiteAdapter(db_path) as adapter:
        data = adapter.export_catalog("Demo", "Demo tables")

    workspace = data["workspaces"][0]
    assert workspace["name"] == "Demo"
    assert workspace["table_ids"] == ["drivers", "trips"]
    assert workspace["sql_example_ids"] == []
    trips = next(s for s in data["schemas"] if s["table_id"] == "trips")
    assert [c["name"] for c in trips["columns"]] == ["trip_id", "city", "fare_amount"]
    assert trips["columns"][2]["type"] == "REAL"
    assert data["examples"] == []


def test_export_catalog_include_wins_over_exclude(db_path):
    with SQLiteAdapter(db_path) as adapter:
        data = adapter.export_catalog("Demo", "", include_tables=["trips", "absent"], exclude_tables=["trips"])
    assert data["workspaces"][0]["table_ids"] == ["trips"]
