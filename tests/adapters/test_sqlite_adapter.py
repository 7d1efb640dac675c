import logging
import sqlite3

import pytest

from querykit.adapters import AdapterConnectionError, AdapterExecutionError, ConnectionConfig, SQLiteAdapter


@pytest.fixture
def adapter(tmp_path):
    adapter = SQLiteAdapter()
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'test.db'}")
    adapter.connect(config)
    yield adapter
    adapter.close()


def test_connect_creates_database(tmp_path):
    adapter = SQLiteAdapter()
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'connect.db'}")
    connection = adapter.connect(config)
    assert isinstance(connection, sqlite3.Connection)
    assert (tmp_path / "connect.db").exists()
    adapter.close()


def test_execute_binds_parameters(adapter):
    adapter.execute("CREATE TABLE example (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    adapter.execute("INSERT INTO example (name) VALUES (?)", ("Alice",))
    rows = adapter.execute("SELECT name FROM example WHERE id = ?", [1]).fetchall()
    assert rows[0]["name"] == "Alice"


def test_in_memory_database():
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url="sqlite:///:memory:"))
    adapter.execute("CREATE TABLE sample (value TEXT)")
    adapter.execute("INSERT INTO sample (value) VALUES (?)", ("hello",))
    row = adapter.execute("SELECT value FROM sample").fetchone()
    assert row[0] == "hello"
    adapter.close()


def test_execute_without_connection_raises():
    with pytest.raises(AdapterConnectionError):
        SQLiteAdapter().execute("SELECT 1")


def test_driver_errors_are_wrapped(adapter):
    with pytest.raises(AdapterExecutionError) as excinfo:
        adapter.execute("SELECT * FROM missing_table")
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


def test_execution_is_timed_with_redacted_params(adapter, caplog):
    caplog.set_level(logging.DEBUG, logger="querykit.adapters.sqlite")
    adapter.execute("SELECT ?, ?", ("password=hunter2", 7))
    records = [record for record in caplog.records if "sqlite.execute took" in record.message]
    assert records
    assert records[-1].params == ["***", 7]


def test_slow_query_threshold_override():
    assert SQLiteAdapter(slow_query_ms=5).slow_query_ms == 5


def test_qmark_statements_skip_format_placeholder_check(adapter):
    row = adapter.execute("SELECT '100%s' AS pct, ?", [1]).fetchone()
    assert tuple(row) == ("100%s", 1)
