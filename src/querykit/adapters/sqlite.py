"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3

from ..dialects.sqlite import SQLiteDialect
from .base import AdapterConnectionError, ConnectionConfig, DBAPIAdapter


class SQLiteAdapter(DBAPIAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.
    """

    backend = "sqlite"
    display_name = "SQLite"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = SQLiteDialect()
        super().__init__(slow_query_ms)

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._database_path(config)
        timeout = config.timeout if config.timeout is not None else 5.0

        self.logger.info("Opening SQLite database %s", config.descriptive_label())
        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None if config.autocommit else "",
                timeout=timeout,
                detect_types=sqlite3.PARSE_DECLTYPES,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database {path!r}.") from exc
        connection.row_factory = sqlite3.Row
        return self._attach(connection, config, sqlite3)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._ensure_connection()

    @staticmethod
    def _database_path(config: ConnectionConfig) -> str:
        if config.dsn is not None:
            return config.dsn.database or ":memory:"
        url = config.url
        if url in ("sqlite://", "sqlite:///:memory:"):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :].split("?", 1)[0]
        return url
