"""
MySQL adapter over PyMySQL, or mysqlclient when PyMySQL is absent.
"""

from __future__ import annotations

from typing import Any

from ..dialects.mysql import MySQLDialect
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig, DBAPIAdapter


def _load_driver():
    try:
        import pymysql  # type: ignore[import-untyped]
    except ImportError:
        try:
            import MySQLdb
        except ImportError:
            return None
        return MySQLdb
    return pymysql


class MySQLAdapter(DBAPIAdapter):
    backend = "mysql"
    display_name = "MySQL"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = MySQLDialect()
        super().__init__(slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("Install querykit[mysql] (PyMySQL) to use MySQLAdapter.")
        dsn = config.dsn
        if dsn is None:
            raise AdapterConfigurationError("MySQLAdapter needs a ConnectionConfig built from a DSN.")

        kwargs: dict[str, Any] = {
            "host": dsn.host or "localhost",
            "user": dsn.username,
            "password": dsn.password,
            "database": dsn.database,
        }
        if dsn.port:
            kwargs["port"] = dsn.port
        if config.ssl:
            kwargs.update(config.ssl.mysql_options())
        if config.timeout:
            kwargs["connect_timeout"] = int(config.timeout)
        kwargs.update(config.options or {})

        self.logger.info("Connecting to MySQL %s", config.descriptive_label())
        try:
            connection = driver.connect(**kwargs)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to MySQL.") from exc
        if hasattr(connection, "autocommit"):
            connection.autocommit(config.autocommit)
        return self._attach(connection, config, driver)

    def _is_closed(self, connection: Any) -> bool:
        # PyMySQL and mysqlclient both expose ``open``
        return getattr(connection, "open", True) is False
