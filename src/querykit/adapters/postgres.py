"""
psycopg-backed adapter for PostgreSQL.
"""

from __future__ import annotations

from typing import Any

from ..dialects.postgres import PostgresDialect
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig, DBAPIAdapter


def _load_driver():
    try:
        import psycopg
    except ImportError:
        return None
    return psycopg


def _driver_url(url: str) -> str:
    # psycopg rejects the short scheme; the query string is lifted into options
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    return url.split("?", 1)[0]


class PostgresAdapter(DBAPIAdapter):
    backend = "postgres"
    display_name = "PostgreSQL"

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        super().__init__(slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        psycopg = _load_driver()
        if psycopg is None:
            raise AdapterConfigurationError("Install querykit[postgres] (psycopg) to use PostgresAdapter.")

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.postgres_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info("Connecting to PostgreSQL %s", config.descriptive_label())
        try:
            connection = psycopg.connect(
                _driver_url(config.url), autocommit=bool(config.autocommit), **options
            )
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        return self._attach(connection, config, psycopg)

    def _is_closed(self, connection: Any) -> bool:
        return bool(getattr(connection, "closed", False))
