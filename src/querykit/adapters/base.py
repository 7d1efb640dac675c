"""
Adapter protocol and connection configuration for querykit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, parse_dsn
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


class ConnectionNotConfiguredError(AdapterConfigurationError):
    """Raised when no connection is registered under the requested name."""


@dataclass
class SSLConfig:
    mode: str | None = None
    rootcert: str | None = None
    cert: str | None = None
    key: str | None = None
    ca: str | None = None
    check_hostname: bool | None = None

    def postgres_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.mode:
            options["sslmode"] = self.mode
        if self.rootcert:
            options["sslrootcert"] = self.rootcert
        if self.cert:
            options["sslcert"] = self.cert
        if self.key:
            options["sslkey"] = self.key
        return options

    def mysql_options(self) -> dict[str, Any]:
        ssl = {
            key: value
            for key, value in (
                ("ca", self.ca),
                ("cert", self.cert),
                ("key", self.key),
                ("check_hostname", self.check_hostname),
            )
            if value is not None
        }
        return {"ssl": ssl} if ssl else {}


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_SSL_KEYS = {
    "sslmode": "mode",
    "sslrootcert": "rootcert",
    "sslcert": "cert",
    "sslkey": "key",
    "ssl_ca": "ca",
    "ssl_cert": "cert",
    "ssl_key": "key",
}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: str, *, key: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as exc:
        raise AdapterConfigurationError(
            f"Invalid {kind.__name__} value for '{key}': {value!r}"
        ) from exc


def _parse_ssl(query: dict[str, str]) -> SSLConfig | None:
    ssl = SSLConfig()
    found = False
    for key, attribute in _SSL_KEYS.items():
        if key in query:
            setattr(ssl, attribute, query.pop(key))
            found = True
    if "ssl_check_hostname" in query:
        ssl.check_hostname = _parse_bool(query.pop("ssl_check_hostname"), key="ssl_check_hostname")
        found = True
    return ssl if found else None


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.

    ``autocommit``, ``timeout`` and the SSL keys are lifted out of the DSN
    query string; whatever remains is passed to the driver as ``options``.
    """

    url: str
    autocommit: bool = True
    timeout: float | None = None
    options: dict[str, Any] | None = None
    ssl: SSLConfig | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        autocommit = kwargs.pop("autocommit", None)
        if "autocommit" in query:
            parsed_autocommit = _parse_bool(query.pop("autocommit"), key="autocommit")
            autocommit = parsed_autocommit if autocommit is None else autocommit
        timeout = kwargs.pop("timeout", None)
        if "timeout" in query:
            parsed_timeout = _parse_number(query.pop("timeout"), key="timeout", kind=float)
            timeout = parsed_timeout if timeout is None else timeout
        ssl = kwargs.pop("ssl", None) or _parse_ssl(query)

        options: dict[str, Any] = {}
        for key, value in query.items():
            if key == "connect_timeout":
                options[key] = _parse_number(value, key=key, kind=int)
            else:
                options[key] = value
        options.update(kwargs.pop("options", None) or {})

        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=True if autocommit is None else autocommit,
            timeout=timeout,
            options=options or None,
            ssl=ssl,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    @property
    def scheme(self) -> str:
        if self.dsn:
            return self.dsn.driver.lower()
        return self.url.split(":", 1)[0].lower()

    def redacted_dsn(self) -> str:
        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


def count_format_placeholders(sql: str) -> int:
    """
    Count ``%s`` placeholders, skipping escaped ``%%``.
    """
    count = 0
    idx = 0
    while idx < len(sql) - 1:
        if sql[idx] == "%" and sql[idx + 1] == "s":
            count += 1
            idx += 2
            continue
        if sql[idx] == "%" and sql[idx + 1] == "%":
            idx += 2
            continue
        idx += 1
    return count


def validate_format_params(sql: str, params: Sequence[Any]) -> None:
    placeholder_count = count_format_placeholders(sql)
    if placeholder_count != len(params):
        raise AdapterExecutionError(
            f"Parameter count mismatch: expected {placeholder_count}, received {len(params)}."
        )


class DatabaseAdapter(Protocol):
    """
    Adapter interface used by statements to reach a DB-API driver.
    """

    dialect: Dialect
    slow_query_ms: int

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute a single SQL statement returning a cursor-like object.
        """


@dataclass
class DriverConnection:
    connection: Any
    config: ConnectionConfig
    driver: Any


class DBAPIAdapter:
    """
    Execution path shared by the DB-API 2.0 backed adapters.

    A backend supplies :meth:`connect`, which opens a driver connection and
    registers it with :meth:`_attach`. Parameter checks, slow-query timing,
    redacted logging and driver error wrapping all happen in :meth:`execute`.
    """

    backend: str = "dbapi"
    display_name: str = "Database"
    dialect: Dialect

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self._state: DriverConnection | None = None
        self.logger = get_logger(f"adapters.{self.backend}")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        raise NotImplementedError

    def _attach(self, connection: Any, config: ConnectionConfig, driver: Any) -> Any:
        self._state = DriverConnection(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _is_closed(self, connection: Any) -> bool:
        return False

    def _ensure_connection(self) -> Any:
        if not self._state:
            raise AdapterConnectionError(f"{type(self).__name__} is not connected.")
        connection = self._state.connection
        if self._is_closed(connection):
            self.logger.warning("%s connection closed; reconnecting.", self.display_name)
            connection = self.connect(self._state.config)
        return connection

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        connection = self._ensure_connection()
        params = tuple(params or ())
        if self.dialect.param_style in ("format", "pyformat"):
            validate_format_params(sql, params)
        cursor = connection.cursor()
        try:
            with time_call(
                f"{self.backend}.execute",
                self.logger,
                sql=sql,
                params=redact_params(params),
                threshold_ms=self.slow_query_ms,
            ):
                cursor.execute(sql, params)
        except self._state.driver.Error as exc:
            raise AdapterExecutionError(
                f"{self.display_name} failed to execute statement: {exc}"
            ) from exc
        return cursor
