"""
Named database connections, connected lazily on first use.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union
from urllib.parse import quote, urlencode

from ..adapters.base import (
    AdapterConfigurationError,
    ConnectionConfig,
    ConnectionNotConfiguredError,
    DatabaseAdapter,
)
from ..adapters.mysql import MySQLAdapter
from ..adapters.postgres import PostgresAdapter
from ..adapters.sqlite import SQLiteAdapter
from ..utils import get_logger

AdapterFactory = Callable[[], DatabaseAdapter]
ConnectionSource = Union[ConnectionConfig, str, Mapping[str, Any]]

_PRIVATE_PARAMETERS = {"password"}
_DSN_KEYS = {"driver", "host", "port", "user", "password", "dbname"}


class ConnectionProvider(Protocol):
    def get_connection(self, name: str | None = None) -> Optional[DatabaseAdapter]: ...


class ConnectionRegistry:
    """
    Thread-safe map of connection names to adapters.

    A connection is described by a DSN, a :class:`ConnectionConfig` or a
    parameter mapping (``driver``, ``host``, ``port``, ``user``,
    ``password``, ``dbname`` plus driver options). Nothing connects until
    the connection is first requested.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._parameters: Dict[str, Dict[str, Any]] = {}
        self._configs: Dict[str, ConnectionConfig] = {}
        self._connections: Dict[str, DatabaseAdapter] = {}
        self._factories: Dict[str, AdapterFactory] = {
            "sqlite": SQLiteAdapter,
            "postgres": PostgresAdapter,
            "postgresql": PostgresAdapter,
            "mysql": MySQLAdapter,
        }
        self.logger = get_logger("connections.registry")

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def register_adapter(self, scheme: str, factory: AdapterFactory) -> None:
        with self._lock:
            self._factories[scheme.lower()] = factory

    def add_connection(self, name: str, source: ConnectionSource) -> None:
        """
        Register (or replace) connection ``name``. An open connection under
        the same name is closed.
        """
        if isinstance(source, str):
            source = ConnectionConfig.from_dsn(source)
        if isinstance(source, ConnectionConfig):
            parameters = source.dsn.parameters() if source.dsn else {"driver": source.scheme}
            config: ConnectionConfig | None = source
        else:
            parameters = dict(source)
            config = None

        with self._lock:
            self._close(name)
            self._parameters[name] = parameters
            if config is None:
                self._configs.pop(name, None)
            else:
                self._configs[name] = config
        self.logger.debug("Registered connection %s (%s)", name, parameters.get("driver"))

    def get_parameters(self, name: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._require(name))

    def get_parameter(self, name: str, key: str) -> Any:
        if key in _PRIVATE_PARAMETERS:
            raise AdapterConfigurationError(f"Connection parameter {key!r} is private.")
        with self._lock:
            return self._require(name).get(key)

    def set_parameter(self, name: str, key: str, value: Any) -> None:
        """
        Change one parameter. Takes effect on the next (re)connect.
        """
        with self._lock:
            self._require(name)[key] = value
            self._configs.pop(name, None)

    def get_connection_names(self) -> List[str]:
        with self._lock:
            return list(self._parameters)

    # ------------------------------------------------------------------ #
    # Connections
    # ------------------------------------------------------------------ #
    def get_connection(self, name: str | None = None) -> Optional[DatabaseAdapter]:
        """
        Return the connected adapter for ``name``, or for the first
        registered connection when no name is given.
        """
        with self._lock:
            if name is None:
                if not self._parameters:
                    return None
                name = next(iter(self._parameters))
            return self._connect(name)

    def get_connections(self) -> Dict[str, DatabaseAdapter]:
        with self._lock:
            return {name: self._connect(name) for name in self._parameters}

    def disconnect(self, name: str) -> None:
        with self._lock:
            self._close(name)

    def clear_connections(self) -> None:
        with self._lock:
            for name in list(self._connections):
                self._close(name)
            self._parameters.clear()
            self._configs.clear()

    # ------------------------------------------------------------------ #
    def _require(self, name: str) -> Dict[str, Any]:
        try:
            return self._parameters[name]
        except KeyError:
            raise ConnectionNotConfiguredError(
                f"Configuration for connection {name!r} not loaded."
            ) from None

    def _connect(self, name: str) -> DatabaseAdapter:
        adapter = self._connections.get(name)
        if adapter is not None:
            return adapter

        parameters = self._require(name)
        config = self._configs.get(name) or self._config_from_parameters(parameters)
        try:
            factory = self._factories[config.scheme]
        except KeyError:
            raise AdapterConfigurationError(
                f"No adapter registered for scheme {config.scheme!r}."
            ) from None

        adapter = factory()
        adapter.connect(config)
        self._configs[name] = config
        self._connections[name] = adapter
        self.logger.info("Connected %s to %s", name, config.descriptive_label())
        return adapter

    def _close(self, name: str) -> None:
        adapter = self._connections.pop(name, None)
        if adapter is not None:
            adapter.close()
            self.logger.info("Disconnected %s", name)

    @staticmethod
    def _config_from_parameters(parameters: Mapping[str, Any]) -> ConnectionConfig:
        driver = parameters.get("driver")
        if not driver:
            raise AdapterConfigurationError("Connection parameters must include a driver.")

        netloc = ""
        if parameters.get("user"):
            netloc += quote(str(parameters["user"]), safe="")
            if parameters.get("password"):
                netloc += ":" + quote(str(parameters["password"]), safe="")
            netloc += "@"
        if parameters.get("host"):
            netloc += str(parameters["host"])
        if parameters.get("port"):
            netloc += f":{parameters['port']}"

        url = f"{driver}://{netloc}/{parameters.get('dbname') or ''}"
        extra = {
            key: str(value)
            for key, value in parameters.items()
            if key not in _DSN_KEYS and value is not None
        }
        if extra:
            url += "?" + urlencode(extra)
        return ConnectionConfig.from_dsn(url)


registry = ConnectionRegistry()
