"""
Driver adapters that execute rendered statements.

``SQLiteAdapter`` needs only the standard library; ``PostgresAdapter`` and
``MySQLAdapter`` import their drivers on first connect.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    ConnectionConfig,
    ConnectionNotConfiguredError,
    DatabaseAdapter,
    DBAPIAdapter,
    SSLConfig,
)
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

__all__ = [
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterError",
    "AdapterExecutionError",
    "ConnectionConfig",
    "ConnectionNotConfiguredError",
    "DBAPIAdapter",
    "DatabaseAdapter",
    "MySQLAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "SSLConfig",
]
