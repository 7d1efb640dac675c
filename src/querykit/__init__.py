"""
querykit public package initialization.

Builds parameterized SQL for SQLite, PostgreSQL, MySQL and SQL Server from a
fluent, dialect-agnostic query object.
"""

from .errors import (  # noqa: F401
    InvalidJoinShorthandError,
    InvalidJoinTypeError,
    InvalidOperatorError,
    InvalidSortDirectionError,
    InvalidValueError,
    MissingAliasError,
    MissingTableError,
    MissingUpdatePayloadError,
    QueryError,
    UnknownActionError,
)
from .query import (  # noqa: F401
    ASC,
    DESC,
    Action,
    Condition,
    Join,
    JoinType,
    Operator,
    Query,
    Quote,
    Statement,
)
from .dialects import (  # noqa: F401
    MSSQLDialect,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
)
from .adapters import ConnectionConfig, ConnectionNotConfiguredError  # noqa: F401
from .connections import ConnectionRegistry, registry  # noqa: F401

__all__ = [
    "Query",
    "Condition",
    "Join",
    "JoinType",
    "Statement",
    "Action",
    "Operator",
    "Quote",
    "ASC",
    "DESC",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "MSSQLDialect",
    "ConnectionConfig",
    "ConnectionRegistry",
    "registry",
    "QueryError",
    "InvalidOperatorError",
    "InvalidValueError",
    "MissingTableError",
    "MissingAliasError",
    "MissingUpdatePayloadError",
    "UnknownActionError",
    "InvalidSortDirectionError",
    "InvalidJoinShorthandError",
    "InvalidJoinTypeError",
    "ConnectionNotConfiguredError",
]
