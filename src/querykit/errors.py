"""
Errors raised while building or rendering statements.
"""

from __future__ import annotations


class QueryError(RuntimeError):
    """Base error for statement construction failures."""


class InvalidOperatorError(QueryError, ValueError):
    """Raised when a comparison operator is not part of the operator catalog."""


class InvalidValueError(QueryError, ValueError):
    """Raised when a condition value does not fit its operator."""


class MissingTableError(QueryError):
    """Raised when rendering a query that has no table."""


class MissingAliasError(QueryError):
    """Raised when a nested query is used as a table without an alias."""


class MissingUpdatePayloadError(QueryError):
    """Raised when rendering an UPDATE without column values."""


class UnknownActionError(QueryError, ValueError):
    """Raised for actions other than SELECT, DELETE, UPDATE and COUNT."""


class InvalidSortDirectionError(QueryError, ValueError):
    """Raised when an ORDER BY direction is neither ASC nor DESC."""


class InvalidJoinShorthandError(QueryError, ValueError):
    """Raised when a join cannot be resolved to a table and an ON clause."""


class InvalidJoinTypeError(QueryError, ValueError):
    """Raised for unsupported join types."""
