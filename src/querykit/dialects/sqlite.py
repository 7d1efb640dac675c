"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .base import DialectCapabilities, format_dotted

if TYPE_CHECKING:
    from ..query.statement import Statement


class SQLiteDialect:
    """
    SQLite dialect using qmark param style and minimal capabilities.
    """

    name: Final[str] = "sqlite"
    param_style: Final[str] = "qmark"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_ilike=False,
        limit_requires_resolved_identifiers=False,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_identifier(self, name: str) -> str:
        return format_dotted(name, self.quote_identifier)

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset:
            if limit is None:
                parts.append("LIMIT -1")
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)

    def apply_limit(self, statement: "Statement", offset: int, limit: int) -> "Statement":
        clause = self.limit_clause(limit, offset)
        if clause:
            statement.append(f" {clause}")
        return statement

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"
