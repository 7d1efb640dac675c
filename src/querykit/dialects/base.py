"""
Dialect strategy interfaces describing SQL rendering behaviors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from ..query.statement import Statement


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_ilike: bool = False
    limit_requires_resolved_identifiers: bool = False


class Dialect(Protocol):
    """
    Strategy interface consumed by statements, queries and adapters.
    """

    @property
    def name(self) -> str: ...

    @property
    def param_style(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_identifier(self, name: str) -> str: ...

    def apply_limit(self, statement: "Statement", offset: int, limit: int) -> "Statement": ...

    def parameter_placeholder(self, position: int | None = None) -> str: ...


def format_dotted(name: str, quote: Callable[[str], str]) -> str:
    """
    Quote every segment of ``db.table.column``; a trailing ``*`` stays bare.
    """
    return ".".join(segment if segment == "*" else quote(segment) for segment in name.split("."))
