"""
SQL Server dialect implementation.

SQL Server has no ``LIMIT``; paging is emulated with ``TOP`` or a
``ROW_NUMBER()`` wrapper. The wrapper moves the statement's ORDER BY into the
window clause, so identifiers must already be quoted into the text before
:meth:`MSSQLDialect.apply_limit` runs.
"""

from __future__ import annotations

from typing import Final

from ..errors import QueryError
from ..query.statement import Statement, Token, TokenKind
from .base import DialectCapabilities, format_dotted

_ORDER_BY = " ORDER BY "
_SELECT = "SELECT "
_SELECT_DISTINCT = "SELECT DISTINCT "
_ROW_NUMBER_ALIAS = "[__rownum]"


class MSSQLDialect:
    """
    SQL Server dialect using qmark placeholders (pyodbc style).
    """

    name: Final[str] = "mssql"
    param_style: Final[str] = "qmark"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_ilike=False,
        limit_requires_resolved_identifiers=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace("]", "]]")
        return f"[{escaped}]"

    def format_identifier(self, name: str) -> str:
        return format_dotted(name, self.quote_identifier)

    def apply_limit(self, statement: Statement, offset: int, limit: int) -> Statement:
        """
        Page a rendered SELECT.

        Without an offset the select list gets ``TOP n``. With one, rows are
        numbered by the statement's ORDER BY and filtered by position. A
        DISTINCT select is deduplicated in a derived table before numbering,
        so its ORDER BY may only name output columns.
        """
        if statement.identifiers:
            raise QueryError("Identifiers must be resolved before applying a SQL Server limit.")
        tokens = list(statement.tokens)
        if not tokens or tokens[0].kind is not TokenKind.TEXT or not tokens[0].value.startswith(_SELECT):
            raise QueryError("SQL Server paging is only supported for SELECT statements.")

        head = tokens[0].value
        distinct = head.startswith(_SELECT_DISTINCT)
        if not offset:
            keyword = _SELECT_DISTINCT if distinct else _SELECT
            tokens[0] = Token(TokenKind.TEXT, f"{keyword}TOP {limit} {head[len(keyword):]}")
            return Statement.from_tokens(tokens, dialect=statement.dialect)

        order_by = self._pop_order_by(tokens)
        window = f"ROW_NUMBER() OVER (ORDER BY {order_by or '(SELECT 0)'}) AS {_ROW_NUMBER_ALIAS}"
        if distinct:
            numbered = Statement.from_tokens(tokens, dialect=statement.dialect).wrap(
                f"SELECT {window}, [__d].* FROM (", ") AS [__d]"
            )
        else:
            rest = tokens[0].value[len(_SELECT):]
            tokens[0] = Token(TokenKind.TEXT, f"SELECT {window}, {rest}")
            numbered = Statement.from_tokens(tokens, dialect=statement.dialect)

        first, last = offset + 1, offset + limit
        return numbered.wrap(
            "SELECT * FROM (",
            f") AS [__paged] WHERE {_ROW_NUMBER_ALIAS} BETWEEN {first} AND {last}"
            f" ORDER BY {_ROW_NUMBER_ALIAS}",
        )

    @staticmethod
    def _pop_order_by(tokens: list[Token]) -> str | None:
        last = tokens[-1]
        if last.kind is not TokenKind.TEXT:
            return None
        index = last.value.rfind(_ORDER_BY)
        if index < 0:
            return None
        clause = last.value[index + len(_ORDER_BY):]
        # an ORDER BY inside a trailing sub-select is not ours to move
        if clause.count("(") != clause.count(")"):
            return None
        remainder = last.value[:index]
        if remainder:
            tokens[-1] = Token(TokenKind.TEXT, remainder)
        else:
            tokens.pop()
        return clause

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"
