"""
Deferred-rendering SQL fragments.

A :class:`Statement` is an ordered list of tokens. Text tokens carry literal
SQL, identifier tokens carry names that are quoted by a dialect at render time
and parameter tokens carry values that are bound by the driver. Untrusted
values therefore never reach the SQL text.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, List, Sequence

from ..utils import get_logger

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..dialects.base import Dialect


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)*(\.\*)?$")
_PERCENT_STYLES = {"format", "pyformat"}

logger = get_logger("query.statement")


def is_identifier(value: Any) -> bool:
    """
    Return True when ``value`` reads as a (possibly dotted) SQL name.

    Strings with spaces, parentheses or operators are raw SQL expressions and
    are passed through unquoted.
    """
    return isinstance(value, str) and bool(_IDENTIFIER_RE.match(value))


class TokenKind(Enum):
    TEXT = "text"
    IDENTIFIER = "identifier"
    PARAM = "param"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: Any


class Statement:
    """
    Accumulator of SQL text, identifiers and parameters.
    """

    def __init__(self, text: str = "", *, dialect: "Dialect | None" = None) -> None:
        self._tokens: List[Token] = []
        self.dialect = dialect
        if text:
            self.append(text)

    @classmethod
    def from_tokens(cls, tokens: Iterable[Token], *, dialect: "Dialect | None" = None) -> "Statement":
        statement = cls(dialect=dialect)
        for token in tokens:
            statement._push(token)
        return statement

    # ------------------------------------------------------------------ #
    # Building
    # ------------------------------------------------------------------ #
    def append(self, text: str) -> "Statement":
        if text:
            self._push(Token(TokenKind.TEXT, text))
        return self

    def prepend(self, text: str) -> "Statement":
        if text:
            if self._tokens and self._tokens[0].kind is TokenKind.TEXT:
                self._tokens[0] = Token(TokenKind.TEXT, text + self._tokens[0].value)
            else:
                self._tokens.insert(0, Token(TokenKind.TEXT, text))
        return self

    def add_identifier(self, name: str) -> "Statement":
        self._tokens.append(Token(TokenKind.IDENTIFIER, name))
        return self

    def add_identifiers(self, names: Iterable[str]) -> "Statement":
        for name in names:
            self.add_identifier(name)
        return self

    def add_param(self, value: Any) -> "Statement":
        self._tokens.append(Token(TokenKind.PARAM, value))
        return self

    def add_params(self, values: Iterable[Any]) -> "Statement":
        for value in values:
            self.add_param(value)
        return self

    def merge(self, other: "Statement") -> "Statement":
        for token in other._tokens:
            self._push(token)
        return self

    def wrap(self, prefix: str, suffix: str) -> "Statement":
        return self.prepend(prefix).append(suffix)

    def copy(self) -> "Statement":
        return Statement.from_tokens(self._tokens, dialect=self.dialect)

    def _push(self, token: Token) -> None:
        if (
            token.kind is TokenKind.TEXT
            and self._tokens
            and self._tokens[-1].kind is TokenKind.TEXT
        ):
            self._tokens[-1] = Token(TokenKind.TEXT, self._tokens[-1].value + token.value)
        else:
            self._tokens.append(token)

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    @property
    def tokens(self) -> tuple[Token, ...]:
        return tuple(self._tokens)

    @property
    def identifiers(self) -> List[str]:
        return [token.value for token in self._tokens if token.kind is TokenKind.IDENTIFIER]

    @property
    def params(self) -> List[Any]:
        return [token.value for token in self._tokens if token.kind is TokenKind.PARAM]

    @property
    def text(self) -> str:
        """SQL text for the bound dialect, ready for prepare-and-bind."""
        return self.render(self.dialect)

    def is_empty(self) -> bool:
        return not self._tokens

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #
    def render(self, dialect: "Dialect | None" = None) -> str:
        """
        Render SQL with quoted identifiers and positional placeholders.

        Without a dialect identifiers are emitted bare and parameters as ``?``.
        """
        escape_percent = dialect is not None and dialect.param_style in _PERCENT_STYLES
        parts: List[str] = []
        position = 0
        for token in self._tokens:
            if token.kind is TokenKind.TEXT:
                parts.append(token.value.replace("%", "%%") if escape_percent else token.value)
            elif token.kind is TokenKind.IDENTIFIER:
                parts.append(dialect.format_identifier(token.value) if dialect else token.value)
            else:
                position += 1
                parts.append(dialect.parameter_placeholder(position) if dialect else "?")
        return "".join(parts)

    def resolve_identifiers(self, dialect: "Dialect") -> "Statement":
        """
        Return a copy whose identifiers are already quoted into literal text.
        """
        tokens = (
            Token(TokenKind.TEXT, dialect.format_identifier(token.value))
            if token.kind is TokenKind.IDENTIFIER
            else token
            for token in self._tokens
        )
        return Statement.from_tokens(tokens, dialect=self.dialect or dialect)

    def interpolate(self, dialect: "Dialect | None" = None) -> str:
        """
        Render with parameters inlined as SQL literals. For display only.
        """
        dialect = dialect or self.dialect
        parts: List[str] = []
        for token in self._tokens:
            if token.kind is TokenKind.TEXT:
                parts.append(token.value)
            elif token.kind is TokenKind.IDENTIFIER:
                parts.append(dialect.format_identifier(token.value) if dialect else token.value)
            else:
                parts.append(self.literal(token.value))
        return "".join(parts)

    @staticmethod
    def literal(value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, bytes):
            return f"X'{value.hex()}'"
        if isinstance(value, (datetime.date, datetime.time)):
            value = value.isoformat(sep=" ") if isinstance(value, datetime.datetime) else value.isoformat()
        text = str(value).replace("'", "''")
        return f"'{text}'"

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute(self, adapter: "DatabaseAdapter") -> Any:
        """
        Bind and execute through ``adapter``, returning its cursor.
        """
        sql = self.render(adapter.dialect)
        params = self.params
        logger.debug("Binding %s parameter(s) for %s", len(params), adapter.dialect.name)
        return adapter.execute(sql, params)

    # ------------------------------------------------------------------ #
    def __add__(self, other: "Statement") -> "Statement":
        return self.copy().merge(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return self._tokens == other._tokens

    def __repr__(self) -> str:
        return f"Statement({self.render()!r}, params={self.params!r})"

    def __str__(self) -> str:
        return self.interpolate()


def join_statements(separator: str, statements: Sequence[Statement]) -> Statement:
    result = Statement()
    for index, statement in enumerate(statements):
        if index:
            result.append(separator)
        result.merge(statement)
    return result
