"""
JOIN clause representation, including the qualified-column shorthand.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

from ..errors import InvalidJoinShorthandError, InvalidJoinTypeError, MissingAliasError
from .expressions import Condition, Quote
from .statement import Statement, is_identifier

if TYPE_CHECKING:
    from ..dialects.base import Dialect
    from .builder import Query


class JoinType(str, Enum):
    JOIN = "JOIN"
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"
    RIGHT = "RIGHT JOIN"
    OUTER = "OUTER JOIN"
    CROSS = "CROSS JOIN"

    @classmethod
    def parse(cls, value: Union["JoinType", str]) -> "JoinType":
        if isinstance(value, JoinType):
            return value
        normalized = " ".join(str(value).upper().split())
        if normalized and not normalized.endswith("JOIN"):
            normalized = f"{normalized} JOIN"
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidJoinTypeError(f"{value!r} is not a supported join type.") from None


def split_alias(name: str) -> Tuple[str, Optional[str]]:
    """
    Split ``"table alias"`` or ``"table AS alias"`` on the last space.
    """
    name = name.strip()
    space = name.rfind(" ")
    if space <= 0:
        return name, None
    alias = name[space + 1 :].strip()
    if not is_identifier(alias) or "." in alias:
        return name, None
    table = name[:space].rstrip()
    if table.upper().endswith(" AS"):
        table = table[:-3].rstrip()
    return table, alias


class Join:
    """
    One JOIN clause of a query.

    ``Join("foo.bar_id", "foo2.bar_id")`` is shorthand for joining ``foo2`` on
    ``foo.bar_id = foo2.bar_id``. Otherwise the first argument is the table
    (optionally ``"table alias"``) and the second a raw ON clause or a
    :class:`Condition`.
    """

    def __init__(
        self,
        table_or_column: Union[str, "Query"],
        on_clause_or_column: Union[str, Condition, None] = None,
        join_type: Union[JoinType, str] = JoinType.JOIN,
        alias: str | None = None,
    ) -> None:
        self.join_type = JoinType.parse(join_type)
        self.alias = alias
        self.on_clause: Union[str, Condition, None] = None

        if self.is_qualified_column(table_or_column) and self.is_qualified_column(on_clause_or_column):
            self.table: Union[str, "Query"] = on_clause_or_column.rsplit(".", 1)[0]
            self.on_clause = Condition().add_and(
                table_or_column, on_clause_or_column, quote=Quote.IDENTIFIER
            )
            return

        if isinstance(on_clause_or_column, str) and is_identifier(on_clause_or_column):
            if "." in on_clause_or_column or self.is_qualified_column(table_or_column):
                raise InvalidJoinShorthandError(
                    f"Cannot infer a join from {table_or_column!r} and {on_clause_or_column!r}; "
                    "pass two qualified columns or a table and an ON clause."
                )

        if isinstance(table_or_column, str):
            if alias is None:
                table_or_column, self.alias = split_alias(table_or_column)
            self.table = table_or_column
        else:
            self.table = table_or_column.copy()

        if isinstance(on_clause_or_column, Condition):
            self.on_clause = on_clause_or_column.copy()
        else:
            self.on_clause = on_clause_or_column

    @classmethod
    def create(
        cls,
        table_or_column: Union[str, "Query"],
        on_clause_or_column: Union[str, Condition, None] = None,
        join_type: Union[JoinType, str] = JoinType.JOIN,
    ) -> "Join":
        return cls(table_or_column, on_clause_or_column, join_type)

    @staticmethod
    def is_qualified_column(value: Any) -> bool:
        """
        True for plain strings like ``foo.bar`` or ``db.foo.bar``.
        """
        return isinstance(value, str) and "." in value and " " not in value

    def set_alias(self, alias: str | None) -> "Join":
        self.alias = alias
        return self

    def copy(self) -> "Join":
        clone = Join.__new__(Join)
        clone.join_type = self.join_type
        clone.alias = self.alias
        clone.table = self.table if isinstance(self.table, str) else self.table.copy()
        clone.on_clause = (
            self.on_clause.copy() if isinstance(self.on_clause, Condition) else self.on_clause
        )
        return clone

    def to_statement(self, dialect: "Dialect | None" = None) -> Statement:
        statement = Statement(f"{self.join_type.value} ", dialect=dialect)
        if isinstance(self.table, str):
            if is_identifier(self.table):
                statement.add_identifier(self.table)
            else:
                statement.append(self.table)
        else:
            if not self.alias:
                raise MissingAliasError("A nested query used in a JOIN must have an alias.")
            statement.append("(").merge(self.table.compile(dialect)).append(")")

        if self.alias:
            statement.append(f" AS {self.alias}")

        if self.on_clause is not None:
            if isinstance(self.on_clause, Condition):
                on_statement = self.on_clause.to_statement(dialect)
            else:
                on_statement = Statement(self.on_clause)
            if not on_statement.is_empty():
                statement.append(" ON (").merge(on_statement).append(")")
        return statement

    def __repr__(self) -> str:
        return f"Join({self.join_type.value!r}, table={self.table!r}, alias={self.alias!r})"

    def __str__(self) -> str:
        return str(self.to_statement())
