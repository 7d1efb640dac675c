"""
Boolean expression trees used for WHERE, HAVING and JOIN ... ON clauses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Tuple, Union

from ..errors import InvalidOperatorError, InvalidValueError
from .statement import Statement, is_identifier

if TYPE_CHECKING:
    from ..dialects.base import Dialect
    from .builder import Query


AND = "AND"
OR = "OR"


class _Missing:
    def __repr__(self) -> str:
        return "<omitted>"


#: Marks an argument the caller did not pass, as opposed to an explicit ``None``.
MISSING: Any = _Missing()


class Operator(str, Enum):
    """
    Catalog of comparison operators a predicate may use.
    """

    EQUAL = "="
    NOT_EQUAL = "<>"
    ALT_NOT_EQUAL = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    ILIKE = "ILIKE"
    NOT_ILIKE = "NOT ILIKE"
    BEGINS_WITH = "BEGINS_WITH"
    ENDS_WITH = "ENDS_WITH"
    CONTAINS = "CONTAINS"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"
    BETWEEN = "BETWEEN"
    BINARY_AND = "&"
    BINARY_OR = "|"
    CUSTOM = "CUSTOM"

    @classmethod
    def parse(cls, value: Union["Operator", str]) -> "Operator":
        if isinstance(value, Operator):
            return value
        if isinstance(value, str):
            try:
                return cls(" ".join(value.upper().split()))
            except ValueError:
                pass
        raise InvalidOperatorError(f"{value!r} is not a valid comparison operator.")


class Quote(Enum):
    """
    How the right-hand side of a predicate reaches the SQL text.
    """

    PARAM = "param"
    IDENTIFIER = "identifier"
    RAW = "raw"


_NO_VALUE_OPERATORS = {Operator.IS_NULL, Operator.IS_NOT_NULL, Operator.CUSTOM}
_SEQUENCE_OPERATORS = {Operator.IN, Operator.NOT_IN, Operator.BETWEEN}
_LIKE_PATTERNS = {
    Operator.BEGINS_WITH: "{}%",
    Operator.ENDS_WITH: "%{}",
    Operator.CONTAINS: "%{}%",
}


@dataclass(frozen=True)
class Predicate:
    """
    A single ``column <operator> value`` comparison.
    """

    column: str
    operator: Operator = Operator.EQUAL
    value: Any = None
    quote: Quote = Quote.PARAM

    def to_statement(self, dialect: "Dialect | None" = None) -> Statement:
        statement = Statement()
        operator = self.operator

        if operator is Operator.CUSTOM:
            return statement.append(self.column)

        if operator in (Operator.IN, Operator.NOT_IN) and not self._is_subquery(self.value):
            if not self.value:
                # an empty list matches nothing for IN and everything for NOT IN
                return statement.append("1 = 0" if operator is Operator.IN else "1 = 1")

        self._add_column(statement)

        if operator in (Operator.IS_NULL, Operator.IS_NOT_NULL):
            return statement.append(f" {operator.value}")

        value = self.value
        if value is None:
            if operator is Operator.EQUAL:
                return statement.append(" IS NULL")
            if operator in (Operator.NOT_EQUAL, Operator.ALT_NOT_EQUAL):
                return statement.append(" IS NOT NULL")
            raise InvalidValueError(f"NULL cannot be compared with {operator.value}.")

        if operator in _LIKE_PATTERNS:
            statement.append(" LIKE ")
            return self._add_value(statement, _LIKE_PATTERNS[operator].format(value), dialect)

        if operator in (Operator.ILIKE, Operator.NOT_ILIKE) and not self._supports_ilike(dialect):
            keyword = "LIKE" if operator is Operator.ILIKE else "NOT LIKE"
            statement = Statement("LOWER(")
            self._add_column(statement)
            statement.append(f") {keyword} LOWER(")
            return self._add_value(statement, value, dialect).append(")")

        if operator is Operator.BETWEEN:
            start, end = value
            statement.append(" BETWEEN ")
            self._add_value(statement, start, dialect)
            statement.append(" AND ")
            return self._add_value(statement, end, dialect)

        statement.append(f" {operator.value} ")
        if operator in (Operator.IN, Operator.NOT_IN) and not self._is_subquery(value):
            statement.append("(")
            for index, item in enumerate(value):
                if index:
                    statement.append(", ")
                self._add_value(statement, item, dialect)
            return statement.append(")")
        return self._add_value(statement, value, dialect)

    def _add_column(self, statement: Statement) -> None:
        if is_identifier(self.column):
            statement.add_identifier(self.column)
        else:
            statement.append(self.column)

    def _add_value(self, statement: Statement, value: Any, dialect: "Dialect | None") -> Statement:
        if self._is_subquery(value):
            return statement.append("(").merge(value.compile(dialect)).append(")")
        if self.quote is Quote.IDENTIFIER:
            return statement.add_identifier(str(value))
        if self.quote is Quote.RAW:
            return statement.append(str(value))
        return statement.add_param(value)

    @staticmethod
    def _supports_ilike(dialect: "Dialect | None") -> bool:
        return dialect is None or dialect.capabilities.supports_ilike

    @staticmethod
    def _is_subquery(value: Any) -> bool:
        from .builder import Query

        return isinstance(value, Query)


Node = Union[Predicate, "Condition"]


class Condition:
    """
    Recursive AND/OR expression tree.

    Each child keeps the conjunction it was added with; the first rendered
    child drops its keyword. Nested conditions are copied when embedded so
    later changes to the original do not leak into this tree.
    """

    def __init__(
        self,
        column: Any = None,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> None:
        self.children: List[Tuple[str, Node]] = []
        if column is not None:
            self.add_and(column, value, operator, quote)

    # ------------------------------------------------------------------ #
    # Core mutators
    # ------------------------------------------------------------------ #
    def add_and(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Condition":
        return self._add(AND, column, value, operator, quote)

    def add(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Condition":
        return self._add(AND, column, value, operator, quote)

    def add_or(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Condition":
        return self._add(OR, column, value, operator, quote)

    def _add(
        self,
        conjunction: str,
        column: Any,
        value: Any,
        operator: Union[Operator, str],
        quote: Quote | None,
    ) -> "Condition":
        operator = Operator.parse(operator)
        if column is None or column == "":
            return self
        if isinstance(column, Condition):
            self.children.append((conjunction, column.copy()))
            return self
        if value is MISSING and operator not in _NO_VALUE_OPERATORS:
            return self
        if operator is Operator.CUSTOM and value is not MISSING:
            raise InvalidValueError("CUSTOM predicates take no value.")
        self.children.append((conjunction, self._predicate(column, value, operator, quote)))
        return self

    @staticmethod
    def _predicate(column: Any, value: Any, operator: Operator, quote: Quote | None) -> Predicate:
        if value is MISSING:
            value = None
        elif Predicate._is_subquery(value):
            value = value.copy()
        elif operator in _SEQUENCE_OPERATORS:
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                value = (value,)
            value = tuple(value)
            if operator is Operator.BETWEEN and len(value) != 2:
                raise InvalidValueError("BETWEEN requires exactly two values.")
        return Predicate(str(column), operator, value, quote or Quote.PARAM)

    # ------------------------------------------------------------------ #
    # AND shortcuts
    # ------------------------------------------------------------------ #
    def and_not(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.NOT_EQUAL)

    def and_like(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.LIKE)

    def and_not_like(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.NOT_LIKE)

    def and_greater(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.GREATER_THAN)

    def and_greater_equal(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.GREATER_EQUAL)

    def and_less(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.LESS_THAN)

    def and_less_equal(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.LESS_EQUAL)

    def and_null(self, column: Any) -> "Condition":
        return self.add_and(column, operator=Operator.IS_NULL)

    def and_not_null(self, column: Any) -> "Condition":
        return self.add_and(column, operator=Operator.IS_NOT_NULL)

    def and_between(self, column: Any, start: Any, end: Any) -> "Condition":
        return self.add_and(column, (start, end), Operator.BETWEEN)

    def and_begins_with(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.BEGINS_WITH)

    def and_ends_with(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.ENDS_WITH)

    def and_contains(self, column: Any, value: Any) -> "Condition":
        return self.add_and(column, value, Operator.CONTAINS)

    def and_in(self, column: Any, values: Any) -> "Condition":
        return self.add_and(column, values, Operator.IN)

    def and_not_in(self, column: Any, values: Any) -> "Condition":
        return self.add_and(column, values, Operator.NOT_IN)

    # ------------------------------------------------------------------ #
    # OR shortcuts
    # ------------------------------------------------------------------ #
    def or_not(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.NOT_EQUAL)

    def or_like(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.LIKE)

    def or_not_like(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.NOT_LIKE)

    def or_greater(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.GREATER_THAN)

    def or_greater_equal(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.GREATER_EQUAL)

    def or_less(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.LESS_THAN)

    def or_less_equal(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.LESS_EQUAL)

    def or_null(self, column: Any) -> "Condition":
        return self.add_or(column, operator=Operator.IS_NULL)

    def or_not_null(self, column: Any) -> "Condition":
        return self.add_or(column, operator=Operator.IS_NOT_NULL)

    def or_between(self, column: Any, start: Any, end: Any) -> "Condition":
        return self.add_or(column, (start, end), Operator.BETWEEN)

    def or_begins_with(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.BEGINS_WITH)

    def or_ends_with(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.ENDS_WITH)

    def or_contains(self, column: Any, value: Any) -> "Condition":
        return self.add_or(column, value, Operator.CONTAINS)

    def or_in(self, column: Any, values: Any) -> "Condition":
        return self.add_or(column, values, Operator.IN)

    def or_not_in(self, column: Any, values: Any) -> "Condition":
        return self.add_or(column, values, Operator.NOT_IN)

    # ------------------------------------------------------------------ #
    # Composition
    # ------------------------------------------------------------------ #
    def __and__(self, other: "Condition") -> "Condition":
        return self._combine(other, AND)

    def __or__(self, other: "Condition") -> "Condition":
        return self._combine(other, OR)

    def _combine(self, other: "Condition", conjunction: str) -> "Condition":
        combined = Condition()
        combined.children = [(AND, self.copy()), (conjunction, other.copy())]
        return combined

    def copy(self) -> "Condition":
        clone = Condition()
        clone.children = [
            (conjunction, node.copy() if isinstance(node, Condition) else self._copy_predicate(node))
            for conjunction, node in self.children
        ]
        return clone

    @staticmethod
    def _copy_predicate(predicate: Predicate) -> Predicate:
        if Predicate._is_subquery(predicate.value):
            return Predicate(predicate.column, predicate.operator, predicate.value.copy(), predicate.quote)
        return predicate

    def is_empty(self) -> bool:
        return all(
            isinstance(node, Condition) and node.is_empty() for _, node in self.children
        )

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #
    def to_statement(self, dialect: "Dialect | None" = None) -> Statement:
        statement = Statement(dialect=dialect)
        for conjunction, node in self.children:
            child = node.to_statement(dialect)
            if child.is_empty():
                continue
            if isinstance(node, Condition):
                child.wrap("(", ")")
            if not statement.is_empty():
                statement.append(f" {conjunction} ")
            statement.merge(child)
        return statement

    def __len__(self) -> int:
        return len(self.children)

    def __repr__(self) -> str:
        return f"Condition({self.to_statement().render()!r})"

    def __str__(self) -> str:
        return str(self.to_statement())
