"""
Query assembler: composes tables, joins, conditions, grouping, ordering and
paging into a single :class:`Statement` for the active action.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Union

from ..errors import (
    InvalidSortDirectionError,
    MissingAliasError,
    MissingTableError,
    MissingUpdatePayloadError,
    UnknownActionError,
)
from ..utils import get_logger
from .expressions import MISSING, Condition, Operator, Quote
from .joins import Join, JoinType, split_alias
from .statement import Statement, is_identifier, join_statements

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..connections.manager import ConnectionProvider
    from ..dialects.base import Dialect


ASC = "ASC"
DESC = "DESC"
UNSPECIFIED_TABLE = "{UNSPECIFIED-TABLE}"

logger = get_logger("query.builder")

TableSource = Union[str, "Query"]


class Action(str, Enum):
    SELECT = "SELECT"
    DELETE = "DELETE"
    UPDATE = "UPDATE"
    COUNT = "COUNT"

    @classmethod
    def parse(cls, value: Union["Action", str]) -> "Action":
        if isinstance(value, Action):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnknownActionError(f"Unknown action {value!r}.") from None


class Query:
    """
    Fluent SQL statement builder.

    Mutators return the query for chaining. Terminal operations (``select``,
    ``count``, ``delete``, ``update`` and ``to_statement``) render a private
    copy, so one base query can be specialised many times.
    """

    def __init__(self, table: TableSource | None = None, alias: str | None = None) -> None:
        self._action = Action.SELECT
        self._columns: Dict[str, str] = {}
        self._table: TableSource | None = None
        self._alias: str | None = None
        self._extra_tables: Dict[str, TableSource] = {}
        self._joins: List[Join] = []
        self._where = Condition()
        self._having: Condition | None = None
        self._orders: List[str] = []
        self._groups: List[str] = []
        self._limit: int | None = None
        self._offset = 0
        self._distinct = False
        self._update_values: Dict[str, Any] = {}
        if table is not None:
            self.set_table(table, alias)

    @classmethod
    def create(cls, table: TableSource | None = None, alias: str | None = None) -> "Query":
        return cls(table, alias)

    # ------------------------------------------------------------------ #
    # Action, table and columns
    # ------------------------------------------------------------------ #
    def set_action(self, action: Union[Action, str]) -> "Query":
        self._action = Action.parse(action)
        return self

    def get_action(self) -> Action:
        return self._action

    def set_distinct(self, distinct: bool = True) -> "Query":
        self._distinct = bool(distinct)
        return self

    def is_distinct(self) -> bool:
        return self._distinct

    def add_column(self, column: str, alias: str | None = None) -> "Query":
        self._columns[alias or column] = column
        return self

    def set_columns(self, columns: Union[Iterable[str], Mapping[str, str]]) -> "Query":
        """
        Replace the column list. A mapping is read as ``alias -> expression``.
        """
        self._columns = {}
        if isinstance(columns, Mapping):
            for alias, column in columns.items():
                self.add_column(column, alias)
        else:
            for column in columns:
                self.add_column(column)
        return self

    def get_columns(self) -> Dict[str, str]:
        return dict(self._columns)

    def set_table(self, table: TableSource, alias: str | None = None) -> "Query":
        """
        Set the table to query: a name, ``"name alias"``, raw SQL, or a
        nested :class:`Query` (which must have an alias).
        """
        if isinstance(table, Query):
            if not alias:
                raise MissingAliasError("The nested query must have an alias.")
            table = table.copy()
        elif alias is None:
            table, alias = split_alias(table)

        if alias:
            self._alias = alias
        self._table = table
        return self

    def get_table(self) -> TableSource | None:
        return self._table

    def set_alias(self, alias: str | None) -> "Query":
        self._alias = alias
        return self

    def get_alias(self) -> str | None:
        return self._alias

    def add_table(self, table: TableSource, alias: str | None = None) -> "Query":
        """
        Add a table to the FROM list (an implicit cross join).
        """
        if isinstance(table, Query):
            if not alias:
                raise MissingAliasError("The nested query must have an alias.")
            table = table.copy()
        elif alias is None:
            table, alias = split_alias(table)
            alias = alias or table
        self._extra_tables[alias] = table
        return self

    def get_extra_tables(self) -> Dict[str, TableSource]:
        return dict(self._extra_tables)

    # ------------------------------------------------------------------ #
    # Joins
    # ------------------------------------------------------------------ #
    def add_join(
        self,
        table_or_column: Union[Join, TableSource],
        on_clause_or_column: Union[str, Condition, None] = None,
        join_type: Union[JoinType, str] = JoinType.JOIN,
    ) -> "Query":
        join = self._make_join(table_or_column, on_clause_or_column, join_type)
        if join is not None:
            self._joins.append(join)
        return self

    def join(
        self,
        table_or_column: Union[Join, TableSource],
        on_clause_or_column: Union[str, Condition, None] = None,
        join_type: Union[JoinType, str] = JoinType.JOIN,
    ) -> "Query":
        return self.add_join(table_or_column, on_clause_or_column, join_type)

    def cross_join(self, table: TableSource) -> "Query":
        return self.add_join(table)

    def inner_join(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.add_join(table_or_column, on_clause_or_column, JoinType.INNER)

    def left_join(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.add_join(table_or_column, on_clause_or_column, JoinType.LEFT)

    def right_join(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.add_join(table_or_column, on_clause_or_column, JoinType.RIGHT)

    def outer_join(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.add_join(table_or_column, on_clause_or_column, JoinType.OUTER)

    def join_once(
        self,
        table_or_column: Union[Join, TableSource],
        on_clause_or_column: Union[str, Condition, None] = None,
        join_type: Union[JoinType, str] = JoinType.JOIN,
    ) -> "Query":
        """
        Add a join unless one already targets the same table and alias.

        Joins on the same table under different aliases are kept.
        """
        if not isinstance(table_or_column, Join) and on_clause_or_column is None:
            if JoinType.parse(join_type) in (JoinType.JOIN, JoinType.INNER, JoinType.CROSS):
                if table_or_column in self._extra_tables.values():
                    return self
        join = self._make_join(table_or_column, on_clause_or_column, join_type)
        if join is None:
            return self
        for existing in self._joins:
            if existing.table == join.table and existing.alias == join.alias:
                return self
        self._joins.append(join)
        return self

    def left_join_once(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.join_once(table_or_column, on_clause_or_column, JoinType.LEFT)

    def right_join_once(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.join_once(table_or_column, on_clause_or_column, JoinType.RIGHT)

    def outer_join_once(self, table_or_column: TableSource, on_clause_or_column: Any = None) -> "Query":
        return self.join_once(table_or_column, on_clause_or_column, JoinType.OUTER)

    def get_joins(self) -> List[Join]:
        return list(self._joins)

    def set_joins(self, joins: Iterable[Join]) -> "Query":
        self._joins = [join.copy() for join in joins]
        return self

    def _make_join(
        self,
        table_or_column: Union[Join, TableSource],
        on_clause_or_column: Union[str, Condition, None],
        join_type: Union[JoinType, str],
    ) -> Optional[Join]:
        if isinstance(table_or_column, Join):
            return table_or_column.copy()
        join_type = JoinType.parse(join_type)
        if on_clause_or_column is None:
            if join_type in (JoinType.JOIN, JoinType.INNER, JoinType.CROSS):
                self.add_table(table_or_column)
                return None
            on_clause_or_column = "1 = 1"
        return Join(table_or_column, on_clause_or_column, join_type)

    # ------------------------------------------------------------------ #
    # WHERE
    # ------------------------------------------------------------------ #
    def set_where(self, where: Condition) -> "Query":
        self._where = where
        return self

    def get_where(self) -> Condition:
        return self._where

    def add_and(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Query":
        self._where.add_and(column, value, operator, quote)
        return self

    def add(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Query":
        return self.add_and(column, value, operator, quote)

    def add_or(
        self,
        column: Any,
        value: Any = MISSING,
        operator: Union[Operator, str] = Operator.EQUAL,
        quote: Quote | None = None,
    ) -> "Query":
        self._where.add_or(column, value, operator, quote)
        return self

    def and_not(self, column: Any, value: Any) -> "Query":
        self._where.and_not(column, value)
        return self

    def and_like(self, column: Any, value: Any) -> "Query":
        self._where.and_like(column, value)
        return self

    def and_not_like(self, column: Any, value: Any) -> "Query":
        self._where.and_not_like(column, value)
        return self

    def and_greater(self, column: Any, value: Any) -> "Query":
        self._where.and_greater(column, value)
        return self

    def and_greater_equal(self, column: Any, value: Any) -> "Query":
        self._where.and_greater_equal(column, value)
        return self

    def and_less(self, column: Any, value: Any) -> "Query":
        self._where.and_less(column, value)
        return self

    def and_less_equal(self, column: Any, value: Any) -> "Query":
        self._where.and_less_equal(column, value)
        return self

    def and_null(self, column: Any) -> "Query":
        self._where.and_null(column)
        return self

    def and_not_null(self, column: Any) -> "Query":
        self._where.and_not_null(column)
        return self

    def and_between(self, column: Any, start: Any, end: Any) -> "Query":
        self._where.and_between(column, start, end)
        return self

    def and_begins_with(self, column: Any, value: Any) -> "Query":
        self._where.and_begins_with(column, value)
        return self

    def and_ends_with(self, column: Any, value: Any) -> "Query":
        self._where.and_ends_with(column, value)
        return self

    def and_contains(self, column: Any, value: Any) -> "Query":
        self._where.and_contains(column, value)
        return self

    def and_in(self, column: Any, values: Any) -> "Query":
        self._where.and_in(column, values)
        return self

    def and_not_in(self, column: Any, values: Any) -> "Query":
        self._where.and_not_in(column, values)
        return self

    def or_not(self, column: Any, value: Any) -> "Query":
        self._where.or_not(column, value)
        return self

    def or_like(self, column: Any, value: Any) -> "Query":
        self._where.or_like(column, value)
        return self

    def or_not_like(self, column: Any, value: Any) -> "Query":
        self._where.or_not_like(column, value)
        return self

    def or_greater(self, column: Any, value: Any) -> "Query":
        self._where.or_greater(column, value)
        return self

    def or_greater_equal(self, column: Any, value: Any) -> "Query":
        self._where.or_greater_equal(column, value)
        return self

    def or_less(self, column: Any, value: Any) -> "Query":
        self._where.or_less(column, value)
        return self

    def or_less_equal(self, column: Any, value: Any) -> "Query":
        self._where.or_less_equal(column, value)
        return self

    def or_null(self, column: Any) -> "Query":
        self._where.or_null(column)
        return self

    def or_not_null(self, column: Any) -> "Query":
        self._where.or_not_null(column)
        return self

    def or_between(self, column: Any, start: Any, end: Any) -> "Query":
        self._where.or_between(column, start, end)
        return self

    def or_begins_with(self, column: Any, value: Any) -> "Query":
        self._where.or_begins_with(column, value)
        return self

    def or_ends_with(self, column: Any, value: Any) -> "Query":
        self._where.or_ends_with(column, value)
        return self

    def or_contains(self, column: Any, value: Any) -> "Query":
        self._where.or_contains(column, value)
        return self

    def or_in(self, column: Any, values: Any) -> "Query":
        self._where.or_in(column, values)
        return self

    def or_not_in(self, column: Any, values: Any) -> "Query":
        self._where.or_not_in(column, values)
        return self

    # ------------------------------------------------------------------ #
    # GROUP BY, HAVING, ORDER BY, LIMIT
    # ------------------------------------------------------------------ #
    def group_by(self, column: str) -> "Query":
        self._groups.append(column)
        return self

    def group(self, column: str) -> "Query":
        return self.group_by(column)

    def add_group(self, column: str) -> "Query":
        return self.group_by(column)

    def set_groups(self, groups: Iterable[str]) -> "Query":
        self._groups = list(groups)
        return self

    def get_groups(self) -> List[str]:
        return list(self._groups)

    def set_having(self, having: Condition | None) -> "Query":
        self._having = having
        return self

    def get_having(self) -> Condition | None:
        return self._having

    def order_by(self, column: str, direction: str | None = None) -> "Query":
        if direction:
            direction = direction.upper()
            if direction not in (ASC, DESC):
                raise InvalidSortDirectionError(f"{direction} is not a valid sorting direction.")
            column = f"{column} {direction}"
        self._orders.append(column.strip())
        return self

    def order(self, column: str, direction: str | None = None) -> "Query":
        return self.order_by(column, direction)

    def add_order(self, column: str, direction: str | None = None) -> "Query":
        return self.order_by(column, direction)

    def remove_order_bys(self) -> "Query":
        self._orders = []
        return self

    def get_orders(self) -> List[str]:
        return list(self._orders)

    def set_limit(self, limit: int | None) -> "Query":
        self._limit = None if limit is None else int(limit)
        return self

    def get_limit(self) -> int | None:
        return self._limit

    def set_offset(self, offset: int | None) -> "Query":
        self._offset = int(offset or 0)
        return self

    def get_offset(self) -> int:
        return self._offset

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #
    def has_aggregates(self) -> bool:
        if self._groups:
            return True
        return any("(" in column for column in self._columns.values())

    def needs_complex_count(self) -> bool:
        """
        Grouped, HAVING, DISTINCT or aggregate selections cannot be counted
        with a flat ``count(0)`` and are wrapped in a sub-select instead.
        """
        return self.has_aggregates() or self._having is not None or self._distinct

    def compile(self, dialect: "Dialect | None" = None) -> Statement:
        """
        Render this query for its current action.
        """
        if not self._table:
            raise MissingTableError("No table specified.")

        action = self._action
        statement = Statement(dialect=dialect)
        if action in (Action.SELECT, Action.COUNT):
            statement.append("SELECT ").merge(self._columns_clause()).append(" FROM ")
        elif action is Action.DELETE:
            statement.append("DELETE FROM ")
        else:
            statement.append("UPDATE ")

        statement.merge(self._tables_clause(dialect))

        for join in self._joins:
            statement.append(" ").merge(join.to_statement(dialect))

        if action is Action.UPDATE:
            statement.append(" SET ").merge(self._set_clause())

        where = self._where.to_statement(dialect)
        if not where.is_empty():
            statement.append(" WHERE ").merge(where)

        complex_count = action is Action.COUNT and self.needs_complex_count()
        if action is not Action.COUNT or complex_count:
            if self._groups:
                statement.append(" GROUP BY ").merge(self._names_clause(self._groups))

            if self._having is not None:
                having = self._having.to_statement(dialect)
                if not having.is_empty():
                    statement.append(" HAVING ").merge(having)

            if action is not Action.COUNT and self._orders:
                statement.append(" ORDER BY ").merge(self._order_by_clause())

            if self._limit is not None:
                statement = self._apply_limit(statement, dialect)

        if complex_count:
            statement.wrap("SELECT count(0) FROM (", ") a")

        statement.dialect = dialect
        logger.debug(
            "Compiled %s statement with %s parameter(s)",
            action.value,
            len(statement.params),
            extra={"dialect": dialect.name if dialect else None},
        )
        return statement

    def to_statement(
        self,
        action: Union[Action, str, None] = None,
        dialect: "Dialect | None" = None,
        values: Mapping[str, Any] | None = None,
    ) -> Statement:
        """
        Render a private copy for ``action``; this query is left untouched.
        """
        query = self.copy()
        if action is not None:
            query.set_action(action)
        if values is not None:
            query._update_values = dict(values)
        return query.compile(dialect)

    def _columns_clause(self) -> Statement:
        if self._action is Action.COUNT:
            if not self.needs_complex_count():
                return Statement("count(0)")
            if self._having is None:
                if self._groups:
                    return self._names_clause(self._groups)
                if not self._distinct and self._columns:
                    aggregates = {
                        alias: column for alias, column in self._columns.items() if "(" in column
                    }
                    if aggregates:
                        return self._column_list(aggregates)

        if self._columns:
            columns = self._column_list(self._columns)
        elif self._alias:
            columns = Statement(f"{self._alias}.*")
        elif is_identifier(self._table):
            columns = Statement().add_identifier(f"{self._table}.*")
        else:
            columns = Statement("*")

        if self._distinct:
            columns.prepend("DISTINCT ")
        return columns

    def _tables_clause(self, dialect: "Dialect | None") -> Statement:
        statement = self._table_reference(self._table, dialect)
        if self._alias:
            statement.append(f" AS {self._alias}")

        if self._action is not Action.DELETE and self._extra_tables:
            statement.prepend("(")
            for alias, table in self._extra_tables.items():
                statement.append(", ").merge(self._table_reference(table, dialect))
                if alias != table:
                    statement.append(f" AS {alias}")
            statement.append(")")
        return statement

    def _set_clause(self) -> Statement:
        if not self._update_values:
            raise MissingUpdatePayloadError("Unable to build UPDATE query without update column values.")
        assignments = [
            Statement().add_identifier(column).append(" = ").add_param(value)
            for column, value in self._update_values.items()
        ]
        return join_statements(", ", assignments)

    def _order_by_clause(self) -> Statement:
        clauses = []
        for order in self._orders:
            parts = order.split(" ")
            if len(parts) <= 2 and is_identifier(parts[0]):
                clause = Statement().add_identifier(parts[0])
                if len(parts) == 2:
                    clause.append(f" {parts[1]}")
            else:
                clause = Statement(order)
            clauses.append(clause)
        return join_statements(", ", clauses)

    def _apply_limit(self, statement: Statement, dialect: "Dialect | None") -> Statement:
        if dialect is None:
            offset = f"{self._offset}, " if self._offset else ""
            return statement.append(f" LIMIT {offset}{self._limit}")
        if dialect.capabilities.limit_requires_resolved_identifiers:
            statement = statement.resolve_identifiers(dialect)
        return dialect.apply_limit(statement, self._offset, self._limit)

    @staticmethod
    def _table_reference(table: TableSource, dialect: "Dialect | None") -> Statement:
        if isinstance(table, Query):
            return table.compile(dialect).wrap("(", ")")
        if is_identifier(table):
            return Statement().add_identifier(table)
        return Statement(table)

    @staticmethod
    def _names_clause(names: Iterable[str]) -> Statement:
        return join_statements(", ", [Query._name(name) for name in names])

    @staticmethod
    def _column_list(columns: Mapping[str, str]) -> Statement:
        items = []
        for alias, column in columns.items():
            item = Query._name(column)
            if alias != column:
                escaped = alias.replace('"', '""')
                item.append(f' AS "{escaped}"')
            items.append(item)
        return join_statements(", ", items)

    @staticmethod
    def _name(name: str) -> Statement:
        if is_identifier(name):
            return Statement().add_identifier(name)
        return Statement(name)

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def select(
        self,
        connection: "DatabaseAdapter | None" = None,
        *,
        provider: "ConnectionProvider | None" = None,
    ) -> Any:
        """
        Execute as SELECT and return the driver cursor.
        """
        adapter = self._resolve_connection(connection, provider)
        return self.to_statement(Action.SELECT, adapter.dialect).execute(adapter)

    def count(
        self,
        connection: "DatabaseAdapter | None" = None,
        *,
        provider: "ConnectionProvider | None" = None,
    ) -> int:
        adapter = self._resolve_connection(connection, provider)
        cursor = self.to_statement(Action.COUNT, adapter.dialect).execute(adapter)
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def delete(
        self,
        connection: "DatabaseAdapter | None" = None,
        *,
        provider: "ConnectionProvider | None" = None,
    ) -> int:
        adapter = self._resolve_connection(connection, provider)
        cursor = self.to_statement(Action.DELETE, adapter.dialect).execute(adapter)
        return int(cursor.rowcount)

    def update(
        self,
        values: Mapping[str, Any],
        connection: "DatabaseAdapter | None" = None,
        *,
        provider: "ConnectionProvider | None" = None,
    ) -> int:
        adapter = self._resolve_connection(connection, provider)
        cursor = self.to_statement(Action.UPDATE, adapter.dialect, values).execute(adapter)
        return int(cursor.rowcount)

    @staticmethod
    def _resolve_connection(
        connection: "DatabaseAdapter | None",
        provider: "ConnectionProvider | None",
    ) -> "DatabaseAdapter":
        if connection is not None:
            return connection
        from ..adapters.base import ConnectionNotConfiguredError

        if provider is None:
            from ..connections import registry as provider

        adapter = provider.get_connection()
        if adapter is None:
            raise ConnectionNotConfiguredError(
                "No database connection is available; pass one or register a default."
            )
        return adapter

    # ------------------------------------------------------------------ #
    # Copying
    # ------------------------------------------------------------------ #
    def copy(self) -> "Query":
        """
        Deep copy: the clone shares no mutable state with this query.
        """
        clone = Query.__new__(Query)
        clone.__dict__.update(self.__dict__)
        clone._columns = dict(self._columns)
        clone._table = self._table.copy() if isinstance(self._table, Query) else self._table
        clone._extra_tables = {
            alias: table.copy() if isinstance(table, Query) else table
            for alias, table in self._extra_tables.items()
        }
        clone._joins = [join.copy() for join in self._joins]
        clone._where = self._where.copy()
        clone._having = self._having.copy() if self._having is not None else None
        clone._orders = list(self._orders)
        clone._groups = list(self._groups)
        clone._update_values = dict(self._update_values)
        return clone

    def __copy__(self) -> "Query":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "Query":
        return self.copy()

    def __str__(self) -> str:
        query = self.copy()
        if not query._table:
            query._table = UNSPECIFIED_TABLE
        return str(query.compile())

    def __repr__(self) -> str:
        return f"Query(table={self._table!r}, alias={self._alias!r}, action={self._action.value!r})"
