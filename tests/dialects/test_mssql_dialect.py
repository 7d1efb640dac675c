import pytest

from querykit import QueryError
from querykit.dialects import MSSQLDialect
from querykit.query import Query, Statement


@pytest.fixture
def dialect():
    return MSSQLDialect()


def test_mssql_quotes_with_brackets(dialect):
    assert dialect.quote_identifier("order") == "[order]"
    assert dialect.quote_identifier("odd]name") == "[odd]]name]"
    assert dialect.format_identifier("dbo.users.*") == "[dbo].[users].*"
    assert dialect.parameter_placeholder() == "?"


def test_mssql_limit_without_offset_uses_top(dialect):
    q = Query("users").add("active", 1).order_by("name").set_limit(5)
    statement = q.compile(dialect)
    assert statement.text == "SELECT TOP 5 [users].* FROM [users] WHERE [active] = ? ORDER BY [name]"
    assert statement.params == [1]


def test_mssql_top_after_distinct(dialect):
    q = Query("users").set_distinct().add_column("name").set_limit(3)
    assert q.compile(dialect).text == "SELECT DISTINCT TOP 3 [name] FROM [users]"


def test_mssql_offset_uses_row_number(dialect):
    q = Query("users").add("active", 1).order_by("name", "DESC").set_limit(10).set_offset(20)
    statement = q.compile(dialect)
    assert statement.text == (
        "SELECT * FROM (SELECT ROW_NUMBER() OVER (ORDER BY [name] DESC) AS [__rownum], "
        "[users].* FROM [users] WHERE [active] = ?) AS [__paged] "
        "WHERE [__rownum] BETWEEN 21 AND 30 ORDER BY [__rownum]"
    )
    assert statement.params == [1]


def test_mssql_offset_without_order(dialect):
    q = Query("users").set_limit(10).set_offset(10)
    assert q.compile(dialect).text == (
        "SELECT * FROM (SELECT ROW_NUMBER() OVER (ORDER BY (SELECT 0)) AS [__rownum], "
        "[users].* FROM [users]) AS [__paged] WHERE [__rownum] BETWEEN 11 AND 20 "
        "ORDER BY [__rownum]"
    )


def test_mssql_distinct_offset_numbers_deduplicated_rows(dialect):
    q = Query("users").set_distinct().add_column("name").order_by("name").set_limit(5).set_offset(10)
    assert q.compile(dialect).text == (
        "SELECT * FROM (SELECT ROW_NUMBER() OVER (ORDER BY [name]) AS [__rownum], [__d].* "
        "FROM (SELECT DISTINCT [name] FROM [users]) AS [__d]) AS [__paged] "
        "WHERE [__rownum] BETWEEN 11 AND 15 ORDER BY [__rownum]"
    )


def test_mssql_distinct_offset_keeps_where_params(dialect):
    q = Query("users").set_distinct().add_column("city").add("active", 1).set_limit(2).set_offset(4)
    statement = q.compile(dialect)
    assert "FROM (SELECT DISTINCT [city] FROM [users] WHERE [active] = ?) AS [__d]" in statement.text
    assert statement.params == [1]


def test_mssql_apply_limit_requires_resolved_identifiers(dialect):
    statement = Statement("SELECT ").add_identifier("a")
    with pytest.raises(QueryError):
        dialect.apply_limit(statement, 0, 1)
    with pytest.raises(QueryError):
        dialect.apply_limit(Statement("DELETE FROM t"), 0, 1)
