from querykit.dialects import SQLiteDialect
from querykit.query import Statement


def test_sqlite_identifier_quoting():
    dialect = SQLiteDialect()
    assert dialect.quote_identifier("table") == '"table"'
    assert dialect.quote_identifier('bad"name') == '"bad""name"'
    assert dialect.format_identifier("main.users.*") == '"main"."users".*'


def test_sqlite_limit_clause():
    dialect = SQLiteDialect()
    assert dialect.limit_clause(10, None) == "LIMIT 10"
    assert dialect.limit_clause(10, 5) == "LIMIT 10 OFFSET 5"
    assert dialect.limit_clause(None, 5) == "LIMIT -1 OFFSET 5"
    assert dialect.limit_clause(None, 0) == ""


def test_sqlite_apply_limit_appends_clause():
    dialect = SQLiteDialect()
    statement = dialect.apply_limit(Statement("SELECT 1"), 0, 3)
    assert statement.render(dialect) == "SELECT 1 LIMIT 3"


def test_sqlite_placeholder_and_capabilities():
    dialect = SQLiteDialect()
    assert dialect.parameter_placeholder(3) == "?"
    assert dialect.param_style == "qmark"
    assert not dialect.capabilities.supports_ilike
