from querykit.dialects import MySQLDialect
from querykit.query import Action, Query


def test_mysql_dialect_quotes_identifiers():
    dialect = MySQLDialect()
    assert dialect.quote_identifier("user`name") == "`user``name`"
    assert dialect.format_identifier("analytics.events") == "`analytics`.`events`"


def test_mysql_limit_clause():
    dialect = MySQLDialect()
    assert dialect.limit_clause(10, None) == "LIMIT 10"
    assert dialect.limit_clause(None, 5) == "LIMIT 18446744073709551615 OFFSET 5"
    assert dialect.limit_clause(10, 5) == "LIMIT 10 OFFSET 5"


def test_mysql_placeholder():
    dialect = MySQLDialect()
    assert dialect.parameter_placeholder() == "%s"


def test_mysql_multi_table_update():
    q = Query("orders o").inner_join("customers c", "c.id = o.customer_id").add("c.vip", 1)
    statement = q.to_statement(Action.UPDATE, MySQLDialect(), {"o.discount": 10})
    assert statement.text == (
        "UPDATE `orders` AS o INNER JOIN `customers` AS c ON (c.id = o.customer_id) "
        "SET `o`.`discount` = %s WHERE `c`.`vip` = %s"
    )
    assert statement.params == [10, 1]
