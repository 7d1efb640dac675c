from concurrent.futures import ThreadPoolExecutor

import pytest

from querykit import (
    InvalidSortDirectionError,
    MissingAliasError,
    MissingTableError,
    MissingUpdatePayloadError,
    UnknownActionError,
)
from querykit.dialects import MySQLDialect, PostgresDialect, SQLiteDialect
from querykit.query import Action, Condition, Join, Query


def test_select_defaults_to_table_star():
    q = Query("users").and_greater("age", 18)
    assert q.compile().render() == "SELECT users.* FROM users WHERE age > ?"
    assert q.compile(SQLiteDialect()).text == 'SELECT "users".* FROM "users" WHERE "age" > ?'


def test_table_alias_from_name():
    q = Query("users u")
    assert q.get_table() == "users"
    assert q.get_alias() == "u"
    assert q.compile().render() == "SELECT u.* FROM users AS u"


def test_raw_table_expression_selects_star():
    q = Query("generate_series(1, 3)")
    assert q.compile().render() == "SELECT * FROM generate_series(1, 3)"


def test_limit_without_dialect_uses_offset_comma_form():
    q = Query("t").add("col", 5).set_limit(10).set_offset(20)
    statement = q.compile()
    assert statement.render().endswith("LIMIT 20, 10")
    assert statement.params == [5]
    assert statement.render().count("?") == 1


@pytest.mark.parametrize(
    "dialect, expected",
    [
        (SQLiteDialect(), 'SELECT "t".* FROM "t" LIMIT 10 OFFSET 20'),
        (PostgresDialect(), 'SELECT "t".* FROM "t" LIMIT 10 OFFSET 20'),
        (MySQLDialect(), "SELECT `t`.* FROM `t` LIMIT 10 OFFSET 20"),
    ],
)
def test_limit_is_rendered_by_dialect(dialect, expected):
    q = Query("t").set_limit(10).set_offset(20)
    assert q.compile(dialect).text == expected


def test_count_is_flat_until_grouped():
    q = Query("t").add("a", 1).order_by("a").set_limit(3)
    assert q.to_statement(Action.COUNT).render() == "SELECT count(0) FROM t WHERE a = ?"

    q.group_by("b")
    statement = q.to_statement(Action.COUNT)
    assert statement.render() == (
        "SELECT count(0) FROM (SELECT b FROM t WHERE a = ? GROUP BY b LIMIT 3) a"
    )
    assert statement.params == [1]


def test_count_with_aggregate_columns_is_wrapped():
    q = Query("t").add_column("MAX(x)", "m")
    assert q.to_statement("COUNT").render() == 'SELECT count(0) FROM (SELECT MAX(x) AS "m" FROM t) a'


def test_count_with_distinct_is_wrapped():
    q = Query("t").set_distinct().add_column("name")
    assert q.to_statement("count").render() == "SELECT count(0) FROM (SELECT DISTINCT name FROM t) a"


def test_group_having_and_order():
    q = (
        Query("orders")
        .set_columns({"total": "SUM(amount)", "user_id": "user_id"})
        .group_by("user_id")
        .set_having(Condition("SUM(amount)", 100, ">"))
        .order_by("total", "desc")
    )
    statement = q.compile(SQLiteDialect())
    assert statement.text == (
        'SELECT SUM(amount) AS "total", "user_id" FROM "orders" GROUP BY "user_id" '
        'HAVING SUM(amount) > ? ORDER BY "total" DESC'
    )
    assert statement.params == [100]


def test_having_count_keeps_full_column_list():
    q = Query("t").add_column("g").group_by("g").set_having(Condition("COUNT(*)", 1, ">"))
    assert q.to_statement(Action.COUNT).render() == (
        "SELECT count(0) FROM (SELECT g FROM t GROUP BY g HAVING COUNT(*) > ?) a"
    )


def test_clone_isolation_across_actions():
    base = Query("t").add("a", 1)
    clone = base.copy().set_action("DELETE").add("b", 2).add_column("x")
    assert base.compile().render() == "SELECT t.* FROM t WHERE a = ?"
    assert clone.compile().render() == "DELETE FROM t WHERE a = ? AND b = ?"
    assert base.get_action() is Action.SELECT
    assert base.get_columns() == {}


def test_to_statement_leaves_query_untouched():
    q = Query("t").add("a", 1)
    q.to_statement(Action.UPDATE, values={"b": 2})
    q.to_statement(Action.COUNT)
    assert q.get_action() is Action.SELECT
    assert q.compile().params == [1]


def test_update_renders_set_before_where():
    q = Query("users").add("id", 3)
    statement = q.to_statement(Action.UPDATE, SQLiteDialect(), {"name": "x", "age": 4})
    assert statement.text == 'UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ?'
    assert statement.params == ["x", 4, 3]


def test_update_with_join_renders_join_before_set():
    q = Query("a").join("b", "a.id = b.a_id")
    assert q.to_statement("UPDATE", values={"x": 1}).render() == (
        "UPDATE a JOIN b ON (a.id = b.a_id) SET x = ?"
    )


def test_update_requires_values():
    with pytest.raises(MissingUpdatePayloadError):
        Query("t").to_statement(Action.UPDATE)


def test_delete_ignores_extra_tables():
    q = Query("a").add_table("b").add("a.id", 1)
    assert q.to_statement(Action.DELETE).render() == "DELETE FROM a WHERE a.id = ?"


def test_extra_tables_render_as_list():
    q = Query("a").add_table("b").add_table("c cc")
    assert q.compile().render() == "SELECT a.* FROM (a, b, c AS cc)"


def test_missing_table_is_reported_at_render_time():
    q = Query().add("a", 1)
    with pytest.raises(MissingTableError):
        q.compile()
    assert str(q) == "SELECT * FROM {UNSPECIFIED-TABLE} WHERE a = 1"


def test_nested_query_as_table():
    inner = Query("t").add("x", 1)
    with pytest.raises(MissingAliasError):
        Query(inner)

    q = Query(inner, "sub")
    inner.add("y", 2)
    statement = q.compile()
    assert statement.render() == "SELECT sub.* FROM (SELECT t.* FROM t WHERE x = ?) AS sub"
    assert statement.params == [1]


def test_joins_and_params_keep_document_order():
    q = Query("a").add_join(Join("b", Condition("b.kind", "x"))).add("a.id", 1)
    statement = q.compile()
    assert statement.render() == "SELECT a.* FROM a JOIN b ON (b.kind = ?) WHERE a.id = ?"
    assert statement.params == ["x", 1]


def test_join_helpers():
    q = Query("users").left_join("posts p", "p.user_id = users.id").outer_join("tags")
    assert q.compile().render() == (
        "SELECT users.* FROM users LEFT JOIN posts AS p ON (p.user_id = users.id) "
        "OUTER JOIN tags ON (1 = 1)"
    )


def test_inner_and_cross_join_without_on_add_tables():
    q = Query("a").cross_join("b").inner_join("c")
    assert q.get_joins() == []
    assert q.compile().render() == "SELECT a.* FROM (a, b, c)"


def test_qualified_shorthand_join_on_query():
    q = Query("foo").join("foo.bar_id", "foo2.bar_id")
    assert q.compile(MySQLDialect()).text == (
        "SELECT `foo`.* FROM `foo` JOIN `foo2` ON (`foo`.`bar_id` = `foo2`.`bar_id`)"
    )


def test_join_once_deduplicates_by_table_and_alias():
    q = Query("a")
    q.join_once("b", "a.id = b.a_id")
    q.join_once("b", "a.id = b.a_id")
    assert len(q.get_joins()) == 1

    q.join_once("b bb", "a.id = bb.a_id")
    assert len(q.get_joins()) == 2
    q.join_once("b bb", "a.id = bb.a_id")
    assert len(q.get_joins()) == 2

    q.left_join_once("c", "c.id = a.c_id").left_join_once("c", "c.id = a.c_id")
    assert len(q.get_joins()) == 3


def test_join_once_without_on_clause_skips_listed_tables():
    q = Query("a").join_once("b").join_once("b")
    assert q.get_extra_tables() == {"b": "b"}


def test_order_by_validates_direction():
    with pytest.raises(InvalidSortDirectionError):
        Query("t").order_by("a", "sideways")

    q = Query("t").order_by("a", "asc").add_order("LENGTH(b) DESC")
    assert q.get_orders() == ["a ASC", "LENGTH(b) DESC"]
    assert q.compile().render() == "SELECT t.* FROM t ORDER BY a ASC, LENGTH(b) DESC"
    assert q.remove_order_bys().get_orders() == []


def test_unknown_action_is_rejected():
    with pytest.raises(UnknownActionError):
        Query("t").set_action("MERGE")


def test_where_delegates_build_condition():
    q = (
        Query("t")
        .and_like("name", "a%")
        .or_in("id", [1, 2])
        .and_not_null("email")
        .or_between("age", 1, 9)
        .and_begins_with("code", "x")
    )
    statement = q.compile()
    assert statement.render() == (
        "SELECT t.* FROM t WHERE name LIKE ? OR id IN (?, ?) AND email IS NOT NULL "
        "OR age BETWEEN ? AND ? AND code LIKE ?"
    )
    assert statement.params == ["a%", 1, 2, 1, 9, "x%"]


def test_set_where_and_get_where():
    where = Condition("a", 1)
    q = Query("t").set_where(where)
    assert q.get_where() is where
    assert q.compile().render() == "SELECT t.* FROM t WHERE a = ?"


def test_distinct_select():
    q = Query("t").set_distinct().add_column("name")
    assert q.is_distinct()
    assert q.compile().render() == "SELECT DISTINCT name FROM t"


def test_copy_shares_no_state():
    q = Query("a").join("b", Condition("b.x", 1)).add_table("c").group_by("g").order_by("o")
    q.set_having(Condition("COUNT(*)", 1, ">"))
    clone = q.copy()
    clone.get_joins()[0].on_clause.add("b.y", 2)
    clone.get_having().add("SUM(z)", 3, ">")
    clone.group_by("h").order_by("p").add_table("d")
    assert q.compile().render() == (
        "SELECT a.* FROM (a, c) JOIN b ON (b.x = ?) GROUP BY g HAVING COUNT(*) > ? ORDER BY o"
    )


def test_shared_base_query_can_be_specialised_concurrently():
    base = Query("events").add("kind", "click")

    def render(index):
        statement = base.copy().add("user_id", index).compile(SQLiteDialect())
        return statement.params

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(render, range(50)))

    assert results == [["click", index] for index in range(50)]
    assert base.compile().params == ["click"]
