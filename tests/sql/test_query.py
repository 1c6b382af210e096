# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for WhereBuilder and SelectCompiler."""

from __future__ import annotations

import pytest

from datastore_sql.sql.dialects import MysqlDialect, PostgresDialect, SqliteDialect
from datastore_sql.sql.query import Expr, QueryPlan, SelectCompiler, SubQuery, WhereBuilder


def build(where, dialect=None):
    return WhereBuilder(dialect or SqliteDialect(), "jobs").build(where)


# ---------------------------------------------------------------------------
# WhereBuilder Tests
# ---------------------------------------------------------------------------


class TestWhereBuilder:
    """Test predicate tree to WHERE clause."""

    def test_empty(self):
        """Empty tree gives no clause."""
        assert build({}) == ("", {})
        assert build(None) == ("", {})

    def test_equality(self):
        """Scalar value is equality."""
        assert build({"name": "bar"}) == ('"name" = :w0', {"w0": "bar"})

    def test_multiple_are_anded(self):
        """Entries of one dict are AND-ed."""
        sql, params = build({"name": "bar", "state": "RUNNING"})
        assert sql == '"name" = :w0 AND "state" = :w1'
        assert params == {"w0": "bar", "w1": "RUNNING"}

    def test_none_is_null(self):
        """None compares with IS NULL / IS NOT NULL."""
        assert build({"a": None}) == ('"a" IS NULL', {})
        assert build({"a": {"!=": None}}) == ('"a" IS NOT NULL', {})

    def test_in_list(self):
        """List operand expands to one placeholder per item."""
        sql, params = build({"baz": {"IN": [1, 2, 3]}})
        assert sql == '"baz" IN (:w0, :w1, :w2)'
        assert params == {"w0": 1, "w1": 2, "w2": 3}

    def test_in_empty_list(self):
        """IN () is always false, NOT IN () always true."""
        assert build({"a": {"IN": []}}) == ("1=0", {})
        assert build({"a": {"NOT IN": []}}) == ("1=1", {})

    def test_in_requires_list(self):
        """IN with a scalar is rejected."""
        with pytest.raises(ValueError, match="IN requires a list"):
            build({"a": {"IN": "x"}})

    def test_several_operators_on_one_column(self):
        """Range predicates on the same column."""
        sql, params = build({"createTime": {">=": "2024", "<=": "2025"}})
        assert sql == '"createTime" >= :w0 AND "createTime" <= :w1'
        assert params == {"w0": "2024", "w1": "2025"}

    def test_operator_case_insensitive(self):
        """Operators are normalized to upper case."""
        assert build({"name": {"not like": "%x%"}}) == ('"name" NOT LIKE :w0', {"w0": "%x%"})

    def test_unknown_operator(self):
        """Operators outside the allowed set are rejected."""
        with pytest.raises(ValueError, match="Operator 'XOR' not supported"):
            build({"a": {"XOR": 1}})

    def test_or_group(self):
        """$or branches are parenthesized."""
        sql, params = build({"$or": [{"a": 1}, {"b": {"LIKE": "%x%"}}]})
        assert sql == '(("a" = :w0) OR ("b" LIKE :w1))'
        assert params == {"w0": 1, "w1": "%x%"}

    def test_and_group_with_columns(self):
        """$and combines with plain entries."""
        sql, _ = build({"a": 1, "$and": [{"a": {"!=": 2}}]})
        assert sql == '"a" = :w0 AND (("a" != :w1))'

    def test_empty_groups(self):
        """Empty $or is false, empty $and is true."""
        assert build({"$or": []}) == ("1=0", {})
        assert build({"$and": []}) == ("1=1", {})

    def test_subquery(self):
        """SubQuery renders a same-table aggregate sharing the params."""
        sub = SubQuery("MAX", "id", where={"state": "RUNNING"}, group=("name",))
        sql, params = build({"state": "RUNNING", "id": {"IN": sub}})
        assert sql == (
            '"state" = :w0 AND "id" IN '
            '(SELECT MAX("id") FROM "jobs" WHERE "state" = :w1 GROUP BY "name")'
        )
        assert params == {"w0": "RUNNING", "w1": "RUNNING"}

    def test_mysql_quoting(self):
        """Identifiers follow the dialect quoting."""
        assert build({"name": "x"}, MysqlDialect()) == ("`name` = :w0", {"w0": "x"})


# ---------------------------------------------------------------------------
# SelectCompiler Tests
# ---------------------------------------------------------------------------


class TestSelectCompiler:
    """Test QueryPlan to SELECT."""

    def test_select_all(self):
        """Empty plan selects everything."""
        sql, params = SelectCompiler(SqliteDialect(), "jobs").select(QueryPlan())
        assert sql == 'SELECT * FROM "jobs"'
        assert params == {}

    def test_where_order_paging(self):
        """Full plain plan."""
        plan = QueryPlan(where={"name": "bar"}, order=[("id", "DESC")], limit=10, offset=20)
        sql, params = SelectCompiler(SqliteDialect(), "jobs").select(plan)
        assert sql == (
            'SELECT * FROM "jobs" WHERE "name" = :w0 ORDER BY "id" DESC LIMIT 10 OFFSET 20'
        )
        assert params == {"w0": "bar"}

    def test_zero_offset_omitted(self):
        """First page has no OFFSET."""
        plan = QueryPlan(order=[("id", "ASC")], limit=5, offset=0)
        sql, _ = SelectCompiler(SqliteDialect(), "jobs").select(plan)
        assert sql == 'SELECT * FROM "jobs" ORDER BY "id" ASC LIMIT 5'

    def test_offset_needs_limit(self):
        """OFFSET alone is not emitted."""
        sql, _ = SelectCompiler(SqliteDialect(), "jobs").select(QueryPlan(offset=10))
        assert sql == 'SELECT * FROM "jobs"'

    def test_projection_and_group(self):
        """Attributes with expressions and GROUP BY."""
        plan = QueryPlan(
            attributes=["name", (Expr("COUNT", "name"), "count")],
            group=["name"],
        )
        sql, _ = SelectCompiler(SqliteDialect(), "jobs").select(plan)
        assert sql == 'SELECT "name", COUNT("name") AS "count" FROM "jobs" GROUP BY "name"'

    def test_distinct_projection(self):
        """DISTINCT expression."""
        plan = QueryPlan(attributes=[(Expr("DISTINCT", "name"), "name")], order=[("name", "ASC")])
        sql, _ = SelectCompiler(PostgresDialect(), "jobs").select(plan)
        assert sql == 'SELECT DISTINCT "name" AS "name" FROM "jobs" ORDER BY "name" ASC'

    def test_cast_int_mysql(self):
        """Integer cast uses the dialect's target type."""
        plan = QueryPlan(attributes=[(Expr("CAST_INT", "archived"), "archived")])
        sql, _ = SelectCompiler(MysqlDialect(), "jobs").select(plan)
        assert sql == "SELECT CAST(`archived` AS SIGNED) AS `archived` FROM `jobs`"

    def test_order_by_expression(self):
        """Order keys may be expressions."""
        plan = QueryPlan(order=[(Expr("MAX", "id"), "DESC")])
        sql, _ = SelectCompiler(SqliteDialect(), "jobs").select(plan)
        assert sql == 'SELECT * FROM "jobs" ORDER BY MAX("id") DESC'

    def test_count(self):
        """COUNT ignores order and paging."""
        plan = QueryPlan(where={"name": "bar"}, order=[("id", "DESC")], limit=10, offset=10)
        sql, params = SelectCompiler(SqliteDialect(), "jobs").count(plan)
        assert sql == 'SELECT COUNT(*) AS cnt FROM "jobs" WHERE "name" = :w0'
        assert params == {"w0": "bar"}

    def test_count_grouped(self):
        """Grouped plans count groups."""
        plan = QueryPlan(group=["name"])
        sql, _ = SelectCompiler(SqliteDialect(), "jobs").count(plan)
        assert sql == (
            'SELECT COUNT(*) AS cnt FROM (SELECT "name" FROM "jobs" GROUP BY "name") grouped'
        )
