# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Query plans and their compilation to SQL.

A QueryPlan is the dialect-neutral description of one SELECT: a ``where``
predicate tree, an ``order`` list, ``limit``/``offset``, an optional
``attributes`` projection and an optional ``group`` list. Table compiles it
with the traits of the active dialect.

Predicate tree (``where``)::

    {"name": "bar"}                          name = :p
    {"baz": {"IN": [1, 2, 3]}}               baz IN (:p0, :p1, :p2)
    {"createTime": {">=": "2024", "<=": "2025"}}
    {"$or": [{"a": {"LIKE": "%x%"}}, {"b": {"LIKE": "%x%"}}]}
    {"$and": [{...}, {...}]}
    {"id": {"IN": SubQuery("MAX", "id", where={...}, group=["name"])}}

All entries of a dict are AND-ed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .dialects import DialectTraits


@dataclass(frozen=True)
class Expr:
    """Column expression rendered by the dialect: fn(column)."""

    fn: str
    column: str


@dataclass(frozen=True)
class SubQuery:
    """Aggregate sub-select on the same table: SELECT fn(column) ... GROUP BY."""

    fn: str
    column: str
    where: dict[str, Any] = field(default_factory=dict)
    group: tuple[str, ...] = ()


Attribute = Union[str, tuple[Expr, str]]
OrderKey = Union[str, Expr]


@dataclass
class QueryPlan:
    """Validated SELECT description built by the scan query builder."""

    where: dict[str, Any] = field(default_factory=dict)
    order: list[tuple[OrderKey, str]] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None
    attributes: list[Attribute] | None = None
    group: list[str] | None = None


class WhereBuilder:
    """Builds WHERE clauses and bound parameters from a predicate tree."""

    OPERATORS = frozenset({
        '=', '!=', '<>', '<', '>', '<=', '>=',
        'LIKE', 'ILIKE', 'NOT LIKE', 'NOT ILIKE',
        'IN', 'NOT IN',
    })

    def __init__(self, dialect: DialectTraits, table: str, prefix: str = "w"):
        self.dialect = dialect
        self.table = table
        self.prefix = prefix
        self._counter = 0

    def build(self, where: dict[str, Any] | None) -> tuple[str, dict[str, Any]]:
        """Return (where_sql, params). Empty tree gives ("", {})."""
        params: dict[str, Any] = {}
        if not where:
            return "", params
        return self._build_and(where, params), params

    def _param(self, value: Any, params: dict[str, Any]) -> str:
        name = f"{self.prefix}{self._counter}"
        self._counter += 1
        params[name] = value
        return self.dialect.placeholder(name)

    def _build_and(self, where: dict[str, Any], params: dict[str, Any]) -> str:
        parts = []
        for key, value in where.items():
            if key == "$or":
                parts.append(self._build_group(value, " OR ", params))
            elif key == "$and":
                parts.append(self._build_group(value, " AND ", params))
            elif isinstance(value, dict):
                for op, operand in value.items():
                    parts.append(self._condition_to_sql(key, op, operand, params))
            else:
                parts.append(self._condition_to_sql(key, "=", value, params))
        return " AND ".join(parts)

    def _build_group(
        self, branches: list[dict[str, Any]], joiner: str, params: dict[str, Any]
    ) -> str:
        if not branches:
            return "1=0" if joiner == " OR " else "1=1"
        return "(" + joiner.join(f"({self._build_and(b, params)})" for b in branches) + ")"

    def _condition_to_sql(
        self, column: str, op: str, value: Any, params: dict[str, Any]
    ) -> str:
        """Convert one (column, op, value) condition to SQL."""
        op = op.upper()
        if op not in self.OPERATORS:
            raise ValueError(f"Operator '{op}' not supported")

        col = self.dialect.quote(column)

        if value is None and op in ('=', '!=', '<>'):
            return f"{col} IS NULL" if op == '=' else f"{col} IS NOT NULL"

        if op in ('IN', 'NOT IN'):
            if isinstance(value, SubQuery):
                return f"{col} {op} ({self.subquery_sql(value, params)})"
            if isinstance(value, (list, tuple)):
                if not value:
                    # IN () is always false, NOT IN () is always true
                    return "1=0" if op == 'IN' else "1=1"
                placeholders = ", ".join(self._param(v, params) for v in value)
                return f"{col} {op} ({placeholders})"
            raise ValueError(f"{op} requires a list, got {type(value).__name__}")

        return f"{col} {op} {self._param(value, params)}"

    def subquery_sql(self, sub: SubQuery, params: dict[str, Any]) -> str:
        """Render a same-table aggregate sub-select sharing the outer params."""
        sql = (
            f"SELECT {self.dialect.expression(Expr(sub.fn, sub.column))} "
            f"FROM {self.dialect.quote(self.table)}"
        )
        if sub.where:
            sql += f" WHERE {self._build_and(sub.where, params)}"
        if sub.group:
            sql += " GROUP BY " + ", ".join(self.dialect.quote(g) for g in sub.group)
        return sql


class SelectCompiler:
    """Compiles a QueryPlan to SELECT / COUNT statements for one table."""

    def __init__(self, dialect: DialectTraits, table: str):
        self.dialect = dialect
        self.table = table

    def _attribute_sql(self, attr: Attribute) -> str:
        if isinstance(attr, tuple):
            expr, alias = attr
            return f"{self.dialect.expression(expr)} AS {self.dialect.quote(alias)}"
        return self.dialect.quote(attr)

    def _order_sql(self, key: OrderKey) -> str:
        if isinstance(key, Expr):
            return self.dialect.expression(key)
        return self.dialect.quote(key)

    def select(self, plan: QueryPlan) -> tuple[str, dict[str, Any]]:
        """Return (sql, params) for SELECT."""
        cols = ", ".join(self._attribute_sql(a) for a in plan.attributes) if plan.attributes else "*"
        sql = f"SELECT {cols} FROM {self.dialect.quote(self.table)}"

        where_sql, params = WhereBuilder(self.dialect, self.table).build(plan.where)
        if where_sql:
            sql += f" WHERE {where_sql}"
        if plan.group:
            sql += " GROUP BY " + ", ".join(self.dialect.quote(g) for g in plan.group)
        if plan.order:
            sql += " ORDER BY " + ", ".join(
                f"{self._order_sql(key)} {direction}" for key, direction in plan.order
            )
        if plan.limit is not None:
            sql += f" LIMIT {int(plan.limit)}"
            if plan.offset:
                sql += f" OFFSET {int(plan.offset)}"
        return sql, params

    def count(self, plan: QueryPlan) -> tuple[str, dict[str, Any]]:
        """Return (sql, params) counting the rows the plan matches, ignoring paging.

        Grouped plans count groups.
        """
        where_sql, params = WhereBuilder(self.dialect, self.table).build(plan.where)
        table = self.dialect.quote(self.table)
        where_clause = f" WHERE {where_sql}" if where_sql else ""

        if plan.group:
            group_cols = ", ".join(self.dialect.quote(g) for g in plan.group)
            sql = (
                f"SELECT COUNT(*) AS cnt FROM "
                f"(SELECT {group_cols} FROM {table}{where_clause} GROUP BY {group_cols}) grouped"
            )
        else:
            sql = f"SELECT COUNT(*) AS cnt FROM {table}{where_clause}"
        return sql, params


__all__ = ["Expr", "SubQuery", "QueryPlan", "WhereBuilder", "SelectCompiler"]
