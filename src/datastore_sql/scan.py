# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Scan requests to query plans.

build_scan_plan() validates every field a ScanRequest references against
the model, then builds the dialect-neutral QueryPlan that Table compiles.
Nothing here touches the database.

Plan shapes:
    plain       SELECT * ... WHERE ... ORDER BY <sort key> LIMIT/OFFSET
    exclude     projection = model fields minus excluded ones
    distinct    SELECT DISTINCT <field> ... ORDER BY <field>
    groupBy     latest row per group: id IN (SELECT MAX(id) ... GROUP BY ...)
    aggregation SELECT <field>, COUNT(<field>) AS count ... GROUP BY <field>
"""

from __future__ import annotations

import copy
import re
from typing import TYPE_CHECKING, Any

from .errors import InvalidFieldError
from .mapping import PRIMARY_KEY
from .schema import FieldType
from .sql.query import Expr, QueryPlan, SubQuery

if TYPE_CHECKING:
    from .requests import ScanRequest, SearchSpec
    from .schema import ModelDescriptor
    from .sql.dialects import DialectTraits

DISTINCT_PARAM = "distinct"

# "gte:2024-01-01" -> (">=", "2024-01-01")
COMPARISON_TOKENS = {
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "ne": "!=",
}
_COMPARISON_RE = re.compile(r"^(gt|gte|lt|lte|ne):(.*)$", re.DOTALL)


def validate_request(request: ScanRequest, model: ModelDescriptor) -> None:
    """Raise InvalidFieldError for the first field missing from the model."""

    def check(kind: str, name: str) -> None:
        if not isinstance(name, str) or not model.has_field(name):
            raise InvalidFieldError(kind, str(name))

    for name, value in request.params.items():
        if name == DISTINCT_PARAM:
            check("distinct", value)
        else:
            check("param", name)

    if request.search is not None:
        for name in request.search.fields:
            check("search field", name)

    if request.sort_by:
        check("sortBy", request.sort_by)

    for name in request.group_by or ():
        check("groupBy", name)

    for name in request.exclude or ():
        check("exclude", name)

    if request.aggregation_field:
        check("aggregationField", request.aggregation_field)

    if request.start_time is not None or request.end_time is not None:
        check("timeKey", request.time_key)


def resolve_sort_key(request: ScanRequest, model: ModelDescriptor) -> str:
    """Sort key: id, overridden by an index range key, then by sortBy."""
    sort_key = PRIMARY_KEY
    for name in request.params:
        range_key = model.range_key_for(name)
        if range_key:
            sort_key = range_key
    return request.sort_by or sort_key


def param_condition(value: Any) -> Any:
    """Predicate for one params entry."""
    if isinstance(value, (list, tuple)):
        return {"IN": list(value)}
    if isinstance(value, str):
        match = _COMPARISON_RE.match(value)
        if match:
            return {COMPARISON_TOKENS[match.group(1)]: match.group(2)}
    return value


def search_conditions(search: SearchSpec, dialect: DialectTraits) -> list[dict[str, Any]]:
    """One predicate per (field, keyword) pair."""
    pattern_op = dialect.like_operator(search.inverse)
    equal_op = "!=" if search.inverse else "="

    conditions = []
    for name in search.fields:
        for keyword in search.keywords:
            is_integer = isinstance(keyword, int) and not isinstance(keyword, bool)
            conditions.append({name: {equal_op if is_integer else pattern_op: keyword}})
    return conditions


def _add_condition(where: dict[str, Any], name: str, condition: Any) -> None:
    if name not in where:
        where[name] = condition
    else:
        where.setdefault("$and", []).append({name: condition})


def build_where(request: ScanRequest, dialect: DialectTraits) -> dict[str, Any]:
    """Filter tree from params, search and time range."""
    where: dict[str, Any] = {}

    for name, value in request.params.items():
        if name == DISTINCT_PARAM:
            continue
        where[name] = param_condition(value)

    if request.search is not None:
        conditions = search_conditions(request.search, dialect)
        if len(conditions) == 1:
            (name, condition), = conditions[0].items()
            _add_condition(where, name, condition)
        else:
            where.setdefault("$and", []).append({"$or": conditions})

    time_range = {}
    if request.start_time is not None:
        time_range[">="] = request.start_time
    if request.end_time is not None:
        time_range["<="] = request.end_time
    if time_range:
        _add_condition(where, request.time_key, time_range)

    return where


def build_scan_plan(
    request: ScanRequest, model: ModelDescriptor, dialect: DialectTraits
) -> QueryPlan:
    """Validate request against model and build its QueryPlan.

    Raises:
        InvalidFieldError: A referenced field is not part of the model.
    """
    validate_request(request, model)

    where = build_where(request, dialect)
    direction = "ASC" if request.sort == "ascending" else "DESC"
    plan = QueryPlan(where=where, order=[(resolve_sort_key(request, model), direction)])

    if request.paginate is not None:
        plan.limit = request.paginate.count
        plan.offset = request.paginate.count * (request.paginate.page - 1)

    excluded = set(request.exclude or ())
    if excluded:
        plan.attributes = [name for name in model.field_names if name not in excluded]

    distinct = request.params.get(DISTINCT_PARAM)
    if distinct:
        plan.attributes = [(Expr("DISTINCT", distinct), distinct)]
        plan.group = [distinct]
        plan.order = [(distinct, direction)]

    if request.group_by:
        plan.attributes = [
            (Expr("CAST_INT", name), name)
            if model.field_type(name) is FieldType.BOOLEAN
            else name
            for name in model.field_names
            if name not in excluded
        ]
        latest = SubQuery(
            "MAX", PRIMARY_KEY, where=copy.deepcopy(where), group=tuple(request.group_by)
        )
        _add_condition(plan.where, PRIMARY_KEY, {"IN": latest})

    if request.aggregation_field:
        field = request.aggregation_field
        plan.attributes = [field, (Expr("COUNT", field), "count")]
        plan.group = [field]
        plan.order = []

    return plan


__all__ = [
    "COMPARISON_TOKENS",
    "DISTINCT_PARAM",
    "validate_request",
    "resolve_sort_key",
    "param_condition",
    "search_conditions",
    "build_where",
    "build_scan_plan",
]
