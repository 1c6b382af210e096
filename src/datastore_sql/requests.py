# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Request models of the storage interface.

Requests arrive as plain mappings with camelCase keys (``sortBy``,
``getCount``...). Datastore validates them into these models before any
backend access; malformed requests raise pydantic.ValidationError.

Example:
    ::

        ScanRequest.model_validate({
            "table": "jobs",
            "params": {"pipelineId": 12},
            "sortBy": "name",
            "paginate": {"count": 10, "page": 2},
        })
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

Keyword = Union[str, int]


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ItemRequest(_Request):
    """get / save / remove / update request."""

    table: str
    params: dict[str, Any] = Field(default_factory=dict)


class SearchSpec(_Request):
    """Pattern search over one or more fields."""

    field: Union[str, list[str]]
    keyword: Union[Keyword, list[Keyword]]
    inverse: bool = False

    @property
    def fields(self) -> list[str]:
        return self.field if isinstance(self.field, list) else [self.field]

    @property
    def keywords(self) -> list[Keyword]:
        return self.keyword if isinstance(self.keyword, list) else [self.keyword]


class Paginate(_Request):
    """1-indexed page of ``count`` rows."""

    count: int = Field(gt=0)
    page: int = Field(default=1, ge=1)


class ScanRequest(_Request):
    """scan request."""

    table: str
    params: dict[str, Any] = Field(default_factory=dict)
    search: SearchSpec | None = None
    sort: str | None = None
    sort_by: str | None = Field(default=None, alias="sortBy")
    paginate: Paginate | None = None
    start_time: Any = Field(default=None, alias="startTime")
    end_time: Any = Field(default=None, alias="endTime")
    time_key: str = Field(default="createTime", alias="timeKey")
    group_by: list[str] | None = Field(default=None, alias="groupBy")
    exclude: list[str] | None = None
    aggregation_field: str | None = Field(default=None, alias="aggregationField")
    get_count: bool = Field(default=False, alias="getCount")


class DialectQuery(_Request):
    """Raw query text for one dialect."""

    db_type: str = Field(alias="dbType")
    query: str


class QueryRequest(_Request):
    """query request: one raw query per dialect, executed with replacements."""

    table: str
    queries: list[DialectQuery] = Field(min_length=1)
    replacements: dict[str, Any] = Field(default_factory=dict)
    raw_response: bool = Field(default=False, alias="rawResponse")


__all__ = [
    "ItemRequest",
    "SearchSpec",
    "Paginate",
    "ScanRequest",
    "DialectQuery",
    "QueryRequest",
]
