# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared model registry fixtures.

testModels: one field of every kind, no indexes.
jobs: keys, an index with its range key, structured fields.
"""

from __future__ import annotations

from typing import Any

import pytest

from datastore_sql.schema import ModelDescriptor, models_from_dict

REGISTRY: dict[str, dict[str, Any]] = {
    "testModel": {
        "tableName": "testModels",
        "fields": {
            "id": {"type": "number"},
            "str": {"type": "string"},
            "num": {"type": "number"},
            "bool": {"type": "boolean"},
            "arr": {"type": "array"},
            "obj": {"type": "object"},
            "name": {"type": "string", "max": 50},
            "createTime": {"type": "date"},
        },
        "keys": ["str"],
    },
    "job": {
        "tableName": "jobs",
        "fields": {
            "id": {"type": "number"},
            "name": {"type": "string", "rules": [{"name": "max", "arg": 100}]},
            "pipelineId": {"type": "number"},
            "baz": {"type": "array"},
            "archived": {"type": "boolean"},
            "state": {
                "type": "alternatives",
                "alternatives": [{"type": "string", "length": 10}],
            },
            "createTime": {"type": "date"},
            "misc": {"type": "lazy"},
        },
        "keys": ["name", "pipelineId"],
        "indexes": ["name", "pipelineId"],
        "rangeKeys": ["name", "createTime"],
    },
}


@pytest.fixture
def registry() -> dict[str, dict[str, Any]]:
    return REGISTRY


@pytest.fixture
def models() -> dict[str, ModelDescriptor]:
    return models_from_dict(REGISTRY)


@pytest.fixture
def basic_model(models) -> ModelDescriptor:
    return models["testModel"]


@pytest.fixture
def job_model(models) -> ModelDescriptor:
    return models["job"]
