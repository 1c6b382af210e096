# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Normalized model descriptors supplied by the schema registry.

The registry hands over one ModelDescriptor per logical entity. Field
descriptors are already reduced to a type tag plus the optional length used
to size string columns, so nothing downstream depends on a validation
library's internal representation.

Registry file format (JSON)::

    {
        "job": {
            "tableName": "jobs",
            "fields": {
                "id": {"type": "number"},
                "name": {"type": "string", "max": 128},
                "permutations": {"type": "array"},
                "state": {"type": "alternatives",
                          "alternatives": [{"type": "string", "max": 10}]}
            },
            "keys": ["name", "pipelineId"],
            "indexes": ["pipelineId"],
            "rangeKeys": ["name"]
        }
    }
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class FieldType(str, Enum):
    """Semantic type tag of a model field."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    BINARY = "binary"
    ARRAY = "array"
    OBJECT = "object"
    ALTERNATIVES = "alternatives"
    ANY = "any"

    @classmethod
    def parse(cls, value: str | FieldType | None) -> FieldType:
        """Return the tag for value; unknown tags become ANY."""
        if isinstance(value, FieldType):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.ANY

    @property
    def is_structured(self) -> bool:
        """True for types stored as JSON documents."""
        return self in (FieldType.ARRAY, FieldType.OBJECT)


@dataclass(frozen=True)
class FieldDescriptor:
    """Type tag and sizing rule of one field."""

    type: FieldType
    max_length: int | None = None
    alternatives: tuple[FieldDescriptor, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDescriptor:
        """Build a descriptor from a registry entry.

        The length comes from a ``length`` or ``max`` key, or from the first
        ``rules`` item named ``length``/``max``.
        """
        max_length = data.get("length", data.get("max"))
        if max_length is None:
            for rule in data.get("rules", ()):
                if rule.get("name") in ("length", "max"):
                    max_length = rule.get("arg")
                    break

        return cls(
            type=FieldType.parse(data.get("type")),
            max_length=int(max_length) if max_length is not None else None,
            alternatives=tuple(cls.from_dict(alt) for alt in data.get("alternatives", ())),
        )


@dataclass(frozen=True)
class ModelDescriptor:
    """Storage shape of one logical entity.

    Attributes:
        name: Model name in the registry (e.g. "job").
        table_name: Logical table name used by requests (e.g. "jobs").
        fields: Ordered mapping field name -> FieldDescriptor.
        keys: Fields forming the model's uniqueness constraint.
        indexes: Fields eligible as secondary filter/sort keys.
        range_keys: Sort key to use when the index at the same position is
            used as a filter.
    """

    name: str
    table_name: str
    fields: Mapping[str, FieldDescriptor]
    keys: tuple[str, ...] = ()
    indexes: tuple[str, ...] = ()
    range_keys: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> ModelDescriptor:
        """Build a descriptor from a registry entry (camelCase keys)."""
        fields = {
            field_name: FieldDescriptor.from_dict(field_data)
            for field_name, field_data in data.get("fields", {}).items()
        }
        return cls(
            name=name,
            table_name=data.get("tableName", name),
            fields=fields,
            keys=tuple(data.get("keys", ())),
            indexes=tuple(data.get("indexes", ())),
            range_keys=tuple(data.get("rangeKeys", ())),
        )

    @property
    def field_names(self) -> list[str]:
        return list(self.fields)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def field_type(self, name: str) -> FieldType | None:
        """Declared type of a field, None when the field is not modeled."""
        descriptor = self.fields.get(name)
        return descriptor.type if descriptor else None

    def range_key_for(self, param_name: str) -> str | None:
        """Range key paired with param_name when it is a declared index."""
        if not self.indexes or not self.range_keys:
            return None
        try:
            position = self.indexes.index(param_name)
        except ValueError:
            return None
        if position >= len(self.range_keys):
            return None
        return self.range_keys[position]


def models_from_dict(data: Mapping[str, Mapping[str, Any]]) -> dict[str, ModelDescriptor]:
    """Build the whole registry from a mapping model name -> entry."""
    return {name: ModelDescriptor.from_dict(name, entry) for name, entry in data.items()}


def load_models(path: str | Path) -> dict[str, ModelDescriptor]:
    """Load a registry from a JSON file."""
    return models_from_dict(json.loads(Path(path).read_text()))


__all__ = [
    "FieldType",
    "FieldDescriptor",
    "ModelDescriptor",
    "models_from_dict",
    "load_models",
]
