# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Application values to stored values and back.

Both directions are keyed off the model's declared field types, never off
the runtime shape of a value: a field declared ``array`` is JSON encoded
whatever it holds. Dialects storing structures natively (JSONB) skip the
JSON step.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import TYPE_CHECKING, Any

from .schema import FieldType

if TYPE_CHECKING:
    from .schema import ModelDescriptor
    from .sql.dialects import DialectTraits

_BOOLEAN_TEXT = {"1": True, "0": False}


async def encode(
    dialect: DialectTraits, record: dict[str, Any], model: ModelDescriptor
) -> dict[str, Any]:
    """Encode a record for writing.

    Awaitable values are resolved first, concurrently.
    """
    encoded = await resolve(record)
    keys = list(encoded)

    if dialect.native_structured:
        return encoded

    for key in keys:
        field_type = model.field_type(key)
        if field_type is not None and field_type.is_structured and encoded[key] is not None:
            encoded[key] = json.dumps(encoded[key], separators=(",", ":"))
    return encoded


async def resolve(record: dict[str, Any]) -> dict[str, Any]:
    """Copy of record with awaitable values resolved, concurrently."""
    keys = list(record)
    values = await asyncio.gather(*(_resolve(record[key]) for key in keys))
    return dict(zip(keys, values, strict=True))


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def decode(
    dialect: DialectTraits, row: dict[str, Any] | None, model: ModelDescriptor
) -> dict[str, Any] | None:
    """Decode a stored row. None passes through.

    Malformed JSON raises json.JSONDecodeError. Keys whose decoded value is
    None are dropped.
    """
    if row is None:
        return None

    decoded: dict[str, Any] = {}
    for key, value in row.items():
        field_type = model.field_type(key)

        if (
            field_type is not None
            and field_type.is_structured
            and not dialect.native_structured
            and isinstance(value, (str, bytes))
        ):
            value = json.loads(value)
        elif field_type is FieldType.BOOLEAN:
            value = _decode_boolean(value)

        if value is not None:
            decoded[key] = value
    return decoded


def _decode_boolean(value: Any) -> Any:
    if isinstance(value, str):
        return _BOOLEAN_TEXT.get(value, value)
    # SQLite and MySQL hand back 0/1 integers
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return bool(value)
    return value


async def decode_rows(
    dialect: DialectTraits, rows: list[dict[str, Any]], model: ModelDescriptor
) -> list[dict[str, Any] | None]:
    """Decode a result set, one task per row."""

    async def _decode(row: dict[str, Any]) -> dict[str, Any] | None:
        return decode(dialect, row, model)

    return list(await asyncio.gather(*(_decode(row) for row in rows)))


__all__ = ["resolve", "encode", "decode", "decode_rows"]
