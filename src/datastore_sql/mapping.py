# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Model fields to physical columns.

map_type() derives one column type from a field descriptor; define_table()
builds the full column map of a model and registers it with the client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .schema import FieldDescriptor, FieldType, ModelDescriptor
from .sql.column import (
    BLOB,
    BOOLEAN,
    DATE,
    DOUBLE,
    JSONB,
    MEDIUMTEXT,
    STRING,
    TEXT,
    UNSIGNED_INTEGER,
    Columns,
    ColumnType,
)

if TYPE_CHECKING:
    from .sql.dialects import DialectTraits
    from .sql.sqldb import SqlDb
    from .sql.table import Table

logger = logging.getLogger(__name__)

PRIMARY_KEY = "id"
# Shared by every key column, so the keys form one composite constraint
UNIQUE_CONSTRAINT = "uniquerow"

_SIMPLE_TYPES: dict[FieldType, ColumnType] = {
    FieldType.DATE: DATE,
    FieldType.NUMBER: DOUBLE,
    FieldType.BOOLEAN: BOOLEAN,
    FieldType.BINARY: BLOB,
}


def map_type(dialect: DialectTraits, field: FieldDescriptor) -> ColumnType | None:
    """Column type for a field in the given dialect.

    None means untyped: the column gets the dialect's default type.
    """
    if field.type is FieldType.STRING:
        return STRING(field.max_length) if field.max_length else TEXT

    if field.type.is_structured:
        return JSONB if dialect.native_structured else TEXT

    if field.type is FieldType.ALTERNATIVES:
        first = field.alternatives[0] if field.alternatives else None
        if first is not None and first.max_length:
            return STRING(first.max_length)
        return MEDIUMTEXT

    return _SIMPLE_TYPES.get(field.type)


def build_columns(dialect: DialectTraits, model: ModelDescriptor) -> Columns:
    """Column map of a model, with primary key and uniqueness applied."""
    columns = Columns()
    for name, field in model.fields.items():
        if name == PRIMARY_KEY:
            columns.column(name, UNSIGNED_INTEGER, primary_key=True, auto_increment=True)
            continue
        unique = UNIQUE_CONSTRAINT if name in model.keys else None
        columns.column(name, map_type(dialect, field), unique=unique)
    return columns


def define_table(db: SqlDb, model: ModelDescriptor, prefix: str = "") -> Table:
    """Register the physical table of a model with the client."""
    table_name = f"{prefix}{model.table_name}"
    columns = build_columns(db.dialect, model)
    indexes = [name for name in model.indexes if name in columns]
    logger.debug(
        "Model %s -> table %s (keys=%s, indexes=%s)",
        model.name, table_name, list(model.keys), indexes,
    )
    return db.define(table_name, columns, indexes)


__all__ = ["PRIMARY_KEY", "UNIQUE_CONSTRAINT", "map_type", "build_columns", "define_table"]
