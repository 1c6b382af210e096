# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Relational client: adapters, dialect traits, tables and query plans.

Components:
    SqlDb: Client owning one adapter and the registry of defined tables.
    Table: Physical table handle (sync, find, create, update, destroy).
    Columns, Column, ColumnType: Dialect-neutral column definitions.
    DialectTraits: Per-engine SQL spelling (quoting, types, LIKE, casts).
    QueryPlan, Expr, SubQuery: Dialect-neutral SELECT descriptions.
"""

from .column import (
    BLOB,
    BOOLEAN,
    DATE,
    DOUBLE,
    INTEGER,
    JSONB,
    MEDIUMTEXT,
    STRING,
    TEXT,
    UNSIGNED_INTEGER,
    Column,
    Columns,
    ColumnType,
)
from .dialects import DialectTraits, MysqlDialect, PostgresDialect, SqliteDialect, get_dialect
from .query import Expr, QueryPlan, SelectCompiler, SubQuery, WhereBuilder
from .sqldb import SqlDb
from .table import Table

__all__ = [
    "SqlDb",
    "Table",
    "Column",
    "Columns",
    "ColumnType",
    "STRING",
    "TEXT",
    "MEDIUMTEXT",
    "INTEGER",
    "UNSIGNED_INTEGER",
    "DOUBLE",
    "BOOLEAN",
    "DATE",
    "BLOB",
    "JSONB",
    "DialectTraits",
    "SqliteDialect",
    "PostgresDialect",
    "MysqlDialect",
    "get_dialect",
    "Expr",
    "SubQuery",
    "QueryPlan",
    "WhereBuilder",
    "SelectCompiler",
]
