# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Dialect traits: every SQL spelling that differs between engines.

One DialectTraits subclass per supported engine. Adapters own an instance
(``adapter.dialect``); Table, the query compiler and the type mapper only
talk to the traits, never compare dialect names.

SQL produced here always uses ``:name`` placeholders. Adapters whose driver
expects another style convert them before execution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .column import Column, ColumnType
    from .query import Expr


class DialectTraits(ABC):
    """Base traits, ANSI flavored. Subclasses override what differs.

    Index introspection has no portable form: every subclass provides
    indexes_query().
    """

    name: str = ""

    # Search with ILIKE instead of LIKE
    case_insensitive_like: bool = False
    # array/object fields stored in a native JSON column, no text encoding
    native_structured: bool = False
    # Target type for CAST(... AS <type>) to an integer
    integer_cast_type: str = "INTEGER"
    # Type used for untyped columns ("" = no type keyword at all)
    default_column_type: str = "TEXT"

    type_names: dict[str, str] = {
        "STRING": "VARCHAR",
        "TEXT": "TEXT",
        "MEDIUMTEXT": "TEXT",
        "INTEGER": "INTEGER",
        "DOUBLE": "DOUBLE PRECISION",
        "BOOLEAN": "BOOLEAN",
        "DATE": "TIMESTAMP",
        "BLOB": "BLOB",
        "JSONB": "TEXT",
    }

    def quote(self, name: str) -> str:
        """Return quoted SQL identifier, embedded quotes doubled."""
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def placeholder(self, name: str) -> str:
        """Return placeholder for named parameter."""
        return f":{name}"

    def column_type_sql(self, type_: ColumnType | None) -> str:
        """Render a column type; None renders the dialect default."""
        if type_ is None:
            return self.default_column_type
        sql = self.type_names.get(type_.kind, type_.kind)
        if type_.length is not None:
            sql = f"{sql}({type_.length})"
        return sql

    def pk_column(self, name: str) -> str:
        """Return SQL definition for autoincrement primary key column."""
        return f"{self.quote(name)} INTEGER PRIMARY KEY"

    def like_operator(self, inverse: bool = False) -> str:
        """Pattern-match operator used by keyword search."""
        op = "ILIKE" if self.case_insensitive_like else "LIKE"
        return f"NOT {op}" if inverse else op

    def expression(self, expr: Expr) -> str:
        """Render a column expression (DISTINCT, COUNT, MAX, CAST_INT)."""
        column = self.quote(expr.column)
        if expr.fn == "DISTINCT":
            return f"DISTINCT {column}"
        if expr.fn == "CAST_INT":
            return f"CAST({column} AS {self.integer_cast_type})"
        if expr.fn in ("COUNT", "MAX", "MIN"):
            return f"{expr.fn}({column})"
        raise ValueError(f"Unsupported expression '{expr.fn}'")

    def index_column_sql(self, col: Column) -> str:
        """Column reference inside CREATE INDEX / UNIQUE (...)."""
        return self.quote(col.name)

    def create_index_sql(self, index_name: str, table: str, cols: list[Column]) -> str:
        col_list = ", ".join(self.index_column_sql(c) for c in cols)
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote(index_name)} "
            f"ON {self.quote(table)} ({col_list})"
        )

    def unique_constraint_sql(self, constraint_name: str, cols: list[Column]) -> str:
        col_list = ", ".join(self.index_column_sql(c) for c in cols)
        return f"CONSTRAINT {self.quote(constraint_name)} UNIQUE ({col_list})"

    def add_column_sql(self, table: str, col: Column) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {col.to_sql(self)}"

    def columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        """Query returning one row per existing column, name in 'name'."""
        return (
            "SELECT column_name AS name FROM information_schema.columns "
            "WHERE table_name = :table",
            {"table": table},
        )

    @abstractmethod
    def indexes_query(self, table: str) -> tuple[str, dict[str, Any]]:
        """Query returning one row per existing index, name in 'name'."""


class SqliteDialect(DialectTraits):
    name = "sqlite"
    default_column_type = ""

    type_names = {
        **DialectTraits.type_names,
        "DOUBLE": "DOUBLE",
        "DATE": "DATETIME",
    }

    def pk_column(self, name: str) -> str:
        return f"{self.quote(name)} INTEGER PRIMARY KEY AUTOINCREMENT"

    def columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return "SELECT name FROM pragma_table_info(:table)", {"table": table}

    def indexes_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = :table",
            {"table": table},
        )


class PostgresDialect(DialectTraits):
    name = "postgres"
    case_insensitive_like = True
    native_structured = True

    type_names = {
        **DialectTraits.type_names,
        "DATE": "TIMESTAMP WITH TIME ZONE",
        "BLOB": "BYTEA",
        "JSONB": "JSONB",
    }

    def pk_column(self, name: str) -> str:
        return f"{self.quote(name)} SERIAL PRIMARY KEY"

    def add_column_sql(self, table: str, col: Column) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN IF NOT EXISTS {col.to_sql(self)}"

    def columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT column_name AS name FROM information_schema.columns "
            "WHERE table_name = :table AND table_schema = current_schema()",
            {"table": table},
        )

    def indexes_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT indexname AS name FROM pg_indexes "
            "WHERE tablename = :table AND schemaname = current_schema()",
            {"table": table},
        )


class MysqlDialect(DialectTraits):
    name = "mysql"
    integer_cast_type = "SIGNED"

    # Prefix length for TEXT/BLOB columns inside index definitions
    index_prefix_length = 191

    type_names = {
        **DialectTraits.type_names,
        "MEDIUMTEXT": "MEDIUMTEXT",
        "INTEGER": "INT",
        "DOUBLE": "DOUBLE",
        "BOOLEAN": "TINYINT(1)",
        "DATE": "DATETIME",
    }

    def quote(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def column_type_sql(self, type_: ColumnType | None) -> str:
        sql = super().column_type_sql(type_)
        if type_ is not None and type_.unsigned:
            sql = f"{sql} UNSIGNED"
        return sql

    def pk_column(self, name: str) -> str:
        return f"{self.quote(name)} INT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY"

    def index_column_sql(self, col: Column) -> str:
        if col.type_ is None or col.type_.kind in ("TEXT", "MEDIUMTEXT", "BLOB", "JSONB"):
            return f"{self.quote(col.name)}({self.index_prefix_length})"
        return self.quote(col.name)

    def create_index_sql(self, index_name: str, table: str, cols: list[Column]) -> str:
        col_list = ", ".join(self.index_column_sql(c) for c in cols)
        return f"CREATE INDEX {self.quote(index_name)} ON {self.quote(table)} ({col_list})"

    def columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT column_name AS name FROM information_schema.columns "
            "WHERE table_name = :table AND table_schema = DATABASE()",
            {"table": table},
        )

    def indexes_query(self, table: str) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT DISTINCT index_name AS name FROM information_schema.statistics "
            "WHERE table_name = :table AND table_schema = DATABASE()",
            {"table": table},
        )


DIALECTS: dict[str, type[DialectTraits]] = {
    "sqlite": SqliteDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "mysql": MysqlDialect,
}


def get_dialect(name: str) -> DialectTraits:
    """Return traits for a dialect name.

    Raises:
        ValueError: If the dialect is not supported.
    """
    try:
        return DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown dialect: '{name}'. Supported: sqlite, postgres, mysql"
        ) from None


__all__ = [
    "DialectTraits",
    "SqliteDialect",
    "PostgresDialect",
    "MysqlDialect",
    "DIALECTS",
    "get_dialect",
]
