# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Column definitions: dialect-neutral column types and the Columns map."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .dialects import DialectTraits


@dataclass(frozen=True)
class ColumnType:
    """Dialect-neutral column type.

    Rendered to SQL by DialectTraits.column_type_sql(). ``length`` only
    applies to STRING; ``unsigned`` only to INTEGER.
    """

    kind: str
    length: int | None = None
    unsigned: bool = False

    def __call__(self, length: int) -> ColumnType:
        """Sized variant: STRING(255)."""
        return ColumnType(self.kind, length, self.unsigned)

    def __str__(self) -> str:
        if self.length is not None:
            return f"{self.kind}({self.length})"
        return f"{self.kind} UNSIGNED" if self.unsigned else self.kind


STRING = ColumnType("STRING")
TEXT = ColumnType("TEXT")
MEDIUMTEXT = ColumnType("MEDIUMTEXT")
INTEGER = ColumnType("INTEGER")
UNSIGNED_INTEGER = ColumnType("INTEGER", unsigned=True)
DOUBLE = ColumnType("DOUBLE")
BOOLEAN = ColumnType("BOOLEAN")
DATE = ColumnType("DATE")
BLOB = ColumnType("BLOB")
JSONB = ColumnType("JSONB")


@dataclass
class Column:
    """Column definition.

    Attributes:
        name: Column name.
        type_: ColumnType, or None to use the dialect's default type.
        primary_key: Column is the primary key.
        auto_increment: Primary key values are generated by the database.
        unique: Name of the uniqueness constraint the column belongs to.
            Columns sharing a name form one composite constraint.
    """

    name: str
    type_: ColumnType | None
    primary_key: bool = False
    auto_increment: bool = False
    unique: str | None = None

    def to_sql(self, dialect: DialectTraits) -> str:
        """Return the column definition for CREATE/ALTER TABLE."""
        if self.primary_key and self.auto_increment:
            return dialect.pk_column(self.name)

        type_sql = dialect.column_type_sql(self.type_)
        parts = [dialect.quote(self.name)]
        if type_sql:
            parts.append(type_sql)
        if self.primary_key:
            parts.append("PRIMARY KEY")
        return " ".join(parts)


class Columns:
    """Ordered column map with helpers used by Table."""

    def __init__(self) -> None:
        self._columns: dict[str, Column] = {}

    def column(self, name: str, type_: ColumnType | None, **kwargs) -> Column:
        """Add (or replace) a column and return it."""
        col = Column(name, type_, **kwargs)
        self._columns[name] = col
        return col

    def get(self, name: str) -> Column | None:
        return self._columns.get(name)

    def values(self) -> list[Column]:
        return list(self._columns.values())

    def names(self) -> list[str]:
        return list(self._columns)

    @property
    def pkey(self) -> str | None:
        """Name of the primary key column, if any."""
        for col in self._columns.values():
            if col.primary_key:
                return col.name
        return None

    def unique_constraints(self) -> dict[str, list[str]]:
        """Group unique columns by constraint name."""
        constraints: dict[str, list[str]] = {}
        for col in self._columns.values():
            if col.unique:
                constraints.setdefault(col.unique, []).append(col.name)
        return constraints

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)


__all__ = [
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
]
