# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table handle with Columns-based schema (async version)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .query import QueryPlan, SelectCompiler, WhereBuilder

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .column import Columns
    from .sqldb import SqlDb

logger = logging.getLogger(__name__)


class Table:
    """Physical table defined from a model.

    Attributes:
        name: Table name in database (prefix already applied).
        db: SqlDb instance reference.
        columns: Column definitions.
        indexes: Column names with a single-column index.
    """

    def __init__(
        self, db: SqlDb, name: str, columns: Columns, indexes: Iterable[str] = ()
    ) -> None:
        if not name:
            raise ValueError("Table must define 'name'")
        self.db = db
        self.name = name
        self.columns = columns
        self.indexes = list(indexes)

    @property
    def pkey(self) -> str | None:
        """Primary key column name."""
        return self.columns.pkey

    @property
    def dialect(self):
        return self.db.dialect

    def _compiler(self) -> SelectCompiler:
        return SelectCompiler(self.dialect, self.name)

    def index_name(self, column: str) -> str:
        return f"{self.name}_{column}"

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def create_table_sql(self) -> str:
        """Generate CREATE TABLE IF NOT EXISTS statement."""
        col_defs = [col.to_sql(self.dialect) for col in self.columns.values()]

        for unique_name, col_names in self.columns.unique_constraints().items():
            cols = [self.columns.get(n) for n in col_names]
            col_defs.append(
                self.dialect.unique_constraint_sql(f"{self.name}_{unique_name}", cols)
            )

        return (
            f"CREATE TABLE IF NOT EXISTS {self.dialect.quote(self.name)} (\n    "
            + ",\n    ".join(col_defs)
            + "\n)"
        )

    def create_index_sql(self, column: str) -> str:
        col = self.columns.get(column)
        if col is None:
            raise ValueError(f"Column '{column}' not defined in {self.name}")
        return self.dialect.create_index_sql(self.index_name(column), self.name, [col])

    async def create_schema(self) -> None:
        """Create table if not exists."""
        await self.db.execute(self.create_table_sql())

    async def existing_columns(self) -> set[str]:
        sql, params = self.dialect.columns_query(self.name)
        return {row["name"] for row in await self.db.fetch_all(sql, params)}

    async def existing_indexes(self) -> set[str]:
        sql, params = self.dialect.indexes_query(self.name)
        return {row["name"] for row in await self.db.fetch_all(sql, params)}

    async def sync(self) -> None:
        """Create the table, then add any missing columns and indexes.

        Safe to call on every startup: existing columns and indexes are
        left untouched, nothing is ever dropped.
        """
        await self.create_schema()

        existing = await self.existing_columns()
        for col in self.columns.values():
            if col.name in existing:
                continue
            logger.info("Adding column %s.%s", self.name, col.name)
            await self.db.execute(self.dialect.add_column_sql(self.name, col))

        present = await self.existing_indexes()
        for column in self.indexes:
            if self.index_name(column) in present:
                continue
            logger.info("Creating index %s", self.index_name(column))
            await self.db.execute(self.create_index_sql(column))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def find_by_pk(self, value: Any) -> dict[str, Any] | None:
        """Fetch one row by primary key."""
        if not self.pkey:
            raise ValueError(f"Table '{self.name}' has no primary key")
        return await self.find_one({self.pkey: value})

    async def find_one(self, where: dict[str, Any]) -> dict[str, Any] | None:
        """Fetch the first row matching where."""
        sql, params = self._compiler().select(QueryPlan(where=where, limit=1))
        return await self.db.fetch_one(sql, params)

    async def find_all(self, plan: QueryPlan) -> list[dict[str, Any]]:
        """Fetch all rows selected by plan."""
        sql, params = self._compiler().select(plan)
        return await self.db.fetch_all(sql, params)

    async def count(self, plan: QueryPlan) -> int:
        """Count rows matching plan, ignoring limit and offset."""
        sql, params = self._compiler().count(plan)
        row = await self.db.fetch_one(sql, params)
        return int(row["cnt"]) if row else 0

    async def find_and_count_all(
        self, plan: QueryPlan
    ) -> tuple[int, list[dict[str, Any]]]:
        """Return (total count, page rows) for plan."""
        count = await self.count(plan)
        rows = await self.find_all(plan)
        return count, rows

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a row.

        Returns the inserted values, including the generated primary key
        when the database assigned one.
        """
        record = dict(values)
        if self.pkey and record.get(self.pkey) is None:
            record.pop(self.pkey, None)
            record[self.pkey] = await self.db.insert_returning_id(
                self.name, record, self.pkey
            )
            return record

        cols = list(record.keys())
        if cols:
            col_list = ", ".join(self.dialect.quote(c) for c in cols)
            placeholders = ", ".join(self.dialect.placeholder(c) for c in cols)
            sql = (
                f"INSERT INTO {self.dialect.quote(self.name)} ({col_list}) "
                f"VALUES ({placeholders})"
            )
        else:
            sql = f"INSERT INTO {self.dialect.quote(self.name)} DEFAULT VALUES"
        await self.db.execute(sql, record)
        return record

    async def update(self, values: dict[str, Any], where: dict[str, Any]) -> int:
        """Update rows matching where. Returns affected row count."""
        if not values:
            return 0
        set_parts = [f"{self.dialect.quote(c)} = {self.dialect.placeholder(f's_{c}')}" for c in values]
        params = {f"s_{c}": v for c, v in values.items()}

        where_sql, where_params = WhereBuilder(self.dialect, self.name).build(where)
        params.update(where_params)

        sql = f"UPDATE {self.dialect.quote(self.name)} SET {', '.join(set_parts)}"
        if where_sql:
            sql += f" WHERE {where_sql}"
        return await self.db.execute(sql, params)

    async def destroy(self, where: dict[str, Any]) -> int:
        """Delete rows matching where. Returns deleted row count."""
        where_sql, params = WhereBuilder(self.dialect, self.name).build(where)
        sql = f"DELETE FROM {self.dialect.quote(self.name)}"
        if where_sql:
            sql += f" WHERE {where_sql}"
        return await self.db.execute(sql, params)


__all__ = ["Table"]
