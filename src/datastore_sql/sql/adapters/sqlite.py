# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite with per-request connections."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import aiosqlite

from ..dialects import SqliteDialect
from .base import DbAdapter


class SqliteAdapter(DbAdapter):
    """SQLite async adapter with per-request connections.

    Uses :name placeholders natively. Each acquire() opens a new connection,
    release() closes it. An in-memory database keeps one shared connection
    instead, otherwise every request would see a fresh empty database.

    Date and datetime parameters are bound as ISO 8601 text with a ``T``
    separator, the form of caller-supplied ISO strings.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path or ":memory:"
        self.dialect = SqliteDialect()
        self._shared: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return self.db_path == ":memory:"

    def _adapt_params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        if not params:
            return {}
        return {
            k: v.isoformat() if isinstance(v, (date, datetime))
            else v
            for k, v in params.items()
        }

    async def acquire(self) -> aiosqlite.Connection:
        """Open new connection for request (shared one for :memory:)."""
        if self.in_memory:
            if self._shared is None:
                self._shared = await aiosqlite.connect(self.db_path)
            return self._shared
        return await aiosqlite.connect(self.db_path)

    async def release(self, conn: aiosqlite.Connection) -> None:
        """Close connection."""
        if conn is self._shared:
            return
        await conn.close()

    async def shutdown(self) -> None:
        """Close the shared in-memory connection, if any."""
        if self._shared is not None:
            await self._shared.close()
            self._shared = None

    async def commit(self, conn: aiosqlite.Connection) -> None:
        """Commit transaction on connection."""
        await conn.commit()

    async def rollback(self, conn: aiosqlite.Connection) -> None:
        """Rollback transaction on connection."""
        await conn.rollback()

    async def execute(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> int:
        """Execute query, return affected row count."""
        cursor = await conn.execute(query, self._adapt_params(params))
        return cursor.rowcount

    async def fetch_one(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Execute query, return single row as dict or None."""
        async with conn.execute(query, self._adapt_params(params)) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return None
            cols = [c[0] for c in cursor.description]
            return dict(zip(cols, row, strict=True))

    async def fetch_all(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query, return all rows as list of dicts."""
        async with conn.execute(query, self._adapt_params(params)) as cursor:
            rows = await cursor.fetchall()
            if cursor.description is None:
                return []
            cols = [c[0] for c in cursor.description]
            return [dict(zip(cols, row, strict=True)) for row in rows]

    async def insert_returning_id(
        self, conn: aiosqlite.Connection, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        """Insert a row and return the generated primary key (lastrowid)."""
        cursor = await conn.execute(self._insert_sql(table, values), self._adapt_params(values))
        return cursor.lastrowid
