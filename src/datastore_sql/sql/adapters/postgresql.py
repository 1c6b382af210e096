# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL async adapter using psycopg3 with connection pooling.

Uses connection-per-request model: acquire() gets from pool,
release() returns to pool. Each request gets isolated transaction.
"""

from __future__ import annotations

import re
from typing import Any

from ..dialects import PostgresDialect
from .base import DbAdapter


class PostgresAdapter(DbAdapter):
    """PostgreSQL async adapter with connection pooling.

    Uses :name placeholders converted to %(name)s. acquire() gets connection
    from pool, release() returns it. Each connection is isolated.

    list/dict parameters are bound as JSONB: array and object fields are
    stored natively in this dialect.

    Pool is initialized lazily on first acquire().
    """

    def __init__(self, dsn: str, pool_size: int = 10, connect_timeout: float = 10.0):
        self.dsn = dsn
        self.pool_size = pool_size
        self.connect_timeout = connect_timeout
        self.dialect = PostgresDialect()
        self._pool: Any = None

        # Verify psycopg is available at init time
        try:
            import psycopg  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL support requires psycopg. "
                "Install with: pip install datastore-sql[postgresql]"
            ) from e

    def _convert_placeholders(self, query: str) -> str:
        """Convert :name placeholders to %(name)s for psycopg."""
        query = query.replace("%", "%%")
        return re.sub(r"(?<!:):([a-zA-Z_][a-zA-Z0-9_]*)", r"%(\1)s", query)

    def _adapt_params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        """Wrap structured values for JSONB columns."""
        if not params:
            return {}
        from psycopg.types.json import Jsonb

        return {
            k: Jsonb(v) if isinstance(v, (dict, list)) else v
            for k, v in params.items()
        }

    async def _ensure_pool(self) -> None:
        """Initialize connection pool if not already open."""
        if self._pool is not None:
            return

        import asyncio

        from psycopg_pool import AsyncConnectionPool

        self._pool = AsyncConnectionPool(
            self.dsn,
            min_size=1,
            max_size=self.pool_size,
            open=False,
        )
        try:
            await asyncio.wait_for(
                self._pool.open(wait=True, timeout=self.connect_timeout),
                timeout=self.connect_timeout + 1,
            )
        except asyncio.TimeoutError:
            await self._pool.close()
            self._pool = None
            raise TimeoutError(
                f"PostgreSQL connection timed out after {self.connect_timeout}s. "
                "Check credentials and server availability."
            ) from None
        except Exception as e:
            await self._pool.close()
            self._pool = None
            raise ConnectionError(f"PostgreSQL connection failed: {e}") from e

    async def acquire(self) -> Any:
        """Acquire connection from pool."""
        await self._ensure_pool()
        return await self._pool.getconn()

    async def release(self, conn: Any) -> None:
        """Return connection to pool."""
        if self._pool:
            await self._pool.putconn(conn)

    async def shutdown(self) -> None:
        """Close connection pool (application shutdown)."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        await conn.commit()

    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        await conn.rollback()

    async def execute(self, conn: Any, query: str, params: dict[str, Any] | None = None) -> int:
        """Execute query, return affected row count."""
        query = self._convert_placeholders(query)
        async with conn.cursor() as cur:
            await cur.execute(query, self._adapt_params(params))
            return cur.rowcount

    async def fetch_one(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Execute query, return single row as dict or None."""
        from psycopg.rows import dict_row

        query = self._convert_placeholders(query)
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, self._adapt_params(params))
            return await cur.fetchone()

    async def fetch_all(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query, return all rows as list of dicts."""
        from psycopg.rows import dict_row

        query = self._convert_placeholders(query)
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, self._adapt_params(params))
            if cur.description is None:
                return []
            return await cur.fetchall()

    async def insert_returning_id(
        self, conn: Any, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        """Insert a row and return the generated primary key (RETURNING)."""
        from psycopg.rows import dict_row

        query = f"{self._insert_sql(table, values)} RETURNING {self._sql_name(pk_col)}"
        query = self._convert_placeholders(query)
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, self._adapt_params(values))
            row = await cur.fetchone()
            return row[pk_col] if row else None
