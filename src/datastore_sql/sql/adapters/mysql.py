# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MySQL adapter using PyMySQL, with blocking calls run in worker threads.

Each acquire() opens a new connection, release() closes it. Driver calls
go through asyncio.to_thread() so the event loop never blocks.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any
from urllib.parse import unquote, urlsplit

from ..dialects import MysqlDialect
from .base import DbAdapter


class MysqlAdapter(DbAdapter):
    """MySQL adapter with per-request connections.

    Uses :name placeholders converted to %(name)s (PyMySQL pyformat).
    Literal ``%`` characters are doubled before conversion.
    """

    def __init__(self, dsn: str, connect_timeout: float = 10.0):
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        self.dialect = MysqlDialect()

        try:
            import pymysql  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "MySQL support requires PyMySQL. "
                "Install with: pip install datastore-sql[mysql]"
            ) from e

        parts = urlsplit(dsn)
        self._connect_kwargs: dict[str, Any] = {
            "host": parts.hostname or "localhost",
            "port": parts.port or 3306,
            "user": unquote(parts.username) if parts.username else None,
            "password": unquote(parts.password) if parts.password else "",
            "database": parts.path.lstrip("/") or None,
            "connect_timeout": connect_timeout,
            "charset": "utf8mb4",
        }

    def _convert_placeholders(self, query: str) -> str:
        """Convert :name placeholders to %(name)s for PyMySQL."""
        query = query.replace("%", "%%")
        return re.sub(r"(?<!:):([a-zA-Z_][a-zA-Z0-9_]*)", r"%(\1)s", query)

    def _connect(self) -> Any:
        import pymysql
        from pymysql.cursors import DictCursor

        return pymysql.connect(cursorclass=DictCursor, autocommit=False, **self._connect_kwargs)

    async def acquire(self) -> Any:
        """Open new connection for request."""
        return await asyncio.to_thread(self._connect)

    async def release(self, conn: Any) -> None:
        """Close connection."""
        await asyncio.to_thread(conn.close)

    async def shutdown(self) -> None:
        """No-op (no pool to close)."""
        pass

    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        await asyncio.to_thread(conn.commit)

    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        await asyncio.to_thread(conn.rollback)

    def _run(self, conn: Any, query: str, params: dict[str, Any] | None, fetch: str | None) -> Any:
        with conn.cursor() as cur:
            affected = cur.execute(self._convert_placeholders(query), params or {})
            if fetch == "one":
                return cur.fetchone()
            if fetch == "all":
                return list(cur.fetchall())
            if fetch == "lastrowid":
                return cur.lastrowid
            return affected

    async def execute(self, conn: Any, query: str, params: dict[str, Any] | None = None) -> int:
        """Execute query, return affected row count."""
        return await asyncio.to_thread(self._run, conn, query, params, None)

    async def fetch_one(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Execute query, return single row as dict or None."""
        return await asyncio.to_thread(self._run, conn, query, params, "one")

    async def fetch_all(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query, return all rows as list of dicts."""
        return await asyncio.to_thread(self._run, conn, query, params, "all")

    def _insert_sql(self, table: str, values: dict[str, Any]) -> str:
        if not values:
            return f"INSERT INTO {self._sql_name(table)} () VALUES ()"
        return super()._insert_sql(table, values)

    async def insert_returning_id(
        self, conn: Any, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        """Insert a row and return the generated primary key (lastrowid)."""
        return await asyncio.to_thread(
            self._run, conn, self._insert_sql(table, values), values, "lastrowid"
        )
