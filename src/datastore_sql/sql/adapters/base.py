# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class for async database backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..dialects import DialectTraits


class DbAdapter(ABC):
    """Abstract base class for async database adapters.

    Provides a unified interface for SQLite, PostgreSQL and MySQL with:
    - Connection management (acquire, release, shutdown)
    - Transaction control (commit, rollback on connection)
    - Raw query execution (execute, fetch_one, fetch_all)
    - Insert with generated primary key (insert_returning_id)

    Connection model:
    - acquire(): Returns a connection (from pool or new handle)
    - release(conn): Returns connection to pool or closes it
    - shutdown(): Closes connection pool (application shutdown only)

    Queries always use ``:name`` placeholders; adapters convert them when
    the driver expects another style. Subclasses set ``dialect``.
    """

    dialect: DialectTraits

    @abstractmethod
    async def acquire(self) -> Any:
        """Acquire a connection.

        For pooled adapters: gets connection from pool.
        For file-based adapters: opens new connection.
        """
        ...

    @abstractmethod
    async def release(self, conn: Any) -> None:
        """Release a connection (back to pool, or close)."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Close connection pool (application shutdown)."""
        ...

    # -------------------------------------------------------------------------
    # Connection-bound operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def execute(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> int:
        """Execute query on connection, return affected row count."""
        ...

    @abstractmethod
    async def fetch_one(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Execute query on connection, return single row as dict or None."""
        ...

    @abstractmethod
    async def fetch_all(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query on connection, return all rows as list of dicts."""
        ...

    @abstractmethod
    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        ...

    @abstractmethod
    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        ...

    @abstractmethod
    async def insert_returning_id(
        self, conn: Any, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        """Insert a row and return the generated primary key."""
        ...

    # -------------------------------------------------------------------------
    # SQL Helpers
    # -------------------------------------------------------------------------

    def _sql_name(self, name: str) -> str:
        """Return quoted SQL identifier for column/table name."""
        return self.dialect.quote(name)

    def _placeholder(self, name: str) -> str:
        """Return placeholder for named parameter."""
        return self.dialect.placeholder(name)

    def _insert_sql(self, table: str, values: dict[str, Any]) -> str:
        if not values:
            return f"INSERT INTO {self._sql_name(table)} DEFAULT VALUES"
        cols = list(values.keys())
        col_list = ", ".join(self._sql_name(c) for c in cols)
        placeholders = ", ".join(self._placeholder(c) for c in cols)
        return f"INSERT INTO {self._sql_name(table)} ({col_list}) VALUES ({placeholders})"
