# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for sql.sqldb module - SqlDb client."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from datastore_sql.sql import TEXT, Columns, SqlDb, Table
from datastore_sql.sql.dialects import SqliteDialect


def simple_columns() -> Columns:
    columns = Columns()
    columns.column("name", TEXT)
    return columns


def mock_adapter() -> MagicMock:
    adapter = MagicMock()
    adapter.dialect = SqliteDialect()
    adapter.acquire = AsyncMock(return_value="conn")
    adapter.release = AsyncMock()
    adapter.commit = AsyncMock()
    adapter.rollback = AsyncMock()
    adapter.execute = AsyncMock(return_value=1)
    adapter.fetch_all = AsyncMock(return_value=[{"a": 1}])
    return adapter


class TestSqlDbInit:
    """Tests for SqlDb initialization."""

    def test_init_creates_adapter(self):
        """SqlDb creates adapter from connection string."""
        db = SqlDb(":memory:")
        assert db.adapter is not None
        assert db.tables == {}
        assert db.get_dialect() == "sqlite"
        assert isinstance(db.dialect, SqliteDialect)

    def test_init_with_adapter(self):
        """An explicit adapter wins over the connection string."""
        adapter = mock_adapter()
        db = SqlDb("unused", adapter=adapter)
        assert db.adapter is adapter


class TestSqlDbTableManagement:
    """Tests for define and table methods."""

    def test_define_registers_table(self):
        db = SqlDb(":memory:")
        table = db.define("dummy", simple_columns(), indexes=["name"])
        assert isinstance(table, Table)
        assert db.tables["dummy"] is table
        assert db.table("dummy") is table
        assert table.indexes == ["name"]

    def test_define_twice_raises(self):
        db = SqlDb(":memory:")
        db.define("dummy", simple_columns())
        with pytest.raises(ValueError, match="already defined"):
            db.define("dummy", simple_columns())

    def test_table_not_defined_raises(self):
        db = SqlDb(":memory:")
        with pytest.raises(ValueError, match="not defined"):
            db.table("missing")

    def test_empty_name_raises(self):
        db = SqlDb(":memory:")
        with pytest.raises(ValueError, match="must define 'name'"):
            db.define("", simple_columns())


class TestConnections:
    """Tests for per-statement and shared connections."""

    async def test_statement_without_context_commits(self):
        """Outside connection(), each statement gets its own connection."""
        adapter = mock_adapter()
        db = SqlDb("unused", adapter=adapter)

        await db.execute("UPDATE t SET a = 1")
        await db.execute("UPDATE t SET a = 2")

        assert adapter.acquire.await_count == 2
        assert adapter.commit.await_count == 2
        assert adapter.release.await_count == 2

    async def test_connection_context_shares_connection(self):
        adapter = mock_adapter()
        db = SqlDb("unused", adapter=adapter)

        async with db.connection():
            assert db.conn == "conn"
            await db.execute("UPDATE t SET a = 1")
            await db.fetch_all("SELECT * FROM t")

        assert db.conn is None
        adapter.acquire.assert_awaited_once()
        adapter.commit.assert_awaited_once_with("conn")
        adapter.release.assert_awaited_once_with("conn")

    async def test_connection_rolls_back_on_error(self):
        adapter = mock_adapter()
        db = SqlDb("unused", adapter=adapter)

        with pytest.raises(RuntimeError):
            async with db.connection():
                raise RuntimeError("boom")

        adapter.rollback.assert_awaited_once_with("conn")
        adapter.commit.assert_not_awaited()
        adapter.release.assert_awaited_once_with("conn")

    async def test_backend_error_propagates(self):
        """Driver errors reach the caller unchanged."""
        adapter = mock_adapter()
        adapter.execute = AsyncMock(side_effect=RuntimeError("constraint failed"))
        db = SqlDb("unused", adapter=adapter)

        with pytest.raises(RuntimeError, match="constraint failed"):
            await db.execute("INSERT ...")
        adapter.rollback.assert_awaited_once()

    async def test_query_passes_replacements(self):
        adapter = mock_adapter()
        db = SqlDb("unused", adapter=adapter)

        rows = await db.query("SELECT * FROM t WHERE a = :a", {"a": 1})

        assert rows == [{"a": 1}]
        adapter.fetch_all.assert_awaited_once_with("conn", "SELECT * FROM t WHERE a = :a", {"a": 1})


class TestSlowLog:
    """Tests for slow query logging."""

    async def test_slow_query_logged(self, caplog):
        db = SqlDb("unused", slowlog_threshold=-1, adapter=mock_adapter())
        with caplog.at_level(logging.WARNING, logger="datastore_sql.sql.sqldb"):
            await db.execute("SELECT 1")
        assert "Slow query" in caplog.text
        assert "SELECT 1" in caplog.text

    async def test_fast_query_not_logged(self, caplog):
        db = SqlDb("unused", slowlog_threshold=60_000, adapter=mock_adapter())
        with caplog.at_level(logging.WARNING, logger="datastore_sql.sql.sqldb"):
            await db.execute("SELECT 1")
        assert "Slow query" not in caplog.text

    async def test_disabled(self, caplog):
        db = SqlDb("unused", adapter=mock_adapter())
        with caplog.at_level(logging.WARNING, logger="datastore_sql.sql.sqldb"):
            await db.execute("SELECT 1")
        assert caplog.text == ""


class TestSqliteIntegration:
    """Tests against a real SQLite database."""

    async def test_memory_database_persists_across_statements(self):
        db = SqlDb("sqlite::memory:")
        await db.execute("CREATE TABLE t (a TEXT)")
        await db.execute("INSERT INTO t (a) VALUES (:a)", {"a": "x"})
        assert await db.fetch_all("SELECT a FROM t") == [{"a": "x"}]
        await db.shutdown()

    async def test_file_database(self, sqlite_db: SqlDb):
        await sqlite_db.execute("CREATE TABLE t (a TEXT)")
        await sqlite_db.execute("INSERT INTO t (a) VALUES (:a)", {"a": "x"})
        assert await sqlite_db.fetch_one("SELECT a FROM t") == {"a": "x"}


@pytest.mark.postgres
class TestPostgresIntegration:
    """Tests against a real PostgreSQL database."""

    async def test_raw_query_with_percent_literal(self, pg_db: SqlDb):
        await pg_db.execute('CREATE TABLE "test_items" ("id" SERIAL PRIMARY KEY, "name" TEXT)')
        await pg_db.execute('INSERT INTO "test_items" ("name") VALUES (:name)', {"name": "main"})
        rows = await pg_db.query(
            'SELECT "name" FROM "test_items" WHERE "name" LIKE \'mai%\' AND "id" = :id',
            {"id": 1},
        )
        assert rows == [{"name": "main"}]
