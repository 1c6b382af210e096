# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SqlDatastore end to end against a SQLite file."""

from __future__ import annotations

import sqlite3

import pytest
import pytest_asyncio

from datastore_sql import InvalidFieldError, SqlDatastore


@pytest_asyncio.fixture
async def store(tmp_path, registry):
    store = SqlDatastore(
        config={"dialect": "sqlite", "storage": str(tmp_path / "store.db")},
        models=registry,
    )
    await store.setup("true")
    yield store
    await store.close()


@pytest_asyncio.fixture
async def seeded(store):
    for str_, num, name in (("a", 1, "alpha"), ("b", 2, "alpha"), ("c", 3, "beta")):
        await store.save({
            "table": "testModels",
            "params": {
                "str": str_,
                "num": num,
                "bool": num % 2 == 1,
                "arr": [num],
                "obj": {"n": num},
                "name": name,
                "createTime": f"2024-01-0{num}",
            },
        })
    return store


def ids(rows):
    return [row["id"] for row in rows]


class TestItems:
    """save / get / update / remove."""

    async def test_save_and_get(self, store):
        saved = await store.save({
            "table": "testModels",
            "params": {"str": "x", "bool": True, "arr": [1, 2], "obj": {"k": "v"}, "name": None},
        })
        assert saved == {
            "str": "x", "bool": True, "arr": [1, 2], "obj": {"k": "v"}, "name": None, "id": 1
        }

        fetched = await store.get({"table": "testModels", "params": {"id": 1}})
        assert fetched == {"id": 1, "str": "x", "bool": True, "arr": [1, 2], "obj": {"k": "v"}}

    async def test_get_by_filter(self, seeded):
        row = await seeded.get({"table": "testModels", "params": {"str": "b"}})
        assert row["id"] == 2
        assert row["bool"] is False

    async def test_get_missing(self, store):
        assert await store.get({"table": "testModels", "params": {"id": 99}}) is None

    async def test_unknown_param_key_never_reaches_sql(self, seeded):
        with pytest.raises(InvalidFieldError):
            await seeded.get({"table": "testModels", "params": {'id" > 0 OR "id': -1}})
        with pytest.raises(InvalidFieldError):
            await seeded.update({
                "table": "testModels",
                "params": {"id": 1, 'str" = \'pwn\', "name': "x"},
            })
        assert (await seeded.get({"table": "testModels", "params": {"id": 1}}))["str"] == "a"

    async def test_unique_keys(self, seeded):
        with pytest.raises(sqlite3.IntegrityError):
            await seeded.save({"table": "testModels", "params": {"str": "a"}})

    async def test_update(self, seeded):
        params = {"id": 1, "name": "gamma", "arr": [9]}
        assert await seeded.update({"table": "testModels", "params": params}) == params

        row = await seeded.get({"table": "testModels", "params": {"id": 1}})
        assert row["name"] == "gamma"
        assert row["arr"] == [9]
        assert row["str"] == "a"

    async def test_remove(self, seeded):
        assert await seeded.remove({"table": "testModels", "params": {"id": 1}}) is None
        assert await seeded.get({"table": "testModels", "params": {"id": 1}}) is None
        assert ids(await seeded.scan({"table": "testModels"})) == [3, 2]


class TestScan:
    """scan against real rows."""

    async def test_default_order(self, seeded):
        rows = await seeded.scan({"table": "testModels"})
        assert ids(rows) == [3, 2, 1]
        assert rows[0]["obj"] == {"n": 3}

    async def test_params_and_comparison(self, seeded):
        rows = await seeded.scan({"table": "testModels", "params": {"name": "alpha"}})
        assert ids(rows) == [2, 1]
        rows = await seeded.scan({"table": "testModels", "params": {"num": "gt:1"}})
        assert ids(rows) == [3, 2]
        rows = await seeded.scan({"table": "testModels", "params": {"str": ["a", "c"]}})
        assert ids(rows) == [3, 1]

    async def test_search(self, seeded):
        rows = await seeded.scan(
            {"table": "testModels", "search": {"field": "name", "keyword": "%alp%"}}
        )
        assert ids(rows) == [2, 1]
        rows = await seeded.scan({
            "table": "testModels",
            "search": {"field": "name", "keyword": "%alp%", "inverse": True},
        })
        assert ids(rows) == [3]

    async def test_time_range(self, seeded):
        rows = await seeded.scan({
            "table": "testModels",
            "startTime": "2024-01-02",
            "endTime": "2024-01-03",
            "sort": "ascending",
        })
        assert ids(rows) == [2, 3]

    async def test_pagination_with_count(self, seeded):
        result = await seeded.scan({
            "table": "testModels",
            "paginate": {"count": 2, "page": 2},
            "getCount": True,
        })
        assert result["count"] == 3
        assert ids(result["rows"]) == [1]

    async def test_exclude(self, seeded):
        rows = await seeded.scan({"table": "testModels", "exclude": ["arr", "obj"]})
        assert "arr" not in rows[0]
        assert "obj" not in rows[0]
        assert rows[0]["str"] == "c"

    async def test_group_by_latest_row(self, seeded):
        rows = await seeded.scan({"table": "testModels", "groupBy": ["name"]})
        assert ids(rows) == [3, 2]
        assert rows[1]["bool"] is False

    async def test_distinct(self, seeded):
        rows = await seeded.scan(
            {"table": "testModels", "params": {"distinct": "name"}, "sort": "ascending"}
        )
        assert rows == [{"name": "alpha"}, {"name": "beta"}]

    async def test_aggregation(self, seeded):
        rows = await seeded.scan({"table": "testModels", "aggregationField": "name"})
        assert sorted(rows, key=lambda r: r["name"]) == [
            {"name": "alpha", "count": 2},
            {"name": "beta", "count": 1},
        ]


class TestQuery:
    async def test_raw_query(self, seeded):
        request = {
            "table": "testModels",
            "queries": [
                {"dbType": "mysql", "query": "SELECT 0"},
                {"dbType": "sqlite", "query": 'SELECT * FROM "testModels" WHERE "name" = :name'},
            ],
            "replacements": {"name": "beta"},
        }
        rows = await seeded.query(request)
        assert ids(rows) == [3]
        assert rows[0]["arr"] == [3]

        raw = await seeded.query({**request, "rawResponse": True})
        assert raw[0]["arr"] == "[3]"


class TestSetup:
    async def test_tables_created_with_prefix(self, tmp_path, registry):
        store = SqlDatastore(
            config={"storage": str(tmp_path / "p.db"), "prefix": "beta_"}, models=registry
        )
        await store.setup("true")
        rows = await store.db.fetch_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )
        assert {"beta_jobs", "beta_testModels"} <= {row["name"] for row in rows}
        indexes = await store.tables["jobs"].existing_indexes()
        assert {"beta_jobs_name", "beta_jobs_pipelineId"} <= indexes
        await store.close()

    async def test_setup_without_sync(self, tmp_path, registry):
        store = SqlDatastore(config={"storage": str(tmp_path / "n.db")}, models=registry)
        await store.setup()
        rows = await store.db.fetch_all("SELECT name FROM sqlite_master WHERE type = 'table'")
        assert rows == []
        await store.close()
