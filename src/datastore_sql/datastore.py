# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Relational storage backend.

SqlDatastore derives one physical table per model at construction time and
implements the storage interface on top of SqlDb:

- get/save/remove/update: single-row operations, values run through the
  transcoder on the way in and out
- scan: request -> QueryPlan (see scan.py) -> rows, decoded concurrently
- query: raw SQL picked by dialect, executed with :name replacements
- setup: synchronize tables when asked to

Usage:
    models = load_models("models.json")
    store = SqlDatastore(config=config_from_env(), models=models)
    await store.setup("true")
    job = await store.save({"table": "jobs", "params": {"name": "main"}})
    rows = await store.scan({"table": "jobs", "params": {"pipelineId": 1}})
    await store.close()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .config import DatastoreConfig
from .datastore_base import Datastore
from .errors import DialectQueryNotFoundError, InvalidFieldError, InvalidTableError
from .mapping import PRIMARY_KEY, define_table
from .scan import build_scan_plan
from .schema import ModelDescriptor, models_from_dict
from .sql import SqlDb
from .transcoder import decode, decode_rows, encode, resolve

if TYPE_CHECKING:
    from .requests import ItemRequest, QueryRequest, ScanRequest
    from .sql.table import Table

logger = logging.getLogger(__name__)

# Spellings accepted in raw query entries
_DIALECT_ALIASES = {"postgresql": "postgres"}


class SqlDatastore(Datastore):
    """Storage backend over a relational database.

    Attributes:
        config: DatastoreConfig in use.
        db: SqlDb client shared by every operation.
        prefix: Prefix applied to every physical table name.
        tables: Table handles keyed by logical table name.
        models: ModelDescriptors keyed by logical table name.
    """

    def __init__(
        self,
        config: DatastoreConfig | Mapping[str, Any] | None = None,
        models: Mapping[str, ModelDescriptor] | Mapping[str, Mapping[str, Any]] | None = None,
        db: SqlDb | None = None,
    ):
        """Build the client (unless given) and define every model's table.

        Args:
            config: DatastoreConfig or camelCase option mapping.
            models: Registry, model name -> ModelDescriptor (or raw entry).
            db: Client to use instead of one built from config.
        """
        if config is None:
            config = DatastoreConfig()
        elif not isinstance(config, DatastoreConfig):
            config = DatastoreConfig.from_dict(config)
        self.config = config
        self.prefix = config.prefix or ""

        self.db = db or SqlDb(
            config.connection_string, slowlog_threshold=config.slowlog_threshold
        )

        registry = dict(models or {})
        if registry and not all(isinstance(m, ModelDescriptor) for m in registry.values()):
            registry = models_from_dict(registry)

        self.tables: dict[str, Table] = {}
        self.models: dict[str, ModelDescriptor] = {}
        for model in registry.values():
            self.tables[model.table_name] = define_table(self.db, model, self.prefix)
            self.models[model.table_name] = model

        logger.debug(
            "SqlDatastore ready: dialect=%s, %d tables", self.dialect_name, len(self.tables)
        )

    @property
    def dialect(self):
        return self.db.dialect

    @property
    def dialect_name(self) -> str:
        return self.db.get_dialect()

    def _lookup(self, table_name: str) -> tuple[Table, ModelDescriptor]:
        """Table and model for a logical name, or InvalidTableError."""
        table = self.tables.get(table_name)
        if table is None:
            raise InvalidTableError(table_name)
        return table, self.models[table_name]

    @staticmethod
    def _check_params(model: ModelDescriptor, params: Mapping[str, Any]) -> None:
        """Raise InvalidFieldError for the first params key missing from model."""
        for name in params:
            if not model.has_field(name):
                raise InvalidFieldError("param", name)

    async def close(self) -> None:
        """Close the client's connections."""
        await self.db.shutdown()

    # -------------------------------------------------------------------------
    # Storage interface
    # -------------------------------------------------------------------------

    async def _setup(self, ddl_sync: str | None) -> None:
        if ddl_sync != "true":
            logger.debug("Table synchronization skipped")
            return
        logger.info("Synchronizing %d tables", len(self.tables))
        await self.db.sync()

    async def _get(self, request: ItemRequest) -> dict[str, Any] | None:
        table, model = self._lookup(request.table)
        params = request.params
        self._check_params(model, params)

        if PRIMARY_KEY in params:
            row = await table.find_by_pk(params[PRIMARY_KEY])
        else:
            row = await table.find_one(params)
        return decode(self.dialect, row, model)

    async def _save(self, request: ItemRequest) -> dict[str, Any]:
        """Insert, return the resolved params plus the generated id.

        The result is not decoded back from the stored form.
        """
        table, model = self._lookup(request.table)
        self._check_params(model, request.params)
        record = await resolve(request.params)
        created = await table.create(await encode(self.dialect, record, model))
        if PRIMARY_KEY in created:
            record[PRIMARY_KEY] = created[PRIMARY_KEY]
        return record

    async def _remove(self, request: ItemRequest) -> None:
        table, _ = self._lookup(request.table)
        await table.destroy({PRIMARY_KEY: request.params.get(PRIMARY_KEY)})
        return None

    async def _update(self, request: ItemRequest) -> dict[str, Any]:
        table, model = self._lookup(request.table)
        params = request.params
        self._check_params(model, params)
        encoded = await encode(self.dialect, params, model)
        values = {k: v for k, v in encoded.items() if k != PRIMARY_KEY}
        await table.update(values, {PRIMARY_KEY: encoded.get(PRIMARY_KEY)})
        return params

    async def _scan(self, request: ScanRequest) -> list[dict[str, Any]] | dict[str, Any]:
        table, model = self._lookup(request.table)
        plan = build_scan_plan(request, model, self.dialect)

        if request.get_count:
            count, rows = await table.find_and_count_all(plan)
            return {"count": count, "rows": await decode_rows(self.dialect, rows, model)}

        rows = await table.find_all(plan)
        return await decode_rows(self.dialect, rows, model)

    async def _query(self, request: QueryRequest) -> list[dict[str, Any]]:
        _, model = self._lookup(request.table)
        dialect_name = self.dialect_name

        for entry in request.queries:
            db_type = entry.db_type.lower()
            if _DIALECT_ALIASES.get(db_type, db_type) == dialect_name:
                sql = entry.query
                break
        else:
            raise DialectQueryNotFoundError(dialect_name)

        rows = await self.db.query(sql, request.replacements)
        if request.raw_response:
            return rows
        return await decode_rows(self.dialect, rows, model)


__all__ = ["SqlDatastore"]
