# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Datastore configuration.

This module defines:
- DatastoreConfig: Construction-time options of SqlDatastore
- config_from_env(): Factory to build config from DATASTORE_SQL_* env vars

Configuration via environment variables:
    DATASTORE_SQL_DIALECT: sqlite, postgres or mysql (default: sqlite)
    DATASTORE_SQL_DATABASE: Database name (default: datastore)
    DATASTORE_SQL_USERNAME / DATASTORE_SQL_PASSWORD: Credentials
    DATASTORE_SQL_HOST / DATASTORE_SQL_PORT: Server address
    DATASTORE_SQL_STORAGE: SQLite file path (default: :memory:)
    DATASTORE_SQL_PREFIX: Prefix applied to every physical table name
    DATASTORE_SQL_SLOWLOG_THRESHOLD: Slow query threshold in ms (default: 2000)

Usage:
    # From environment (Docker/production):
    store = SqlDatastore(config=config_from_env(), models=models)

    # From the camelCase options of the storage interface:
    config = DatastoreConfig.from_dict({"dialect": "postgres", "slowlogThreshold": 500})
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import quote

DEFAULT_SLOWLOG_THRESHOLD = 2000

_DEFAULT_PORTS = {"postgres": 5432, "mysql": 3306}


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)([A-Z])", r"_\1", name).lower()


@dataclass
class DatastoreConfig:
    """Construction-time options.

    Attributes:
        database: Database name on the server.
        dialect: sqlite, postgres or mysql.
        username: Login username.
        password: Login password.
        host: Server host (postgres, mysql).
        port: Server port; None uses the dialect default.
        storage: SQLite database file (":memory:" for in-memory).
        prefix: Prefix applied to every physical table name.
        slowlog_threshold: Milliseconds before a query is logged as slow.
    """

    database: str = "datastore"
    dialect: str = "sqlite"
    username: str | None = None
    password: str | None = None
    host: str = "localhost"
    port: int | None = None
    storage: str = ":memory:"
    prefix: str = ""
    slowlog_threshold: float = DEFAULT_SLOWLOG_THRESHOLD

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DatastoreConfig:
        """Build from a mapping; camelCase and snake_case keys both accepted.

        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known and value is not None:
                values[name] = value
        return cls(**values)

    @property
    def connection_string(self) -> str:
        """Client connection string for this configuration."""
        dialect = "postgres" if self.dialect == "postgresql" else self.dialect
        if dialect == "sqlite":
            return f"sqlite:{self.storage}"
        if dialect not in _DEFAULT_PORTS:
            raise ValueError(
                f"Unknown dialect: '{self.dialect}'. Supported: sqlite, postgres, mysql"
            )

        credentials = ""
        if self.username:
            credentials = quote(self.username, safe="")
            if self.password:
                credentials += ":" + quote(self.password, safe="")
            credentials += "@"
        port = self.port or _DEFAULT_PORTS[dialect]
        scheme = "postgresql" if dialect == "postgres" else "mysql"
        return f"{scheme}://{credentials}{self.host}:{port}/{self.database}"


def config_from_env() -> DatastoreConfig:
    """Build DatastoreConfig from DATASTORE_SQL_* environment variables."""
    port = os.environ.get("DATASTORE_SQL_PORT")
    return DatastoreConfig(
        database=os.environ.get("DATASTORE_SQL_DATABASE", "datastore"),
        dialect=os.environ.get("DATASTORE_SQL_DIALECT", "sqlite"),
        username=os.environ.get("DATASTORE_SQL_USERNAME"),
        password=os.environ.get("DATASTORE_SQL_PASSWORD"),
        host=os.environ.get("DATASTORE_SQL_HOST", "localhost"),
        port=int(port) if port else None,
        storage=os.environ.get("DATASTORE_SQL_STORAGE", ":memory:"),
        prefix=os.environ.get("DATASTORE_SQL_PREFIX", ""),
        slowlog_threshold=float(
            os.environ.get("DATASTORE_SQL_SLOWLOG_THRESHOLD", DEFAULT_SLOWLOG_THRESHOLD)
        ),
    )


__all__ = ["DatastoreConfig", "config_from_env", "DEFAULT_SLOWLOG_THRESHOLD"]
