# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""datastore-sql: schema-driven relational storage backend."""

from .config import DatastoreConfig, config_from_env
from .datastore import SqlDatastore
from .datastore_base import Datastore
from .errors import (
    DatastoreError,
    DialectQueryNotFoundError,
    InvalidFieldError,
    InvalidTableError,
)
from .schema import FieldDescriptor, FieldType, ModelDescriptor, load_models, models_from_dict

__version__ = "0.1.0"

__all__ = [
    "Datastore",
    "SqlDatastore",
    "DatastoreConfig",
    "config_from_env",
    "DatastoreError",
    "InvalidTableError",
    "InvalidFieldError",
    "DialectQueryNotFoundError",
    "FieldType",
    "FieldDescriptor",
    "ModelDescriptor",
    "load_models",
    "models_from_dict",
]
