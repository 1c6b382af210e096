# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the datastore before any backend call.

Backend failures (driver errors, constraint violations) are never wrapped:
they reach the caller as raised by the driver.
"""

from __future__ import annotations


class DatastoreError(Exception):
    """Base class for datastore validation errors."""


class InvalidTableError(DatastoreError, ValueError):
    """Raised when a request names a table that is not registered."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f'Invalid table name "{table}"')


class InvalidFieldError(DatastoreError, ValueError):
    """Raised when a scan request references a field missing from the model.

    The message names the request slot that held the field, e.g.
    ``Invalid param "bogus"`` or ``Invalid sortBy "bogus"``.
    """

    def __init__(self, kind: str, field: str):
        self.kind = kind
        self.field = field
        super().__init__(f'Invalid {kind} "{field}"')


class DialectQueryNotFoundError(DatastoreError, ValueError):
    """Raised when a raw query request has no entry for the active dialect."""

    def __init__(self, dialect: str):
        self.dialect = dialect
        super().__init__(f'No query found for dialect "{dialect}"')


__all__ = [
    "DatastoreError",
    "InvalidTableError",
    "InvalidFieldError",
    "DialectQueryNotFoundError",
]
