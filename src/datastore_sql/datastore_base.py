# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Generic storage interface.

Datastore validates each request mapping into its pydantic model, then
delegates to the backend hook of the same name (get -> _get, ...).
Validation errors are raised before the backend is reached.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .requests import ItemRequest, QueryRequest, ScanRequest


class Datastore(ABC):
    """Base class for storage backends.

    Public methods accept plain mappings (camelCase keys) or the request
    models themselves.
    """

    async def setup(self, ddl_sync: str | None = None) -> None:
        """Prepare the backend. ``ddl_sync == "true"`` synchronizes tables."""
        await self._setup(ddl_sync)

    async def get(self, request: Mapping[str, Any] | ItemRequest) -> dict[str, Any] | None:
        """Fetch one record by id or by equality filter. None when missing."""
        return await self._get(ItemRequest.model_validate(request))

    async def save(self, request: Mapping[str, Any] | ItemRequest) -> dict[str, Any]:
        """Insert a record, return it with generated values."""
        return await self._save(ItemRequest.model_validate(request))

    async def remove(self, request: Mapping[str, Any] | ItemRequest) -> None:
        """Delete a record by id."""
        return await self._remove(ItemRequest.model_validate(request))

    async def update(self, request: Mapping[str, Any] | ItemRequest) -> dict[str, Any]:
        """Partially update a record by id, return the given params."""
        return await self._update(ItemRequest.model_validate(request))

    async def scan(
        self, request: Mapping[str, Any] | ScanRequest
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """List records; ``{"count", "rows"}`` when getCount is set."""
        return await self._scan(ScanRequest.model_validate(request))

    async def query(self, request: Mapping[str, Any] | QueryRequest) -> list[dict[str, Any]]:
        """Run the raw query written for the active dialect."""
        return await self._query(QueryRequest.model_validate(request))

    @abstractmethod
    async def _setup(self, ddl_sync: str | None) -> None: ...

    @abstractmethod
    async def _get(self, request: ItemRequest) -> dict[str, Any] | None: ...

    @abstractmethod
    async def _save(self, request: ItemRequest) -> dict[str, Any]: ...

    @abstractmethod
    async def _remove(self, request: ItemRequest) -> None: ...

    @abstractmethod
    async def _update(self, request: ItemRequest) -> dict[str, Any]: ...

    @abstractmethod
    async def _scan(self, request: ScanRequest) -> list[dict[str, Any]] | dict[str, Any]: ...

    @abstractmethod
    async def _query(self, request: QueryRequest) -> list[dict[str, Any]]: ...


__all__ = ["Datastore"]
