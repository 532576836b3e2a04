from __future__ import annotations

import uuid
from typing import Protocol

from ..records import PermissionRecord


class PermissionRepository(Protocol):
    async def get_by_name(self, name: str) -> PermissionRecord | None:
        ...

    async def list(self, name_filter: str | None = None) -> list[PermissionRecord]:
        ...

    async def create(self, name: str) -> PermissionRecord:
        ...

    async def rename(self, permission_id: uuid.UUID, new_name: str) -> PermissionRecord:
        ...

    async def delete(self, permission_id: uuid.UUID) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class PermissionLookup(Protocol):
    """Exact permission lookup consumed by the role service."""

    async def lookup_exact(self, name: str) -> PermissionRecord | None:
        ...
