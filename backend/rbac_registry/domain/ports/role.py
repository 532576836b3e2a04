from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Protocol

from ..records import RoleRecord


class RoleRepository(Protocol):
    async def get_by_name(self, name: str) -> RoleRecord | None:
        ...

    async def list(self, name_filter: str | None = None) -> list[RoleRecord]:
        ...

    async def create(self, name: str, permission_ids: Sequence[uuid.UUID]) -> RoleRecord:
        ...

    async def replace(
        self, role_id: uuid.UUID, name: str, permission_ids: Sequence[uuid.UUID]
    ) -> RoleRecord:
        ...

    async def append_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RoleRecord:
        ...

    async def remove_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RoleRecord:
        ...

    async def delete(self, role_id: uuid.UUID) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class RoleLookup(Protocol):
    """Role resolution consumed by the user service."""

    async def lookup_exact(self, name: str) -> RoleRecord | None:
        ...
