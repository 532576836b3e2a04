from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol

from ..records import UserRecord, UserSort


class UserRepository(Protocol):
    async def get_by_email(self, email: str) -> UserRecord | None:
        ...

    async def get_by_user_code(self, user_code: int) -> UserRecord | None:
        ...

    async def next_user_code(self) -> int:
        ...

    async def create(
        self,
        *,
        user_code: int,
        name: str,
        email: str,
        birthdate: date,
        role_id: uuid.UUID | None,
    ) -> UserRecord:
        ...

    async def list(
        self,
        *,
        offset: int,
        limit: int,
        sort: UserSort | None = None,
        deleted: bool | None = None,
    ) -> list[UserRecord]:
        ...

    async def count(self, deleted: bool | None = None) -> int:
        ...

    async def update_profile(
        self,
        user_id: uuid.UUID,
        *,
        name: str,
        email: str,
        birthdate: date,
        role_id: uuid.UUID | None,
    ) -> UserRecord:
        ...

    async def set_role(self, user_id: uuid.UUID, role_id: uuid.UUID | None) -> UserRecord:
        ...

    async def set_deleted(self, user_id: uuid.UUID, deleted: bool) -> UserRecord:
        ...

    async def count_with_role(self, role_name: str) -> int:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class UserRoleCounter(Protocol):
    """Usage count consumed by the role service before deleting a role."""

    async def count_users_with_role(self, role_name: str) -> int:
        ...
