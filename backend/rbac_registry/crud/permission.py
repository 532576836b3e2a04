from __future__ import annotations

import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.permission import PermissionRepository as PermissionRepositoryPort
from ..domain.records import PermissionRecord
from ..models.permission import Permission
from ..models.role_permission import RolePermission


def _permission_columns():
    return select(Permission.id, Permission.name)


class PermissionRepository(PermissionRepositoryPort):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_name(self, name: str) -> PermissionRecord | None:
        result = await self._session.execute(
            _permission_columns().where(Permission.name == name)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return PermissionRecord(id=row.id, name=row.name)

    async def list(self, name_filter: str | None = None) -> list[PermissionRecord]:
        query = _permission_columns().order_by(Permission.name)
        if name_filter:
            query = query.where(Permission.name.icontains(name_filter, autoescape=True))
        result = await self._session.execute(query)
        return [PermissionRecord(id=row.id, name=row.name) for row in result.all()]

    async def create(self, name: str) -> PermissionRecord:
        permission = Permission(id=uuid.uuid4(), name=name)
        self._session.add(permission)
        await self._session.flush()
        return PermissionRecord(id=permission.id, name=name)

    async def rename(self, permission_id: uuid.UUID, new_name: str) -> PermissionRecord:
        await self._session.execute(
            update(Permission.__table__)
            .where(Permission.__table__.c.id == permission_id)
            .values(name=new_name)
        )
        return PermissionRecord(id=permission_id, name=new_name)

    async def delete(self, permission_id: uuid.UUID) -> None:
        # Drop memberships explicitly; not every backend enforces ON DELETE CASCADE.
        await self._session.execute(
            delete(RolePermission.__table__).where(
                RolePermission.__table__.c.permission_id == permission_id
            )
        )
        await self._session.execute(
            delete(Permission.__table__).where(Permission.__table__.c.id == permission_id)
        )

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
