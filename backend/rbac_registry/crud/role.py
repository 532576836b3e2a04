from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.role import RoleRepository as RoleRepositoryPort
from ..domain.records import PermissionRecord, RoleRecord
from ..models.permission import Permission
from ..models.role import Role
from ..models.role_permission import RolePermission


async def load_role_permissions(
    session: AsyncSession, role_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, tuple[PermissionRecord, ...]]:
    """Expand permission references for the given roles, in membership order."""
    ids = list(dict.fromkeys(role_ids))
    if not ids:
        return {}
    result = await session.execute(
        select(RolePermission.role_id, Permission.id, Permission.name)
        .join(Permission, Permission.id == RolePermission.permission_id)
        .where(RolePermission.role_id.in_(ids))
        .order_by(RolePermission.role_id, RolePermission.position)
    )
    expanded: dict[uuid.UUID, list[PermissionRecord]] = {role_id: [] for role_id in ids}
    for role_id, permission_id, permission_name in result.all():
        expanded[role_id].append(PermissionRecord(id=permission_id, name=permission_name))
    return {role_id: tuple(items) for role_id, items in expanded.items()}


class RoleRepository(RoleRepositoryPort):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _expand(self, rows: Sequence) -> list[RoleRecord]:
        permissions = await load_role_permissions(self._session, (row.id for row in rows))
        return [
            RoleRecord(id=row.id, name=row.name, permissions=permissions.get(row.id, ()))
            for row in rows
        ]

    async def _get_by_id(self, role_id: uuid.UUID) -> RoleRecord:
        result = await self._session.execute(
            select(Role.id, Role.name).where(Role.id == role_id)
        )
        records = await self._expand(result.all())
        if not records:
            raise RuntimeError(f"Role {role_id} disappeared during the operation")
        return records[0]

    async def _insert_memberships(
        self, role_id: uuid.UUID, permission_ids: Sequence[uuid.UUID], start: int = 0
    ) -> None:
        if not permission_ids:
            return
        self._session.add_all(
            [
                RolePermission(
                    id=uuid.uuid4(),
                    role_id=role_id,
                    permission_id=permission_id,
                    position=start + index,
                )
                for index, permission_id in enumerate(permission_ids)
            ]
        )
        await self._session.flush()

    async def get_by_name(self, name: str) -> RoleRecord | None:
        result = await self._session.execute(
            select(Role.id, Role.name).where(Role.name == name)
        )
        records = await self._expand(result.all())
        return records[0] if records else None

    async def list(self, name_filter: str | None = None) -> list[RoleRecord]:
        query = select(Role.id, Role.name).order_by(Role.name)
        if name_filter:
            query = query.where(Role.name.icontains(name_filter, autoescape=True))
        result = await self._session.execute(query)
        return await self._expand(result.all())

    async def create(self, name: str, permission_ids: Sequence[uuid.UUID]) -> RoleRecord:
        role = Role(id=uuid.uuid4(), name=name)
        self._session.add(role)
        await self._session.flush()
        await self._insert_memberships(role.id, permission_ids)
        return await self._get_by_id(role.id)

    async def replace(
        self, role_id: uuid.UUID, name: str, permission_ids: Sequence[uuid.UUID]
    ) -> RoleRecord:
        roles = Role.__table__
        await self._session.execute(
            update(roles).where(roles.c.id == role_id).values(name=name)
        )
        await self._session.execute(
            delete(RolePermission.__table__).where(
                RolePermission.__table__.c.role_id == role_id
            )
        )
        await self._insert_memberships(role_id, permission_ids)
        return await self._get_by_id(role_id)

    async def append_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RoleRecord:
        result = await self._session.execute(
            select(func.max(RolePermission.position)).where(
                RolePermission.role_id == role_id
            )
        )
        last_position = result.scalar_one_or_none()
        start = 0 if last_position is None else last_position + 1
        await self._insert_memberships(role_id, [permission_id], start=start)
        return await self._get_by_id(role_id)

    async def remove_permission(
        self, role_id: uuid.UUID, permission_id: uuid.UUID
    ) -> RoleRecord:
        memberships = RolePermission.__table__
        await self._session.execute(
            delete(memberships).where(
                memberships.c.role_id == role_id,
                memberships.c.permission_id == permission_id,
            )
        )
        return await self._get_by_id(role_id)

    async def delete(self, role_id: uuid.UUID) -> None:
        await self._session.execute(
            delete(RolePermission.__table__).where(
                RolePermission.__table__.c.role_id == role_id
            )
        )
        await self._session.execute(
            delete(Role.__table__).where(Role.__table__.c.id == role_id)
        )

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
