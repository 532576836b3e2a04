import logging
import uuid
from collections.abc import Iterable
from contextlib import asynccontextmanager

from ..domain.naming import normalize_filter, normalize_name
from ..domain.ports.permission import PermissionLookup
from ..domain.ports.role import RoleRepository
from ..domain.ports.user import UserRoleCounter
from ..domain.records import RoleRecord
from ..errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


class RoleService:
    """Owns role records and their ordered permission memberships.

    Permission references are validated through a ``PermissionLookup``.
    Deleting a role needs a ``UserRoleCounter``, which is bound after
    construction because the user service depends on this service in turn.
    """

    def __init__(
        self,
        repository: RoleRepository,
        permissions: PermissionLookup,
        user_counter: UserRoleCounter | None = None,
    ) -> None:
        self._repository = repository
        self._permissions = permissions
        self._user_counter = user_counter

    def bind_user_counter(self, user_counter: UserRoleCounter) -> None:
        self._user_counter = user_counter

    @asynccontextmanager
    async def _write(self):
        try:
            yield
            await self._repository.commit()
        except Exception:
            await self._repository.rollback()
            raise

    async def _resolve_permissions(self, permission_names: Iterable[str]) -> list[uuid.UUID]:
        # One lookup per name, stopping at the first unknown one. Repeated
        # names collapse onto their first occurrence.
        permission_ids: list[uuid.UUID] = []
        for raw_name in permission_names:
            permission = await self._permissions.lookup_exact(raw_name)
            if permission is None:
                name = normalize_name(raw_name)
                raise ConflictError(
                    f"Permission {name} does not exist", details={"permission": name}
                )
            if permission.id not in permission_ids:
                permission_ids.append(permission.id)
        return permission_ids

    async def _require_role(self, name: str) -> RoleRecord:
        role = await self._repository.get_by_name(name)
        if role is None:
            raise ConflictError(f"Role {name} does not exist", details={"role": name})
        return role

    async def create(self, name: str, permission_names: Iterable[str] = ()) -> RoleRecord:
        name = normalize_name(name)
        if not name:
            raise ValidationError("Role name must not be blank")

        if await self._repository.get_by_name(name) is not None:
            raise ConflictError(f"Role {name} already exists", details={"role": name})

        permission_ids = await self._resolve_permissions(permission_names)
        async with self._write():
            role = await self._repository.create(name, permission_ids)
        logger.info(
            "role_created name=%s permissions=%d", role.name, len(role.permissions)
        )
        return role

    async def list(self, name_filter: str | None = None) -> list[RoleRecord]:
        return await self._repository.list(normalize_filter(name_filter))

    async def replace(
        self, name: str, new_name: str, permission_names: Iterable[str] = ()
    ) -> RoleRecord:
        """Replace a role's name and permission set; create it when missing."""
        name = normalize_name(name)
        new_name = normalize_name(new_name)
        if not new_name:
            raise ValidationError("Role name must not be blank")

        role = await self._repository.get_by_name(name)
        if role is None:
            logger.info("role_replace_fallback name=%s action=create", name)
            return await self.create(new_name, permission_names)

        if new_name != name and await self._repository.get_by_name(new_name) is not None:
            raise ConflictError(
                f"Role {new_name} already exists", details={"role": new_name}
            )

        permission_ids = await self._resolve_permissions(permission_names)
        async with self._write():
            updated = await self._repository.replace(role.id, new_name, permission_ids)
        logger.info("role_replaced name=%s new_name=%s", name, new_name)
        return updated

    async def add_permission(self, role_name: str, permission_name: str) -> RoleRecord:
        role_name = normalize_name(role_name)
        permission_name = normalize_name(permission_name)
        role = await self._require_role(role_name)

        permission = await self._permissions.lookup_exact(permission_name)
        if permission is None:
            raise ConflictError(
                f"Permission {permission_name} does not exist",
                details={"permission": permission_name},
            )
        if role.has_permission(permission.id):
            raise ConflictError(
                f"Permission {permission_name} already exists in role {role_name}",
                details={"role": role_name, "permission": permission_name},
            )

        async with self._write():
            updated = await self._repository.append_permission(role.id, permission.id)
        logger.info("role_permission_added role=%s permission=%s", role_name, permission_name)
        return updated

    async def remove_permission(self, role_name: str, permission_name: str) -> RoleRecord:
        role_name = normalize_name(role_name)
        permission_name = normalize_name(permission_name)
        role = await self._require_role(role_name)

        permission = await self._permissions.lookup_exact(permission_name)
        if permission is None:
            raise ConflictError(
                f"Permission {permission_name} does not exist",
                details={"permission": permission_name},
            )
        if not role.has_permission(permission.id):
            raise ConflictError(
                f"Permission {permission_name} does not exist in role {role_name}",
                details={"role": role_name, "permission": permission_name},
            )

        async with self._write():
            updated = await self._repository.remove_permission(role.id, permission.id)
        logger.info(
            "role_permission_removed role=%s permission=%s", role_name, permission_name
        )
        return updated

    async def delete(self, name: str) -> RoleRecord:
        name = normalize_name(name)
        role = await self._require_role(name)

        if self._user_counter is None:
            raise RuntimeError("User role counter is not configured")
        users = await self._user_counter.count_users_with_role(role.name)
        if users > 0:
            raise ConflictError(
                f"Role {name} is assigned to {users} user(s)",
                details={"role": name, "users": users},
            )

        async with self._write():
            await self._repository.delete(role.id)
        logger.info("role_deleted name=%s id=%s", role.name, role.id)
        return role

    async def lookup_exact(self, name: str) -> RoleRecord | None:
        return await self._repository.get_by_name(normalize_name(name))
