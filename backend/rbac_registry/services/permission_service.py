import logging
from contextlib import asynccontextmanager

from ..domain.naming import normalize_filter, normalize_name
from ..domain.ports.permission import PermissionRepository
from ..domain.records import PermissionRecord
from ..errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


class PermissionService:
    """Owns permission records. Leaf of the store graph."""

    def __init__(self, repository: PermissionRepository) -> None:
        self._repository = repository

    @asynccontextmanager
    async def _write(self):
        try:
            yield
            await self._repository.commit()
        except Exception:
            await self._repository.rollback()
            raise

    async def create(self, name: str) -> PermissionRecord:
        name = normalize_name(name)
        if not name:
            raise ValidationError("Permission name must not be blank")

        if await self._repository.get_by_name(name) is not None:
            raise ConflictError(
                f"Permission {name} already exists", details={"permission": name}
            )

        async with self._write():
            permission = await self._repository.create(name)
        logger.info("permission_created name=%s id=%s", permission.name, permission.id)
        return permission

    async def list(self, name_filter: str | None = None) -> list[PermissionRecord]:
        return await self._repository.list(normalize_filter(name_filter))

    async def rename(self, original_name: str, new_name: str) -> PermissionRecord:
        """Rename a permission, creating ``original_name`` when it does not exist.

        The create fallback makes this an upsert: a missing rename target is
        never reported as an error.
        """
        original_name = normalize_name(original_name)
        new_name = normalize_name(new_name)
        if not new_name:
            raise ValidationError("Permission name must not be blank")

        existing = await self._repository.get_by_name(original_name)
        if existing is None:
            logger.info(
                "permission_rename_fallback original=%s action=create", original_name
            )
            return await self.create(original_name)

        if await self._repository.get_by_name(new_name) is not None:
            raise ConflictError(
                f"Permission {original_name} cannot be renamed: {new_name} already exists",
                details={"permission": original_name, "new_name": new_name},
            )

        async with self._write():
            permission = await self._repository.rename(existing.id, new_name)
        logger.info("permission_renamed from=%s to=%s", original_name, new_name)
        return permission

    async def delete(self, name: str) -> PermissionRecord:
        name = normalize_name(name)
        permission = await self._repository.get_by_name(name)
        if permission is None:
            raise ConflictError(
                f"Permission {name} does not exist", details={"permission": name}
            )

        async with self._write():
            await self._repository.delete(permission.id)
        logger.info("permission_deleted name=%s id=%s", permission.name, permission.id)
        return permission

    async def lookup_exact(self, name: str) -> PermissionRecord | None:
        return await self._repository.get_by_name(normalize_name(name))
