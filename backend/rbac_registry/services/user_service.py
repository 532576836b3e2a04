import logging
import math
import uuid
from contextlib import asynccontextmanager

from ..domain.naming import normalize_name
from ..domain.ports.role import RoleLookup
from ..domain.ports.user import UserRepository
from ..domain.records import UserDraft, UserPage, UserRecord, UserSort
from ..errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

# Accepted sort keys, in API (camelCase) and storage spelling.
SORTABLE_FIELDS: dict[str, str] = {
    "userCode": "user_code",
    "user_code": "user_code",
    "name": "name",
    "email": "email",
    "birthdate": "birthdate",
    "deleted": "deleted",
}


def resolve_user_sort(
    sort_field: str | None, sort_direction: str | None = None
) -> UserSort | None:
    """Translate list query parameters into a sort.

    A field alone sorts ascending. A direction other than ASC/DESC (any case)
    yields no explicit sort, and so does an unknown field.
    """
    if not sort_field:
        return None
    field = SORTABLE_FIELDS.get(sort_field.strip())
    if field is None:
        logger.debug("user_sort_ignored field=%s", sort_field)
        return None
    if not sort_direction:
        return UserSort(field=field)

    direction = sort_direction.strip().upper()
    if direction == "ASC":
        return UserSort(field=field)
    if direction == "DESC":
        return UserSort(field=field, descending=True)
    logger.debug("user_sort_ignored direction=%s", sort_direction)
    return None


class UserService:
    """Owns user records: creation, listing, role assignment and soft delete.

    Also serves as the ``UserRoleCounter`` the role service consults before
    deleting a role.
    """

    def __init__(self, repository: UserRepository, roles: RoleLookup) -> None:
        self._repository = repository
        self._roles = roles

    @asynccontextmanager
    async def _write(self):
        try:
            yield
            await self._repository.commit()
        except Exception:
            await self._repository.rollback()
            raise

    async def _require_user(self, user_code: int) -> UserRecord:
        user = await self._repository.get_by_user_code(user_code)
        if user is None:
            raise ConflictError(
                f"User with userCode {user_code} does not exist",
                details={"user_code": user_code},
            )
        return user

    async def _resolve_role(self, role_name: str | None) -> uuid.UUID | None:
        if role_name is None:
            return None
        role = await self._roles.lookup_exact(role_name)
        if role is None:
            name = normalize_name(role_name)
            raise ConflictError(f"Role {name} does not exist", details={"role": name})
        return role.id

    async def get(self, user_code: int) -> UserRecord:
        return await self._require_user(user_code)

    async def create(self, draft: UserDraft) -> UserRecord:
        if await self._repository.get_by_email(draft.email) is not None:
            raise ConflictError(
                f"User with email {draft.email} already exists",
                details={"email": draft.email},
            )
        role_id = await self._resolve_role(draft.role_name)

        async with self._write():
            user_code = await self._repository.next_user_code()
            user = await self._repository.create(
                user_code=user_code,
                name=draft.name,
                email=draft.email,
                birthdate=draft.birthdate,
                role_id=role_id,
            )
        logger.info("user_created user_code=%d email=%s", user.user_code, user.email)
        return user

    async def list(
        self,
        page: int,
        page_size: int,
        sort_field: str | None = None,
        sort_direction: str | None = None,
        deleted: bool | None = None,
    ) -> UserPage:
        if page < 1 or page_size < 1:
            raise ValidationError(
                "page and size must be greater than zero",
                details={"page": page, "size": page_size},
            )

        total = await self._repository.count(deleted)
        total_pages = math.ceil(total / page_size)
        has_next_page = page < total_pages
        has_prev_page = 1 < page <= total_pages

        content = await self._repository.list(
            offset=(page - 1) * page_size,
            limit=page_size,
            sort=resolve_user_sort(sort_field, sort_direction),
            deleted=deleted,
        )
        return UserPage(
            content=content,
            page=page,
            size=page_size,
            total=total,
            total_pages=total_pages,
            has_next_page=has_next_page,
            has_prev_page=has_prev_page,
            next_page=page + 1 if has_next_page else None,
            prev_page=page - 1 if has_prev_page else None,
        )

    async def update(self, user_code: int, draft: UserDraft) -> UserRecord:
        """Overwrite a user's profile; create a new user when the code is unknown.

        The create fallback assigns a fresh userCode, it never reuses the one
        passed in.
        """
        current = await self._repository.get_by_user_code(user_code)
        if current is None:
            logger.info("user_update_fallback user_code=%d action=create", user_code)
            return await self.create(draft)

        if draft.email != current.email:
            owner = await self._repository.get_by_email(draft.email)
            if owner is not None and owner.id != current.id:
                raise ConflictError(
                    f"Email {draft.email} already exists", details={"email": draft.email}
                )
        role_id = await self._resolve_role(draft.role_name)

        async with self._write():
            user = await self._repository.update_profile(
                current.id,
                name=draft.name,
                email=draft.email,
                birthdate=draft.birthdate,
                role_id=role_id,
            )
        logger.info("user_updated user_code=%d", user_code)
        return user

    async def assign_role(self, user_code: int, role_name: str) -> UserRecord:
        user = await self._require_user(user_code)
        if user.role is not None:
            raise ConflictError(
                f"User with userCode {user_code} already has a role",
                details={"user_code": user_code, "role": user.role.name},
            )
        role_id = await self._resolve_role(role_name)

        async with self._write():
            updated = await self._repository.set_role(user.id, role_id)
        logger.info("user_role_assigned user_code=%d role=%s", user_code, role_name)
        return updated

    async def unassign_role(self, user_code: int) -> UserRecord:
        user = await self._require_user(user_code)
        if user.role is None:
            raise ConflictError(
                f"User with userCode {user_code} has no role",
                details={"user_code": user_code},
            )

        async with self._write():
            updated = await self._repository.set_role(user.id, None)
        logger.info("user_role_unassigned user_code=%d role=%s", user_code, user.role.name)
        return updated

    async def soft_delete(self, user_code: int) -> UserRecord:
        user = await self._require_user(user_code)
        if user.deleted:
            raise ConflictError(
                f"User with userCode {user_code} is already deleted",
                details={"user_code": user_code},
            )

        async with self._write():
            updated = await self._repository.set_deleted(user.id, True)
        logger.info("user_soft_deleted user_code=%d", user_code)
        return updated

    async def restore(self, user_code: int) -> UserRecord:
        user = await self._require_user(user_code)
        if not user.deleted:
            raise ConflictError(
                f"User with userCode {user_code} is not deleted",
                details={"user_code": user_code},
            )

        async with self._write():
            updated = await self._repository.set_deleted(user.id, False)
        logger.info("user_restored user_code=%d", user_code)
        return updated

    async def count_users_with_role(self, role_name: str) -> int:
        return await self._repository.count_with_role(normalize_name(role_name))
