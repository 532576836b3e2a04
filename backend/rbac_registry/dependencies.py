from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .crud.permission import PermissionRepository
from .crud.role import RoleRepository
from .crud.user import UserRepository
from .database import get_session
from .services import PermissionService, RoleService, UserService


@dataclass(frozen=True)
class Services:
    permissions: PermissionService
    roles: RoleService
    users: UserService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def build_services(session: AsyncSession) -> Services:
    """Wire the three services around one session.

    Roles and users depend on each other, so the role service receives its
    user counter once the user service exists.
    """
    permissions = PermissionService(PermissionRepository(session))
    roles = RoleService(RoleRepository(session), permissions)
    users = UserService(UserRepository(session), roles)
    roles.bind_user_counter(users)
    return Services(permissions=permissions, roles=roles, users=users)


def get_services(db: AsyncSession = Depends(get_db)) -> Services:
    return build_services(db)


def get_permission_service(services: Services = Depends(get_services)) -> PermissionService:
    return services.permissions


def get_role_service(services: Services = Depends(get_services)) -> RoleService:
    return services.roles


def get_user_service(services: Services = Depends(get_services)) -> UserService:
    return services.users
