from .permission import PermissionLookup, PermissionRepository
from .role import RoleLookup, RoleRepository
from .user import UserRepository, UserRoleCounter

__all__ = [
    "PermissionLookup",
    "PermissionRepository",
    "RoleLookup",
    "RoleRepository",
    "UserRepository",
    "UserRoleCounter",
]
