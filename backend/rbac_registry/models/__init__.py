from .base import Base
from .permission import Permission
from .role import Role
from .role_permission import RolePermission
from .user import User
from .user_code_sequence import USER_CODE_SEQUENCE, UserCodeSequence

__all__ = [
    "Base",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserCodeSequence",
    "USER_CODE_SEQUENCE",
]
