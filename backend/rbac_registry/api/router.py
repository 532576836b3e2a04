from fastapi import APIRouter

from .v1 import permissions as v1_permissions
from .v1 import roles as v1_roles
from .v1 import users as v1_users

router = APIRouter(prefix="/api")

_v1_routers = [
    v1_permissions.router,
    v1_roles.router,
    v1_users.router,
]

for _router in _v1_routers:
    router.include_router(_router)
