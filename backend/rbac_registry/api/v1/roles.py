from fastapi import APIRouter, Depends, Query, status

from ...dependencies import get_role_service
from ...schemas.permission import PermissionRef
from ...schemas.role import RoleCreate, RoleReplace, RoleResponse
from ...services import RoleService

router = APIRouter(prefix="/v1/roles", tags=["roles"])


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = await service.create(payload.name, payload.permission_names())
    return RoleResponse.model_validate(role)


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    name: str | None = Query(None, description="Case-insensitive name fragment"),
    service: RoleService = Depends(get_role_service),
) -> list[RoleResponse]:
    roles = await service.list(name)
    return [RoleResponse.model_validate(role) for role in roles]


@router.put("/{name}", response_model=RoleResponse)
async def replace_role(
    name: str,
    payload: RoleReplace,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    """Replace name and permissions of a role. A missing role is created instead."""
    role = await service.replace(name, payload.name, payload.permission_names())
    return RoleResponse.model_validate(role)


@router.patch("/add-permission/{name}", response_model=RoleResponse)
async def add_permission(
    name: str,
    payload: PermissionRef,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = await service.add_permission(name, payload.name)
    return RoleResponse.model_validate(role)


@router.patch("/remove-permission/{name}", response_model=RoleResponse)
async def remove_permission(
    name: str,
    payload: PermissionRef,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = await service.remove_permission(name, payload.name)
    return RoleResponse.model_validate(role)


@router.delete("/{name}", response_model=RoleResponse)
async def delete_role(
    name: str,
    service: RoleService = Depends(get_role_service),
) -> RoleResponse:
    role = await service.delete(name)
    return RoleResponse.model_validate(role)
