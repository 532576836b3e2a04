from fastapi import APIRouter, Depends, Query, status

from ...dependencies import get_permission_service
from ...schemas.permission import PermissionCreate, PermissionRename, PermissionResponse
from ...services import PermissionService

router = APIRouter(prefix="/v1/permissions", tags=["permissions"])


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
async def create_permission(
    payload: PermissionCreate,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    permission = await service.create(payload.name)
    return PermissionResponse.model_validate(permission)


@router.get("", response_model=list[PermissionResponse])
async def list_permissions(
    name: str | None = Query(None, description="Case-insensitive name fragment"),
    service: PermissionService = Depends(get_permission_service),
) -> list[PermissionResponse]:
    permissions = await service.list(name)
    return [PermissionResponse.model_validate(permission) for permission in permissions]


@router.put("", response_model=PermissionResponse)
async def rename_permission(
    payload: PermissionRename,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    """Rename a permission. A missing original permission is created instead."""
    permission = await service.rename(payload.original_name, payload.new_name)
    return PermissionResponse.model_validate(permission)


@router.delete("/{name}", response_model=PermissionResponse)
async def delete_permission(
    name: str,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    permission = await service.delete(name)
    return PermissionResponse.model_validate(permission)
