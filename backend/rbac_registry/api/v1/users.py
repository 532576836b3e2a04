from fastapi import APIRouter, Depends, Path, Query, status

from ...config import settings
from ...dependencies import get_user_service
from ...schemas.user import (
    UserCreate,
    UserPageResponse,
    UserResponse,
    UserRoleAssign,
    UserUpdate,
)
from ...services import UserService

router = APIRouter(prefix="/v1/users", tags=["users"])


class UserListParams:
    """Paging and sorting query parameters shared by the list endpoints."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Current page"),
        size: int | None = Query(None, ge=1, description="Items per page"),
        sort_by: str | None = Query(None, alias="sortBy", description="Field to sort by"),
        sort: str | None = Query(None, description="Sort direction, ASC or DESC"),
    ) -> None:
        self.page = page
        self.size = size
        self.sort_by = sort_by
        self.sort = sort


async def _list_users(
    service: UserService, params: UserListParams, deleted: bool | None
) -> UserPageResponse:
    page = await service.list(
        params.page,
        params.size or settings.default_page_size,
        params.sort_by,
        params.sort,
        deleted=deleted,
    )
    return UserPageResponse.model_validate(page)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.create(payload.to_draft())
    return UserResponse.model_validate(user)


@router.get("", response_model=UserPageResponse)
async def list_users(
    params: UserListParams = Depends(),
    service: UserService = Depends(get_user_service),
) -> UserPageResponse:
    return await _list_users(service, params, deleted=None)


@router.get("/actives", response_model=UserPageResponse)
async def list_active_users(
    params: UserListParams = Depends(),
    service: UserService = Depends(get_user_service),
) -> UserPageResponse:
    return await _list_users(service, params, deleted=False)


@router.get("/deleted", response_model=UserPageResponse)
async def list_deleted_users(
    params: UserListParams = Depends(),
    service: UserService = Depends(get_user_service),
) -> UserPageResponse:
    return await _list_users(service, params, deleted=True)


@router.patch("/add-role", response_model=UserResponse)
async def assign_role(
    payload: UserRoleAssign,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.assign_role(payload.user_code, payload.role_name)
    return UserResponse.model_validate(user)


@router.patch("/remove-role/{user_code}", response_model=UserResponse)
async def unassign_role(
    user_code: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.unassign_role(user_code)
    return UserResponse.model_validate(user)


@router.patch("/restore/{user_code}", response_model=UserResponse)
async def restore_user(
    user_code: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.restore(user_code)
    return UserResponse.model_validate(user)


@router.get("/{user_code}", response_model=UserResponse)
async def get_user(
    user_code: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.get(user_code)
    return UserResponse.model_validate(user)


@router.put("/{user_code}", response_model=UserResponse)
async def update_user(
    payload: UserUpdate,
    user_code: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Overwrite a user. An unknown userCode creates a new user instead."""
    user = await service.update(user_code, payload.to_draft())
    return UserResponse.model_validate(user)


@router.delete("/{user_code}", response_model=UserResponse)
async def delete_user(
    user_code: int = Path(..., gt=0),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.soft_delete(user_code)
    return UserResponse.model_validate(user)
