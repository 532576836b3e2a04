import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain.records import UserDraft
from .role import RoleRef, RoleResponse


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    birthdate: date


class UserCreate(UserBase):
    role: RoleRef | None = None

    def to_draft(self) -> UserDraft:
        return UserDraft(
            name=self.name,
            email=str(self.email),
            birthdate=self.birthdate,
            role_name=self.role.name if self.role is not None else None,
        )


class UserUpdate(UserCreate):
    pass


class UserRoleAssign(BaseModel):
    user_code: int = Field(..., gt=0)
    role_name: str = Field(..., min_length=1, max_length=100)


class UserResponse(UserBase):
    id: uuid.UUID
    user_code: int
    role: RoleResponse | None = None
    deleted: bool

    model_config = ConfigDict(from_attributes=True)


class UserPageResponse(BaseModel):
    content: list[UserResponse]
    page: int
    size: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    next_page: int | None = None
    prev_page: int | None = None

    model_config = ConfigDict(from_attributes=True)
