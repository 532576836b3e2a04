import uuid

from pydantic import BaseModel, ConfigDict, Field

from .permission import PermissionRef, PermissionResponse


class RoleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class RoleCreate(RoleBase):
    permissions: list[PermissionRef] = Field(default_factory=list)

    def permission_names(self) -> list[str]:
        return [permission.name for permission in self.permissions]


class RoleReplace(RoleCreate):
    pass


class RoleRef(RoleBase):
    """Reference to an existing role by name."""


class RoleResponse(RoleBase):
    id: uuid.UUID
    permissions: list[PermissionResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
