import uuid

from pydantic import BaseModel, ConfigDict, Field


class PermissionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class PermissionCreate(PermissionBase):
    pass


class PermissionRef(PermissionBase):
    """Reference to an existing permission by name."""


class PermissionRename(BaseModel):
    original_name: str = Field(..., min_length=1, max_length=100)
    new_name: str = Field(..., min_length=1, max_length=100)


class PermissionResponse(PermissionBase):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)
