"""Immutable records handed out by the repositories.

Repositories build these from explicit queries so callers never touch a
lazily loaded ORM attribute after the session has committed.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class PermissionRecord:
    id: uuid.UUID
    name: str


@dataclass(frozen=True)
class RoleRecord:
    id: uuid.UUID
    name: str
    permissions: tuple[PermissionRecord, ...] = ()

    def has_permission(self, permission_id: uuid.UUID) -> bool:
        return any(permission.id == permission_id for permission in self.permissions)


@dataclass(frozen=True)
class UserRecord:
    id: uuid.UUID
    user_code: int
    name: str
    email: str
    birthdate: date
    role: RoleRecord | None = None
    deleted: bool = False


@dataclass(frozen=True)
class UserDraft:
    """Caller-supplied user fields for create and full update."""

    name: str
    email: str
    birthdate: date
    role_name: str | None = None


@dataclass(frozen=True)
class UserSort:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class UserPage:
    content: list[UserRecord] = field(default_factory=list)
    page: int = 1
    size: int = 10
    total: int = 0
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False
    next_page: int | None = None
    prev_page: int | None = None
