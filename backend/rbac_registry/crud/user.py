from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.user import UserRepository as UserRepositoryPort
from ..domain.records import RoleRecord, UserRecord, UserSort
from ..models.role import Role
from ..models.user import User
from ..models.user_code_sequence import USER_CODE_SEQUENCE, UserCodeSequence
from .role import load_role_permissions

SORT_COLUMNS = {
    "user_code": User.user_code,
    "name": User.name,
    "email": User.email,
    "birthdate": User.birthdate,
    "deleted": User.deleted,
}


def _user_columns():
    return select(
        User.id,
        User.user_code,
        User.name,
        User.email,
        User.birthdate,
        User.deleted,
        User.role_id,
        Role.name.label("role_name"),
    ).outerjoin(Role, Role.id == User.role_id)


def _deleted_clause(deleted: bool | None):
    if deleted is None:
        return None
    return User.deleted.is_(True) if deleted else User.deleted.is_(False)


class UserRepository(UserRepositoryPort):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _expand(self, rows: Sequence) -> list[UserRecord]:
        permissions = await load_role_permissions(
            self._session, (row.role_id for row in rows if row.role_id is not None)
        )
        records = []
        for row in rows:
            role = None
            if row.role_id is not None:
                role = RoleRecord(
                    id=row.role_id,
                    name=row.role_name,
                    permissions=permissions.get(row.role_id, ()),
                )
            records.append(
                UserRecord(
                    id=row.id,
                    user_code=row.user_code,
                    name=row.name,
                    email=row.email,
                    birthdate=row.birthdate,
                    role=role,
                    deleted=row.deleted,
                )
            )
        return records

    async def _fetch_one(self, *criteria) -> UserRecord | None:
        result = await self._session.execute(_user_columns().where(*criteria).limit(1))
        records = await self._expand(result.all())
        return records[0] if records else None

    async def _get_by_id(self, user_id: uuid.UUID) -> UserRecord:
        record = await self._fetch_one(User.id == user_id)
        if record is None:
            raise RuntimeError(f"User {user_id} disappeared during the operation")
        return record

    async def _update(self, user_id: uuid.UUID, **values) -> UserRecord:
        users = User.__table__
        await self._session.execute(
            update(users).where(users.c.id == user_id).values(**values)
        )
        return await self._get_by_id(user_id)

    async def get_by_email(self, email: str) -> UserRecord | None:
        return await self._fetch_one(User.email == email)

    async def get_by_user_code(self, user_code: int) -> UserRecord | None:
        return await self._fetch_one(User.user_code == user_code)

    async def next_user_code(self) -> int:
        sequences = UserCodeSequence.__table__
        result = await self._session.execute(
            update(sequences)
            .where(sequences.c.name == USER_CODE_SEQUENCE)
            .values(last_value=sequences.c.last_value + 1)
            .returning(sequences.c.last_value)
        )
        value = result.scalar_one_or_none()
        if value is not None:
            return value

        # First use: continue numbering after the users that already exist.
        seed = await self.count() + 1
        self._session.add(UserCodeSequence(name=USER_CODE_SEQUENCE, last_value=seed))
        await self._session.flush()
        return seed

    async def create(
        self,
        *,
        user_code: int,
        name: str,
        email: str,
        birthdate: date,
        role_id: uuid.UUID | None,
    ) -> UserRecord:
        user = User(
            id=uuid.uuid4(),
            user_code=user_code,
            name=name,
            email=email,
            birthdate=birthdate,
            role_id=role_id,
            deleted=False,
        )
        self._session.add(user)
        await self._session.flush()
        return await self._get_by_id(user.id)

    async def list(
        self,
        *,
        offset: int,
        limit: int,
        sort: UserSort | None = None,
        deleted: bool | None = None,
    ) -> list[UserRecord]:
        query = _user_columns()
        clause = _deleted_clause(deleted)
        if clause is not None:
            query = query.where(clause)

        column = SORT_COLUMNS.get(sort.field) if sort is not None else None
        if column is not None:
            query = query.order_by(column.desc() if sort.descending else column.asc())
        # user_code keeps pages stable when the primary sort has ties
        query = query.order_by(User.user_code.asc()).offset(offset).limit(limit)

        result = await self._session.execute(query)
        return await self._expand(result.all())

    async def count(self, deleted: bool | None = None) -> int:
        query = select(func.count()).select_from(User)
        clause = _deleted_clause(deleted)
        if clause is not None:
            query = query.where(clause)
        result = await self._session.execute(query)
        return result.scalar_one()

    async def update_profile(
        self,
        user_id: uuid.UUID,
        *,
        name: str,
        email: str,
        birthdate: date,
        role_id: uuid.UUID | None,
    ) -> UserRecord:
        return await self._update(
            user_id, name=name, email=email, birthdate=birthdate, role_id=role_id
        )

    async def set_role(self, user_id: uuid.UUID, role_id: uuid.UUID | None) -> UserRecord:
        return await self._update(user_id, role_id=role_id)

    async def set_deleted(self, user_id: uuid.UUID, deleted: bool) -> UserRecord:
        return await self._update(user_id, deleted=deleted)

    async def count_with_role(self, role_name: str) -> int:
        result = await self._session.execute(
            select(func.count(User.id))
            .join(Role, Role.id == User.role_id)
            .where(Role.name == role_name)
        )
        return result.scalar_one()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
