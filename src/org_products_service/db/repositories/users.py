"""Repository for users."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from org_products_service.auth.models import User
from org_products_service.db.models import UserModel


def _to_user(row: UserModel) -> User:
    return User(id=str(row.id), email=row.email, password_hash=row.password_hash)


class UsersRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_credential_id(self, user_id: str) -> User | None:
        try:
            key = UUID(user_id)
        except ValueError:
            return None
        row = await self._session.get(UserModel, key)
        return _to_user(row) if row else None

    async def find_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
        )
        row = result.scalars().first()
        return _to_user(row) if row else None

