"""Repositories for organizations and their roles."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from org_products_service.auth.models import Organization, RoleSummary
from org_products_service.db.models import (
    OrganizationModel,
    OrganizationRoleModel,
    organization_role_members,
)


def _as_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


class OrganizationsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_id(self, org_id: str) -> Organization | None:
        key = _as_uuid(org_id)
        if key is None:
            return None
        row = await self._session.get(OrganizationModel, key)
        if row is None:
            return None
        return Organization(id=str(row.id), name=row.name, description=row.description)


class RolesRepo:
    """Role lookups. Only id, name and description are ever selected."""

    _columns = (
        OrganizationRoleModel.id,
        OrganizationRoleModel.name,
        OrganizationRoleModel.description,
    )

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_roles_by_organization(self, org_id: str) -> list[RoleSummary]:
        key = _as_uuid(org_id)
        if key is None:
            return []
        result = await self._session.execute(
            select(*self._columns)
            .where(OrganizationRoleModel.organization_id == key)
            .order_by(OrganizationRoleModel.name)
        )
        return [RoleSummary(id=str(r.id), name=r.name, description=r.description) for r in result]

    async def find_roles_for_member(self, org_id: str, user_id: str) -> list[RoleSummary]:
        org_key, user_key = _as_uuid(org_id), _as_uuid(user_id)
        if org_key is None or user_key is None:
            return []
        result = await self._session.execute(
            select(*self._columns)
            .join(
                organization_role_members,
                organization_role_members.c.role_id == OrganizationRoleModel.id,
            )
            .where(
                OrganizationRoleModel.organization_id == org_key,
                organization_role_members.c.user_id == user_key,
            )
            .order_by(OrganizationRoleModel.name)
        )
        return [RoleSummary(id=str(r.id), name=r.name, description=r.description) for r in result]
