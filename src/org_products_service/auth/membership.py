"""Organization role lookups."""

from __future__ import annotations

import structlog

from org_products_service.auth.models import Organization, RoleSummary
from org_products_service.auth.stores import OrganizationStore, RoleStore
from org_products_service.errors import ResourceNotFound

log = structlog.get_logger(__name__)


class OrganizationService:
    def __init__(self, organizations: OrganizationStore, roles: RoleStore) -> None:
        self._organizations = organizations
        self._roles = roles

    async def get_organization(self, org_id: str) -> Organization:
        organization = await self._organizations.find_by_id(org_id)
        if organization is None:
            raise ResourceNotFound(f"Organization with id {org_id} not found")
        return organization

    async def fetch_all_roles_in_organization(self, org_id: str) -> list[RoleSummary]:
        """
        Return every role defined in an organization.

        The organization must exist; the role store is not queried otherwise.
        An organization with no roles yields an empty list.
        """
        await self.get_organization(org_id)
        return list(await self._roles.find_roles_by_organization(org_id))

    async def fetch_member_roles(
        self, org_id: str, user_id: str
    ) -> tuple[Organization, list[RoleSummary]]:
        """Return the organization and the roles ``user_id`` holds in it.

        Raises ResourceNotFound when the organization is absent or the user
        holds no role there.
        """
        organization = await self.get_organization(org_id)
        roles = list(await self._roles.find_roles_for_member(org_id, user_id))
        if not roles:
            log.info("membership_not_found", org_id=org_id, user_id=user_id)
            raise ResourceNotFound("User is not a member of this organization")
        return organization, roles
