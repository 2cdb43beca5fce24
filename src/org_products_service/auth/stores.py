"""Protocols for the lookups the admission pipeline depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from org_products_service.auth.models import Organization, RoleSummary, TokenClaims, User
from org_products_service.settings import Settings


class UserStore(Protocol):
    async def find_by_credential_id(self, user_id: str) -> User | None: ...


class OrganizationStore(Protocol):
    async def find_by_id(self, org_id: str) -> Organization | None: ...


class RoleStore(Protocol):
    async def find_roles_by_organization(self, org_id: str) -> list[RoleSummary]: ...
    async def find_roles_for_member(self, org_id: str, user_id: str) -> list[RoleSummary]: ...


class TokenVerifier(Protocol):
    def verify(self, token: str) -> TokenClaims: ...


@dataclass(frozen=True)
class Collaborators:
    """Everything the guards need, built per request and passed in explicitly."""

    users: UserStore
    organizations: OrganizationStore
    roles: RoleStore
    tokens: TokenVerifier
    settings: Settings
