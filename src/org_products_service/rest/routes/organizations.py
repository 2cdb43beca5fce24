"""Organization endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from org_products_service.auth.deps import CollaboratorsDep, admit
from org_products_service.auth.membership import OrganizationService
from org_products_service.auth.models import AuthenticatedRequestContext
from org_products_service.auth.pipeline import LIST_ROLES
from org_products_service.rest.schemas import RoleListResponse, RoleSchema

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("/{org_id}/roles", response_model=RoleListResponse)
async def list_roles(
    org_id: str,
    collaborators: CollaboratorsDep,
    context: AuthenticatedRequestContext = admit(LIST_ROLES),
) -> RoleListResponse:
    service = OrganizationService(collaborators.organizations, collaborators.roles)
    roles = await service.fetch_all_roles_in_organization(org_id)
    return RoleListResponse(
        organization_id=org_id,
        roles=[RoleSchema(id=r.id, name=r.name, description=r.description) for r in roles],
    )
