"""FastAPI adapters for the admission pipeline."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import Depends, Request

from org_products_service.auth.guards import GuardRequest
from org_products_service.auth.jwt import JwtTokenVerifier
from org_products_service.auth.models import AuthenticatedRequestContext
from org_products_service.auth.pipeline import GuardChain, RoutePolicy
from org_products_service.auth.stores import Collaborators
from org_products_service.db.deps import OrganizationsRepoDep, RolesRepoDep, UsersRepoDep
from org_products_service.settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_collaborators(
    settings: SettingsDep,
    users: UsersRepoDep,
    organizations: OrganizationsRepoDep,
    roles: RolesRepoDep,
) -> Collaborators:
    return Collaborators(
        users=users,
        organizations=organizations,
        roles=roles,
        tokens=JwtTokenVerifier(settings),
        settings=settings,
    )


CollaboratorsDep = Annotated[Collaborators, Depends(get_collaborators)]


def admit(policy: RoutePolicy | Callable[[Settings], RoutePolicy]) -> Any:
    """
    Dependency factory that runs a route's guards before its handler.

    ``policy`` is either a fixed RoutePolicy or a function choosing one from
    settings. The handler receives the request context in the Dispatched
    stage; any rejection propagates to the AppError handler.
    """

    async def _admit(request: Request, collaborators: CollaboratorsDep) -> AuthenticatedRequestContext:
        route_policy = policy if isinstance(policy, RoutePolicy) else policy(collaborators.settings)
        guard_request = GuardRequest(
            path_params=request.path_params,
            headers=request.headers,
            collaborators=collaborators,
        )
        context = await GuardChain(route_policy).admit(guard_request)
        context.dispatch()
        return context

    return Depends(_admit)
