"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from org_products_service.db.repositories.organizations import OrganizationsRepo, RolesRepo
from org_products_service.db.repositories.products import ProductsRepo
from org_products_service.db.repositories.users import UsersRepo


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an async DB session from the app's session factory, auto-closing on exit."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("Database not initialized; the app lifespan has not run")
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_users_repo(session: SessionDep) -> UsersRepo:
    return UsersRepo(session)


def get_organizations_repo(session: SessionDep) -> OrganizationsRepo:
    return OrganizationsRepo(session)


def get_roles_repo(session: SessionDep) -> RolesRepo:
    return RolesRepo(session)


def get_products_repo(session: SessionDep) -> ProductsRepo:
    return ProductsRepo(session)


UsersRepoDep = Annotated[UsersRepo, Depends(get_users_repo)]
OrganizationsRepoDep = Annotated[OrganizationsRepo, Depends(get_organizations_repo)]
RolesRepoDep = Annotated[RolesRepo, Depends(get_roles_repo)]
ProductsRepoDep = Annotated[ProductsRepo, Depends(get_products_repo)]
