"""Service test fixtures with in-memory stores (no database needed)."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import (  # noqa: E402
    ADMIN_ROLE,
    ORG_ID,
    USER_ROLE,
    FakeOrganizationStore,
    FakeRoleStore,
    FakeUserStore,
    InMemoryProductsRepo,
)

from org_products_service.auth.deps import get_collaborators  # noqa: E402
from org_products_service.auth.jwt import JwtTokenVerifier, create_access_token  # noqa: E402
from org_products_service.auth.models import User  # noqa: E402
from org_products_service.auth.stores import Collaborators  # noqa: E402
from org_products_service.db.deps import get_products_repo, get_users_repo  # noqa: E402
from org_products_service.rest.app import create_app  # noqa: E402
from org_products_service.settings import Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret="test-secret", log_format="console")


@pytest.fixture
def users() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture
def organizations() -> FakeOrganizationStore:
    return FakeOrganizationStore()


@pytest.fixture
def roles() -> FakeRoleStore:
    return FakeRoleStore()


@pytest.fixture
def collaborators(settings, users, organizations, roles) -> Collaborators:
    return Collaborators(
        users=users,
        organizations=organizations,
        roles=roles,
        tokens=JwtTokenVerifier(settings),
        settings=settings,
    )


@pytest.fixture
def make_token(settings):
    def _make(credential_id: str, **kwargs) -> str:
        return create_access_token(credential_id, settings, **kwargs)

    return _make


@pytest.fixture
def products_repo() -> InMemoryProductsRepo:
    return InMemoryProductsRepo()


@pytest.fixture
def app(settings, collaborators, users, products_repo):
    app = create_app(settings)
    app.dependency_overrides[get_collaborators] = lambda: collaborators
    app.dependency_overrides[get_users_repo] = lambda: users
    app.dependency_overrides[get_products_repo] = lambda: products_repo
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def tenant(users, organizations, roles, make_token):
    """An organization with an admin, a plain member and an outsider; returns auth headers."""
    organizations.add(ORG_ID, name="Acme")
    admin = users.add("admin-cred", User(id="admin-1", email="admin@acme.test"))
    member = users.add("member-cred", User(id="member-1", email="member@acme.test"))
    users.add("outsider-cred", User(id="outsider-1", email="outsider@other.test"))
    roles.grant(ORG_ID, admin.id, ADMIN_ROLE)
    roles.grant(ORG_ID, member.id, USER_ROLE)
    return {
        "admin": {"Authorization": f"Bearer {make_token('admin-cred')}"},
        "member": {"Authorization": f"Bearer {make_token('member-cred')}"},
        "outsider": {"Authorization": f"Bearer {make_token('outsider-cred')}"},
    }
