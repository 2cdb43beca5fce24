"""Unit tests for the individual request guards."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import jwt as pyjwt
import pytest
from _helpers import ADMIN_ROLE, ORG_ID, USER_ROLE

from org_products_service.auth.guards import (
    ORG_ID_INVALID,
    ORG_ID_REQUIRED,
    GuardRequest,
    authenticate,
    confirm_membership,
    require_admin,
    require_role,
    validate_org_id,
)
from org_products_service.auth.models import Stage, User
from org_products_service.errors import Forbidden, InvalidInput, ResourceNotFound, Unauthorized


def _request(collaborators=None, org_id=None, headers=None) -> GuardRequest:
    params = {} if org_id is None else {"org_id": org_id}
    return GuardRequest(path_params=params, headers=headers or {}, collaborators=collaborators)


def _authenticated(collaborators, org_id=ORG_ID, user_id="member-1") -> GuardRequest:
    request = _request(collaborators, org_id=org_id)
    request.context.authenticate(User(id=user_id, email=f"{user_id}@acme.test"))
    return request


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_valid_uuid_passes_both_stages():
    request = _request(org_id=ORG_ID)
    call_next = AsyncMock()

    await validate_org_id[0](request, call_next)
    await validate_org_id[1](request, call_next)

    assert call_next.await_count == 2
    call_next.assert_awaited_with()
    assert request.context.stage == Stage.PARAMS_VALID


@pytest.mark.asyncio
async def test_uppercase_uuid_is_accepted():
    request = _request(org_id=ORG_ID.upper())
    call_next = AsyncMock()

    await validate_org_id[1](request, call_next)

    call_next.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("org_id", ["", "   ", None])
async def test_presence_check_rejects_empty_org_id(org_id):
    request = _request(org_id=org_id)
    call_next = AsyncMock()

    with pytest.raises(InvalidInput, match=ORG_ID_REQUIRED):
        await validate_org_id[0](request, call_next)

    call_next.assert_not_awaited()
    assert request.context.stage == Stage.UNVALIDATED


@pytest.mark.asyncio
async def test_format_check_on_empty_org_id_reports_missing_id():
    call_next = AsyncMock()

    with pytest.raises(InvalidInput) as exc_info:
        await validate_org_id[1](_request(org_id=""), call_next)

    assert exc_info.value.message == "Organisation id is required"
    call_next.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "org_id",
    [
        "donald-trump-for-president",
        "org123",
        "123e4567e89b12d3a456426614174000",
        "{123e4567-e89b-12d3-a456-426614174000}",
        "123e4567-e89b-12d3-a456-42661417400",
    ],
)
async def test_format_check_rejects_non_uuid(org_id):
    request = _request(org_id=org_id)
    call_next = AsyncMock()

    # presence passes on its own
    await validate_org_id[0](request, call_next)
    call_next.assert_awaited_once()

    with pytest.raises(InvalidInput) as exc_info:
        await validate_org_id[1](request, call_next)

    assert exc_info.value.message == "Valid org_id must be provided"
    assert exc_info.value.status_code == 422
    call_next.assert_awaited_once()


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_authenticate_populates_user(collaborators, users, make_token):
    users.add("user123", User(id="donalTrump123", email="americaPresident@newyork.com"))
    request = _request(collaborators, headers={"Authorization": f"Bearer {make_token('user123')}"})
    call_next = AsyncMock()

    await authenticate(request, call_next)

    assert users.lookups == ["user123"]
    assert request.context.user is not None
    assert request.context.user.id == "donalTrump123"
    assert request.context.stage == Stage.AUTHENTICATED
    call_next.assert_awaited_once()


@pytest.mark.asyncio
async def test_authenticate_reads_lowercase_header(collaborators, users, make_token):
    users.add("user123", User(id="u-1", email="a@b.test"))
    request = _request(collaborators, headers={"authorization": f"bearer {make_token('user123')}"})

    await authenticate(request, AsyncMock())

    assert request.context.user.id == "u-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": ""},
        {"Authorization": "Bearer "},
        {"Authorization": "Basic dXNlcjpwYXNz"},
        {"Authorization": "Bearer not.a.token"},
    ],
)
async def test_authenticate_rejects_missing_or_malformed_token(collaborators, users, headers):
    call_next = AsyncMock()

    with pytest.raises(Unauthorized):
        await authenticate(_request(collaborators, headers=headers), call_next)

    assert users.lookups == []
    call_next.assert_not_awaited()


@pytest.mark.asyncio
async def test_authenticate_rejects_expired_token(collaborators, users, make_token):
    users.add("user123", User(id="u-1", email="a@b.test"))
    token = make_token("user123", expires_delta=timedelta(seconds=-1))

    with pytest.raises(Unauthorized, match="expired"):
        await authenticate(_request(collaborators, headers={"Authorization": f"Bearer {token}"}), AsyncMock())

    assert users.lookups == []


@pytest.mark.asyncio
async def test_authenticate_rejects_foreign_signature(collaborators, users):
    users.add("user123", User(id="u-1", email="a@b.test"))
    token = pyjwt.encode({"sub": "user123", "type": "access", "exp": 9999999999}, "other-secret", algorithm="HS256")

    with pytest.raises(Unauthorized):
        await authenticate(_request(collaborators, headers={"Authorization": f"Bearer {token}"}), AsyncMock())


@pytest.mark.asyncio
async def test_unknown_user_is_unauthorized_not_not_found(collaborators, users, make_token):
    request = _request(collaborators, headers={"Authorization": f"Bearer {make_token('ghost')}"})
    call_next = AsyncMock()

    with pytest.raises(Unauthorized):
        await authenticate(request, call_next)

    assert users.lookups == ["ghost"]
    assert request.context.user is None
    call_next.assert_not_awaited()


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_membership_requires_authentication(collaborators, organizations):
    with pytest.raises(Unauthorized):
        await confirm_membership(_request(collaborators, org_id=ORG_ID), AsyncMock())

    assert organizations.lookups == []


@pytest.mark.asyncio
async def test_membership_checks_format_before_lookup(collaborators, organizations):
    with pytest.raises(InvalidInput, match=ORG_ID_INVALID):
        await confirm_membership(_authenticated(collaborators, org_id="org123"), AsyncMock())

    assert organizations.lookups == []


@pytest.mark.asyncio
async def test_membership_unknown_org_never_queries_roles(collaborators, organizations, roles):
    with pytest.raises(ResourceNotFound):
        await confirm_membership(_authenticated(collaborators), AsyncMock())

    assert organizations.lookups == [ORG_ID]
    assert roles.member_queries == []


@pytest.mark.asyncio
async def test_non_member_is_not_found(collaborators, organizations, roles):
    organizations.add(ORG_ID)
    roles.grant(ORG_ID, "someone-else", ADMIN_ROLE)
    request = _authenticated(collaborators)

    with pytest.raises(ResourceNotFound):
        await confirm_membership(request, AsyncMock())

    assert request.context.stage == Stage.AUTHENTICATED


@pytest.mark.asyncio
async def test_member_is_confirmed_with_roles(collaborators, organizations, roles):
    organizations.add(ORG_ID, name="Acme")
    roles.grant(ORG_ID, "member-1", USER_ROLE)
    request = _authenticated(collaborators)
    call_next = AsyncMock()

    await confirm_membership(request, call_next)

    assert request.context.stage == Stage.MEMBER_CONFIRMED
    assert request.context.organization.name == "Acme"
    assert request.context.roles == [USER_ROLE]
    call_next.assert_awaited_once()


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_role_requirement_recorded_before_membership(collaborators, organizations, roles):
    organizations.add(ORG_ID)
    roles.grant(ORG_ID, "member-1", USER_ROLE)
    request = _authenticated(collaborators)

    await require_admin(request, AsyncMock())
    assert request.context.required_role == "admin"
    assert request.context.stage == Stage.AUTHENTICATED

    with pytest.raises(Forbidden):
        await confirm_membership(request, AsyncMock())


@pytest.mark.asyncio
async def test_admin_role_matches_case_insensitively(collaborators, organizations, roles):
    organizations.add(ORG_ID)
    roles.grant(ORG_ID, "admin-1", ADMIN_ROLE, USER_ROLE)
    request = _authenticated(collaborators, user_id="admin-1")

    await confirm_membership(request, AsyncMock())
    await require_admin(request, AsyncMock())

    assert request.context.stage == Stage.AUTHORIZED


@pytest.mark.asyncio
async def test_custom_role_after_membership(collaborators, organizations, roles):
    organizations.add(ORG_ID)
    roles.grant(ORG_ID, "member-1", USER_ROLE)
    request = _authenticated(collaborators)
    await confirm_membership(request, AsyncMock())
    call_next = AsyncMock()

    with pytest.raises(Forbidden, match="billing"):
        await require_role("billing")(request, call_next)

    call_next.assert_not_awaited()
