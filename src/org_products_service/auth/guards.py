"""
Request guards.

A guard is ``async def guard(request, call_next)``. It either awaits
``call_next()`` exactly once to hand the request to the next stage, or raises
an ``AppError`` which ends the request. Guards never write responses
themselves; the application's exception handler renders every rejection.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum

import structlog

from org_products_service.auth.membership import OrganizationService
from org_products_service.auth.models import AuthenticatedRequestContext, Stage, User
from org_products_service.auth.stores import Collaborators, UserStore
from org_products_service.errors import Forbidden, InvalidInput, Unauthorized

log = structlog.get_logger(__name__)

ORG_ID_REQUIRED = "Organisation id is required"
ORG_ID_INVALID = "Valid org_id must be provided"

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

Continuation = Callable[[], Awaitable[None]]


@dataclass
class GuardRequest:
    """The slice of an HTTP request the guards look at."""

    path_params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    collaborators: Collaborators | None = None
    context: AuthenticatedRequestContext = field(default_factory=AuthenticatedRequestContext)

    def header(self, name: str) -> str:
        value = self.headers.get(name)
        if value is None:
            value = self.headers.get(name.lower(), "")
        return value

    def require_collaborators(self) -> Collaborators:
        if self.collaborators is None:
            raise RuntimeError("Guard request has no collaborators bound")
        return self.collaborators


Guard = Callable[[GuardRequest, Continuation], Awaitable[None]]


class GuardKind(str, Enum):
    PARAMS = "params"
    AUTHENTICATE = "authenticate"
    ROLE = "role"
    MEMBERSHIP = "membership"


def _kind(kind: GuardKind) -> Callable[[Guard], Guard]:
    def mark(guard: Guard) -> Guard:
        guard.guard_kind = kind  # type: ignore[attr-defined]
        return guard

    return mark


def guard_kind(guard: Guard) -> GuardKind | None:
    return getattr(guard, "guard_kind", None)


def is_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value))


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------


def require_param(name: str, message: str) -> Guard:
    """Presence check: an empty or missing path parameter is rejected."""

    @_kind(GuardKind.PARAMS)
    async def _require_param(request: GuardRequest, call_next: Continuation) -> None:
        value = request.path_params.get(name) or ""
        if not value.strip():
            raise InvalidInput(message)
        # Presence alone does not make the parameters valid; the format check does.
        await call_next()

    return _require_param


def require_uuid_param(name: str, message: str, missing_message: str | None = None) -> Guard:
    """Format check: a parameter that is present must be a hyphenated UUID."""

    @_kind(GuardKind.PARAMS)
    async def _require_uuid_param(request: GuardRequest, call_next: Continuation) -> None:
        value = (request.path_params.get(name) or "").strip()
        if not value:
            raise InvalidInput(missing_message or message)
        if not is_uuid(value):
            raise InvalidInput(message)
        request.context.mark_params_valid()
        await call_next()

    return _require_uuid_param


# Presence check first, format check second. Both are exposed so a route can
# compose them with checks for other parameters.
validate_org_id: tuple[Guard, Guard] = (
    require_param("org_id", ORG_ID_REQUIRED),
    require_uuid_param("org_id", ORG_ID_INVALID, ORG_ID_REQUIRED),
)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def bearer_token(request: GuardRequest) -> str:
    auth_header = request.header("Authorization").strip()
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Authentication token is missing")
    return token.strip()


async def load_user(users: UserStore, user_id: str) -> User:
    """Resolve a verified token subject to a user.

    An unknown subject is an authentication failure, not a not-found, so the
    response does not reveal which accounts exist.
    """
    user = await users.find_by_credential_id(user_id)
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user


@_kind(GuardKind.AUTHENTICATE)
async def authenticate(request: GuardRequest, call_next: Continuation) -> None:
    collaborators = request.require_collaborators()
    token = bearer_token(request)
    claims = collaborators.tokens.verify(token)
    user = await load_user(collaborators.users, claims.user_id)
    request.context.authenticate(user)
    await call_next()


# ---------------------------------------------------------------------------
# Membership and roles
# ---------------------------------------------------------------------------


def _check_required_role(context: AuthenticatedRequestContext) -> None:
    required = context.required_role
    if required is not None and not context.has_role(required):
        raise Forbidden(f"Only users with the {required} role can perform this action")
    context.authorize()


def require_role(role_name: str | None = None) -> Guard:
    """Gate the route to members holding ``role_name``.

    With no explicit name the configured admin role is used. When placed
    before the membership guard the requirement is recorded and checked as
    soon as membership is confirmed, so the comparison always sees the
    member's resolved roles.
    """

    @_kind(GuardKind.ROLE)
    async def _require_role(request: GuardRequest, call_next: Continuation) -> None:
        context = request.context
        context.required_role = role_name or request.require_collaborators().settings.admin_role_name
        if context.stage == Stage.MEMBER_CONFIRMED:
            _check_required_role(context)
        elif context.stage > Stage.MEMBER_CONFIRMED:
            raise RuntimeError("Role guard placed after the request was already authorized")
        await call_next()

    return _require_role


require_admin = require_role()


@_kind(GuardKind.MEMBERSHIP)
async def confirm_membership(request: GuardRequest, call_next: Continuation) -> None:
    context = request.context
    if context.user is None:
        raise Unauthorized("Authentication required")

    org_id = (request.path_params.get("org_id") or "").strip()
    if not org_id:
        raise InvalidInput(ORG_ID_REQUIRED)
    if not is_uuid(org_id):
        raise InvalidInput(ORG_ID_INVALID)

    collaborators = request.require_collaborators()
    service = OrganizationService(collaborators.organizations, collaborators.roles)
    organization, roles = await service.fetch_member_roles(org_id, context.user.id)
    context.confirm_membership(organization, roles)
    if context.required_role is not None:
        _check_required_role(context)
    await call_next()
