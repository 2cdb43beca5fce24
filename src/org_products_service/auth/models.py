"""Auth domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from org_products_service.errors import AppError


@dataclass(frozen=True)
class User:
    id: str
    email: str
    password_hash: str = field(default="", repr=False)


@dataclass(frozen=True)
class Organization:
    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class RoleSummary:
    """Projection of an organization role: id, name and description only."""

    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded payload of a verified access token."""

    sub: str
    type: str = "access"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> str:
        return self.sub


class Stage(IntEnum):
    """Admission stages, in the only order a request may pass through them."""

    UNVALIDATED = 0
    PARAMS_VALID = 1
    AUTHENTICATED = 2
    MEMBER_CONFIRMED = 3
    AUTHORIZED = 4
    DISPATCHED = 5


class StageRegression(RuntimeError):
    """Raised when code tries to move a request context backwards."""


@dataclass
class AuthenticatedRequestContext:
    """
    Request-scoped admission state.

    Created fresh for each request and discarded when the response is sent.
    The stage only ever moves forward; once rejected the context is terminal.
    """

    stage: Stage = Stage.UNVALIDATED
    user: User | None = None
    organization: Organization | None = None
    roles: list[RoleSummary] = field(default_factory=list)
    required_role: str | None = None
    rejection: AppError | None = None

    @property
    def is_rejected(self) -> bool:
        return self.rejection is not None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def advance(self, stage: Stage) -> None:
        if self.is_rejected:
            raise StageRegression(f"Request already rejected; cannot enter {stage.name}")
        if stage < self.stage:
            raise StageRegression(f"Cannot move from {self.stage.name} back to {stage.name}")
        self.stage = stage

    def mark_params_valid(self) -> None:
        # Parameter checks may also run after authentication on some routes.
        if self.stage < Stage.PARAMS_VALID:
            self.advance(Stage.PARAMS_VALID)

    def authenticate(self, user: User) -> None:
        self.advance(Stage.AUTHENTICATED)
        self.user = user

    def confirm_membership(self, organization: Organization, roles: list[RoleSummary]) -> None:
        if not self.is_authenticated:
            raise StageRegression("Membership requires an authenticated user")
        self.advance(Stage.MEMBER_CONFIRMED)
        self.organization = organization
        self.roles = list(roles)

    def authorize(self) -> None:
        self.advance(Stage.AUTHORIZED)

    def dispatch(self) -> None:
        if self.stage < Stage.AUTHORIZED:
            raise StageRegression(f"Cannot dispatch from {self.stage.name}")
        self.advance(Stage.DISPATCHED)

    def reject(self, error: AppError) -> None:
        if self.rejection is None:
            self.rejection = error

    def has_role(self, role_name: str) -> bool:
        wanted = role_name.casefold()
        return any(role.name.casefold() == wanted for role in self.roles)
