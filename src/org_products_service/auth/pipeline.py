"""Per-route guard ordering and the composer that runs it.

Route categories and the guard order each one uses:

    create   validate org_id -> authenticate -> require admin -> confirm membership
    read     authenticate -> confirm membership
    delete   authenticate -> require admin -> confirm membership
    update   authenticate -> confirm membership  (admin optional, see settings)

The role comparison itself always runs after membership is confirmed, see
``guards.require_role``.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from org_products_service.auth.guards import (
    Guard,
    GuardKind,
    GuardRequest,
    authenticate,
    confirm_membership,
    guard_kind,
    require_admin,
    validate_org_id,
)
from org_products_service.auth.models import AuthenticatedRequestContext, Stage
from org_products_service.errors import AppError
from org_products_service.settings import Settings

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RoutePolicy:
    name: str
    guards: tuple[Guard, ...]

    def __post_init__(self) -> None:
        kinds = [guard_kind(g) for g in self.guards]
        if GuardKind.ROLE in kinds and GuardKind.MEMBERSHIP not in kinds:
            raise ValueError(f"Route policy {self.name!r} requires a role without checking membership")
        if GuardKind.MEMBERSHIP in kinds:
            if GuardKind.AUTHENTICATE not in kinds or kinds.index(GuardKind.AUTHENTICATE) > kinds.index(
                GuardKind.MEMBERSHIP
            ):
                raise ValueError(f"Route policy {self.name!r} checks membership before authenticating")

    @property
    def privileged(self) -> bool:
        return any(guard_kind(g) is GuardKind.ROLE for g in self.guards)


CREATE = RoutePolicy("create", (*validate_org_id, authenticate, require_admin, confirm_membership))
READ = RoutePolicy("read", (authenticate, confirm_membership))
DELETE = RoutePolicy("delete", (authenticate, require_admin, confirm_membership))
UPDATE = RoutePolicy("update", (authenticate, confirm_membership))
UPDATE_ADMIN = RoutePolicy("update", (authenticate, require_admin, confirm_membership))
LIST_ROLES = RoutePolicy("list_roles", (*validate_org_id, authenticate, confirm_membership))
AUTHENTICATED = RoutePolicy("authenticated", (authenticate,))


def update_policy(settings: Settings) -> RoutePolicy:
    return UPDATE_ADMIN if settings.update_requires_admin else UPDATE


class GuardChain:
    """Run a policy's guards in order for one request."""

    def __init__(self, policy: RoutePolicy) -> None:
        self.policy = policy

    async def admit(self, request: GuardRequest) -> AuthenticatedRequestContext:
        """
        Run every guard, stopping at the first rejection.

        Returns the request context in the Authorized stage. The first
        ``AppError`` raised by a guard is recorded on the context and
        re-raised unchanged.
        """
        guards = self.policy.guards
        context = request.context
        completed = False

        async def run(index: int) -> None:
            nonlocal completed
            if index == len(guards):
                completed = True
                return
            await guards[index](request, lambda: run(index + 1))

        try:
            await run(0)
            if not completed:
                raise RuntimeError(f"A guard in {self.policy.name!r} returned without continuing")
            if context.stage < Stage.AUTHORIZED:
                context.authorize()
        except AppError as exc:
            context.reject(exc)
            log.info(
                "admission_rejected",
                route=self.policy.name,
                stage=context.stage.name,
                error_code=exc.error_code.value,
                status_code=exc.status_code,
            )
            raise

        log.debug(
            "request_admitted",
            route=self.policy.name,
            user_id=context.user.id if context.user else None,
            org_id=context.organization.id if context.organization else None,
        )
        return context
