"""Auth endpoints: login and /me."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from org_products_service.auth.deps import SettingsDep, admit
from org_products_service.auth.jwt import create_access_token
from org_products_service.auth.models import AuthenticatedRequestContext
from org_products_service.auth.passwords import verify_password
from org_products_service.auth.pipeline import AUTHENTICATED
from org_products_service.db.deps import UsersRepoDep
from org_products_service.errors import Unauthorized
from org_products_service.rest.schemas import LoginRequest, MeResponse, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger(__name__)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, users: UsersRepoDep, settings: SettingsDep) -> TokenResponse:
    """Verify credentials and return an access token."""
    user = await users.find_by_email(request.email)
    if not verify_password(request.password, user.password_hash if user else None):
        raise Unauthorized("Invalid email or password")

    log.info("user_logged_in", user_id=user.id)
    return TokenResponse(
        access_token=create_access_token(user.id, settings, email=user.email),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=MeResponse)
async def me(context: AuthenticatedRequestContext = admit(AUTHENTICATED)) -> MeResponse:
    """Return the currently authenticated user."""
    return MeResponse(user_id=context.user.id, email=context.user.email)
