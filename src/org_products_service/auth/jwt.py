"""JWT token creation and verification."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

from org_products_service.auth.models import TokenClaims
from org_products_service.errors import Unauthorized
from org_products_service.settings import Settings


def _now_utc() -> datetime:
    return datetime.now(UTC)


def create_access_token(
    user_id: str,
    settings: Settings,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = _now_utc()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
        "type": "access",
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and verify a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )


class JwtTokenVerifier:
    """Verifies HMAC-signed access tokens against the configured secret."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise Unauthorized("Authentication token is missing")
        try:
            payload = decode_token(token, self._settings)
        except jwt.ExpiredSignatureError as exc:
            raise Unauthorized("Token has expired") from exc
        except jwt.PyJWTError as exc:
            raise Unauthorized("Invalid or expired token") from exc

        if payload.get("type") != "access":
            raise Unauthorized("Not an access token")

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            raise Unauthorized("Malformed token payload")

        extra = {k: v for k, v in payload.items() if k not in ("sub", "type")}
        return TokenClaims(sub=sub, type=payload["type"], extra=extra)
