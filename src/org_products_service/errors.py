"""Request-admission error taxonomy.

Every error a guard or handler can raise derives from ``AppError``. Each kind
carries its own status code and error code; a single exception handler in
``rest.errors`` renders all of them.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


class AppError(Exception):
    """Base class for errors that terminate a request with a client response."""

    status_code: int = 400
    error_code: ErrorCode = ErrorCode.INVALID_INPUT
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict[str, object]:
        return {
            "success": False,
            "status_code": self.status_code,
            "message": self.message,
        }


class InvalidInput(AppError):
    """Malformed or missing request data."""

    status_code = 422
    error_code = ErrorCode.INVALID_INPUT
    default_message = "Invalid input"


class Unauthorized(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401
    error_code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class ResourceNotFound(AppError):
    """Referenced organization, membership or resource is absent."""

    status_code = 404
    error_code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class Forbidden(AppError):
    """Authenticated member without the required privilege."""

    status_code = 403
    error_code = ErrorCode.FORBIDDEN
    default_message = "Access denied"


class Conflict(AppError):
    status_code = 409
    error_code = ErrorCode.CONFLICT
    default_message = "Resource already exists"
