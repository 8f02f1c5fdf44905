"""
Application error taxonomy.

Each error carries the HTTP status it maps to; ``backend.app`` registers a
single handler that renders any ``AppError`` as ``{"detail": message}``.
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Not allowed"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class AccountLockedError(AppError):
    status_code = 423
    default_message = "Account is locked"


class RateLimitError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later"


class ExternalServiceError(AppError):
    """Mail transport, payment processor or object store failure."""

    status_code = 502
    default_message = "Upstream service unavailable"


class InternalError(AppError):
    """Unexpected failure; details stay in the server log."""

    status_code = 500
