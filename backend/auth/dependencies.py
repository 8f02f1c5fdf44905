from __future__ import annotations

from fastapi import Request

from ..errors import AuthenticationError, AuthorizationError


def get_current_user(request: Request) -> dict | None:
    """Session user as ``{id, name, email, role}``, or ``None``."""
    return request.session.get("user")


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = get_current_user(request)
    if not user:
        raise AuthenticationError("Not authenticated")
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise AuthorizationError("Admin access required")
    return user


def require_role(role: str):
    """Dependency factory: raise 403 unless the session user has ``role``."""

    def dependency(request: Request) -> dict:
        user = require_user(request)
        if user.get("role") != role:
            raise AuthorizationError(f"Only {role}s can do this")
        return user

    return dependency
