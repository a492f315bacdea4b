from functools import wraps
from typing import Any, Callable, TypeVar

from flask import g, request

from campaign_panel.core.exceptions import ForbiddenError, UnauthorizedError
from campaign_panel.entities.user import AuthenticatedUser, UserRole
from campaign_panel.infrastructure.database.session import db_session
from campaign_panel.infrastructure.security.jwt_provider import extract_bearer_token
from campaign_panel.services.auth_service import build_auth_service

F = TypeVar("F", bound=Callable[..., Any])


def current_user() -> AuthenticatedUser:
    user = getattr(g, "current_user", None)
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user


def require_auth(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            raise UnauthorizedError("Access token required")

        with db_session() as session:
            g.current_user = build_auth_service(session).authenticate_access_token(token)

        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*allowed_roles: UserRole):
    allowed = {UserRole(r) for r in allowed_roles}

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if current_user().role not in allowed:
                raise ForbiddenError("Insufficient permissions")

            return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


require_admin = require_roles(UserRole.ADMIN)
require_manager_or_admin = require_roles(UserRole.ADMIN, UserRole.MANAGER)
