# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import AppError, InsufficientPermissions, InvalidCredentials, error_response
from .roles import Role
from .services import role_guard
from .services.security_service import log_security_event
from .services.token_service import get_token_service


def _bearer_token() -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise InvalidCredentials("Authentication required")
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise InvalidCredentials("Authentication required")
    return token


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.claims: the verified Claims
    - g.user_id: claims.user_id
    - g.role: claims.role

    Returns 401 INVALID_CREDENTIALS for a missing/malformed/forged token and
    401 TOKEN_EXPIRED for an expired one.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            claims = get_token_service().verify(_bearer_token())
        except AppError as e:
            return error_response(e)

        g.claims = claims
        g.user_id = claims.user_id
        g.role = claims.role

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: Role):
    """
    Restrict a route to the given roles. Must be applied after @require_auth.

    Denials are written to security_events.
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            claims = getattr(g, "claims", None)
            if claims is None:
                return error_response(InvalidCredentials("Authentication required"))

            try:
                role_guard.authorize(claims, allowed)
            except InsufficientPermissions as e:
                log_security_event(
                    user_id=claims.user_id,
                    event_type="PERMISSION_DENIED",
                    success=False,
                    reason=f"Role {claims.role.value} not in {sorted(r.value for r in allowed)}",
                )
                return error_response(e)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
