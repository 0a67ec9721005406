# Overview: Role-based authorization predicate over verified token claims.

from __future__ import annotations

from collections.abc import Iterable

from ..errors import InsufficientPermissions
from ..roles import Role
from .token_service import Claims


def authorize(claims: Claims, allowed_roles: Iterable[Role]) -> None:
    """
    Raise InsufficientPermissions unless claims.role is one of allowed_roles.

    Pure check: ownership of the targeted resource is verified separately
    by each service.
    """
    allowed = frozenset(Role.parse(r) for r in allowed_roles)
    if claims.role not in allowed:
        raise InsufficientPermissions(user_id=claims.user_id)
