# Overview: Signed bearer tokens (HS256 JWT) carrying subject, role, purpose and expiry.

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from jose import jwt, JWTError, ExpiredSignatureError

from ..errors import ConfigurationError, InvalidCredentials, TokenExpired
from ..roles import Role
from ..time_utils import epoch_seconds

ALGORITHM = "HS256"

PURPOSE_ACCESS = "access"
PURPOSE_VERIFY_EMAIL = "verify_email"

DEFAULT_TTL = timedelta(days=30)


@dataclass(frozen=True)
class Claims:
    user_id: int
    role: Role
    issued_at: int
    expires_at: int
    purpose: str = PURPOSE_ACCESS


class TokenService:
    """
    Stateless token issuer/verifier.

    Tokens are never persisted; a token is valid until its own exp, so a
    refreshed token does not revoke the one it was refreshed from.
    """

    def __init__(self, secret: str | None, default_ttl: timedelta = DEFAULT_TTL):
        self._secret = secret
        self.default_ttl = default_ttl

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigurationError("TOKEN_SECRET is not configured")
        return self._secret

    def issue(self, user_id: int, role: Role, ttl: timedelta | None = None, purpose: str = PURPOSE_ACCESS) -> str:
        secret = self._require_secret()
        ttl = self.default_ttl if ttl is None else ttl
        now = epoch_seconds()
        claims = {
            "sub": str(user_id),
            "role": Role.parse(role).value,
            "purpose": purpose,
            "iat": now,
            "exp": now + int(ttl.total_seconds()),
        }
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def verify(self, token: str, purpose: str = PURPOSE_ACCESS) -> Claims:
        """
        Decode and check a token.

        Raises TokenExpired when exp is in the past and InvalidCredentials for
        everything else (bad signature, malformed, unknown role, wrong purpose).
        """
        secret = self._require_secret()
        if not token or not isinstance(token, str):
            raise InvalidCredentials("Missing token")
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except JWTError:
            raise InvalidCredentials("Invalid token")

        try:
            user_id = int(payload["sub"])
            role = Role.parse(payload["role"])
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError):
            raise InvalidCredentials("Invalid token claims")

        token_purpose = payload.get("purpose", PURPOSE_ACCESS)
        if token_purpose != purpose:
            raise InvalidCredentials("Token not valid for this operation")

        return Claims(
            user_id=user_id,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
            purpose=token_purpose,
        )

    def refresh(self, token: str) -> str:
        claims = self.verify(token)
        return self.issue(claims.user_id, claims.role, DEFAULT_TTL)


def get_token_service() -> TokenService:
    """The TokenService built by create_app() from TOKEN_SECRET."""
    return current_app.extensions["token_service"]
