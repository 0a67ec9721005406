# Overview: Keyed password hashing (HMAC pepper + bcrypt) and verification.

"""
Credential Store

Passwords are never stored or logged in plaintext. A password is first
keyed with the process-wide secret (HMAC-SHA256, base64 so bcrypt never
sees NUL bytes or more than 72 bytes), then hashed with bcrypt and a fresh
random salt. A database dump is useless without the secret.

SECURITY NOTES:
- bcrypt.checkpw() compares in constant time
- A malformed stored hash is a configuration problem, not a wrong password
"""

from __future__ import annotations

import base64
import hashlib
import hmac

import bcrypt
from flask import current_app

from ..errors import ConfigurationError


class CredentialStore:
    def __init__(self, secret: str | None, rounds: int = 12):
        self._secret = secret
        self._rounds = rounds
        self._dummy_hash: str | None = None

    def _keyed(self, password: str) -> bytes:
        if not self._secret:
            raise ConfigurationError("PASSWORD_SECRET is not configured")
        digest = hmac.new(
            self._secret.encode("utf-8"),
            password.encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest)

    def hash(self, password: str) -> str:
        """Salted, keyed hash suitable for storage. Two calls never return the same string."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._keyed(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        True if password matches password_hash, False on mismatch.

        Raises ConfigurationError if password_hash is not a bcrypt hash.
        """
        keyed = self._keyed(password)
        try:
            return bcrypt.checkpw(keyed, password_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError) as exc:
            raise ConfigurationError("Stored password hash is malformed") from exc

    def verify_unknown(self, password: str) -> bool:
        """
        Spend the same bcrypt work as verify() for an account that does not exist.

        Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("unknown-account")
        self.verify(password, self._dummy_hash)
        return False


def get_credential_store() -> CredentialStore:
    """The CredentialStore built by create_app() from PASSWORD_SECRET."""
    return current_app.extensions["credential_store"]
