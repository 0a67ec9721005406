"""
Token service tests.

Verifies:
- verify(issue(uid, role, ttl)) returns the same subject and role
- Expired tokens raise TOKEN_EXPIRED, everything else INVALID_CREDENTIALS
- Refresh issues a new 30-day token and leaves the old one valid
- Email verification tokens are not access tokens
"""

from datetime import timedelta

import pytest
from jose import jwt

from storefront.errors import ConfigurationError, InvalidCredentials, TokenExpired
from storefront.roles import Role
from storefront.services.token_service import PURPOSE_VERIFY_EMAIL, TokenService
from storefront.time_utils import epoch_seconds

SECRET = "unit-test-secret"


@pytest.fixture
def tokens():
    return TokenService(SECRET)


class TestIssueAndVerify:

    @pytest.mark.parametrize("role", [Role.CUSTOMER, Role.SUPPLIER])
    def test_round_trip(self, tokens, role):
        claims = tokens.verify(tokens.issue(42, role, timedelta(hours=1)))
        assert claims.user_id == 42
        assert claims.role is role
        assert claims.expires_at > claims.issued_at

    def test_default_ttl_is_thirty_days(self, tokens):
        claims = tokens.verify(tokens.issue(1, Role.CUSTOMER))
        assert claims.expires_at - claims.issued_at == 30 * 24 * 3600

    def test_expired(self, tokens):
        token = tokens.issue(1, Role.CUSTOMER, timedelta(seconds=-1))
        with pytest.raises(TokenExpired):
            tokens.verify(token)

    def test_wrong_secret(self, tokens):
        token = TokenService("someone-else").issue(1, Role.CUSTOMER)
        with pytest.raises(InvalidCredentials):
            tokens.verify(token)

    def test_tampered_payload(self, tokens):
        header, payload, signature = tokens.issue(1, Role.CUSTOMER).split(".")
        forged = jwt.encode(
            {"sub": "1", "role": "supplier", "iat": epoch_seconds(), "exp": epoch_seconds() + 60},
            "forged",
            algorithm="HS256",
        ).split(".")[1]
        with pytest.raises(InvalidCredentials):
            tokens.verify(".".join([header, forged, signature]))

    def test_garbage(self, tokens):
        with pytest.raises(InvalidCredentials):
            tokens.verify("definitely.not.a-token")

    def test_empty(self, tokens):
        with pytest.raises(InvalidCredentials):
            tokens.verify("")

    def test_other_algorithm_rejected(self, tokens):
        now = epoch_seconds()
        token = jwt.encode(
            {"sub": "1", "role": "customer", "iat": now, "exp": now + 60},
            SECRET,
            algorithm="HS512",
        )
        with pytest.raises(InvalidCredentials):
            tokens.verify(token)

    def test_unknown_role_rejected(self, tokens):
        now = epoch_seconds()
        token = jwt.encode(
            {"sub": "1", "role": "admin", "iat": now, "exp": now + 60},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidCredentials):
            tokens.verify(token)

    def test_missing_secret(self):
        with pytest.raises(ConfigurationError):
            TokenService(None).issue(1, Role.CUSTOMER)


class TestPurpose:

    def test_verification_token_is_not_an_access_token(self, tokens):
        token = tokens.issue(7, Role.CUSTOMER, timedelta(minutes=15), purpose=PURPOSE_VERIFY_EMAIL)
        with pytest.raises(InvalidCredentials):
            tokens.verify(token)
        assert tokens.verify(token, purpose=PURPOSE_VERIFY_EMAIL).user_id == 7

    def test_access_token_cannot_verify_email(self, tokens):
        token = tokens.issue(7, Role.CUSTOMER)
        with pytest.raises(InvalidCredentials):
            tokens.verify(token, purpose=PURPOSE_VERIFY_EMAIL)


class TestRefresh:

    def test_refresh_extends_expiry(self, tokens):
        old = tokens.issue(5, Role.SUPPLIER, timedelta(minutes=5))
        new = tokens.refresh(old)
        old_claims, new_claims = tokens.verify(old), tokens.verify(new)
        assert new_claims.user_id == 5
        assert new_claims.role is Role.SUPPLIER
        assert new_claims.expires_at > old_claims.expires_at
        assert new_claims.expires_at - new_claims.issued_at == 30 * 24 * 3600

    def test_old_token_stays_valid(self, tokens):
        old = tokens.issue(5, Role.CUSTOMER)
        tokens.refresh(old)
        assert tokens.verify(old).user_id == 5

    def test_refresh_expired(self, tokens):
        with pytest.raises(TokenExpired):
            tokens.refresh(tokens.issue(5, Role.CUSTOMER, timedelta(seconds=-1)))

    def test_refresh_invalid(self, tokens):
        with pytest.raises(InvalidCredentials):
            tokens.refresh("nope")
