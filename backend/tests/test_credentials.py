"""
Credential store tests.

Verifies:
- hash/verify round trip
- Wrong password and wrong secret do not verify
- Hashes are salted (same input, different output)
- Malformed hashes and a missing secret are configuration errors
"""

import pytest

from storefront.errors import ConfigurationError
from storefront.services.credential_service import CredentialStore


@pytest.fixture
def store():
    return CredentialStore("pepper-one", rounds=4)


class TestHashAndVerify:

    def test_round_trip(self, store):
        hashed = store.hash("Str0ng!Pw")
        assert store.verify("Str0ng!Pw", hashed) is True

    def test_wrong_password(self, store):
        hashed = store.hash("Str0ng!Pw")
        assert store.verify("Str0ng!Pw2", hashed) is False

    def test_hash_is_not_plaintext(self, store):
        hashed = store.hash("Str0ng!Pw")
        assert "Str0ng!Pw" not in hashed
        assert hashed.startswith("$2")

    def test_same_password_hashes_differently(self, store):
        assert store.hash("Str0ng!Pw") != store.hash("Str0ng!Pw")

    def test_different_secret_does_not_verify(self, store):
        hashed = store.hash("Str0ng!Pw")
        other = CredentialStore("pepper-two", rounds=4)
        assert other.verify("Str0ng!Pw", hashed) is False

    def test_long_password_is_not_truncated(self, store):
        base = "A1!" + "x" * 80
        hashed = store.hash(base + "a")
        assert store.verify(base + "b", hashed) is False

    def test_unknown_account_never_verifies(self, store):
        assert store.verify_unknown("unknown-account") is False
        assert store.verify_unknown("") is False


class TestConfigurationErrors:

    def test_malformed_hash(self, store):
        with pytest.raises(ConfigurationError):
            store.verify("Str0ng!Pw", "not-a-bcrypt-hash")

    def test_missing_secret_on_hash(self):
        with pytest.raises(ConfigurationError):
            CredentialStore(None).hash("Str0ng!Pw")

    def test_missing_secret_on_verify(self, store):
        hashed = store.hash("Str0ng!Pw")
        with pytest.raises(ConfigurationError):
            CredentialStore("").verify("Str0ng!Pw", hashed)
