"""
Application wiring tests: configuration checks, health, CORS and CLI commands.
"""

from datetime import timedelta

import pytest

from storefront import create_app
from storefront.config import TestConfig
from storefront.errors import ConfigurationError
from storefront.models import CardType, Category, SecurityEvent, User
from storefront.services.security_service import cleanup_security_events, log_security_event
from storefront.time_utils import utcnow


class TestConfiguration:

    @pytest.mark.parametrize("missing", ["TOKEN_SECRET", "PASSWORD_SECRET"])
    def test_missing_secret_refuses_to_start(self, missing):
        config = type("BrokenConfig", (TestConfig,), {missing: None})
        with pytest.raises(ConfigurationError) as exc:
            create_app(config)
        assert missing in exc.value.message

    def test_services_are_bound_to_config(self, app):
        assert app.extensions["token_service"].default_ttl == timedelta(days=30)
        assert app.extensions["mailer"].suppress is True


class TestHealth:

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["status"] == "healthy"


class TestCors:

    def test_allowed_origin(self, client, db_session):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin(self, client, db_session):
        response = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestSecurityEventRetention:

    def test_cleanup_removes_only_old_events(self, db_session):
        old = log_security_event(user_id=1, event_type="LOGIN_FAILED", success=False)
        old.occurred_at = utcnow() - timedelta(days=120)
        db_session.commit()
        log_security_event(user_id=1, event_type="LOGIN_FAILED", success=False)

        assert cleanup_security_events(retention_days=90) == 1
        assert db_session.query(SecurityEvent).count() == 1


class TestCli:

    def test_create_user(self, app, db_session):
        result = app.test_cli_runner().invoke(
            args=["users", "create", "--email", "cli@example.com", "--password", "Str0ng!Pw", "--role", "supplier"]
        )
        assert "PASS Created user cli@example.com" in result.output
        assert db_session.query(User).filter_by(email="cli@example.com").one().role.value == "supplier"

    def test_create_user_weak_password(self, app, db_session):
        result = app.test_cli_runner().invoke(
            args=["users", "create", "--email", "cli@example.com", "--password", "weak", "--role", "customer"]
        )
        assert "FAIL" in result.output
        assert db_session.query(User).count() == 0

    def test_reference_data(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["catalog", "add-category", "--name", "Shoes"])
        runner.invoke(args=["catalog", "add-card-type", "--name", "VISA"])
        assert db_session.query(Category).one().name == "Shoes"
        assert db_session.query(CardType).one().name == "VISA"

    def test_cleanup_command(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-security-events"])
        assert result.exit_code == 0
        assert "Deleted 0 security events" in result.output
