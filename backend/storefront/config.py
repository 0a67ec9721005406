# backend/storefront/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Flask session signing key (not used for bearer tokens)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///storefront.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Required: signing secret for bearer tokens and the password pepper.
    # No defaults; create_app() refuses to start without them.
    TOKEN_SECRET = os.environ.get("TOKEN_SECRET")
    PASSWORD_SECRET = os.environ.get("PASSWORD_SECRET")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    TOKEN_TTL_DAYS = int(os.environ.get("TOKEN_TTL_DAYS", "30"))
    EMAIL_TOKEN_TTL_MINUTES = int(os.environ.get("EMAIL_TOKEN_TTL_MINUTES", "15"))

    # Used to build the link in verification emails
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:5000")

    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp.mailgun.org")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USERNAME = os.environ.get("SMTP_USERNAME")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "postmaster@localhost")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    TOKEN_SECRET = "test-token-secret"
    PASSWORD_SECRET = "test-password-secret"
    BCRYPT_ROUNDS = 4
    PUBLIC_BASE_URL = "http://testserver"
    MAIL_SUPPRESS_SEND = True


REQUIRED_SETTINGS = ("TOKEN_SECRET", "PASSWORD_SECRET")
