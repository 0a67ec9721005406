# Overview: Service-layer operations for accounts; registration, login, password and email verification.

"""
Account Service

Every user is a customer or a supplier. Registration and login hand back a
30-day bearer token; the token carries the user id and role, nothing is
stored server-side.

SECURITY NOTES:
- Passwords go through the CredentialStore (keyed bcrypt) before storage
- Minimum 8 characters, upper, lower, digit and one of !@#$%^&*
- Login does not reveal whether the email exists
- Verification tokens carry purpose=verify_email and cannot be used as access tokens
"""

from __future__ import annotations

import re
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidCredentials, NotFound, ValidationError
from ..extensions import db
from ..models import User
from ..roles import Role
from .concurrency import atomic
from .credential_service import get_credential_store
from .mail_service import get_mailer
from .security_service import log_security_event
from .token_service import PURPOSE_VERIFY_EMAIL, get_token_service


EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: str) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("Invalid email format")
    return email.strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*)

    Raises ValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise ValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise ValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise ValidationError("Password must contain at least one digit")

    if not re.search(r'[!@#$%^&*]', password):
        raise ValidationError("Password must contain at least one special character (!@#$%^&*)")


def _parse_role(role) -> Role:
    try:
        return Role.parse(role)
    except ValueError:
        raise ValidationError("role must be 'customer' or 'supplier'")


def register_user(email: str, password: str, role) -> tuple[User, str]:
    """
    Create a user and return it with a fresh access token.

    Raises ValidationError for a bad email/password/role and ConflictError
    if the email is already registered.
    """
    email = validate_email(email)
    validate_password_strength(password)
    role = _parse_role(role)

    if db.session.query(User.id).filter_by(email=email).first() is not None:
        raise ConflictError("Email already registered")

    password_hash = get_credential_store().hash(password)
    try:
        with atomic():
            user = User(email=email, password_hash=password_hash, role=role, email_verified=False)
            db.session.add(user)
    except IntegrityError:
        raise ConflictError("Email already registered")

    current_app.logger.info("Registered user_id=%s role=%s", user.id, role.value)
    token = get_token_service().issue(user.id, role)
    return user, token


def login(email: str, password: str) -> dict:
    """Return {"token", "role"} or raise InvalidCredentials."""
    if not isinstance(email, str) or not isinstance(password, str):
        raise InvalidCredentials("Invalid email or password")

    store = get_credential_store()
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if user is None:
        matched = store.verify_unknown(password)
    else:
        matched = store.verify(password, user.password_hash)

    if not matched:
        log_security_event(
            user_id=user.id if user else None,
            event_type="LOGIN_FAILED",
            success=False,
            reason="Invalid email or password",
        )
        raise InvalidCredentials("Invalid email or password")

    token = get_token_service().issue(user.id, user.role)
    return {"token": token, "role": user.role.value}


def refresh_token(token: str) -> str:
    return get_token_service().refresh(token)


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def change_password(user_id: int, old_password: str, new_password: str) -> None:
    """Verify old_password, then store new_password. Wrong old password -> InvalidCredentials."""
    user = get_user(user_id)
    store = get_credential_store()

    if not isinstance(old_password, str) or not store.verify(old_password, user.password_hash):
        log_security_event(
            user_id=user.id,
            event_type="PASSWORD_CHANGE_FAILED",
            success=False,
            reason="Old password mismatch",
        )
        raise InvalidCredentials("Old password is incorrect")

    validate_password_strength(new_password)

    with atomic():
        user.password_hash = store.hash(new_password)


def send_email_verification(user_id: int) -> str:
    """
    Mail a verification link to the user's address.

    The link embeds a short-lived verify_email token. Returns the link.
    Mail transport failures surface as InternalError.
    """
    user = get_user(user_id)
    ttl = timedelta(minutes=current_app.config["EMAIL_TOKEN_TTL_MINUTES"])
    token = get_token_service().issue(user.id, user.role, ttl, purpose=PURPOSE_VERIFY_EMAIL)
    return get_mailer().send_verification(user.email, token, current_app.config["PUBLIC_BASE_URL"])


def verify_email(token: str) -> User:
    """Mark the token's user as verified. Idempotent."""
    claims = get_token_service().verify(token, purpose=PURPOSE_VERIFY_EMAIL)
    user = get_user(claims.user_id)
    if not user.email_verified:
        with atomic():
            user.email_verified = True
    return user
