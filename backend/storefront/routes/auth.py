# Overview: Flask API routes for accounts; registration, login, token refresh, password and email verification.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import AppError, InvalidCredentials, internal_error_response
from ..services import auth_service
from .common import fail, json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    """
    Register a new user.

    Body: {"email", "password", "role": "customer" | "supplier"}
    Returns 201 with the user and a 30-day access token.
    """
    try:
        data = json_body()
        user, token = auth_service.register_user(data.get("email"), data.get("password"), data.get("role"))
        return jsonify({"user": user.to_dict(), "token": token}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return internal_error_response()


@auth_bp.post("/login")
def login():
    """Body: {"email", "password"}. Returns {"token", "role"}."""
    try:
        data = json_body()
        result = auth_service.login(data.get("email"), data.get("password"))
        return jsonify(result), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to log in")
        return internal_error_response()


@auth_bp.post("/refresh")
def refresh():
    """
    Exchange a valid token for a new 30-day token.

    Token comes from the Authorization header or {"token": ...} in the body.
    The old token is not revoked.
    """
    try:
        token = json_body().get("token")
        if not token:
            header = request.headers.get("Authorization", "")
            if header.startswith("Bearer "):
                token = header.split(" ", 1)[1].strip()
        if not token:
            raise InvalidCredentials("Missing token")
        return jsonify({"token": auth_service.refresh_token(token)}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to refresh token")
        return internal_error_response()


@auth_bp.get("/me")
@require_auth
def me():
    try:
        return jsonify({"user": auth_service.get_user(g.user_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load current user")
        return internal_error_response()


@auth_bp.post("/change-password")
@require_auth
def change_password():
    """Body: {"old_password", "new_password"}."""
    try:
        data = json_body()
        auth_service.change_password(g.user_id, data.get("old_password"), data.get("new_password"))
        return jsonify({"message": "Password changed"}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to change password")
        return internal_error_response()


@auth_bp.post("/send-verification")
@require_auth
def send_verification():
    try:
        auth_service.send_email_verification(g.user_id)
        return jsonify({"message": "Email verification sent"}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to send email verification")
        return internal_error_response()
