# Overview: Plain-text email verification endpoint hit from the mailed link.

from flask import Blueprint, current_app

from ..errors import AppError
from ..services import auth_service

verify_bp = Blueprint("verify", __name__)

_TEXT = {"Content-Type": "text/plain; charset=utf-8"}


@verify_bp.get("/verify/<token>")
def verify_email(token: str):
    try:
        auth_service.verify_email(token)
        return "Email verified successfully", 200, _TEXT
    except AppError as e:
        return e.message, e.status_code, _TEXT
    except Exception:
        current_app.logger.exception("Failed to verify email")
        return "Internal server error", 500, _TEXT
