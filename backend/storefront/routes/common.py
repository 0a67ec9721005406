# Overview: Shared helpers for API routes (JSON body parsing, AppError responses).

from flask import g, request

from ..errors import AppError, Unauthorized, ValidationError, error_response
from ..services.security_service import log_security_event


def json_body() -> dict:
    """Request JSON object; anything else is a VALIDATION_ERROR."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def fail(exc: AppError):
    """
    Response for a service-raised AppError.

    Ownership denials are recorded in security_events before responding.
    """
    if isinstance(exc, Unauthorized):
        log_security_event(
            user_id=getattr(g, "user_id", None),
            event_type="OWNERSHIP_DENIED",
            success=False,
            reason=exc.message,
        )
    return error_response(exc)
