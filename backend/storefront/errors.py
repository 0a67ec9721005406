# Overview: Application error taxonomy; every error carries a machine-readable code.

"""
Error kinds surfaced to API callers.

Services raise these; routes turn them into
``{"error": {"code": ..., "message": ..., ...details}}`` with the matching
HTTP status. Anything that is not an AppError is an unexpected failure and
is reported as INTERNAL_ERROR after being logged.
"""

from __future__ import annotations

from flask import jsonify


class AppError(Exception):
    """Base class for errors that are safe to show to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        payload.update(self.details)
        return payload


class InvalidCredentials(AppError):
    """Missing, malformed or unverifiable token, or wrong password."""
    code = "INVALID_CREDENTIALS"
    status_code = 401


class TokenExpired(AppError):
    """Token signature is fine but it is past its expiry."""
    code = "TOKEN_EXPIRED"
    status_code = 401


class InsufficientPermissions(AppError):
    """Valid token, wrong role for the operation."""
    code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", user_id: int | None = None):
        details = {"user_id": user_id} if user_id is not None else None
        super().__init__(message, details)
        self.user_id = user_id


class Unauthorized(AppError):
    """Valid token and role, but the caller does not own the resource."""
    code = "UNAUTHORIZED"
    status_code = 403


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404


class InsufficientStock(AppError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product '{product_name}'",
            details={
                "product_id": product_id,
                "requested_quantity": requested,
                "available_quantity": available,
            },
        )
        self.product_id = product_id


class InvalidState(AppError):
    code = "INVALID_STATE"
    status_code = 409


class ConflictError(AppError):
    """Business rule conflict (duplicate email, second profile, ...)."""
    code = "CONFLICT"
    status_code = 409


class ValidationError(AppError):
    """400-level input problem."""
    code = "VALIDATION_ERROR"
    status_code = 400


class InternalError(AppError):
    """Infrastructure failure (mail transport, persistence, ...)."""
    code = "INTERNAL_ERROR"
    status_code = 500


class ConfigurationError(InternalError):
    """Missing or unusable process-wide configuration (secrets, hashes)."""


def error_response(exc: AppError):
    """Flask response tuple for an AppError."""
    return jsonify({"error": exc.to_dict()}), exc.status_code


def internal_error_response():
    return jsonify({"error": {"code": InternalError.code, "message": "Internal server error"}}), 500
