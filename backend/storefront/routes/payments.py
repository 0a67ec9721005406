# Overview: Flask API routes for stored payment methods and card types.

"""
Payment method routes.

Nothing is charged here; payment methods are stored records. Card numbers
are masked in every response.
"""
from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..roles import Role
from ..services import payment_method_service
from .common import fail, json_body

payments_bp = Blueprint("payments", __name__, url_prefix="/api")


@payments_bp.get("/payment-methods")
@require_auth
@require_role(Role.CUSTOMER)
def list_payment_methods():
    try:
        methods = payment_method_service.list_payment_methods(g.user_id)
        return jsonify({"items": [m.to_dict() for m in methods]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list payment methods")
        return internal_error_response()


@payments_bp.post("/payment-methods")
@require_auth
@require_role(Role.CUSTOMER)
def create_payment_method():
    try:
        method = payment_method_service.create_payment_method(g.user_id, json_body())
        return jsonify({"payment_method": method.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to create payment method")
        return internal_error_response()


@payments_bp.patch("/payment-methods/<int:payment_method_id>")
@require_auth
@require_role(Role.CUSTOMER)
def update_payment_method(payment_method_id: int):
    try:
        method = payment_method_service.update_payment_method(g.user_id, payment_method_id, json_body())
        return jsonify({"payment_method": method.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update payment method")
        return internal_error_response()


@payments_bp.get("/card-types")
def list_card_types():
    try:
        return jsonify({"items": [c.to_dict() for c in payment_method_service.list_card_types()]}), 200
    except Exception:
        current_app.logger.exception("Failed to list card types")
        return internal_error_response()


@payments_bp.get("/card-types/<int:card_type_id>")
def get_card_type(card_type_id: int):
    try:
        return jsonify({"card_type": payment_method_service.get_card_type(card_type_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load card type")
        return internal_error_response()
