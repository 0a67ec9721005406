# Overview: Flask API routes for customer and supplier profiles.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..roles import Role
from ..services import profile_service
from .common import fail, json_body

profiles_bp = Blueprint("profiles", __name__, url_prefix="/api")


@profiles_bp.post("/customers")
@require_auth
@require_role(Role.CUSTOMER)
def register_customer():
    """Body: {"first_name", "last_name"}. One profile per user."""
    try:
        data = json_body()
        customer = profile_service.register_customer(g.user_id, data.get("first_name"), data.get("last_name"))
        return jsonify({"customer": customer.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to register customer profile")
        return internal_error_response()


@profiles_bp.get("/customers/me")
@require_auth
@require_role(Role.CUSTOMER)
def customer_profile():
    try:
        return jsonify({"customer": profile_service.get_customer(g.user_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load customer profile")
        return internal_error_response()


@profiles_bp.post("/suppliers")
@require_auth
@require_role(Role.SUPPLIER)
def register_supplier():
    """Body: {"name", "contact_phone"?}."""
    try:
        data = json_body()
        supplier = profile_service.register_supplier(g.user_id, data.get("name"), data.get("contact_phone"))
        return jsonify({"supplier": supplier.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to register supplier profile")
        return internal_error_response()


@profiles_bp.get("/suppliers/me")
@require_auth
@require_role(Role.SUPPLIER)
def supplier_profile():
    try:
        return jsonify({"supplier": profile_service.get_supplier(g.user_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load supplier profile")
        return internal_error_response()
