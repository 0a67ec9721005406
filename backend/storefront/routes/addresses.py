# Overview: Flask API routes for customer addresses and address type labels.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..roles import Role
from ..services import address_service
from .common import fail, json_body

addresses_bp = Blueprint("addresses", __name__, url_prefix="/api")


@addresses_bp.get("/addresses")
@require_auth
@require_role(Role.CUSTOMER)
def list_addresses():
    try:
        addresses = address_service.list_addresses(g.user_id)
        return jsonify({"items": [a.to_dict() for a in addresses]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list addresses")
        return internal_error_response()


@addresses_bp.post("/addresses")
@require_auth
@require_role(Role.CUSTOMER)
def create_address():
    """
    Body: {"street_address", "city", "state"?, "postal_code", "country",
    "address_type"?, "is_default"?}. A new default replaces the previous one.
    """
    try:
        address = address_service.create_address(g.user_id, json_body())
        return jsonify({"address": address.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to create address")
        return internal_error_response()


@addresses_bp.patch("/addresses/<int:address_id>")
@require_auth
@require_role(Role.CUSTOMER)
def update_address(address_id: int):
    try:
        address = address_service.update_address(g.user_id, address_id, json_body())
        return jsonify({"address": address.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update address")
        return internal_error_response()


@addresses_bp.delete("/addresses/<int:address_id>")
@require_auth
@require_role(Role.CUSTOMER)
def delete_address(address_id: int):
    try:
        address_service.delete_address(g.user_id, address_id)
        return jsonify({"message": "Address deleted"}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to delete address")
        return internal_error_response()


@addresses_bp.get("/address-types/<int:address_type_id>")
@require_auth
@require_role(Role.CUSTOMER)
def get_address_type(address_type_id: int):
    try:
        return jsonify({"address_type": address_service.get_address_type(address_type_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load address type")
        return internal_error_response()


@addresses_bp.patch("/address-types/<int:address_type_id>")
@require_auth
@require_role(Role.CUSTOMER)
def update_address_type(address_type_id: int):
    """Body: {"name"}."""
    try:
        address_type = address_service.update_address_type(g.user_id, address_type_id, json_body().get("name"))
        return jsonify({"address_type": address_type.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update address type")
        return internal_error_response()
