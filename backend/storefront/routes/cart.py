# Overview: Flask API routes for the customer's shopping cart.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..roles import Role
from ..services import cart_service
from .common import fail, json_body

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@require_auth
@require_role(Role.CUSTOMER)
def list_cart():
    try:
        return jsonify({"items": cart_service.list_cart_items(g.user_id)}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list cart")
        return internal_error_response()


@cart_bp.post("/items")
@require_auth
@require_role(Role.CUSTOMER)
def add_to_cart():
    """Body: {"product_id", "quantity"}. Returns the cart id."""
    try:
        data = json_body()
        cart = cart_service.add_to_cart(g.user_id, data.get("product_id"), data.get("quantity"))
        return jsonify({"cart_id": cart.id}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to add to cart")
        return internal_error_response()


@cart_bp.patch("/<int:cart_id>/items/<int:product_id>")
@require_auth
@require_role(Role.CUSTOMER)
def update_cart_item(cart_id: int, product_id: int):
    """Body: {"quantity"}; 0 removes the line."""
    try:
        item = cart_service.update_cart_item_quantity(g.user_id, cart_id, product_id, json_body().get("quantity"))
        if item is None:
            return jsonify({"message": "Product removed from cart"}), 200
        return jsonify({"item": item.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update cart item")
        return internal_error_response()


@cart_bp.delete("/items/<int:product_id>")
@require_auth
@require_role(Role.CUSTOMER)
def remove_from_cart(product_id: int):
    try:
        cart_service.remove_from_cart(g.user_id, product_id)
        return jsonify({"message": "Product removed from cart"}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to remove from cart")
        return internal_error_response()
