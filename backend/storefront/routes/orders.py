# Overview: Flask API routes for orders and bills.

"""
Order routes.

SECURITY:
- Customers place, list, inspect and cancel their own orders
- Suppliers move orders along the status workflow
"""
from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..roles import Role
from ..services import order_service
from .common import fail, json_body

orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.get("/orders")
@require_auth
@require_role(Role.CUSTOMER)
def list_orders():
    try:
        orders = order_service.list_orders(g.user_id)
        return jsonify({"items": [o.to_dict() for o in orders]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return internal_error_response()


@orders_bp.post("/orders")
@require_auth
@require_role(Role.CUSTOMER)
def place_order():
    """
    Place an order.

    Body: {"items": [{"product_id", "quantity"}, ...], "discount_code"?,
    "shipping_address_id"?, "payment_method_id"?}

    409 INSUFFICIENT_STOCK names the product and the requested/available
    quantities; nothing is written in that case.
    """
    try:
        data = json_body()
        order = order_service.place_order(
            g.user_id,
            data.get("items"),
            discount_code=data.get("discount_code"),
            shipping_address_id=data.get("shipping_address_id"),
            payment_method_id=data.get("payment_method_id"),
        )
        return jsonify({"order": order.to_dict(include_items=True)}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to place order")
        return internal_error_response()


@orders_bp.get("/orders/<int:order_id>")
@require_auth
@require_role(Role.CUSTOMER)
def get_order(order_id: int):
    try:
        order = order_service.get_order(g.user_id, order_id)
        return jsonify({"order": order.to_dict(include_items=True)}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load order")
        return internal_error_response()


@orders_bp.get("/orders/<int:order_id>/items")
@require_auth
@require_role(Role.CUSTOMER)
def list_order_items(order_id: int):
    try:
        items = order_service.list_order_items(g.user_id, order_id)
        return jsonify({"items": [i.to_dict() for i in items]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list order items")
        return internal_error_response()


@orders_bp.post("/orders/<int:order_id>/cancel")
@require_auth
@require_role(Role.CUSTOMER)
def cancel_order(order_id: int):
    try:
        order = order_service.cancel_order(g.user_id, order_id)
        return jsonify({"order": order.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return internal_error_response()


@orders_bp.patch("/orders/<int:order_id>/status")
@require_auth
@require_role(Role.SUPPLIER)
def update_order_status(order_id: int):
    """Body: {"status"}. Only forward moves along the status workflow are accepted."""
    try:
        order = order_service.update_order_status(order_id, json_body().get("status"))
        return jsonify({"order": order.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return internal_error_response()


@orders_bp.get("/bills")
@require_auth
@require_role(Role.CUSTOMER)
def list_bills():
    try:
        bills = order_service.list_bills(g.user_id)
        return jsonify({"items": [b.to_dict() for b in bills]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list bills")
        return internal_error_response()
