# Overview: Flask API routes for the catalog; products, categories, discounts and reviews.

"""
Catalog routes.

SECURITY:
- Listing products, categories, discounts and reviews is public
- Product and discount writes require role=supplier and ownership
- Review writes require role=customer; only ordered products can be reviewed
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import AppError, internal_error_response
from ..pagination import parse_page_args
from ..roles import Role
from ..services import discount_service, product_service, review_service
from .common import fail, json_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")
discounts_bp = Blueprint("discounts", __name__, url_prefix="/api/discounts")
reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@products_bp.get("")
def list_products():
    """
    List products (paginated).

    Query params:
    - category_id | supplier_id | base_product_id | product_id: int (at most one)
    - name: substring search
    - order_by: date | amount (default date)
    - direction: asc | desc (default desc)
    - page: int, 1-based (default 1)
    - page_size: int (default 20, max 100)
    """
    try:
        page, page_size = parse_page_args(request.args.get("page"), request.args.get("page_size"))
        filters = {key: request.args.get(key, type=int) for key in product_service.PRODUCT_FILTERS}
        result = product_service.list_products(
            filters=filters,
            name=request.args.get("name"),
            order_by=request.args.get("order_by", "date"),
            direction=request.args.get("direction", "desc"),
            page=page,
            page_size=page_size,
        )
        return jsonify(result), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return internal_error_response()


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        return jsonify({"product": product_service.get_product(product_id).to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to load product")
        return internal_error_response()


@products_bp.post("")
@require_auth
@require_role(Role.SUPPLIER)
def create_product():
    try:
        product = product_service.create_product(g.user_id, json_body())
        return jsonify({"product": product.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error_response()


@products_bp.patch("/<int:product_id>")
@require_auth
@require_role(Role.SUPPLIER)
def update_product(product_id: int):
    try:
        product = product_service.update_product(g.user_id, product_id, json_body())
        return jsonify({"product": product.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return internal_error_response()


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(Role.SUPPLIER)
def delete_product(product_id: int):
    try:
        product_service.delete_product(g.user_id, product_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return internal_error_response()


@products_bp.get("/<int:product_id>/reviews")
def product_reviews(product_id: int):
    """Reviews for a product, oldest first (page, page_size)."""
    try:
        page, page_size = parse_page_args(request.args.get("page"), request.args.get("page_size"))
        return jsonify(review_service.list_reviews_for_product(product_id, page, page_size)), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list reviews")
        return internal_error_response()


@products_bp.get("/<int:product_id>/discounts")
def product_discounts(product_id: int):
    try:
        discounts = discount_service.list_discounts(product_id=product_id)
        return jsonify({"items": [d.to_dict() for d in discounts]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list product discounts")
        return internal_error_response()


@categories_bp.get("")
def list_categories():
    try:
        return jsonify({"items": [c.to_dict() for c in product_service.list_categories()]}), 200
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return internal_error_response()


@discounts_bp.get("")
def list_discounts():
    try:
        discounts = discount_service.list_discounts(product_id=request.args.get("product_id", type=int))
        return jsonify({"items": [d.to_dict() for d in discounts]}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to list discounts")
        return internal_error_response()


@discounts_bp.post("")
@require_auth
@require_role(Role.SUPPLIER)
def create_discount():
    try:
        discount = discount_service.create_discount(g.user_id, json_body())
        return jsonify({"discount": discount.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to create discount")
        return internal_error_response()


@discounts_bp.patch("/<int:discount_id>")
@require_auth
@require_role(Role.SUPPLIER)
def update_discount(discount_id: int):
    try:
        discount = discount_service.update_discount(g.user_id, discount_id, json_body())
        return jsonify({"discount": discount.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update discount")
        return internal_error_response()


@discounts_bp.delete("/<int:discount_id>")
@require_auth
@require_role(Role.SUPPLIER)
def delete_discount(discount_id: int):
    try:
        discount_service.delete_discount(g.user_id, discount_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to delete discount")
        return internal_error_response()


@reviews_bp.post("")
@require_auth
@require_role(Role.CUSTOMER)
def create_review():
    """Body: {"product_id", "rating" (1-5), "review_text"?, "media_paths"?}."""
    try:
        review = review_service.create_review(g.user_id, json_body())
        return jsonify({"review": review.to_dict()}), 201
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to create review")
        return internal_error_response()


@reviews_bp.patch("/<int:review_id>")
@require_auth
@require_role(Role.CUSTOMER)
def update_review(review_id: int):
    try:
        review = review_service.update_review(g.user_id, review_id, json_body())
        return jsonify({"review": review.to_dict()}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to update review")
        return internal_error_response()


@reviews_bp.delete("/<int:review_id>")
@require_auth
@require_role(Role.CUSTOMER)
def delete_review(review_id: int):
    try:
        review_service.delete_review(g.user_id, review_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return fail(e)
    except Exception:
        current_app.logger.exception("Failed to delete review")
        return internal_error_response()
