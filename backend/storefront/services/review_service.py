# Overview: Product reviews; only customers who ordered a product may review it.

from __future__ import annotations

from ..errors import NotFound, Unauthorized
from ..extensions import db
from ..models import Order, OrderItem, Product, Review
from ..pagination import paginate
from ..validation import ModelValidationPolicy, enforce_rules_review, validate_payload
from .concurrency import atomic
from .profile_service import get_customer_id

REVIEW_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "rating", "review_text", "media_paths"},
    required_on_create={"product_id", "rating"},
)

REVIEW_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"rating", "review_text", "media_paths"},
)


def _has_ordered(customer_id: int, product_id: int) -> bool:
    row = (
        db.session.query(OrderItem.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(
            Order.customer_id == customer_id,
            OrderItem.product_id == product_id,
            Order.status != "CANCELLED",
        )
        .first()
    )
    return row is not None


def _require_owned_review(user_id: int, review_id: int) -> Review:
    customer_id = get_customer_id(user_id)
    review = db.session.query(Review).filter_by(id=review_id).first()
    if review is None:
        raise NotFound("Review not found")
    if review.customer_id != customer_id:
        raise Unauthorized("Review belongs to another customer")
    return review


def create_review(user_id: int, payload: dict) -> Review:
    customer_id = get_customer_id(user_id)
    patch = validate_payload(model=Review, payload=payload, policy=REVIEW_POLICY, partial=False)
    enforce_rules_review(patch)

    if db.session.query(Product.id).filter_by(id=patch["product_id"]).first() is None:
        raise NotFound("Product not found")
    if not _has_ordered(customer_id, patch["product_id"]):
        raise Unauthorized("You can only review products you have ordered")

    with atomic():
        review = Review(customer_id=customer_id, media_paths=[])
        for k, v in patch.items():
            setattr(review, k, v)
        db.session.add(review)
    return review


def update_review(user_id: int, review_id: int, payload: dict) -> Review:
    patch = validate_payload(model=Review, payload=payload, policy=REVIEW_UPDATE_POLICY, partial=True)
    enforce_rules_review(patch)
    review = _require_owned_review(user_id, review_id)
    with atomic():
        for k, v in patch.items():
            setattr(review, k, v)
    return review


def delete_review(user_id: int, review_id: int) -> None:
    review = _require_owned_review(user_id, review_id)
    with atomic():
        db.session.delete(review)


def list_reviews_for_product(product_id: int, page: int = 1, page_size: int = 20) -> dict:
    """Oldest first, paginated."""
    query = (
        db.session.query(Review)
        .filter(Review.product_id == product_id)
        .order_by(Review.review_date.asc(), Review.id.asc())
    )
    reviews, page_info = paginate(query, page, page_size)
    return {
        "items": [r.to_dict() for r in reviews],
        "page_info": page_info,
    }
