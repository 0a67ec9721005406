# Overview: Supplier-managed discount codes, gated on owning the discounted product.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFound, Unauthorized
from ..extensions import db
from ..models import Discount, Product
from ..validation import ModelValidationPolicy, enforce_rules_discount, validate_payload
from .concurrency import atomic, run_with_retry
from .profile_service import get_supplier_id

DISCOUNT_POLICY = ModelValidationPolicy(
    writable_fields={
        "code", "description", "discount_value", "discount_type",
        "valid_from", "valid_until", "max_uses", "product_id",
        "category_id", "min_quantity",
    },
    required_on_create={"code", "discount_value", "discount_type", "product_id"},
)


def _require_supplier_owns_product(supplier_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFound("Product not found")
    if product.supplier_id != supplier_id:
        raise Unauthorized("Product belongs to another supplier")
    return product


def _require_owned_discount(user_id: int, discount_id: int) -> tuple[int, Discount]:
    supplier_id = get_supplier_id(user_id)
    discount = db.session.query(Discount).filter_by(id=discount_id).first()
    if discount is None:
        raise NotFound("Discount not found")
    _require_supplier_owns_product(supplier_id, discount.product_id)
    return supplier_id, discount


def _ensure_code_free(code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Discount.id).filter(Discount.code == code)
    if exclude_id is not None:
        query = query.filter(Discount.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Discount code already exists")


def create_discount(user_id: int, payload: dict) -> Discount:
    supplier_id = get_supplier_id(user_id)
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=False)
    enforce_rules_discount(patch)
    _require_supplier_owns_product(supplier_id, patch["product_id"])
    _ensure_code_free(patch["code"])

    try:
        with atomic():
            discount = Discount(times_used=0)
            for k, v in patch.items():
                setattr(discount, k, v)
            db.session.add(discount)
    except IntegrityError:
        raise ConflictError("Discount code already exists")
    return discount


def update_discount(user_id: int, discount_id: int, payload: dict) -> Discount:
    """Patch a discount. Moving it to another product requires owning that product too."""
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=True)

    def _op():
        with atomic():
            supplier_id, discount = _require_owned_discount(user_id, discount_id)
            if patch.get("product_id") is not None and patch["product_id"] != discount.product_id:
                _require_supplier_owns_product(supplier_id, patch["product_id"])
            if "code" in patch:
                _ensure_code_free(patch["code"], exclude_id=discount.id)

            merged = {
                "discount_type": discount.discount_type,
                "discount_value": discount.discount_value,
                "valid_from": discount.valid_from,
                "valid_until": discount.valid_until,
            }
            merged.update(patch)
            enforce_rules_discount(merged)

            for k, v in patch.items():
                setattr(discount, k, v)
        return discount

    return run_with_retry(_op)


def delete_discount(user_id: int, discount_id: int) -> None:
    _, discount = _require_owned_discount(user_id, discount_id)
    with atomic():
        db.session.delete(discount)


def list_discounts(product_id: int | None = None) -> list[Discount]:
    query = db.session.query(Discount)
    if product_id is not None:
        query = query.filter(Discount.product_id == product_id)
    return query.order_by(Discount.id.asc()).all()


def get_discount_by_code(code: str) -> Discount:
    discount = db.session.query(Discount).filter_by(code=code).first()
    if discount is None:
        raise NotFound("Discount not found")
    return discount
