# Overview: Stored customer payment methods (no charging); single-default invariant.

from __future__ import annotations

import re

from ..errors import NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import CardType, PaymentMethod
from ..models.payments import PAYMENT_TYPES
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import atomic, lock_for_update, run_with_retry
from .profile_service import get_customer_id

PAYMENT_METHOD_POLICY = ModelValidationPolicy(
    writable_fields={
        "payment_type", "is_default", "bank_name", "account_holder_name",
        "card_number", "card_expiration_date", "iban", "upi_id",
        "bank_account_number", "ifsc_code", "card_type_id",
    },
    required_on_create={"payment_type"},
)

# Fields that must be present (non-blank) for each payment_type
REQUIRED_FIELDS = {
    "CARD": ("card_number", "card_expiration_date", "account_holder_name"),
    "UPI": ("upi_id",),
    "NET_BANKING": ("bank_name", "account_holder_name", "bank_account_number", "ifsc_code"),
    "IBAN": ("iban", "account_holder_name"),
}

_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{4}$")
_CARD_RE = re.compile(r"^\d{12,19}$")


def _enforce_rules(fields: dict) -> None:
    payment_type = fields.get("payment_type")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(f"payment_type must be one of {', '.join(PAYMENT_TYPES)}")

    missing = [f for f in REQUIRED_FIELDS[payment_type] if not fields.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields for {payment_type}: {', '.join(missing)}")

    if payment_type == "CARD":
        if not _CARD_RE.match(fields["card_number"].replace(" ", "")):
            raise ValidationError("card_number must be 12-19 digits")
        if not _EXPIRY_RE.match(fields["card_expiration_date"]):
            raise ValidationError("card_expiration_date must be MM/YYYY")

    card_type_id = fields.get("card_type_id")
    if card_type_id is not None and db.session.query(CardType.id).filter_by(id=card_type_id).first() is None:
        raise NotFound("Card type not found")


def _clear_default(customer_id: int, keep_id: int | None = None) -> None:
    query = db.session.query(PaymentMethod).filter(
        PaymentMethod.customer_id == customer_id,
        PaymentMethod.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(PaymentMethod.id != keep_id)
    for current in lock_for_update(query).all():
        current.is_default = False
    db.session.flush()


def list_payment_methods(user_id: int) -> list[PaymentMethod]:
    customer_id = get_customer_id(user_id)
    return (
        db.session.query(PaymentMethod)
        .filter(PaymentMethod.customer_id == customer_id)
        .order_by(PaymentMethod.id.asc())
        .all()
    )


def create_payment_method(user_id: int, payload: dict) -> PaymentMethod:
    customer_id = get_customer_id(user_id)
    patch = validate_payload(model=PaymentMethod, payload=payload, policy=PAYMENT_METHOD_POLICY, partial=False)
    patch["payment_type"] = patch["payment_type"].upper()
    _enforce_rules(patch)
    is_default = bool(patch.get("is_default", False))

    def _op():
        with atomic():
            if is_default:
                _clear_default(customer_id)
            method = PaymentMethod(customer_id=customer_id)
            for k, v in patch.items():
                setattr(method, k, v)
            method.is_default = is_default
            db.session.add(method)
        return method

    return run_with_retry(_op)


def update_payment_method(user_id: int, payment_method_id: int, payload: dict) -> PaymentMethod:
    customer_id = get_customer_id(user_id)
    patch = validate_payload(model=PaymentMethod, payload=payload, policy=PAYMENT_METHOD_POLICY, partial=True)
    if patch.get("payment_type"):
        patch["payment_type"] = patch["payment_type"].upper()

    def _op():
        with atomic():
            method = db.session.query(PaymentMethod).filter_by(id=payment_method_id).first()
            if method is None:
                raise NotFound("Payment method not found")
            if method.customer_id != customer_id:
                raise Unauthorized("Payment method belongs to another customer")

            merged = {
                name: getattr(method, name)
                for name in PAYMENT_METHOD_POLICY.writable_fields
            }
            merged.update(patch)
            _enforce_rules(merged)

            if patch.get("is_default"):
                _clear_default(customer_id, keep_id=method.id)
            for k, v in patch.items():
                setattr(method, k, v)
        return method

    return run_with_retry(_op)


def get_payment_method_for_customer(customer_id: int, payment_method_id: int) -> PaymentMethod:
    method = db.session.query(PaymentMethod).filter_by(id=payment_method_id).first()
    if method is None:
        raise NotFound("Payment method not found")
    if method.customer_id != customer_id:
        raise Unauthorized("Payment method belongs to another customer")
    return method


def get_card_type(card_type_id: int) -> CardType:
    card_type = db.session.query(CardType).filter_by(id=card_type_id).first()
    if card_type is None:
        raise NotFound("Card type not found")
    return card_type


def list_card_types() -> list[CardType]:
    return db.session.query(CardType).order_by(CardType.name.asc()).all()


def create_card_type(name: str) -> CardType:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    with atomic():
        card_type = CardType(name=name.strip())
        db.session.add(card_type)
    return card_type
