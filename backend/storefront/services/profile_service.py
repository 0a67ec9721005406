# Overview: Customer and supplier profiles; derives profile ids from the token's user id.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import db
from ..models import Customer, Supplier, User
from ..roles import Role
from .concurrency import atomic


def _require_text(value, field: str, max_len: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{field} exceeds max length {max_len}")
    return value


def get_customer(user_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(user_id=user_id).first()
    if customer is None:
        raise NotFound("Customer profile not found")
    return customer


def get_supplier(user_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(user_id=user_id).first()
    if supplier is None:
        raise NotFound("Supplier profile not found")
    return supplier


def get_customer_id(user_id: int) -> int:
    return get_customer(user_id).id


def get_supplier_id(user_id: int) -> int:
    return get_supplier(user_id).id


def _require_user_with_role(user_id: int, role: Role) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if user is None:
        raise NotFound("User not found")
    if user.role != role:
        raise ValidationError(f"User is not a {role.value}")
    return user


def register_customer(user_id: int, first_name, last_name) -> Customer:
    """One profile per user; a second call raises ConflictError."""
    _require_user_with_role(user_id, Role.CUSTOMER)
    first_name = _require_text(first_name, "first_name", 128)
    last_name = _require_text(last_name, "last_name", 128)

    if db.session.query(Customer.id).filter_by(user_id=user_id).first() is not None:
        raise ConflictError("Customer profile already exists")

    try:
        with atomic():
            customer = Customer(user_id=user_id, first_name=first_name, last_name=last_name)
            db.session.add(customer)
    except IntegrityError:
        raise ConflictError("Customer profile already exists")
    return customer


def register_supplier(user_id: int, name, contact_phone=None) -> Supplier:
    _require_user_with_role(user_id, Role.SUPPLIER)
    name = _require_text(name, "name", 255)
    if contact_phone is not None:
        contact_phone = _require_text(contact_phone, "contact_phone", 32)

    if db.session.query(Supplier.id).filter_by(user_id=user_id).first() is not None:
        raise ConflictError("Supplier profile already exists")

    try:
        with atomic():
            supplier = Supplier(user_id=user_id, name=name, contact_phone=contact_phone)
            db.session.add(supplier)
    except IntegrityError:
        raise ConflictError("Supplier profile already exists")
    return supplier
