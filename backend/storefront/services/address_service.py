# Overview: Customer addresses and their type labels; keeps at most one default per customer.

"""
Address Service

DEFAULT FLAG: creating or updating an address with is_default=True first
clears the customer's current default, flushes, then writes the new row,
all inside one transaction. The default address cannot be deleted.

Each address owns one address_types row (its label); it is created with the
address and deleted with it.
"""

from __future__ import annotations

from sqlalchemy import text

from ..errors import InvalidState, NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import Address, AddressType
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import atomic, lock_for_update, run_with_retry
from .profile_service import get_customer_id

ADDRESS_POLICY = ModelValidationPolicy(
    writable_fields={"street_address", "city", "state", "postal_code", "country", "is_default"},
    required_on_create={"street_address", "city", "postal_code", "country"},
)

_LIST_ADDRESSES_SQL = text(
    """
    SELECT addresses.id
    FROM users
    JOIN customers ON users.id = customers.user_id
    JOIN addresses ON customers.id = addresses.customer_id
    WHERE users.id = :user_id
    ORDER BY addresses.id
    """
)


def _split_payload(payload: dict) -> tuple[dict, str | None]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    type_name = payload.pop("address_type", None)
    if type_name is not None:
        if not isinstance(type_name, str) or not type_name.strip():
            raise ValidationError("address_type must be a non-empty string")
        type_name = type_name.strip()[:64]
    return payload, type_name


def _clear_default(customer_id: int, keep_id: int | None = None) -> None:
    query = db.session.query(Address).filter(
        Address.customer_id == customer_id,
        Address.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(Address.id != keep_id)
    for current in lock_for_update(query).all():
        current.is_default = False
    db.session.flush()


def _require_owned_address(customer_id: int, address_id: int) -> Address:
    address = db.session.query(Address).filter_by(id=address_id).first()
    if address is None:
        raise NotFound("Address not found")
    if address.customer_id != customer_id:
        raise Unauthorized("Address belongs to another customer")
    return address


def list_addresses(user_id: int) -> list[Address]:
    """All addresses of the customer behind user_id (users -> customers -> addresses)."""
    ids = [row.id for row in db.session.execute(_LIST_ADDRESSES_SQL, {"user_id": user_id})]
    if not ids:
        return []
    return db.session.query(Address).filter(Address.id.in_(ids)).order_by(Address.id.asc()).all()


def create_address(user_id: int, payload: dict) -> Address:
    customer_id = get_customer_id(user_id)
    payload, type_name = _split_payload(payload)
    patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=False)
    is_default = bool(patch.get("is_default", False))

    def _op():
        with atomic():
            if is_default:
                _clear_default(customer_id)

            address_type = AddressType(name=type_name or "default")
            db.session.add(address_type)
            db.session.flush()

            address = Address(customer_id=customer_id, address_type_id=address_type.id)
            for k, v in patch.items():
                setattr(address, k, v)
            address.is_default = is_default
            db.session.add(address)
        return address

    return run_with_retry(_op)


def update_address(user_id: int, address_id: int, payload: dict) -> Address:
    customer_id = get_customer_id(user_id)
    payload, type_name = _split_payload(payload)
    patch = validate_payload(model=Address, payload=payload, policy=ADDRESS_POLICY, partial=True)

    def _op():
        with atomic():
            address = _require_owned_address(customer_id, address_id)
            if patch.get("is_default"):
                _clear_default(customer_id, keep_id=address.id)
            for k, v in patch.items():
                setattr(address, k, v)
            if type_name is not None and address.address_type is not None:
                address.address_type.name = type_name
        return address

    return run_with_retry(_op)


def delete_address(user_id: int, address_id: int) -> None:
    customer_id = get_customer_id(user_id)
    address = _require_owned_address(customer_id, address_id)
    if address.is_default:
        raise InvalidState("Cannot delete default address")

    with atomic():
        address_type = address.address_type
        db.session.delete(address)
        db.session.flush()
        if address_type is not None:
            db.session.delete(address_type)


def get_address_type(address_type_id: int) -> AddressType:
    address_type = db.session.query(AddressType).filter_by(id=address_type_id).first()
    if address_type is None:
        raise NotFound("Address type not found")
    return address_type


def update_address_type(user_id: int, address_type_id: int, name) -> AddressType:
    """Rename the label; only the customer owning the address using it may do so."""
    customer_id = get_customer_id(user_id)
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")

    address_type = get_address_type(address_type_id)
    address = db.session.query(Address).filter_by(address_type_id=address_type.id).first()
    if address is None:
        raise NotFound("Address not found")
    if address.customer_id != customer_id:
        raise Unauthorized("Address belongs to another customer")

    with atomic():
        address_type.name = name.strip()[:64]
    return address_type
