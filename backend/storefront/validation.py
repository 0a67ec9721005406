# Overview: Payload checks for write endpoints; column-typed coercion plus business rules.

"""
Request payload validation.

validate_payload() turns a client JSON object into a patch dict for one
model. Only fields named in the policy are accepted. Values are coerced by
the column type they target:

    Integer  -> int in [-MAX_INT, MAX_INT], digit strings accepted
    Numeric  -> cent-quantized Decimal (money)
    Boolean  -> real JSON booleans only
    DateTime -> ISO-8601, normalized to naive UTC
    JSON     -> list of strings (media_paths)
    String / Text -> stripped str, length-checked against String(n)

Everything that fails is a ValidationError (400).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String

from .errors import ValidationError
from .models.catalog import DISCOUNT_TYPES
from .money import MAX_AMOUNT, to_money
from .time_utils import parse_iso_datetime

# Largest id / quantity / counter accepted from clients (fits every INTEGER backend)
MAX_INT = 2**31 - 1


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    writable_fields: what clients may set on the model
    required_on_create: subset that must be present when partial=False
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _bounded(value: int, name: str) -> int:
    if abs(value) > MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return value


def _to_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return _bounded(value, name)
    if isinstance(value, str):
        digits = value.strip()
        if digits.startswith("-"):
            digits = digits[1:]
        if digits.isdigit():
            return _bounded(int(value.strip()), name)
    raise ValidationError(f"{name} must be an integer")


def _to_decimal(name: str, value: Any):
    try:
        return to_money(value)
    except ValueError:
        raise ValidationError(f"{name} must be a decimal amount")


def _to_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean")
    return value


def _to_datetime(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _to_str_list(name: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{name} must be a list of strings")
    return [v.strip() for v in value]


def _to_text(name: str, value: Any) -> str:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{name} must be a string")
    return str(value).strip()


# Text subclasses String, so the String entry covers both.
_COERCERS = (
    (Integer, _to_int),
    (Numeric, _to_decimal),
    (Boolean, _to_bool),
    (DateTime, _to_datetime),
    (JSON, _to_str_list),
    (String, _to_text),
)


def _coerce(column, value: Any):
    for coltype, coerce in _COERCERS:
        if isinstance(column.type, coltype):
            return coerce(column.key, value)
    raise ValidationError(f"{column.key} cannot be set")


def validate_payload(*, model, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validate a create (partial=False) or patch (partial=True) payload.

    Returns only the keys that were sent, coerced to column types.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    patch: dict = {}

    for name, raw in payload.items():
        if name not in policy.writable_fields or name not in columns:
            raise ValidationError(f"Field not allowed: {name}")
        column = columns[name]

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{name} cannot be null")
            patch[name] = None
            continue

        value = _coerce(column, raw)

        if isinstance(value, str):
            if value == "" and not column.nullable:
                raise ValidationError(f"{name} cannot be blank")
            length = getattr(column.type, "length", None)
            if length and len(value) > length:
                raise ValidationError(f"{name} exceeds max length {length}")

        patch[name] = value

    return patch


def require_positive_int(value: Any, field_name: str) -> int:
    """Strict JSON int (no strings, no bools) in 1..MAX_INT."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field_name} must be > 0")
    return _bounded(value, field_name)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("base_price") is not None:
        price = patch["base_price"]
        if price < 0:
            raise ValidationError("base_price must be >= 0")
        if price > MAX_AMOUNT:
            raise ValidationError(f"base_price cannot exceed {MAX_AMOUNT}")

    if patch.get("stock_quantity") is not None and patch["stock_quantity"] < 0:
        raise ValidationError("stock_quantity must be >= 0")


def enforce_rules_discount(patch: dict) -> None:
    if "discount_type" in patch:
        if patch["discount_type"] not in DISCOUNT_TYPES:
            raise ValidationError("discount_type must be PERCENTAGE or FIXED_AMOUNT")

    value = patch.get("discount_value")
    if value is not None:
        if value < 0:
            raise ValidationError("discount_value must be >= 0")
        if patch.get("discount_type") == "PERCENTAGE" and value > 100:
            raise ValidationError("percentage discount_value cannot exceed 100")

    for key in ("max_uses", "min_quantity"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")

    starts, ends = patch.get("valid_from"), patch.get("valid_until")
    if starts is not None and ends is not None and ends < starts:
        raise ValidationError("valid_until must be after valid_from")


def enforce_rules_review(patch: dict) -> None:
    if "rating" in patch:
        rating = patch["rating"]
        if rating is None or rating < 1 or rating > 5:
            raise ValidationError("rating must be between 1 and 5")
