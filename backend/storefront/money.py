# Overview: Decimal helpers for currency amounts (two decimal places, half-up).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")

# Matches Numeric(10, 2)
MAX_AMOUNT = Decimal("99999999.99")


def to_money(value) -> Decimal:
    """
    Coerce API input to a cent-quantized Decimal.

    Floats are routed through str() so 19.99 stays 19.99 instead of
    19.989999999999998436805981327779591083526611328125.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("amount is required")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return quantize(amount)


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount) -> str | None:
    if amount is None:
        return None
    return str(quantize(Decimal(amount)))
