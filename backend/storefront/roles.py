# Overview: Closed set of account roles; every authorization decision keys off these.

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"

    @classmethod
    def parse(cls, value) -> "Role":
        """Accept a Role or its string value; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Invalid role: {value!r}")
