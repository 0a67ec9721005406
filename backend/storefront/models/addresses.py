from __future__ import annotations

from ..extensions import db


class AddressType(db.Model):
    """Label for an address ("home", "work", ...). One row per address."""
    __tablename__ = "address_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Address(db.Model):
    """
    Customer address.

    DEFAULT FLAG: at most one address per customer has is_default=True.
    Enforced in services.address_service, which clears the previous
    default in the same transaction before setting a new one.
    """
    __tablename__ = "addresses"
    __table_args__ = (
        db.Index("ix_addresses_customer_default", "customer_id", "is_default"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    address_type_id = db.Column(db.Integer, db.ForeignKey("address_types.id"), nullable=True)

    street_address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(128), nullable=True)
    postal_code = db.Column(db.String(32), nullable=False)
    country = db.Column(db.String(128), nullable=False)

    is_default = db.Column(db.Boolean, nullable=False, default=False)

    address_type = db.relationship("AddressType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "address_type_id": self.address_type_id,
            "address_type": self.address_type.name if self.address_type else None,
            "street_address": self.street_address,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "is_default": self.is_default,
        }
