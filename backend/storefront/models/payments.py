from __future__ import annotations

from ..extensions import db


PAYMENT_TYPES = ("CARD", "UPI", "NET_BANKING", "IBAN")


def mask_card_number(card_number: str | None) -> str | None:
    if not card_number:
        return card_number
    digits = card_number.replace(" ", "")
    if len(digits) <= 4:
        return digits
    return "*" * (len(digits) - 4) + digits[-4:]


class CardType(db.Model):
    __tablename__ = "card_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class PaymentMethod(db.Model):
    """
    Stored payment method for a customer.

    DEFAULT FLAG: same single-default rule as addresses.
    Which of the optional columns are required depends on payment_type
    (see services.payment_method_service.REQUIRED_FIELDS).
    """
    __tablename__ = "payment_methods"
    __table_args__ = (
        db.Index("ix_payment_methods_customer_default", "customer_id", "is_default"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_type = db.Column(db.String(16), nullable=False)  # CARD, UPI, NET_BANKING, IBAN
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    bank_name = db.Column(db.String(128), nullable=True)
    account_holder_name = db.Column(db.String(128), nullable=True)
    card_number = db.Column(db.String(32), nullable=True)
    card_expiration_date = db.Column(db.String(7), nullable=True)  # MM/YYYY
    iban = db.Column(db.String(34), nullable=True)
    upi_id = db.Column(db.String(64), nullable=True)
    bank_account_number = db.Column(db.String(34), nullable=True)
    ifsc_code = db.Column(db.String(11), nullable=True)

    card_type_id = db.Column(db.Integer, db.ForeignKey("card_types.id"), nullable=True)

    card_type = db.relationship("CardType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "payment_type": self.payment_type,
            "is_default": self.is_default,
            "bank_name": self.bank_name,
            "account_holder_name": self.account_holder_name,
            "card_number": mask_card_number(self.card_number),
            "card_expiration_date": self.card_expiration_date,
            "iban": self.iban,
            "upi_id": self.upi_id,
            "bank_account_number": self.bank_account_number,
            "ifsc_code": self.ifsc_code,
            "card_type_id": self.card_type_id,
        }
