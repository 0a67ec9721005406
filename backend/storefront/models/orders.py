from __future__ import annotations

from ..extensions import db
from ..money import format_money
from ..time_utils import to_utc_z


ORDER_STATUSES = ("PENDING", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED")


class Order(db.Model):
    """
    Customer order.

    total_amount is computed once at placement (after discount) and never
    recomputed. Status follows the transition table in
    services.order_service; CANCELLED is only reachable through
    cancel_order so that stock is restored.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_customer_date", "customer_id", "order_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    shipping_address_id = db.Column(db.Integer, db.ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True)
    discount_id = db.Column(db.Integer, db.ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = False) -> dict:
        payload = {
            "id": self.id,
            "customer_id": self.customer_id,
            "order_date": to_utc_z(self.order_date),
            "total_amount": format_money(self.total_amount),
            "status": self.status,
            "shipping_address_id": self.shipping_address_id,
            "payment_method_id": self.payment_method_id,
            "discount_id": self.discount_id,
        }
        if include_items:
            payload["items"] = [item.to_dict() for item in self.items]
        return payload


class OrderItem(db.Model):
    """Line item; unit_price is a snapshot of the product price at placement."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "discount_amount": format_money(self.discount_amount),
        }


class Bill(db.Model):
    """Billing record created alongside each order."""
    __tablename__ = "bills"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    bill_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    payment_status = db.Column(db.String(16), nullable=False, default="PENDING")  # PENDING, PAID, CANCELLED
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship(
        "Order",
        backref=db.backref("bill", uselist=False, lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "bill_date": to_utc_z(self.bill_date),
            "payment_status": self.payment_status,
            "total_amount": format_money(self.total_amount),
        }
