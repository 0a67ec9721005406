# Overview: Order workflow; totals, discount, stock check/decrement and atomic persistence.

"""
Order Service

place_order is all-or-nothing: the order row, every line item, every stock
decrement, the discount usage counter and the bill are written in one
transaction. Any failure (unknown product, insufficient stock, foreign
address, ...) rolls all of it back.

STOCK: products are read with SELECT ... FOR UPDATE before the check and
decrement; Product.version_id turns a concurrent lost update into a
StaleDataError, which run_with_retry replays from scratch.

PRICING: unit_price on each line is a snapshot of Product.base_price at
placement. total_amount is computed once, in Decimal, quantized to cents
half-up and never below zero.

STATUS:
    PENDING    -> PROCESSING | SHIPPED
    PROCESSING -> SHIPPED
    SHIPPED    -> DELIVERED
    DELIVERED, CANCELLED: terminal
CANCELLED is only reachable through cancel_order (restores stock).
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import InsufficientStock, InvalidState, NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import Address, Bill, Discount, Order, OrderItem, Product
from ..models.orders import ORDER_STATUSES
from ..money import quantize
from ..validation import require_positive_int
from .concurrency import atomic, lock_for_update, run_with_retry
from .payment_method_service import get_payment_method_for_customer
from .profile_service import get_customer_id

ORDER_TRANSITIONS = {
    "PENDING": {"PROCESSING", "SHIPPED"},
    "PROCESSING": {"SHIPPED"},
    "SHIPPED": {"DELIVERED"},
    "DELIVERED": set(),
    "CANCELLED": set(),
}

CANCELLABLE_STATUSES = {"PENDING", "PROCESSING"}


def _normalize_items(items) -> list[tuple[int, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    normalized = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object with product_id and quantity")
        product_id = require_positive_int(raw.get("product_id"), "product_id")
        quantity = require_positive_int(raw.get("quantity"), "quantity")
        normalized.append((product_id, quantity))
    return normalized


def apply_discount(total: Decimal, discount: Discount) -> Decimal:
    """
    Apply a discount to an order subtotal.

    PERCENTAGE: total * (1 - value/100); anything else: total - value.
    Result is quantized to cents (half-up) and clamped at zero.
    """
    value = Decimal(discount.discount_value)
    if discount.discount_type == "PERCENTAGE":
        discounted = total - (total * value / Decimal(100))
    else:
        discounted = total - value
    return max(quantize(discounted), Decimal("0.00"))


def _require_owned_address(customer_id: int, address_id: int) -> Address:
    address = db.session.query(Address).filter_by(id=address_id).first()
    if address is None:
        raise NotFound("Shipping address not found")
    if address.customer_id != customer_id:
        raise Unauthorized("Shipping address belongs to another customer")
    return address


def place_order(
    user_id: int,
    items,
    discount_code: str | None = None,
    shipping_address_id: int | None = None,
    payment_method_id: int | None = None,
) -> Order:
    customer_id = get_customer_id(user_id)
    lines = _normalize_items(items)

    def _op():
        with atomic():
            if shipping_address_id is not None:
                _require_owned_address(customer_id, shipping_address_id)
            if payment_method_id is not None:
                get_payment_method_for_customer(customer_id, payment_method_id)

            discount = None
            if discount_code:
                discount = lock_for_update(
                    db.session.query(Discount).filter_by(code=discount_code)
                ).first()
                if discount is None:
                    raise NotFound("Discount not found")

            total = Decimal("0.00")
            for product_id, quantity in lines:
                product = db.session.query(Product).filter_by(id=product_id).first()
                if product is None:
                    raise NotFound(f"Product {product_id} not found")
                total += Decimal(product.base_price) * quantity

            total = quantize(total)
            if discount is not None:
                total = apply_discount(total, discount)
                discount.times_used = (discount.times_used or 0) + 1

            order = Order(
                customer_id=customer_id,
                total_amount=total,
                status="PENDING",
                shipping_address_id=shipping_address_id,
                payment_method_id=payment_method_id,
                discount_id=discount.id if discount else None,
            )
            db.session.add(order)
            db.session.flush()

            for product_id, quantity in lines:
                product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
                if product.stock_quantity < quantity:
                    raise InsufficientStock(
                        product_id=product.id,
                        product_name=product.name,
                        requested=quantity,
                        available=product.stock_quantity,
                    )
                product.stock_quantity -= quantity
                db.session.add(OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.base_price,
                    discount_amount=Decimal("0.00"),
                ))

            db.session.add(Bill(order_id=order.id, payment_status="PENDING", total_amount=total))
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s placed by customer_id=%s total=%s", order.id, customer_id, order.total_amount
    )
    return order


def _require_owned_order(customer_id: int, order_id: int, *, lock: bool = False) -> Order:
    query = db.session.query(Order).filter_by(id=order_id)
    order = (lock_for_update(query) if lock else query).first()
    if order is None:
        raise NotFound("Order not found")
    if order.customer_id != customer_id:
        raise Unauthorized("Order belongs to another customer")
    return order


def cancel_order(user_id: int, order_id: int) -> Order:
    """Cancel a PENDING/PROCESSING order and put its quantities back in stock."""
    customer_id = get_customer_id(user_id)

    def _op():
        with atomic():
            order = _require_owned_order(customer_id, order_id, lock=True)
            if order.status == "CANCELLED":
                raise InvalidState("Order already cancelled")
            if order.status not in CANCELLABLE_STATUSES:
                raise InvalidState(f"Order in status {order.status} cannot be cancelled")

            for item in order.items:
                product = lock_for_update(db.session.query(Product).filter_by(id=item.product_id)).first()
                if product is not None:
                    product.stock_quantity += item.quantity

            order.status = "CANCELLED"
            if order.bill is not None:
                order.bill.payment_status = "CANCELLED"
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s cancelled by customer_id=%s", order.id, customer_id)
    return order


def update_order_status(order_id: int, new_status) -> Order:
    if not isinstance(new_status, str) or new_status.strip().upper() not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")
    new_status = new_status.strip().upper()
    if new_status == "CANCELLED":
        raise InvalidState("Orders are cancelled through the cancel endpoint")

    def _op():
        with atomic():
            order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
            if order is None:
                raise NotFound("Order not found")
            if new_status not in ORDER_TRANSITIONS.get(order.status, set()):
                raise InvalidState(f"Cannot move order from {order.status} to {new_status}")
            order.status = new_status
        return order

    return run_with_retry(_op)


def list_orders(user_id: int) -> list[Order]:
    customer_id = get_customer_id(user_id)
    return (
        db.session.query(Order)
        .filter(Order.customer_id == customer_id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def get_order(user_id: int, order_id: int) -> Order:
    return _require_owned_order(get_customer_id(user_id), order_id)


def list_order_items(user_id: int, order_id: int) -> list[OrderItem]:
    return list(get_order(user_id, order_id).items)


def list_bills(user_id: int) -> list[Bill]:
    customer_id = get_customer_id(user_id)
    return (
        db.session.query(Bill)
        .join(Order, Order.id == Bill.order_id)
        .filter(Order.customer_id == customer_id)
        .order_by(Bill.bill_date.desc(), Bill.id.desc())
        .all()
    )
