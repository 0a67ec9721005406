"""
Order workflow tests.

Verifies:
- Insufficient stock rejects the whole order and writes nothing
- A failure on a later line rolls back earlier stock decrements
- Prices are snapshotted, totals are Decimal and discounts are counted
- Cancellation restores stock exactly once
- Status changes follow the transition table
"""

from decimal import Decimal

import pytest

from conftest import make_product
from storefront.errors import (
    InsufficientStock,
    InvalidState,
    NotFound,
    Unauthorized,
    ValidationError,
)
from storefront.extensions import db
from storefront.models import Address, Bill, Customer, Discount, Order, OrderItem, Product
from storefront.services import order_service


def _add_discount(product, code, value, discount_type):
    discount = Discount(
        code=code,
        discount_value=Decimal(value),
        discount_type=discount_type,
        product_id=product.id,
        times_used=0,
    )
    db.session.add(discount)
    db.session.commit()
    return discount


# =============================================================================
# Placing orders
# =============================================================================

class TestPlaceOrder:

    def test_success_decrements_stock_and_snapshots_price(self, customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 2}])

        assert order.status == "PENDING"
        assert order.total_amount == Decimal("39.98")
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 8

        item = db_session.query(OrderItem).filter_by(order_id=order.id).one()
        assert item.quantity == 2
        assert item.unit_price == Decimal("19.99")

        bill = db_session.query(Bill).filter_by(order_id=order.id).one()
        assert bill.payment_status == "PENDING"
        assert bill.total_amount == Decimal("39.98")

    def test_price_change_does_not_touch_placed_order(self, customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 1}])
        product.base_price = Decimal("99.00")
        db_session.commit()

        item = db_session.query(OrderItem).filter_by(order_id=order.id).one()
        assert item.unit_price == Decimal("19.99")
        assert db_session.query(Order).filter_by(id=order.id).one().total_amount == Decimal("19.99")

    def test_insufficient_stock_writes_nothing(self, customer_user, supplier_user, db_session):
        scarce = make_product(supplier_user, name="Scarce", stock=2)

        with pytest.raises(InsufficientStock) as exc:
            order_service.place_order(customer_user.id, [{"product_id": scarce.id, "quantity": 3}])

        details = exc.value.to_dict()
        assert details["code"] == "INSUFFICIENT_STOCK"
        assert details["product_id"] == scarce.id
        assert details["requested_quantity"] == 3
        assert details["available_quantity"] == 2
        assert "Scarce" in details["message"]

        assert db_session.query(Product).filter_by(id=scarce.id).one().stock_quantity == 2
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0
        assert db_session.query(Bill).count() == 0

    def test_later_failure_rolls_back_earlier_lines(self, customer_user, supplier_user, db_session):
        plenty = make_product(supplier_user, name="Plenty", stock=10)
        scarce = make_product(supplier_user, name="Scarce", stock=1)

        with pytest.raises(InsufficientStock):
            order_service.place_order(
                customer_user.id,
                [
                    {"product_id": plenty.id, "quantity": 4},
                    {"product_id": scarce.id, "quantity": 2},
                ],
            )

        assert db_session.query(Product).filter_by(id=plenty.id).one().stock_quantity == 10
        assert db_session.query(Product).filter_by(id=scarce.id).one().stock_quantity == 1
        assert db_session.query(Order).count() == 0

    def test_exact_stock_is_allowed(self, customer_user, supplier_user, db_session):
        last = make_product(supplier_user, name="Last", stock=3)
        order_service.place_order(customer_user.id, [{"product_id": last.id, "quantity": 3}])
        assert db_session.query(Product).filter_by(id=last.id).one().stock_quantity == 0

    def test_unknown_product(self, customer_user, db_session):
        with pytest.raises(NotFound):
            order_service.place_order(customer_user.id, [{"product_id": 9999, "quantity": 1}])
        assert db_session.query(Order).count() == 0

    @pytest.mark.parametrize("items", [
        [],
        None,
        [{"product_id": 1, "quantity": 0}],
        [{"product_id": 1, "quantity": -2}],
        [{"product_id": "abc", "quantity": 1}],
        ["not-an-object"],
        [{"product_id": 2**63, "quantity": 1}],
        [{"product_id": 1, "quantity": 2**31}],
    ])
    def test_invalid_items(self, customer_user, items):
        with pytest.raises(ValidationError):
            order_service.place_order(customer_user.id, items)

    def test_foreign_shipping_address(self, customer_user, other_customer_user, product, db_session):
        other_customer = db_session.query(Customer).filter_by(user_id=other_customer_user.id).one()
        address = Address(
            customer_id=other_customer.id,
            street_address="1 Elsewhere",
            city="Nowhere",
            postal_code="00000",
            country="US",
            is_default=True,
        )
        db_session.add(address)
        db_session.commit()

        with pytest.raises(Unauthorized):
            order_service.place_order(
                customer_user.id,
                [{"product_id": product.id, "quantity": 1}],
                shipping_address_id=address.id,
            )
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 10
        assert db_session.query(Order).count() == 0


# =============================================================================
# Discounts
# =============================================================================

class TestDiscounts:

    def test_percentage(self, customer_user, product, db_session):
        discount = _add_discount(product, "TENOFF", "10", "PERCENTAGE")

        order = order_service.place_order(
            customer_user.id, [{"product_id": product.id, "quantity": 2}], discount_code="TENOFF"
        )

        # 39.98 * 0.9 = 35.982
        assert order.total_amount == Decimal("35.98")
        assert order.discount_id == discount.id
        assert db_session.query(Discount).filter_by(id=discount.id).one().times_used == 1

    def test_fixed_amount(self, customer_user, product, db_session):
        _add_discount(product, "FIVE", "5.00", "FIXED_AMOUNT")
        order = order_service.place_order(
            customer_user.id, [{"product_id": product.id, "quantity": 1}], discount_code="FIVE"
        )
        assert order.total_amount == Decimal("14.99")

    def test_never_below_zero(self, customer_user, product, db_session):
        _add_discount(product, "HUGE", "500.00", "FIXED_AMOUNT")
        order = order_service.place_order(
            customer_user.id, [{"product_id": product.id, "quantity": 1}], discount_code="HUGE"
        )
        assert order.total_amount == Decimal("0.00")

    def test_usage_counts_every_order(self, customer_user, product, db_session):
        discount = _add_discount(product, "AGAIN", "1.00", "FIXED_AMOUNT")
        for _ in range(3):
            order_service.place_order(
                customer_user.id, [{"product_id": product.id, "quantity": 1}], discount_code="AGAIN"
            )
        assert db_session.query(Discount).filter_by(id=discount.id).one().times_used == 3

    def test_failed_order_does_not_count(self, customer_user, product, db_session):
        discount = _add_discount(product, "NOPE", "1.00", "FIXED_AMOUNT")
        with pytest.raises(InsufficientStock):
            order_service.place_order(
                customer_user.id, [{"product_id": product.id, "quantity": 50}], discount_code="NOPE"
            )
        assert db_session.query(Discount).filter_by(id=discount.id).one().times_used == 0

    def test_unknown_code(self, customer_user, product, db_session):
        with pytest.raises(NotFound):
            order_service.place_order(
                customer_user.id, [{"product_id": product.id, "quantity": 1}], discount_code="MISSING"
            )
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 10

    def test_half_up_rounding(self):
        discount = Discount(discount_value=Decimal("50"), discount_type="PERCENTAGE")
        assert order_service.apply_discount(Decimal("0.05"), discount) == Decimal("0.03")


# =============================================================================
# Cancellation
# =============================================================================

class TestCancelOrder:

    def test_cancel_restores_stock(self, customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 4}])
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 6

        cancelled = order_service.cancel_order(customer_user.id, order.id)

        assert cancelled.status == "CANCELLED"
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 10
        assert db_session.query(Bill).filter_by(order_id=order.id).one().payment_status == "CANCELLED"

    def test_cancel_twice(self, customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 4}])
        order_service.cancel_order(customer_user.id, order.id)

        with pytest.raises(InvalidState):
            order_service.cancel_order(customer_user.id, order.id)
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 10

    def test_cannot_cancel_shipped(self, customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 1}])
        order_service.update_order_status(order.id, "SHIPPED")

        with pytest.raises(InvalidState):
            order_service.cancel_order(customer_user.id, order.id)
        assert db_session.query(Product).filter_by(id=product.id).one().stock_quantity == 9

    def test_cannot_cancel_someone_elses(self, customer_user, other_customer_user, product, db_session):
        order = order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 1}])
        with pytest.raises(Unauthorized):
            order_service.cancel_order(other_customer_user.id, order.id)
        assert db_session.query(Order).filter_by(id=order.id).one().status == "PENDING"


# =============================================================================
# Status transitions
# =============================================================================

class TestStatusTransitions:

    @pytest.fixture
    def order(self, customer_user, product):
        return order_service.place_order(customer_user.id, [{"product_id": product.id, "quantity": 1}])

    def test_full_path(self, order):
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            assert order_service.update_order_status(order.id, status).status == status

    def test_pending_straight_to_shipped(self, order):
        assert order_service.update_order_status(order.id, "shipped").status == "SHIPPED"

    @pytest.mark.parametrize("target", ["DELIVERED", "PENDING"])
    def test_illegal_from_pending(self, order, target):
        with pytest.raises(InvalidState):
            order_service.update_order_status(order.id, target)

    def test_no_going_back(self, order):
        order_service.update_order_status(order.id, "SHIPPED")
        with pytest.raises(InvalidState):
            order_service.update_order_status(order.id, "PROCESSING")

    def test_delivered_is_terminal(self, order):
        order_service.update_order_status(order.id, "SHIPPED")
        order_service.update_order_status(order.id, "DELIVERED")
        with pytest.raises(InvalidState):
            order_service.update_order_status(order.id, "SHIPPED")

    def test_cancel_only_through_cancel_order(self, order):
        with pytest.raises(InvalidState):
            order_service.update_order_status(order.id, "CANCELLED")

    @pytest.mark.parametrize("status", ["LOST", "", None, 3])
    def test_unknown_status(self, order, status):
        with pytest.raises(ValidationError):
            order_service.update_order_status(order.id, status)

    def test_status_outside_the_table(self, order, db_session):
        db_session.query(Order).filter_by(id=order.id).update({Order.status: "ON_HOLD"})
        db_session.commit()
        with pytest.raises(InvalidState):
            order_service.update_order_status(order.id, "SHIPPED")

    def test_missing_order(self, db_session):
        with pytest.raises(NotFound):
            order_service.update_order_status(424242, "SHIPPED")
