# Overview: Per-customer shopping cart (created on first add).

from __future__ import annotations

from ..errors import NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import CartItem, Product, ShoppingCart
from ..validation import MAX_INT, require_positive_int
from .concurrency import atomic
from .profile_service import get_customer_id


def _require_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFound("Product not found")
    return product


def _quantity(value, *, allow_zero: bool) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("quantity must be an integer")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError("quantity must be > 0" if not allow_zero else "quantity must be >= 0")
    if value > MAX_INT:
        raise ValidationError("quantity is out of range")
    return value


def get_cart(user_id: int) -> ShoppingCart | None:
    customer_id = get_customer_id(user_id)
    return db.session.query(ShoppingCart).filter_by(customer_id=customer_id).first()


def list_cart_items(user_id: int) -> list[dict]:
    """Cart lines with the product each one points at."""
    cart = get_cart(user_id)
    if cart is None:
        return []
    return [
        {**item.to_dict(), "product": item.product.to_dict()}
        for item in cart.items
    ]


def add_to_cart(user_id: int, product_id: int, quantity) -> ShoppingCart:
    """Add a product; adding one that is already in the cart increases its quantity."""
    customer_id = get_customer_id(user_id)
    product_id = require_positive_int(product_id, "product_id")
    quantity = _quantity(quantity, allow_zero=False)
    _require_product(product_id)

    with atomic():
        cart = db.session.query(ShoppingCart).filter_by(customer_id=customer_id).first()
        if cart is None:
            cart = ShoppingCart(customer_id=customer_id)
            db.session.add(cart)
            db.session.flush()

        item = db.session.query(CartItem).filter_by(cart_id=cart.id, product_id=product_id).first()
        if item is None:
            db.session.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity))
        else:
            if item.quantity + quantity > MAX_INT:
                raise ValidationError("quantity is out of range")
            item.quantity += quantity
    return cart


def update_cart_item_quantity(user_id: int, cart_id: int, product_id: int, quantity) -> CartItem | None:
    """Set a line's quantity; 0 removes the line and returns None."""
    customer_id = get_customer_id(user_id)
    quantity = _quantity(quantity, allow_zero=True)

    cart = db.session.query(ShoppingCart).filter_by(id=cart_id).first()
    if cart is None:
        raise NotFound("Cart not found")
    if cart.customer_id != customer_id:
        raise Unauthorized("Cart belongs to another customer")

    item = db.session.query(CartItem).filter_by(cart_id=cart.id, product_id=product_id).first()
    if item is None:
        raise NotFound("Product not found in cart")

    with atomic():
        if quantity == 0:
            db.session.delete(item)
            item = None
        else:
            item.quantity = quantity
    return item


def remove_from_cart(user_id: int, product_id: int) -> None:
    cart = get_cart(user_id)
    if cart is None:
        raise NotFound("Cart not found")
    item = db.session.query(CartItem).filter_by(cart_id=cart.id, product_id=product_id).first()
    if item is None:
        raise NotFound("Product not found in cart")
    with atomic():
        db.session.delete(item)
