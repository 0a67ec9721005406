from __future__ import annotations

from ..extensions import db
from ..money import format_money
from ..time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    parent_category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent_category_id": self.parent_category_id,
        }


class Product(db.Model):
    """
    Product offered by a supplier.

    STOCK: stock_quantity never goes negative. Every decrement happens in
    the order workflow under a row lock; version_id turns a lost update
    into a StaleDataError instead of silently overwriting stock.

    VARIANTS: base_product_id points at the product this one is a variant of.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_supplier_created", "supplier_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    base_price = db.Column(db.Numeric(10, 2), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    base_product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    media_paths = db.Column(db.JSON, nullable=False, default=list)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))
    base_product = db.relationship("Product", remote_side=[id], backref=db.backref("variants", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} supplier_id={self.supplier_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "base_price": format_money(self.base_price),
            "category_id": self.category_id,
            "supplier_id": self.supplier_id,
            "base_product_id": self.base_product_id,
            "stock_quantity": self.stock_quantity,
            "media_paths": list(self.media_paths or []),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }


DISCOUNT_TYPES = ("PERCENTAGE", "FIXED_AMOUNT")


class Discount(db.Model):
    """
    Discount code attached to a product (and optionally a category).

    times_used is incremented exactly once per order that applies the code,
    in the same transaction as the order insert.
    """
    __tablename__ = "discounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.String(255), nullable=True)

    discount_value = db.Column(db.Numeric(10, 2), nullable=False)
    discount_type = db.Column(db.String(16), nullable=False)  # PERCENTAGE, FIXED_AMOUNT

    valid_from = db.Column(db.DateTime(timezone=True), nullable=True)
    valid_until = db.Column(db.DateTime(timezone=True), nullable=True)

    max_uses = db.Column(db.Integer, nullable=True)
    times_used = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    min_quantity = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("discounts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_value": format_money(self.discount_value),
            "discount_type": self.discount_type,
            "valid_from": to_utc_z(self.valid_from) if self.valid_from else None,
            "valid_until": to_utc_z(self.valid_until) if self.valid_until else None,
            "max_uses": self.max_uses,
            "times_used": self.times_used,
            "product_id": self.product_id,
            "category_id": self.category_id,
            "min_quantity": self.min_quantity,
        }


class Review(db.Model):
    __tablename__ = "reviews"
    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    rating = db.Column(db.Integer, nullable=False)
    review_text = db.Column(db.Text, nullable=True)
    review_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    media_paths = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "rating": self.rating,
            "review_text": self.review_text,
            "review_date": to_utc_z(self.review_date),
            "media_paths": list(self.media_paths or []),
        }
