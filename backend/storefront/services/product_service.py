# backend/storefront/services/product_service.py
"""
Catalog Service

Suppliers own products; only the owning supplier may update or delete one.
Listing is public, filtered by at most one of category / supplier /
base product / product id, or searched by name, and always paginated.
"""
from __future__ import annotations

from ..errors import ConflictError, NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import CartItem, Category, Discount, OrderItem, Product, Review
from ..pagination import paginate
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .concurrency import atomic, run_with_retry
from .profile_service import get_supplier_id

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "base_price", "category_id",
        "stock_quantity", "media_paths", "base_product_id",
    },
    required_on_create={"name", "base_price"},
)

PRODUCT_FILTERS = ("category_id", "supplier_id", "base_product_id", "product_id")

ORDER_COLUMNS = {
    "date": Product.created_at,
    "amount": Product.base_price,
}


def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFound("Product not found")
    return product


def _require_owned_product(user_id: int, product_id: int) -> Product:
    supplier_id = get_supplier_id(user_id)
    product = get_product(product_id)
    if product.supplier_id != supplier_id:
        raise Unauthorized("Product belongs to another supplier")
    return product


def _check_references(patch: dict, product_id: int | None = None) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and db.session.query(Category.id).filter_by(id=category_id).first() is None:
        raise NotFound("Category not found")

    base_product_id = patch.get("base_product_id")
    if base_product_id is not None:
        if product_id is not None and base_product_id == product_id:
            raise ValidationError("A product cannot be its own base product")
        if db.session.query(Product.id).filter_by(id=base_product_id).first() is None:
            raise NotFound("Base product not found")


def create_product(user_id: int, payload: dict) -> Product:
    supplier_id = get_supplier_id(user_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_references(patch)

    with atomic():
        product = Product(supplier_id=supplier_id, stock_quantity=0, media_paths=[])
        for k, v in patch.items():
            setattr(product, k, v)
        db.session.add(product)
    return product


def update_product(user_id: int, product_id: int, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _check_references(patch, product_id)

    def _op():
        with atomic():
            product = _require_owned_product(user_id, product_id)
            for k, v in patch.items():
                setattr(product, k, v)
        return product

    return run_with_retry(_op)


def delete_product(user_id: int, product_id: int) -> None:
    product = _require_owned_product(user_id, product_id)
    if db.session.query(OrderItem.id).filter_by(product_id=product.id).first() is not None:
        raise ConflictError("Product has been ordered and cannot be deleted")
    with atomic():
        # Dependent rows go first; SQLite does not enforce ON DELETE CASCADE by default
        db.session.query(Discount).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.query(Review).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.query(CartItem).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.query(Product).filter_by(base_product_id=product.id).update(
            {Product.base_product_id: None}, synchronize_session=False
        )
        db.session.expire(product)
        db.session.delete(product)


def list_products(
    *,
    filters: dict | None = None,
    name: str | None = None,
    order_by: str = "date",
    direction: str = "desc",
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """
    Paginated product listing.

    filters may name at most one of category_id, supplier_id,
    base_product_id, product_id. name does a case-insensitive substring
    match. order_by is "date" or "amount", direction "asc" or "desc".
    """
    active = {k: v for k, v in (filters or {}).items() if k in PRODUCT_FILTERS and v is not None}
    if len(active) > 1:
        raise ValidationError(
            "Only one of category_id, supplier_id, base_product_id or product_id can be used"
        )

    column = ORDER_COLUMNS.get((order_by or "date").lower())
    if column is None:
        raise ValidationError("order_by must be 'date' or 'amount'")
    direction = (direction or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationError("direction must be 'asc' or 'desc'")

    query = db.session.query(Product)
    for key, value in active.items():
        if key == "product_id":
            query = query.filter(Product.id == value)
        else:
            query = query.filter(getattr(Product, key) == value)

    if name:
        query = query.filter(Product.name.ilike(f"%{name.strip()}%"))

    ordering = column.asc() if direction == "asc" else column.desc()
    query = query.order_by(ordering, Product.id.asc() if direction == "asc" else Product.id.desc())

    products, page_info = paginate(query, page, page_size)
    return {
        "items": [p.to_dict() for p in products],
        "page_info": page_info,
    }


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def create_category(name: str, parent_category_id: int | None = None) -> Category:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    if parent_category_id is not None and db.session.query(Category.id).filter_by(id=parent_category_id).first() is None:
        raise NotFound("Parent category not found")
    with atomic():
        category = Category(name=name.strip(), parent_category_id=parent_category_id)
        db.session.add(category)
    return category
