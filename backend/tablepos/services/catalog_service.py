# Overview: Service-layer operations for the product catalog; plain keyed CRUD.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, OrderItem, StockLogEntry
from ..validation import ValidationError, enforce_rules_product
from .errors import ProductNotFound, ProductInUse

PRODUCT_UPDATE_FIELDS = {
    "name",
    "category",
    "description",
    "price",
    "default_item_type",
}

# Opening stock may be set once; afterwards only stock_service moves it
PRODUCT_STOCK_FIELDS = {"stock", "is_unlimited"}
PRODUCT_CREATE_FIELDS = PRODUCT_UPDATE_FIELDS | PRODUCT_STOCK_FIELDS


def apply_product_patch(p: Product, patch: dict, fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in fields:
            continue
        setattr(p, k, v)


def list_products(category: str | None = None, search: str | None = None) -> list[Product]:
    """All products ordered by category then name, optionally filtered."""
    q = db.session.query(Product)
    if category:
        q = q.filter(Product.category == category)
    if search:
        q = q.filter(func.lower(Product.name).contains(search.strip().lower()))
    return q.order_by(Product.category.asc(), Product.name.asc(), Product.id.asc()).all()


def list_categories() -> list[str]:
    rows = db.session.query(Product.category).distinct().order_by(Product.category.asc()).all()
    return [r[0] for r in rows]


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFound("Product not found", details={"product_id": product_id})
    return product


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    enforce_rules_product(patch)

    product = Product()
    apply_product_patch(product, patch, PRODUCT_CREATE_FIELDS)
    db.session.add(product)
    db.session.commit()

    current_app.logger.info("Product created id=%s name=%r", product.id, product.name)
    return product


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update catalog fields.

    Price changes only affect items added afterwards; existing order items
    keep their snapshot price and therefore stay in their own bucket.
    """
    stock_fields = sorted(PRODUCT_STOCK_FIELDS.intersection(patch))
    if stock_fields:
        raise ValidationError(
            f"{', '.join(stock_fields)} cannot be changed here; use the stock ledger"
        )
    enforce_rules_product(patch)

    product = get_product(product_id)
    apply_product_patch(product, patch, PRODUCT_UPDATE_FIELDS)
    db.session.commit()
    return product


def delete_product(*, product_id: int) -> None:
    product = get_product(product_id)

    # Order items and the stock log are history; both keep the product row alive
    in_use = (
        db.session.query(OrderItem.id).filter_by(product_id=product_id).first()
        or db.session.query(StockLogEntry.id).filter_by(product_id=product_id).first()
    )
    if in_use is not None:
        raise ProductInUse(
            "Product has order or stock history and cannot be deleted",
            details={"product_id": product_id},
        )

    db.session.delete(product)
    db.session.commit()
    current_app.logger.info("Product deleted id=%s", product_id)
