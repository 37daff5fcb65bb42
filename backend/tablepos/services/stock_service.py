# Overview: Service-layer operations for stock; manual adjustments and order consumption.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, StockLogEntry
from ..time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry
from .errors import InvalidQuantity, OutOfStock, ProductNotFound
"""
Stock Invariants (authoritative)

Two mutation paths touch Product.stock:

1. Manual adjustment (update_stock, set_stock)
   - Signed change, trusted: no lower bound unless
     ALLOW_NEGATIVE_STOCK_ADJUSTMENT is turned off.
   - Always appends exactly one StockLogEntry in the same transaction.
   - set_stock derives the signed change from the locked row; a zero
     change writes nothing.

2. Order consumption (consume_stock)
   - Runs inside the caller's order transaction; never commits.
   - Bounds-checked: rejects when stock < quantity.
   - Writes no StockLogEntry; the order item is the record of the sale.

Unlimited products skip stock bookkeeping entirely. Toggling the flag never
rewrites the counter.

Conservation, for a tracked product:
    initial - SUM(consumed via add_item_to_order) + SUM(change_amount) == stock
"""

DEFAULT_ADJUSTMENT_REASON = "Manual adjustment"


def _get_product_locked(product_id: int) -> Product:
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ProductNotFound("Product not found", details={"product_id": product_id})
    return product


def consume_stock(product: Product, quantity: int) -> None:
    """Decrement tracked stock for an order line. Caller owns the transaction."""
    if product.is_unlimited:
        return

    if product.stock < quantity:
        current_app.logger.warning(
            "Out of stock: product_id=%s requested=%s available=%s",
            product.id, quantity, product.stock,
        )
        raise OutOfStock(
            f"Insufficient stock for {product.name}",
            details={
                "product_id": product.id,
                "requested_quantity": quantity,
                "available": product.stock,
            },
        )

    product.stock = product.stock - quantity


def _require_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{field} must be an integer", details={field: value})
    return value


def _apply_adjustment(product: Product, change_amount: int, reason: str) -> StockLogEntry:
    """Move a locked product's stock by change_amount and append the log row."""
    new_stock = product.stock + change_amount
    if new_stock < 0 and not current_app.config.get("ALLOW_NEGATIVE_STOCK_ADJUSTMENT", True):
        raise InvalidQuantity(
            "adjustment would make stock negative",
            details={
                "product_id": product.id,
                "current_stock": product.stock,
                "change_amount": change_amount,
            },
        )

    product.stock = new_stock

    entry = StockLogEntry(
        product_id=product.id,
        product_name=product.name,
        change_amount=change_amount,
        new_stock=new_stock,
        reason=reason,
        created_at=utcnow(),
    )
    db.session.add(entry)
    return entry


def update_stock(product_id: int, change_amount: int, reason: str | None = None) -> StockLogEntry:
    """
    Apply a manual stock change and record it in the stock log.

    change_amount is signed (restock > 0, correction/waste < 0).
    """
    _require_int(change_amount, "change_amount")
    if change_amount == 0:
        raise InvalidQuantity("change_amount must be non-zero", details={"change_amount": change_amount})

    reason = (reason or "").strip() or DEFAULT_ADJUSTMENT_REASON

    def _op():
        begin_write()
        product = _get_product_locked(product_id)
        entry = _apply_adjustment(product, change_amount, reason)
        db.session.commit()

        current_app.logger.info(
            "Stock adjusted product_id=%s change=%+d new_stock=%s reason=%r",
            product_id, change_amount, entry.new_stock, reason,
        )
        return entry

    return run_with_retry(_op)


def set_stock(product_id: int, new_stock: int, reason: str | None = None) -> StockLogEntry | None:
    """
    Bring stock to an absolute count (e.g. after a shelf recount).

    The delta is taken against the locked row, so sales committed since the
    caller last looked are not overwritten. Returns None and writes nothing
    when stock already equals new_stock.
    """
    _require_int(new_stock, "new_stock")

    reason = (reason or "").strip() or DEFAULT_ADJUSTMENT_REASON

    def _op():
        begin_write()
        product = _get_product_locked(product_id)

        change_amount = new_stock - product.stock
        if change_amount == 0:
            db.session.rollback()
            return None

        entry = _apply_adjustment(product, change_amount, reason)
        db.session.commit()

        current_app.logger.info(
            "Stock set product_id=%s change=%+d new_stock=%s reason=%r",
            product_id, change_amount, new_stock, reason,
        )
        return entry

    return run_with_retry(_op)


def toggle_unlimited(product_id: int) -> Product:
    """Flip is_unlimited; the tracked stock counter is left as-is."""
    def _op():
        begin_write()
        product = _get_product_locked(product_id)
        product.is_unlimited = not product.is_unlimited
        db.session.commit()

        current_app.logger.info(
            "Stock tracking %s for product_id=%s",
            "disabled" if product.is_unlimited else "enabled", product_id,
        )
        return product

    return run_with_retry(_op)


def list_stock_log(product_id: int | None = None, limit: int = 200) -> list[StockLogEntry]:
    q = db.session.query(StockLogEntry)
    if product_id is not None:
        q = q.filter_by(product_id=product_id)
    return q.order_by(StockLogEntry.created_at.desc(), StockLogEntry.id.desc()).limit(limit).all()
