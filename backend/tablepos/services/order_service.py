# Overview: Service-layer operations for the order ledger; orders, item buckets, payment split/merge.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import (
    DiningTable,
    Order,
    OrderItem,
    Product,
    ITEM_TYPES,
    ITEM_TYPE_PAID,
    ITEM_TYPE_COMPLIMENTARY,
    ORDER_ACTIVE,
    CLOSED_ORDER_STATUSES,
    TABLE_AVAILABLE,
    TABLE_OCCUPIED,
)
from ..time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry
from .errors import (
    InvalidItemState,
    InvalidItemType,
    InvalidOrderStatus,
    InvalidQuantity,
    ItemNotFound,
    OrderClosed,
    OrderNotFound,
    ProductNotFound,
    TableMismatch,
    TableNotFound,
    TableOccupied,
    require_positive_quantity,
)
from .stock_service import consume_stock
"""
Order Ledger Invariants (authoritative)

Buckets:
- An item row is identified by its bucket key
  (order_id, product_id, price, type, is_paid).
- At most one row exists per key. Every write merges into an existing
  bucket before it considers inserting a row.
- price is the unit price snapshot at add time (0 for complimentary), so a
  catalog price change opens a new bucket instead of repricing old units.

Totals:
- Order.total_amount == SUM(price * quantity) over the order's rows.
- It is recomputed from the rows after every item mutation. Paying or
  un-paying only moves units between buckets, so the total never changes
  there, but it is recomputed anyway.

Tables:
- DiningTable.current_order_id is set iff the table is occupied, and it then
  names the table's single active order.

Transactions:
- Each public command is one run_with_retry unit. Rows are locked in a fixed
  order: table, order, item rows, product.
- Any LedgerError raised mid-way rolls back everything the command did
  (stock debit, row split, total), so callers only ever see committed state.
- Orders that are not active reject every item mutation with OrderClosed.
"""


# ---------------------------------------------------------------------------
# Locked loaders
# ---------------------------------------------------------------------------

def _get_table_locked(table_id: int) -> DiningTable:
    table = lock_for_update(db.session.query(DiningTable).filter_by(id=table_id)).first()
    if table is None:
        raise TableNotFound("Table not found", details={"table_id": table_id})
    return table


def _get_order_locked(order_id: int) -> Order:
    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if order is None:
        raise OrderNotFound("Order not found", details={"order_id": order_id})
    return order


def _require_active(order: Order) -> None:
    if order.status != ORDER_ACTIVE:
        raise OrderClosed(
            f"Order {order.id} is {order.status}; items can no longer change",
            details={"order_id": order.id, "status": order.status},
        )


def _get_item_locked(item_id: int) -> tuple[Order, OrderItem]:
    """Lock the item's order first, then the item itself."""
    order_id = db.session.query(OrderItem.order_id).filter_by(id=item_id).scalar()
    if order_id is None:
        raise ItemNotFound("Order item not found", details={"item_id": item_id})

    order = _get_order_locked(order_id)
    item = lock_for_update(db.session.query(OrderItem).filter_by(id=item_id)).populate_existing().first()
    if item is None:
        raise ItemNotFound("Order item not found", details={"item_id": item_id})
    return order, item


def _find_bucket(
    *,
    order_id: int,
    product_id: int,
    price: int,
    item_type: str,
    is_paid: bool,
) -> OrderItem | None:
    q = db.session.query(OrderItem).filter_by(
        order_id=order_id,
        product_id=product_id,
        price=price,
        type=item_type,
        is_paid=is_paid,
    )
    return lock_for_update(q).first()


def _recompute_total(order: Order) -> int:
    db.session.flush()
    total = db.session.query(
        func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0)
    ).filter(OrderItem.order_id == order.id).scalar()
    order.total_amount = int(total or 0)
    return order.total_amount


def _resolve_item_type(product: Product, item_type: str | None) -> str:
    resolved = item_type or product.default_item_type or ITEM_TYPE_PAID
    if resolved not in ITEM_TYPES:
        raise InvalidItemType(
            f"type must be one of: {', '.join(ITEM_TYPES)}",
            details={"type": item_type},
        )
    return resolved


def _move_units_to_bucket(source: OrderItem, quantity: int, *, is_paid: bool) -> OrderItem:
    """
    Move `quantity` units of `source` into the sibling bucket with the given
    paid flag. Moving every unit deletes or flips the source row; moving part
    of it leaves the remainder behind.
    """
    sibling = _find_bucket(
        order_id=source.order_id,
        product_id=source.product_id,
        price=source.price,
        item_type=source.type,
        is_paid=is_paid,
    )

    if quantity == source.quantity:
        if sibling is not None:
            sibling.quantity = sibling.quantity + quantity
            db.session.delete(source)
            return sibling
        source.is_paid = is_paid
        return source

    source.quantity = source.quantity - quantity
    if sibling is not None:
        sibling.quantity = sibling.quantity + quantity
        return sibling

    target = OrderItem(
        order_id=source.order_id,
        product_id=source.product_id,
        product_name=source.product_name,
        quantity=quantity,
        price=source.price,
        type=source.type,
        is_paid=is_paid,
    )
    db.session.add(target)
    return target


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _create_order_locked(table: DiningTable) -> Order:
    if table.status == TABLE_OCCUPIED or table.current_order_id is not None:
        raise TableOccupied(
            f"Table {table.name} already has an active order",
            details={"table_id": table.id, "current_order_id": table.current_order_id},
        )

    order = Order(
        table_id=table.id,
        status=ORDER_ACTIVE,
        total_amount=0,
        created_at=utcnow(),
    )
    db.session.add(order)
    db.session.flush()

    table.status = TABLE_OCCUPIED
    table.current_order_id = order.id
    return order


def create_order(table_id: int) -> Order:
    """Open a new active order on a free table and mark the table occupied."""
    def _op():
        begin_write()
        table = _get_table_locked(table_id)
        order = _create_order_locked(table)
        db.session.commit()

        current_app.logger.info("Order %s opened on table %s", order.id, table_id)
        return order

    return run_with_retry(_op)


def _add_item_locked(order: Order, product_id: int, item_type: str | None, quantity: int) -> OrderItem:
    _require_active(order)

    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ProductNotFound("Product not found", details={"product_id": product_id})

    resolved_type = _resolve_item_type(product, item_type)

    consume_stock(product, quantity)

    price = 0 if resolved_type == ITEM_TYPE_COMPLIMENTARY else product.price

    item = _find_bucket(
        order_id=order.id,
        product_id=product.id,
        price=price,
        item_type=resolved_type,
        is_paid=False,
    )
    if item is not None:
        item.quantity = item.quantity + quantity
    else:
        item = OrderItem(
            order_id=order.id,
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            price=price,
            type=resolved_type,
            is_paid=False,
        )
        db.session.add(item)

    _recompute_total(order)
    return item


def add_item_to_order(
    order_id: int,
    product_id: int,
    item_type: str | None = None,
    quantity: int = 1,
) -> OrderItem:
    """
    Add `quantity` units of a product to an active order.

    Stock debit, bucket upsert and total recompute commit together or not at
    all. Returns the unpaid bucket that received the units.
    """
    require_positive_quantity(quantity)

    def _op():
        begin_write()
        order = _get_order_locked(order_id)
        item = _add_item_locked(order, product_id, item_type, quantity)
        db.session.commit()

        current_app.logger.info(
            "Order %s: +%d x product %s (%s) -> item %s qty=%d total=%d",
            order.id, quantity, product_id, item.type, item.id, item.quantity, order.total_amount,
        )
        return item

    return run_with_retry(_op)


def start_order_with_item(
    table_id: int,
    product_id: int,
    item_type: str | None = None,
    quantity: int = 1,
) -> OrderItem:
    """
    Add an item for a table, opening the order first when the table is free.

    Opening and adding share one transaction, so a rejected add (e.g. out of
    stock) leaves the table free.
    """
    require_positive_quantity(quantity)

    def _op():
        begin_write()
        table = _get_table_locked(table_id)

        order = None
        if table.current_order_id is not None:
            order = lock_for_update(
                db.session.query(Order).filter_by(id=table.current_order_id)
            ).first()
        if order is None or order.status != ORDER_ACTIVE:
            if table.current_order_id is not None:
                # Stale pointer to a missing or closed order; release it before reopening
                table.status = TABLE_AVAILABLE
                table.current_order_id = None
            order = _create_order_locked(table)

        item = _add_item_locked(order, product_id, item_type, quantity)
        db.session.commit()

        current_app.logger.info(
            "Table %s order %s: +%d x product %s -> item %s",
            table_id, order.id, quantity, product_id, item.id,
        )
        return item

    return run_with_retry(_op)


def mark_item_paid(item_id: int, quantity: int | None = None) -> OrderItem:
    """
    Mark `quantity` units of an unpaid item as paid (all units when None).

    Full payment merges the row into the paid bucket (or flips it in place);
    partial payment splits the row and leaves the remainder unpaid. Returns
    the paid bucket.
    """
    if quantity is not None:
        require_positive_quantity(quantity)

    def _op():
        begin_write()
        order, item = _get_item_locked(item_id)
        _require_active(order)

        if item.type == ITEM_TYPE_COMPLIMENTARY:
            raise InvalidItemState(
                "Complimentary items are not paid for",
                details={"item_id": item_id},
            )
        if item.is_paid:
            raise InvalidItemState("Item is already paid", details={"item_id": item_id})

        to_pay = item.quantity if quantity is None else quantity
        if to_pay > item.quantity:
            raise InvalidQuantity(
                "Cannot pay for more units than the item holds",
                details={"item_id": item_id, "quantity": to_pay, "available": item.quantity},
            )

        paid_item = _move_units_to_bucket(item, to_pay, is_paid=True)
        _recompute_total(order)
        db.session.commit()

        current_app.logger.info(
            "Order %s: item %s paid %d unit(s) -> paid item %s qty=%d",
            order.id, item_id, to_pay, paid_item.id, paid_item.quantity,
        )
        return paid_item

    return run_with_retry(_op)


def mark_item_unpaid(item_id: int) -> OrderItem:
    """Return a paid item to the unpaid bucket. Returns the unpaid bucket."""
    def _op():
        begin_write()
        order, item = _get_item_locked(item_id)
        _require_active(order)

        if not item.is_paid:
            raise InvalidItemState("Item is not paid", details={"item_id": item_id})

        unpaid_item = _move_units_to_bucket(item, item.quantity, is_paid=False)
        _recompute_total(order)
        db.session.commit()

        current_app.logger.info(
            "Order %s: item %s marked unpaid -> item %s qty=%d",
            order.id, item_id, unpaid_item.id, unpaid_item.quantity,
        )
        return unpaid_item

    return run_with_retry(_op)


def _require_closed_status(status: str) -> None:
    if status not in CLOSED_ORDER_STATUSES:
        raise InvalidOrderStatus(
            f"status must be one of: {', '.join(CLOSED_ORDER_STATUSES)}",
            details={"status": status},
        )


def close_order(order_id: int, table_id: int | None = None, status: str = "paid") -> Order:
    """
    Close an active order as paid or no_payment and free its table.

    Terminal: the order rejects further item changes afterwards.
    """
    _require_closed_status(status)

    def _op():
        begin_write()
        order = _get_order_locked(order_id)
        if table_id is not None and table_id != order.table_id:
            raise TableMismatch(
                "Order does not belong to this table",
                details={"order_id": order_id, "table_id": table_id, "order_table_id": order.table_id},
            )

        table = _get_table_locked(order.table_id)
        _require_active(order)

        _recompute_total(order)
        order.status = status
        order.closed_at = utcnow()

        if table.current_order_id == order.id:
            table.status = TABLE_AVAILABLE
            table.current_order_id = None
        else:
            current_app.logger.warning(
                "Order %s closed but table %s points at order %s",
                order.id, table.id, table.current_order_id,
            )

        db.session.commit()

        current_app.logger.info(
            "Order %s closed as %s total=%d (table %s freed)",
            order.id, status, order.total_amount, table.id,
        )
        return order

    return run_with_retry(_op)


def update_order_status(order_id: int, status: str) -> Order:
    """
    Change the outcome of a closed order, e.g. settle a no_payment bill later.

    Active orders must go through close_order.
    """
    _require_closed_status(status)

    def _op():
        begin_write()
        order = _get_order_locked(order_id)
        if order.status == ORDER_ACTIVE:
            raise InvalidOrderStatus(
                "Active orders must be closed with close_order",
                details={"order_id": order_id},
            )
        previous = order.status
        order.status = status
        db.session.commit()

        current_app.logger.info("Order %s status %s -> %s", order.id, previous, status)
        return order

    return run_with_retry(_op)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound("Order not found", details={"order_id": order_id})
    return order


def get_order_items(order_id: int) -> list[OrderItem]:
    return (
        db.session.query(OrderItem)
        .filter_by(order_id=order_id)
        .order_by(OrderItem.id.asc())
        .all()
    )


def get_active_order_for_table(table_id: int) -> Order | None:
    table = db.session.get(DiningTable, table_id)
    if table is None:
        raise TableNotFound("Table not found", details={"table_id": table_id})
    if table.current_order_id is None:
        return None
    order = db.session.get(Order, table.current_order_id)
    if order is None or order.status != ORDER_ACTIVE:
        return None
    return order


def list_orders(status: str | None = None, table_id: int | None = None) -> list[Order]:
    q = db.session.query(Order)
    if status:
        q = q.filter(Order.status == status)
    if table_id is not None:
        q = q.filter(Order.table_id == table_id)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def order_balance(order_id: int) -> dict:
    """Total, amount already paid item-by-item, and what is left to collect."""
    order = get_order(order_id)
    paid = db.session.query(
        func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0)
    ).filter(OrderItem.order_id == order_id, OrderItem.is_paid.is_(True)).scalar()
    paid = int(paid or 0)
    return {
        "order_id": order.id,
        "total_amount": order.total_amount,
        "paid_amount": paid,
        "remaining_amount": order.total_amount - paid,
    }
