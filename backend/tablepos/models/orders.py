from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

ORDER_ACTIVE = "active"
ORDER_PAID = "paid"
ORDER_NO_PAYMENT = "no_payment"
CLOSED_ORDER_STATUSES = (ORDER_PAID, ORDER_NO_PAYMENT)


class Order(db.Model):
    """
    A table's bill.

    total_amount is derived: SUM(price * quantity) over the order's items.
    It is rewritten by order_service after every item mutation and is never
    set from input.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("dining_tables.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_ACTIVE, index=True)
    total_amount = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    table = db.relationship("DiningTable", foreign_keys=[table_id])
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_active(self) -> bool:
        return self.status == ORDER_ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "status": self.status,
            "total_amount": self.total_amount,
            "created_at": to_utc_z(self.created_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "version_id": self.version_id,
        }


class OrderItem(db.Model):
    """
    One bucket of an order.

    BUCKET KEY: (order_id, product_id, price, type, is_paid). The ledger
    merges into an existing bucket instead of inserting a second row, and the
    unique constraint below backs that up at the database level.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.UniqueConstraint(
            "order_id", "product_id", "price", "type", "is_paid",
            name="uq_order_items_bucket",
        ),
        db.Index("ix_order_items_order_product_paid", "order_id", "product_id", "is_paid"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot at add time
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    order = db.relationship("Order", backref=db.backref("items", lazy=True, order_by="OrderItem.id"))
    product = db.relationship("Product")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def __repr__(self) -> str:
        return (
            f"<OrderItem id={self.id} order_id={self.order_id} product_id={self.product_id} "
            f"qty={self.quantity} price={self.price} type={self.type} paid={self.is_paid}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
            "type": self.type,
            "is_paid": self.is_paid,
            "line_total": self.line_total,
            "version_id": self.version_id,
        }
