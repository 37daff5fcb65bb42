from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class StockLogEntry(db.Model):
    """
    Append-only record of a manual stock change.

    Rows are never updated or deleted. product_name is copied so the log
    stays readable after a product is renamed.
    """
    __tablename__ = "stock_log"
    __table_args__ = (
        db.Index("ix_stock_log_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    change_amount = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "change_amount": self.change_amount,
            "new_stock": self.new_stock,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
