from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

ITEM_TYPE_PAID = "paid"
ITEM_TYPE_COMPLIMENTARY = "complimentary"
ITEM_TYPES = (ITEM_TYPE_PAID, ITEM_TYPE_COMPLIMENTARY)


class Product(db.Model):
    """
    Menu product.

    STOCK MODEL:
    - stock is a plain counter, only meaningful while is_unlimited is False.
    - Toggling is_unlimited never touches stock, so the tracked count survives
      a round trip through unlimited mode.
    - Order consumption decrements stock without a log entry; manual
      corrections go through the stock log (see stock_service).

    default_item_type is the line type used when an item is added without an
    explicit type (e.g. a product that is always served on the house).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, default="General")
    description = db.Column(db.Text, nullable=True)

    # Whole currency units
    price = db.Column(db.Integer, nullable=False, default=0)

    default_item_type = db.Column(db.String(16), nullable=False, default=ITEM_TYPE_PAID)

    stock = db.Column(db.Integer, nullable=False, default=0)
    is_unlimited = db.Column(db.Boolean, nullable=False, default=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock} unlimited={self.is_unlimited}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.price,
            "default_item_type": self.default_item_type,
            "stock": self.stock,
            "is_unlimited": self.is_unlimited,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
