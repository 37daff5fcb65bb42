from __future__ import annotations

from ..extensions import db

TABLE_AVAILABLE = "available"
TABLE_OCCUPIED = "occupied"


class DiningTable(db.Model):
    """
    A physical table on the floor.

    current_order_id is set iff status is occupied, and points at the single
    active order for the table. Only order_service changes these two fields.
    It is a plain integer (no FK) because orders.table_id already references
    this table and the cycle would complicate create/drop ordering.
    """
    __tablename__ = "dining_tables"
    __table_args__ = (
        db.Index("ix_dining_tables_section_name", "section", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    section = db.Column(db.String(64), nullable=False, default="General")
    status = db.Column(db.String(16), nullable=False, default=TABLE_AVAILABLE, index=True)
    current_order_id = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<DiningTable id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "section": self.section,
            "status": self.status,
            "current_order_id": self.current_order_id,
            "version_id": self.version_id,
        }
