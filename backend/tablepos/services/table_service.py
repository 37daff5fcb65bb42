# Overview: Service-layer operations for dining tables; occupancy is owned by order_service.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import DiningTable, TABLE_AVAILABLE, TABLE_OCCUPIED
from .errors import TableNotFound

DEFAULT_SECTION = "General"


def list_tables(section: str | None = None) -> list[DiningTable]:
    q = db.session.query(DiningTable)
    if section:
        q = q.filter(DiningTable.section == section)
    return q.order_by(DiningTable.section.asc(), DiningTable.id.asc()).all()


def get_table(table_id: int) -> DiningTable:
    table = db.session.get(DiningTable, table_id)
    if table is None:
        raise TableNotFound("Table not found", details={"table_id": table_id})
    return table


def list_sections() -> list[dict]:
    """
    Tables grouped by section.

    Sections listed in TABLE_SECTIONS come first in that order; any other
    section follows alphabetically.
    """
    preferred = current_app.config.get("TABLE_SECTIONS", [])

    grouped: dict[str, list[DiningTable]] = {}
    for table in db.session.query(DiningTable).order_by(DiningTable.id.asc()).all():
        grouped.setdefault(table.section or DEFAULT_SECTION, []).append(table)

    ordered = [name for name in preferred if name in grouped]
    ordered += sorted(name for name in grouped if name not in preferred)

    return [
        {
            "section": name,
            "tables": grouped[name],
            "occupied": sum(1 for t in grouped[name] if t.status == TABLE_OCCUPIED),
        }
        for name in ordered
    ]


def create_table(*, name: str, section: str | None = None) -> DiningTable:
    table = DiningTable(
        name=name,
        section=section or DEFAULT_SECTION,
        status=TABLE_AVAILABLE,
        current_order_id=None,
    )
    db.session.add(table)
    db.session.commit()
    return table

