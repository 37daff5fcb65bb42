# backend/tablepos/routes/tables.py
"""
Dining table routes.

Occupancy (status, current_order_id) is read-only here; it changes only
when orders are opened or closed.
"""
from flask import Blueprint, request

from ..models import DiningTable
from ..services import table_service, order_service
from ..services.errors import LedgerError
from ..validation import ModelValidationPolicy, validate_payload, ValidationError

TABLE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "section"},
    required_on_create={"name"},
)

tables_bp = Blueprint("tables", __name__, url_prefix="/api/tables")


@tables_bp.get("")
def list_tables():
    tables = table_service.list_tables(section=request.args.get("section"))
    return {"items": [t.to_dict() for t in tables], "count": len(tables)}


@tables_bp.get("/sections")
def list_sections():
    sections = table_service.list_sections()
    return {
        "sections": [
            {
                "section": s["section"],
                "occupied": s["occupied"],
                "tables": [t.to_dict() for t in s["tables"]],
            }
            for s in sections
        ]
    }


@tables_bp.post("")
def create_table_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=DiningTable, payload=payload, policy=TABLE_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    table = table_service.create_table(name=patch["name"], section=patch.get("section"))
    return {"table": table.to_dict()}, 201


@tables_bp.get("/<int:table_id>")
def get_table(table_id: int):
    try:
        table = table_service.get_table(table_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    return {"table": table.to_dict()}


@tables_bp.get("/<int:table_id>/active-order")
def get_active_order(table_id: int):
    """Active order for the table with its items, or order=null when free."""
    try:
        order = order_service.get_active_order_for_table(table_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    if order is None:
        return {"order": None, "items": []}

    items = order_service.get_order_items(order.id)
    return {
        "order": order.to_dict(),
        "items": [i.to_dict() for i in items],
        "balance": order_service.order_balance(order.id),
    }
