# backend/tablepos/routes/orders.py
"""
Order ledger routes.

Every write maps to one order_service command (one transaction). Ledger
errors come back as {"error", "code", "details"} with the error's HTTP
status; nothing is applied when an error is returned.
"""
from flask import Blueprint, request, current_app

from ..services import order_service
from ..services.errors import LedgerError
from ..validation import ValidationError, coerce_int


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _optional_int(payload: dict, key: str, default=None):
    if key not in payload or payload[key] is None:
        return default
    return coerce_int(key, payload[key])


def _required_int(payload: dict, key: str) -> int:
    if key not in payload or payload[key] is None:
        raise ValidationError(f"{key} required")
    return coerce_int(key, payload[key])


def _order_payload(order) -> dict:
    items = order_service.get_order_items(order.id)
    return {
        "order": order.to_dict(),
        "items": [i.to_dict() for i in items],
        "balance": order_service.order_balance(order.id),
    }


@orders_bp.get("")
def list_orders_route():
    """
    Query params:
    - status: active | paid | no_payment (optional)
    - table_id: int (optional)
    """
    orders = order_service.list_orders(
        status=request.args.get("status"),
        table_id=request.args.get("table_id", type=int),
    )
    return {"items": [o.to_dict() for o in orders], "count": len(orders)}


@orders_bp.post("")
def create_order_route():
    """Open an order on a free table."""
    payload = request.get_json(silent=True) or {}
    try:
        table_id = _required_int(payload, "table_id")
        order = order_service.create_order(table_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"error": "Internal server error"}, 500

    return {"order": order.to_dict()}, 201


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    return _order_payload(order), 200


@orders_bp.post("/<int:order_id>/items")
def add_item_route(order_id: int):
    """
    Add units of a product to an active order.

    Body: {"product_id": int, "type": "paid"|"complimentary" (optional),
           "quantity": int (optional, default 1)}
    """
    payload = request.get_json(silent=True) or {}
    try:
        product_id = _required_int(payload, "product_id")
        quantity = _optional_int(payload, "quantity", 1)
        item = order_service.add_item_to_order(
            order_id,
            product_id,
            item_type=payload.get("type"),
            quantity=quantity,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add order item")
        return {"error": "Internal server error"}, 500

    order = order_service.get_order(order_id)
    return {"item": item.to_dict(), "order": order.to_dict()}, 201


@orders_bp.post("/start")
def start_order_route():
    """
    Add an item for a table, opening its order when the table is free.

    Body: {"table_id": int, "product_id": int, "type": str (optional),
           "quantity": int (optional)}
    """
    payload = request.get_json(silent=True) or {}
    try:
        table_id = _required_int(payload, "table_id")
        product_id = _required_int(payload, "product_id")
        quantity = _optional_int(payload, "quantity", 1)
        item = order_service.start_order_with_item(
            table_id,
            product_id,
            item_type=payload.get("type"),
            quantity=quantity,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to start order")
        return {"error": "Internal server error"}, 500

    order = order_service.get_order(item.order_id)
    return {"item": item.to_dict(), "order": order.to_dict()}, 201


@orders_bp.post("/items/<int:item_id>/pay")
def mark_item_paid_route(item_id: int):
    """
    Mark units of an item as paid.

    Body: {"quantity": int (optional; whole row when omitted)}
    """
    payload = request.get_json(silent=True) or {}
    try:
        quantity = _optional_int(payload, "quantity")
        paid_item = order_service.mark_item_paid(item_id, quantity)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to mark item paid")
        return {"error": "Internal server error"}, 500

    order = order_service.get_order(paid_item.order_id)
    return {"item": paid_item.to_dict(), **_order_payload(order)}, 200


@orders_bp.post("/items/<int:item_id>/unpay")
def mark_item_unpaid_route(item_id: int):
    try:
        unpaid_item = order_service.mark_item_unpaid(item_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to mark item unpaid")
        return {"error": "Internal server error"}, 500

    order = order_service.get_order(unpaid_item.order_id)
    return {"item": unpaid_item.to_dict(), **_order_payload(order)}, 200


@orders_bp.post("/<int:order_id>/close")
def close_order_route(order_id: int):
    """
    Close an order and free its table.

    Body: {"status": "paid"|"no_payment" (default "paid"), "table_id": int (optional)}
    """
    payload = request.get_json(silent=True) or {}
    try:
        table_id = _optional_int(payload, "table_id")
        order = order_service.close_order(
            order_id,
            table_id=table_id,
            status=payload.get("status", "paid"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to close order")
        return {"error": "Internal server error"}, 500

    return {"order": order.to_dict()}, 200


@orders_bp.patch("/<int:order_id>/status")
def update_order_status_route(order_id: int):
    """Change a closed order's outcome (e.g. settle a no_payment bill)."""
    payload = request.get_json(silent=True) or {}
    status = payload.get("status")
    if not status:
        return {"error": "status required"}, 400

    try:
        order = order_service.update_order_status(order_id, status)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"order": order.to_dict()}, 200
