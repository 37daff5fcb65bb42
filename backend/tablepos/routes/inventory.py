# backend/tablepos/routes/inventory.py
"""
Stock routes.

Manual adjustments are trusted corrections: they may take stock below zero
unless ALLOW_NEGATIVE_STOCK_ADJUSTMENT is off. Order consumption never goes
through here.
"""
from flask import Blueprint, request, current_app

from ..services import stock_service, catalog_service
from ..services.errors import LedgerError
from ..validation import ValidationError, enforce_rules_stock_adjust, enforce_rules_stock_set


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/<int:product_id>/adjust")
def adjust_stock_route(product_id: int):
    """
    Body: {"change_amount": int (non-zero, signed), "reason": str (optional)}
    """
    payload = request.get_json(silent=True) or {}

    try:
        body = enforce_rules_stock_adjust(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        entry = stock_service.update_stock(product_id, body["change_amount"], body["reason"])
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return {"error": "Internal server error"}, 500

    product = catalog_service.get_product(product_id)
    return {"entry": entry.to_dict(), "product": product.to_dict()}, 201


@inventory_bp.post("/<int:product_id>/set")
def set_stock_route(product_id: int):
    """
    Set stock to an absolute count; the change is logged like an adjustment.

    Body: {"new_stock": int, "reason": str (optional)}
    Returns 201 with the log entry, or 200 with entry=null when unchanged.
    """
    payload = request.get_json(silent=True) or {}

    try:
        body = enforce_rules_stock_set(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        entry = stock_service.set_stock(product_id, body["new_stock"], body["reason"])
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to set stock")
        return {"error": "Internal server error"}, 500

    product = catalog_service.get_product(product_id)
    if entry is None:
        return {"entry": None, "product": product.to_dict()}, 200
    return {"entry": entry.to_dict(), "product": product.to_dict()}, 201


@inventory_bp.post("/<int:product_id>/toggle-unlimited")
def toggle_unlimited_route(product_id: int):
    try:
        product = stock_service.toggle_unlimited(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"product": product.to_dict()}, 200


@inventory_bp.get("/log")
def stock_log_route():
    """
    Query params:
    - product_id: int (optional)
    - limit: int (optional, default 200, max 1000)
    """
    limit = min(request.args.get("limit", 200, type=int), 1000)
    entries = stock_service.list_stock_log(
        product_id=request.args.get("product_id", type=int),
        limit=limit,
    )
    return {"items": [e.to_dict() for e in entries], "count": len(entries)}
