# backend/tablepos/routes/products.py
"""
Product catalog routes.

Stock is not writable here once a product exists: use /api/inventory for
adjustments so every change lands in the stock log.
"""
from flask import Blueprint, request, current_app

from ..models import Product
from ..services import catalog_service
from ..services.errors import LedgerError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "description", "price", "default_item_type", "stock", "is_unlimited"},
    required_on_create={"name", "price"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "description", "price", "default_item_type"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - category: str (optional)
    - search: str (optional) - case-insensitive name match
    """
    products = catalog_service.list_products(
        category=request.args.get("category"),
        search=request.args.get("search"),
    )
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/categories")
def list_categories():
    return {"categories": catalog_service.list_categories()}


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    return {"product": product.to_dict()}


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        product = catalog_service.create_product(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        product = catalog_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"product": product.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        catalog_service.delete_product(product_id=product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"ok": True}, 200
