from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import ITEM_TYPES


# Maximum menu price in whole currency units
MAX_PRICE = 9_999_999


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer parsing: rejects bools, floats, decimals and exponents."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
            return value.strip().lower() in ("true", "1")
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if isinstance(price, bool) or not isinstance(price, int):
            raise ValidationError("price must be an integer")
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,}")

    if "default_item_type" in patch and patch["default_item_type"] not in ITEM_TYPES:
        raise ValidationError(f"default_item_type must be one of: {', '.join(ITEM_TYPES)}")

    if "stock" in patch and patch["stock"] is not None:
        if isinstance(patch["stock"], bool) or not isinstance(patch["stock"], int):
            raise ValidationError("stock must be an integer")


def enforce_rules_stock_adjust(payload: dict) -> dict:
    """Validate a manual stock adjustment body: non-zero integer change, optional reason."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "change_amount" not in payload:
        raise ValidationError("Missing required fields: change_amount")

    change = coerce_int("change_amount", payload["change_amount"])
    if change == 0:
        raise ValidationError("change_amount must be non-zero")

    reason = payload.get("reason")
    if reason is not None:
        reason = str(reason).strip()
        if len(reason) > 255:
            raise ValidationError("reason exceeds max length 255")

    return {"change_amount": change, "reason": reason or None}


def enforce_rules_stock_set(payload: dict) -> dict:
    """Validate an absolute stock count body: integer new_stock, optional reason."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "new_stock" not in payload:
        raise ValidationError("Missing required fields: new_stock")

    new_stock = coerce_int("new_stock", payload["new_stock"])

    reason = payload.get("reason")
    if reason is not None:
        reason = str(reason).strip()
        if len(reason) > 255:
            raise ValidationError("reason exceeds max length 255")

    return {"new_stock": new_stock, "reason": reason or None}
