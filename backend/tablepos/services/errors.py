# Overview: Error taxonomy for ledger operations; every error is recoverable at the call boundary.

from __future__ import annotations


class LedgerError(Exception):
    """Base class for rejected ledger operations."""
    code = "LEDGER_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class ProductNotFound(LedgerError):
    code = "PRODUCT_NOT_FOUND"
    http_status = 404


class OutOfStock(LedgerError):
    """Tracked stock is lower than the requested quantity."""
    code = "OUT_OF_STOCK"
    http_status = 409


class OrderNotFound(LedgerError):
    code = "ORDER_NOT_FOUND"
    http_status = 404


class OrderClosed(LedgerError):
    """Mutation attempted on an order that is no longer active."""
    code = "ORDER_CLOSED"
    http_status = 409


class TableNotFound(LedgerError):
    code = "TABLE_NOT_FOUND"
    http_status = 404


class TableOccupied(LedgerError):
    code = "TABLE_OCCUPIED"
    http_status = 409


class TableMismatch(LedgerError):
    code = "TABLE_MISMATCH"


class ItemNotFound(LedgerError):
    code = "ITEM_NOT_FOUND"
    http_status = 404


class InvalidQuantity(LedgerError):
    code = "INVALID_QUANTITY"


class InvalidItemType(LedgerError):
    code = "INVALID_ITEM_TYPE"


class InvalidItemState(LedgerError):
    """E.g. paying a complimentary item or un-paying an unpaid one."""
    code = "INVALID_ITEM_STATE"
    http_status = 409


class InvalidOrderStatus(LedgerError):
    code = "INVALID_ORDER_STATUS"


class ProductInUse(LedgerError):
    code = "PRODUCT_IN_USE"
    http_status = 409


def require_positive_quantity(quantity, *, field: str = "quantity") -> int:
    """Accept plain ints >= 1 (bools and floats are rejected)."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"{field} must be an integer", details={field: quantity})
    if quantity < 1:
        raise InvalidQuantity(f"{field} must be >= 1", details={field: quantity})
    return quantity
