from .catalog import Product, ITEM_TYPES, ITEM_TYPE_PAID, ITEM_TYPE_COMPLIMENTARY
from .tables import DiningTable, TABLE_AVAILABLE, TABLE_OCCUPIED
from .orders import (
    Order,
    OrderItem,
    ORDER_ACTIVE,
    ORDER_PAID,
    ORDER_NO_PAYMENT,
    CLOSED_ORDER_STATUSES,
)
from .stock import StockLogEntry

__all__ = [
    'Product', 'ITEM_TYPES', 'ITEM_TYPE_PAID', 'ITEM_TYPE_COMPLIMENTARY',
    'DiningTable', 'TABLE_AVAILABLE', 'TABLE_OCCUPIED',
    'Order', 'OrderItem', 'ORDER_ACTIVE', 'ORDER_PAID', 'ORDER_NO_PAYMENT', 'CLOSED_ORDER_STATUSES',
    'StockLogEntry',
]
