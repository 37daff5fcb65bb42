# Overview: Read-only reporting over committed orders and items; typed read models.

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
import calendar

from sqlalchemy import case, func

from ..extensions import db
from ..models import (
    DiningTable,
    Order,
    OrderItem,
    ITEM_TYPE_PAID,
    ITEM_TYPE_COMPLIMENTARY,
    ORDER_PAID,
    ORDER_NO_PAYMENT,
    CLOSED_ORDER_STATUSES,
)
from ..time_utils import to_utc_z, utcnow

PERIODS = ("all", "today", "week", "month", "custom")


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


@dataclass(frozen=True)
class ProductSalesStat:
    product_id: int
    product_name: str
    paid: int
    complimentary: int
    revenue: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: int
    total_orders: int
    average_order_value: float
    unpaid_orders: int
    unpaid_amount: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class OrderHistoryEntry:
    order_id: int
    table_id: int
    table_name: str
    status: str
    created_at: datetime
    closed_at: datetime | None
    total_amount: int
    paid_items_amount: int
    remaining_amount: int
    is_partially_paid: bool

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = to_utc_z(self.created_at)
        data["closed_at"] = to_utc_z(self.closed_at)
        return data


def _parse_day(value: str | None) -> datetime | None:
    """Report bounds: a date or an ISO datetime (offsets converted to UTC)."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _one_month_before(dt: datetime) -> datetime:
    year, month = (dt.year - 1, 12) if dt.month == 1 else (dt.year, dt.month - 1)
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def resolve_period(
    period: str = "all",
    start: str | None = None,
    end: str | None = None,
    *,
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """
    Translate a named period into a [start, end) window on Order.created_at.

    - all: no bounds
    - today: since midnight
    - week: last 7 days, from midnight
    - month: last calendar month, from midnight
    - custom: start day through end day inclusive; start day only when end
      is omitted
    Days are UTC days.
    """
    if period not in PERIODS:
        raise ReportError(f"period must be one of: {', '.join(PERIODS)}")

    now = now or utcnow()
    today = _start_of_day(now)

    if period == "all":
        return None, None
    if period == "today":
        return today, None
    if period == "week":
        return today - timedelta(days=7), None
    if period == "month":
        return _one_month_before(today), None

    try:
        start_dt = _parse_day(start)
        end_dt = _parse_day(end)
    except ValueError:
        raise ReportError("start and end must be ISO-8601 dates")
    if start_dt is None:
        raise ReportError("custom period requires start")

    start_day = _start_of_day(start_dt)
    last_day = _start_of_day(end_dt) if end_dt is not None else start_day
    if last_day < start_day:
        raise ReportError("end must not be before start")
    return start_day, last_day + timedelta(days=1)


def _filter_created(q, start: datetime | None, end: datetime | None):
    if start is not None:
        q = q.filter(Order.created_at >= start)
    if end is not None:
        q = q.filter(Order.created_at < end)
    return q


def product_sales(start: datetime | None = None, end: datetime | None = None) -> list[ProductSalesStat]:
    """
    Units and revenue per product over orders created in the window.

    Complimentary units are counted separately and never add revenue. Items of
    orders that are still open are included.
    """
    is_paid_type = OrderItem.type == ITEM_TYPE_PAID
    is_comp_type = OrderItem.type == ITEM_TYPE_COMPLIMENTARY

    q = db.session.query(
        OrderItem.product_id,
        func.max(OrderItem.product_name).label("product_name"),
        func.coalesce(func.sum(case((is_paid_type, OrderItem.quantity), else_=0)), 0).label("paid"),
        func.coalesce(func.sum(case((is_comp_type, OrderItem.quantity), else_=0)), 0).label("comp"),
        func.coalesce(
            func.sum(case((is_paid_type, OrderItem.price * OrderItem.quantity), else_=0)), 0
        ).label("revenue"),
    ).join(Order, Order.id == OrderItem.order_id)
    q = _filter_created(q, start, end).group_by(OrderItem.product_id)

    stats = [
        ProductSalesStat(
            product_id=row.product_id,
            product_name=row.product_name,
            paid=int(row.paid),
            complimentary=int(row.comp),
            revenue=int(row.revenue),
        )
        for row in q.all()
    ]
    stats.sort(key=lambda s: (-s.revenue, s.product_name))
    return stats


def sales_summary(start: datetime | None = None, end: datetime | None = None) -> SalesSummary:
    """Revenue from orders closed as paid, plus what was left unpaid."""
    q = db.session.query(
        Order.status,
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_amount), 0),
    ).filter(Order.status.in_(CLOSED_ORDER_STATUSES))
    q = _filter_created(q, start, end).group_by(Order.status)

    by_status = {status: (int(count), int(amount)) for status, count, amount in q.all()}
    paid_count, revenue = by_status.get(ORDER_PAID, (0, 0))
    unpaid_count, unpaid_amount = by_status.get(ORDER_NO_PAYMENT, (0, 0))

    return SalesSummary(
        total_revenue=revenue,
        total_orders=paid_count,
        average_order_value=(revenue / paid_count) if paid_count else 0.0,
        unpaid_orders=unpaid_count,
        unpaid_amount=unpaid_amount,
    )


def order_history(
    start: datetime | None = None,
    end: datetime | None = None,
    status: str | None = None,
) -> list[OrderHistoryEntry]:
    """Closed orders, newest first, with item-level payment progress."""
    if status is not None and status not in CLOSED_ORDER_STATUSES:
        raise ReportError(f"status must be one of: {', '.join(CLOSED_ORDER_STATUSES)}")

    q = db.session.query(Order, DiningTable.name).outerjoin(
        DiningTable, DiningTable.id == Order.table_id
    )
    if status is None:
        q = q.filter(Order.status.in_(CLOSED_ORDER_STATUSES))
    else:
        q = q.filter(Order.status == status)
    rows = _filter_created(q, start, end).order_by(Order.created_at.desc(), Order.id.desc()).all()

    order_ids = [order.id for order, _ in rows]
    paid_by_order: dict[int, int] = {}
    if order_ids:
        paid_rows = db.session.query(
            OrderItem.order_id,
            func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0),
        ).filter(
            OrderItem.order_id.in_(order_ids),
            OrderItem.is_paid.is_(True),
        ).group_by(OrderItem.order_id).all()
        paid_by_order = {order_id: int(amount) for order_id, amount in paid_rows}

    history = []
    for order, table_name in rows:
        paid_amount = paid_by_order.get(order.id, 0)
        history.append(OrderHistoryEntry(
            order_id=order.id,
            table_id=order.table_id,
            table_name=table_name or f"Table {order.table_id}",
            status=order.status,
            created_at=order.created_at,
            closed_at=order.closed_at,
            total_amount=order.total_amount,
            paid_items_amount=paid_amount,
            remaining_amount=order.total_amount - paid_amount,
            is_partially_paid=paid_amount > 0 and order.status == ORDER_NO_PAYMENT,
        ))
    return history
