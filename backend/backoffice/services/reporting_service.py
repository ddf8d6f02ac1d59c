# Overview: Read-only projections for the dashboard, invoices and transaction history.

from __future__ import annotations

from datetime import date
from decimal import Decimal

from ..errors import ValidationError
from ..extensions import db
from ..models import Customer, Item, Order, OrderItem, Supplier
from ..time_utils import utcnow
from ..validation import to_money_str
from .order_service import get_order


def _next_month(day: date) -> date:
    return date(day.year + 1, 1, 1) if day.month == 12 else date(day.year, day.month + 1, 1)


def _month_bounds(month: str | None) -> tuple[date, date]:
    """"YYYY-MM" -> [first day, first day of next month). None means the current month."""
    if month in (None, ""):
        today = utcnow().date()
        start = date(today.year, today.month, 1)
    else:
        try:
            year_s, mon_s = str(month).strip().split("-")
            start = date(int(year_s), int(mon_s), 1)
            end = _next_month(start)
        except ValueError:
            raise ValidationError("month must be in YYYY-MM format")
        return start, end
    return start, _next_month(start)


def _sum_money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def dashboard_summary(month: str | None = None) -> dict:
    """
    Headline figures plus revenue per day for one month.

    Cancelled orders carry a zero total, so they drop out of revenue without
    special-casing here.
    """
    start, end = _month_bounds(month)

    total_revenue = db.session.query(db.func.sum(Order.order_total_price)).scalar()
    total_orders = db.session.query(db.func.count(Order.order_id)).scalar() or 0
    total_items = db.session.query(db.func.count(Item.item_id)).scalar() or 0
    total_suppliers = db.session.query(db.func.count(Supplier.supplier_id)).scalar() or 0
    low_stock = (
        db.session.query(db.func.count(Item.item_id))
        .filter(Item.quantity <= Item.reorder_threshold)
        .scalar()
        or 0
    )

    rows = (
        db.session.query(Order.order_date, db.func.sum(Order.order_total_price))
        .filter(Order.order_date >= start, Order.order_date < end)
        .group_by(Order.order_date)
        .order_by(Order.order_date.asc())
        .all()
    )

    return {
        "month": start.strftime("%Y-%m"),
        "total_revenue": to_money_str(_sum_money(total_revenue)),
        "total_orders": total_orders,
        "total_items": total_items,
        "total_suppliers": total_suppliers,
        "low_stock_items": low_stock,
        "revenue_per_day": [
            {"date": day.isoformat(), "revenue": to_money_str(_sum_money(revenue))}
            for day, revenue in rows
        ],
    }


def order_invoice(order_id: int) -> dict:
    order = get_order(order_id)
    customer = db.session.get(Customer, order.customer_id) if order.customer_id else None

    lines = [
        {
            "order_item_id": line.order_item_id,
            "item_id": line.item_id,
            "description": line.description,
            "unit": line.unit,
            "quantity": line.quantity,
            "unit_price": to_money_str(line.unit_price),
            "subtotal": to_money_str(line.subtotal),
        }
        for line in order.items
    ]

    return {
        "order": order.to_dict(),
        "customer": customer.to_dict() if customer else {"customer_name": order.customer_name},
        "items": lines,
        "total_items": sum(line.quantity for line in order.items),
        "total": to_money_str(order.order_total_price),
    }


def transaction_history() -> list[dict]:
    """Every order with its line count and item quantity, newest first."""
    rows = (
        db.session.query(
            Order,
            db.func.count(OrderItem.order_item_id),
            db.func.coalesce(db.func.sum(OrderItem.quantity), 0),
        )
        .outerjoin(OrderItem, OrderItem.order_id == Order.order_id)
        .group_by(Order.order_id)
        .order_by(Order.order_date.desc(), Order.order_id.desc())
        .all()
    )

    history = []
    for order, line_count, quantity in rows:
        entry = order.to_dict()
        entry["line_count"] = line_count
        entry["total_quantity"] = int(quantity)
        history.append(entry)
    return history
