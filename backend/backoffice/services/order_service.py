# Overview: Order workflow: cart checkout, status lifecycle, cascading delete and standalone order lines.

"""
Order Lifecycle Invariants (authoritative)

- create_order() validates the whole request before writing anything, then
  performs every write (inline customer, order header, lines, stock
  decrements) inside ONE transaction. Any failure rolls all of it back.
- Stock is taken with a conditional decrement (quantity >= n) checked by
  affected-row count, never read-modify-write. A lost race is a
  ConflictError; the caller may resubmit the whole order.
- order_total_price == sum(line subtotals), except a cancelled order,
  whose total is forced to 0.
- Cancelling does NOT return stock to the catalog.
- Status transitions are unconstrained between the five canonical values.
- delete_order() removes lines and header in one transaction.
- Audit entries are recorded only after the commit succeeds.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ORDER_STATUSES, Customer, Item, Order, OrderItem
from ..time_utils import parse_order_date
from ..validation import CENTS, coerce_int, coerce_money, enforce_rules_order_item, to_money_str
from . import audit_service, customer_service, staff_service
from .catalog_service import decrement_item_quantity
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


CANCELLED = "cancelled"
ORDER_ITEM_VALUES_MESSAGE = "Invalid values: quantity must be positive, price and subtotal must be non-negative"


def normalize_status(value) -> str:
    """Case-insensitive status check; returns the canonical lower-case value."""
    status = str(value or "").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid order status. Must be one of: {', '.join(ORDER_STATUSES)}")
    return status


def _parse_date(value):
    if value in (None, ""):
        raise ValidationError("Order date is required")
    try:
        return parse_order_date(value)
    except ValueError:
        raise ValidationError("order_date must be a valid date")


def _normalize_cart(cart) -> list[dict]:
    """
    Validate cart entries and merge repeated item_ids.

    Returns [{"item_id", "quantity"}] in first-seen order.
    """
    if not isinstance(cart, (list, tuple)) or not cart:
        raise ValidationError("Please add at least one item to the order")

    merged: dict[int, int] = {}
    for entry in cart:
        if not isinstance(entry, dict):
            raise ValidationError("Each cart entry must be an object with item_id and quantity")
        if entry.get("item_id") in (None, ""):
            raise ValidationError("item_id is required for each cart entry")
        if entry.get("quantity") in (None, ""):
            raise ValidationError("quantity is required for each cart entry")

        item_id = coerce_int("item_id", entry["item_id"])
        quantity = coerce_int("quantity", entry["quantity"])
        if quantity <= 0:
            raise ValidationError("quantity must be positive")

        merged[item_id] = merged.get(item_id, 0) + quantity

    return [{"item_id": k, "quantity": v} for k, v in merged.items()]


def _parse_customer_selection(selection) -> tuple[int | None, dict | None]:
    """Returns (customer_id, None) or (None, validated new-customer fields)."""
    selection = selection or {}
    if not isinstance(selection, dict):
        raise ValidationError("Invalid customer selection")

    new_customer = selection.get("new_customer")
    if new_customer:
        if not isinstance(new_customer, dict):
            raise ValidationError("Invalid new customer details")
        fields = customer_service.normalize_inline_fields(new_customer)
        return None, customer_service.validate_customer_fields(fields, require_number=True)

    if selection.get("customer_id") in (None, ""):
        raise ValidationError("Please select a customer or create a new one")
    return coerce_int("customer_id", selection["customer_id"]), None


# =============================================================================
# Checkout
# =============================================================================

def create_order(
    cart,
    customer_selection,
    admin_id,
    order_date,
    initial_status: str = "pending",
    actor: str | None = None,
) -> Order:
    """
    Turn a cart into a persisted order with its lines, taking stock atomically.

    customer_selection is {"customer_id": n} or {"new_customer": {name,
    address, email, number}}. The new customer is inserted in the same
    transaction as the order, so a failed order leaves no stray customer.
    """
    lines_in = _normalize_cart(cart)
    status = normalize_status(initial_status or "pending")
    order_day = _parse_date(order_date)
    customer_id, new_customer_fields = _parse_customer_selection(customer_selection)
    if admin_id in (None, ""):
        raise ValidationError("admin_id is required")
    admin_id = coerce_int("admin_id", admin_id)

    def _op():
        begin_write_transaction()

        ids = [line["item_id"] for line in lines_in]
        items = {
            item.item_id: item
            for item in lock_for_update(db.session.query(Item).filter(Item.item_id.in_(ids))).all()
        }

        priced = []
        total = Decimal("0.00")
        for line in lines_in:
            item = items.get(line["item_id"])
            if item is None:
                raise NotFoundError(f"Item {line['item_id']} not found")
            if line["quantity"] > item.quantity:
                raise InsufficientStockError(
                    f"Not enough stock for {item.description}. Available quantity: {item.quantity} {item.unit}",
                    item_id=item.item_id,
                    requested=line["quantity"],
                    available=item.quantity,
                    unit=item.unit,
                )
            unit_price = Decimal(item.price).quantize(CENTS, rounding=ROUND_HALF_UP)
            subtotal = (unit_price * line["quantity"]).quantize(CENTS, rounding=ROUND_HALF_UP)
            total += subtotal
            priced.append((item, line["quantity"], unit_price, subtotal))

        if new_customer_fields is not None:
            customer = customer_service.build_customer(new_customer_fields)
        else:
            customer = db.session.get(Customer, customer_id)
            if customer is None:
                raise NotFoundError("Customer not found")

        admin = staff_service.get_admin(admin_id)

        order = Order(
            customer_id=customer.customer_id,
            customer_name=customer.customer_name,
            admin_name=staff_service.admin_display_name(admin),
            order_date=order_day,
            order_status=status,
            order_total_price=Decimal("0.00") if status == CANCELLED else total,
        )
        db.session.add(order)
        db.session.flush()

        for item, quantity, unit_price, subtotal in priced:
            db.session.add(OrderItem(
                order_id=order.order_id,
                item_id=item.item_id,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
                description=item.description,
                unit=item.unit,
            ))
        db.session.flush()

        for item, quantity, _, _ in priced:
            if not decrement_item_quantity(item.item_id, quantity):
                raise ConflictError(
                    f"Stock for {item.description} changed while the order was being placed; please retry",
                    details={"item_id": item.item_id, "requested": quantity},
                )

        db.session.commit()
        return order

    order = run_with_retry(_op)

    audit_service.record(
        f"Order created: ID {order.order_id} for {order.customer_name} "
        f"total {to_money_str(order.order_total_price)}",
        actor,
    )
    return order


# =============================================================================
# Status lifecycle
# =============================================================================

def update_order_status(order_id: int, new_status, actor: str | None = None) -> Order:
    status = normalize_status(new_status)

    def _op():
        begin_write_transaction()
        order = lock_for_update(db.session.query(Order).filter_by(order_id=order_id)).first()
        if order is None:
            raise NotFoundError("Order not found")

        old_status = order.order_status
        order.order_status = status
        if status == CANCELLED:
            # Cancellation forfeits revenue; stock stays where it is
            order.order_total_price = Decimal("0.00")
        db.session.commit()
        return order, old_status

    order, old_status = run_with_retry(_op)

    audit_service.record(
        f"Order status updated: ID {order.order_id} from {old_status} to {order.order_status}, "
        f"total {to_money_str(order.order_total_price)}",
        actor,
    )
    return order


def delete_order(order_id: int, actor: str | None = None) -> dict:
    """Delete an order and all of its lines. Returns the deleted order's summary."""

    def _op():
        begin_write_transaction()
        order = db.session.query(Order).filter_by(order_id=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        summary = order.to_dict()
        summary["item_count"] = len(order.items)

        db.session.query(OrderItem).filter(OrderItem.order_id == order_id).delete()
        deleted = db.session.query(Order).filter(Order.order_id == order_id).delete()
        if deleted != 1:
            raise NotFoundError("Order not found")

        db.session.commit()
        return summary

    summary = run_with_retry(_op)

    audit_service.record(
        f"Order deleted: ID {summary['order_id']} for {summary['customer_name']} "
        f"total {summary['order_total_price']} ({summary['item_count']} items)",
        actor,
    )
    return summary


# =============================================================================
# Reads
# =============================================================================

def list_orders() -> list[Order]:
    return db.session.query(Order).order_by(Order.order_date.desc(), Order.order_id.desc()).all()


def get_order(order_id: int) -> Order:
    order = db.session.query(Order).filter_by(order_id=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_order_with_items(order_id: int) -> dict:
    order = get_order(order_id)
    return {
        "order": order.to_dict(),
        "order_items": [line.to_dict() for line in order.items],
    }


# =============================================================================
# Standalone header / line endpoints
# =============================================================================

def _parse_line_amount(key: str, value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def add_order_item(payload: dict, actor: str | None = None) -> OrderItem:
    """
    Append one line to an existing order.

    The caller-supplied subtotal is stored as given. Stock and the order total
    are left alone; checkout is the path that keeps those consistent.
    """
    payload = payload or {}
    required = ("order_id", "item_id", "quantity", "unit_price", "subtotal")
    missing = [k for k in required if payload.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    order_id = coerce_int("order_id", payload["order_id"])
    item_id = coerce_int("item_id", payload["item_id"])
    quantity = coerce_int("quantity", payload["quantity"])
    unit_price = _parse_line_amount("unit_price", payload["unit_price"])
    subtotal = _parse_line_amount("subtotal", payload["subtotal"])

    enforce_rules_order_item({"quantity": quantity})
    if unit_price < 0 or subtotal < 0:
        raise ValidationError(ORDER_ITEM_VALUES_MESSAGE)

    order = get_order(order_id)
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFoundError(f"Item {item_id} not found")

    line = OrderItem(
        order_id=order.order_id,
        item_id=item.item_id,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=subtotal,
        description=item.description,
        unit=item.unit,
    )
    db.session.add(line)
    db.session.commit()

    audit_service.record(
        f"Order item added: {line.description} x{line.quantity} to order ID {line.order_id}",
        actor,
    )
    return line


def create_order_record(payload: dict, actor: str | None = None) -> Order:
    """Insert a bare order header with a caller-supplied total (no lines, no stock change)."""
    payload = payload or {}
    required = ("customer_id", "admin_name", "order_date", "order_status", "order_total_price")
    missing = [k for k in required if payload.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    customer = customer_service.get_customer(coerce_int("customer_id", payload["customer_id"]))
    status = normalize_status(payload["order_status"])
    order_day = _parse_date(payload["order_date"])
    total = coerce_money("order_total_price", payload["order_total_price"])
    admin_name = str(payload["admin_name"]).strip()
    if not admin_name:
        raise ValidationError("admin_name cannot be blank")

    order = Order(
        customer_id=customer.customer_id,
        customer_name=customer.customer_name,
        admin_name=admin_name,
        order_date=order_day,
        order_status=status,
        order_total_price=Decimal("0.00") if status == CANCELLED else total,
    )
    db.session.add(order)
    db.session.commit()

    audit_service.record(
        f"Order created: ID {order.order_id} for {order.customer_name} "
        f"total {to_money_str(order.order_total_price)}",
        actor,
    )
    return order
