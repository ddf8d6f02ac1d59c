from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_money_str


ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


class Order(db.Model):
    """
    Sales order header.

    SNAPSHOTS: customer_name and admin_name are copied at creation time and
    never re-derived, so the order reads the same after the customer or staff
    member is renamed or removed.

    TOTAL INVARIANT: order_total_price equals the sum of the line subtotals
    at creation, except a cancelled order whose total is 0.

    OWNERSHIP: an order exclusively owns its OrderItems; they are deleted with
    it in one transaction. customer_id is a non-owning reference.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("order_total_price >= 0", name="ck_orders_total_non_negative"),
        db.Index("ix_orders_order_date", "order_date"),
        db.Index("ix_orders_status", "order_status"),
        {"sqlite_autoincrement": True},
    )

    order_id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.customer_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    customer_name = db.Column(db.String(255), nullable=True)
    admin_name = db.Column(db.String(255), nullable=False)

    order_date = db.Column(db.Date, nullable=False)
    order_status = db.Column(db.String(16), nullable=False, default="pending")
    order_total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True, passive_deletes=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        passive_deletes=True,
        order_by="OrderItem.order_item_id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.order_id} status={self.order_status!r} total={self.order_total_price}>"

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "admin_name": self.admin_name,
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "order_status": self.order_status,
            "order_total_price": to_money_str(self.order_total_price),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """
    Order line.

    unit_price, description and unit are snapshots of the item at order time;
    they are never re-read from the catalog.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
        db.CheckConstraint("subtotal >= 0", name="ck_order_items_subtotal_non_negative"),
        {"sqlite_autoincrement": True},
    )

    order_item_id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id = db.Column(db.Integer, db.ForeignKey("items.item_id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    description = db.Column(db.String(255), nullable=True)
    unit = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    item = db.relationship("Item")

    def to_dict(self) -> dict:
        return {
            "order_item_id": self.order_item_id,
            "order_id": self.order_id,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "unit_price": to_money_str(self.unit_price),
            "subtotal": to_money_str(self.subtotal),
            "description": self.description,
            "unit": self.unit,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
