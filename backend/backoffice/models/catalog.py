from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_money_str


class Category(db.Model):
    """Item category (e.g. "Beverages")."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    category_id = db.Column(db.Integer, primary_key=True)
    category_name = db.Column(db.String(128), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    """
    Supplier master data.

    Items reference exactly one supplier; a supplier with items cannot be
    deleted.
    """
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    supplier_id = db.Column(db.Integer, primary_key=True)
    supplier_name = db.Column(db.String(255), nullable=False)
    supplier_contact_person = db.Column(db.String(255), nullable=True)
    supplier_address = db.Column(db.String(512), nullable=False)
    supplier_email = db.Column(db.String(255), nullable=False)
    supplier_number = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "supplier_contact_person": self.supplier_contact_person,
            "supplier_address": self.supplier_address,
            "supplier_email": self.supplier_email,
            "supplier_number": self.supplier_number,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Item(db.Model):
    """
    Inventory item with on-hand stock.

    STOCK INVARIANT: quantity never goes negative through order fulfilment.
    Order-driven decrements go through catalog_service.decrement_item_quantity,
    a single conditional UPDATE guarded by quantity >= requested. Never
    read-modify-write quantity at the application layer for sales.

    Restocking (catalog_service.restock_item) sets quantity outright and bumps
    reorder_threshold by one.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        db.CheckConstraint("reorder_threshold >= 0", name="ck_items_reorder_threshold_non_negative"),
        db.CheckConstraint("price >= 0", name="ck_items_price_non_negative"),
        db.Index("ix_items_updated_at", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    item_id = db.Column(db.Integer, primary_key=True)
    unit = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_threshold = db.Column(db.Integer, nullable=False, default=0)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.category_id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.supplier_id"), nullable=False, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    category = db.relationship("Category", backref=db.backref("items", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("items", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.item_id} description={self.description!r} quantity={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_threshold

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "unit": self.unit,
            "description": self.description,
            "price": to_money_str(self.price),
            "quantity": self.quantity,
            "reorder_threshold": self.reorder_threshold,
            "is_low_stock": self.is_low_stock,
            "category_id": self.category_id,
            "category_name": self.category.category_name if self.category else None,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.supplier_name if self.supplier else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
