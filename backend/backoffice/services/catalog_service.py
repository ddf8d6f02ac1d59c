# Overview: Service-layer operations for the catalog (categories, suppliers, items, stock).

"""
Catalog Store

Items, categories and suppliers are simple keyed records. The two stock
writers are the interesting part:

- decrement_item_quantity(): order fulfilment. One conditional UPDATE,
  `quantity = quantity - n WHERE item_id = ? AND quantity >= n`, checked by
  affected-row count. Runs inside the caller's transaction; never commits.
- restock_item(): manual restock. Sets quantity outright (the caller has
  already added to the current value) and bumps reorder_threshold by one.

Every committed mutation is followed by an audit entry.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Item, OrderItem, Supplier
from ..validation import (
    ModelValidationPolicy,
    coerce_int,
    enforce_rules_item,
    validate_email,
    validate_payload,
)
from . import audit_service
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"unit", "description", "quantity", "reorder_threshold", "price"},
    required_on_create={"unit", "description", "quantity", "reorder_threshold", "price"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"category_name"},
    required_on_create={"category_name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "supplier_name",
        "supplier_contact_person",
        "supplier_address",
        "supplier_email",
        "supplier_number",
    },
    required_on_create={"supplier_name", "supplier_address", "supplier_email", "supplier_number"},
)


# =============================================================================
# Categories
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.updated_at.desc(), Category.category_id.desc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.query(Category).filter_by(category_id=category_id).first()
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(payload: dict, actor: str | None = None) -> Category:
    if not str((payload or {}).get("category_name") or "").strip():
        raise ValidationError("Category name is required")
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    category = Category(**patch)
    db.session.add(category)
    db.session.commit()

    audit_service.record(f"Category created: {category.category_name} (ID: {category.category_id})", actor)
    return category


def update_category(category_id: int, payload: dict, actor: str | None = None) -> Category:
    if not str((payload or {}).get("category_name") or "").strip():
        raise ValidationError("Category name is required")
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    category = get_category(category_id)
    category.category_name = patch["category_name"]
    db.session.commit()

    audit_service.record(f"Category updated: {category.category_name} (ID: {category.category_id})", actor)
    return category


def delete_category(category_id: int, actor: str | None = None) -> dict:
    category = get_category(category_id)
    in_use = db.session.query(Item).filter_by(category_id=category_id).count()
    if in_use:
        raise ConflictError(
            "Category is still assigned to items",
            details={"category_id": category_id, "item_count": in_use},
        )

    snapshot = category.to_dict()
    db.session.delete(category)
    db.session.commit()

    audit_service.record(f"Category deleted: {snapshot['category_name']} (ID: {category_id})", actor)
    return snapshot


# =============================================================================
# Suppliers
# =============================================================================

def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.updated_at.desc(), Supplier.supplier_id.desc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(supplier_id=supplier_id).first()
    if supplier is None:
        raise NotFoundError("Supplier not found")
    return supplier


def _validate_supplier_patch(patch: dict) -> None:
    if "supplier_email" in patch:
        patch["supplier_email"] = validate_email("supplier_email", patch["supplier_email"])


def create_supplier(payload: dict, actor: str | None = None) -> Supplier:
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    except ValidationError as e:
        if str(e).startswith("Missing required fields"):
            raise ValidationError("Name, address, email, and number are required")
        raise
    _validate_supplier_patch(patch)

    supplier = Supplier(**patch)
    db.session.add(supplier)
    db.session.commit()

    audit_service.record(f"Supplier created: {supplier.supplier_name} (ID: {supplier.supplier_id})", actor)
    return supplier


def update_supplier(supplier_id: int, payload: dict, actor: str | None = None) -> Supplier:
    # Blank values mean "leave unchanged" on the supplier edit form
    payload = {k: v for k, v in (payload or {}).items() if v not in (None, "")}
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    _validate_supplier_patch(patch)

    supplier = get_supplier(supplier_id)
    for key, value in patch.items():
        setattr(supplier, key, value)
    db.session.commit()

    audit_service.record(f"Supplier updated: {supplier.supplier_name} (ID: {supplier.supplier_id})", actor)
    return supplier


def delete_supplier(supplier_id: int, actor: str | None = None) -> dict:
    supplier = get_supplier(supplier_id)
    in_use = db.session.query(Item).filter_by(supplier_id=supplier_id).count()
    if in_use:
        raise ConflictError(
            "Supplier is still assigned to items",
            details={"supplier_id": supplier_id, "item_count": in_use},
        )

    snapshot = supplier.to_dict()
    db.session.delete(supplier)
    db.session.commit()

    audit_service.record(f"Supplier deleted: {snapshot['supplier_name']} (ID: {supplier_id})", actor)
    return snapshot


# =============================================================================
# Items
# =============================================================================

def _resolve_reference(payload: dict, *, model, id_key: str, name_key: str, name_column, label: str):
    """
    Resolve a category/supplier reference from either `<x>_id` or `<x>_name`.

    The inventory form posts the id under the *_name key, so a numeric name
    is treated as an id; anything else is matched by exact name.
    """
    raw_id = payload.get(id_key)
    raw_name = payload.get(name_key)

    if raw_id not in (None, ""):
        ref_id = coerce_int(id_key, raw_id)
    elif raw_name not in (None, ""):
        if isinstance(raw_name, int) or (isinstance(raw_name, str) and raw_name.strip().isdigit()):
            ref_id = coerce_int(name_key, raw_name)
        else:
            row = db.session.query(model).filter(name_column == str(raw_name).strip()).first()
            if row is None:
                raise NotFoundError(f"{label} not found")
            return row
    else:
        return None

    row = db.session.get(model, ref_id)
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


def _resolve_category(payload: dict) -> Category | None:
    return _resolve_reference(
        payload,
        model=Category,
        id_key="category_id",
        name_key="category_name",
        name_column=Category.category_name,
        label="Category",
    )


def _resolve_supplier(payload: dict) -> Supplier | None:
    return _resolve_reference(
        payload,
        model=Supplier,
        id_key="supplier_id",
        name_key="supplier_name",
        name_column=Supplier.supplier_name,
        label="Supplier",
    )


def list_items() -> list[Item]:
    return db.session.query(Item).order_by(Item.updated_at.desc(), Item.item_id.desc()).all()


def get_item(item_id: int) -> Item:
    item = db.session.query(Item).filter_by(item_id=item_id).first()
    if item is None:
        raise NotFoundError(f"Item {item_id} not found")
    return item


def list_low_stock_items() -> list[Item]:
    """Items at or below their reorder threshold, emptiest first."""
    return (
        db.session.query(Item)
        .filter(Item.quantity <= Item.reorder_threshold)
        .order_by(Item.quantity.asc(), Item.item_id.asc())
        .all()
    )


def create_item(payload: dict, actor: str | None = None) -> Item:
    payload = payload or {}
    missing = [k for k in ("category_id", "supplier_id") if payload.get(k) in (None, "")
               and payload.get(k.replace("_id", "_name")) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    enforce_rules_item(patch)

    category = _resolve_category(payload)
    supplier = _resolve_supplier(payload)

    item = Item(**patch, category_id=category.category_id, supplier_id=supplier.supplier_id)
    db.session.add(item)
    db.session.commit()

    audit_service.record(f"Item created: {item.description} (ID: {item.item_id})", actor)
    return item


def update_item(item_id: int, payload: dict, actor: str | None = None) -> Item:
    payload = payload or {}
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
    enforce_rules_item(patch)

    category = _resolve_category(payload)
    supplier = _resolve_supplier(payload)

    def _op():
        item = lock_for_update(db.session.query(Item).filter_by(item_id=item_id)).first()
        if item is None:
            raise NotFoundError(f"Item {item_id} not found")
        for key, value in patch.items():
            setattr(item, key, value)
        if category is not None:
            item.category_id = category.category_id
        if supplier is not None:
            item.supplier_id = supplier.supplier_id
        db.session.commit()
        return item

    item = run_with_retry(_op)
    audit_service.record(f"Item updated: {item.description} (ID: {item.item_id})", actor)
    return item


def delete_item(item_id: int, actor: str | None = None) -> dict:
    item = get_item(item_id)
    referenced = db.session.query(OrderItem).filter_by(item_id=item_id).count()
    if referenced:
        raise ConflictError(
            "Item is referenced by existing orders",
            details={"item_id": item_id, "order_item_count": referenced},
        )

    snapshot = item.to_dict()
    db.session.delete(item)
    db.session.commit()

    audit_service.record(f"Item deleted: {snapshot['description']} (ID: {item_id})", actor)
    return snapshot


def decrement_item_quantity(item_id: int, amount: int) -> bool:
    """
    Atomically take `amount` units out of stock.

    Returns True when exactly one row changed. False means the item vanished
    or no longer has `amount` on hand; the caller decides how to fail.
    Participates in the caller's transaction and does not commit.
    """
    updated = (
        db.session.query(Item)
        .filter(Item.item_id == item_id, Item.quantity >= amount)
        .update(
            {
                Item.quantity: Item.quantity - amount,
                Item.version_id: Item.version_id + 1,
                Item.updated_at: db.func.now(),
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def restock_item(item_id: int, new_quantity, actor: str | None = None) -> Item:
    """
    Set an item's on-hand quantity and bump its reorder threshold by one.

    new_quantity replaces the current value; it is not added to it.
    """
    if new_quantity is None:
        raise ValidationError("Quantity is required")
    try:
        new_quantity = coerce_int("quantity", new_quantity)
    except ValidationError:
        raise ValidationError("Quantity must be a number")
    if new_quantity < 0:
        raise ValidationError("quantity must be >= 0")

    def _op():
        begin_write_transaction()
        item = lock_for_update(db.session.query(Item).filter_by(item_id=item_id)).first()
        if item is None:
            raise NotFoundError("Item not found")

        before = (item.quantity, item.reorder_threshold)
        item.quantity = new_quantity
        item.reorder_threshold = item.reorder_threshold + 1
        db.session.commit()
        return item, before

    item, (old_quantity, old_threshold) = run_with_retry(_op)

    audit_service.record(
        f"Item quantity and reorder threshold updated: {item.description} (ID: {item.item_id}), "
        f"quantity changed from {old_quantity} to {item.quantity}, "
        f"reorder threshold changed from {old_threshold} to {item.reorder_threshold}",
        actor,
    )
    return item
