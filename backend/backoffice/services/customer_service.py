# Overview: Service-layer operations for customers; validation shared with inline order creation.

"""
Customer Directory

Validation rules (shared by the customer screens and the inline
"create new customer" step of order creation):
- customer_name and customer_address are required, non-blank
- customer_email is required and must look like an email address
- customer_number is optional here but, when present, exactly 11 digits;
  inline creation during checkout requires it

Deletion policy: allowed. Orders that referenced the customer keep their
customer_name snapshot and have customer_id cleared in the same transaction.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Order
from ..validation import ModelValidationPolicy, validate_email, validate_payload, validate_phone
from . import audit_service


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"customer_name", "customer_address", "customer_email", "customer_number"},
    required_on_create={"customer_name", "customer_address", "customer_email"},
)

# Inline checkout form keys -> column names
INLINE_FIELD_MAP = {
    "name": "customer_name",
    "address": "customer_address",
    "email": "customer_email",
    "number": "customer_number",
}


def normalize_inline_fields(fields: dict) -> dict:
    """Accept either the short checkout keys (name, email...) or column names."""
    fields = fields or {}
    return {INLINE_FIELD_MAP.get(k, k): v for k, v in fields.items()}


def validate_customer_fields(fields: dict, *, require_number: bool = False, partial: bool = False) -> dict:
    """Validate and clean customer fields. Raises ValidationError."""
    fields = fields or {}
    if not partial:
        if not str(fields.get("customer_name") or "").strip():
            raise ValidationError("Please enter a customer name.")
        if not str(fields.get("customer_address") or "").strip():
            raise ValidationError("Please enter a customer address.")
        if not str(fields.get("customer_email") or "").strip():
            raise ValidationError("Please enter a customer email.")
        if require_number and not str(fields.get("customer_number") or "").strip():
            raise ValidationError("Please enter a customer number")

    patch = validate_payload(model=Customer, payload=fields, policy=CUSTOMER_POLICY, partial=partial)

    if "customer_email" in patch:
        try:
            patch["customer_email"] = validate_email("customer_email", patch["customer_email"])
        except ValidationError:
            raise ValidationError("Please enter a valid customer email address.")

    number = patch.get("customer_number")
    if number in ("", None):
        if "customer_number" in patch:
            patch["customer_number"] = None
    else:
        try:
            patch["customer_number"] = validate_phone("customer_number", number)
        except ValidationError:
            raise ValidationError("Please enter a valid 11-digit customer phone number.")

    return patch


def get_customer(customer_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(customer_id=customer_id).first()
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def list_customers() -> list[Customer]:
    return db.session.query(Customer).order_by(Customer.updated_at.desc(), Customer.customer_id.desc()).all()


def build_customer(fields: dict) -> Customer:
    """Add a Customer to the session from already-validated fields, without committing."""
    customer = Customer(**fields)
    db.session.add(customer)
    db.session.flush()
    return customer


def create_customer(fields: dict, actor: str | None = None) -> Customer:
    patch = validate_customer_fields(fields)
    customer = build_customer(patch)
    db.session.commit()

    audit_service.record(f"Customer created: {customer.customer_name} (ID: {customer.customer_id})", actor)
    return customer


def update_customer(customer_id: int, fields: dict, actor: str | None = None) -> Customer:
    patch = validate_customer_fields(fields, partial=True)
    if not patch:
        raise ValidationError("No fields to update")

    customer = get_customer(customer_id)
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()

    audit_service.record(f"Customer updated: {customer.customer_name} (ID: {customer.customer_id})", actor)
    return customer


def delete_customer(customer_id: int, actor: str | None = None) -> dict:
    customer = get_customer(customer_id)
    snapshot = customer.to_dict()

    # Orders keep the customer_name snapshot; only the reference is cleared
    db.session.query(Order).filter(Order.customer_id == customer_id).update(
        {Order.customer_id: None},
        synchronize_session=False,
    )
    db.session.delete(customer)
    db.session.commit()

    audit_service.record(f"Customer deleted: {snapshot['customer_name']} (ID: {customer_id})", actor)
    return snapshot
