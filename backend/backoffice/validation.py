from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Date, Integer, Numeric, String, Text

from .errors import ValidationError
from .time_utils import parse_order_date


# Maximum money value: 9,999,999,999.99 (fits Numeric(12, 2))
MAX_MONEY = Decimal("9999999999.99")
CENTS = Decimal("0.01")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\d{11}$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] | None = None


def _columns_by_key(model) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_money(key: str, value: Any) -> Decimal:
    """Parse a non-negative money amount and quantize to cents."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{key} must be a number")
    try:
        # str() so floats like 0.1 don't drag binary noise into the Decimal
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number")
    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount < 0:
        raise ValidationError(f"{key} must be a non-negative number")
    if amount > MAX_MONEY:
        raise ValidationError(f"{key} cannot exceed {MAX_MONEY}")
    return amount


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_money(col.key, value)

    if isinstance(coltype, Date):
        try:
            return parse_order_date(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a valid date")

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def json_object(payload) -> dict:
    """Request body as a dict; an absent body is empty, any other shape is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def validate_payload(
    *,
    model,
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

    Keys outside the allowlist are ignored rather than rejected: the
    back-office forms post whole rows, ids and timestamps included.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    patch: dict = {}
    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
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


def validate_email(key: str, value: str | None) -> str:
    value = str(value or "").strip()
    if not value:
        raise ValidationError(f"{key} is required")
    if not EMAIL_RE.match(value):
        raise ValidationError(f"{key} must be a valid email address")
    return value


def validate_phone(key: str, value: str | None) -> str:
    value = (str(value) if value is not None else "").strip()
    if not PHONE_RE.match(value):
        raise ValidationError(f"{key} must be exactly 11 digits")
    return value


def enforce_rules_item(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    for key in ("quantity", "reorder_threshold"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")
    # price is already range-checked by coerce_money


def enforce_rules_order_item(patch: dict) -> None:
    if patch.get("quantity") is not None and patch["quantity"] <= 0:
        raise ValidationError(
            "Invalid values: quantity must be positive, price and subtotal must be non-negative"
        )


def to_money_str(amount) -> str | None:
    """Serialize a money amount as a fixed two-place string ("130.00")."""
    if amount is None:
        return None
    return str(Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP))
