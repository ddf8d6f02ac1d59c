# Overview: Domain exception taxonomy and its mapping onto JSON error responses.

"""
Error taxonomy (authoritative)

- ValidationError: missing/malformed input. 400. Raised before any write.
- InsufficientStockError: cart quantity exceeds on-hand. 400, with the
  available quantity and unit in details so the caller can adjust.
- NotFoundError: referenced order/item/customer/supplier/category/admin is
  missing. 404.
- ConflictError: a business rule conflict or a lost stock-decrement race.
  409. Order submissions that hit this may be retried as a whole.
- UnavailableError: the store is unreachable or a lock/statement timed out.
  500. Safe to retry reads; order creation is not idempotent.

Audit write failures never reach this layer (see audit_service).
"""

from __future__ import annotations

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., lost stock decrement race)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds on-hand stock."""

    def __init__(self, message: str, *, item_id: int, requested: int, available: int, unit: str | None):
        super().__init__(message)
        self.details = {
            "item_id": item_id,
            "requested": requested,
            "available": available,
            "unit": unit,
        }


class NotFoundError(LookupError):
    """Referenced entity does not exist."""

    def __str__(self) -> str:
        # LookupError would otherwise repr-quote a single argument
        return self.args[0] if self.args else "Not found"


class UnavailableError(RuntimeError):
    """Database unreachable or timed out; the caller may retry with backoff."""


def _error_body(message: str, details=None):
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body)


def register_error_handlers(app) -> None:
    """Map domain exceptions onto the {error, details?} response shape."""

    @app.errorhandler(InsufficientStockError)
    def handle_insufficient_stock(e):
        return _error_body(str(e), e.details), 400

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return _error_body(str(e)), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return _error_body(str(e)), 404

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return _error_body(str(e), e.details), 409

    @app.errorhandler(UnavailableError)
    def handle_unavailable(e):
        current_app.logger.warning("Database unavailable: %s", e)
        return _error_body("Service temporarily unavailable", str(e)), 500

    @app.errorhandler(HTTPException)
    def handle_http(e):
        return _error_body(e.description or e.name), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        current_app.logger.exception("Unhandled error")
        return _error_body("Internal server error", str(e)), 500
