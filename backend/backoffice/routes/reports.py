# Overview: Read-only API routes for the dashboard, invoices and transaction history.

from flask import Blueprint, jsonify, request

from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/dashboard")
def dashboard_route():
    """Query: ?month=YYYY-MM (defaults to the current month)."""
    summary = reporting_service.dashboard_summary(request.args.get("month"))
    return jsonify({"data": summary}), 200


@reports_bp.get("/invoice/<int:order_id>")
def invoice_route(order_id: int):
    return jsonify({"data": reporting_service.order_invoice(order_id)}), 200


@reports_bp.get("/transaction-history")
def transaction_history_route():
    return jsonify({"data": reporting_service.transaction_history()}), 200
