# Overview: Read-only API route for the audit log.

from flask import Blueprint, jsonify, request

from ..services import audit_service
from ..validation import coerce_int


system_log_bp = Blueprint("system_log", __name__, url_prefix="/api/system-log")


@system_log_bp.get("")
def list_system_logs_route():
    """Newest first. Optional ?limit=n."""
    limit = request.args.get("limit")
    entries = audit_service.list_entries(coerce_int("limit", limit) if limit else None)
    return jsonify({"data": [entry.to_dict() for entry in entries]}), 200
