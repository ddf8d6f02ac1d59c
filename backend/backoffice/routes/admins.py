# Overview: Read-only API route for staff records.

from flask import Blueprint, jsonify

from ..services import staff_service


admins_bp = Blueprint("admins", __name__, url_prefix="/api/admins")


@admins_bp.get("")
def list_admins_route():
    admins = staff_service.list_admins()
    return jsonify({"data": [a.to_dict() for a in admins]}), 200
