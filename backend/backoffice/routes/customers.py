# Overview: Flask API routes for the customer directory.

from flask import Blueprint, g, jsonify, request

from ..decorators import with_actor
from ..services import customer_service
from ..validation import json_object


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customer")


@customers_bp.get("")
def list_customers_route():
    customers = customer_service.list_customers()
    return jsonify({"data": [c.to_dict() for c in customers]}), 200


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    return jsonify({"data": customer_service.get_customer(customer_id).to_dict()}), 200


@customers_bp.post("")
@with_actor
def create_customer_route():
    data = json_object(request.get_json(silent=True))
    customer = customer_service.create_customer(data, actor=g.actor_name)
    return jsonify({"message": "Customer created", "data": customer.to_dict()}), 201


@customers_bp.patch("/<int:customer_id>")
@with_actor
def update_customer_route(customer_id: int):
    data = json_object(request.get_json(silent=True))
    customer = customer_service.update_customer(customer_id, data, actor=g.actor_name)
    return jsonify({"message": "Customer updated", "data": customer.to_dict()}), 200


@customers_bp.delete("/<int:customer_id>")
@with_actor
def delete_customer_route(customer_id: int):
    """Orders placed by the customer keep their customer_name snapshot."""
    deleted = customer_service.delete_customer(customer_id, actor=g.actor_name)
    return jsonify({"message": "Customer deleted", "data": deleted}), 200
