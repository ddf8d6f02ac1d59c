# Overview: Flask API routes for orders and order lines; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import with_actor
from ..services import order_service
from ..validation import json_object


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.get("/orders")
def list_orders_route():
    orders = order_service.list_orders()
    return jsonify({"data": [o.to_dict() for o in orders]}), 200


@orders_bp.post("/orders")
@with_actor
def create_order_record_route():
    """
    Insert an order header only.

    Body: customer_id, admin_name, order_date, order_status, order_total_price.
    Lines and stock are not touched; use /api/orders/checkout to place an order.
    """
    data = json_object(request.get_json(silent=True))
    order = order_service.create_order_record(data, actor=g.actor_name)
    return jsonify({"message": "Order created", "data": order.to_dict()}), 201


@orders_bp.post("/orders/checkout")
@with_actor
def checkout_route():
    """
    Place an order from a cart.

    Body:
    {
      "cart": [{"item_id": 1, "quantity": 2}, ...],
      "customer_id": 3,                       # or
      "new_customer": {"name", "address", "email", "number"},
      "admin_id": 1,                          # defaults to the X-Admin-Id admin
      "order_date": "2025-03-01",
      "order_status": "pending"               # optional
    }

    Lines, stock decrements and any new customer are written in one
    transaction. A 409 means stock changed mid-order; resubmit the order.
    """
    data = json_object(request.get_json(silent=True))

    if data.get("new_customer"):
        selection = {"new_customer": data["new_customer"]}
    else:
        selection = {"customer_id": data.get("customer_id")}

    admin_id = data.get("admin_id")
    if admin_id in (None, ""):
        admin_id = g.admin_id

    order = order_service.create_order(
        data.get("cart"),
        selection,
        admin_id,
        data.get("order_date"),
        data.get("order_status") or "pending",
        actor=g.actor_name,
    )
    return jsonify({
        "message": "Order created",
        "data": order_service.get_order_with_items(order.order_id),
    }), 201


@orders_bp.get("/orders/<int:order_id>")
def get_order_route(order_id: int):
    return jsonify({"data": order_service.get_order_with_items(order_id)}), 200


@orders_bp.patch("/orders/<int:order_id>")
@with_actor
def update_order_status_route(order_id: int):
    """Body: {"order_status": "..."}. "cancelled" zeroes the order total."""
    data = json_object(request.get_json(silent=True))
    order = order_service.update_order_status(order_id, data.get("order_status"), actor=g.actor_name)
    return jsonify({"message": "Order status updated", "data": order.to_dict()}), 200


@orders_bp.delete("/orders/<int:order_id>")
@with_actor
def delete_order_route(order_id: int):
    deleted = order_service.delete_order(order_id, actor=g.actor_name)
    return jsonify({"message": "Order deleted", "data": deleted}), 200


@orders_bp.post("/order_items")
@with_actor
def create_order_item_route():
    data = json_object(request.get_json(silent=True))
    line = order_service.add_order_item(data, actor=g.actor_name)
    return jsonify({"message": "Order item created", "data": line.to_dict()}), 201
