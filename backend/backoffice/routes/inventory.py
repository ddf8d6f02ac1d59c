# Overview: Flask API routes for inventory items; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import with_actor
from ..services import catalog_service
from ..validation import json_object


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.get("/inventory")
def list_items_route():
    items = catalog_service.list_items()
    return jsonify({"data": [item.to_dict() for item in items]}), 200


@inventory_bp.get("/inventory/low-stock")
def list_low_stock_route():
    """Items at or below their reorder threshold."""
    items = catalog_service.list_low_stock_items()
    return jsonify({"data": [item.to_dict() for item in items]}), 200


@inventory_bp.get("/inventory/<int:item_id>")
def get_item_route(item_id: int):
    item = catalog_service.get_item(item_id)
    return jsonify({"data": item.to_dict()}), 200


@inventory_bp.post("/inventory")
@with_actor
def create_item_route():
    """
    Create an item.

    Body: unit, description, quantity, reorder_threshold, price, plus
    category_id/category_name and supplier_id/supplier_name.
    """
    data = json_object(request.get_json(silent=True))
    item = catalog_service.create_item(data, actor=g.actor_name)
    return jsonify({"message": "Item created", "data": item.to_dict()}), 201


@inventory_bp.patch("/inventory/<int:item_id>")
@with_actor
def update_item_route(item_id: int):
    data = json_object(request.get_json(silent=True))
    item = catalog_service.update_item(item_id, data, actor=g.actor_name)
    return jsonify({"message": "Item updated successfully", "data": item.to_dict()}), 200


@inventory_bp.delete("/inventory/<int:item_id>")
@with_actor
def delete_item_route(item_id: int):
    deleted = catalog_service.delete_item(item_id, actor=g.actor_name)
    return jsonify({"message": "Item deleted successfully", "data": deleted}), 200


@inventory_bp.patch("/update-quantity/<int:item_id>")
@with_actor
def restock_item_route(item_id: int):
    """
    Restock an item.

    Body: {"quantity": n}. n replaces the on-hand quantity; the reorder
    threshold goes up by one.
    """
    data = json_object(request.get_json(silent=True))
    item = catalog_service.restock_item(item_id, data.get("quantity"), actor=g.actor_name)
    return jsonify({
        "message": "Item quantity and reorder threshold updated",
        "data": item.to_dict(),
    }), 200
