# Overview: Flask API routes for categories and suppliers.

from flask import Blueprint, g, jsonify, request

from ..decorators import with_actor
from ..services import catalog_service
from ..validation import json_object


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# =============================================================================
# Categories
# =============================================================================

@catalog_bp.get("/categories")
def list_categories_route():
    categories = catalog_service.list_categories()
    return jsonify({"data": [c.to_dict() for c in categories]}), 200


@catalog_bp.get("/categories/<int:category_id>")
def get_category_route(category_id: int):
    return jsonify({"data": catalog_service.get_category(category_id).to_dict()}), 200


@catalog_bp.post("/categories")
@with_actor
def create_category_route():
    data = json_object(request.get_json(silent=True))
    category = catalog_service.create_category(data, actor=g.actor_name)
    return jsonify({"message": "Category created successfully", "data": category.to_dict()}), 201


@catalog_bp.patch("/categories/<int:category_id>")
@with_actor
def update_category_route(category_id: int):
    data = json_object(request.get_json(silent=True))
    category = catalog_service.update_category(category_id, data, actor=g.actor_name)
    return jsonify({"message": "Category updated successfully", "data": category.to_dict()}), 200


@catalog_bp.delete("/categories/<int:category_id>")
@with_actor
def delete_category_route(category_id: int):
    deleted = catalog_service.delete_category(category_id, actor=g.actor_name)
    return jsonify({"message": "Category deleted successfully", "data": deleted}), 200


# =============================================================================
# Suppliers
# =============================================================================

@catalog_bp.get("/supplier")
def list_suppliers_route():
    suppliers = catalog_service.list_suppliers()
    return jsonify({"data": [s.to_dict() for s in suppliers]}), 200


@catalog_bp.get("/supplier/<int:supplier_id>")
def get_supplier_route(supplier_id: int):
    return jsonify({"data": catalog_service.get_supplier(supplier_id).to_dict()}), 200


@catalog_bp.post("/supplier")
@with_actor
def create_supplier_route():
    data = json_object(request.get_json(silent=True))
    supplier = catalog_service.create_supplier(data, actor=g.actor_name)
    return jsonify({"message": "Supplier created", "data": supplier.to_dict()}), 201


@catalog_bp.patch("/supplier/<int:supplier_id>")
@with_actor
def update_supplier_route(supplier_id: int):
    data = json_object(request.get_json(silent=True))
    supplier = catalog_service.update_supplier(supplier_id, data, actor=g.actor_name)
    return jsonify({"message": "Supplier updated", "data": supplier.to_dict()}), 200


@catalog_bp.delete("/supplier/<int:supplier_id>")
@with_actor
def delete_supplier_route(supplier_id: int):
    deleted = catalog_service.delete_supplier(supplier_id, actor=g.actor_name)
    return jsonify({"message": "Supplier deleted", "data": deleted}), 200
