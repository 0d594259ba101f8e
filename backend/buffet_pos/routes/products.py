# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/buffet_pos/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations (list, lookup, search) require VIEW_PRODUCTS
- Write operations require MANAGE_PRODUCTS
"""
from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_non_negative_int,
    ValidationError,
    ConflictError,
    NotFoundError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "barcode", "category", "image_url", "price_cents", "cost_cents", "is_active"},
    required_on_create={"name", "price_cents"},
)

STOCK_FIELDS = ("initial_quantity", "min_quantity")

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products():
    """
    List products.

    Query params:
    - active_only: "true" (default) or "false"
    """
    active_only = request.args.get("active_only", "true").lower() != "false"
    products = products_service.list_products(active_only=active_only)
    return jsonify({
        "items": [p.to_dict(include_stock=True) for p in products],
        "count": len(products),
    }), 200


@products_bp.get("/search")
@require_auth
@require_permission("VIEW_PRODUCTS")
def search_products():
    term = (request.args.get("q") or "").strip()
    if not term:
        return jsonify({"error": "q is required"}), 400
    products = products_service.search_products(term)
    return jsonify({"items": [p.to_dict(include_stock=True) for p in products], "count": len(products)}), 200


@products_bp.get("/barcode/<string:barcode>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_by_barcode(barcode: str):
    product = products_service.get_by_barcode(barcode)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict(include_stock=True)}), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product(product_id: int):
    product = products_service.get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict(include_stock=True)}), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """
    Create a new product.

    Optional "initial_quantity" / "min_quantity" create its inventory record
    in the same step.
    """
    payload = dict(request.get_json(silent=True) or {})
    stock = {k: payload.pop(k) for k in STOCK_FIELDS if k in payload}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        initial_quantity = parse_non_negative_int(stock.get("initial_quantity"), "initial_quantity")
        min_quantity = parse_non_negative_int(stock.get("min_quantity"), "min_quantity")
        product = products_service.create_product(
            patch=patch,
            initial_quantity=initial_quantity,
            min_quantity=min_quantity,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"product": product.to_dict(include_stock=True)}), 201


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = products_service.update_product(product_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"product": product.to_dict(include_stock=True)}), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return "", 204
