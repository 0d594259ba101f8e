# Overview: Flask API routes for customers and loyalty points; parses input and returns JSON responses.

# backend/buffet_pos/routes/customers.py
"""
Customer routes.

SECURITY: All routes require authentication.
- Lookups (list, search, get) require VIEW_CUSTOMERS so the POS can attach a customer
- Edits require MANAGE_CUSTOMERS
"""
from flask import Blueprint, request, jsonify

from ..models import Customer
from ..decorators import require_auth, require_permission
from ..services import customers_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
    parse_positive_int,
    ValidationError,
    NotFoundError,
)


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "loyalty_points", "total_purchases_cents"},
    required_on_create={"name"},
)


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    customers = customers_service.list_customers()
    return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200


@customers_bp.get("/search")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def search_customers_route():
    """Match name, phone or email (case-insensitive substring), at most 20 results."""
    term = (request.args.get("q") or "").strip()
    if not term:
        return jsonify({"error": "q is required"}), 400
    customers = customers_service.search_customers(term)
    return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    customer = customers_service.get_customer(customer_id)
    if customer is None:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.post("")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
        customer = customers_service.create_customer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"customer": customer.to_dict()}), 201


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
        customer = customers_service.update_customer(customer_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.post("/<int:customer_id>/points")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def add_points_route(customer_id: int):
    """
    Grant loyalty points by hand.

    Body: {"points": int > 0}
    """
    payload = request.get_json(silent=True) or {}

    try:
        points = parse_positive_int(payload.get("points"), "points")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if not customers_service.add_loyalty_points(customer_id, points):
        return jsonify({"error": "Customer not found"}), 404

    customer = customers_service.get_customer(customer_id)
    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def delete_customer_route(customer_id: int):
    try:
        customers_service.delete_customer(customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return "", 204
