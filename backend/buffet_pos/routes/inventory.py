# Overview: Flask API routes for stock levels; parses input and returns JSON responses.

# backend/buffet_pos/routes/inventory.py
"""
Inventory management routes.

SECURITY: All routes require authentication.
- View operations require VIEW_INVENTORY permission
- Stock edits require MANAGE_INVENTORY permission

Sales and refunds move stock through checkout_service / refund_service;
these routes are for manual counts and reorder thresholds.
"""
from flask import Blueprint, request

from ..models import InventoryRecord
from ..decorators import require_auth, require_permission
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_inventory,
    parse_non_negative_int,
    ValidationError,
    NotFoundError,
)


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "min_quantity"},
    required_on_create=set(),
)


@inventory_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_inventory_route():
    """All stock records joined with their product, lowest stock first."""
    records = inventory_service.list_inventory()
    return {
        "items": [r.to_dict(include_product=True) for r in records],
        "count": len(records),
    }, 200


@inventory_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def low_stock_route():
    records = inventory_service.list_low_stock()
    return {
        "items": [r.to_dict(include_product=True) for r in records],
        "count": len(records),
    }, 200


@inventory_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_inventory_route(product_id: int):
    record = inventory_service.get_by_product_id(product_id)
    if record is None:
        return {"error": "Inventory record not found"}, 404
    return {"inventory": record.to_dict(include_product=True)}, 200


@inventory_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_INVENTORY")
def upsert_inventory_route(product_id: int):
    """
    Create or update the stock record for a product.

    Body: {"quantity": int, "min_quantity": int} (either may be omitted)
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=InventoryRecord,
            payload=payload,
            policy=INVENTORY_POLICY,
            partial=True,
        )
        enforce_rules_inventory(patch)
        record = inventory_service.upsert(product_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"inventory": record.to_dict(include_product=True)}, 200


@inventory_bp.post("/<int:product_id>/count")
@require_auth
@require_permission("MANAGE_INVENTORY")
def set_quantity_route(product_id: int):
    """Record a physical count: absolute quantity, stamps last_restocked_at."""
    payload = request.get_json(silent=True) or {}

    try:
        quantity = parse_non_negative_int(payload.get("quantity"), "quantity", required=True)
        record = inventory_service.set_quantity(product_id, quantity)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"inventory": record.to_dict(include_product=True)}, 200
