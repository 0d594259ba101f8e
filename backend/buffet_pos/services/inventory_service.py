# Overview: Service-layer operations for stock levels; encapsulates business logic and database work.

"""
Inventory Service

One InventoryRecord per product. Quantity changes coming from sales and
refunds are applied as single UPDATE statements (see concurrency.clamped_add)
so two checkouts against the same product cannot lose each other's update.
Manual edits (set_quantity / upsert) are absolute writes by a manager.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import InventoryRecord, Product
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from .concurrency import clamped_add


INVENTORY_MUTABLE_FIELDS = {"quantity", "min_quantity"}


def list_inventory() -> list[InventoryRecord]:
    """All records with their product, lowest stock first."""
    return (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .order_by(InventoryRecord.quantity.asc(), Product.name.asc())
        .all()
    )


def list_low_stock() -> list[InventoryRecord]:
    """Records at or below their reorder threshold."""
    return (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .filter(InventoryRecord.quantity <= InventoryRecord.min_quantity)
        .order_by(InventoryRecord.quantity.asc(), Product.name.asc())
        .all()
    )


def get_by_product_id(product_id: int) -> InventoryRecord | None:
    return db.session.query(InventoryRecord).filter_by(product_id=product_id).first()


def upsert(product_id: int, patch: dict, *, commit: bool = True) -> InventoryRecord:
    """
    Create or update the record for a product.

    Raises NotFoundError if the product does not exist.
    """
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    record = get_by_product_id(product_id)
    if record is None:
        record = InventoryRecord(product_id=product_id, quantity=0, min_quantity=0)
        db.session.add(record)

    for key, value in patch.items():
        if key in INVENTORY_MUTABLE_FIELDS and value is not None:
            setattr(record, key, value)

    if "quantity" in patch:
        record.last_restocked_at = utcnow()

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return record


def set_quantity(product_id: int, quantity: int) -> InventoryRecord:
    """Absolute stock count from a manual count or delivery; stamps last_restocked_at."""
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")
    record = get_by_product_id(product_id)
    if record is None:
        raise NotFoundError("Inventory record not found")
    record.quantity = quantity
    record.last_restocked_at = utcnow()
    db.session.commit()
    return record


def adjust_quantity(product_id: int, delta: int) -> bool:
    """
    Atomically add `delta` (may be negative) to a product's stock, floored at 0.

    Does not commit. Returns False when the product has no inventory record,
    in which case nothing is written.
    """
    updated = (
        db.session.query(InventoryRecord)
        .filter(InventoryRecord.product_id == product_id)
        .update(
            {
                InventoryRecord.quantity: clamped_add(InventoryRecord.quantity, delta),
                InventoryRecord.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
    )
    if not updated:
        return False

    # Bulk UPDATE bypasses the identity map; reload any instance already in the session
    record = get_by_product_id(product_id)
    if record is not None:
        db.session.refresh(record)
    return True


def decrement(product_id: int, amount: int) -> bool:
    """Remove sold units. Oversell floors the quantity at 0."""
    if amount < 0:
        raise ValidationError("amount must be >= 0")
    applied = adjust_quantity(product_id, -amount)
    if not applied:
        current_app.logger.warning("No inventory record for product %s; decrement skipped", product_id)
    return applied


def restore(product_id: int, amount: int) -> bool:
    """Put refunded units back on the shelf."""
    if amount < 0:
        raise ValidationError("amount must be >= 0")
    applied = adjust_quantity(product_id, amount)
    if not applied:
        current_app.logger.warning("No inventory record for product %s; restore skipped", product_id)
    return applied
