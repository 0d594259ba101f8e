# backend/buffet_pos/services/products_service.py
"""
Products Service

Catalog CRUD plus the lookups the POS screen needs (barcode scan, search).
A product created with stock fields also gets its inventory record in the
same commit.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, InventoryRecord
from ..validation import ConflictError, NotFoundError, ValidationError

PRODUCT_MUTABLE_FIELDS = {"name", "description", "barcode", "category", "image_url", "price_cents", "cost_cents", "is_active"}
SEARCH_LIMIT = 20


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(active_only: bool = True) -> list[Product]:
    query = db.session.query(Product)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def require_product(product_id: int) -> Product:
    product = get_product(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def get_by_barcode(barcode: str) -> Product | None:
    barcode = (barcode or "").strip()
    if not barcode:
        return None
    return db.session.query(Product).filter_by(barcode=barcode).first()


def search_products(term: str) -> list[Product]:
    """Active products whose name or barcode contains `term` (case-insensitive)."""
    pattern = f"%{term.strip()}%"
    return (
        db.session.query(Product)
        .filter(
            or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern)),
            Product.is_active.is_(True),
        )
        .order_by(Product.name.asc())
        .limit(SEARCH_LIMIT)
        .all()
    )


def _ensure_barcode_free(barcode: str | None, exclude_id: int | None = None) -> None:
    if not barcode:
        return
    query = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Barcode already in use: {barcode}")


def create_product(*, patch: dict, initial_quantity: int | None = None, min_quantity: int | None = None) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If the barcode is already used by another product
        ValidationError: If stock fields are negative
    """
    _ensure_barcode_free(patch.get("barcode"))
    for label, value in (("initial_quantity", initial_quantity), ("min_quantity", min_quantity)):
        if value is not None and value < 0:
            raise ValidationError(f"{label} must be >= 0")

    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)

    if initial_quantity is not None or min_quantity is not None:
        product.inventory = InventoryRecord(
            quantity=initial_quantity or 0,
            min_quantity=min_quantity or 0,
        )

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product conflicts with an existing product")
    return product


def update_product(product_id: int, patch: dict) -> Product:
    product = require_product(product_id)
    if "barcode" in patch:
        _ensure_barcode_free(patch["barcode"], exclude_id=product_id)
    apply_product_patch(product, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product conflicts with an existing product")
    return product


def delete_product(product_id: int) -> None:
    """
    Hard delete. The inventory record goes with it; past sale items keep
    their snapshot and a dangling product_id.
    """
    product = require_product(product_id)
    db.session.delete(product)
    db.session.commit()
