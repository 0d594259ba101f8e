# Overview: Read-side queries over sales history.

"""
Sales history queries.

Writing sales lives in checkout_service (create) and refund_service
(refund); this module only reads.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Customer, Sale
from ..validation import ValidationError


MAX_LIST_LIMIT = 1000


def list_sales(limit: int = 100, *, q: str | None = None) -> list[Sale]:
    """
    Most recent sales first, with customer and cashier loaded.

    q narrows the list to sales whose invoice number or customer name
    contains it (case-insensitive). Walk-in sales match on invoice only.
    """
    if limit <= 0:
        raise ValidationError("limit must be > 0")
    limit = min(limit, MAX_LIST_LIMIT)
    query = db.session.query(Sale).options(joinedload(Sale.customer), joinedload(Sale.cashier))

    term = (q or "").strip()
    if term:
        like = f"%{term}%"
        query = query.outerjoin(Customer, Sale.customer_id == Customer.id).filter(
            db.or_(Sale.invoice_number.ilike(like), Customer.name.ilike(like))
        )

    return (
        query
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )


def get_sale(sale_id: int) -> Sale | None:
    """Sale with items, customer and cashier."""
    return (
        db.session.query(Sale)
        .options(selectinload(Sale.items), joinedload(Sale.customer), joinedload(Sale.cashier))
        .filter(Sale.id == sale_id)
        .first()
    )


def sales_in_range(start: datetime | None, end: datetime | None, *, status: str | None = None) -> list[Sale]:
    """Sales created within [start, end] (either bound optional), newest first."""
    if start and end and start > end:
        raise ValidationError("start must be before end")
    query = db.session.query(Sale).options(joinedload(Sale.customer), joinedload(Sale.cashier))
    if start:
        query = query.filter(Sale.created_at >= start)
    if end:
        query = query.filter(Sale.created_at <= end)
    if status:
        query = query.filter(Sale.status == status)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()
