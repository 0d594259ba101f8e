# Overview: Service-layer operations for customers and their loyalty counters.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Customer
from ..time_utils import utcnow
from ..validation import NotFoundError
from .concurrency import clamped_add


CUSTOMER_MUTABLE_FIELDS = {"name", "email", "phone", "loyalty_points", "total_purchases_cents"}
SEARCH_LIMIT = 20


def loyalty_points_for(total_cents: int) -> int:
    """Points earned by a sale: one per LOYALTY_POINT_VALUE_CENTS of total, rounded down."""
    point_value = current_app.config.get("LOYALTY_POINT_VALUE_CENTS", 1000)
    if total_cents <= 0:
        return 0
    return total_cents // point_value


def list_customers() -> list[Customer]:
    return db.session.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def require_customer(customer_id: int) -> Customer:
    customer = get_customer(customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def search_customers(term: str) -> list[Customer]:
    pattern = f"%{term.strip()}%"
    return (
        db.session.query(Customer)
        .filter(or_(
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
        .order_by(Customer.name.asc())
        .limit(SEARCH_LIMIT)
        .all()
    )


def create_customer(patch: dict) -> Customer:
    customer = Customer(
        name=patch["name"],
        email=patch.get("email"),
        phone=patch.get("phone"),
        loyalty_points=patch.get("loyalty_points") or 0,
        total_purchases_cents=patch.get("total_purchases_cents") or 0,
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, patch: dict) -> Customer:
    customer = require_customer(customer_id)
    for key, value in patch.items():
        if key in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(customer_id: int) -> None:
    """Delete a customer; their past sales keep existing with customer_id cleared."""
    customer = require_customer(customer_id)
    db.session.delete(customer)
    db.session.commit()


def add_loyalty_points(customer_id: int, points: int, *, commit: bool = True) -> bool:
    """
    Atomically add (or, with a negative value, remove) points. Not clamped.

    Returns False if the customer does not exist.
    """
    updated = (
        db.session.query(Customer)
        .filter(Customer.id == customer_id)
        .update(
            {
                Customer.loyalty_points: Customer.loyalty_points + points,
                Customer.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
    )
    _refresh(customer_id)
    if commit:
        db.session.commit()
    return bool(updated)


def adjust_total_purchases(customer_id: int, delta_cents: int) -> bool:
    """Atomically shift the accumulated purchase total, floored at 0. Does not commit."""
    updated = (
        db.session.query(Customer)
        .filter(Customer.id == customer_id)
        .update(
            {
                Customer.total_purchases_cents: clamped_add(Customer.total_purchases_cents, delta_cents),
                Customer.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
    )
    _refresh(customer_id)
    return bool(updated)


def _refresh(customer_id: int) -> None:
    # Bulk UPDATE bypasses the identity map; reload any instance already in the session
    customer = db.session.get(Customer, customer_id)
    if customer is not None:
        db.session.refresh(customer)
