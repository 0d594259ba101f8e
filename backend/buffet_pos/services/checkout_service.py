# Overview: Persists a composed sale and applies its inventory and loyalty side effects.

"""
Checkout Sequencer

ORDER (each step depends on the previous one):
1. Insert sale header -> generated sale id
2. Insert sale items tagged with that id
3. Decrement inventory per item (clamped at 0)
4. If a customer is attached: total_purchases += total,
   loyalty_points += floor(total / point value)

All four steps share one database transaction. Any failure rolls the whole
checkout back and surfaces as CheckoutError; a partial sale is never left
behind. Counter updates are single UPDATE statements evaluated by the
database.

Receipt printing happens after commit and cannot fail the sale.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Sale, SaleItem, Product
from ..validation import ValidationError
from . import customers_service, inventory_service, receipt_service
from .cart import Cart
from .sale_composer import SaleDraft, compose_sale


class CheckoutError(Exception):
    """Raised when persisting a checkout fails; nothing was committed."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class CheckoutResult:
    sale: Sale
    loyalty_points_awarded: int = 0
    receipt: dict | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(include_items=True, include_parties=True),
            "loyalty_points_awarded": self.loyalty_points_awarded,
            "receipt": self.receipt,
            "warnings": list(self.warnings),
        }


def load_cart(lines: list[dict]) -> Cart:
    """
    Resolve request lines to active products and build a cart.

    Raises ValidationError for unknown or inactive products.
    """
    if not isinstance(lines, list):
        raise ValidationError("items must be a list")

    product_ids = set()
    for line in lines:
        if isinstance(line, dict) and line.get("product_id") is not None:
            try:
                product_ids.add(int(line["product_id"]))
            except (TypeError, ValueError):
                continue  # reported by Cart.from_lines

    products = db.session.query(Product).filter(Product.id.in_(product_ids)).all() if product_ids else []
    products_by_id = {p.id: p for p in products}

    inactive = sorted(p.id for p in products if not p.is_active)
    if inactive:
        raise ValidationError(f"Products not available for sale: {', '.join(map(str, inactive))}")

    return Cart.from_lines(products_by_id, lines)


def record_sale(draft: SaleDraft) -> tuple[Sale, int]:
    """
    Run the four checkout steps in one transaction and commit.

    Returns (sale, loyalty_points_awarded). Raises ValidationError if the
    attached customer does not exist (checked before any write) and
    CheckoutError if a write fails.
    """
    if not draft.items:
        raise ValidationError("Cart is empty")
    if draft.customer_id is not None and customers_service.get_customer(draft.customer_id) is None:
        raise ValidationError("Customer not found")

    points = 0
    try:
        # 1. header
        sale = Sale(**draft.header_fields())
        db.session.add(sale)
        db.session.flush()

        # 2. items
        for item in draft.items:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=item.product_id,
                product_name=item.product_name,
                unit_price_cents=item.unit_price_cents,
                quantity=item.quantity,
                subtotal_cents=item.subtotal_cents,
            ))
        db.session.flush()

        # 3. inventory
        for item in draft.items:
            inventory_service.decrement(item.product_id, item.quantity)

        # 4. customer
        if draft.customer_id is not None:
            points = customers_service.loyalty_points_for(draft.total_cents)
            customers_service.adjust_total_purchases(draft.customer_id, draft.total_cents)
            customers_service.add_loyalty_points(draft.customer_id, points, commit=False)

        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Checkout %s rejected by database: %s", draft.invoice_number, exc.orig)
        raise CheckoutError(
            "Sale could not be saved (duplicate invoice number?)",
            details={"invoice_number": draft.invoice_number},
        ) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Checkout %s failed; rolled back", draft.invoice_number)
        raise CheckoutError("Sale could not be saved") from exc
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(sale)
    current_app.logger.info(
        "Sale %s recorded: total=%s items=%s customer=%s points=%s",
        sale.invoice_number, sale.total_cents, len(draft.items), sale.customer_id, points,
    )
    return sale, points


def checkout(
    lines: list[dict],
    *,
    cashier_id: int | None,
    payment_method: str,
    discount_cents: int = 0,
    customer_id: int | None = None,
    amount_received_cents: int | None = None,
    notes: str | None = None,
    print_receipt: bool = True,
) -> CheckoutResult:
    """Compose, persist and (optionally) print a sale in one call."""
    cart = load_cart(lines)
    draft = compose_sale(
        cart,
        payment_method=payment_method,
        cashier_id=cashier_id,
        discount_cents=discount_cents,
        customer_id=customer_id,
        amount_received_cents=amount_received_cents,
        notes=notes,
    )
    sale, points = record_sale(draft)

    result = CheckoutResult(sale=sale, loyalty_points_awarded=points)
    result.receipt = receipt_service.build_receipt(sale)
    if print_receipt:
        warning = receipt_service.try_print(result.receipt)
        if warning:
            result.warnings.append(warning)
    return result
