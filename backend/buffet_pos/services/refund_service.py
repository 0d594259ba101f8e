# Overview: Reverses a completed sale: status flip, stock restore, purchase-total reversal.

"""
Refund Reverser

LIFECYCLE: completed -> refunded, one way. Refunding a sale that is already
refunded is rejected; it would otherwise restore stock and reverse the
customer's total a second time.

STEPS (one transaction, sale row locked and version-checked):
1. Load the sale with its items
2. Flip status to "refunded", stamp refunded_at / refunded_by_id
3. Per item, add the quantity back to the product's inventory
   (lines whose product or inventory record is gone are skipped)
4. If the sale has a customer: total_purchases -= total, floored at 0

Loyalty points earned by the sale are NOT taken back. Only the purchase
total is reversed; tests pin this behavior.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Sale
from ..models.sales import SALE_STATUS_COMPLETED, SALE_STATUS_REFUNDED
from ..time_utils import utcnow
from . import customers_service, inventory_service
from .concurrency import lock_for_update, run_with_retry


class RefundError(Exception):
    """Raised for refund operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(RefundError):
    pass


class SaleAlreadyRefundedError(RefundError):
    pass


def refund_sale(sale_id: int, *, actor_id: int | None = None) -> Sale:
    """Refund a completed sale and reverse its side effects."""
    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise SaleNotFoundError("Sale not found")

        if sale.status == SALE_STATUS_REFUNDED:
            raise SaleAlreadyRefundedError(
                "Sale already refunded",
                details={"sale_id": sale.id, "refunded_at": sale.refunded_at and sale.refunded_at.isoformat()},
            )
        if sale.status != SALE_STATUS_COMPLETED:
            raise RefundError(f"Cannot refund sale with status {sale.status}")

        items = list(sale.items)

        sale.status = SALE_STATUS_REFUNDED
        sale.refunded_at = utcnow()
        sale.refunded_by_id = actor_id
        db.session.flush()

        skipped = []
        for item in items:
            if item.product_id is None or not inventory_service.restore(item.product_id, item.quantity):
                skipped.append(item.id)

        if sale.customer_id is not None:
            customers_service.adjust_total_purchases(sale.customer_id, -sale.total_cents)

        db.session.commit()

        current_app.logger.info(
            "Sale %s refunded by %s; %s line(s) without inventory skipped",
            sale.invoice_number, actor_id, len(skipped),
        )
        return sale

    try:
        return run_with_retry(_op)
    except RefundError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Refund of sale %s failed; rolled back", sale_id)
        raise RefundError("Refund could not be saved", details={"sale_id": sale_id}) from exc
