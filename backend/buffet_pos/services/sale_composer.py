# Overview: Turns a cart plus tender details into a validated sale draft; no database work.

"""
Sale composition.

WHY: Every rule that can reject a checkout (empty cart, bad tender, short
cash) runs here, before anything is written. The draft it returns is the
complete description of what the checkout sequencer will persist.

RULES:
- status always starts "completed", tax is always 0
- cash: amount received is required and must cover the total;
  change = received - total
- card / credit: amount received is recorded as the total, change is 0
- each item snapshots the product's current name and unit price
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime

from ..models.sales import PAYMENT_CASH, PAYMENT_METHODS, SALE_STATUS_COMPLETED
from ..time_utils import utcnow
from ..validation import ValidationError, parse_cents
from .cart import Cart


INVOICE_PREFIX = "INV"


class InsufficientPaymentError(ValidationError):
    """Cash tendered does not cover the sale total."""
    def __init__(self, total_cents: int, amount_received_cents: int):
        super().__init__("Insufficient amount received")
        self.details = {
            "total_cents": total_cents,
            "amount_received_cents": amount_received_cents,
            "short_by_cents": total_cents - amount_received_cents,
        }


@dataclass(frozen=True)
class SaleItemDraft:
    product_id: int
    product_name: str
    unit_price_cents: int
    quantity: int

    @property
    def subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class SaleDraft:
    invoice_number: str
    cashier_id: int | None
    customer_id: int | None
    payment_method: str
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    amount_received_cents: int
    change_cents: int
    items: tuple[SaleItemDraft, ...] = field(default_factory=tuple)
    tax_cents: int = 0
    status: str = SALE_STATUS_COMPLETED
    notes: str | None = None

    def header_fields(self) -> dict:
        return {
            "invoice_number": self.invoice_number,
            "cashier_id": self.cashier_id,
            "customer_id": self.customer_id,
            "payment_method": self.payment_method,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "amount_received_cents": self.amount_received_cents,
            "change_cents": self.change_cents,
            "status": self.status,
            "notes": self.notes,
        }


def generate_invoice_number(*, now: datetime | None = None, rng: random.Random | None = None) -> str:
    """
    INV-<YYYYMMDD>-<4 random digits>.

    Uniqueness is best effort: two draws on the same day collide with
    probability 1/10000. The sales.invoice_number unique constraint turns a
    collision into a failed insert rather than a duplicate.
    """
    now = now or utcnow()
    rng = rng or random
    return f"{INVOICE_PREFIX}-{now:%Y%m%d}-{rng.randrange(10000):04d}"


def compose_sale(
    cart: Cart,
    *,
    payment_method: str,
    cashier_id: int | None,
    discount_cents: int = 0,
    customer_id: int | None = None,
    amount_received_cents: int | None = None,
    notes: str | None = None,
    invoice_number: str | None = None,
) -> SaleDraft:
    """Validate checkout inputs and build the draft. Raises ValidationError."""
    if cart is None or cart.is_empty:
        raise ValidationError("Cart is empty")

    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    discount_cents = parse_cents(discount_cents, "discount_cents", required=False) or 0

    subtotal = cart.subtotal()
    total = cart.total(discount_cents)

    if payment_method == PAYMENT_CASH:
        if amount_received_cents is None:
            raise ValidationError("amount_received_cents is required for cash payments")
        received = parse_cents(amount_received_cents, "amount_received_cents")
        if received < total:
            raise InsufficientPaymentError(total, received)
        change = received - total
    else:
        received = total
        change = 0

    items = tuple(
        SaleItemDraft(
            product_id=item.product.id,
            product_name=item.product.name,
            unit_price_cents=item.product.price_cents,
            quantity=item.quantity,
        )
        for item in cart
    )

    return SaleDraft(
        invoice_number=invoice_number or generate_invoice_number(),
        cashier_id=cashier_id,
        customer_id=customer_id,
        payment_method=payment_method,
        subtotal_cents=subtotal,
        discount_cents=discount_cents,
        total_cents=total,
        amount_received_cents=received,
        change_cents=change,
        items=items,
        notes=notes,
    )
