"""Sale composition: validation, payment math and invoice numbers."""

import random
import re
from datetime import datetime
from types import SimpleNamespace

import pytest

from buffet_pos.services.cart import Cart
from buffet_pos.services.sale_composer import (
    InsufficientPaymentError,
    compose_sale,
    generate_invoice_number,
)
from buffet_pos.validation import ValidationError


def cart_of(*lines):
    cart = Cart()
    for pid, price, qty in lines:
        item = cart.add_item(SimpleNamespace(id=pid, name=f"Item {pid}", price_cents=price))
        item.quantity = qty
    return cart


class TestComposeSale:
    def test_empty_cart_rejected(self):
        with pytest.raises(ValidationError, match="Cart is empty"):
            compose_sale(Cart(), payment_method="cash", cashier_id=1, amount_received_cents=1000)

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError, match="payment_method"):
            compose_sale(cart_of((1, 1000, 1)), payment_method="bitcoin", cashier_id=1)

    def test_negative_discount_rejected(self):
        with pytest.raises(ValidationError, match="discount_cents"):
            compose_sale(cart_of((1, 1000, 1)), payment_method="card", cashier_id=1, discount_cents=-1)

    def test_cash_requires_amount_received(self):
        with pytest.raises(ValidationError, match="amount_received_cents"):
            compose_sale(cart_of((1, 1000, 1)), payment_method="cash", cashier_id=1)

    def test_cash_insufficient(self):
        with pytest.raises(InsufficientPaymentError) as exc:
            compose_sale(
                cart_of((1, 1500, 2)),
                payment_method="cash",
                cashier_id=1,
                amount_received_cents=2000,
            )
        assert exc.value.details == {
            "total_cents": 3000,
            "amount_received_cents": 2000,
            "short_by_cents": 1000,
        }

    def test_cash_change_and_discount(self):
        draft = compose_sale(
            cart_of((1, 1500, 2), (2, 250, 2)),
            payment_method="cash",
            cashier_id=7,
            discount_cents=500,
            amount_received_cents=5000,
            customer_id=3,
            notes="table 4",
        )
        assert draft.subtotal_cents == 3500
        assert draft.discount_cents == 500
        assert draft.total_cents == 3000
        assert draft.amount_received_cents == 5000
        assert draft.change_cents == 2000
        assert draft.tax_cents == 0
        assert draft.status == "completed"
        assert draft.cashier_id == 7
        assert draft.customer_id == 3
        assert [(i.product_id, i.quantity, i.subtotal_cents) for i in draft.items] == [(1, 2, 3000), (2, 2, 500)]

    @pytest.mark.parametrize("method", ["card", "credit"])
    def test_non_cash_received_equals_total(self, method):
        draft = compose_sale(
            cart_of((1, 1200, 1)),
            payment_method=method,
            cashier_id=1,
            amount_received_cents=99_999,
        )
        assert draft.amount_received_cents == 1200
        assert draft.change_cents == 0

    def test_items_snapshot_name_and_price(self):
        product = SimpleNamespace(id=5, name="Dessert Bar", price_cents=600)
        cart = Cart()
        cart.add_item(product)
        draft = compose_sale(cart, payment_method="card", cashier_id=1)

        product.name = "Renamed"
        product.price_cents = 9999

        assert draft.items[0].product_name == "Dessert Bar"
        assert draft.items[0].unit_price_cents == 600

    def test_discount_over_subtotal_gives_zero_total(self):
        draft = compose_sale(
            cart_of((1, 500, 1)),
            payment_method="cash",
            cashier_id=1,
            discount_cents=800,
            amount_received_cents=0,
        )
        assert draft.total_cents == 0
        assert draft.change_cents == 0


class TestInvoiceNumber:
    def test_format(self):
        number = generate_invoice_number(now=datetime(2026, 10, 18, 12, 30))
        assert re.fullmatch(r"INV-20261018-\d{4}", number)

    def test_same_seed_same_day_collides(self):
        now = datetime(2026, 10, 18, 9, 0)
        first = generate_invoice_number(now=now, rng=random.Random(1234))
        second = generate_invoice_number(now=now, rng=random.Random(1234))
        assert first == second

    def test_composed_draft_uses_explicit_number(self):
        draft = compose_sale(
            cart_of((1, 100, 1)),
            payment_method="card",
            cashier_id=1,
            invoice_number="INV-20261018-0001",
        )
        assert draft.invoice_number == "INV-20261018-0001"
