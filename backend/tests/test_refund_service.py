"""
Refund reversal tests.

Verifies:
- Stock is restored and the sale flips to refunded
- The customer's purchase total is reversed, loyalty points are kept
- A second refund is rejected and changes nothing
- Version conflicts are retried; failures that persist leave the sale untouched
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from buffet_pos.extensions import db
from buffet_pos.models import Customer, InventoryRecord, Sale
from buffet_pos.services import (
    checkout_service,
    concurrency,
    customers_service,
    inventory_service,
    products_service,
)
from buffet_pos.services.refund_service import (
    RefundError,
    SaleAlreadyRefundedError,
    SaleNotFoundError,
    refund_sale,
)


def stock_of(product_id):
    return db.session.query(InventoryRecord).filter_by(product_id=product_id).one().quantity


@pytest.fixture
def sale_with_customer(cashier, plate, drink, customer):
    result = checkout_service.checkout(
        [{"product_id": plate.id, "quantity": 3}, {"product_id": drink.id, "quantity": 1}],
        cashier_id=cashier.id,
        payment_method="card",
        customer_id=customer.id,
    )
    return result.sale


def test_refund_restores_stock_and_flips_status(sale_with_customer, manager, plate, drink):
    assert stock_of(plate.id) == 7
    assert stock_of(drink.id) == 1

    sale = refund_sale(sale_with_customer.id, actor_id=manager.id)

    assert sale.status == "refunded"
    assert sale.refunded_at is not None
    assert sale.refunded_by_id == manager.id
    assert stock_of(plate.id) == 10
    assert stock_of(drink.id) == 2


def test_refund_reverses_total_but_keeps_points(sale_with_customer, customer):
    before = db.session.get(Customer, customer.id)
    assert before.total_purchases_cents == 4750
    assert before.loyalty_points == 4

    refund_sale(sale_with_customer.id)

    after = db.session.get(Customer, customer.id)
    assert after.total_purchases_cents == 0
    assert after.loyalty_points == 4


def test_refund_total_floors_at_zero(sale_with_customer, customer):
    # Manual correction left the customer's total below this sale's total
    db.session.get(Customer, customer.id).total_purchases_cents = 1000
    db.session.commit()

    refund_sale(sale_with_customer.id)

    assert db.session.get(Customer, customer.id).total_purchases_cents == 0


def test_double_refund_rejected_without_changes(sale_with_customer, plate, customer):
    refund_sale(sale_with_customer.id)
    assert stock_of(plate.id) == 10

    with pytest.raises(SaleAlreadyRefundedError) as exc:
        refund_sale(sale_with_customer.id)

    assert exc.value.details["sale_id"] == sale_with_customer.id
    assert stock_of(plate.id) == 10
    assert db.session.get(Customer, customer.id).total_purchases_cents == 0
    assert db.session.get(Sale, sale_with_customer.id).status == "refunded"


def test_missing_sale(db_session):
    with pytest.raises(SaleNotFoundError):
        refund_sale(424242)


def test_not_found_is_a_refund_error(db_session):
    with pytest.raises(RefundError, match="Sale not found"):
        refund_sale(1)


def test_deleted_product_line_is_skipped(cashier, plate, drink):
    result = checkout_service.checkout(
        [{"product_id": plate.id, "quantity": 2}, {"product_id": drink.id, "quantity": 2}],
        cashier_id=cashier.id,
        payment_method="card",
    )
    drink_id = drink.id
    products_service.delete_product(drink_id)

    sale = refund_sale(result.sale.id)

    assert sale.status == "refunded"
    assert stock_of(plate.id) == 10
    assert db.session.query(InventoryRecord).filter_by(product_id=drink_id).first() is None
    assert [item.product_name for item in sale.items] == ["Adult Buffet", "Iced Tea"]


class TestRefundConcurrency:
    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)

    def test_stale_version_is_retried(self, sale_with_customer, manager, plate, drink, customer, monkeypatch):
        real_restore = inventory_service.restore
        calls = []

        def restore_once_stale(product_id, amount):
            calls.append(product_id)
            if len(calls) == 1:
                raise StaleDataError("sales row version changed")
            return real_restore(product_id, amount)

        monkeypatch.setattr(inventory_service, "restore", restore_once_stale)

        sale = refund_sale(sale_with_customer.id, actor_id=manager.id)

        assert sale.status == "refunded"
        assert stock_of(plate.id) == 10
        assert stock_of(drink.id) == 2
        assert db.session.get(Customer, customer.id).total_purchases_cents == 0
        # first attempt died on its first line, the retry restored both lines
        assert len(calls) == 3

    def test_persistent_lock_failure_changes_nothing(self, sale_with_customer, plate, drink, customer, monkeypatch):
        attempts = []

        def always_locked(product_id, amount):
            attempts.append(product_id)
            raise OperationalError("UPDATE inventory", {}, Exception("database is locked"))

        monkeypatch.setattr(inventory_service, "restore", always_locked)

        with pytest.raises(RefundError, match="could not be saved"):
            refund_sale(sale_with_customer.id)

        assert len(attempts) == 3
        assert db.session.get(Sale, sale_with_customer.id).status == "completed"
        assert stock_of(plate.id) == 7
        assert stock_of(drink.id) == 1
        assert db.session.get(Customer, customer.id).total_purchases_cents == 4750

    def test_other_database_errors_are_not_retried(self, sale_with_customer, plate, customer, monkeypatch):
        calls = []

        def broken(customer_id, delta_cents):
            calls.append(customer_id)
            raise IntegrityError("UPDATE customers", {}, Exception("constraint failed"))

        monkeypatch.setattr(customers_service, "adjust_total_purchases", broken)

        with pytest.raises(RefundError) as exc:
            refund_sale(sale_with_customer.id)

        assert exc.value.details == {"sale_id": sale_with_customer.id}
        assert calls == [customer.id]
        assert db.session.get(Sale, sale_with_customer.id).status == "completed"
        assert stock_of(plate.id) == 7
