"""Revenue / expense / profit summary."""

from datetime import date, datetime

import pytest

from buffet_pos.extensions import db
from buffet_pos.services import checkout_service, expense_service, reporting_service
from buffet_pos.services.refund_service import refund_sale
from buffet_pos.services.reporting_service import ReportError


def ring_up(cashier, product, quantity, when, payment_method="card"):
    result = checkout_service.checkout(
        [{"product_id": product.id, "quantity": quantity}],
        cashier_id=cashier.id,
        payment_method=payment_method,
    )
    result.sale.created_at = when
    db.session.commit()
    return result.sale


@pytest.fixture
def october(cashier, manager, plate, drink):
    ring_up(cashier, plate, 2, datetime(2026, 10, 1, 12, 0))      # 3000
    ring_up(cashier, drink, 1, datetime(2026, 10, 1, 19, 30), "credit")  # 250
    ring_up(cashier, plate, 1, datetime(2026, 10, 2, 13, 0))      # 1500
    refunded = ring_up(cashier, plate, 3, datetime(2026, 10, 2, 14, 0))  # 4500, refunded below
    ring_up(cashier, plate, 1, datetime(2026, 11, 5, 12, 0))      # outside range
    refund_sale(refunded.id, actor_id=manager.id)

    expense_service.create_expense(
        {"category": "ingredients", "amount_cents": 1200, "expense_date": date(2026, 10, 1)},
        recorded_by_id=manager.id,
    )
    expense_service.create_expense(
        {"category": "ingredients", "amount_cents": 300, "expense_date": date(2026, 10, 2)},
        recorded_by_id=manager.id,
    )
    expense_service.create_expense(
        {"category": "utilities", "amount_cents": 500, "expense_date": date(2026, 10, 31)},
        recorded_by_id=manager.id,
    )


def test_summary(october):
    report = reporting_service.summary(start="2026-10-01", end="2026-10-31")

    assert report["revenue_cents"] == 3000 + 250 + 1500
    assert report["expenses_cents"] == 2000
    assert report["profit_cents"] == 4750 - 2000
    assert report["margin_percent"] == round(2750 * 100 / 4750, 1)
    assert report["transactions"] == 3
    assert report["average_ticket_cents"] == round(4750 / 3)
    assert report["refunded_count"] == 1
    assert report["refunded_cents"] == 4500
    assert report["daily"] == [
        {"date": "2026-10-01", "revenue_cents": 3250, "transactions": 2},
        {"date": "2026-10-02", "revenue_cents": 1500, "transactions": 1},
    ]
    assert report["expenses_by_category"] == {"ingredients": 1500, "utilities": 500}
    assert report["payment_methods"] == {"card": 2, "credit": 1}


def test_end_date_is_inclusive(october):
    report = reporting_service.summary(start="2026-10-02", end="2026-10-02")
    assert report["revenue_cents"] == 1500
    assert report["expenses_cents"] == 300


def test_empty_range(db_session):
    report = reporting_service.summary(start="2020-01-01", end="2020-01-31")
    assert report["revenue_cents"] == 0
    assert report["margin_percent"] is None
    assert report["average_ticket_cents"] == 0
    assert report["daily"] == []
    assert report["payment_methods"] == {}


@pytest.mark.parametrize(
    "start,end",
    [(None, "2026-10-01"), ("2026-10-05", "2026-10-01"), ("October", "2026-10-31")],
)
def test_bad_ranges(db_session, start, end):
    with pytest.raises(ReportError):
        reporting_service.summary(start=start, end=end)


def test_summary_route(client, manager_headers, october):
    resp = client.get("/api/reports/summary?start=2026-10-01&end=2026-10-31", headers=manager_headers)
    assert resp.status_code == 200
    assert resp.json["profit_cents"] == 2750

    resp = client.get("/api/reports/summary?start=2026-10-01", headers=manager_headers)
    assert resp.status_code == 400
