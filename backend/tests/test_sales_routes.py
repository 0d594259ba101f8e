"""Checkout, history and refund through the HTTP API."""

import pytest

from buffet_pos.extensions import db
from buffet_pos.models import InventoryRecord, Sale


def stock_of(product_id):
    return db.session.query(InventoryRecord).filter_by(product_id=product_id).one().quantity


@pytest.fixture
def checkout(client, cashier_headers):
    def _checkout(body):
        return client.post("/api/sales/checkout", json=body, headers=cashier_headers)
    return _checkout


class TestCheckoutRoute:
    def test_cash_checkout(self, checkout, plate, customer, cashier):
        resp = checkout({
            "items": [{"product_id": plate.id, "quantity": 2}],
            "payment_method": "cash",
            "amount_received_cents": 5000,
            "customer_id": customer.id,
        })
        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["invoice_number"].startswith("INV-")
        assert sale["total_cents"] == 3000
        assert sale["change_cents"] == 2000
        assert sale["cashier"]["id"] == cashier.id
        assert sale["customer"]["total_purchases_cents"] == 3000
        assert len(sale["items"]) == 1
        assert resp.json["loyalty_points_awarded"] == 3
        assert resp.json["warnings"] == []
        assert stock_of(plate.id) == 8

    def test_insufficient_cash_is_400_with_details(self, checkout, plate):
        resp = checkout({
            "items": [{"product_id": plate.id, "quantity": 2}],
            "payment_method": "cash",
            "amount_received_cents": 1000,
        })
        assert resp.status_code == 400
        assert resp.json["details"]["short_by_cents"] == 2000
        assert db.session.query(Sale).count() == 0

    def test_empty_cart_is_400(self, checkout, plate):
        resp = checkout({"items": [], "payment_method": "card"})
        assert resp.status_code == 400
        assert resp.json["error"] == "Cart is empty"

    def test_bad_discount_is_400(self, checkout, plate):
        resp = checkout({
            "items": [{"product_id": plate.id}],
            "payment_method": "card",
            "discount_cents": "ten",
        })
        assert resp.status_code == 400

    def test_printer_failure_returns_warning(self, app, checkout, plate, monkeypatch):
        def broken(receipt):
            raise RuntimeError("paper jam")

        monkeypatch.setitem(app.config, "RECEIPT_PRINTER", broken)
        resp = checkout({"items": [{"product_id": plate.id}], "payment_method": "card"})
        assert resp.status_code == 201
        assert len(resp.json["warnings"]) == 1


class TestSalesHistory:
    def test_list_and_get(self, client, checkout, cashier_headers, plate, drink):
        first = checkout({"items": [{"product_id": plate.id}], "payment_method": "card"}).json["sale"]
        second = checkout({"items": [{"product_id": drink.id}], "payment_method": "credit"}).json["sale"]

        resp = client.get("/api/sales?limit=10", headers=cashier_headers)
        assert resp.status_code == 200
        assert [s["id"] for s in resp.json["items"]] == [second["id"], first["id"]]

        resp = client.get("/api/sales?limit=1", headers=cashier_headers)
        assert resp.json["count"] == 1

        resp = client.get(f"/api/sales/{first['id']}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["items"][0]["product_name"] == "Adult Buffet"

    def test_get_missing_sale(self, client, cashier_headers):
        assert client.get("/api/sales/999", headers=cashier_headers).status_code == 404

    def test_bad_limit(self, client, cashier_headers):
        assert client.get("/api/sales?limit=0", headers=cashier_headers).status_code == 400

    def test_search_by_invoice_or_customer(self, client, checkout, cashier_headers, plate, customer):
        walk_in = checkout({"items": [{"product_id": plate.id}], "payment_method": "card"}).json["sale"]
        regular = checkout({
            "items": [{"product_id": plate.id}],
            "payment_method": "card",
            "customer_id": customer.id,
        }).json["sale"]

        resp = client.get("/api/sales?q=souza", headers=cashier_headers)
        assert resp.status_code == 200
        assert [s["id"] for s in resp.json["items"]] == [regular["id"]]

        resp = client.get(f"/api/sales?q={walk_in['invoice_number'].lower()}", headers=cashier_headers)
        assert [s["id"] for s in resp.json["items"]] == [walk_in["id"]]

        resp = client.get("/api/sales?q=nobody", headers=cashier_headers)
        assert resp.json["count"] == 0

        resp = client.get("/api/sales?q=%20", headers=cashier_headers)
        assert resp.json["count"] == 2

    def test_range(self, client, checkout, cashier_headers, plate):
        checkout({"items": [{"product_id": plate.id}], "payment_method": "card"})

        resp = client.get("/api/sales/range?start=2000-01-01&end=2999-12-31", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

        resp = client.get("/api/sales/range?start=2000-01-01&end=2000-01-02", headers=cashier_headers)
        assert resp.json["count"] == 0

        resp = client.get("/api/sales/range?start=yesterday", headers=cashier_headers)
        assert resp.status_code == 400


class TestRefundRoute:
    def test_refund_then_double_refund(self, client, checkout, cashier_headers, plate):
        sale = checkout({"items": [{"product_id": plate.id, "quantity": 4}], "payment_method": "card"}).json["sale"]
        assert stock_of(plate.id) == 6

        resp = client.post(f"/api/sales/{sale['id']}/refund", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["status"] == "refunded"
        assert stock_of(plate.id) == 10

        resp = client.post(f"/api/sales/{sale['id']}/refund", headers=cashier_headers)
        assert resp.status_code == 409
        assert stock_of(plate.id) == 10

    def test_refund_missing_sale(self, client, cashier_headers):
        assert client.post("/api/sales/12345/refund", headers=cashier_headers).status_code == 404


class TestReceiptReprint:
    def test_reprint_sends_receipt_to_printer(self, app, client, checkout, cashier_headers, plate, monkeypatch):
        sale = checkout({
            "items": [{"product_id": plate.id, "quantity": 2}],
            "payment_method": "card",
            "print_receipt": False,
        }).json["sale"]

        printed = []
        monkeypatch.setitem(app.config, "RECEIPT_PRINTER", printed.append)
        resp = client.post(f"/api/sales/{sale['id']}/receipt", json={"paper_size": "55mm"}, headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.json["warnings"] == []
        receipt = resp.json["receipt"]
        assert receipt["invoice_number"] == sale["invoice_number"]
        assert receipt["paper_size"] == "55mm"
        assert receipt["total_cents"] == 3000
        assert receipt["lines"][0]["name"] == "Adult Buffet"
        assert printed == [receipt]
        assert stock_of(plate.id) == 8

    def test_reprint_printer_failure_is_a_warning(self, app, client, checkout, cashier_headers, plate, monkeypatch):
        sale = checkout({"items": [{"product_id": plate.id}], "payment_method": "card"}).json["sale"]

        def broken(receipt):
            raise RuntimeError("out of paper")

        monkeypatch.setitem(app.config, "RECEIPT_PRINTER", broken)
        resp = client.post(f"/api/sales/{sale['id']}/receipt", headers=cashier_headers)
        assert resp.status_code == 200
        assert len(resp.json["warnings"]) == 1
        assert resp.json["receipt"]["invoice_number"] == sale["invoice_number"]

    def test_reprint_missing_sale(self, client, cashier_headers):
        assert client.post("/api/sales/999/receipt", headers=cashier_headers).status_code == 404

    def test_reprint_requires_auth(self, client, db_session):
        assert client.post("/api/sales/1/receipt").status_code == 401
