# Overview: Receipt payload for a finalized sale and the best-effort print attempt.

from __future__ import annotations

from flask import current_app

from ..models import Sale
from ..time_utils import to_utc_z
from . import settings_service


PAPER_SIZES = ("55mm", "88mm")
PRINT_FAILED_WARNING = "Sale completed but the receipt could not be printed"


def build_receipt(sale: Sale, *, paper_size: str | None = None) -> dict:
    """
    Everything a receipt printer needs, as plain data.

    Layout and markup are the printer's concern; this only gathers the
    sale, its lines and the store-level labels.
    """
    store = settings_service.as_dict()
    paper_size = paper_size or store.get("paper_size") or current_app.config.get("DEFAULT_PAPER_SIZE", "88mm")
    if paper_size not in PAPER_SIZES:
        paper_size = "88mm"

    return {
        "store_name": store.get("store_name") or current_app.config.get("DEFAULT_STORE_NAME"),
        "currency": store.get("currency") or None,
        "footer": store.get("receipt_footer") or None,
        "paper_size": paper_size,
        "invoice_number": sale.invoice_number,
        "created_at": to_utc_z(sale.created_at),
        "cashier": sale.cashier.username if sale.cashier else None,
        "customer": sale.customer.name if sale.customer else None,
        "lines": [
            {
                "name": item.product_name,
                "quantity": item.quantity,
                "unit_price_cents": item.unit_price_cents,
                "subtotal_cents": item.subtotal_cents,
            }
            for item in sale.items
        ],
        "subtotal_cents": sale.subtotal_cents,
        "discount_cents": sale.discount_cents,
        "tax_cents": sale.tax_cents,
        "total_cents": sale.total_cents,
        "payment_method": sale.payment_method,
        "amount_received_cents": sale.amount_received_cents,
        "change_cents": sale.change_cents,
    }


def try_print(receipt: dict) -> str | None:
    """
    Hand the receipt to the configured printer.

    Returns None on success or when no printer is configured, and a warning
    message when the printer fails. Never raises: the sale is already
    committed by the time this runs.
    """
    printer = current_app.config.get("RECEIPT_PRINTER")
    if printer is None:
        return None
    try:
        printer(receipt)
    except Exception:
        current_app.logger.warning(
            "Receipt print failed for %s", receipt.get("invoice_number"), exc_info=True
        )
        return PRINT_FAILED_WARNING
    return None
