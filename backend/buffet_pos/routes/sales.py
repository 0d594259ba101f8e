# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/buffet_pos/routes/sales.py
"""Sales API routes: checkout, history and refunds"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_permission, current_context
from ..services import checkout_service, receipt_service, refund_service, sales_service
from ..services.checkout_service import CheckoutError
from ..services.refund_service import RefundError, SaleNotFoundError, SaleAlreadyRefundedError
from ..services.sale_composer import InsufficientPaymentError
from ..time_utils import parse_iso_datetime, parse_iso_date, end_of_day
from ..validation import ValidationError, parse_cents, parse_positive_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    """
    Recent sales, newest first.

    Query params:
    - limit: max rows (default SALES_LIST_DEFAULT_LIMIT, capped at 1000)
    - q: optional invoice number or customer name fragment
    """
    default_limit = current_app.config.get("SALES_LIST_DEFAULT_LIMIT", 100)
    try:
        limit = parse_positive_int(request.args.get("limit", default_limit), "limit")
        sales = sales_service.list_sales(limit=limit, q=request.args.get("q"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [s.to_dict(include_parties=True) for s in sales],
        "count": len(sales),
    }), 200


@sales_bp.get("/range")
@require_auth
@require_permission("VIEW_SALES")
def sales_in_range_route():
    """
    Sales between two points in time.

    Query params:
    - start, end: ISO-8601 datetimes, or plain YYYY-MM-DD dates (end date is inclusive)
    - status: optional "completed" / "refunded"
    """
    try:
        start = _parse_bound(request.args.get("start"), "start", inclusive_end=False)
        end = _parse_bound(request.args.get("end"), "end", inclusive_end=True)
        sales = sales_service.sales_in_range(start, end, status=request.args.get("status"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [s.to_dict(include_parties=True) for s in sales],
        "count": len(sales),
    }), 200


def _parse_bound(raw, field: str, *, inclusive_end: bool):
    if not raw:
        return None
    try:
        # A bare date as the end bound covers that whole day
        if inclusive_end and len(raw.strip()) == 10:
            return end_of_day(parse_iso_date(raw))
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime")


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    """Sale with its items, customer and cashier."""
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict(include_items=True, include_parties=True)}), 200


@sales_bp.post("/<int:sale_id>/receipt")
@require_auth
@require_permission("VIEW_SALES")
def print_receipt_route(sale_id: int):
    """
    Rebuild the receipt for a past sale and send it to the printer.

    Body (optional):
    {
      "paper_size": "55mm" | "88mm"
    }

    A printer failure is reported in "warnings", not as an error.
    """
    data = request.get_json(silent=True) or {}
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    receipt = receipt_service.build_receipt(sale, paper_size=data.get("paper_size"))
    warning = receipt_service.try_print(receipt)
    return jsonify({
        "receipt": receipt,
        "warnings": [warning] if warning else [],
    }), 200


@sales_bp.post("/checkout")
@require_auth
@require_permission("CREATE_SALE")
def checkout_route():
    """
    Complete a sale from the POS cart.

    Body:
    {
      "items": [{"product_id": 1, "quantity": 2}, ...],
      "payment_method": "cash" | "card" | "credit",
      "discount_cents": 0,
      "amount_received_cents": 5000,   # cash only
      "customer_id": 7,                # optional
      "notes": "...",                  # optional
      "print_receipt": true            # optional, default true
    }

    The cashier is the authenticated profile.
    """
    context = current_context()
    data = request.get_json(silent=True) or {}

    try:
        discount_cents = parse_cents(data.get("discount_cents"), "discount_cents", required=False) or 0
        amount_received_cents = parse_cents(
            data.get("amount_received_cents"), "amount_received_cents", required=False
        )
        customer_id = data.get("customer_id")
        if customer_id is not None:
            customer_id = parse_positive_int(customer_id, "customer_id")

        result = checkout_service.checkout(
            data.get("items") or [],
            cashier_id=context.profile_id,
            payment_method=data.get("payment_method"),
            discount_cents=discount_cents,
            customer_id=customer_id,
            amount_received_cents=amount_received_cents,
            notes=data.get("notes"),
            print_receipt=data.get("print_receipt", True) is not False,
        )
        return jsonify(result.to_dict()), 201

    except InsufficientPaymentError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to complete checkout")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/refund")
@require_auth
@require_permission("REFUND_SALE")
def refund_sale_route(sale_id: int):
    """
    Refund a completed sale: restores stock and reverses the customer's
    purchase total. Loyalty points stay with the customer.
    """
    context = current_context()
    try:
        sale = refund_service.refund_sale(sale_id, actor_id=context.profile_id)
        return jsonify({"sale": sale.to_dict(include_items=True, include_parties=True)}), 200

    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SaleAlreadyRefundedError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except RefundError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to refund sale")
        return jsonify({"error": "Internal server error"}), 500
