# Overview: Flask API routes for expenses; parses input and returns JSON responses.

# backend/buffet_pos/routes/expenses.py
"""
Expense tracking routes.

SECURITY: All routes require MANAGE_EXPENSES (admin, manager).
The recording profile is taken from the session, never from the body.
"""
from flask import Blueprint, request, jsonify

from ..models import Expense
from ..decorators import require_auth, require_permission, current_context
from ..services import expense_service
from ..time_utils import parse_iso_date
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    ValidationError,
    NotFoundError,
)


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"category", "amount_cents", "description", "expense_date"},
    required_on_create={"category", "amount_cents"},
)


@expenses_bp.get("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def list_expenses_route():
    """
    List expenses, newest expense_date first.

    Query params (optional, inclusive): start, end as YYYY-MM-DD
    """
    start_raw = request.args.get("start")
    end_raw = request.args.get("end")

    try:
        if start_raw or end_raw:
            try:
                start = parse_iso_date(start_raw)
                end = parse_iso_date(end_raw)
            except ValueError:
                raise ValidationError("start and end must be YYYY-MM-DD dates")
            expenses = expense_service.expenses_in_range(start, end)
        else:
            expenses = expense_service.list_expenses()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [e.to_dict(include_recorder=True) for e in expenses],
        "count": len(expenses),
        "total_cents": sum(e.amount_cents for e in expenses),
    }), 200


@expenses_bp.post("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def create_expense_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
        expense = expense_service.create_expense(patch, recorded_by_id=current_context().profile_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"expense": expense.to_dict(include_recorder=True)}), 201


@expenses_bp.patch("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def update_expense_route(expense_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
        expense = expense_service.update_expense(expense_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"expense": expense.to_dict(include_recorder=True)}), 200


@expenses_bp.delete("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(expense_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return "", 204
