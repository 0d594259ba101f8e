# Overview: Service-layer operations for expenses.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Expense
from ..validation import NotFoundError, ValidationError


EXPENSE_MUTABLE_FIELDS = {"category", "amount_cents", "description", "expense_date"}


def list_expenses() -> list[Expense]:
    return (
        db.session.query(Expense)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .all()
    )


def expenses_in_range(start: date | None, end: date | None) -> list[Expense]:
    """Expenses whose expense_date falls within [start, end] inclusive."""
    if start and end and start > end:
        raise ValidationError("start must be before end")
    query = db.session.query(Expense)
    if start:
        query = query.filter(Expense.expense_date >= start)
    if end:
        query = query.filter(Expense.expense_date <= end)
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def require_expense(expense_id: int) -> Expense:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def create_expense(patch: dict, *, recorded_by_id: int | None) -> Expense:
    expense = Expense(
        category=patch["category"],
        amount_cents=patch["amount_cents"],
        description=patch.get("description"),
        expense_date=patch.get("expense_date") or date.today(),
        recorded_by_id=recorded_by_id,
    )
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(expense_id: int, patch: dict) -> Expense:
    expense = require_expense(expense_id)
    for key, value in patch.items():
        if key in EXPENSE_MUTABLE_FIELDS:
            setattr(expense, key, value)
    db.session.commit()
    return expense


def delete_expense(expense_id: int) -> None:
    expense = require_expense(expense_id)
    db.session.delete(expense)
    db.session.commit()
