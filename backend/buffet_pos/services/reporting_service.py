# Overview: Service-layer operations for reporting; revenue, expenses and profit over a date range.

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime

from ..models.sales import SALE_STATUS_COMPLETED, SALE_STATUS_REFUNDED
from ..time_utils import end_of_day, parse_iso_date
from . import expense_service, sales_service


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[date, date]:
    try:
        start_d = parse_iso_date(start)
        end_d = parse_iso_date(end)
    except ValueError:
        raise ReportError("start and end must be YYYY-MM-DD dates")
    if start_d is None or end_d is None:
        raise ReportError("start and end are required")
    if start_d > end_d:
        raise ReportError("start must be on or before end")
    return start_d, end_d


def summary(*, start: str | None, end: str | None) -> dict:
    """
    Revenue/expense/profit summary between two dates, inclusive.

    Refunded sales are counted separately and excluded from revenue and
    from the payment method counts.
    """
    start_d, end_d = _parse_range(start, end)
    start_dt = datetime.combine(start_d, datetime.min.time())
    end_dt = end_of_day(end_d)

    sales = sales_service.sales_in_range(start_dt, end_dt)
    completed = [s for s in sales if s.status == SALE_STATUS_COMPLETED]
    refunded = [s for s in sales if s.status == SALE_STATUS_REFUNDED]
    expenses = expense_service.expenses_in_range(start_d, end_d)

    revenue = sum(s.total_cents for s in completed)
    expense_total = sum(e.amount_cents for e in expenses)
    profit = revenue - expense_total
    transactions = len(completed)

    daily: "OrderedDict[str, dict]" = OrderedDict()
    for sale in sorted(completed, key=lambda s: (s.created_at, s.id)):
        day = sale.created_at.date().isoformat()
        bucket = daily.setdefault(day, {"date": day, "revenue_cents": 0, "transactions": 0})
        bucket["revenue_cents"] += sale.total_cents
        bucket["transactions"] += 1

    payment_methods: dict[str, int] = {}
    for sale in completed:
        payment_methods[sale.payment_method] = payment_methods.get(sale.payment_method, 0) + 1

    expenses_by_category: dict[str, int] = {}
    for expense in expenses:
        expenses_by_category[expense.category] = expenses_by_category.get(expense.category, 0) + expense.amount_cents

    return {
        "start": start_d.isoformat(),
        "end": end_d.isoformat(),
        "revenue_cents": revenue,
        "expenses_cents": expense_total,
        "profit_cents": profit,
        "margin_percent": round(profit * 100 / revenue, 1) if revenue > 0 else None,
        "transactions": transactions,
        "average_ticket_cents": round(revenue / transactions) if transactions else 0,
        "refunded_count": len(refunded),
        "refunded_cents": sum(s.total_cents for s in refunded),
        "daily": list(daily.values()),
        "payment_methods": payment_methods,
        "expenses_by_category": expenses_by_category,
    }
