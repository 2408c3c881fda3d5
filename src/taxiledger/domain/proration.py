"""Proration of recurring expenses over arbitrary date ranges."""

import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from taxiledger.domain.activity import intersect
from taxiledger.domain.entities import BillingMethod, RecurringExpense
from taxiledger.domain.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def effective_window(
    expense: RecurringExpense, query_from: date, query_to: date
) -> Optional[tuple[date, date]]:
    """Days of the query range on which the expense version is in effect."""
    if query_to < query_from:
        raise ValidationError(f"Range end {query_to} is before range start {query_from}")
    return intersect(expense.effective_from, expense.effective_to, query_from, query_to)


def prorate_monthly(amount: Decimal, first: date, last: date) -> Decimal:
    """Prorate a monthly amount over [first, last], month by month.

    Each calendar month contributes amount * charged_days / days_in_month,
    rounded half-up to cents before it is added to the total.
    """
    total = ZERO
    month_start = first.replace(day=1)
    while month_start <= last:
        days_in_month = calendar.monthrange(month_start.year, month_start.month)[1]
        month_end = month_start.replace(day=days_in_month)
        charged_from = max(first, month_start)
        charged_to = min(last, month_end)
        charged_days = (charged_to - charged_from).days + 1
        total += round_money(amount * Decimal(charged_days) / Decimal(days_in_month))
        month_start = month_start + relativedelta(months=1)
    return total


def calculate_amount_for_date_range(
    expense: RecurringExpense,
    query_from: date,
    query_to: date,
    shift_occurrences: Optional[int] = None,
) -> Decimal:
    """Charge attributable to one expense version over [query_from, query_to].

    Args:
        expense: Recurring expense version
        query_from: First day of the query range (inclusive)
        query_to: Last day of the query range (inclusive)
        shift_occurrences: For PER_SHIFT billing, how many matched shifts
            were driven inside the effective window

    Returns:
        Amount rounded to cents; zero when the ranges do not overlap

    Raises:
        ValidationError: If the range is inverted, or PER_SHIFT billing is
            asked for without an occurrence count
    """
    window = effective_window(expense, query_from, query_to)
    if window is None:
        return ZERO
    first, last = window

    if expense.billing_method == BillingMethod.MONTHLY:
        return prorate_monthly(expense.amount, first, last)

    if expense.billing_method == BillingMethod.DAILY:
        days = (last - first).days + 1
        return round_money(expense.amount * Decimal(days))

    if expense.billing_method == BillingMethod.PER_SHIFT:
        if shift_occurrences is None:
            raise ValidationError(
                f"Recurring expense {expense.id} is billed per shift; a shift count is required"
            )
        return round_money(expense.amount * Decimal(shift_occurrences))

    raise ValidationError(f"Unknown billing method: {expense.billing_method}")


def calculate_total_for_versions(
    versions: Iterable[RecurringExpense], query_from: date, query_to: date
) -> Decimal:
    """Sum of time-based proration over every version of one expense."""
    return sum(
        (calculate_amount_for_date_range(v, query_from, query_to) for v in versions),
        ZERO,
    )
