"""Tests for recurring expense proration."""

import pytest
from datetime import date
from decimal import Decimal

from taxiledger.domain.entities import ApplicationTypeCode, BillingMethod, RecurringExpense
from taxiledger.domain.errors import ValidationError
from taxiledger.domain.proration import (
    calculate_amount_for_date_range,
    calculate_total_for_versions,
    prorate_monthly,
    round_money,
)


def _expense(amount, effective_from, effective_to=None, billing_method=BillingMethod.MONTHLY, expense_id=1):
    return RecurringExpense(
        id=expense_id,
        category_id=None,
        application_type=ApplicationTypeCode.ALL_ACTIVE_SHIFTS,
        amount=Decimal(amount),
        billing_method=billing_method,
        effective_from=effective_from,
        effective_to=effective_to,
        is_active=effective_to is None,
    )


def test_full_month_charges_whole_amount():
    expense = _expense("300", date(2025, 1, 1))
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31)) == Decimal("300.00")


def test_partial_month_is_prorated_by_days():
    """16 of January's 31 days."""
    expense = _expense("300", date(2025, 1, 1))
    assert calculate_amount_for_date_range(expense, date(2025, 1, 16), date(2025, 1, 31)) == Decimal("154.84")


def test_repeated_calls_return_identical_results():
    expense = _expense("300", date(2025, 1, 1))
    first = calculate_amount_for_date_range(expense, date(2025, 1, 16), date(2025, 3, 5))
    second = calculate_amount_for_date_range(expense, date(2025, 1, 16), date(2025, 3, 5))
    assert first == second


def test_range_spanning_months_sums_each_month():
    expense = _expense("300", date(2025, 1, 1))
    # 300 * 16/31 = 154.84 and 300 * 10/28 = 107.14
    assert calculate_amount_for_date_range(expense, date(2025, 1, 16), date(2025, 2, 10)) == Decimal("261.98")


def test_each_month_is_rounded_before_summing():
    # 1/30 rounds to 0.03 and 1/31 rounds to 0.03; rounding the sum would give 0.07
    assert prorate_monthly(Decimal("1.00"), date(2025, 4, 30), date(2025, 5, 1)) == Decimal("0.06")


def test_effective_window_clips_the_query_range():
    expense = _expense("310", date(2025, 1, 11), date(2025, 1, 20))
    # Only 10 of January's 31 days are charged
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31)) == Decimal("100.00")


def test_no_overlap_is_zero():
    expense = _expense("300", date(2025, 3, 1))
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 2, 28)) == Decimal("0.00")


def test_expense_ending_before_range_is_zero():
    expense = _expense("300", date(2024, 1, 1), date(2024, 12, 31))
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31)) == Decimal("0.00")


def test_inverted_range_is_rejected():
    expense = _expense("300", date(2025, 1, 1))
    with pytest.raises(ValidationError):
        calculate_amount_for_date_range(expense, date(2025, 1, 31), date(2025, 1, 1))


def test_daily_billing_counts_inclusive_days():
    expense = _expense("12.50", date(2025, 1, 1), billing_method=BillingMethod.DAILY)
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 10)) == Decimal("125.00")


def test_daily_billing_does_not_prorate_by_month_length():
    expense = _expense("10", date(2025, 1, 1), billing_method=BillingMethod.DAILY)
    assert calculate_amount_for_date_range(expense, date(2025, 1, 30), date(2025, 2, 2)) == Decimal("40.00")


def test_per_shift_billing_multiplies_occurrences():
    expense = _expense("15.00", date(2025, 1, 1), billing_method=BillingMethod.PER_SHIFT)
    amount = calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31), shift_occurrences=4)
    assert amount == Decimal("60.00")


def test_per_shift_billing_requires_a_count():
    expense = _expense("15.00", date(2025, 1, 1), billing_method=BillingMethod.PER_SHIFT)
    with pytest.raises(ValidationError, match="shift count"):
        calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31))


def test_per_shift_billing_outside_window_is_zero_without_count():
    expense = _expense("15.00", date(2025, 6, 1), billing_method=BillingMethod.PER_SHIFT)
    assert calculate_amount_for_date_range(expense, date(2025, 1, 1), date(2025, 1, 31)) == Decimal("0.00")


def test_versions_split_at_rate_change_cover_every_day_once():
    old = _expense("200", date(2025, 11, 1), date(2026, 2, 28), expense_id=1)
    new = _expense("225", date(2026, 3, 1), expense_id=2)

    total = calculate_total_for_versions([old, new], date(2026, 2, 15), date(2026, 3, 15))

    # 200 * 14/28 = 100.00 and 225 * 15/31 = 108.87
    assert total == Decimal("208.87")
    assert total == calculate_amount_for_date_range(old, date(2026, 2, 15), date(2026, 3, 15)) + (
        calculate_amount_for_date_range(new, date(2026, 2, 15), date(2026, 3, 15))
    )


def test_round_money_is_half_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("2.344")) == Decimal("2.34")
