"""Tests for applicable expense resolution and statement lines."""

import logging
import pytest
from datetime import date
from decimal import Decimal

from taxiledger.domain.entities import ApplicationTypeCode, BillingMethod, PersonType, ShiftStatus, ShiftType
from taxiledger.domain.expense_calculation import UNCATEGORIZED_CODE, ExpenseCalculationService
from taxiledger.domain.expense_category import ExpenseCategoryService
from taxiledger.domain.one_time_expense import OneTimeExpenseService
from taxiledger.domain.recurring_expense import RecurringExpenseService
from taxiledger.domain.reports import StatementReport
from taxiledger.domain.resolver import ApplicationTypeResolver

JAN_FROM = date(2025, 1, 1)
JAN_TO = date(2025, 1, 31)


@pytest.fixture
def calculation(temp_db):
    return ExpenseCalculationService(temp_db)


@pytest.fixture
def recurring(temp_db):
    service = RecurringExpenseService(temp_db)

    def _create(application_type, amount, billing_method=BillingMethod.MONTHLY, **kwargs):
        kwargs.setdefault("effective_from", date(2024, 12, 1))
        return service.create_recurring_expense(
            category_id=kwargs.pop("category_id", None),
            application_type=application_type,
            amount=Decimal(amount),
            billing_method=billing_method,
            **kwargs,
        )

    return _create


@pytest.fixture
def lines_for(temp_db, calculation):
    """Run both expense passes for a person over January."""

    def _lines(person_id, start=JAN_FROM, end=JAN_TO):
        person = temp_db.get_driver(person_id)
        report = StatementReport(
            person_id=person.id,
            person_number=person.driver_number,
            person_name=person.full_name,
            person_type=PersonType.OWNER if person.is_owner else PersonType.DRIVER,
            period_from=start,
            period_to=end,
        )
        shifts = ApplicationTypeResolver(temp_db).shifts_owned_by(person.id, end)
        calculation.add_recurring_expenses_to_statement(report, person, shifts, start, end)
        calculation.add_one_time_expenses_to_statement(report, person, shifts, start, end)
        report.calculate_totals()
        return report

    return _lines


def test_all_active_shifts_expands_one_line_per_shift(fleet_service, recurring, lines_for, fleet):
    cab_404 = fleet_service.register_cab("404", fleet["alice"], date(2024, 1, 1))
    night_404 = [s for s in fleet_service.get_cab_shifts(cab_404) if s.shift_type == ShiftType.NIGHT][0]
    fleet_service.set_shift_status(night_404.id, ShiftStatus.INACTIVE)
    recurring(ApplicationTypeCode.ALL_ACTIVE_SHIFTS, "300")

    report = lines_for(fleet["alice"])

    assert len(report.recurring_charges) == 3
    assert [line.amount for line in report.recurring_charges] == [Decimal("300.00")] * 3
    assert sorted(line.entity_description for line in report.recurring_charges) == [
        "Cab 101 - DAY",
        "Cab 101 - NIGHT",
        "Cab 404 - DAY",
    ]
    assert report.total_recurring_expenses == Decimal("900.00")


def test_all_active_shifts_not_charged_to_non_owner(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.ALL_ACTIVE_SHIFTS, "300")
    assert lines_for(fleet["dan"]).recurring_charges == []


def test_profile_expense_billed_to_owner_not_driver(fleet_service, recurring, lines_for, drive, fleet):
    profile_id = fleet_service.create_profile("AIRPORT", "Airport shifts")
    fleet_service.assign_profile(fleet["day_101"], profile_id)
    recurring(ApplicationTypeCode.SHIFT_PROFILE, "40", shift_profile_id=profile_id)
    drive("D300", "101", ShiftType.DAY, date(2025, 1, 6), miles="100")

    driver_report = lines_for(fleet["dan"])
    owner_report = lines_for(fleet["alice"])

    assert driver_report.recurring_charges == []
    assert [line.amount for line in owner_report.recurring_charges] == [Decimal("40.00")]
    assert owner_report.recurring_charges[0].entity_description == "Cab 101 - DAY"


def test_profile_expense_not_billed_to_other_owner(fleet_service, recurring, lines_for, fleet):
    profile_id = fleet_service.create_profile("AIRPORT", "Airport shifts")
    fleet_service.assign_profile(fleet["day_101"], profile_id)
    recurring(ApplicationTypeCode.SHIFT_PROFILE, "40", shift_profile_id=profile_id)

    assert lines_for(fleet["bob"]).recurring_charges == []


def test_specific_cab_is_one_line_for_its_owner(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.SPECIFIC_CAB, "100", cab_id=fleet["cab_101"])

    report = lines_for(fleet["alice"])

    assert len(report.recurring_charges) == 1
    assert report.recurring_charges[0].amount == Decimal("100.00")
    assert report.recurring_charges[0].entity_description == "Cab 101 - DAY, Cab 101 - NIGHT"
    assert lines_for(fleet["bob"]).recurring_charges == []


def test_attribute_expense_expands_over_tagged_shifts(fleet_service, recurring, lines_for, fleet):
    attribute_id = fleet_service.create_attribute_type("CNG", "Natural gas conversion")
    fleet_service.set_shift_attribute(fleet["night_101"], attribute_id, date(2024, 6, 1))
    fleet_service.set_shift_attribute(fleet["day_202"], attribute_id, date(2024, 6, 1))
    recurring(ApplicationTypeCode.SHIFTS_WITH_ATTRIBUTE, "62", attribute_type_id=attribute_id)

    alice = lines_for(fleet["alice"])
    bob = lines_for(fleet["bob"])

    assert [(l.shift_id, l.amount) for l in alice.recurring_charges] == [(fleet["night_101"], Decimal("62.00"))]
    assert [(l.shift_id, l.amount) for l in bob.recurring_charges] == [(fleet["day_202"], Decimal("62.00"))]


def test_owner_and_driver_wide_expenses(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.ALL_OWNERS, "25")
    recurring(ApplicationTypeCode.ALL_DRIVERS, "15")

    alice = lines_for(fleet["alice"])
    dan = lines_for(fleet["dan"])

    assert [l.amount for l in alice.recurring_charges] == [Decimal("25.00")]
    assert [l.amount for l in dan.recurring_charges] == [Decimal("15.00")]


def test_legacy_driver_code_is_charged_like_all_drivers(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.ALL_NON_OWNER_DRIVERS, "15")
    assert [l.amount for l in lines_for(fleet["dan"]).recurring_charges] == [Decimal("15.00")]


def test_specific_person_expense(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.SPECIFIC_PERSON, "31", driver_id=fleet["dan"])

    assert [l.entity_description for l in lines_for(fleet["dan"]).recurring_charges] == ["Dan Driver"]
    assert lines_for(fleet["bob"]).recurring_charges == []


def test_per_shift_expense_counts_completed_driven_shifts(recurring, lines_for, drive, fleet):
    recurring(ApplicationTypeCode.SPECIFIC_PERSON, "5", BillingMethod.PER_SHIFT, driver_id=fleet["dan"])
    drive("D300", "101", ShiftType.DAY, date(2025, 1, 6))
    drive("D300", "101", ShiftType.DAY, date(2025, 1, 7))
    drive("D300", "202", ShiftType.NIGHT, date(2025, 1, 8))
    drive("D300", "202", ShiftType.NIGHT, date(2025, 2, 3))

    report = lines_for(fleet["dan"])

    assert [l.amount for l in report.recurring_charges] == [Decimal("15.00")]


def test_per_shift_expense_on_a_shift_counts_its_driven_shifts(recurring, lines_for, drive, fleet):
    recurring(ApplicationTypeCode.SPECIFIC_SHIFT, "3", BillingMethod.PER_SHIFT, shift_id=fleet["day_101"])
    drive("D300", "101", ShiftType.DAY, date(2025, 1, 6))
    drive("O200", "101", ShiftType.DAY, date(2025, 1, 9))
    drive("D300", "101", ShiftType.NIGHT, date(2025, 1, 10))

    assert [l.amount for l in lines_for(fleet["alice"]).recurring_charges] == [Decimal("6.00")]


def test_expense_outside_period_is_not_applicable(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.ALL_OWNERS, "25", effective_from=date(2025, 3, 1))
    assert lines_for(fleet["alice"]).recurring_charges == []


def test_partial_month_uses_proration(recurring, lines_for, fleet):
    recurring(ApplicationTypeCode.ALL_OWNERS, "300", effective_from=date(2025, 1, 16))
    assert [l.amount for l in lines_for(fleet["alice"]).recurring_charges] == [Decimal("154.84")]


def test_category_labels_on_lines(temp_db, recurring, lines_for, fleet):
    category_id = ExpenseCategoryService(temp_db).create_category("DUES", "Association dues")
    recurring(ApplicationTypeCode.ALL_OWNERS, "25", category_id=category_id)
    recurring(ApplicationTypeCode.SPECIFIC_PERSON, "10", owner_id=fleet["alice"])

    codes = sorted(l.category_code for l in lines_for(fleet["alice"]).recurring_charges)

    assert codes == ["DUES", UNCATEGORIZED_CODE]


def test_applicable_expenses_are_listed_once(calculation, temp_db, recurring, fleet):
    expense_id = recurring(ApplicationTypeCode.SPECIFIC_CAB, "100", cab_id=fleet["cab_101"])
    alice = temp_db.get_driver(fleet["alice"])
    shifts = ApplicationTypeResolver(temp_db).shifts_owned_by(alice.id, JAN_TO)

    expenses = calculation.get_applicable_recurring_expenses(alice, shifts, JAN_FROM, JAN_TO)

    assert [e.id for e in expenses] == [expense_id]


def test_one_time_expenses(temp_db, lines_for, fleet):
    service = OneTimeExpenseService(temp_db)
    service.create_expense(
        None, ApplicationTypeCode.SPECIFIC_SHIFT, Decimal("180.00"), date(2025, 1, 12),
        name="Brake repair", shift_id=fleet["day_101"],
    )
    service.create_expense(
        None, ApplicationTypeCode.ALL_ACTIVE_SHIFTS, Decimal("20.00"), date(2025, 1, 20), name="Car wash"
    )
    service.create_expense(
        None, ApplicationTypeCode.SPECIFIC_SHIFT, Decimal("99.00"), date(2025, 2, 2), shift_id=fleet["day_101"]
    )

    report = lines_for(fleet["alice"])

    assert sorted(l.amount for l in report.one_time_charges) == [Decimal("20.00"), Decimal("20.00"), Decimal("180.00")]
    assert report.total_one_time_expenses == Decimal("220.00")
    assert lines_for(fleet["dan"]).one_time_charges == []


def test_broken_expense_is_skipped_and_logged(temp_db, recurring, lines_for, fleet, caplog):
    recurring(ApplicationTypeCode.ALL_OWNERS, "25")
    # Names both an owner and a driver, which no valid person target does
    temp_db.create_recurring_expense(
        category_id=None,
        application_type=ApplicationTypeCode.SPECIFIC_PERSON,
        amount=Decimal("10"),
        billing_method=BillingMethod.MONTHLY,
        effective_from=date(2024, 12, 1),
        owner_id=fleet["alice"],
        driver_id=fleet["alice"],
    )

    with caplog.at_level(logging.ERROR, logger="taxiledger"):
        report = lines_for(fleet["alice"])

    assert [l.amount for l in report.recurring_charges] == [Decimal("25.00")]
    assert report.skipped_items == 1
    assert "Skipping recurring expense" in caplog.text
