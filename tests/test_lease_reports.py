"""Tests for lease revenue, lease expense and reconciliation reports."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from taxiledger.domain.entities import CabType, DriverShiftStatus, ShiftStatus, ShiftType
from taxiledger.domain.errors import NotFoundError, ValidationError
from taxiledger.domain.lease_reports import LeaseReportService
from taxiledger.domain.reports import ReconciliationStatus

JAN_FROM = date(2025, 1, 1)
JAN_TO = date(2025, 1, 31)


@pytest.fixture
def report_service(temp_db):
    return LeaseReportService(temp_db)


@pytest.fixture
def january(lease_plan, drive, fleet):
    """A week of driving in January 2025.

    D300 drives 101 DAY (85.00) and 202 NIGHT (72.50), O200 drives 101 NIGHT
    (80.00), O100 drives its own 101 NIGHT and D300 has a cancelled shift.
    """
    return {
        "dan_101": drive("D300", "101", ShiftType.DAY, date(2025, 1, 6), miles="100"),
        "dan_202": drive("D300", "202", ShiftType.NIGHT, date(2025, 1, 7)),
        "bob_101": drive("O200", "101", ShiftType.NIGHT, date(2025, 1, 7), miles="40"),
        "alice_own": drive("O100", "101", ShiftType.NIGHT, date(2025, 1, 6), miles="90"),
        "cancelled": drive(
            "D300", "101", ShiftType.DAY, date(2025, 1, 8), miles="50", status=DriverShiftStatus.CANCELLED
        ),
    }


def test_lease_revenue_for_owner(report_service, january):
    report = report_service.calculate_lease_revenue("O100", JAN_FROM, JAN_TO)

    assert [i.driver_shift_id for i in report.items] == [january["dan_101"], january["bob_101"]]
    assert report.total_base_lease == Decimal("130.00")
    assert report.total_mileage_lease == Decimal("35.00")
    assert report.grand_total_lease == Decimal("165.00")
    assert report.error_count == 0


def test_lease_expense_for_driver(report_service, january):
    report = report_service.calculate_lease_expense("D300", JAN_FROM, JAN_TO)

    assert [i.driver_shift_id for i in report.items] == [january["dan_101"], january["dan_202"]]
    assert [i.owner_number for i in report.items] == ["O100", "O200"]
    assert report.grand_total_lease == Decimal("157.50")


def test_self_driven_shift_is_in_neither_view(report_service, january):
    revenue = report_service.calculate_lease_revenue("O100", JAN_FROM, JAN_TO)
    expense = report_service.calculate_lease_expense("O100", JAN_FROM, JAN_TO)

    assert january["alice_own"] not in [i.driver_shift_id for i in revenue.items]
    assert expense.items == []
    assert expense.grand_total_lease == Decimal("0.00")


def test_cancelled_shift_is_not_leased(report_service, january):
    expense = report_service.calculate_lease_expense("D300", JAN_FROM, JAN_TO)
    assert january["cancelled"] not in [i.driver_shift_id for i in expense.items]


def test_owner_driving_another_owners_shift_pays_lease(report_service, january):
    expense = report_service.calculate_lease_expense("O200", JAN_FROM, JAN_TO)
    assert [i.total_lease for i in expense.items] == [Decimal("80.00")]


def test_both_views_total_the_same(report_service, january):
    revenue_total = sum(
        report_service.calculate_lease_revenue(owner, JAN_FROM, JAN_TO).grand_total_lease
        for owner in ("O100", "O200")
    )
    expense_total = sum(
        report_service.calculate_lease_expense(driver, JAN_FROM, JAN_TO).grand_total_lease
        for driver in ("O100", "O200", "D300")
    )
    assert revenue_total == expense_total == Decimal("237.50")


def test_debug_report_reconciles(report_service, january):
    report = report_service.generate_debug_report(JAN_FROM, JAN_TO)

    assert report.is_reconciled
    assert report.match_count == 3
    assert report.mismatch_count == 0
    assert report.total_expense_view == Decimal("237.50")
    assert report.total_revenue_view == Decimal("237.50")
    assert all(row.status == ReconciliationStatus.MATCH for row in report.rows)


def test_debug_report_flags_shift_seen_by_one_side(report_service, temp_db, january):
    # A shift logged under a driver number nobody is registered with only
    # shows up on the owner's side.
    orphan = temp_db.create_driver_shift(
        "GHOST", "202", ShiftType.DAY, datetime(2025, 1, 9, 6, 0), total_distance=Decimal("20")
    )

    report = report_service.generate_debug_report(JAN_FROM, JAN_TO)

    row = next(r for r in report.rows if r.driver_shift_id == orphan)
    assert row.status == ReconciliationStatus.MISSING_FROM_EXPENSE
    assert row.lease_from_expense == Decimal("0.00")
    assert row.lease_from_revenue == Decimal("65.00")
    assert not report.is_reconciled
    assert report.mismatch_count == 1
    assert report.total_difference == Decimal("-65.00")


def test_revenue_follows_ownership_transfer(report_service, fleet_service, drive, lease_plan, fleet):
    fleet_service.transfer_ownership(fleet["day_101"], fleet["bob"], date(2025, 1, 15))
    early = drive("D300", "101", ShiftType.DAY, date(2025, 1, 6), miles="100")
    late = drive("D300", "101", ShiftType.DAY, date(2025, 1, 20), miles="100")

    alice = report_service.calculate_lease_revenue("O100", JAN_FROM, JAN_TO)
    bob = report_service.calculate_lease_revenue("O200", JAN_FROM, JAN_TO)

    assert [i.driver_shift_id for i in alice.items] == [early]
    assert [i.driver_shift_id for i in bob.items] == [late]


def test_report_uses_default_rate_instead_of_failing(report_service, fleet_service, drive, lease_plan, fleet):
    fleet_service.register_cab("303", fleet["bob"], date(2024, 1, 1), cab_type=CabType.HANDICAP_VAN)
    drive("D300", "303", ShiftType.DAY, date(2025, 1, 6), miles="100")

    report = report_service.calculate_lease_expense("D300", JAN_FROM, JAN_TO)

    assert report.grand_total_lease == Decimal("50.00")
    assert report.error_count == 0


def test_report_validation(report_service, fleet):
    with pytest.raises(ValidationError):
        report_service.calculate_lease_revenue("O100", JAN_TO, JAN_FROM)
    with pytest.raises(NotFoundError):
        report_service.calculate_lease_expense("NOPE", JAN_FROM, JAN_TO)


def test_inactive_cab_shift_still_owes_lease(report_service, fleet_service, lease_plan, drive, fleet):
    drive("D300", "101", ShiftType.DAY, date(2025, 1, 6), miles="100")
    fleet_service.set_shift_status(fleet["day_101"], ShiftStatus.INACTIVE)

    revenue = report_service.calculate_lease_revenue("O100", JAN_FROM, JAN_TO)
    expense = report_service.calculate_lease_expense("D300", JAN_FROM, JAN_TO)
    debug = report_service.generate_debug_report(JAN_FROM, JAN_TO)

    assert revenue.grand_total_lease == Decimal("85.00")
    assert expense.grand_total_lease == Decimal("85.00")
    assert debug.is_reconciled
