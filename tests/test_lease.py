"""Tests for the lease calculation engine and overrides."""

import logging
import pytest
from datetime import date
from decimal import Decimal

from taxiledger.domain.entities import CabType, ShiftType
from taxiledger.domain.errors import NotFoundError, ValidationError
from taxiledger.domain.lease import (
    DEFAULT_BASE_LEASE_RATE,
    LeaseCalculationService,
    LeaseRateOverrideService,
    calculate_priority,
    effective_miles,
)
from taxiledger.domain.reports import RateSource

MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)


@pytest.fixture
def calculator(temp_db):
    return LeaseCalculationService(temp_db)


@pytest.fixture
def override_service(temp_db):
    return LeaseRateOverrideService(temp_db)


@pytest.fixture
def van(fleet_service, fleet):
    """Cab 303, a handicap van owned by O200; the lease plan has no van rates."""
    return fleet_service.register_cab("303", fleet["bob"], date(2024, 1, 1), cab_type=CabType.HANDICAP_VAN)


def _lease(temp_db, calculator, driver_shift_id, strict=True):
    driver_shift = temp_db.get_driver_shift(driver_shift_id)
    cab_shift, owner = calculator.resolve_parties(driver_shift)
    return calculator.calculate_lease_for_shift(driver_shift, cab_shift, owner, strict=strict)


def test_rate_table_lease(temp_db, calculator, lease_plan, drive, fleet):
    shift_id = drive("D300", "101", ShiftType.DAY, MONDAY, miles="100")

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.base_rate == Decimal("60.00")
    assert calc.mileage_rate == Decimal("0.25")
    assert calc.mileage_lease == Decimal("25.00")
    assert calc.total_lease == Decimal("85.00")
    assert calc.rate_source == RateSource.RATE_TABLE
    assert not calc.excluded


def test_night_rate_is_used_for_night_shift(temp_db, calculator, lease_plan, drive, fleet):
    shift_id = drive("D300", "101", ShiftType.NIGHT, MONDAY, miles="40")
    assert _lease(temp_db, calculator, shift_id).total_lease == Decimal("80.00")


@pytest.mark.parametrize("miles", [None, "0"])
def test_unrecorded_miles_count_as_ten(temp_db, calculator, lease_plan, drive, fleet, miles):
    shift_id = drive("D300", "101", ShiftType.DAY, MONDAY, miles=miles)

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.miles == Decimal("10")
    assert calc.mileage_lease == Decimal("2.50")
    assert calc.total_lease == Decimal("62.50")


def test_effective_miles():
    assert effective_miles(None) == Decimal("10")
    assert effective_miles(Decimal("0")) == Decimal("10")
    assert effective_miles(Decimal("0.5")) == Decimal("0.5")


def test_self_driven_shift_is_excluded(temp_db, calculator, lease_plan, drive, fleet):
    shift_id = drive("O100", "101", ShiftType.DAY, MONDAY, miles="100")

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.excluded
    assert calc.total_lease == Decimal("0.00")


def test_override_replaces_base_rate_but_keeps_table_mileage(
    temp_db, calculator, override_service, lease_plan, drive, fleet
):
    override_service.create_override("O100", Decimal("55.00"), date(2025, 1, 1))
    shift_id = drive("D300", "101", ShiftType.DAY, MONDAY, miles="100")

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.rate_source == RateSource.OVERRIDE
    assert calc.base_rate == Decimal("55.00")
    assert calc.mileage_lease == Decimal("25.00")
    assert calc.total_lease == Decimal("80.00")


def test_most_specific_override_wins(temp_db, calculator, override_service, lease_plan, drive, fleet):
    override_service.create_override("O100", Decimal("55.00"), date(2025, 1, 1))
    override_service.create_override("O100", Decimal("50.00"), date(2025, 1, 1), cab_number="101")
    override_service.create_override(
        "O100", Decimal("45.00"), date(2025, 1, 1), cab_number="101", shift_type=ShiftType.DAY, day_of_week=0
    )
    monday = drive("D300", "101", ShiftType.DAY, MONDAY, miles="100")
    tuesday = drive("D300", "101", ShiftType.DAY, TUESDAY, miles="100")

    assert _lease(temp_db, calculator, monday).base_rate == Decimal("45.00")
    assert _lease(temp_db, calculator, tuesday).base_rate == Decimal("50.00")


def test_equal_priority_prefers_newest_override(override_service, fleet):
    override_service.create_override("O100", Decimal("55.00"), date(2025, 1, 1), cab_number="101")
    newest = override_service.create_override("O100", Decimal("52.00"), date(2025, 1, 1), cab_number="101")

    chosen = override_service.find_applicable_override("O100", "101", ShiftType.DAY, MONDAY)

    assert chosen.id == newest


def test_explicit_priority_beats_specificity(override_service, fleet):
    owner_wide = override_service.create_override("O100", Decimal("40.00"), date(2025, 1, 1), priority=500)
    override_service.create_override("O100", Decimal("50.00"), date(2025, 1, 1), cab_number="101")

    assert override_service.find_applicable_override("O100", "101", ShiftType.DAY, MONDAY).id == owner_wide


def test_expired_and_deactivated_overrides_are_ignored(temp_db, calculator, override_service, lease_plan, drive, fleet):
    override_service.create_override("O100", Decimal("30.00"), date(2024, 1, 1), end_date=date(2024, 12, 31))
    deactivated = override_service.create_override("O100", Decimal("35.00"), date(2025, 1, 1))
    override_service.deactivate_override(deactivated)
    shift_id = drive("D300", "101", ShiftType.DAY, MONDAY, miles="100")

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.rate_source == RateSource.RATE_TABLE
    assert calc.base_rate == Decimal("60.00")


def test_override_of_other_owner_does_not_apply(override_service, fleet):
    override_service.create_override("O200", Decimal("20.00"), date(2025, 1, 1))
    assert override_service.find_applicable_override("O100", "101", ShiftType.DAY, MONDAY) is None


def test_missing_rate_is_not_found_when_strict(temp_db, calculator, lease_plan, drive, van):
    shift_id = drive("D300", "303", ShiftType.DAY, MONDAY, miles="100")
    with pytest.raises(NotFoundError, match="No applicable lease rate"):
        _lease(temp_db, calculator, shift_id)


def test_missing_rate_falls_back_to_default_when_not_strict(temp_db, calculator, lease_plan, drive, van, caplog):
    shift_id = drive("D300", "303", ShiftType.DAY, MONDAY, miles="100")

    with caplog.at_level(logging.WARNING, logger="taxiledger"):
        calc = _lease(temp_db, calculator, shift_id, strict=False)

    assert calc.rate_source == RateSource.DEFAULT
    assert calc.base_rate == DEFAULT_BASE_LEASE_RATE
    assert calc.mileage_lease == Decimal("0.00")
    assert calc.total_lease == Decimal("50.00")
    assert "default base rate" in caplog.text


def test_override_without_rate_row_has_no_mileage(temp_db, calculator, override_service, lease_plan, drive, van):
    override_service.create_override("O200", Decimal("40.00"), date(2025, 1, 1), cab_number="303")
    shift_id = drive("D300", "303", ShiftType.DAY, MONDAY, miles="100")

    calc = _lease(temp_db, calculator, shift_id)

    assert calc.base_rate == Decimal("40.00")
    assert calc.mileage_rate == Decimal("0.00")
    assert calc.total_lease == Decimal("40.00")


def test_no_active_plan_is_not_found(temp_db, calculator, drive, fleet):
    shift_id = drive("D300", "101", ShiftType.DAY, MONDAY, miles="100")
    with pytest.raises(NotFoundError):
        _lease(temp_db, calculator, shift_id)


def test_owner_on_shift_date_is_used(temp_db, calculator, fleet_service, lease_plan, drive, fleet):
    fleet_service.transfer_ownership(fleet["day_101"], fleet["bob"], TUESDAY)
    before = temp_db.get_driver_shift(drive("D300", "101", ShiftType.DAY, MONDAY))
    after = temp_db.get_driver_shift(drive("D300", "101", ShiftType.DAY, TUESDAY))

    assert calculator.resolve_parties(before)[1].driver_number == "O100"
    assert calculator.resolve_parties(after)[1].driver_number == "O200"


def test_calculate_priority():
    assert calculate_priority(None, None, None) == 0
    assert calculate_priority("101", None, None) == 50
    assert calculate_priority(None, ShiftType.DAY, None) == 30
    assert calculate_priority(None, None, 3) == 20
    assert calculate_priority("101", ShiftType.NIGHT, 3) == 100


def test_create_override_validation(override_service, fleet):
    with pytest.raises(NotFoundError):
        override_service.create_override("NOPE", Decimal("40"), date(2025, 1, 1))
    with pytest.raises(ValidationError, match="not an owner"):
        override_service.create_override("D300", Decimal("40"), date(2025, 1, 1))
    with pytest.raises(NotFoundError):
        override_service.create_override("O100", Decimal("40"), date(2025, 1, 1), cab_number="999")
    with pytest.raises(ValidationError):
        override_service.create_override("O100", Decimal("40"), date(2025, 1, 1), day_of_week=7)
    with pytest.raises(ValidationError):
        override_service.create_override("O100", Decimal("40"), date(2025, 2, 1), end_date=date(2025, 1, 1))
