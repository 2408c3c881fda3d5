"""Tests for application type variants."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from taxiledger.domain.application_type import (
    AllActiveShifts,
    AllDrivers,
    AllOwners,
    AttributeTagged,
    ShiftProfileTarget,
    SpecificCab,
    SpecificPerson,
    SpecificShift,
    build_target,
    describe_target,
    is_expanded_per_shift,
    is_shift_based,
    target_of,
)
from taxiledger.domain.entities import (
    AppliesTo,
    ApplicationTypeCode,
    ExpenseCategory,
    OneTimeExpense,
)
from taxiledger.domain.errors import ValidationError


def test_build_target_for_each_code():
    assert build_target(ApplicationTypeCode.SPECIFIC_SHIFT, shift_id=4) == SpecificShift(4)
    assert build_target(ApplicationTypeCode.SPECIFIC_CAB, cab_id=2) == SpecificCab(2)
    assert build_target(ApplicationTypeCode.SHIFT_PROFILE, shift_profile_id=7) == ShiftProfileTarget(7)
    assert build_target(ApplicationTypeCode.SHIFTS_WITH_ATTRIBUTE, attribute_type_id=3) == AttributeTagged(3)
    assert build_target(ApplicationTypeCode.ALL_ACTIVE_SHIFTS) == AllActiveShifts()
    assert build_target(ApplicationTypeCode.ALL_OWNERS) == AllOwners()
    assert build_target(ApplicationTypeCode.ALL_DRIVERS) == AllDrivers()
    assert build_target(ApplicationTypeCode.SPECIFIC_PERSON, driver_id=9) == SpecificPerson(9)


def test_legacy_codes_resolve_like_their_replacements():
    assert build_target(ApplicationTypeCode.ALL_NON_OWNER_DRIVERS) == AllDrivers()
    assert build_target(ApplicationTypeCode.SPECIFIC_OWNER_DRIVER, owner_id=5) == SpecificPerson(5)


@pytest.mark.parametrize(
    "code, field_name",
    [
        (ApplicationTypeCode.SPECIFIC_SHIFT, "shift_id"),
        (ApplicationTypeCode.SPECIFIC_CAB, "cab_id"),
        (ApplicationTypeCode.SHIFT_PROFILE, "shift_profile_id"),
        (ApplicationTypeCode.SHIFTS_WITH_ATTRIBUTE, "attribute_type_id"),
    ],
)
def test_missing_target_field_is_a_validation_error(code, field_name):
    with pytest.raises(ValidationError, match=field_name):
        build_target(code)


def test_person_target_needs_exactly_one_person():
    with pytest.raises(ValidationError):
        build_target(ApplicationTypeCode.SPECIFIC_PERSON)
    with pytest.raises(ValidationError):
        build_target(ApplicationTypeCode.SPECIFIC_PERSON, owner_id=1, driver_id=2)


def test_target_of_one_time_expense():
    expense = OneTimeExpense(
        id=1,
        category_id=None,
        application_type=ApplicationTypeCode.SPECIFIC_CAB,
        amount=Decimal("80.00"),
        expense_date=date(2025, 1, 10),
        name="Windshield",
        description=None,
        cab_id=3,
    )
    assert target_of(expense) == SpecificCab(3)


def test_target_of_category_without_application_type_fails():
    category = ExpenseCategory(
        id=1,
        code="INS",
        name="Insurance",
        applies_to=AppliesTo.SHIFT,
        application_type=None,
        shift_profile_id=None,
        attribute_type_id=None,
        created_at=datetime(2025, 1, 1),
    )
    with pytest.raises(ValidationError):
        target_of(category)


def test_shift_based_and_expanded_variants():
    assert is_shift_based(ShiftProfileTarget(1))
    assert is_shift_based(AllActiveShifts())
    assert not is_shift_based(AllOwners())
    assert not is_shift_based(SpecificPerson(1))

    assert is_expanded_per_shift(AllActiveShifts())
    assert is_expanded_per_shift(AttributeTagged(2))
    assert not is_expanded_per_shift(ShiftProfileTarget(1))


def test_describe_target():
    assert describe_target(SpecificShift(4)) == "shift 4"
    assert describe_target(AllDrivers()) == "all non-owner drivers"
