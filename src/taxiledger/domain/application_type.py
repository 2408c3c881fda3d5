"""Application types as a closed sum type.

An expense row stores its targeting as a code plus a handful of nullable id
columns. ``target_of`` turns that into exactly one of the variants below,
validating that the id the code needs is present. Everything downstream
(the resolver, the expense orchestration) dispatches on the variant, never
on the raw code.
"""

from dataclasses import dataclass
from typing import Optional, Union

from taxiledger.domain.entities import (
    ApplicationTypeCode,
    ExpenseCategory,
    OneTimeExpense,
    RecurringExpense,
)
from taxiledger.domain.errors import ValidationError, missing_target_field


@dataclass(frozen=True)
class SpecificShift:
    shift_id: int


@dataclass(frozen=True)
class SpecificCab:
    cab_id: int


@dataclass(frozen=True)
class ShiftProfileTarget:
    profile_id: int


@dataclass(frozen=True)
class AttributeTagged:
    attribute_type_id: int


@dataclass(frozen=True)
class AllActiveShifts:
    pass


@dataclass(frozen=True)
class AllOwners:
    pass


@dataclass(frozen=True)
class AllDrivers:
    pass


@dataclass(frozen=True)
class SpecificPerson:
    person_id: int


ApplicationTarget = Union[
    SpecificShift,
    SpecificCab,
    ShiftProfileTarget,
    AttributeTagged,
    AllActiveShifts,
    AllOwners,
    AllDrivers,
    SpecificPerson,
]

# Variants whose charges belong to whoever owns the shift, never to its drivers.
SHIFT_BASED_TARGETS = (SpecificShift, SpecificCab, ShiftProfileTarget, AttributeTagged, AllActiveShifts)

# Variants rendered as one statement line per matching shift.
EXPANDED_TARGETS = (AllActiveShifts, AttributeTagged)

Targetable = Union[RecurringExpense, OneTimeExpense, ExpenseCategory]


def _require(code: ApplicationTypeCode, field_name: str, value: Optional[int]) -> int:
    if value is None:
        raise ValidationError(missing_target_field(code.value, field_name))
    return value


def build_target(
    code: ApplicationTypeCode,
    *,
    shift_id: Optional[int] = None,
    cab_id: Optional[int] = None,
    shift_profile_id: Optional[int] = None,
    attribute_type_id: Optional[int] = None,
    owner_id: Optional[int] = None,
    driver_id: Optional[int] = None,
) -> ApplicationTarget:
    """Build the variant for a stored application type code.

    Raises:
        ValidationError: If the id field the code requires is missing, or
            a person target names both an owner and a driver
    """
    if code == ApplicationTypeCode.SPECIFIC_SHIFT:
        return SpecificShift(_require(code, "shift_id", shift_id))
    if code == ApplicationTypeCode.SPECIFIC_CAB:
        return SpecificCab(_require(code, "cab_id", cab_id))
    if code == ApplicationTypeCode.SHIFT_PROFILE:
        return ShiftProfileTarget(_require(code, "shift_profile_id", shift_profile_id))
    if code == ApplicationTypeCode.SHIFTS_WITH_ATTRIBUTE:
        return AttributeTagged(_require(code, "attribute_type_id", attribute_type_id))
    if code == ApplicationTypeCode.ALL_ACTIVE_SHIFTS:
        return AllActiveShifts()
    if code == ApplicationTypeCode.ALL_OWNERS:
        return AllOwners()
    if code in (ApplicationTypeCode.ALL_DRIVERS, ApplicationTypeCode.ALL_NON_OWNER_DRIVERS):
        return AllDrivers()
    if code in (ApplicationTypeCode.SPECIFIC_PERSON, ApplicationTypeCode.SPECIFIC_OWNER_DRIVER):
        if owner_id is not None and driver_id is not None:
            raise ValidationError(
                f"Application type {code.value} takes exactly one of 'owner_id' or 'driver_id'"
            )
        person_id = owner_id if owner_id is not None else driver_id
        return SpecificPerson(_require(code, "owner_id or driver_id", person_id))
    raise ValidationError(f"Unknown application type: {code}")


def target_of(subject: Targetable) -> ApplicationTarget:
    """Return the targeting variant of an expense or expense category.

    Raises:
        ValidationError: If the subject has no application type or its
            targeting fields are incomplete
    """
    if isinstance(subject, ExpenseCategory):
        if subject.application_type is None:
            raise ValidationError(f"Expense category {subject.id} has no application type")
        return build_target(
            subject.application_type,
            shift_profile_id=subject.shift_profile_id,
            attribute_type_id=subject.attribute_type_id,
        )

    return build_target(
        subject.application_type,
        shift_id=subject.shift_id,
        cab_id=subject.cab_id,
        shift_profile_id=subject.shift_profile_id,
        attribute_type_id=subject.attribute_type_id,
        owner_id=subject.owner_id,
        driver_id=subject.driver_id,
    )


def describe_target(target: ApplicationTarget) -> str:
    """Short human-readable description of a target."""
    if isinstance(target, SpecificShift):
        return f"shift {target.shift_id}"
    if isinstance(target, SpecificCab):
        return f"cab {target.cab_id}"
    if isinstance(target, ShiftProfileTarget):
        return f"profile {target.profile_id}"
    if isinstance(target, AttributeTagged):
        return f"shifts with attribute {target.attribute_type_id}"
    if isinstance(target, AllActiveShifts):
        return "all active shifts"
    if isinstance(target, AllOwners):
        return "all owners"
    if isinstance(target, AllDrivers):
        return "all non-owner drivers"
    if isinstance(target, SpecificPerson):
        return f"person {target.person_id}"
    raise TypeError(f"Unhandled application target: {target!r}")


def is_shift_based(target: ApplicationTarget) -> bool:
    return isinstance(target, SHIFT_BASED_TARGETS)


def is_expanded_per_shift(target: ApplicationTarget) -> bool:
    return isinstance(target, EXPANDED_TARGETS)
