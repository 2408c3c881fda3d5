"""Tests for application type resolution."""

import pytest
from datetime import date

from taxiledger.domain.application_type import (
    AllActiveShifts,
    AllDrivers,
    AllOwners,
    AttributeTagged,
    ShiftProfileTarget,
    SpecificCab,
    SpecificPerson,
    SpecificShift,
)
from taxiledger.domain.entities import ShiftStatus
from taxiledger.domain.errors import NotFoundError
from taxiledger.domain.resolver import ApplicationTypeResolver, owner_id_on


@pytest.fixture
def resolver(temp_db):
    return ApplicationTypeResolver(temp_db)


def _ids(entities):
    return [e.id for e in entities]


def test_specific_shift_resolves_to_that_shift(resolver, fleet):
    shifts = resolver.resolve_targets(SpecificShift(fleet["day_101"]), date(2025, 1, 1))
    assert _ids(shifts) == [fleet["day_101"]]


def test_missing_specific_shift_is_not_found(resolver, fleet):
    with pytest.raises(NotFoundError):
        resolver.resolve_targets(SpecificShift(9999), date(2025, 1, 1))


def test_missing_specific_cab_is_not_found(resolver, fleet):
    with pytest.raises(NotFoundError):
        resolver.resolve_targets(SpecificCab(9999), date(2025, 1, 1))


def test_specific_cab_resolves_to_the_cab(resolver, fleet):
    cabs = resolver.resolve_targets(SpecificCab(fleet["cab_202"]), date(2025, 1, 1))
    assert [c.cab_number for c in cabs] == ["202"]


def test_shift_profile_with_and_without_active_filter(resolver, fleet_service, fleet):
    profile_id = fleet_service.create_profile("AIRPORT", "Airport shifts")
    fleet_service.assign_profile(fleet["day_101"], profile_id)
    fleet_service.assign_profile(fleet["day_202"], profile_id)
    fleet_service.set_shift_status(fleet["day_202"], ShiftStatus.INACTIVE)

    all_shifts = resolver.resolve_targets(ShiftProfileTarget(profile_id), date(2025, 1, 1))
    active_shifts = resolver.resolve_targets(ShiftProfileTarget(profile_id), date(2025, 1, 1), active_only=True)

    assert _ids(all_shifts) == [fleet["day_101"], fleet["day_202"]]
    assert _ids(active_shifts) == [fleet["day_101"]]


def test_attribute_is_matched_only_while_in_effect(resolver, fleet_service, fleet):
    attribute_id = fleet_service.create_attribute_type("CNG", "Natural gas conversion")
    fleet_service.set_shift_attribute(fleet["night_101"], attribute_id, date(2025, 1, 1), "yes")
    fleet_service.end_shift_attribute(fleet["night_101"], attribute_id, date(2025, 3, 31))

    assert resolver.resolve_targets(AttributeTagged(attribute_id), date(2024, 12, 31)) == []
    assert _ids(resolver.resolve_targets(AttributeTagged(attribute_id), date(2025, 3, 31))) == [fleet["night_101"]]
    assert resolver.resolve_targets(AttributeTagged(attribute_id), date(2025, 4, 1)) == []


def test_all_active_shifts_restricted_to_owner(resolver, fleet):
    shifts = resolver.resolve_targets(AllActiveShifts(), date(2025, 1, 1), owner_id=fleet["alice"])
    assert _ids(shifts) == [fleet["day_101"], fleet["night_101"]]


def test_all_owners_skips_inactive_cab(resolver, fleet_service, fleet):
    fleet_service.set_shift_status(fleet["day_202"], ShiftStatus.INACTIVE)
    fleet_service.set_shift_status(fleet["night_202"], ShiftStatus.INACTIVE)

    shifts = resolver.resolve_targets(AllOwners(), date(2025, 1, 1))

    assert _ids(shifts) == [fleet["day_101"], fleet["night_101"]]


def test_shift_of_active_cab_is_active_even_if_other_shift_is_not(resolver, fleet_service, temp_db, fleet):
    fleet_service.set_shift_status(fleet["night_202"], ShiftStatus.INACTIVE)
    assert resolver.is_active(temp_db.get_cab_shift(fleet["day_202"]))
    assert not resolver.is_active(temp_db.get_cab_shift(fleet["night_202"]))


def test_all_drivers_excludes_owners(resolver, fleet):
    drivers = resolver.resolve_targets(AllDrivers(), date(2025, 1, 1))
    assert [d.driver_number for d in drivers] == ["D300"]


def test_specific_person(resolver, fleet):
    people = resolver.resolve_targets(SpecificPerson(fleet["bob"]), date(2025, 1, 1))
    assert [p.driver_number for p in people] == ["O200"]
    with pytest.raises(NotFoundError):
        resolver.resolve_targets(SpecificPerson(9999), date(2025, 1, 1))


def test_resolution_is_repeatable(resolver, fleet):
    first = resolver.resolve_targets(AllActiveShifts(), date(2025, 1, 1))
    second = resolver.resolve_targets(AllActiveShifts(), date(2025, 1, 1))
    assert first == second


def test_ownership_follows_transfer_dates(resolver, fleet_service, temp_db, fleet):
    fleet_service.transfer_ownership(fleet["night_101"], fleet["bob"], date(2025, 3, 1))
    night_101 = temp_db.get_cab_shift(fleet["night_101"])

    assert owner_id_on(temp_db, night_101, date(2025, 2, 28)) == fleet["alice"]
    assert owner_id_on(temp_db, night_101, date(2025, 3, 1)) == fleet["bob"]

    assert _ids(resolver.shifts_owned_by(fleet["alice"], date(2025, 2, 15))) == [fleet["day_101"], fleet["night_101"]]
    assert _ids(resolver.shifts_owned_by(fleet["alice"], date(2025, 3, 15))) == [fleet["day_101"]]
    assert fleet["night_101"] in _ids(resolver.shifts_owned_by(fleet["bob"], date(2025, 3, 15)))
    assert fleet["night_101"] not in _ids(resolver.shifts_owned_by(fleet["bob"], date(2025, 2, 15)))
