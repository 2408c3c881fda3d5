"""Application-type resolution.

Turns an expense or expense category into the concrete shifts, cabs or
drivers it charges as of a reference date. Resolution only reads from the
database.
"""

import logging
from datetime import date
from typing import Optional, Union

from taxiledger.database.base import Database
from taxiledger.domain.activity import is_cab_shift_active
from taxiledger.domain.application_type import (
    AllActiveShifts,
    AllDrivers,
    AllOwners,
    ApplicationTarget,
    AttributeTagged,
    ShiftProfileTarget,
    SpecificCab,
    SpecificPerson,
    SpecificShift,
    Targetable,
    target_of,
)
from taxiledger.domain.entities import Cab, CabShift, Driver, ShiftStatus
from taxiledger.domain.errors import (
    NotFoundError,
    cab_not_found,
    driver_not_found,
    shift_not_found,
)

logger = logging.getLogger(__name__)

ResolvedTarget = Union[CabShift, Cab, Driver]


def owner_id_on(db: Database, shift: CabShift, on_date: date) -> int:
    """Owner of a cab shift on a date.

    The ownership history row covering the date wins; a shift with no row
    covering the date falls back to its current owner.
    """
    ownership = db.get_shift_ownership_on(shift.id, on_date)
    if ownership is not None:
        return ownership.owner_id
    return shift.current_owner_id


class ApplicationTypeResolver:
    """Resolves application targets to fleet entities."""

    def __init__(self, db: Database):
        """Initialize resolver.

        Args:
            db: Database instance
        """
        self.db = db

    def resolve_targets(
        self,
        subject: Union[Targetable, ApplicationTarget],
        as_of: date,
        *,
        active_only: bool = False,
        owner_id: Optional[int] = None,
    ) -> list[ResolvedTarget]:
        """Resolve the entities an expense or category applies to.

        Args:
            subject: Expense, expense category, or an already-built target
            as_of: Reference date for attributes and ownership
            active_only: Keep only active shifts (shift-valued targets)
            owner_id: Keep only shifts owned by this owner on as_of
                (shift-valued targets)

        Returns:
            Cab shifts, a cab, or drivers depending on the target variant,
            ordered by ID

        Raises:
            NotFoundError: If a specific shift, cab or person no longer exists
            ValidationError: If the subject's targeting fields are incomplete
        """
        target = subject if isinstance(subject, _TARGET_TYPES) else target_of(subject)

        if isinstance(target, SpecificShift):
            shift = self.db.get_cab_shift(target.shift_id)
            if shift is None:
                raise NotFoundError(shift_not_found(target.shift_id))
            return self._filter_shifts([shift], as_of, active_only, owner_id)

        if isinstance(target, SpecificCab):
            cab = self.db.get_cab(target.cab_id)
            if cab is None:
                raise NotFoundError(cab_not_found(target.cab_id))
            return [cab]

        if isinstance(target, ShiftProfileTarget):
            shifts = self.db.list_cab_shifts(profile_id=target.profile_id)
            return self._filter_shifts(shifts, as_of, active_only, owner_id)

        if isinstance(target, AttributeTagged):
            values = self.db.list_shift_attributes(
                attribute_type_id=target.attribute_type_id, active_on=as_of
            )
            shifts = []
            for shift_id in sorted({v.shift_id for v in values}):
                shift = self.db.get_cab_shift(shift_id)
                if shift is not None:
                    shifts.append(shift)
            return self._filter_shifts(shifts, as_of, active_only, owner_id)

        if isinstance(target, (AllActiveShifts, AllOwners)):
            shifts = self.db.list_cab_shifts(status=ShiftStatus.ACTIVE)
            return self._filter_shifts(shifts, as_of, True, owner_id)

        if isinstance(target, AllDrivers):
            return list(self.db.list_drivers(is_owner=False))

        if isinstance(target, SpecificPerson):
            person = self.db.get_driver(target.person_id)
            if person is None:
                raise NotFoundError(driver_not_found(target.person_id))
            return [person]

        raise TypeError(f"Unhandled application target: {target!r}")

    def shifts_owned_by(self, owner_id: int, on_date: date, active_only: bool = False) -> list[CabShift]:
        """Cab shifts an owner holds on a date.

        Candidates are the owner's ownership history rows covering the date
        plus shifts naming them as current owner; each is then checked with
        owner_id_on so a transferred shift is never claimed twice.
        """
        candidate_ids = {
            o.shift_id
            for o in self.db.list_shift_ownerships(
                owner_id=owner_id, overlapping_from=on_date, overlapping_to=on_date
            )
        }
        candidate_ids.update(s.id for s in self.db.list_cab_shifts(owner_id=owner_id))

        shifts = []
        for shift_id in sorted(candidate_ids):
            shift = self.db.get_cab_shift(shift_id)
            if shift is None:
                continue
            if owner_id_on(self.db, shift, on_date) != owner_id:
                continue
            if active_only and not self.is_active(shift):
                continue
            shifts.append(shift)
        return shifts

    def is_active(self, shift: CabShift) -> bool:
        """The shift and its cab are both active."""
        return is_cab_shift_active(shift, self.db.list_cab_shifts(cab_id=shift.cab_id))

    def _filter_shifts(
        self,
        shifts: list[CabShift],
        as_of: date,
        active_only: bool,
        owner_id: Optional[int],
    ) -> list[CabShift]:
        result = []
        for shift in sorted(shifts, key=lambda s: s.id):
            if active_only and not self.is_active(shift):
                continue
            if owner_id is not None and owner_id_on(self.db, shift, as_of) != owner_id:
                continue
            result.append(shift)
        logger.debug("Resolved %d shift(s) as of %s", len(result), as_of)
        return result


_TARGET_TYPES = (
    SpecificShift,
    SpecificCab,
    ShiftProfileTarget,
    AttributeTagged,
    AllActiveShifts,
    AllOwners,
    AllDrivers,
    SpecificPerson,
)


def ensure_target_exists(db: Database, target: ApplicationTarget) -> None:
    """Check that the entity a target names is still present.

    Raises:
        NotFoundError: If the referenced shift, cab, profile, attribute type
            or person does not exist
    """
    if isinstance(target, SpecificShift) and db.get_cab_shift(target.shift_id) is None:
        raise NotFoundError(shift_not_found(target.shift_id))
    if isinstance(target, SpecificCab) and db.get_cab(target.cab_id) is None:
        raise NotFoundError(cab_not_found(target.cab_id))
    if isinstance(target, ShiftProfileTarget) and db.get_shift_profile(target.profile_id) is None:
        raise NotFoundError(f"Shift profile {target.profile_id} not found")
    if isinstance(target, AttributeTagged) and db.get_attribute_type(target.attribute_type_id) is None:
        raise NotFoundError(f"Attribute type {target.attribute_type_id} not found")
    if isinstance(target, SpecificPerson) and db.get_driver(target.person_id) is None:
        raise NotFoundError(driver_not_found(target.person_id))
