"""Lease calculation engine and lease rate administration.

The lease for a driven shift is a base rate plus a mileage component. The
base rate comes from the most specific active override the owner has for
the cab, shift type and weekday, else from the rate table of the active
lease plan.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from taxiledger.database.base import Database
from taxiledger.domain.activity import is_effective_on
from taxiledger.domain.entities import (
    CabShift,
    CabType,
    Driver,
    DriverShift,
    LeaseRate,
    LeaseRateOverride,
    ShiftType,
)
from taxiledger.domain.errors import (
    NotFoundError,
    ValidationError,
    driver_number_not_found,
    no_lease_rate,
)
from taxiledger.domain.proration import ZERO, round_money
from taxiledger.domain.reports import LeaseCalculation, RateSource
from taxiledger.domain.resolver import owner_id_on

logger = logging.getLogger(__name__)

# Substituted when a driven shift has no recorded distance (None or zero).
DEFAULT_MILES_WHEN_UNRECORDED = Decimal("10")

# Base rate used by reports when neither an override nor a rate row applies.
DEFAULT_BASE_LEASE_RATE = Decimal("50.00")

CAB_SPECIFICITY = 50
SHIFT_TYPE_SPECIFICITY = 30
DAY_OF_WEEK_SPECIFICITY = 20

DAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


def calculate_priority(
    cab_number: Optional[str], shift_type: Optional[ShiftType], day_of_week: Optional[int]
) -> int:
    """Specificity score of an override; more constrained overrides score higher."""
    priority = 0
    if cab_number is not None:
        priority += CAB_SPECIFICITY
    if shift_type is not None:
        priority += SHIFT_TYPE_SPECIFICITY
    if day_of_week is not None:
        priority += DAY_OF_WEEK_SPECIFICITY
    return priority


def effective_miles(total_distance: Optional[Decimal]) -> Decimal:
    if total_distance is None or total_distance == 0:
        return DEFAULT_MILES_WHEN_UNRECORDED
    return total_distance


def override_applies(
    override: LeaseRateOverride, cab_number: str, shift_type: ShiftType, on_date: date
) -> bool:
    """An override applies when it is active on the date and every set criterion matches."""
    if not override.is_active:
        return False
    if not is_effective_on(override.start_date, override.end_date, on_date):
        return False
    if override.cab_number is not None and override.cab_number != cab_number:
        return False
    if override.shift_type is not None and override.shift_type != shift_type:
        return False
    if override.day_of_week is not None and override.day_of_week != on_date.weekday():
        return False
    return True


def select_override(
    overrides: Iterable[LeaseRateOverride], cab_number: str, shift_type: ShiftType, on_date: date
) -> Optional[LeaseRateOverride]:
    """Pick the applicable override: highest priority, then newest, then highest ID."""
    candidates = [o for o in overrides if override_applies(o, cab_number, shift_type, on_date)]
    if not candidates:
        return None
    return max(candidates, key=lambda o: (o.priority, o.created_at, o.id))


class LeaseCalculationService:
    """Computes the lease owed for a single driven shift."""

    def __init__(self, db: Database):
        """Initialize lease calculation service.

        Args:
            db: Database instance
        """
        self.db = db

    def resolve_parties(self, driver_shift: DriverShift) -> tuple[CabShift, Driver]:
        """Cab shift a driven shift ran on and its owner on that day.

        Raises:
            NotFoundError: If the cab shift or owner cannot be found
        """
        cab_shift = self.db.get_cab_shift_by_cab_number(driver_shift.cab_number, driver_shift.shift_type)
        if cab_shift is None:
            raise NotFoundError(
                f"No {driver_shift.shift_type.value} shift for cab '{driver_shift.cab_number}'"
            )
        owner = self.db.get_driver(owner_id_on(self.db, cab_shift, driver_shift.shift_date))
        if owner is None:
            raise NotFoundError(f"Owner of {cab_shift.label} not found")
        return cab_shift, owner

    def find_rate_row(self, cab_shift: CabShift, shift_type: ShiftType, on_date: date) -> Optional[LeaseRate]:
        """Rate table row of the active plan for the shift characteristics on a date."""
        plan = self.db.get_active_lease_plan(on_date)
        if plan is None:
            return None
        return self.db.find_lease_rate(
            plan.id,
            cab_shift.cab_type,
            cab_shift.has_airport_license,
            shift_type,
            on_date.weekday(),
        )

    def calculate_lease_for_shift(
        self,
        driver_shift: DriverShift,
        cab_shift: CabShift,
        owner: Driver,
        strict: bool = True,
    ) -> LeaseCalculation:
        """Lease breakdown for one driven shift.

        Args:
            driver_shift: The driven shift
            cab_shift: Cab shift it ran on
            owner: Owner of the cab shift on the shift date
            strict: Raise when no rate applies; otherwise fall back to
                DEFAULT_BASE_LEASE_RATE with a logged warning

        Returns:
            LeaseCalculation; a self-driven shift yields an excluded zero result

        Raises:
            NotFoundError: If strict and neither an override nor a rate row applies
        """
        if owner.driver_number == driver_shift.driver_number:
            return LeaseCalculation.self_driven()

        on_date = driver_shift.shift_date
        shift_type = driver_shift.shift_type
        miles = effective_miles(driver_shift.total_distance)
        rate_row = self.find_rate_row(cab_shift, shift_type, on_date)
        override = select_override(
            self.db.list_lease_rate_overrides(owner.driver_number, active_only=True),
            driver_shift.cab_number,
            shift_type,
            on_date,
        )

        if override is not None:
            base_rate = override.lease_rate
            mileage_rate = rate_row.mileage_rate if rate_row is not None else ZERO
            source = RateSource.OVERRIDE
        elif rate_row is not None:
            base_rate = rate_row.base_rate
            mileage_rate = rate_row.mileage_rate
            source = RateSource.RATE_TABLE
        else:
            message = no_lease_rate(
                cab_shift.cab_type.value,
                cab_shift.has_airport_license,
                shift_type.value,
                DAY_NAMES[on_date.weekday()],
            )
            if strict:
                raise NotFoundError(message)
            logger.warning(
                "%s; using default base rate %s for driven shift %d",
                message,
                DEFAULT_BASE_LEASE_RATE,
                driver_shift.id,
            )
            base_rate = DEFAULT_BASE_LEASE_RATE
            mileage_rate = ZERO
            source = RateSource.DEFAULT

        mileage_lease = round_money(mileage_rate * miles)
        return LeaseCalculation(
            base_rate=base_rate,
            mileage_rate=mileage_rate,
            miles=miles,
            mileage_lease=mileage_lease,
            total_lease=base_rate + mileage_lease,
            rate_source=source,
        )


class LeasePlanService:
    """Service for lease plans and their rate tables."""

    def __init__(self, db: Database):
        self.db = db

    def create_plan(self, name: str, effective_from: date, effective_to: Optional[date] = None) -> int:
        """Create an active lease plan.

        Raises:
            ValidationError: If the name is empty or the range is inverted
        """
        if not name.strip():
            raise ValidationError("Lease plan name cannot be empty")
        if effective_to is not None and effective_to < effective_from:
            raise ValidationError(f"Effective-to {effective_to} is before effective-from {effective_from}")
        return self.db.create_lease_plan(name.strip(), effective_from, effective_to)

    def add_rate(
        self,
        plan_id: int,
        cab_type: CabType,
        has_airport_license: bool,
        shift_type: ShiftType,
        day_of_week: int,
        base_rate: Decimal,
        mileage_rate: Decimal,
    ) -> int:
        """Add a rate row. day_of_week follows date.weekday(), Monday is 0.

        Raises:
            ValidationError: If the weekday is out of range or a rate is negative
        """
        if not 0 <= day_of_week <= 6:
            raise ValidationError(f"Day of week must be 0-6, got {day_of_week}")
        if base_rate < 0 or mileage_rate < 0:
            raise ValidationError("Lease rates must not be negative")
        return self.db.create_lease_rate(
            plan_id, cab_type, has_airport_license, shift_type, day_of_week, base_rate, mileage_rate
        )

    def add_weekly_rates(
        self,
        plan_id: int,
        cab_type: CabType,
        has_airport_license: bool,
        shift_type: ShiftType,
        base_rate: Decimal,
        mileage_rate: Decimal,
    ) -> list[int]:
        """Add the same rate for all seven weekdays."""
        return [
            self.add_rate(plan_id, cab_type, has_airport_license, shift_type, day, base_rate, mileage_rate)
            for day in range(7)
        ]


class LeaseRateOverrideService:
    """Service for owner-specific lease rate overrides."""

    def __init__(self, db: Database):
        """Initialize lease rate override service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_override(
        self,
        owner_driver_number: str,
        lease_rate: Decimal,
        start_date: date,
        cab_number: Optional[str] = None,
        shift_type: Optional[ShiftType] = None,
        day_of_week: Optional[int] = None,
        end_date: Optional[date] = None,
        priority: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create an override for one owner.

        Args:
            owner_driver_number: Driver number of the owner granting the rate
            lease_rate: Base rate replacing the rate table's
            start_date: First day the override applies
            cab_number: Restrict to one cab, or None for any
            shift_type: Restrict to DAY or NIGHT, or None for any
            day_of_week: Restrict to one weekday (Monday is 0), or None for any
            end_date: Last day the override applies, or None for open-ended
            priority: Explicit priority; computed from specificity when None
            notes: Optional notes

        Returns:
            Override ID

        Raises:
            NotFoundError: If the owner or cab doesn't exist
            ValidationError: If the person is not an owner, or the rate,
                weekday or dates are invalid
        """
        owner = self.db.get_driver_by_number(owner_driver_number)
        if owner is None:
            raise NotFoundError(driver_number_not_found(owner_driver_number))
        if not owner.is_owner:
            raise ValidationError(f"Driver '{owner_driver_number}' is not an owner")
        if cab_number is not None and self.db.get_cab_by_number(cab_number) is None:
            raise NotFoundError(f"Cab '{cab_number}' not found")
        if lease_rate < 0:
            raise ValidationError(f"Lease rate must not be negative, got {lease_rate}")
        if day_of_week is not None and not 0 <= day_of_week <= 6:
            raise ValidationError(f"Day of week must be 0-6, got {day_of_week}")
        if end_date is not None and end_date < start_date:
            raise ValidationError(f"End date {end_date} is before start date {start_date}")

        if priority is None:
            priority = calculate_priority(cab_number, shift_type, day_of_week)

        override_id = self.db.create_lease_rate_override(
            owner_driver_number=owner_driver_number,
            lease_rate=lease_rate,
            start_date=start_date,
            cab_number=cab_number,
            shift_type=shift_type,
            day_of_week=day_of_week,
            end_date=end_date,
            priority=priority,
            notes=notes,
        )
        logger.info(
            "Created lease rate override %d for owner %s at %s (priority %d)",
            override_id,
            owner_driver_number,
            lease_rate,
            priority,
        )
        return override_id

    def list_overrides(
        self, owner_driver_number: Optional[str] = None, active_only: bool = False
    ) -> list[LeaseRateOverride]:
        return self.db.list_lease_rate_overrides(owner_driver_number, active_only=active_only)

    def deactivate_override(self, override_id: int) -> None:
        """Deactivate an override.

        Raises:
            NotFoundError: If the override doesn't exist
        """
        if self.db.get_lease_rate_override(override_id) is None:
            raise NotFoundError(f"Lease rate override {override_id} not found")
        self.db.deactivate_lease_rate_override(override_id)

    def find_applicable_override(
        self, owner_driver_number: str, cab_number: str, shift_type: ShiftType, on_date: date
    ) -> Optional[LeaseRateOverride]:
        """The override that would set the base rate for a shift, if any."""
        return select_override(
            self.db.list_lease_rate_overrides(owner_driver_number, active_only=True),
            cab_number,
            shift_type,
            on_date,
        )
