"""Fleet administration: drivers, cabs, shifts, ownership and attributes.

These are the serialized administrative changes the expense engine reads
but never makes itself.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.entities import (
    CabShift,
    CabType,
    Driver,
    DriverShiftStatus,
    ShareType,
    ShiftStatus,
    ShiftType,
)
from taxiledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    driver_not_found,
    driver_number_not_found,
    shift_not_found,
)

logger = logging.getLogger(__name__)


class FleetService:
    """Service for fleet administration."""

    def __init__(self, db: Database):
        """Initialize fleet service.

        Args:
            db: Database instance
        """
        self.db = db

    def register_driver(
        self, driver_number: str, first_name: str, last_name: str = "", is_owner: bool = False
    ) -> int:
        """Register a driver or owner.

        Returns:
            Driver ID

        Raises:
            ValidationError: If the number or first name is empty
            ConflictError: If the driver number is taken
        """
        driver_number = driver_number.strip()
        if not driver_number:
            raise ValidationError("Driver number cannot be empty")
        if not first_name.strip():
            raise ValidationError("First name cannot be empty")
        if self.db.get_driver_by_number(driver_number) is not None:
            raise ConflictError(f"Driver with number '{driver_number}' already exists")
        return self.db.create_driver(driver_number, first_name.strip(), last_name.strip(), is_owner)

    def get_driver(self, driver_id: int) -> Optional[Driver]:
        return self.db.get_driver(driver_id)

    def get_driver_by_number(self, driver_number: str) -> Optional[Driver]:
        return self.db.get_driver_by_number(driver_number)

    def register_cab(
        self,
        cab_number: str,
        owner_id: int,
        start_date: date,
        cab_type: CabType = CabType.SEDAN,
        has_airport_license: bool = False,
        share_type: Optional[ShareType] = None,
        night_owner_id: Optional[int] = None,
    ) -> int:
        """Register a cab with its DAY and NIGHT shifts.

        Both shifts start ACTIVE with an ownership row from start_date. The
        NIGHT shift goes to night_owner_id when given, else to owner_id.

        Returns:
            Cab ID

        Raises:
            ValidationError: If the cab number is empty or an owner is not flagged as owner
            NotFoundError: If an owner doesn't exist
            ConflictError: If the cab number is taken
        """
        cab_number = cab_number.strip()
        if not cab_number:
            raise ValidationError("Cab number cannot be empty")
        if self.db.get_cab_by_number(cab_number) is not None:
            raise ConflictError(f"Cab with number '{cab_number}' already exists")
        day_owner = self._require_owner(owner_id)
        night_owner = self._require_owner(night_owner_id) if night_owner_id is not None else day_owner

        cab_id = self.db.create_cab(cab_number)
        for shift_type, owner in ((ShiftType.DAY, day_owner), (ShiftType.NIGHT, night_owner)):
            shift_id = self.db.create_cab_shift(
                cab_id=cab_id,
                shift_type=shift_type,
                owner_id=owner.id,
                cab_type=cab_type,
                share_type=share_type,
                has_airport_license=has_airport_license,
            )
            self.db.create_shift_ownership(shift_id, owner.id, start_date)
        logger.info("Registered cab %s (%d)", cab_number, cab_id)
        return cab_id

    def get_cab_shifts(self, cab_id: int) -> list[CabShift]:
        return self.db.list_cab_shifts(cab_id=cab_id)

    def get_shift(self, cab_number: str, shift_type: ShiftType) -> Optional[CabShift]:
        return self.db.get_cab_shift_by_cab_number(cab_number, shift_type)

    def transfer_ownership(self, shift_id: int, new_owner_id: int, transfer_date: date) -> int:
        """Move a shift to a new owner from transfer_date.

        The ownership row covering transfer_date is closed the day before and
        a new open row starts on transfer_date. Transfers only append to the
        end of the ownership history, so rows never overlap.

        Returns:
            New ownership ID

        Raises:
            NotFoundError: If the shift or new owner doesn't exist
            ValidationError: If the new owner is not an owner or already owns
                the shift, or any ownership row starts on or after transfer_date
        """
        shift = self._require_shift(shift_id)
        new_owner = self._require_owner(new_owner_id)

        later = [o for o in self.db.list_shift_ownerships(shift_id=shift_id) if o.start_date > transfer_date]
        if later:
            raise ValidationError(
                f"{shift.label} already has an ownership starting {min(o.start_date for o in later)}; "
                f"transfer date {transfer_date} must be on or after the latest ownership"
            )

        current = self.db.get_shift_ownership_on(shift_id, transfer_date)
        if current is not None:
            if current.owner_id == new_owner.id:
                raise ValidationError(f"{shift.label} is already owned by {new_owner.driver_number}")
            if current.start_date >= transfer_date:
                raise ValidationError(
                    f"Transfer date {transfer_date} must be after ownership start {current.start_date}"
                )
            self.db.close_shift_ownership(current.id, transfer_date - timedelta(days=1))

        ownership_id = self.db.create_shift_ownership(shift_id, new_owner.id, transfer_date)
        self.db.update_cab_shift(shift_id, owner_id=new_owner.id)
        logger.info(
            "Transferred %s to %s from %s", shift.label, new_owner.driver_number, transfer_date
        )
        return ownership_id

    def create_profile(self, code: str, name: str) -> int:
        if not code.strip():
            raise ValidationError("Profile code cannot be empty")
        return self.db.create_shift_profile(code.strip(), name.strip() or code.strip())

    def assign_profile(self, shift_id: int, profile_id: int) -> None:
        """Make a profile the current profile of a shift.

        Raises:
            NotFoundError: If the shift or profile doesn't exist
        """
        self._require_shift(shift_id)
        if self.db.get_shift_profile(profile_id) is None:
            raise NotFoundError(f"Shift profile {profile_id} not found")
        self.db.update_cab_shift(shift_id, profile_id=profile_id)

    def set_shift_status(self, shift_id: int, status: ShiftStatus) -> None:
        shift = self._require_shift(shift_id)
        self.db.update_cab_shift(shift_id, status=status)
        logger.info("Set %s to %s", shift.label, status.value)

    def create_attribute_type(self, code: str, name: str) -> int:
        if not code.strip():
            raise ValidationError("Attribute code cannot be empty")
        return self.db.create_attribute_type(code.strip(), name.strip() or code.strip())

    def set_shift_attribute(
        self, shift_id: int, attribute_type_id: int, start_date: date, value: Optional[str] = None
    ) -> int:
        """Give a shift an attribute value from start_date.

        A value already in effect on start_date is closed the day before.

        Returns:
            Attribute value ID

        Raises:
            NotFoundError: If the shift or attribute type doesn't exist
            ValidationError: If the value in effect starts on or after start_date
        """
        self._require_shift(shift_id)
        if self.db.get_attribute_type(attribute_type_id) is None:
            raise NotFoundError(f"Attribute type {attribute_type_id} not found")
        for current in self.db.list_shift_attributes(
            shift_id=shift_id, attribute_type_id=attribute_type_id, active_on=start_date
        ):
            if current.start_date >= start_date:
                raise ValidationError(
                    f"Attribute already set from {current.start_date}; start date must be later"
                )
            self.db.close_shift_attribute(current.id, start_date - timedelta(days=1))
        return self.db.create_shift_attribute(shift_id, attribute_type_id, start_date, value)

    def end_shift_attribute(self, shift_id: int, attribute_type_id: int, end_date: date) -> None:
        """Close the attribute value in effect on end_date; end_date is its last day.

        Raises:
            NotFoundError: If no value is in effect on end_date
        """
        current = self.db.list_shift_attributes(
            shift_id=shift_id, attribute_type_id=attribute_type_id, active_on=end_date
        )
        if not current:
            raise NotFoundError(
                f"Shift {shift_id} has no attribute {attribute_type_id} in effect on {end_date}"
            )
        for value in current:
            self.db.close_shift_attribute(value.id, end_date)

    def record_driven_shift(
        self,
        driver_number: str,
        cab_number: str,
        shift_type: ShiftType,
        logon_time: datetime,
        logoff_time: Optional[datetime] = None,
        total_distance: Optional[Decimal] = None,
        status: DriverShiftStatus = DriverShiftStatus.COMPLETED,
    ) -> int:
        """Record a shift actually driven.

        Returns:
            Driven shift ID

        Raises:
            NotFoundError: If the driver or the cab shift doesn't exist
            ValidationError: If logoff precedes logon or the distance is negative
        """
        if self.db.get_driver_by_number(driver_number) is None:
            raise NotFoundError(driver_number_not_found(driver_number))
        if self.db.get_cab_shift_by_cab_number(cab_number, shift_type) is None:
            raise NotFoundError(f"No {shift_type.value} shift for cab '{cab_number}'")
        if logoff_time is not None and logoff_time < logon_time:
            raise ValidationError(f"Logoff {logoff_time} is before logon {logon_time}")
        if total_distance is not None and total_distance < 0:
            raise ValidationError(f"Distance must not be negative, got {total_distance}")
        return self.db.create_driver_shift(
            driver_number=driver_number,
            cab_number=cab_number,
            shift_type=shift_type,
            logon_time=logon_time,
            logoff_time=logoff_time,
            total_distance=total_distance,
            status=status,
        )

    def _require_shift(self, shift_id: int) -> CabShift:
        shift = self.db.get_cab_shift(shift_id)
        if shift is None:
            raise NotFoundError(shift_not_found(shift_id))
        return shift

    def _require_owner(self, owner_id: int) -> Driver:
        owner = self.db.get_driver(owner_id)
        if owner is None:
            raise NotFoundError(driver_not_found(owner_id))
        if not owner.is_owner:
            raise ValidationError(f"Driver '{owner.driver_number}' is not an owner")
        return owner
