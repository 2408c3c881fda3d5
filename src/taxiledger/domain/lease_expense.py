"""Persisted lease expense records."""

import logging
from datetime import date
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.entities import LeaseExpense
from taxiledger.domain.errors import (
    ComputationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    driver_number_not_found,
)
from taxiledger.domain.lease import LeaseCalculationService

logger = logging.getLogger(__name__)


class LeaseExpenseService:
    """Records the lease a driver owes for one driven shift.

    Unlike the reports, creation needs an exact figure: when no override or
    rate row applies, creation fails instead of using the default rate.
    """

    def __init__(self, db: Database, calculator: Optional[LeaseCalculationService] = None):
        self.db = db
        self.calculator = calculator or LeaseCalculationService(db)

    def create_lease_expense(self, driver_shift_id: int) -> int:
        """Compute and store the lease expense of a driven shift.

        Args:
            driver_shift_id: Driven shift ID

        Returns:
            Lease expense ID

        Raises:
            NotFoundError: If the driven shift, its driver, cab shift or owner is missing
            ConflictError: If a lease expense already exists for the shift
            ValidationError: If the owner drove the shift
            ComputationError: If no lease rate applies
        """
        driver_shift = self.db.get_driver_shift(driver_shift_id)
        if driver_shift is None:
            raise NotFoundError(f"Driven shift {driver_shift_id} not found")
        if self.db.get_lease_expense_by_driver_shift(driver_shift_id) is not None:
            raise ConflictError(f"Lease expense for driven shift {driver_shift_id} already exists")

        driver = self.db.get_driver_by_number(driver_shift.driver_number)
        if driver is None:
            raise NotFoundError(driver_number_not_found(driver_shift.driver_number))
        cab_shift, owner = self.calculator.resolve_parties(driver_shift)
        if owner.id == driver.id:
            raise ValidationError(
                f"Driven shift {driver_shift_id} was driven by its owner; no lease applies"
            )

        try:
            calc = self.calculator.calculate_lease_for_shift(driver_shift, cab_shift, owner, strict=True)
        except NotFoundError as e:
            raise ComputationError(f"Cannot compute lease for driven shift {driver_shift_id}: {e}") from e

        expense_id = self.db.create_lease_expense(
            driver_shift_id=driver_shift.id,
            driver_id=driver.id,
            owner_id=owner.id,
            cab_shift_id=cab_shift.id,
            lease_date=driver_shift.shift_date,
            base_rate=calc.base_rate,
            mileage_rate=calc.mileage_rate,
            miles=calc.miles,
            mileage_lease=calc.mileage_lease,
            total_lease=calc.total_lease,
        )
        logger.info(
            "Recorded lease expense %d for driven shift %d: %s (%s)",
            expense_id,
            driver_shift.id,
            calc.total_lease,
            calc.rate_source.value,
        )
        return expense_id

    def get_for_driver_shift(self, driver_shift_id: int) -> Optional[LeaseExpense]:
        return self.db.get_lease_expense_by_driver_shift(driver_shift_id)

    def list_lease_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        driver_id: Optional[int] = None,
        owner_id: Optional[int] = None,
    ) -> list[LeaseExpense]:
        """List stored lease expenses by lease date."""
        return self.db.list_lease_expenses(
            start_date=start_date, end_date=end_date, driver_id=driver_id, owner_id=owner_id
        )
