"""Lease revenue and lease expense reports.

Lease revenue is the owner's view of the shifts others drove on the owner's
shifts; lease expense is the driver's view of the shifts they drove on
someone else's. Both views run every driven shift through the same
LeaseCalculationService and the same ownership rule, so for any period the
two totals agree. The debug report recomputes both independently and
lines them up shift by shift.
"""

import logging
from datetime import date
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.activity import is_completed
from taxiledger.domain.entities import CabShift, Driver, DriverShift, DriverShiftStatus
from taxiledger.domain.errors import DomainError, NotFoundError, ValidationError, driver_number_not_found
from taxiledger.domain.lease import LeaseCalculationService
from taxiledger.domain.proration import ZERO
from taxiledger.domain.reports import (
    LeaseDebugReport,
    LeaseDebugRow,
    LeaseLineItem,
    LeaseReport,
    ReconciliationStatus,
)
from taxiledger.domain.resolver import owner_id_on

logger = logging.getLogger(__name__)


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError(f"End date {end_date} is before start date {start_date}")


class LeaseReportService:
    """Builds lease revenue, lease expense and reconciliation reports."""

    def __init__(self, db: Database, calculator: Optional[LeaseCalculationService] = None):
        """Initialize lease report service.

        Args:
            db: Database instance
            calculator: Lease engine; one is created when not given
        """
        self.db = db
        self.calculator = calculator or LeaseCalculationService(db)

    def calculate_lease_revenue(self, owner_number: str, start_date: date, end_date: date) -> LeaseReport:
        """Lease an owner collects for shifts others drove on the owner's shifts.

        Args:
            owner_number: Driver number of the owner
            start_date: First day of the period
            end_date: Last day of the period

        Returns:
            LeaseReport with one item per leased driven shift

        Raises:
            NotFoundError: If no driver has that number
            ValidationError: If the range is inverted
        """
        _check_range(start_date, end_date)
        owner = self._require_driver(owner_number)
        report = LeaseReport(
            person_number=owner.driver_number,
            person_name=owner.full_name,
            start_date=start_date,
            end_date=end_date,
        )

        for cab_shift in self._shifts_held_during(owner.id, start_date, end_date):
            driven_shifts = self.db.list_driver_shifts(
                start_date=start_date,
                end_date=end_date,
                cab_number=cab_shift.cab_number,
                shift_type=cab_shift.shift_type,
                status=DriverShiftStatus.COMPLETED,
            )
            for driver_shift in driven_shifts:
                if owner_id_on(self.db, cab_shift, driver_shift.shift_date) != owner.id:
                    continue
                if driver_shift.driver_number == owner.driver_number:
                    continue
                try:
                    driver = self.db.get_driver_by_number(driver_shift.driver_number)
                    report.add_item(self._line_item(driver_shift, cab_shift, owner, driver))
                except DomainError as e:
                    report.error_count += 1
                    logger.error("Skipping driven shift %d in lease revenue: %s", driver_shift.id, e)

        report.items.sort(key=lambda i: (i.logon_time, i.driver_shift_id))
        report.calculate_summary()
        logger.info(
            "Lease revenue for %s %s..%s: %d shift(s), total %s",
            owner_number,
            start_date,
            end_date,
            len(report.items),
            report.grand_total_lease,
        )
        return report

    def calculate_lease_expense(self, driver_number: str, start_date: date, end_date: date) -> LeaseReport:
        """Lease a driver owes for shifts driven on shifts owned by someone else.

        Raises:
            NotFoundError: If no driver has that number
            ValidationError: If the range is inverted
        """
        _check_range(start_date, end_date)
        driver = self._require_driver(driver_number)
        report = LeaseReport(
            person_number=driver.driver_number,
            person_name=driver.full_name,
            start_date=start_date,
            end_date=end_date,
        )

        driven_shifts = self.db.list_driver_shifts(
            start_date=start_date,
            end_date=end_date,
            driver_number=driver_number,
            status=DriverShiftStatus.COMPLETED,
        )
        for driver_shift in driven_shifts:
            try:
                cab_shift, owner = self.calculator.resolve_parties(driver_shift)
                if owner.driver_number == driver.driver_number:
                    continue
                report.add_item(self._line_item(driver_shift, cab_shift, owner, driver))
            except DomainError as e:
                report.error_count += 1
                logger.error("Skipping driven shift %d in lease expense: %s", driver_shift.id, e)

        report.calculate_summary()
        logger.info(
            "Lease expense for %s %s..%s: %d shift(s), total %s",
            driver_number,
            start_date,
            end_date,
            len(report.items),
            report.grand_total_lease,
        )
        return report

    def generate_debug_report(self, start_date: date, end_date: date) -> LeaseDebugReport:
        """Compare the expense view and the revenue view of every leased shift.

        Each driver's expense report and each owner's revenue report are
        computed separately, then joined on the driven shift. A shift seen by
        only one side, or with different totals, is flagged.
        """
        _check_range(start_date, end_date)
        expense_view: dict[int, LeaseLineItem] = {}
        revenue_view: dict[int, LeaseLineItem] = {}

        for person in self.db.list_drivers():
            try:
                for item in self.calculate_lease_expense(person.driver_number, start_date, end_date).items:
                    expense_view[item.driver_shift_id] = item
            except DomainError as e:
                logger.error("Lease expense view failed for %s: %s", person.driver_number, e)
            try:
                for item in self.calculate_lease_revenue(person.driver_number, start_date, end_date).items:
                    revenue_view[item.driver_shift_id] = item
            except DomainError as e:
                logger.error("Lease revenue view failed for %s: %s", person.driver_number, e)

        rows = []
        for shift_id in expense_view.keys() | revenue_view.keys():
            rows.append(self._debug_row(expense_view.get(shift_id), revenue_view.get(shift_id)))
        rows.sort(key=lambda r: (r.shift_date, r.driver_shift_id))

        total_expense = sum((r.lease_from_expense for r in rows), ZERO)
        total_revenue = sum((r.lease_from_revenue for r in rows), ZERO)
        match_count = sum(1 for r in rows if r.status == ReconciliationStatus.MATCH)
        report = LeaseDebugReport(
            start_date=start_date,
            end_date=end_date,
            rows=tuple(rows),
            total_expense_view=total_expense,
            total_revenue_view=total_revenue,
            total_difference=total_expense - total_revenue,
            match_count=match_count,
            mismatch_count=len(rows) - match_count,
        )
        if report.is_reconciled:
            logger.info("Lease views reconcile for %s..%s: %s", start_date, end_date, total_expense)
        else:
            logger.warning(
                "Lease views differ for %s..%s: %d mismatch(es), difference %s",
                start_date,
                end_date,
                report.mismatch_count,
                report.total_difference,
            )
        return report

    def _shifts_held_during(self, owner_id: int, start_date: date, end_date: date) -> list[CabShift]:
        """Cab shifts the owner held on any day of the range."""
        shift_ids = {
            o.shift_id
            for o in self.db.list_shift_ownerships(
                owner_id=owner_id, overlapping_from=start_date, overlapping_to=end_date
            )
        }
        shift_ids.update(s.id for s in self.db.list_cab_shifts(owner_id=owner_id))
        shifts = []
        for shift_id in sorted(shift_ids):
            shift = self.db.get_cab_shift(shift_id)
            if shift is not None:
                shifts.append(shift)
        return shifts

    def _line_item(
        self,
        driver_shift: DriverShift,
        cab_shift: CabShift,
        owner: Driver,
        driver: Optional[Driver],
    ) -> LeaseLineItem:
        if not is_completed(driver_shift):
            raise ValidationError(f"Driven shift {driver_shift.id} is not completed")
        calc = self.calculator.calculate_lease_for_shift(driver_shift, cab_shift, owner, strict=False)
        return LeaseLineItem(
            driver_shift_id=driver_shift.id,
            shift_date=driver_shift.shift_date,
            logon_time=driver_shift.logon_time,
            logoff_time=driver_shift.logoff_time,
            cab_number=driver_shift.cab_number,
            shift_type=driver_shift.shift_type.value,
            driver_number=driver_shift.driver_number,
            driver_name=driver.full_name if driver is not None else driver_shift.driver_number,
            owner_number=owner.driver_number,
            owner_name=owner.full_name,
            miles=calc.miles,
            base_rate=calc.base_rate,
            mileage_rate=calc.mileage_rate,
            mileage_lease=calc.mileage_lease,
            total_lease=calc.total_lease,
            rate_source=calc.rate_source,
        )

    def _debug_row(
        self, from_expense: Optional[LeaseLineItem], from_revenue: Optional[LeaseLineItem]
    ) -> LeaseDebugRow:
        item = from_expense or from_revenue
        expense_total = from_expense.total_lease if from_expense else ZERO
        revenue_total = from_revenue.total_lease if from_revenue else ZERO
        if from_expense is None:
            status = ReconciliationStatus.MISSING_FROM_EXPENSE
        elif from_revenue is None:
            status = ReconciliationStatus.MISSING_FROM_REVENUE
        elif expense_total != revenue_total:
            status = ReconciliationStatus.MISMATCH
        else:
            status = ReconciliationStatus.MATCH
        return LeaseDebugRow(
            driver_shift_id=item.driver_shift_id,
            shift_date=item.shift_date,
            cab_number=item.cab_number,
            shift_type=item.shift_type,
            driver_number=item.driver_number,
            owner_number=item.owner_number,
            miles=item.miles,
            lease_from_expense=expense_total,
            lease_from_revenue=revenue_total,
            difference=expense_total - revenue_total,
            status=status,
        )

    def _require_driver(self, driver_number: str) -> Driver:
        driver = self.db.get_driver_by_number(driver_number)
        if driver is None:
            raise NotFoundError(driver_number_not_found(driver_number))
        return driver
