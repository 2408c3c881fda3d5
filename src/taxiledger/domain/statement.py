"""Statement assembly, finalization and driver summaries."""

import dataclasses
import json
import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from taxiledger.database.base import Database
from taxiledger.domain.entities import Driver, PersonType, StatementStatus
from taxiledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    driver_not_found,
)
from taxiledger.domain.expense_calculation import ExpenseCalculationService
from taxiledger.domain.lease import LeaseCalculationService
from taxiledger.domain.lease_reports import LeaseReportService
from taxiledger.domain.reports import (
    ZERO,
    DriverSummaryReport,
    LeaseLineItem,
    PersonSummary,
    StatementLineItem,
    StatementReport,
)
from taxiledger.domain.resolver import ApplicationTypeResolver

logger = logging.getLogger(__name__)

LEASE_CATEGORY_CODE = "LEASE"
LINE_SECTIONS = ("revenues", "recurring_charges", "one_time_charges", "lease_charges")


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_line_items(report: StatementReport) -> str:
    """JSON snapshot of every line of a statement, grouped by section."""
    payload = {
        section: [dataclasses.asdict(line) for line in getattr(report, section)]
        for section in LINE_SECTIONS
    }
    return json.dumps(payload, default=_json_default, sort_keys=True)


def _lease_line(item: LeaseLineItem, counterparty: str) -> StatementLineItem:
    return StatementLineItem(
        category_code=LEASE_CATEGORY_CODE,
        category_name="Lease",
        application_type="LEASE",
        entity_description=f"Cab {item.cab_number} - {item.shift_type} ({counterparty})",
        amount=item.total_lease,
        expense_id=item.driver_shift_id,
        line_date=item.shift_date,
        cab_number=item.cab_number,
        shift_type=item.shift_type,
        description=(
            f"base {item.base_rate} + {item.miles} mi x {item.mileage_rate} ({item.rate_source.value})"
        ),
    )


class StatementService:
    """Builds statements for drivers and owners."""

    def __init__(self, db: Database):
        """Initialize statement service.

        Args:
            db: Database instance
        """
        self.db = db
        self.resolver = ApplicationTypeResolver(db)
        self.expenses = ExpenseCalculationService(db, self.resolver)
        self.leases = LeaseReportService(db, LeaseCalculationService(db))

    def generate_statement(
        self,
        person_id: int,
        period_from: date,
        period_to: date,
        previous_balance: Decimal = ZERO,
        paid_amount: Decimal = ZERO,
    ) -> StatementReport:
        """Draft statement for one person and period.

        Owners receive lease revenue for shifts others drove on their shifts;
        everybody is charged recurring and one-time expenses that reach them
        and lease for shifts they drove on someone else's shift. Ownership and
        attributes are taken as of period_to.

        Raises:
            NotFoundError: If the person doesn't exist
            ValidationError: If the period is inverted
        """
        if period_to < period_from:
            raise ValidationError(f"Period end {period_to} is before period start {period_from}")
        person = self.db.get_driver(person_id)
        if person is None:
            raise NotFoundError(driver_not_found(person_id))

        report = StatementReport(
            person_id=person.id,
            person_number=person.driver_number,
            person_name=person.full_name,
            person_type=PersonType.OWNER if person.is_owner else PersonType.DRIVER,
            period_from=period_from,
            period_to=period_to,
            previous_balance=previous_balance,
            paid_amount=paid_amount,
        )

        person_shifts = self.resolver.shifts_owned_by(person.id, period_to)

        if person.is_owner:
            revenue = self.leases.calculate_lease_revenue(person.driver_number, period_from, period_to)
            report.revenues.extend(_lease_line(i, f"driven by {i.driver_number}") for i in revenue.items)
            report.skipped_items += revenue.error_count

        self.expenses.add_recurring_expenses_to_statement(
            report, person, person_shifts, period_from, period_to
        )
        self.expenses.add_one_time_expenses_to_statement(
            report, person, person_shifts, period_from, period_to
        )

        lease_expense = self.leases.calculate_lease_expense(person.driver_number, period_from, period_to)
        report.lease_charges.extend(_lease_line(i, f"owned by {i.owner_number}") for i in lease_expense.items)
        report.skipped_items += lease_expense.error_count

        report.calculate_totals()
        logger.info(
            "Generated statement for %s %s..%s: revenues %s, expenses %s, net due %s",
            person.driver_number,
            period_from,
            period_to,
            report.total_revenues,
            report.total_expenses,
            report.net_due,
        )
        return report

    def finalize_statement(self, report: StatementReport) -> int:
        """Store a draft statement as an immutable snapshot.

        Returns:
            Statement ID

        Raises:
            ConflictError: If the person already has a finalized statement
                for the same period
        """
        existing = self.db.find_statement(report.person_id, report.period_from, report.period_to)
        if existing is not None:
            raise ConflictError(
                f"Statement for person {report.person_id} covering "
                f"{report.period_from}..{report.period_to} is already finalized ({existing.id})"
            )
        report.calculate_totals()
        statement_id = self.db.create_statement(
            person_id=report.person_id,
            person_type=report.person_type,
            person_name=report.person_name,
            period_from=report.period_from,
            period_to=report.period_to,
            total_revenues=report.total_revenues,
            total_recurring_expenses=report.total_recurring_expenses,
            total_one_time_expenses=report.total_one_time_expenses,
            total_lease_expenses=report.total_lease_expenses,
            total_expenses=report.total_expenses,
            previous_balance=report.previous_balance,
            paid_amount=report.paid_amount,
            net_due=report.net_due,
            line_items_json=serialize_line_items(report),
        )
        report.status = StatementStatus.FINALIZED
        report.statement_id = statement_id
        logger.info("Finalized statement %d for %s", statement_id, report.person_number)
        return statement_id

    def load_line_items(self, statement_id: int) -> dict[str, list[dict]]:
        """Line items of a finalized statement, grouped by section.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(f"Statement {statement_id} not found")
        return json.loads(statement.line_items_json)

    def previous_balance_for(self, person_id: int, period_from: date) -> Decimal:
        """Net due of the latest finalized statement ending before period_from."""
        for statement in self.db.list_statements(person_id):
            if statement.period_to < period_from:
                return statement.net_due
        return ZERO

    def generate_driver_summary(
        self, period_from: date, period_to: date, people: Optional[list[Driver]] = None
    ) -> DriverSummaryReport:
        """Totals for every person over a period.

        A person whose statement cannot be built is listed with zero totals
        and the error message; the other people are unaffected.
        """
        if period_to < period_from:
            raise ValidationError(f"Period end {period_to} is before period start {period_from}")
        if people is None:
            people = self.db.list_drivers()

        summaries = []
        error_count = 0
        for person in people:
            try:
                report = self.generate_statement(person.id, period_from, period_to)
                summaries.append(
                    PersonSummary(
                        person_id=person.id,
                        person_number=person.driver_number,
                        person_name=person.full_name,
                        is_owner=person.is_owner,
                        total_revenues=report.total_revenues,
                        total_expenses=report.total_expenses,
                        net_due=report.net_due,
                    )
                )
            except Exception as e:
                error_count += 1
                logger.exception("Statement failed for %s", person.driver_number)
                summaries.append(
                    PersonSummary(
                        person_id=person.id,
                        person_number=person.driver_number,
                        person_name=person.full_name,
                        is_owner=person.is_owner,
                        total_revenues=ZERO,
                        total_expenses=ZERO,
                        net_due=ZERO,
                        error=str(e),
                    )
                )

        return DriverSummaryReport(
            start_date=period_from,
            end_date=period_to,
            summaries=tuple(summaries),
            total_revenues=sum((s.total_revenues for s in summaries), ZERO),
            total_expenses=sum((s.total_expenses for s in summaries), ZERO),
            total_net_due=sum((s.net_due for s in summaries), ZERO),
            error_count=error_count,
        )
