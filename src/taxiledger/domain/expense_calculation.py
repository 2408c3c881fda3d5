"""Expense calculation orchestration.

Finds the recurring and one-time expenses that apply to a person over a
period and renders them as statement lines. Shift-based expenses are
billed to whoever owns the shift, never to a driver who merely drove it;
a non-owner driver only picks up person-targeted and all-drivers charges.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from taxiledger.database.base import Database
from taxiledger.domain.activity import intersect
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
    describe_target,
    is_expanded_per_shift,
    target_of,
)
from taxiledger.domain.entities import (
    ApplicationTypeCode,
    BillingMethod,
    CabShift,
    Driver,
    DriverShiftStatus,
    OneTimeExpense,
    RecurringExpense,
)
from taxiledger.domain.proration import ZERO, calculate_amount_for_date_range
from taxiledger.domain.reports import StatementLineItem, StatementReport
from taxiledger.domain.resolver import ApplicationTypeResolver

logger = logging.getLogger(__name__)

Expense = Union[RecurringExpense, OneTimeExpense]

UNCATEGORIZED_CODE = "UNCATEGORIZED"
UNCATEGORIZED_NAME = "Uncategorized"

_FLEET_SHIFT_TYPES = [ApplicationTypeCode.ALL_ACTIVE_SHIFTS]
_OWNER_TYPES = [ApplicationTypeCode.ALL_OWNERS]
_DRIVER_TYPES = [ApplicationTypeCode.ALL_DRIVERS, ApplicationTypeCode.ALL_NON_OWNER_DRIVERS]
_PERSON_TYPES = [ApplicationTypeCode.SPECIFIC_PERSON, ApplicationTypeCode.SPECIFIC_OWNER_DRIVER]


def _dedupe(expenses: Iterable[Expense]) -> list[Expense]:
    """Drop repeats of the same expense ID, keeping first-seen order."""
    seen: set[int] = set()
    result = []
    for expense in expenses:
        if expense.id in seen:
            continue
        seen.add(expense.id)
        result.append(expense)
    return result


class ExpenseCalculationService:
    """Resolves applicable expenses for a person and renders statement lines."""

    def __init__(self, db: Database, resolver: Optional[ApplicationTypeResolver] = None):
        """Initialize expense calculation service.

        Args:
            db: Database instance
            resolver: Application-type resolver; one is created when not given
        """
        self.db = db
        self.resolver = resolver or ApplicationTypeResolver(db)

    def get_applicable_recurring_expenses(
        self, person: Driver, person_shifts: list[CabShift], start_date: date, end_date: date
    ) -> list[RecurringExpense]:
        """Recurring expense versions in effect during the period that charge a person.

        Args:
            person: Driver or owner being billed
            person_shifts: Cab shifts the person owns as of end_date
            start_date: First day of the period
            end_date: Last day of the period

        Returns:
            Versions overlapping the period, each appearing once
        """

        def query(**filters) -> list[RecurringExpense]:
            return self.db.list_recurring_expenses(
                overlapping_from=start_date, overlapping_to=end_date, **filters
            )

        return _dedupe(self._collect(person, person_shifts, end_date, query))

    def get_applicable_one_time_expenses(
        self, person: Driver, person_shifts: list[CabShift], start_date: date, end_date: date
    ) -> list[OneTimeExpense]:
        """One-time expenses dated inside the period that charge a person."""

        def query(**filters) -> list[OneTimeExpense]:
            return self.db.list_one_time_expenses(start_date=start_date, end_date=end_date, **filters)

        return _dedupe(self._collect(person, person_shifts, end_date, query))

    def add_recurring_expenses_to_statement(
        self,
        report: StatementReport,
        person: Driver,
        person_shifts: list[CabShift],
        start_date: date,
        end_date: date,
    ) -> int:
        """Append prorated recurring charges to a statement.

        ALL_ACTIVE_SHIFTS and SHIFTS_WITH_ATTRIBUTE expenses become one line
        per matching shift, each carrying the full prorated amount. An
        expense that fails to resolve or prorate is logged and skipped.

        Returns:
            Number of expenses skipped because of an error
        """
        skipped = 0
        for expense in self.get_applicable_recurring_expenses(person, person_shifts, start_date, end_date):
            try:
                report.recurring_charges.extend(
                    self._recurring_lines(expense, person, person_shifts, start_date, end_date)
                )
            except Exception:
                skipped += 1
                logger.exception(
                    "Skipping recurring expense %d for %s", expense.id, person.driver_number
                )
        report.skipped_items += skipped
        return skipped

    def add_one_time_expenses_to_statement(
        self,
        report: StatementReport,
        person: Driver,
        person_shifts: list[CabShift],
        start_date: date,
        end_date: date,
    ) -> int:
        """Append one-time charges to a statement.

        Returns:
            Number of expenses skipped because of an error
        """
        skipped = 0
        for expense in self.get_applicable_one_time_expenses(person, person_shifts, start_date, end_date):
            try:
                report.one_time_charges.extend(
                    self._one_time_lines(expense, person, person_shifts, end_date)
                )
            except Exception:
                skipped += 1
                logger.exception(
                    "Skipping one-time expense %d for %s", expense.id, person.driver_number
                )
        report.skipped_items += skipped
        return skipped

    def _collect(self, person: Driver, person_shifts: list[CabShift], as_of: date, query) -> list[Expense]:
        """Run every lookup path that can reach the person."""
        expenses: list[Expense] = []
        if person_shifts:
            expenses += query(
                application_types=[ApplicationTypeCode.SPECIFIC_SHIFT],
                shift_ids=[s.id for s in person_shifts],
            )
            expenses += query(
                application_types=[ApplicationTypeCode.SPECIFIC_CAB],
                cab_ids=sorted({s.cab_id for s in person_shifts}),
            )
            profile_ids = sorted({s.current_profile_id for s in person_shifts if s.current_profile_id})
            if profile_ids:
                expenses += query(
                    application_types=[ApplicationTypeCode.SHIFT_PROFILE],
                    shift_profile_ids=profile_ids,
                )
            attribute_ids = self._attribute_types_on(person_shifts, as_of)
            if attribute_ids:
                expenses += query(
                    application_types=[ApplicationTypeCode.SHIFTS_WITH_ATTRIBUTE],
                    attribute_type_ids=attribute_ids,
                )
            if any(self.resolver.is_active(s) for s in person_shifts):
                expenses += query(application_types=_FLEET_SHIFT_TYPES)
        if person.is_owner:
            expenses += query(application_types=_OWNER_TYPES)
        else:
            expenses += query(application_types=_DRIVER_TYPES)
        expenses += query(application_types=_PERSON_TYPES, person_id=person.id)
        return expenses

    def _attribute_types_on(self, shifts: list[CabShift], as_of: date) -> list[int]:
        ids: set[int] = set()
        for shift in shifts:
            ids.update(v.attribute_type_id for v in self.db.list_shift_attributes(shift_id=shift.id, active_on=as_of))
        return sorted(ids)

    def _matched_shifts(
        self, target: ApplicationTarget, person: Driver, person_shifts: list[CabShift], as_of: date
    ) -> list[CabShift]:
        """The person's shifts a shift-based target charges."""
        if isinstance(target, SpecificCab):
            return [s for s in person_shifts if s.cab_id == target.cab_id]
        if isinstance(target, (AllDrivers, SpecificPerson)):
            return []
        owned = {s.id for s in person_shifts}
        resolved = self.resolver.resolve_targets(
            target, as_of, active_only=isinstance(target, (AllActiveShifts, AllOwners)), owner_id=person.id
        )
        return [s for s in resolved if isinstance(s, CabShift) and s.id in owned]

    def _shift_occurrences(
        self,
        expense: RecurringExpense,
        target: ApplicationTarget,
        person: Driver,
        shifts: list[CabShift],
        start_date: date,
        end_date: date,
    ) -> Optional[int]:
        """Completed driven shifts inside the expense's effective window.

        Shift-targeted expenses count shifts driven on the targeted cab
        shifts; person-targeted ones count shifts the person drove.
        """
        if expense.billing_method != BillingMethod.PER_SHIFT:
            return None
        window = intersect(expense.effective_from, expense.effective_to, start_date, end_date)
        if window is None:
            return 0
        first, last = window
        if isinstance(target, (AllDrivers, SpecificPerson)):
            return len(
                self.db.list_driver_shifts(
                    start_date=first,
                    end_date=last,
                    driver_number=person.driver_number,
                    status=DriverShiftStatus.COMPLETED,
                )
            )
        return sum(
            len(
                self.db.list_driver_shifts(
                    start_date=first,
                    end_date=last,
                    cab_number=shift.cab_number,
                    shift_type=shift.shift_type,
                    status=DriverShiftStatus.COMPLETED,
                )
            )
            for shift in shifts
        )

    def _category_labels(self, category_id: Optional[int]) -> tuple[str, str]:
        if category_id is None:
            return UNCATEGORIZED_CODE, UNCATEGORIZED_NAME
        category = self.db.get_expense_category(category_id)
        if category is None:
            return UNCATEGORIZED_CODE, UNCATEGORIZED_NAME
        return category.code, category.name

    def _describe(self, target: ApplicationTarget, shifts: list[CabShift], person: Driver) -> str:
        if isinstance(target, SpecificPerson):
            return person.full_name
        if isinstance(target, (AllOwners, AllDrivers)):
            return f"{describe_target(target)} ({person.driver_number})"
        if shifts:
            return ", ".join(s.label for s in shifts)
        return describe_target(target)

    def _recurring_lines(
        self,
        expense: RecurringExpense,
        person: Driver,
        person_shifts: list[CabShift],
        start_date: date,
        end_date: date,
    ) -> list[StatementLineItem]:
        target = target_of(expense)
        shifts = self._matched_shifts(target, person, person_shifts, end_date)
        code, name = self._category_labels(expense.category_id)

        def line(amount: Decimal, description: str, shift: Optional[CabShift] = None) -> StatementLineItem:
            return StatementLineItem(
                category_code=code,
                category_name=name,
                application_type=expense.application_type.value,
                entity_description=description,
                amount=amount,
                is_recurring=True,
                expense_id=expense.id,
                billing_method=expense.billing_method,
                effective_from=expense.effective_from,
                effective_to=expense.effective_to,
                shift_id=shift.id if shift else None,
                cab_number=shift.cab_number if shift else None,
                shift_type=shift.shift_type.value if shift else None,
                description=expense.notes,
            )

        if is_expanded_per_shift(target):
            lines = []
            for shift in shifts:
                occurrences = self._shift_occurrences(expense, target, person, [shift], start_date, end_date)
                amount = calculate_amount_for_date_range(expense, start_date, end_date, occurrences)
                if amount != ZERO:
                    lines.append(line(amount, shift.label, shift))
            return lines

        if not shifts and isinstance(target, (SpecificShift, SpecificCab, ShiftProfileTarget, AttributeTagged)):
            return []
        occurrences = self._shift_occurrences(expense, target, person, shifts, start_date, end_date)
        amount = calculate_amount_for_date_range(expense, start_date, end_date, occurrences)
        if amount == ZERO:
            return []
        only_shift = shifts[0] if len(shifts) == 1 else None
        return [line(amount, self._describe(target, shifts, person), only_shift)]

    def _one_time_lines(
        self,
        expense: OneTimeExpense,
        person: Driver,
        person_shifts: list[CabShift],
        as_of: date,
    ) -> list[StatementLineItem]:
        target = target_of(expense)
        shifts = self._matched_shifts(target, person, person_shifts, as_of)
        code, name = self._category_labels(expense.category_id)

        def line(description: str, shift: Optional[CabShift] = None) -> StatementLineItem:
            return StatementLineItem(
                category_code=code,
                category_name=name,
                application_type=expense.application_type.value,
                entity_description=description,
                amount=expense.amount,
                expense_id=expense.id,
                line_date=expense.expense_date,
                shift_id=shift.id if shift else None,
                cab_number=shift.cab_number if shift else None,
                shift_type=shift.shift_type.value if shift else None,
                description=expense.description or expense.name,
            )

        if is_expanded_per_shift(target):
            return [line(shift.label, shift) for shift in shifts]
        if not shifts and isinstance(target, (SpecificShift, SpecificCab, ShiftProfileTarget, AttributeTagged)):
            return []
        only_shift = shifts[0] if len(shifts) == 1 else None
        return [line(self._describe(target, shifts, person), only_shift)]
