"""Recurring expense domain service.

Recurring expenses form an append-only history per (category, target).
A rate change, a deactivation or a reactivation never edits an amount or a
start date on a stored version: the current version is closed and, where
needed, a new version is inserted.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.application_type import build_target, describe_target, target_of
from taxiledger.domain.entities import ApplicationTypeCode, BillingMethod, RecurringExpense
from taxiledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    duplicate_active_expense,
    recurring_expense_not_found,
)
from taxiledger.domain.proration import ZERO, calculate_total_for_versions
from taxiledger.domain.resolver import ensure_target_exists

logger = logging.getLogger(__name__)

_TARGET_FIELDS = (
    "cab_id",
    "shift_id",
    "shift_profile_id",
    "owner_id",
    "driver_id",
    "attribute_type_id",
)


def targeting_key(expense: RecurringExpense) -> tuple:
    """Identity of the (category, target) history an expense version belongs to."""
    return (expense.category_id, target_of(expense)) + tuple(
        getattr(expense, name) for name in _TARGET_FIELDS
    )


class RecurringExpenseService:
    """Service for managing versioned recurring expenses."""

    def __init__(self, db: Database):
        """Initialize recurring expense service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_recurring_expense(
        self,
        category_id: Optional[int],
        application_type: ApplicationTypeCode,
        amount: Decimal,
        billing_method: BillingMethod,
        effective_from: date,
        effective_to: Optional[date] = None,
        cab_id: Optional[int] = None,
        shift_id: Optional[int] = None,
        shift_profile_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        attribute_type_id: Optional[int] = None,
        auto_generated: bool = False,
        source_category_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create the first version of a recurring expense.

        Args:
            category_id: Expense category ID, or None for an uncategorized charge
            application_type: Targeting rule
            amount: Amount per month, day or shift depending on billing_method
            billing_method: MONTHLY, DAILY or PER_SHIFT
            effective_from: First charged day
            effective_to: Last charged day, or None for open-ended
            cab_id: Target cab (SPECIFIC_CAB)
            shift_id: Target shift (SPECIFIC_SHIFT)
            shift_profile_id: Target profile (SHIFT_PROFILE)
            owner_id: Target owner (SPECIFIC_PERSON)
            driver_id: Target driver (SPECIFIC_PERSON)
            attribute_type_id: Target attribute type (SHIFTS_WITH_ATTRIBUTE)
            auto_generated: Created by applying a category
            source_category_id: Category that generated this expense
            notes: Optional notes

        Returns:
            Recurring expense ID

        Raises:
            ValidationError: If the amount, dates or targeting fields are invalid
            NotFoundError: If the category or target entity doesn't exist
            ConflictError: If another version of this category on the same
                target overlaps the effective range
        """
        if amount < 0:
            raise ValidationError(f"Amount must not be negative, got {amount}")
        if effective_to is not None and effective_to < effective_from:
            raise ValidationError(
                f"Effective-to {effective_to} is before effective-from {effective_from}"
            )

        target = build_target(
            application_type,
            shift_id=shift_id,
            cab_id=cab_id,
            shift_profile_id=shift_profile_id,
            attribute_type_id=attribute_type_id,
            owner_id=owner_id,
            driver_id=driver_id,
        )
        ensure_target_exists(self.db, target)

        if category_id is not None:
            if self.db.get_expense_category(category_id) is None:
                raise NotFoundError(category_not_found(category_id))
            if self._find_overlapping(
                category_id,
                application_type,
                effective_from,
                effective_to,
                cab_id=cab_id,
                shift_id=shift_id,
                shift_profile_id=shift_profile_id,
                owner_id=owner_id,
                driver_id=driver_id,
                attribute_type_id=attribute_type_id,
            ):
                raise ConflictError(duplicate_active_expense(category_id, describe_target(target)))

        expense_id = self.db.create_recurring_expense(
            category_id=category_id,
            application_type=application_type,
            amount=amount,
            billing_method=billing_method,
            effective_from=effective_from,
            effective_to=effective_to,
            cab_id=cab_id,
            shift_id=shift_id,
            shift_profile_id=shift_profile_id,
            owner_id=owner_id,
            driver_id=driver_id,
            attribute_type_id=attribute_type_id,
            auto_generated=auto_generated,
            source_category_id=source_category_id,
            notes=notes,
        )
        logger.info(
            "Created recurring expense %d (%s, %s %s from %s)",
            expense_id,
            describe_target(target),
            amount,
            billing_method.value,
            effective_from,
        )
        return expense_id

    def get_recurring_expense(self, expense_id: int) -> Optional[RecurringExpense]:
        """Get recurring expense version by ID.

        Args:
            expense_id: Recurring expense ID

        Returns:
            RecurringExpense entity or None if not found
        """
        return self.db.get_recurring_expense(expense_id)

    def get_history(self, expense_id: int) -> list[RecurringExpense]:
        """Every version sharing the category and target of an expense.

        Returns:
            Versions ordered by effective_from

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        expense = self._require(expense_id)
        key = targeting_key(expense)
        candidates = self.db.list_recurring_expenses(
            application_types=[expense.application_type], category_id=expense.category_id
        )
        return [c for c in candidates if targeting_key(c) == key]

    def change_rate(
        self,
        expense_id: int,
        new_amount: Decimal,
        effective_date: date,
        notes: Optional[str] = None,
    ) -> int:
        """Change the rate of the current version from a given date.

        The current version is closed the day before effective_date and a new
        open-ended version carrying new_amount starts on effective_date.

        Returns:
            ID of the new version

        Raises:
            NotFoundError: If the expense doesn't exist
            ValidationError: If the expense is not the current version, the
                amount is negative, or effective_date does not fall after the
                version's start
        """
        current = self._require(expense_id)
        self._require_current(current)
        if new_amount < 0:
            raise ValidationError(f"Amount must not be negative, got {new_amount}")
        if effective_date <= current.effective_from:
            raise ValidationError(
                f"Rate change date {effective_date} must be after {current.effective_from}"
            )

        self.db.close_recurring_expense(current.id, effective_date - timedelta(days=1))
        new_id = self._append_version(
            current, amount=new_amount, effective_from=effective_date, notes=notes or current.notes
        )
        logger.info(
            "Changed rate of recurring expense %d from %s to %s on %s (new version %d)",
            current.id,
            current.amount,
            new_amount,
            effective_date,
            new_id,
        )
        return new_id

    def deactivate_with_end_date(self, expense_id: int, end_date: date) -> None:
        """Stop charging an expense from end_date.

        end_date is the first day no longer charged, so the version is closed
        on the day before.

        Raises:
            NotFoundError: If the expense doesn't exist
            ValidationError: If the expense is not the current version or
                end_date is not after its start
        """
        current = self._require(expense_id)
        self._require_current(current)
        if end_date <= current.effective_from:
            raise ValidationError(
                f"End date {end_date} must be after effective-from {current.effective_from}"
            )
        self.db.close_recurring_expense(current.id, end_date - timedelta(days=1))
        logger.info("Deactivated recurring expense %d from %s", current.id, end_date)

    def reactivate_with_date(self, expense_id: int, effective_date: date) -> int:
        """Resume a closed expense by appending a new version.

        The closed version is left untouched; the new version copies its
        amount, billing method and target.

        Returns:
            ID of the new version

        Raises:
            NotFoundError: If the expense doesn't exist
            ValidationError: If the expense is open-ended or effective_date
                falls inside the closed version
            ConflictError: If another open-ended version already covers the target
        """
        closed = self._require(expense_id)
        if closed.effective_to is None:
            raise ValidationError(f"Recurring expense {expense_id} is still active")
        if effective_date <= closed.effective_to:
            raise ValidationError(
                f"Reactivation date {effective_date} must be after {closed.effective_to}"
            )
        if any(v.effective_to is None for v in self.get_history(expense_id)):
            raise ConflictError(
                f"Recurring expense {expense_id} already has an active version"
            )

        new_id = self._append_version(
            closed, amount=closed.amount, effective_from=effective_date, notes=closed.notes
        )
        logger.info("Reactivated recurring expense %d from %s as %d", closed.id, effective_date, new_id)
        return new_id

    def calculate_total_for_range(self, expense_id: int, query_from: date, query_to: date) -> Decimal:
        """Prorated total over a range, summed across every version of an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            ValidationError: If the range is inverted or the expense is billed
                per shift
        """
        versions = self.get_history(expense_id)
        if not versions:
            return ZERO
        return calculate_total_for_versions(versions, query_from, query_to)

    def list_recurring_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None, active_only: bool = False
    ) -> list[RecurringExpense]:
        """List versions overlapping a range."""
        return self.db.list_recurring_expenses(
            overlapping_from=start_date, overlapping_to=end_date, active_only=active_only
        )

    def _require(self, expense_id: int) -> RecurringExpense:
        expense = self.db.get_recurring_expense(expense_id)
        if expense is None:
            raise NotFoundError(recurring_expense_not_found(expense_id))
        return expense

    def _require_current(self, expense: RecurringExpense) -> None:
        if not expense.is_active or expense.effective_to is not None:
            raise ValidationError(
                f"Recurring expense {expense.id} is a closed version; only the current version can change"
            )

    def _find_overlapping(
        self,
        category_id: int,
        application_type: ApplicationTypeCode,
        effective_from: date,
        effective_to: Optional[date],
        **targets,
    ) -> list:
        """Versions of a category on the same target whose effective range overlaps."""
        candidates = self.db.list_recurring_expenses(
            category_id=category_id,
            overlapping_from=effective_from,
            overlapping_to=effective_to,
        )
        wanted = build_target(application_type, **targets)
        return [
            c
            for c in candidates
            if target_of(c) == wanted
            and all(getattr(c, name) == targets.get(name) for name in _TARGET_FIELDS)
        ]

    def _append_version(
        self,
        previous: RecurringExpense,
        amount: Decimal,
        effective_from: date,
        notes: Optional[str],
    ) -> int:
        return self.db.create_recurring_expense(
            category_id=previous.category_id,
            application_type=previous.application_type,
            amount=amount,
            billing_method=previous.billing_method,
            effective_from=effective_from,
            effective_to=None,
            cab_id=previous.cab_id,
            shift_id=previous.shift_id,
            shift_profile_id=previous.shift_profile_id,
            owner_id=previous.owner_id,
            driver_id=previous.driver_id,
            attribute_type_id=previous.attribute_type_id,
            auto_generated=previous.auto_generated,
            source_category_id=previous.source_category_id,
            notes=notes,
        )
