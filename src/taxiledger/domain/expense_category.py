"""Expense category domain service.

A category is a template. Applying it creates auto-generated recurring
expenses: shift-scoped categories fan out into one SPECIFIC_SHIFT expense
per active matching shift, everything else becomes a single expense with
the category's own targeting.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.application_type import (
    AllActiveShifts,
    AttributeTagged,
    ShiftProfileTarget,
    build_target,
    target_of,
)
from taxiledger.domain.entities import (
    ApplicationTypeCode,
    AppliesTo,
    BillingMethod,
    CabShift,
    ExpenseCategory,
)
from taxiledger.domain.errors import DomainError, NotFoundError, ValidationError, category_not_found
from taxiledger.domain.recurring_expense import RecurringExpenseService
from taxiledger.domain.reports import CategoryApplicationResult
from taxiledger.domain.resolver import ApplicationTypeResolver, ResolvedTarget, ensure_target_exists

logger = logging.getLogger(__name__)

SHIFT_SCOPED_TARGETS = (ShiftProfileTarget, AttributeTagged, AllActiveShifts)


class ExpenseCategoryService:
    """Service for managing expense categories and applying them."""

    def __init__(self, db: Database):
        """Initialize expense category service.

        Args:
            db: Database instance
        """
        self.db = db
        self.resolver = ApplicationTypeResolver(db)
        self.recurring = RecurringExpenseService(db)

    def create_category(
        self,
        code: str,
        name: str,
        applies_to: AppliesTo = AppliesTo.SHIFT,
        application_type: Optional[ApplicationTypeCode] = None,
        shift_profile_id: Optional[int] = None,
        attribute_type_id: Optional[int] = None,
    ) -> int:
        """Create an expense category.

        Args:
            code: Unique category code
            name: Display name
            applies_to: CAB or SHIFT scope
            application_type: Targeting rule used when the category is applied
            shift_profile_id: Linked profile (SHIFT_PROFILE)
            attribute_type_id: Linked attribute type (SHIFTS_WITH_ATTRIBUTE)

        Returns:
            Category ID

        Raises:
            ValidationError: If code or name is empty, or the application type
                needs an id a category cannot carry
            NotFoundError: If the linked profile or attribute type doesn't exist
        """
        if not code.strip():
            raise ValidationError("Category code cannot be empty")
        if not name.strip():
            raise ValidationError("Category name cannot be empty")
        if application_type is not None:
            target = build_target(
                application_type,
                shift_profile_id=shift_profile_id,
                attribute_type_id=attribute_type_id,
            )
            ensure_target_exists(self.db, target)
        try:
            category_id = self.db.create_expense_category(
                code=code.strip(),
                name=name.strip(),
                applies_to=applies_to,
                application_type=application_type,
                shift_profile_id=shift_profile_id,
                attribute_type_id=attribute_type_id,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        logger.info("Created expense category %s (%d)", code, category_id)
        return category_id

    def get_category(self, category_id: int) -> Optional[ExpenseCategory]:
        """Get expense category by ID."""
        return self.db.get_expense_category(category_id)

    def get_category_by_code(self, code: str) -> Optional[ExpenseCategory]:
        """Get expense category by code."""
        return self.db.get_expense_category_by_code(code)

    def list_categories(self) -> list[ExpenseCategory]:
        """List all expense categories."""
        return self.db.list_expense_categories()

    def preview_targets(
        self, category_id: int, as_of: date, active_only: bool = True
    ) -> list[ResolvedTarget]:
        """Entities the category would charge if applied on as_of.

        Raises:
            NotFoundError: If the category doesn't exist
            ValidationError: If the category has no application type
        """
        category = self._require(category_id)
        return self.resolver.resolve_targets(category, as_of, active_only=active_only)

    def apply_category(
        self,
        category_id: int,
        amount: Decimal,
        billing_method: BillingMethod,
        effective_from: date,
        notes: Optional[str] = None,
    ) -> CategoryApplicationResult:
        """Create auto-generated recurring expenses from a category.

        Targets that already hold an active expense for the category are
        skipped. A failure on one target is logged and recorded in the result
        without stopping the others.

        Raises:
            NotFoundError: If the category doesn't exist
            ValidationError: If the category has no application type
        """
        category = self._require(category_id)
        target = target_of(category)

        created: list[int] = []
        errors: list[str] = []
        skipped = 0

        if isinstance(target, SHIFT_SCOPED_TARGETS):
            shifts = self.resolver.resolve_targets(target, effective_from, active_only=True)
            for shift in shifts:
                if self._has_active_for_shift(category.id, shift):
                    skipped += 1
                    continue
                try:
                    created.append(
                        self.recurring.create_recurring_expense(
                            category_id=category.id,
                            application_type=ApplicationTypeCode.SPECIFIC_SHIFT,
                            amount=amount,
                            billing_method=billing_method,
                            effective_from=effective_from,
                            shift_id=shift.id,
                            auto_generated=True,
                            source_category_id=category.id,
                            notes=notes,
                        )
                    )
                except DomainError as e:
                    logger.error("Could not apply category %s to %s: %s", category.code, shift.label, e)
                    errors.append(f"{shift.label}: {e}")
        else:
            existing = self.db.list_recurring_expenses(
                category_id=category.id,
                application_types=[category.application_type],
                active_only=True,
            )
            if existing:
                skipped += 1
            else:
                try:
                    created.append(
                        self.recurring.create_recurring_expense(
                            category_id=category.id,
                            application_type=category.application_type,
                            amount=amount,
                            billing_method=billing_method,
                            effective_from=effective_from,
                            shift_profile_id=category.shift_profile_id,
                            attribute_type_id=category.attribute_type_id,
                            auto_generated=True,
                            source_category_id=category.id,
                            notes=notes,
                        )
                    )
                except DomainError as e:
                    logger.error("Could not apply category %s: %s", category.code, e)
                    errors.append(str(e))

        logger.info(
            "Applied category %s: %d created, %d skipped, %d failed",
            category.code,
            len(created),
            skipped,
            len(errors),
        )
        return CategoryApplicationResult(
            category_id=category.id,
            created_expense_ids=tuple(created),
            skipped=skipped,
            errors=tuple(errors),
        )

    def _has_active_for_shift(self, category_id: int, shift: CabShift) -> bool:
        return bool(
            self.db.list_recurring_expenses(
                category_id=category_id,
                application_types=[ApplicationTypeCode.SPECIFIC_SHIFT],
                shift_ids=[shift.id],
                active_only=True,
            )
        )

    def _require(self, category_id: int) -> ExpenseCategory:
        category = self.db.get_expense_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category
