"""One-time expense domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from taxiledger.database.base import Database
from taxiledger.domain.application_type import build_target
from taxiledger.domain.entities import ApplicationTypeCode, OneTimeExpense
from taxiledger.domain.errors import (
    NotFoundError,
    ValidationError,
    category_not_found,
    one_time_expense_not_found,
)
from taxiledger.domain.resolver import ensure_target_exists

logger = logging.getLogger(__name__)


class OneTimeExpenseService:
    """Service for managing one-time expenses."""

    def __init__(self, db: Database):
        """Initialize one-time expense service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_expense(
        self,
        category_id: Optional[int],
        application_type: ApplicationTypeCode,
        amount: Decimal,
        expense_date: date,
        name: Optional[str] = None,
        description: Optional[str] = None,
        cab_id: Optional[int] = None,
        shift_id: Optional[int] = None,
        shift_profile_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        attribute_type_id: Optional[int] = None,
    ) -> int:
        """Create a one-time expense.

        Returns:
            One-time expense ID

        Raises:
            ValidationError: If the amount or targeting fields are invalid
            NotFoundError: If the category or target entity doesn't exist
        """
        if amount < 0:
            raise ValidationError(f"Amount must not be negative, got {amount}")
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
        if category_id is not None and self.db.get_expense_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))

        expense_id = self.db.create_one_time_expense(
            category_id=category_id,
            application_type=application_type,
            amount=amount,
            expense_date=expense_date,
            name=name,
            description=description,
            cab_id=cab_id,
            shift_id=shift_id,
            shift_profile_id=shift_profile_id,
            owner_id=owner_id,
            driver_id=driver_id,
            attribute_type_id=attribute_type_id,
        )
        logger.info("Created one-time expense %d for %s on %s", expense_id, amount, expense_date)
        return expense_id

    def get_expense(self, expense_id: int) -> Optional[OneTimeExpense]:
        """Get one-time expense by ID.

        Args:
            expense_id: One-time expense ID

        Returns:
            OneTimeExpense entity or None if not found
        """
        return self.db.get_one_time_expense(expense_id)

    def correct_expense(
        self,
        expense_id: int,
        amount: Optional[Decimal] = None,
        expense_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> None:
        """Correct the amount, date or description of an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            ValidationError: If the new amount is negative
        """
        self._require(expense_id)
        if amount is not None and amount < 0:
            raise ValidationError(f"Amount must not be negative, got {amount}")
        self.db.update_one_time_expense(
            expense_id, amount=amount, expense_date=expense_date, description=description
        )

    def mark_reimbursed(self, expense_id: int, reimbursed: bool = True) -> None:
        self._require(expense_id)
        self.db.update_one_time_expense(expense_id, is_reimbursed=reimbursed)

    def delete_expense(self, expense_id: int) -> None:
        """Delete a one-time expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        self._require(expense_id)
        self.db.delete_one_time_expense(expense_id)
        logger.info("Deleted one-time expense %d", expense_id)

    def list_expenses(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[OneTimeExpense]:
        """List one-time expenses dated inside a range."""
        return self.db.list_one_time_expenses(start_date=start_date, end_date=end_date)

    def _require(self, expense_id: int) -> OneTimeExpense:
        expense = self.db.get_one_time_expense(expense_id)
        if expense is None:
            raise NotFoundError(one_time_expense_not_found(expense_id))
        return expense
