"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from taxiledger.domain.entities import (
    ApplicationTypeCode,
    AppliesTo,
    AttributeType,
    BillingMethod,
    Cab,
    CabShift,
    CabType,
    Driver,
    DriverShift,
    DriverShiftStatus,
    ExpenseCategory,
    LeaseExpense,
    LeasePlan,
    LeaseRate,
    LeaseRateOverride,
    OneTimeExpense,
    PersonType,
    RecurringExpense,
    ShareType,
    ShiftAttributeValue,
    ShiftOwnership,
    ShiftProfile,
    ShiftStatus,
    ShiftType,
    Statement,
)


class Database(ABC):
    """Abstract database interface for taxiledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Driver operations
    @abstractmethod
    def create_driver(
        self, driver_number: str, first_name: str, last_name: str = "", is_owner: bool = False
    ) -> int:
        """Create a driver. Returns driver ID."""
        pass

    @abstractmethod
    def get_driver(self, driver_id: int) -> Optional[Driver]:
        """Get driver by ID."""
        pass

    @abstractmethod
    def get_driver_by_number(self, driver_number: str) -> Optional[Driver]:
        """Get driver by driver number."""
        pass

    @abstractmethod
    def list_drivers(self, is_owner: Optional[bool] = None) -> list[Driver]:
        """List drivers, optionally only owners or only non-owners."""
        pass

    # Cab operations
    @abstractmethod
    def create_cab(self, cab_number: str) -> int:
        """Create a cab. Returns cab ID."""
        pass

    @abstractmethod
    def get_cab(self, cab_id: int) -> Optional[Cab]:
        """Get cab by ID."""
        pass

    @abstractmethod
    def get_cab_by_number(self, cab_number: str) -> Optional[Cab]:
        """Get cab by cab number."""
        pass

    @abstractmethod
    def list_cabs(self) -> list[Cab]:
        """List all cabs."""
        pass

    # Shift profile operations
    @abstractmethod
    def create_shift_profile(self, code: str, name: str) -> int:
        """Create a shift profile. Returns profile ID."""
        pass

    @abstractmethod
    def get_shift_profile(self, profile_id: int) -> Optional[ShiftProfile]:
        """Get shift profile by ID."""
        pass

    @abstractmethod
    def list_shift_profiles(self) -> list[ShiftProfile]:
        """List all shift profiles."""
        pass

    # Cab shift operations
    @abstractmethod
    def create_cab_shift(
        self,
        cab_id: int,
        shift_type: ShiftType,
        owner_id: int,
        cab_type: CabType = CabType.SEDAN,
        share_type: Optional[ShareType] = None,
        has_airport_license: bool = False,
        profile_id: Optional[int] = None,
    ) -> int:
        """Create a cab shift. Returns shift ID."""
        pass

    @abstractmethod
    def get_cab_shift(self, shift_id: int) -> Optional[CabShift]:
        """Get cab shift by ID."""
        pass

    @abstractmethod
    def get_cab_shift_by_cab_number(self, cab_number: str, shift_type: ShiftType) -> Optional[CabShift]:
        """Get the DAY or NIGHT shift of a cab by its cab number."""
        pass

    @abstractmethod
    def list_cab_shifts(
        self,
        cab_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        profile_id: Optional[int] = None,
        status: Optional[ShiftStatus] = None,
    ) -> list[CabShift]:
        """List cab shifts with optional filters."""
        pass

    @abstractmethod
    def update_cab_shift(
        self,
        shift_id: int,
        owner_id: Optional[int] = None,
        profile_id: Optional[int] = None,
        status: Optional[ShiftStatus] = None,
    ) -> None:
        """Update the current owner, profile or status of a cab shift."""
        pass

    # Ownership operations
    @abstractmethod
    def create_shift_ownership(self, shift_id: int, owner_id: int, start_date: date) -> int:
        """Create an open-ended ownership row. Returns ownership ID."""
        pass

    @abstractmethod
    def close_shift_ownership(self, ownership_id: int, end_date: date) -> None:
        """Set the end date of an ownership row."""
        pass

    @abstractmethod
    def get_shift_ownership_on(self, shift_id: int, on_date: date) -> Optional[ShiftOwnership]:
        """Get the ownership row covering a date, if any."""
        pass

    @abstractmethod
    def list_shift_ownerships(
        self,
        shift_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        overlapping_from: Optional[date] = None,
        overlapping_to: Optional[date] = None,
    ) -> list[ShiftOwnership]:
        """List ownership rows, optionally only those overlapping a date range."""
        pass

    # Driver shift operations
    @abstractmethod
    def create_driver_shift(
        self,
        driver_number: str,
        cab_number: str,
        shift_type: ShiftType,
        logon_time: datetime,
        logoff_time: Optional[datetime] = None,
        total_distance: Optional[Decimal] = None,
        status: DriverShiftStatus = DriverShiftStatus.COMPLETED,
    ) -> int:
        """Record a driven shift. Returns driver shift ID."""
        pass

    @abstractmethod
    def get_driver_shift(self, driver_shift_id: int) -> Optional[DriverShift]:
        """Get driven shift by ID."""
        pass

    @abstractmethod
    def list_driver_shifts(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        driver_number: Optional[str] = None,
        cab_number: Optional[str] = None,
        shift_type: Optional[ShiftType] = None,
        status: Optional[DriverShiftStatus] = None,
    ) -> list[DriverShift]:
        """List driven shifts by logon date (inclusive) with optional filters."""
        pass

    # Attribute operations
    @abstractmethod
    def create_attribute_type(self, code: str, name: str) -> int:
        """Create an attribute type. Returns attribute type ID."""
        pass

    @abstractmethod
    def get_attribute_type(self, attribute_type_id: int) -> Optional[AttributeType]:
        """Get attribute type by ID."""
        pass

    @abstractmethod
    def create_shift_attribute(
        self, shift_id: int, attribute_type_id: int, start_date: date, value: Optional[str] = None
    ) -> int:
        """Attach an attribute to a shift from start_date. Returns attribute value ID."""
        pass

    @abstractmethod
    def close_shift_attribute(self, attribute_value_id: int, end_date: date) -> None:
        """Set the end date of a shift attribute value."""
        pass

    @abstractmethod
    def list_shift_attributes(
        self,
        shift_id: Optional[int] = None,
        attribute_type_id: Optional[int] = None,
        active_on: Optional[date] = None,
    ) -> list[ShiftAttributeValue]:
        """List shift attribute values, optionally only those in effect on a date."""
        pass

    # Expense category operations
    @abstractmethod
    def create_expense_category(
        self,
        code: str,
        name: str,
        applies_to: AppliesTo = AppliesTo.SHIFT,
        application_type: Optional[ApplicationTypeCode] = None,
        shift_profile_id: Optional[int] = None,
        attribute_type_id: Optional[int] = None,
    ) -> int:
        """Create an expense category. Returns category ID."""
        pass

    @abstractmethod
    def get_expense_category(self, category_id: int) -> Optional[ExpenseCategory]:
        """Get expense category by ID."""
        pass

    @abstractmethod
    def get_expense_category_by_code(self, code: str) -> Optional[ExpenseCategory]:
        """Get expense category by code."""
        pass

    @abstractmethod
    def list_expense_categories(self) -> list[ExpenseCategory]:
        """List all expense categories."""
        pass

    # Recurring expense operations
    @abstractmethod
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
        """Create a recurring expense version. Returns expense ID."""
        pass

    @abstractmethod
    def get_recurring_expense(self, expense_id: int) -> Optional[RecurringExpense]:
        """Get recurring expense version by ID."""
        pass

    @abstractmethod
    def close_recurring_expense(self, expense_id: int, effective_to: date) -> None:
        """Close a recurring expense version.

        Sets effective_to and clears is_active. This is the only mutation
        ever applied to a stored recurring expense.
        """
        pass

    @abstractmethod
    def list_recurring_expenses(
        self,
        application_types: Optional[Iterable[ApplicationTypeCode]] = None,
        category_id: Optional[int] = None,
        shift_ids: Optional[Iterable[int]] = None,
        cab_ids: Optional[Iterable[int]] = None,
        shift_profile_ids: Optional[Iterable[int]] = None,
        attribute_type_ids: Optional[Iterable[int]] = None,
        person_id: Optional[int] = None,
        overlapping_from: Optional[date] = None,
        overlapping_to: Optional[date] = None,
        active_only: bool = False,
    ) -> list[RecurringExpense]:
        """List recurring expense versions with optional filters.

        Args:
            application_types: Only these application type codes
            category_id: Only versions of this category
            shift_ids: Only versions targeting one of these shifts
            cab_ids: Only versions targeting one of these cabs
            shift_profile_ids: Only versions targeting one of these profiles
            attribute_type_ids: Only versions targeting one of these attribute types
            person_id: Only versions whose owner_id or driver_id is this person
            overlapping_from: With overlapping_to, only versions whose effective
                range shares a day with [overlapping_from, overlapping_to]
            overlapping_to: See overlapping_from
            active_only: Only versions with is_active set

        Returns:
            Versions ordered by effective_from, then ID
        """
        pass

    # One-time expense operations
    @abstractmethod
    def create_one_time_expense(
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
        """Create a one-time expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_one_time_expense(self, expense_id: int) -> Optional[OneTimeExpense]:
        """Get one-time expense by ID."""
        pass

    @abstractmethod
    def update_one_time_expense(
        self,
        expense_id: int,
        amount: Optional[Decimal] = None,
        expense_date: Optional[date] = None,
        description: Optional[str] = None,
        is_reimbursed: Optional[bool] = None,
    ) -> None:
        """Update fields of a one-time expense. Only non-None values are changed."""
        pass

    @abstractmethod
    def delete_one_time_expense(self, expense_id: int) -> None:
        """Delete a one-time expense."""
        pass

    @abstractmethod
    def list_one_time_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        application_types: Optional[Iterable[ApplicationTypeCode]] = None,
        shift_ids: Optional[Iterable[int]] = None,
        cab_ids: Optional[Iterable[int]] = None,
        shift_profile_ids: Optional[Iterable[int]] = None,
        attribute_type_ids: Optional[Iterable[int]] = None,
        person_id: Optional[int] = None,
    ) -> list[OneTimeExpense]:
        """List one-time expenses dated inside a range with optional target filters."""
        pass

    # Lease plan and rate operations
    @abstractmethod
    def create_lease_plan(
        self, name: str, effective_from: date, effective_to: Optional[date] = None, is_active: bool = True
    ) -> int:
        """Create a lease plan. Returns plan ID."""
        pass

    @abstractmethod
    def get_active_lease_plan(self, on_date: date) -> Optional[LeasePlan]:
        """Get the active lease plan whose effective range contains a date."""
        pass

    @abstractmethod
    def create_lease_rate(
        self,
        plan_id: int,
        cab_type: CabType,
        has_airport_license: bool,
        shift_type: ShiftType,
        day_of_week: int,
        base_rate: Decimal,
        mileage_rate: Decimal,
    ) -> int:
        """Create a lease rate row. Returns rate ID."""
        pass

    @abstractmethod
    def find_lease_rate(
        self,
        plan_id: int,
        cab_type: CabType,
        has_airport_license: bool,
        shift_type: ShiftType,
        day_of_week: int,
    ) -> Optional[LeaseRate]:
        """Get the rate row matching all criteria exactly."""
        pass

    @abstractmethod
    def create_lease_rate_override(
        self,
        owner_driver_number: str,
        lease_rate: Decimal,
        start_date: date,
        cab_number: Optional[str] = None,
        shift_type: Optional[ShiftType] = None,
        day_of_week: Optional[int] = None,
        end_date: Optional[date] = None,
        priority: int = 0,
        notes: Optional[str] = None,
    ) -> int:
        """Create a lease rate override. Returns override ID."""
        pass

    @abstractmethod
    def get_lease_rate_override(self, override_id: int) -> Optional[LeaseRateOverride]:
        """Get lease rate override by ID."""
        pass

    @abstractmethod
    def list_lease_rate_overrides(
        self, owner_driver_number: Optional[str] = None, active_only: bool = False
    ) -> list[LeaseRateOverride]:
        """List lease rate overrides, optionally for one owner."""
        pass

    @abstractmethod
    def deactivate_lease_rate_override(self, override_id: int) -> None:
        """Clear the is_active flag of an override."""
        pass

    # Lease expense operations
    @abstractmethod
    def create_lease_expense(
        self,
        driver_shift_id: int,
        driver_id: int,
        owner_id: int,
        cab_shift_id: int,
        lease_date: date,
        base_rate: Decimal,
        mileage_rate: Decimal,
        miles: Decimal,
        mileage_lease: Decimal,
        total_lease: Decimal,
    ) -> int:
        """Persist a lease expense. Returns lease expense ID."""
        pass

    @abstractmethod
    def get_lease_expense_by_driver_shift(self, driver_shift_id: int) -> Optional[LeaseExpense]:
        """Get the lease expense recorded for a driven shift."""
        pass

    @abstractmethod
    def list_lease_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        driver_id: Optional[int] = None,
        owner_id: Optional[int] = None,
    ) -> list[LeaseExpense]:
        """List persisted lease expenses by lease date."""
        pass

    # Statement operations
    @abstractmethod
    def create_statement(
        self,
        person_id: int,
        person_type: PersonType,
        person_name: str,
        period_from: date,
        period_to: date,
        total_revenues: Decimal,
        total_recurring_expenses: Decimal,
        total_one_time_expenses: Decimal,
        total_lease_expenses: Decimal,
        total_expenses: Decimal,
        previous_balance: Decimal,
        paid_amount: Decimal,
        net_due: Decimal,
        line_items_json: str,
    ) -> int:
        """Insert a finalized statement. Returns statement ID."""
        pass

    @abstractmethod
    def get_statement(self, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        pass

    @abstractmethod
    def find_statement(self, person_id: int, period_from: date, period_to: date) -> Optional[Statement]:
        """Get the finalized statement for a person and period, if any."""
        pass

    @abstractmethod
    def list_statements(self, person_id: Optional[int] = None) -> list[Statement]:
        """List finalized statements, newest period first."""
        pass
