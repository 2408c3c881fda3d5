"""Result types produced by the expense and lease engines.

Line items and calculation results are frozen. Report containers that are
filled in incrementally (statement reports, lease reports) are plain
dataclasses with a method that recomputes their totals.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from taxiledger.domain.entities import BillingMethod, PersonType, StatementStatus

ZERO = Decimal("0.00")


class RateSource(str, Enum):
    """Where a lease base rate came from."""

    OVERRIDE = "OVERRIDE"
    RATE_TABLE = "RATE_TABLE"
    DEFAULT = "DEFAULT"
    NONE = "NONE"


class ReconciliationStatus(str, Enum):
    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    MISSING_FROM_EXPENSE = "MISSING_FROM_EXPENSE"
    MISSING_FROM_REVENUE = "MISSING_FROM_REVENUE"


@dataclass(frozen=True)
class LeaseCalculation:
    """Lease breakdown for a single driven shift."""

    base_rate: Decimal
    mileage_rate: Decimal
    miles: Decimal
    mileage_lease: Decimal
    total_lease: Decimal
    rate_source: RateSource
    excluded: bool = False

    @classmethod
    def self_driven(cls) -> "LeaseCalculation":
        """Zero lease for a shift driven by its own owner."""
        return cls(
            base_rate=ZERO,
            mileage_rate=ZERO,
            miles=ZERO,
            mileage_lease=ZERO,
            total_lease=ZERO,
            rate_source=RateSource.NONE,
            excluded=True,
        )


@dataclass(frozen=True)
class LeaseLineItem:
    """One leased shift as seen from either the owner or the driver side."""

    driver_shift_id: int
    shift_date: date
    logon_time: datetime
    logoff_time: Optional[datetime]
    cab_number: str
    shift_type: str
    driver_number: str
    driver_name: str
    owner_number: str
    owner_name: str
    miles: Decimal
    base_rate: Decimal
    mileage_rate: Decimal
    mileage_lease: Decimal
    total_lease: Decimal
    rate_source: RateSource


@dataclass
class LeaseReport:
    """Lease revenue (owner view) or lease expense (driver view) for a period."""

    person_number: str
    person_name: str
    start_date: date
    end_date: date
    items: list[LeaseLineItem] = field(default_factory=list)
    total_base_lease: Decimal = ZERO
    total_mileage_lease: Decimal = ZERO
    grand_total_lease: Decimal = ZERO
    error_count: int = 0

    def add_item(self, item: LeaseLineItem) -> None:
        self.items.append(item)

    def calculate_summary(self) -> None:
        self.total_base_lease = sum((i.base_rate for i in self.items), ZERO)
        self.total_mileage_lease = sum((i.mileage_lease for i in self.items), ZERO)
        self.grand_total_lease = sum((i.total_lease for i in self.items), ZERO)


@dataclass(frozen=True)
class LeaseDebugRow:
    """Both views of one driven shift, side by side."""

    driver_shift_id: int
    shift_date: date
    cab_number: str
    shift_type: str
    driver_number: str
    owner_number: str
    miles: Decimal
    lease_from_expense: Decimal
    lease_from_revenue: Decimal
    difference: Decimal
    status: ReconciliationStatus


@dataclass(frozen=True)
class LeaseDebugReport:
    start_date: date
    end_date: date
    rows: tuple[LeaseDebugRow, ...]
    total_expense_view: Decimal
    total_revenue_view: Decimal
    total_difference: Decimal
    match_count: int
    mismatch_count: int

    @property
    def is_reconciled(self) -> bool:
        return self.mismatch_count == 0 and self.total_difference == 0


@dataclass(frozen=True)
class StatementLineItem:
    """One charge or revenue line on a statement."""

    category_code: str
    category_name: str
    application_type: str
    entity_description: str
    amount: Decimal
    is_recurring: bool = False
    expense_id: Optional[int] = None
    billing_method: Optional[BillingMethod] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    line_date: Optional[date] = None
    shift_id: Optional[int] = None
    cab_number: Optional[str] = None
    shift_type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class StatementReport:
    """Draft statement for one person and period, built up line by line."""

    person_id: int
    person_number: str
    person_name: str
    person_type: PersonType
    period_from: date
    period_to: date
    revenues: list[StatementLineItem] = field(default_factory=list)
    recurring_charges: list[StatementLineItem] = field(default_factory=list)
    one_time_charges: list[StatementLineItem] = field(default_factory=list)
    lease_charges: list[StatementLineItem] = field(default_factory=list)
    previous_balance: Decimal = ZERO
    paid_amount: Decimal = ZERO
    total_revenues: Decimal = ZERO
    total_recurring_expenses: Decimal = ZERO
    total_one_time_expenses: Decimal = ZERO
    total_lease_expenses: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_amount: Decimal = ZERO
    net_due: Decimal = ZERO
    skipped_items: int = 0
    status: StatementStatus = StatementStatus.DRAFT
    statement_id: Optional[int] = None

    def calculate_totals(self) -> None:
        """Recompute every total from the current line items."""
        self.total_revenues = sum((line.amount for line in self.revenues), ZERO)
        self.total_recurring_expenses = sum(
            (line.amount for line in self.recurring_charges), ZERO
        )
        self.total_one_time_expenses = sum(
            (line.amount for line in self.one_time_charges), ZERO
        )
        self.total_lease_expenses = sum((line.amount for line in self.lease_charges), ZERO)
        self.total_expenses = (
            self.total_recurring_expenses
            + self.total_one_time_expenses
            + self.total_lease_expenses
        )
        self.net_amount = self.total_revenues - self.total_expenses
        self.net_due = (
            self.previous_balance + self.total_revenues - self.total_expenses - self.paid_amount
        )


@dataclass(frozen=True)
class PersonSummary:
    """Totals for one person in a driver summary."""

    person_id: int
    person_number: str
    person_name: str
    is_owner: bool
    total_revenues: Decimal
    total_expenses: Decimal
    net_due: Decimal
    error: Optional[str] = None


@dataclass(frozen=True)
class DriverSummaryReport:
    start_date: date
    end_date: date
    summaries: tuple[PersonSummary, ...]
    total_revenues: Decimal
    total_expenses: Decimal
    total_net_due: Decimal
    error_count: int


@dataclass(frozen=True)
class CategoryApplicationResult:
    """Outcome of applying an expense category to its targets."""

    category_id: int
    created_expense_ids: tuple[int, ...]
    skipped: int
    errors: tuple[str, ...]
