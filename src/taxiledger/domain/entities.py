"""Domain model entities for taxiledger.

These are pure data classes representing fleet and billing concepts,
independent of the database schema. Services and the expense engine only
ever see these; the ORM models stay behind the database layer.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class ShiftType(str, Enum):
    """The two slots every cab is split into."""

    DAY = "DAY"
    NIGHT = "NIGHT"


class ShiftStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CabType(str, Enum):
    SEDAN = "SEDAN"
    HANDICAP_VAN = "HANDICAP_VAN"


class ShareType(str, Enum):
    VOTING_SHAREHOLDER = "VOTING_SHAREHOLDER"
    NON_VOTING_SHAREHOLDER = "NON_VOTING_SHAREHOLDER"


class BillingMethod(str, Enum):
    """How a recurring expense amount is turned into a charge."""

    MONTHLY = "MONTHLY"
    DAILY = "DAILY"
    PER_SHIFT = "PER_SHIFT"


class AppliesTo(str, Enum):
    CAB = "CAB"
    SHIFT = "SHIFT"


class ApplicationTypeCode(str, Enum):
    """Stored code for an expense's targeting rule.

    ALL_NON_OWNER_DRIVERS and SPECIFIC_OWNER_DRIVER are legacy spellings of
    ALL_DRIVERS and SPECIFIC_PERSON and resolve identically.
    """

    SPECIFIC_SHIFT = "SPECIFIC_SHIFT"
    SPECIFIC_CAB = "SPECIFIC_CAB"
    SHIFT_PROFILE = "SHIFT_PROFILE"
    SHIFTS_WITH_ATTRIBUTE = "SHIFTS_WITH_ATTRIBUTE"
    ALL_ACTIVE_SHIFTS = "ALL_ACTIVE_SHIFTS"
    ALL_OWNERS = "ALL_OWNERS"
    ALL_DRIVERS = "ALL_DRIVERS"
    ALL_NON_OWNER_DRIVERS = "ALL_NON_OWNER_DRIVERS"
    SPECIFIC_PERSON = "SPECIFIC_PERSON"
    SPECIFIC_OWNER_DRIVER = "SPECIFIC_OWNER_DRIVER"


class DriverShiftStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class StatementStatus(str, Enum):
    DRAFT = "DRAFT"
    FINALIZED = "FINALIZED"


class PersonType(str, Enum):
    OWNER = "OWNER"
    DRIVER = "DRIVER"


@dataclass(frozen=True)
class Driver:
    """Driver domain entity. Owners are drivers with is_owner set."""

    id: int
    driver_number: str
    first_name: str
    last_name: str
    is_owner: bool
    created_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Cab:
    """Cab domain entity."""

    id: int
    cab_number: str
    created_at: datetime


@dataclass(frozen=True)
class ShiftProfile:
    """Named bundle of shift characteristics that expenses can target."""

    id: int
    code: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class CabShift:
    """A long-lived DAY or NIGHT slot on a cab."""

    id: int
    cab_id: int
    cab_number: str
    shift_type: ShiftType
    status: ShiftStatus
    current_owner_id: int
    current_profile_id: Optional[int]
    cab_type: CabType
    share_type: Optional[ShareType]
    has_airport_license: bool
    created_at: datetime

    @property
    def label(self) -> str:
        return f"Cab {self.cab_number} - {self.shift_type.value}"


@dataclass(frozen=True)
class ShiftOwnership:
    """Date-ranged ownership of a cab shift. end_date None means current."""

    id: int
    shift_id: int
    owner_id: int
    start_date: date
    end_date: Optional[date]


@dataclass(frozen=True)
class DriverShift:
    """One occurrence of a driver actually operating a cab."""

    id: int
    driver_number: str
    cab_number: str
    shift_type: ShiftType
    logon_time: datetime
    logoff_time: Optional[datetime]
    total_distance: Optional[Decimal]
    status: DriverShiftStatus

    @property
    def shift_date(self) -> date:
        return self.logon_time.date()


@dataclass(frozen=True)
class AttributeType:
    id: int
    code: str
    name: str


@dataclass(frozen=True)
class ShiftAttributeValue:
    """Versioned attribute on a cab shift. end_date None means current."""

    id: int
    shift_id: int
    attribute_type_id: int
    value: Optional[str]
    start_date: date
    end_date: Optional[date]


@dataclass(frozen=True)
class ExpenseCategory:
    """Reusable template that seeds recurring and one-time expenses."""

    id: int
    code: str
    name: str
    applies_to: AppliesTo
    application_type: Optional[ApplicationTypeCode]
    shift_profile_id: Optional[int]
    attribute_type_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class RecurringExpense:
    """One version of a date-ranged recurring charge."""

    id: int
    category_id: Optional[int]
    application_type: ApplicationTypeCode
    amount: Decimal
    billing_method: BillingMethod
    effective_from: date
    effective_to: Optional[date]
    is_active: bool
    cab_id: Optional[int] = None
    shift_id: Optional[int] = None
    shift_profile_id: Optional[int] = None
    owner_id: Optional[int] = None
    driver_id: Optional[int] = None
    attribute_type_id: Optional[int] = None
    auto_generated: bool = False
    source_category_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OneTimeExpense:
    """A single ad-hoc charge on one date."""

    id: int
    category_id: Optional[int]
    application_type: ApplicationTypeCode
    amount: Decimal
    expense_date: date
    name: Optional[str] = None
    description: Optional[str] = None
    cab_id: Optional[int] = None
    shift_id: Optional[int] = None
    shift_profile_id: Optional[int] = None
    owner_id: Optional[int] = None
    driver_id: Optional[int] = None
    attribute_type_id: Optional[int] = None
    is_reimbursed: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeasePlan:
    id: int
    name: str
    effective_from: date
    effective_to: Optional[date]
    is_active: bool


@dataclass(frozen=True)
class LeaseRate:
    """Rate table row keyed by plan, cab type, airport license, shift and weekday."""

    id: int
    plan_id: int
    cab_type: CabType
    has_airport_license: bool
    shift_type: ShiftType
    day_of_week: int
    base_rate: Decimal
    mileage_rate: Decimal


@dataclass(frozen=True)
class LeaseRateOverride:
    """Owner-specific base rate. None in cab/shift/day means "any"."""

    id: int
    owner_driver_number: str
    cab_number: Optional[str]
    shift_type: Optional[ShiftType]
    day_of_week: Optional[int]
    lease_rate: Decimal
    start_date: date
    end_date: Optional[date]
    is_active: bool
    priority: int
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class LeaseExpense:
    """Persisted lease charge for one driven shift."""

    id: int
    driver_shift_id: int
    driver_id: int
    owner_id: int
    cab_shift_id: int
    lease_date: date
    base_rate: Decimal
    mileage_rate: Decimal
    miles: Decimal
    mileage_lease: Decimal
    total_lease: Decimal
    created_at: datetime


@dataclass(frozen=True)
class Statement:
    """Finalized, immutable statement snapshot."""

    id: int
    person_id: int
    person_type: PersonType
    person_name: str
    period_from: date
    period_to: date
    total_revenues: Decimal
    total_recurring_expenses: Decimal
    total_one_time_expenses: Decimal
    total_lease_expenses: Decimal
    total_expenses: Decimal
    previous_balance: Decimal
    paid_amount: Decimal
    net_due: Decimal
    status: StatementStatus
    line_items_json: str
    generated_at: datetime
