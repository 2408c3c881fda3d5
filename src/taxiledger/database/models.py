"""SQLAlchemy models for taxiledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Text,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Driver(Base):
    """Driver model. Owners are drivers flagged is_owner."""

    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True)
    driver_number = Column(String(50), unique=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, default="")
    is_owner = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Cab(Base):
    """Cab model."""

    __tablename__ = "cabs"

    id = Column(Integer, primary_key=True)
    cab_number = Column(String(50), unique=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    shifts = relationship("CabShift", back_populates="cab", cascade="all, delete-orphan")


class ShiftProfile(Base):
    """Shift profile model."""

    __tablename__ = "shift_profiles"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class CabShift(Base):
    """DAY or NIGHT slot of a cab with its current owner and profile."""

    __tablename__ = "cab_shifts"

    id = Column(Integer, primary_key=True)
    cab_id = Column(Integer, ForeignKey("cabs.id"), nullable=False)
    shift_type = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")
    current_owner_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    current_profile_id = Column(Integer, ForeignKey("shift_profiles.id"), nullable=True)
    cab_type = Column(String(30), nullable=False, default="SEDAN")
    share_type = Column(String(30), nullable=True)
    has_airport_license = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("cab_id", "shift_type", name="uq_cab_shift_type"),)

    # Relationships
    cab = relationship("Cab", back_populates="shifts")


class ShiftOwnership(Base):
    """Date-ranged ownership of a cab shift."""

    __tablename__ = "shift_ownerships"

    id = Column(Integer, primary_key=True)
    shift_id = Column(Integer, ForeignKey("cab_shifts.id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    __table_args__ = (Index("idx_ownership_shift_dates", "shift_id", "start_date", "end_date"),)


class DriverShift(Base):
    """A shift actually driven, imported from the dispatch system."""

    __tablename__ = "driver_shifts"

    id = Column(Integer, primary_key=True)
    driver_number = Column(String(50), nullable=False)
    cab_number = Column(String(50), nullable=False)
    shift_type = Column(String(10), nullable=False)
    logon_time = Column(DateTime, nullable=False)
    logoff_time = Column(DateTime, nullable=True)
    total_distance = Column(Numeric(10, 2), nullable=True)
    status = Column(String(20), nullable=False, default="COMPLETED")

    __table_args__ = (
        Index("idx_driver_shift_driver_logon", "driver_number", "logon_time"),
        Index("idx_driver_shift_cab_logon", "cab_number", "logon_time"),
    )


class AttributeType(Base):
    __tablename__ = "attribute_types"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String, nullable=False)


class ShiftAttributeValue(Base):
    """Versioned attribute assignment on a cab shift."""

    __tablename__ = "shift_attribute_values"

    id = Column(Integer, primary_key=True)
    shift_id = Column(Integer, ForeignKey("cab_shifts.id"), nullable=False)
    attribute_type_id = Column(Integer, ForeignKey("attribute_types.id"), nullable=False)
    value = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)


class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String, nullable=False)
    applies_to = Column(String(10), nullable=False, default="SHIFT")
    application_type = Column(String(30), nullable=True)
    shift_profile_id = Column(Integer, ForeignKey("shift_profiles.id"), nullable=True)
    attribute_type_id = Column(Integer, ForeignKey("attribute_types.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class RecurringExpense(Base):
    """One version of a recurring expense. Closed versions are never edited."""

    __tablename__ = "recurring_expenses"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    application_type = Column(String(30), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    billing_method = Column(String(20), nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    cab_id = Column(Integer, ForeignKey("cabs.id"), nullable=True)
    shift_id = Column(Integer, ForeignKey("cab_shifts.id"), nullable=True)
    shift_profile_id = Column(Integer, ForeignKey("shift_profiles.id"), nullable=True)
    owner_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    attribute_type_id = Column(Integer, ForeignKey("attribute_types.id"), nullable=True)
    auto_generated = Column(Boolean, default=False, nullable=False)
    source_category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_recurring_type_dates", "application_type", "effective_from", "effective_to"),
    )


class OneTimeExpense(Base):
    __tablename__ = "one_time_expenses"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    application_type = Column(String(30), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    cab_id = Column(Integer, ForeignKey("cabs.id"), nullable=True)
    shift_id = Column(Integer, ForeignKey("cab_shifts.id"), nullable=True)
    shift_profile_id = Column(Integer, ForeignKey("shift_profiles.id"), nullable=True)
    owner_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    attribute_type_id = Column(Integer, ForeignKey("attribute_types.id"), nullable=True)
    is_reimbursed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class LeasePlan(Base):
    __tablename__ = "lease_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)


class LeaseRate(Base):
    """Rate table row. day_of_week follows date.weekday(): Monday is 0."""

    __tablename__ = "lease_rates"

    id = Column(Integer, primary_key=True)
    plan_id = Column(Integer, ForeignKey("lease_plans.id"), nullable=False)
    cab_type = Column(String(30), nullable=False)
    has_airport_license = Column(Boolean, nullable=False)
    shift_type = Column(String(10), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    base_rate = Column(Numeric(10, 2), nullable=False)
    mileage_rate = Column(Numeric(10, 4), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "plan_id",
            "cab_type",
            "has_airport_license",
            "shift_type",
            "day_of_week",
            name="uq_lease_rate_criteria",
        ),
    )


class LeaseRateOverride(Base):
    __tablename__ = "lease_rate_overrides"

    id = Column(Integer, primary_key=True)
    owner_driver_number = Column(String(50), nullable=False)
    cab_number = Column(String(50), nullable=True)
    shift_type = Column(String(10), nullable=True)
    day_of_week = Column(Integer, nullable=True)
    lease_rate = Column(Numeric(10, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_override_owner_cab", "owner_driver_number", "cab_number"),)


class LeaseExpense(Base):
    __tablename__ = "lease_expenses"

    id = Column(Integer, primary_key=True)
    driver_shift_id = Column(Integer, ForeignKey("driver_shifts.id"), nullable=False, unique=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    cab_shift_id = Column(Integer, ForeignKey("cab_shifts.id"), nullable=False)
    lease_date = Column(Date, nullable=False)
    base_rate = Column(Numeric(10, 2), nullable=False)
    mileage_rate = Column(Numeric(10, 4), nullable=False)
    miles = Column(Numeric(10, 2), nullable=False)
    mileage_lease = Column(Numeric(10, 2), nullable=False)
    total_lease = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Statement(Base):
    """Finalized statement. Rows are inserted once and never updated."""

    __tablename__ = "statements"

    id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    person_type = Column(String(10), nullable=False)
    person_name = Column(String, nullable=False)
    period_from = Column(Date, nullable=False)
    period_to = Column(Date, nullable=False)
    total_revenues = Column(Numeric(12, 2), nullable=False)
    total_recurring_expenses = Column(Numeric(12, 2), nullable=False)
    total_one_time_expenses = Column(Numeric(12, 2), nullable=False)
    total_lease_expenses = Column(Numeric(12, 2), nullable=False)
    total_expenses = Column(Numeric(12, 2), nullable=False)
    previous_balance = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False)
    net_due = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False)
    line_items_json = Column(Text, nullable=False)
    generated_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("person_id", "period_from", "period_to", name="uq_statement_period"),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
