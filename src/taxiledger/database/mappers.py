"""Mapper functions to convert between domain models and SQLAlchemy models.

Enum-valued columns are stored as plain strings; the mappers are the only
place that turns them back into domain enums.
"""

from decimal import Decimal
from typing import Optional

from taxiledger.domain import entities as domain
from taxiledger.database.models import (
    Driver as ORMDriver,
    Cab as ORMCab,
    ShiftProfile as ORMShiftProfile,
    CabShift as ORMCabShift,
    ShiftOwnership as ORMShiftOwnership,
    DriverShift as ORMDriverShift,
    AttributeType as ORMAttributeType,
    ShiftAttributeValue as ORMShiftAttributeValue,
    ExpenseCategory as ORMExpenseCategory,
    RecurringExpense as ORMRecurringExpense,
    OneTimeExpense as ORMOneTimeExpense,
    LeasePlan as ORMLeasePlan,
    LeaseRate as ORMLeaseRate,
    LeaseRateOverride as ORMLeaseRateOverride,
    LeaseExpense as ORMLeaseExpense,
    Statement as ORMStatement,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def driver_to_domain(orm_driver: ORMDriver) -> domain.Driver:
    """Convert SQLAlchemy Driver model to domain Driver entity."""
    return domain.Driver(
        id=orm_driver.id,
        driver_number=orm_driver.driver_number,
        first_name=orm_driver.first_name,
        last_name=orm_driver.last_name or "",
        is_owner=bool(orm_driver.is_owner),
        created_at=orm_driver.created_at,
    )


def cab_to_domain(orm_cab: ORMCab) -> domain.Cab:
    """Convert SQLAlchemy Cab model to domain Cab entity."""
    return domain.Cab(id=orm_cab.id, cab_number=orm_cab.cab_number, created_at=orm_cab.created_at)


def shift_profile_to_domain(orm_profile: ORMShiftProfile) -> domain.ShiftProfile:
    return domain.ShiftProfile(
        id=orm_profile.id,
        code=orm_profile.code,
        name=orm_profile.name,
        created_at=orm_profile.created_at,
    )


def cab_shift_to_domain(orm_shift: ORMCabShift) -> domain.CabShift:
    """Convert SQLAlchemy CabShift model to domain CabShift entity.

    The cab number is denormalized onto the entity so callers matching
    driven shifts by cab number do not need a second lookup.
    """
    return domain.CabShift(
        id=orm_shift.id,
        cab_id=orm_shift.cab_id,
        cab_number=orm_shift.cab.cab_number,
        shift_type=domain.ShiftType(orm_shift.shift_type),
        status=domain.ShiftStatus(orm_shift.status),
        current_owner_id=orm_shift.current_owner_id,
        current_profile_id=orm_shift.current_profile_id,
        cab_type=domain.CabType(orm_shift.cab_type),
        share_type=domain.ShareType(orm_shift.share_type) if orm_shift.share_type else None,
        has_airport_license=bool(orm_shift.has_airport_license),
        created_at=orm_shift.created_at,
    )


def shift_ownership_to_domain(orm_ownership: ORMShiftOwnership) -> domain.ShiftOwnership:
    return domain.ShiftOwnership(
        id=orm_ownership.id,
        shift_id=orm_ownership.shift_id,
        owner_id=orm_ownership.owner_id,
        start_date=orm_ownership.start_date,
        end_date=orm_ownership.end_date,
    )


def driver_shift_to_domain(orm_shift: ORMDriverShift) -> domain.DriverShift:
    """Convert SQLAlchemy DriverShift model to domain DriverShift entity."""
    return domain.DriverShift(
        id=orm_shift.id,
        driver_number=orm_shift.driver_number,
        cab_number=orm_shift.cab_number,
        shift_type=domain.ShiftType(orm_shift.shift_type),
        logon_time=orm_shift.logon_time,
        logoff_time=orm_shift.logoff_time,
        total_distance=_decimal(orm_shift.total_distance),
        status=domain.DriverShiftStatus(orm_shift.status),
    )


def attribute_type_to_domain(orm_type: ORMAttributeType) -> domain.AttributeType:
    return domain.AttributeType(id=orm_type.id, code=orm_type.code, name=orm_type.name)


def shift_attribute_to_domain(orm_value: ORMShiftAttributeValue) -> domain.ShiftAttributeValue:
    return domain.ShiftAttributeValue(
        id=orm_value.id,
        shift_id=orm_value.shift_id,
        attribute_type_id=orm_value.attribute_type_id,
        value=orm_value.value,
        start_date=orm_value.start_date,
        end_date=orm_value.end_date,
    )


def expense_category_to_domain(orm_category: ORMExpenseCategory) -> domain.ExpenseCategory:
    """Convert SQLAlchemy ExpenseCategory model to domain ExpenseCategory entity."""
    return domain.ExpenseCategory(
        id=orm_category.id,
        code=orm_category.code,
        name=orm_category.name,
        applies_to=domain.AppliesTo(orm_category.applies_to),
        application_type=(
            domain.ApplicationTypeCode(orm_category.application_type)
            if orm_category.application_type
            else None
        ),
        shift_profile_id=orm_category.shift_profile_id,
        attribute_type_id=orm_category.attribute_type_id,
        created_at=orm_category.created_at,
    )


def recurring_expense_to_domain(orm_expense: ORMRecurringExpense) -> domain.RecurringExpense:
    """Convert SQLAlchemy RecurringExpense model to domain RecurringExpense entity."""
    return domain.RecurringExpense(
        id=orm_expense.id,
        category_id=orm_expense.category_id,
        application_type=domain.ApplicationTypeCode(orm_expense.application_type),
        amount=_decimal(orm_expense.amount),
        billing_method=domain.BillingMethod(orm_expense.billing_method),
        effective_from=orm_expense.effective_from,
        effective_to=orm_expense.effective_to,
        is_active=bool(orm_expense.is_active),
        cab_id=orm_expense.cab_id,
        shift_id=orm_expense.shift_id,
        shift_profile_id=orm_expense.shift_profile_id,
        owner_id=orm_expense.owner_id,
        driver_id=orm_expense.driver_id,
        attribute_type_id=orm_expense.attribute_type_id,
        auto_generated=bool(orm_expense.auto_generated),
        source_category_id=orm_expense.source_category_id,
        notes=orm_expense.notes,
        created_at=orm_expense.created_at,
    )


def one_time_expense_to_domain(orm_expense: ORMOneTimeExpense) -> domain.OneTimeExpense:
    """Convert SQLAlchemy OneTimeExpense model to domain OneTimeExpense entity."""
    return domain.OneTimeExpense(
        id=orm_expense.id,
        category_id=orm_expense.category_id,
        application_type=domain.ApplicationTypeCode(orm_expense.application_type),
        amount=_decimal(orm_expense.amount),
        expense_date=orm_expense.expense_date,
        name=orm_expense.name,
        description=orm_expense.description,
        cab_id=orm_expense.cab_id,
        shift_id=orm_expense.shift_id,
        shift_profile_id=orm_expense.shift_profile_id,
        owner_id=orm_expense.owner_id,
        driver_id=orm_expense.driver_id,
        attribute_type_id=orm_expense.attribute_type_id,
        is_reimbursed=bool(orm_expense.is_reimbursed),
        created_at=orm_expense.created_at,
    )


def lease_plan_to_domain(orm_plan: ORMLeasePlan) -> domain.LeasePlan:
    return domain.LeasePlan(
        id=orm_plan.id,
        name=orm_plan.name,
        effective_from=orm_plan.effective_from,
        effective_to=orm_plan.effective_to,
        is_active=bool(orm_plan.is_active),
    )


def lease_rate_to_domain(orm_rate: ORMLeaseRate) -> domain.LeaseRate:
    return domain.LeaseRate(
        id=orm_rate.id,
        plan_id=orm_rate.plan_id,
        cab_type=domain.CabType(orm_rate.cab_type),
        has_airport_license=bool(orm_rate.has_airport_license),
        shift_type=domain.ShiftType(orm_rate.shift_type),
        day_of_week=orm_rate.day_of_week,
        base_rate=_decimal(orm_rate.base_rate),
        mileage_rate=_decimal(orm_rate.mileage_rate),
    )


def lease_rate_override_to_domain(orm_override: ORMLeaseRateOverride) -> domain.LeaseRateOverride:
    return domain.LeaseRateOverride(
        id=orm_override.id,
        owner_driver_number=orm_override.owner_driver_number,
        cab_number=orm_override.cab_number,
        shift_type=domain.ShiftType(orm_override.shift_type) if orm_override.shift_type else None,
        day_of_week=orm_override.day_of_week,
        lease_rate=_decimal(orm_override.lease_rate),
        start_date=orm_override.start_date,
        end_date=orm_override.end_date,
        is_active=bool(orm_override.is_active),
        priority=orm_override.priority,
        notes=orm_override.notes,
        created_at=orm_override.created_at,
    )


def lease_expense_to_domain(orm_expense: ORMLeaseExpense) -> domain.LeaseExpense:
    return domain.LeaseExpense(
        id=orm_expense.id,
        driver_shift_id=orm_expense.driver_shift_id,
        driver_id=orm_expense.driver_id,
        owner_id=orm_expense.owner_id,
        cab_shift_id=orm_expense.cab_shift_id,
        lease_date=orm_expense.lease_date,
        base_rate=_decimal(orm_expense.base_rate),
        mileage_rate=_decimal(orm_expense.mileage_rate),
        miles=_decimal(orm_expense.miles),
        mileage_lease=_decimal(orm_expense.mileage_lease),
        total_lease=_decimal(orm_expense.total_lease),
        created_at=orm_expense.created_at,
    )


def statement_to_domain(orm_statement: ORMStatement) -> domain.Statement:
    """Convert SQLAlchemy Statement model to domain Statement entity."""
    return domain.Statement(
        id=orm_statement.id,
        person_id=orm_statement.person_id,
        person_type=domain.PersonType(orm_statement.person_type),
        person_name=orm_statement.person_name,
        period_from=orm_statement.period_from,
        period_to=orm_statement.period_to,
        total_revenues=_decimal(orm_statement.total_revenues),
        total_recurring_expenses=_decimal(orm_statement.total_recurring_expenses),
        total_one_time_expenses=_decimal(orm_statement.total_one_time_expenses),
        total_lease_expenses=_decimal(orm_statement.total_lease_expenses),
        total_expenses=_decimal(orm_statement.total_expenses),
        previous_balance=_decimal(orm_statement.previous_balance),
        paid_amount=_decimal(orm_statement.paid_amount),
        net_due=_decimal(orm_statement.net_due),
        status=domain.StatementStatus(orm_statement.status),
        line_items_json=orm_statement.line_items_json,
        generated_at=orm_statement.generated_at,
    )
