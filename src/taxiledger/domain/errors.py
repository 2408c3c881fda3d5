"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or a missing targeting field for an application type."""


class NotFoundError(DomainError):
    """Referenced entity or rate no longer resolves."""


class ComputationError(DomainError):
    """A hard result was required but could not be computed."""


class ConflictError(DomainError):
    """Domain conflict, such as a second active version of an expense."""


def driver_not_found(driver_id: int) -> str:
    """Return message for missing driver by ID."""
    return f"Driver {driver_id} not found"


def driver_number_not_found(driver_number: str) -> str:
    """Return message for missing driver by driver number."""
    return f"Driver '{driver_number}' not found"


def cab_not_found(cab_id: int) -> str:
    """Return message for missing cab."""
    return f"Cab {cab_id} not found"


def shift_not_found(shift_id: int) -> str:
    """Return message for missing cab shift."""
    return f"Shift {shift_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing expense category."""
    return f"Expense category {category_id} not found"


def recurring_expense_not_found(expense_id: int) -> str:
    """Return message for missing recurring expense."""
    return f"Recurring expense {expense_id} not found"


def one_time_expense_not_found(expense_id: int) -> str:
    """Return message for missing one-time expense."""
    return f"One-time expense {expense_id} not found"


def missing_target_field(application_type: str, field_name: str) -> str:
    """Return message for an application type missing its targeting field."""
    return f"Application type {application_type} requires '{field_name}'"


def no_lease_rate(cab_type: str, has_airport_license: bool, shift_type: str, day: str) -> str:
    """Return message when no lease rate row matches."""
    return (
        "No applicable lease rate for "
        f"cab_type={cab_type}, airport={has_airport_license}, shift={shift_type}, day={day}"
    )


def duplicate_active_expense(category_id: int | None, target: str) -> str:
    """Return message when a target already holds an active expense for a category."""
    return (
        f"An active recurring expense for category {category_id} already exists on {target}. "
        "Change its rate instead of creating a new one."
    )
