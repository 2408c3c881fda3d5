"""Domain layer for taxiledger application."""

import importlib

# Services are imported lazily: database.base imports domain.entities, which
# runs this module before the database layer has finished loading.
_SERVICES = {
    "ApplicationTypeResolver": "taxiledger.domain.resolver",
    "ExpenseCalculationService": "taxiledger.domain.expense_calculation",
    "ExpenseCategoryService": "taxiledger.domain.expense_category",
    "FleetService": "taxiledger.domain.fleet",
    "LeaseCalculationService": "taxiledger.domain.lease",
    "LeaseExpenseService": "taxiledger.domain.lease_expense",
    "LeasePlanService": "taxiledger.domain.lease",
    "LeaseRateOverrideService": "taxiledger.domain.lease",
    "LeaseReportService": "taxiledger.domain.lease_reports",
    "OneTimeExpenseService": "taxiledger.domain.one_time_expense",
    "RecurringExpenseService": "taxiledger.domain.recurring_expense",
    "StatementService": "taxiledger.domain.statement",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
