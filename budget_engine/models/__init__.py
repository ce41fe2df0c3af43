"""
Data Models Package

This package contains all Pydantic models used by the budget engine.
All data flowing through the engine must conform to these schemas.
"""

from budget_engine.models.amortization import AmortizationPlan, Installment
from budget_engine.models.budget import Budget
from budget_engine.models.category import MAX_CATEGORY_NAME_LENGTH, Category
from budget_engine.models.ledger import Movement, MovementType, Period
from budget_engine.models.reports import (
    BudgetPerformance,
    CategoryAmount,
    ItemFailure,
    PeriodTotals,
    ReconciliationReport,
    RecurrenceRunReport,
    StatisticsReport,
)
from budget_engine.models.schedule import (
    RecurrenceType,
    ScheduledExpense,
    ScheduleStatus,
)

__all__ = [
    # Ledger models
    "Movement",
    "MovementType",
    "Period",
    # Planning models
    "AmortizationPlan",
    "Budget",
    "Category",
    "Installment",
    "MAX_CATEGORY_NAME_LENGTH",
    "RecurrenceType",
    "ScheduledExpense",
    "ScheduleStatus",
    # Report models
    "BudgetPerformance",
    "CategoryAmount",
    "ItemFailure",
    "PeriodTotals",
    "ReconciliationReport",
    "RecurrenceRunReport",
    "StatisticsReport",
]
