"""
Report Models

Read-only results returned by the reconciler, the statistics aggregator
and the recurrence batch. They are never persisted.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from budget_engine.models.base import utcnow
from budget_engine.models.money import ZERO


class PeriodTotals(BaseModel):
    """Income and expense totals over a date range."""

    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


class CategoryAmount(BaseModel):
    """Total for one category."""

    category_id: UUID
    category_name: str
    amount: Decimal


class StatisticsReport(BaseModel):
    """
    Statistics over a date range.

    Category breakdowns only list categories with a positive total.
    """

    start_date: date
    end_date: date
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    income_by_category: list[CategoryAmount] = Field(default_factory=list)
    expenses_by_category: list[CategoryAmount] = Field(default_factory=list)
    monthly_trend: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Income minus expenses per YYYY-MM bucket"
    )

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


class BudgetPerformance(BaseModel):
    """Summary of how the budgets of one period performed."""

    period_id: UUID
    total_budgets: int = Field(ge=0)
    over_budget_count: int = Field(ge=0)
    total_variance: Decimal = ZERO
    over_budget_percentage: float = 0.0


class ItemFailure(BaseModel):
    """An item a batch run could not process."""

    item_id: UUID
    error_type: str
    error_message: str


class ReconciliationReport(BaseModel):
    """Outcome of reconciling many budgets."""

    started_at: datetime = Field(default_factory=utcnow)
    reconciled: list[UUID] = Field(default_factory=list)
    failures: list[ItemFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.reconciled) + len(self.failures)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


class RecurrenceRunReport(BaseModel):
    """Outcome of spawning next occurrences for completed recurring expenses."""

    created: list[UUID] = Field(
        default_factory=list,
        description="IDs of the newly created occurrences"
    )
    exhausted: list[UUID] = Field(
        default_factory=list,
        description="Expenses whose recurrence has ended"
    )
    failures: list[ItemFailure] = Field(default_factory=list)
