"""
Budget Model

A budget pairs planned figures for a period (optionally scoped to one
category) with actual figures derived from the ledger.

CRITICAL: The actual fields are owned by the reconciler. They are always
replaced wholesale through `update_actuals`, never adjusted incrementally.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import Field

from budget_engine.errors import DomainValidationError
from budget_engine.models.base import DomainModel, utcnow
from budget_engine.models.money import ZERO, percentage

NonNegativeMoney = Annotated[Decimal, Field(ge=0)]


class Budget(DomainModel):
    """
    Planned vs. actual income and expenses for one period.

    A budget without a category is the "general" budget of its period and
    covers every expense in it.
    """

    id: UUID = Field(default_factory=uuid4)
    period_id: UUID = Field(
        ...,
        description="Period this budget is evaluated against"
    )
    category_id: Optional[UUID] = Field(
        default=None,
        description="Category scope; None for the general budget"
    )

    planned_income: NonNegativeMoney = ZERO
    planned_expenses: NonNegativeMoney = ZERO
    actual_income: NonNegativeMoney = ZERO
    actual_expenses: NonNegativeMoney = ZERO

    notes: Optional[str] = Field(default=None, max_length=1000)
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[UUID, Optional[UUID]]:
        """Uniqueness key: one budget per (period, category) pair."""
        return (self.period_id, self.category_id)

    @property
    def is_general(self) -> bool:
        return self.category_id is None

    @property
    def planned_balance(self) -> Decimal:
        return self.planned_income - self.planned_expenses

    @property
    def actual_balance(self) -> Decimal:
        return self.actual_income - self.actual_expenses

    @property
    def variance_income(self) -> Decimal:
        return self.actual_income - self.planned_income

    @property
    def variance_expenses(self) -> Decimal:
        return self.actual_expenses - self.planned_expenses

    @property
    def variance_balance(self) -> Decimal:
        return self.actual_balance - self.planned_balance

    @property
    def income_percentage(self) -> float:
        return percentage(self.actual_income, self.planned_income)

    @property
    def expenses_percentage(self) -> float:
        return percentage(self.actual_expenses, self.planned_expenses)

    @property
    def is_over_budget(self) -> bool:
        return self.actual_expenses > self.planned_expenses

    def update_actuals(self, actual_income: Decimal, actual_expenses: Decimal) -> None:
        """
        Replace both actual figures.

        Both values are checked before either is written, so a rejected
        update leaves the budget untouched.
        """
        for label, value in (("income", actual_income), ("expenses", actual_expenses)):
            if value is None or value < ZERO:
                raise DomainValidationError(
                    f"Actual {label} must be non-negative, got {value}"
                )
        self.actual_income = actual_income
        self.actual_expenses = actual_expenses
        self.updated_at = utcnow()

    def update_plan(self, planned_income: Decimal, planned_expenses: Decimal) -> None:
        if planned_income < ZERO or planned_expenses < ZERO:
            raise DomainValidationError("Planned amounts must be non-negative")
        self.planned_income = planned_income
        self.planned_expenses = planned_expenses
        self.updated_at = utcnow()
