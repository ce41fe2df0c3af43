"""
Ledger Models

The ledger is the set of Movement records. Everything else the engine
reports (budget actuals, statistics) is derived from it.

DESIGN DECISION: Amounts are stored as non-negative Decimals. The direction
of money is carried by the movement type, never by the sign of the amount.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from budget_engine.models.base import DomainModel, utcnow


class MovementType(str, Enum):
    """Direction of a ledger entry."""
    INCOME = "income"
    EXPENSE = "expense"


class Period(DomainModel):
    """
    A named, inclusive date range budgets are evaluated against.

    The dates are frozen once the period exists; only the name may change.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, e.g. '2025-03'"
    )
    start_date: date = Field(..., frozen=True)
    end_date: date = Field(..., frozen=True)

    @model_validator(mode='after')
    def validate_dates(self) -> 'Period':
        if self.start_date > self.end_date:
            raise ValueError("Period start date must be on or before end date")
        return self

    @classmethod
    def for_month(cls, year: int, month: int, name: Optional[str] = None) -> 'Period':
        """Build the calendar-month period, named YYYY-MM unless a name is given."""
        last_day = calendar.monthrange(year, month)[1]
        return cls(
            name=name or f"{year:04d}-{month:02d}",
            start_date=date(year, month, 1),
            end_date=date(year, month, last_day),
        )

    def contains(self, day: date) -> bool:
        """Check if a date falls inside the period (bounds included)."""
        return self.start_date <= day <= self.end_date

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.start_date:%d/%m/%Y} - {self.end_date:%d/%m/%Y})"
        )


class Movement(DomainModel):
    """
    A single ledger entry (income or expense).

    A movement may belong to several categories at once and counts
    toward each of them independently.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique movement ID"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Amount, always non-negative")
    ]
    type: MovementType
    movement_date: date = Field(
        ...,
        description="Date the money moved"
    )
    category_ids: set[UUID] = Field(default_factory=set)
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    scheduled: bool = Field(
        default=False,
        description="Generated by a schedule rather than entered by hand"
    )
    amortization_plan_id: Optional[UUID] = Field(
        default=None,
        description="Plan that owns this movement, if it is an installment"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_income(self) -> bool:
        return self.type == MovementType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == MovementType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the movement type."""
        return self.amount if self.is_income else -self.amount

    def has_category(self, category_id: UUID) -> bool:
        return category_id in self.category_ids

    def add_category(self, category_id: UUID) -> None:
        self.category_ids.add(category_id)
        self.updated_at = utcnow()

    def remove_category(self, category_id: UUID) -> None:
        if category_id in self.category_ids:
            self.category_ids.discard(category_id)
            self.updated_at = utcnow()

    def __str__(self) -> str:
        return (
            f"{self.movement_date}: {self.type.value} {self.amount} "
            f"({self.description}) [{len(self.category_ids)} categories]"
        )
