"""
Scheduled Expense Model

A scheduled expense is a future obligation (or expected income) that
becomes a ledger Movement once it is completed.

CRITICAL: Completion is one-way. A recurring schedule never resets itself
to "not completed"; completing it spawns a NEW instance for the next
occurrence instead.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import Field

from budget_engine.models.base import DomainModel, utcnow
from budget_engine.models.ledger import MovementType


class RecurrenceType(str, Enum):
    """How often a scheduled expense repeats."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ScheduleStatus(str, Enum):
    """
    Derived state of a scheduled expense.

    Never stored: always recomputed from the due date, "today" and the
    completed flag.
    """
    PENDING = "pending"      # Due in the future
    DUE = "due"              # Due today
    OVERDUE = "overdue"      # Past due and not completed
    COMPLETED = "completed"  # Turned into a movement


class ScheduledExpense(DomainModel):
    """A planned, possibly recurring, income or expense."""

    id: UUID = Field(default_factory=uuid4)
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Annotated[
        Decimal,
        Field(gt=0, decimal_places=2, description="Amount, strictly positive")
    ]
    type: MovementType = MovementType.EXPENSE
    due_date: date

    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_interval: int = Field(
        default=1,
        ge=1,
        description="Repeat every N units (e.g. every 2 months)"
    )
    recurrence_end_date: Optional[date] = Field(
        default=None,
        description="No occurrence may fall after this date"
    )

    category_ids: set[UUID] = Field(default_factory=set)
    notes: Optional[str] = Field(default=None, max_length=1000)

    completed: bool = False
    active: bool = True

    created_movement_id: Optional[UUID] = Field(
        default=None,
        description="Movement produced when this expense was completed"
    )
    successor_id: Optional[UUID] = Field(
        default=None,
        description="Next occurrence spawned from this one, if any"
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != RecurrenceType.NONE

    def touch(self) -> None:
        self.updated_at = utcnow()

    def __str__(self) -> str:
        state = "completed" if self.completed else "active"
        return f"{self.description}: {self.amount} - {self.due_date} ({state})"
