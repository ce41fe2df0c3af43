"""
Amortization Models

A plan describes a loan; its installments are ledger Movements that the
plan exclusively owns. The installment list is produced by
`budget_engine.scheduling.AmortizationScheduler` and is always replaced as
a whole.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budget_engine.models.base import DomainModel
from budget_engine.models.ledger import Movement
from budget_engine.models.money import ZERO


class Installment(BaseModel):
    """One row of an amortization table."""

    number: int = Field(ge=1)
    due_date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    remaining_principal: Decimal = Field(
        description="Principal still owed after this installment"
    )


class AmortizationPlan(DomainModel):
    """A loan repaid in equal monthly installments."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    total_amount: Annotated[
        Decimal,
        Field(gt=0, decimal_places=2, description="Borrowed principal")
    ]
    interest_rate: Annotated[
        Decimal,
        Field(ge=0, description="Annual fractional rate, e.g. 0.05 for 5%")
    ]
    number_of_installments: int = Field(gt=0)
    start_date: date
    installments: list[Movement] = Field(
        default_factory=list,
        description="Generated installment movements, ordered by date"
    )
    active: bool = True

    @property
    def total_paid(self) -> Decimal:
        return sum((m.amount for m in self.installments), ZERO)

    @property
    def total_interest(self) -> Decimal:
        """Everything paid on top of the borrowed principal."""
        return self.total_paid - self.total_amount

    def completed_installments(self, as_of: Optional[date] = None) -> int:
        """Installments dated on or before `as_of` (default: today)."""
        as_of = as_of or date.today()
        return sum(1 for m in self.installments if m.movement_date <= as_of)

    def remaining_amount(self, as_of: Optional[date] = None) -> Decimal:
        """Sum of installments dated after `as_of` (default: today)."""
        as_of = as_of or date.today()
        return sum(
            (m.amount for m in self.installments if m.movement_date > as_of),
            ZERO,
        )
