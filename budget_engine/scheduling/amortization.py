"""
Amortization Scheduler

Turns a loan into a dated sequence of installment movements, each split
into principal and interest (French/annuity amortization).

ROUNDING RULES:
- Monthly rate = annual rate / 12, rounded to 6 places (half-up)
- Payment and every interest portion are rounded to cents (half-up)
- The last installment repays exactly the remaining principal, absorbing
  the accumulated rounding drift, so the principal portions always add up
  to the borrowed amount
- A plan whose drift would make that last installment negative (tiny loans
  spread over many months) is rejected
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from budget_engine.errors import DomainValidationError
from budget_engine.models.amortization import AmortizationPlan, Installment
from budget_engine.models.ledger import Movement, MovementType
from budget_engine.models.money import RATE_QUANTUM, ZERO, round_money

# (1 + r)^n is evaluated exactly enough for long loans before rounding to cents
_WORKING_PRECISION = 60
_MONTHS_PER_YEAR = Decimal("12")


def monthly_rate(annual_rate: Decimal) -> Decimal:
    return (annual_rate / _MONTHS_PER_YEAR).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def monthly_payment(total_amount: Decimal, rate: Decimal, installments: int) -> Decimal:
    """
    Constant installment for a loan.

    Straight-line (total / n) when the rate is zero, annuity formula
    otherwise: P * r * (1+r)^n / ((1+r)^n - 1).
    """
    if rate == ZERO:
        return round_money(total_amount / Decimal(installments))

    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        growth = (Decimal(1) + rate) ** installments
        payment = total_amount * rate * growth / (growth - Decimal(1))
        return round_money(payment)


class AmortizationScheduler:
    """
    Generates installment schedules for amortization plans.

    Usage:
        scheduler = AmortizationScheduler()
        scheduler.generate_installments(plan)   # replaces plan.installments
    """

    def __init__(self, clock: Optional[Callable[[], date]] = None):
        self._clock = clock or date.today

    def breakdown(self, plan: AmortizationPlan) -> list[Installment]:
        """
        Compute the amortization table without touching the plan.

        Raises:
            DomainValidationError: If cent rounding makes the earlier
                                   installments repay more than the loan,
                                   leaving a negative last installment
        """
        rate = monthly_rate(plan.interest_rate)
        payment = monthly_payment(plan.total_amount, rate, plan.number_of_installments)

        rows: list[Installment] = []
        remaining = plan.total_amount
        n = plan.number_of_installments

        for i in range(1, n + 1):
            interest = round_money(remaining * rate)
            if i == n:
                principal = remaining
                installment_payment = principal + interest
                if principal < ZERO or installment_payment < ZERO:
                    raise DomainValidationError(
                        f"Plan '{plan.name}' over-repays {plan.total_amount} by "
                        f"{-principal}: the rounded payment of {payment} is too "
                        f"coarse for {n} installments"
                    )
            else:
                principal = payment - interest
                installment_payment = payment

            remaining = remaining - principal
            rows.append(Installment(
                number=i,
                due_date=plan.start_date + relativedelta(months=i - 1),
                payment=installment_payment,
                principal=principal,
                interest=interest,
                remaining_principal=remaining,
            ))

        return rows

    def generate_installments(self, plan: AmortizationPlan) -> list[Movement]:
        """
        Generate the installment movements and replace the plan's list.

        The new list is fully built before it is swapped in; if anything
        fails the plan keeps its previous installments.
        """
        n = plan.number_of_installments
        installments = [
            Movement(
                description=f"{plan.name} - Installment {row.number}/{n}",
                amount=row.payment,
                type=MovementType.EXPENSE,
                movement_date=row.due_date,
                scheduled=True,
                amortization_plan_id=plan.id,
                notes=f"Principal: {row.principal}, Interest: {row.interest}",
            )
            for row in self.breakdown(plan)
        ]
        plan.installments = installments
        return installments

    # -------------------------------------------------------------------------
    # Derived queries
    # -------------------------------------------------------------------------

    def total_interest(self, plan: AmortizationPlan) -> Decimal:
        return plan.total_interest

    def completed_installments(self, plan: AmortizationPlan) -> int:
        return plan.completed_installments(as_of=self._clock())

    def remaining_amount(self, plan: AmortizationPlan) -> Decimal:
        return plan.remaining_amount(as_of=self._clock())
