"""Scheduling package: recurrence and amortization calculators."""

from budget_engine.scheduling.amortization import (
    AmortizationScheduler,
    monthly_payment,
    monthly_rate,
)
from budget_engine.scheduling.recurrence import (
    Clock,
    RecurrenceCalculator,
    next_occurrence,
)

__all__ = [
    # Recurrence
    "Clock",
    "RecurrenceCalculator",
    "next_occurrence",
    # Amortization
    "AmortizationScheduler",
    "monthly_payment",
    "monthly_rate",
]
