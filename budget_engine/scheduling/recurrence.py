"""
Recurrence Calculator

Date arithmetic for scheduled expenses: when is the next occurrence, what
state is an expense in, and what does completing it produce.

DESIGN DECISION: Everything here is a pure calculation over one
ScheduledExpense. Nothing is persisted and nothing is logged; the
orchestrator does both. "Today" comes from an injectable clock so the
calculations are deterministic under test.
"""

from datetime import date
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from budget_engine.errors import (
    AlreadyCompletedError,
    NotRecurringError,
    RecurrenceExhaustedError,
)
from budget_engine.models.ledger import Movement
from budget_engine.models.schedule import (
    RecurrenceType,
    ScheduledExpense,
    ScheduleStatus,
)

Clock = Callable[[], date]

_STEPS: dict[RecurrenceType, Callable[[int], relativedelta]] = {
    RecurrenceType.DAILY: lambda n: relativedelta(days=n),
    RecurrenceType.WEEKLY: lambda n: relativedelta(weeks=n),
    RecurrenceType.MONTHLY: lambda n: relativedelta(months=n),
    RecurrenceType.YEARLY: lambda n: relativedelta(years=n),
}


def next_occurrence(current: date, recurrence_type: RecurrenceType, interval: int) -> date:
    """
    The occurrence `interval` units after `current`.

    Month and year steps clamp to the end of the month
    (Jan 31 + 1 month = Feb 28/29).

    Raises:
        NotRecurringError: For RecurrenceType.NONE
        ValueError: If interval is below 1
    """
    if interval < 1:
        raise ValueError(f"Recurrence interval must be at least 1, got {interval}")
    try:
        step = _STEPS[recurrence_type]
    except KeyError:
        raise NotRecurringError(
            f"Cannot compute an occurrence for recurrence type {recurrence_type.value}"
        ) from None
    return current + step(interval)


class RecurrenceCalculator:
    """
    Computes due dates, states and completions for scheduled expenses.

    Usage:
        calculator = RecurrenceCalculator()
        next_due = calculator.next_due_date(expense)
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Args:
            clock: Callable returning "today". Defaults to date.today.
        """
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def status(self, expense: ScheduledExpense) -> ScheduleStatus:
        if expense.completed:
            return ScheduleStatus.COMPLETED
        today = self.today()
        if expense.due_date < today:
            return ScheduleStatus.OVERDUE
        if expense.due_date == today:
            return ScheduleStatus.DUE
        return ScheduleStatus.PENDING

    def is_due(self, expense: ScheduledExpense) -> bool:
        """Due today or earlier (completed or not)."""
        return expense.due_date <= self.today()

    def is_overdue(self, expense: ScheduledExpense) -> bool:
        return self.status(expense) == ScheduleStatus.OVERDUE

    def days_until_due(self, expense: ScheduledExpense) -> int:
        """Days from today to the due date; negative when past due."""
        return (expense.due_date - self.today()).days

    # -------------------------------------------------------------------------
    # Recurrence
    # -------------------------------------------------------------------------

    def next_due_date(self, expense: ScheduledExpense) -> Optional[date]:
        """
        First occurrence strictly after today.

        Steps forward from the due date as many times as needed, so an
        expense left dormant for several periods jumps straight to the next
        future occurrence rather than to due_date + one step. A due date
        that is still in the future is itself that occurrence, so an expense
        paid early gets a successor due on the same day.

        Returns:
            The next due date, or None if the expense does not recur or the
            recurrence ends before a future occurrence is reached.
        """
        if not expense.is_recurring:
            return None

        today = self.today()
        candidate = expense.due_date
        while candidate <= today:
            candidate = next_occurrence(
                candidate,
                expense.recurrence_type,
                expense.recurrence_interval,
            )
            if expense.recurrence_end_date and candidate > expense.recurrence_end_date:
                return None
        return candidate

    def create_next_occurrence(self, expense: ScheduledExpense) -> ScheduledExpense:
        """
        Build (but do not save) the next occurrence of a recurring expense.

        Raises:
            NotRecurringError: If the expense does not recur
            RecurrenceExhaustedError: If there is no further occurrence
        """
        if not expense.is_recurring:
            raise NotRecurringError(f"Scheduled expense '{expense.description}' does not recur")

        next_date = self.next_due_date(expense)
        if next_date is None:
            raise RecurrenceExhaustedError(
                f"Recurrence of '{expense.description}' ended on "
                f"{expense.recurrence_end_date}"
            )

        return ScheduledExpense(
            description=expense.description,
            amount=expense.amount,
            type=expense.type,
            due_date=next_date,
            recurrence_type=expense.recurrence_type,
            recurrence_interval=expense.recurrence_interval,
            recurrence_end_date=expense.recurrence_end_date,
            category_ids=set(expense.category_ids),
            notes=expense.notes,
        )

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def complete(self, expense: ScheduledExpense) -> Movement:
        """
        Turn the expense into a ledger movement dated today.

        Links the movement to the expense and marks the expense completed.
        Saving either of them is the caller's job.

        Raises:
            AlreadyCompletedError: If the expense was already completed
        """
        if expense.completed:
            raise AlreadyCompletedError(
                f"Scheduled expense '{expense.description}' is already completed"
            )

        movement = Movement(
            description=expense.description,
            amount=expense.amount,
            type=expense.type,
            movement_date=self.today(),
            notes=expense.notes,
            category_ids=set(expense.category_ids),
        )

        expense.created_movement_id = movement.id
        expense.completed = True
        expense.touch()
        return movement
