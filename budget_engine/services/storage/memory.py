"""
In-Memory Storage Implementation

DESIGN DECISION: The in-memory backend is the reference implementation of
the storage contracts. It is used by the tests and by anyone embedding the
engine without a database.

Entities are deep-copied on every write and every read, so callers never
hold a reference into the store. This mirrors a real backend, where
mutating a loaded object changes nothing until it is saved again.

TRADEOFFS:
- Nothing survives the process (fine for tests and embedding)
- Every query is a linear scan (fine for a household-sized ledger)
"""

from datetime import date
from typing import Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from budget_engine.models.amortization import AmortizationPlan
from budget_engine.models.budget import Budget
from budget_engine.models.category import Category
from budget_engine.models.ledger import Movement, Period
from budget_engine.models.schedule import RecurrenceType, ScheduledExpense
from budget_engine.services.storage.interface import (
    DuplicateBudgetError,
    LedgerStorage,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _copy(entity: ModelT) -> ModelT:
    return entity.model_copy(deep=True)


class InMemoryStorage(LedgerStorage):
    """Dictionary-backed implementation of every storage contract."""

    def __init__(self):
        self._movements: dict[UUID, Movement] = {}
        self._categories: dict[UUID, Category] = {}
        self._periods: dict[UUID, Period] = {}
        self._budgets: dict[UUID, Budget] = {}
        self._scheduled: dict[UUID, ScheduledExpense] = {}
        self._plans: dict[UUID, AmortizationPlan] = {}

    # =========================================================================
    # Movements
    # =========================================================================

    def save_movement(self, movement: Movement) -> Movement:
        self._movements[movement.id] = _copy(movement)
        return _copy(movement)

    def get_movement_by_id(self, movement_id: UUID) -> Optional[Movement]:
        movement = self._movements.get(movement_id)
        return _copy(movement) if movement else None

    def delete_movement(self, movement_id: UUID) -> bool:
        return self._movements.pop(movement_id, None) is not None

    def find_movements_by_date_range(self, start: date, end: date) -> list[Movement]:
        return self._sorted_movements(
            m for m in self._movements.values()
            if start <= m.movement_date <= end
        )

    def find_movements_by_category(self, category_id: UUID) -> list[Movement]:
        return self._sorted_movements(
            m for m in self._movements.values()
            if category_id in m.category_ids
        )

    def list_movements(self) -> list[Movement]:
        return self._sorted_movements(self._movements.values())

    @staticmethod
    def _sorted_movements(movements) -> list[Movement]:
        # sorted() is stable: same-day movements keep insertion order
        return [_copy(m) for m in sorted(movements, key=lambda m: m.movement_date)]

    # =========================================================================
    # Categories
    # =========================================================================

    def save_category(self, category: Category) -> Category:
        self._categories[category.id] = _copy(category)
        return _copy(category)

    def get_category_by_id(self, category_id: UUID) -> Optional[Category]:
        category = self._categories.get(category_id)
        return _copy(category) if category else None

    def find_category_by_name(
        self,
        name: str,
        parent_id: Optional[UUID] = None,
    ) -> Optional[Category]:
        wanted = name.strip().casefold()
        for category in self._categories.values():
            if category.parent_id == parent_id and category.name.casefold() == wanted:
                return _copy(category)
        return None

    def list_categories(self) -> list[Category]:
        return [_copy(c) for c in self._categories.values()]

    def list_active_categories(self) -> list[Category]:
        return [_copy(c) for c in self._categories.values() if c.active]

    def delete_category(self, category_id: UUID) -> bool:
        return self._categories.pop(category_id, None) is not None

    # =========================================================================
    # Periods
    # =========================================================================

    def save_period(self, period: Period) -> Period:
        self._periods[period.id] = _copy(period)
        return _copy(period)

    def get_period_by_id(self, period_id: UUID) -> Optional[Period]:
        period = self._periods.get(period_id)
        return _copy(period) if period else None

    def find_period_by_name(self, name: str) -> Optional[Period]:
        for period in self._periods.values():
            if period.name == name:
                return _copy(period)
        return None

    def list_periods(self) -> list[Period]:
        return [_copy(p) for p in self._periods.values()]

    # =========================================================================
    # Budgets
    # =========================================================================

    def save_budget(self, budget: Budget) -> Budget:
        for existing in self._budgets.values():
            if existing.id != budget.id and existing.key == budget.key:
                scope = "general" if budget.is_general else f"category {budget.category_id}"
                raise DuplicateBudgetError(
                    f"A {scope} budget already exists for period {budget.period_id}"
                )
        self._budgets[budget.id] = _copy(budget)
        return _copy(budget)

    def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        budget = self._budgets.get(budget_id)
        return _copy(budget) if budget else None

    def find_budget(
        self,
        period_id: UUID,
        category_id: Optional[UUID],
    ) -> Optional[Budget]:
        for budget in self._budgets.values():
            if budget.key == (period_id, category_id):
                return _copy(budget)
        return None

    def find_budgets_by_period(self, period_id: UUID) -> list[Budget]:
        return [_copy(b) for b in self._budgets.values() if b.period_id == period_id]

    def list_budgets(self) -> list[Budget]:
        return [_copy(b) for b in self._budgets.values()]

    def delete_budget(self, budget_id: UUID) -> bool:
        return self._budgets.pop(budget_id, None) is not None

    # =========================================================================
    # Scheduled expenses
    # =========================================================================

    def save_scheduled_expense(self, expense: ScheduledExpense) -> ScheduledExpense:
        self._scheduled[expense.id] = _copy(expense)
        return _copy(expense)

    def get_scheduled_expense_by_id(self, expense_id: UUID) -> Optional[ScheduledExpense]:
        expense = self._scheduled.get(expense_id)
        return _copy(expense) if expense else None

    def find_scheduled_expenses_by_recurrence(
        self,
        recurrence_type: Optional[RecurrenceType] = None,
    ) -> list[ScheduledExpense]:
        if recurrence_type is None:
            matches = (e for e in self._scheduled.values() if e.is_recurring)
        else:
            matches = (
                e for e in self._scheduled.values()
                if e.recurrence_type == recurrence_type
            )
        return [_copy(e) for e in matches]

    def find_scheduled_expenses_by_due_range(
        self,
        start: date,
        end: date,
    ) -> list[ScheduledExpense]:
        matches = [e for e in self._scheduled.values() if start <= e.due_date <= end]
        return [_copy(e) for e in sorted(matches, key=lambda e: e.due_date)]

    def list_scheduled_expenses(self) -> list[ScheduledExpense]:
        return [_copy(e) for e in self._scheduled.values()]

    # =========================================================================
    # Amortization plans
    # =========================================================================

    def save_amortization_plan(self, plan: AmortizationPlan) -> AmortizationPlan:
        self._plans[plan.id] = _copy(plan)
        return _copy(plan)

    def get_amortization_plan_by_id(self, plan_id: UUID) -> Optional[AmortizationPlan]:
        plan = self._plans.get(plan_id)
        return _copy(plan) if plan else None

    def list_amortization_plans(self) -> list[AmortizationPlan]:
        return [_copy(p) for p in self._plans.values()]
