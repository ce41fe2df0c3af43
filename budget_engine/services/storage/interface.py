"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a database directly. It depends
on these abstract contracts, which allows us to:
1. Plug in any real backend (SQL, spreadsheet, ...) later
2. Use in-memory storage for testing
3. Keep the reconciliation and scheduling logic decoupled from storage

The interface is intentionally simple - we're not building a full ORM.
Just the reads and writes the engine needs.

All operations are synchronous: the engine is single-threaded and does
its work in memory after one bulk read.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from budget_engine.errors import BudgetEngineError
from budget_engine.models.amortization import AmortizationPlan
from budget_engine.models.budget import Budget
from budget_engine.models.category import Category
from budget_engine.models.ledger import Movement, Period
from budget_engine.models.schedule import RecurrenceType, ScheduledExpense


class MovementStorageInterface(ABC):
    """Ledger storage."""

    @abstractmethod
    def save_movement(self, movement: Movement) -> Movement:
        """
        Insert or update a movement.

        Returns:
            The persisted movement (carrying its persisted id)
        """
        pass

    @abstractmethod
    def get_movement_by_id(self, movement_id: UUID) -> Optional[Movement]:
        pass

    @abstractmethod
    def delete_movement(self, movement_id: UUID) -> bool:
        """
        Delete a movement.

        Returns:
            True if a movement was deleted
        """
        pass

    @abstractmethod
    def find_movements_by_date_range(self, start: date, end: date) -> list[Movement]:
        """
        Movements dated between start and end, both inclusive.

        The result must be a consistent snapshot: reconciliation derives
        every actual value from this single read.
        """
        pass

    @abstractmethod
    def find_movements_by_category(self, category_id: UUID) -> list[Movement]:
        """Movements whose category set contains the category."""
        pass

    @abstractmethod
    def list_movements(self) -> list[Movement]:
        pass


class CategoryStorageInterface(ABC):
    """Category storage."""

    @abstractmethod
    def save_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    def get_category_by_id(self, category_id: UUID) -> Optional[Category]:
        pass

    @abstractmethod
    def find_category_by_name(
        self,
        name: str,
        parent_id: Optional[UUID] = None,
    ) -> Optional[Category]:
        """Find a category by name among the children of `parent_id` (roots when None)."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        pass

    @abstractmethod
    def list_active_categories(self) -> list[Category]:
        """Active categories, in the order they were first saved."""
        pass

    @abstractmethod
    def delete_category(self, category_id: UUID) -> bool:
        pass


class PeriodStorageInterface(ABC):
    """Period storage."""

    @abstractmethod
    def save_period(self, period: Period) -> Period:
        pass

    @abstractmethod
    def get_period_by_id(self, period_id: UUID) -> Optional[Period]:
        pass

    @abstractmethod
    def find_period_by_name(self, name: str) -> Optional[Period]:
        pass

    @abstractmethod
    def list_periods(self) -> list[Period]:
        pass


class BudgetStorageInterface(ABC):
    """Budget storage."""

    @abstractmethod
    def save_budget(self, budget: Budget) -> Budget:
        """
        Insert or update a budget.

        Raises:
            DuplicateBudgetError: If a different budget already exists for
                                  the same (period, category) pair
        """
        pass

    @abstractmethod
    def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    def find_budget(
        self,
        period_id: UUID,
        category_id: Optional[UUID],
    ) -> Optional[Budget]:
        """The budget for a (period, category) pair; category None is the general budget."""
        pass

    @abstractmethod
    def find_budgets_by_period(self, period_id: UUID) -> list[Budget]:
        pass

    @abstractmethod
    def list_budgets(self) -> list[Budget]:
        pass

    @abstractmethod
    def delete_budget(self, budget_id: UUID) -> bool:
        pass


class ScheduledExpenseStorageInterface(ABC):
    """Scheduled expense storage."""

    @abstractmethod
    def save_scheduled_expense(self, expense: ScheduledExpense) -> ScheduledExpense:
        pass

    @abstractmethod
    def get_scheduled_expense_by_id(self, expense_id: UUID) -> Optional[ScheduledExpense]:
        pass

    @abstractmethod
    def find_scheduled_expenses_by_recurrence(
        self,
        recurrence_type: Optional[RecurrenceType] = None,
    ) -> list[ScheduledExpense]:
        """
        Scheduled expenses with the given recurrence type.

        When recurrence_type is None, every recurring expense is returned.
        """
        pass

    @abstractmethod
    def find_scheduled_expenses_by_due_range(
        self,
        start: date,
        end: date,
    ) -> list[ScheduledExpense]:
        """Scheduled expenses due between start and end, both inclusive."""
        pass

    @abstractmethod
    def list_scheduled_expenses(self) -> list[ScheduledExpense]:
        pass


class AmortizationPlanStorageInterface(ABC):
    """Amortization plan storage."""

    @abstractmethod
    def save_amortization_plan(self, plan: AmortizationPlan) -> AmortizationPlan:
        pass

    @abstractmethod
    def get_amortization_plan_by_id(self, plan_id: UUID) -> Optional[AmortizationPlan]:
        pass

    @abstractmethod
    def list_amortization_plans(self) -> list[AmortizationPlan]:
        pass


class LedgerStorage(
    MovementStorageInterface,
    CategoryStorageInterface,
    PeriodStorageInterface,
    BudgetStorageInterface,
    ScheduledExpenseStorageInterface,
    AmortizationPlanStorageInterface,
):
    """Every storage contract the engine needs, in one backend."""
    pass


class StorageError(BudgetEngineError):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class DuplicateBudgetError(DuplicateError):
    """A budget already exists for this period and category."""
    pass
