"""
Main Orchestrator for the Budget Engine

This module ties together all the components and exposes the operations
the presentation layer calls:
1. Ledger and structure (periods, categories, budgets, movements)
2. Reconciliation (ledger -> budget actuals)
3. Scheduling (due dates, completion, recurrence, amortization)
4. Statistics

DESIGN DECISION: The orchestrator is the only place that both persists
and logs. The calculators it drives are pure; it loads their inputs from
storage, writes their outputs back, and records what happened.

Ledger writes made here can optionally trigger a full reconciliation
(`BUDGET_RECONCILIATION_AUTO_RECONCILE`), so budgets never lag behind
the movements this engine generates.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from budget_engine.analytics import StatisticsAggregator
from budget_engine.categories import CategoryTree
from budget_engine.config import Settings, get_settings
from budget_engine.errors import (
    BudgetEngineError,
    CategoryInUseError,
    DomainValidationError,
    RecurrenceExhaustedError,
)
from budget_engine.models.amortization import AmortizationPlan
from budget_engine.models.budget import Budget
from budget_engine.models.category import Category
from budget_engine.models.ledger import Movement, Period
from budget_engine.models.money import ZERO
from budget_engine.models.reports import (
    BudgetPerformance,
    CategoryAmount,
    ItemFailure,
    ReconciliationReport,
    RecurrenceRunReport,
    StatisticsReport,
)
from budget_engine.models.schedule import ScheduledExpense
from budget_engine.observability import (
    EngineLogger,
    configure_logging,
    create_correlation_id,
)
from budget_engine.reconciliation import BudgetReconciler
from budget_engine.scheduling import AmortizationScheduler, Clock, RecurrenceCalculator
from budget_engine.services.storage import (
    DuplicateError,
    InMemoryStorage,
    LedgerStorage,
    NotFoundError,
)


class BudgetEngine:
    """
    Facade over the reconciliation and scheduling engine.

    Every method takes and returns domain models. Ids that do not resolve
    raise NotFoundError; domain rule violations raise the typed errors in
    `budget_engine.errors`.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        logger: Optional[EngineLogger] = None,
    ):
        settings = settings or get_settings()
        self._app_settings = settings.app
        self._scheduling_settings = settings.scheduling
        self._reconciliation_settings = settings.reconciliation

        self._storage = storage
        self._clock = clock or date.today
        self._logger = logger or EngineLogger()

        self._reconciler = BudgetReconciler(storage)
        self._recurrence = RecurrenceCalculator(self._clock)
        self._amortization = AmortizationScheduler(self._clock)
        self._statistics = StatisticsAggregator(storage)

    @property
    def storage(self) -> LedgerStorage:
        return self._storage

    # =========================================================================
    # Periods and budgets
    # =========================================================================

    def create_period(self, name: str, start_date: date, end_date: date) -> Period:
        """
        Raises:
            DuplicateError: If a period with that name already exists
        """
        if self._storage.find_period_by_name(name.strip()) is not None:
            raise DuplicateError(f"Period '{name}' already exists")
        period = Period(name=name, start_date=start_date, end_date=end_date)
        return self._storage.save_period(period)

    def create_budget(
        self,
        period_id: UUID,
        category_id: Optional[UUID] = None,
        planned_income: Decimal = ZERO,
        planned_expenses: Decimal = ZERO,
        notes: Optional[str] = None,
    ) -> Budget:
        """
        Create a budget for a period, optionally scoped to a category.

        Raises:
            NotFoundError: If the period or category does not exist
            DuplicateBudgetError: If the period already has a budget for
                                  that category (or a general one)
        """
        self._get_period(period_id)
        if category_id is not None:
            self._get_category(category_id)

        budget = Budget(
            period_id=period_id,
            category_id=category_id,
            planned_income=planned_income,
            planned_expenses=planned_expenses,
            notes=notes,
        )
        return self._storage.save_budget(budget)

    def update_budget_plan(
        self,
        budget_id: UUID,
        planned_income: Decimal,
        planned_expenses: Decimal,
    ) -> Budget:
        """
        Replace a budget's planned figures. Actual figures are untouched.

        Raises:
            NotFoundError: If the budget does not exist
            DomainValidationError: If a planned amount is negative
        """
        budget = self._storage.get_budget_by_id(budget_id)
        if budget is None:
            raise NotFoundError(f"Budget not found: {budget_id}")
        budget.update_plan(planned_income, planned_expenses)
        return self._storage.save_budget(budget)

    def get_over_budgets(self) -> list[Budget]:
        """Budgets whose actual expenses exceed the plan, worst first."""
        over = [b for b in self._storage.list_budgets() if b.is_over_budget]
        return sorted(over, key=lambda b: b.variance_expenses, reverse=True)

    def get_budgets_by_period_ordered_by_variance(self, period_id: UUID) -> list[Budget]:
        """A period's budgets, best balance variance first."""
        self._get_period(period_id)
        return sorted(
            self._storage.find_budgets_by_period(period_id),
            key=lambda b: b.variance_balance,
            reverse=True,
        )

    def get_budgets_by_category(self, category_id: UUID) -> list[Budget]:
        """Every budget scoped to a category, most recent period first."""
        self._get_category(category_id)
        return self._latest_period_first(
            b for b in self._storage.list_budgets() if b.category_id == category_id
        )

    def get_general_budgets(self) -> list[Budget]:
        """Budgets without a category, most recent period first."""
        return self._latest_period_first(
            b for b in self._storage.list_budgets() if b.is_general
        )

    # =========================================================================
    # Categories
    # =========================================================================

    def category_tree(self) -> CategoryTree:
        """Load every stored category into a tree."""
        return CategoryTree.from_categories(self._storage.list_categories())

    def create_category(
        self,
        name: str,
        parent_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> Category:
        """
        Raises:
            NotFoundError: If the parent does not exist
            DuplicateCategoryNameError: If a sibling already has the name
            DomainValidationError: If the name is longer than configured
        """
        limit = self._app_settings.max_category_name_length
        if len(name.strip()) > limit:
            raise DomainValidationError(
                f"Category name is longer than {limit} characters"
            )

        tree = self.category_tree()
        parent = tree.get(parent_id) if parent_id is not None else None
        category = tree.add(Category(name=name, description=description), parent)

        saved = self._storage.save_category(category)
        if parent is not None:
            self._storage.save_category(parent)
        return saved

    def move_category(self, category_id: UUID, new_parent_id: Optional[UUID]) -> Category:
        """
        Move a category under another one, or to the root level when
        `new_parent_id` is None.

        Raises:
            CycleError: If the new parent is the category or one of its descendants
            DuplicateCategoryNameError: If the new siblings already use the name
        """
        tree = self.category_tree()
        category = tree.get(category_id)
        old_parent = tree.parent_of(category)
        new_parent = tree.get(new_parent_id) if new_parent_id is not None else None

        tree.reparent(category, new_parent)

        for changed in (old_parent, new_parent):
            if changed is not None:
                self._storage.save_category(changed)
        return self._storage.save_category(category)

    def rename_category(self, category_id: UUID, name: str) -> Category:
        tree = self.category_tree()
        category = tree.get(category_id)
        tree.rename(category, name)
        return self._storage.save_category(category)

    def set_category_active(self, category_id: UUID, active: bool) -> Category:
        tree = self.category_tree()
        category = tree.get(category_id)
        tree.set_active(category, active)
        return self._storage.save_category(category)

    def delete_category(self, category_id: UUID) -> None:
        """
        Delete a leaf category that no movement references.

        Raises:
            CategoryHasChildrenError: If the category has sub-categories
            CategoryInUseError: If movements are still tagged with it
        """
        tree = self.category_tree()
        category = tree.get(category_id)
        parent = tree.parent_of(category)
        # The tree is a throwaway copy; nothing is persisted until both checks pass
        tree.remove(category)

        in_use = self._storage.find_movements_by_category(category_id)
        if in_use:
            raise CategoryInUseError(
                f"Category '{category.name}' is used by {len(in_use)} movements"
            )

        if parent is not None:
            self._storage.save_category(parent)
        self._storage.delete_category(category_id)

    # =========================================================================
    # Ledger
    # =========================================================================

    def record_movement(self, movement: Movement) -> Movement:
        """
        Add a movement to the ledger.

        Raises:
            NotFoundError: If one of its categories does not exist
        """
        for category_id in movement.category_ids:
            self._get_category(category_id)
        saved = self._storage.save_movement(movement)
        self._after_ledger_write()
        return saved

    def delete_movement(self, movement_id: UUID) -> bool:
        deleted = self._storage.delete_movement(movement_id)
        if deleted:
            self._after_ledger_write()
        return deleted

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def reconcile_budget(
        self,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """Recompute the actual figures of one budget from the ledger."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            budget = self._reconciler.reconcile_by_id(budget_id)
        except BudgetEngineError as e:
            self._logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"budget_id": str(budget_id)},
                correlation_id=correlation_id,
            )
            raise

        self._logger.log_budget_reconciled(
            budget_id=budget.id,
            actual_income=str(budget.actual_income),
            actual_expenses=str(budget.actual_expenses),
            correlation_id=correlation_id,
        )
        return budget

    def reconcile_all_budgets(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciliationReport:
        """Reconcile every budget; failures are reported, not raised."""
        correlation_id = correlation_id or create_correlation_id()
        report = self._reconciler.reconcile_all()
        self._logger.log_reconciliation_summary(report, correlation_id)
        return report

    def reconcile_period_budgets(
        self,
        period_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ReconciliationReport:
        correlation_id = correlation_id or create_correlation_id()
        report = self._reconciler.reconcile_period(period_id)
        self._logger.log_reconciliation_summary(report, correlation_id)
        return report

    # =========================================================================
    # Scheduled expenses
    # =========================================================================

    def create_scheduled_expense(self, expense: ScheduledExpense) -> ScheduledExpense:
        for category_id in expense.category_ids:
            self._get_category(category_id)
        return self._storage.save_scheduled_expense(expense)

    def get_next_due_date(self, expense_id: UUID) -> Optional[date]:
        return self._recurrence.next_due_date(self._get_expense(expense_id))

    def complete_scheduled_expense(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Movement:
        """
        Pay a scheduled expense.

        FLOW:
        1. Turn the expense into a movement dated today and record it
        2. Mark the expense completed
        3. If it recurs and has no next occurrence yet, schedule one; the
           end of the series is logged, not raised

        The next occurrence is due at the first step after today, or on the
        expense's own due date when that is still in the future. Paying an
        expense early therefore schedules a successor with the same due date.

        Raises:
            AlreadyCompletedError: If the expense was already completed
        """
        correlation_id = correlation_id or create_correlation_id()
        expense = self._get_expense(expense_id)

        movement = self._recurrence.complete(expense)
        saved_movement = self._storage.save_movement(movement)
        self._storage.save_scheduled_expense(expense)

        self._logger.log_expense_completed(
            expense_id=expense.id,
            movement_id=saved_movement.id,
            amount=str(saved_movement.amount),
            correlation_id=correlation_id,
        )

        if expense.is_recurring and expense.successor_id is None:
            try:
                self._spawn_next_occurrence(expense, correlation_id)
            except RecurrenceExhaustedError:
                self._logger.log_recurrence_exhausted(
                    expense_id=expense.id,
                    description=expense.description,
                    correlation_id=correlation_id,
                )

        self._after_ledger_write(correlation_id)
        return saved_movement

    def create_next_occurrence(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ScheduledExpense:
        """
        Schedule the next occurrence of a recurring expense.

        An expense has at most one next occurrence: if it already spawned
        one, that occurrence is returned and nothing new is created.

        Raises:
            NotRecurringError: If the expense does not recur
            RecurrenceExhaustedError: If the series has ended
        """
        correlation_id = correlation_id or create_correlation_id()
        expense = self._get_expense(expense_id)

        if expense.successor_id is not None:
            successor = self._storage.get_scheduled_expense_by_id(expense.successor_id)
            if successor is not None:
                return successor

        return self._spawn_next_occurrence(expense, correlation_id)

    def process_recurring_expenses(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> RecurrenceRunReport:
        """
        Schedule the next occurrence of every completed recurring expense
        that does not have one yet.

        Running it twice creates nothing the second time: an expense that
        already spawned an occurrence is skipped. One failing expense does
        not stop the run.
        """
        correlation_id = correlation_id or create_correlation_id()
        report = RecurrenceRunReport()

        for expense in self._storage.find_scheduled_expenses_by_recurrence():
            if not expense.completed or expense.successor_id is not None:
                continue
            try:
                occurrence = self._spawn_next_occurrence(expense, correlation_id)
            except RecurrenceExhaustedError:
                report.exhausted.append(expense.id)
            except Exception as e:
                report.failures.append(ItemFailure(
                    item_id=expense.id,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ))
            else:
                report.created.append(occurrence.id)

        self._logger.log_recurrence_summary(report, correlation_id)
        return report

    def get_due_expenses(self) -> list[ScheduledExpense]:
        """Open expenses due today or earlier."""
        return [
            e for e in self._storage.list_scheduled_expenses()
            if not e.completed and self._recurrence.is_due(e)
        ]

    def get_overdue_expenses(self) -> list[ScheduledExpense]:
        """Open expenses past their due date, oldest first."""
        overdue = [
            e for e in self._storage.list_scheduled_expenses()
            if self._recurrence.is_overdue(e)
        ]
        return sorted(overdue, key=lambda e: e.due_date)

    def get_expenses_due_in_days(self, days: int) -> list[ScheduledExpense]:
        """Open expenses due between today and `days` days from now, inclusive."""
        if days < 0:
            raise DomainValidationError(f"Days must be non-negative, got {days}")
        today = self._clock()
        return [
            e for e in self._storage.find_scheduled_expenses_by_due_range(
                today,
                today + timedelta(days=days),
            )
            if not e.completed
        ]

    def get_expenses_requiring_attention(self) -> list[ScheduledExpense]:
        """Overdue expenses followed by those due soon, each listed once."""
        attention = self.get_overdue_expenses() + self.get_expenses_due_in_days(
            self._scheduling_settings.attention_days
        )
        seen: set[UUID] = set()
        unique = []
        for expense in attention:
            if expense.id not in seen:
                seen.add(expense.id)
                unique.append(expense)
        return unique

    # =========================================================================
    # Amortization
    # =========================================================================

    def create_amortization_plan(self, plan: AmortizationPlan) -> AmortizationPlan:
        return self._storage.save_amortization_plan(plan)

    def generate_amortization_schedule(
        self,
        plan_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AmortizationPlan:
        """
        (Re)generate a plan's installments and write them to the ledger.

        Installments from a previous generation are removed from the
        ledger first, so regenerating never duplicates them.
        """
        correlation_id = correlation_id or create_correlation_id()
        plan = self._storage.get_amortization_plan_by_id(plan_id)
        if plan is None:
            raise NotFoundError(f"Amortization plan not found: {plan_id}")

        previous = [m.id for m in plan.installments]
        self._amortization.generate_installments(plan)

        for movement_id in previous:
            self._storage.delete_movement(movement_id)
        for movement in plan.installments:
            self._storage.save_movement(movement)
        saved = self._storage.save_amortization_plan(plan)

        self._logger.log_schedule_generated(
            plan_id=plan.id,
            installments=len(plan.installments),
            total_interest=str(plan.total_interest),
            correlation_id=correlation_id,
        )
        self._after_ledger_write(correlation_id)
        return saved

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_statistics_for_period(self, start: date, end: date) -> StatisticsReport:
        return self._statistics.statistics_for_period(start, end)

    def get_statistics_for_category(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> StatisticsReport:
        return self._statistics.statistics_for_category(category_id, start, end)

    def get_monthly_trend(self, start: date, end: date) -> dict[str, Decimal]:
        return self._statistics.monthly_trend(start, end)

    def get_category_spending_trend(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> dict[str, Decimal]:
        return self._statistics.category_spending_trend(category_id, start, end)

    def get_top_spending_categories(
        self,
        start: date,
        end: date,
        limit: Optional[int] = None,
    ) -> list[CategoryAmount]:
        if limit is None:
            limit = self._app_settings.top_categories_limit
        return self._statistics.top_spending_categories(start, end, limit)

    def get_budget_performance_analysis(self, period_id: UUID) -> BudgetPerformance:
        return self._statistics.budget_performance_analysis(period_id)

    def compare_periods(
        self,
        first_start: date,
        first_end: date,
        second_start: date,
        second_end: date,
    ) -> dict[str, StatisticsReport]:
        return self._statistics.compare_periods(
            first_start, first_end, second_start, second_end
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _spawn_next_occurrence(
        self,
        expense: ScheduledExpense,
        correlation_id: UUID,
    ) -> ScheduledExpense:
        occurrence = self._recurrence.create_next_occurrence(expense)
        saved = self._storage.save_scheduled_expense(occurrence)

        expense.successor_id = saved.id
        expense.touch()
        self._storage.save_scheduled_expense(expense)

        self._logger.log_occurrence_created(
            expense_id=expense.id,
            occurrence_id=saved.id,
            due_date=saved.due_date.isoformat(),
            correlation_id=correlation_id,
        )
        return saved

    def _latest_period_first(self, budgets: Iterable[Budget]) -> list[Budget]:
        starts = {p.id: p.start_date for p in self._storage.list_periods()}
        return sorted(
            budgets,
            key=lambda b: starts.get(b.period_id, date.min),
            reverse=True,
        )

    def _after_ledger_write(self, correlation_id: Optional[UUID] = None) -> None:
        if self._reconciliation_settings.auto_reconcile:
            self.reconcile_all_budgets(correlation_id)

    def _get_period(self, period_id: UUID) -> Period:
        period = self._storage.get_period_by_id(period_id)
        if period is None:
            raise NotFoundError(f"Period not found: {period_id}")
        return period

    def _get_category(self, category_id: UUID) -> Category:
        category = self._storage.get_category_by_id(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category

    def _get_expense(self, expense_id: UUID) -> ScheduledExpense:
        expense = self._storage.get_scheduled_expense_by_id(expense_id)
        if expense is None:
            raise NotFoundError(f"Scheduled expense not found: {expense_id}")
        return expense


def create_engine(
    storage: Optional[LedgerStorage] = None,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> BudgetEngine:
    """
    Factory function to create the engine and its components.

    Args:
        storage: Storage backend. Defaults to a fresh InMemoryStorage.
        settings: Settings to use. Defaults to the cached environment settings.
        clock: Callable returning "today". Defaults to date.today.

    Returns:
        A ready-to-use BudgetEngine with logging configured
    """
    settings = settings or get_settings()
    configure_logging(settings.logging)

    return BudgetEngine(
        storage=storage or InMemoryStorage(),
        settings=settings,
        clock=clock,
        logger=EngineLogger(),
    )
