"""
Budget Reconciler

Derives the actual income and expenses of budgets from the ledger.

DESIGN DECISION: Reconciliation is a FULL RECOMPUTE, never an incremental
update. Every run reads the movements of the budget's period once and
overwrites both actual figures, so:
1. Running it twice over an unchanged ledger gives the same budget
2. Edits and deletions in the ledger can never leave stale totals behind
3. Correctness does not depend on every writer remembering to adjust budgets

CRITICAL: Actual income is period-wide. Every budget of a period gets the
same income figure whatever its category; only expenses are filtered by
category. A movement tagged with two categories counts in full for both.
"""

from typing import Iterable, Optional
from uuid import UUID

from budget_engine.models.budget import Budget
from budget_engine.models.ledger import Movement
from budget_engine.models.money import ZERO
from budget_engine.models.reports import (
    ItemFailure,
    PeriodTotals,
    ReconciliationReport,
)
from budget_engine.services.storage.interface import LedgerStorage, NotFoundError


def calculate_actuals(
    movements: Iterable[Movement],
    category_id: Optional[UUID] = None,
) -> PeriodTotals:
    """
    Actual figures for a budget from its period's movements.

    Args:
        movements: Every movement dated inside the period
        category_id: Budget category; None for a general budget

    Returns:
        Income over all movements, expenses restricted to the category
    """
    income = ZERO
    expenses = ZERO
    for movement in movements:
        if movement.is_income:
            income += movement.amount
        elif category_id is None or movement.has_category(category_id):
            expenses += movement.amount
    return PeriodTotals(income=income, expenses=expenses)


class BudgetReconciler:
    """
    Recomputes budget actuals from storage.

    Usage:
        reconciler = BudgetReconciler(storage)
        budget = reconciler.reconcile(budget)
        report = reconciler.reconcile_all()
    """

    def __init__(self, storage: LedgerStorage):
        self._storage = storage

    def reconcile(self, budget: Budget) -> Budget:
        """
        Recompute and save the actual figures of one budget.

        Raises:
            NotFoundError: If the budget's period does not exist
            DomainValidationError: If a computed figure is invalid

        Returns:
            The saved budget
        """
        period = self._storage.get_period_by_id(budget.period_id)
        if period is None:
            raise NotFoundError(f"Period not found: {budget.period_id}")

        movements = self._storage.find_movements_by_date_range(
            period.start_date,
            period.end_date,
        )
        actuals = calculate_actuals(movements, budget.category_id)

        budget.update_actuals(actuals.income, actuals.expenses)
        return self._storage.save_budget(budget)

    def reconcile_by_id(self, budget_id: UUID) -> Budget:
        budget = self._storage.get_budget_by_id(budget_id)
        if budget is None:
            raise NotFoundError(f"Budget not found: {budget_id}")
        return self.reconcile(budget)

    def reconcile_all(self) -> ReconciliationReport:
        """
        Reconcile every budget independently.

        A budget that fails is recorded in the report and the run carries
        on with the next one. Nothing is rolled back.
        """
        return self._reconcile_many(self._storage.list_budgets())

    def reconcile_period(self, period_id: UUID) -> ReconciliationReport:
        """Reconcile every budget of one period."""
        if self._storage.get_period_by_id(period_id) is None:
            raise NotFoundError(f"Period not found: {period_id}")
        return self._reconcile_many(self._storage.find_budgets_by_period(period_id))

    def _reconcile_many(self, budgets: list[Budget]) -> ReconciliationReport:
        report = ReconciliationReport()
        for budget in budgets:
            try:
                self.reconcile(budget)
            except Exception as e:
                report.failures.append(ItemFailure(
                    item_id=budget.id,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ))
            else:
                report.reconciled.append(budget.id)
        return report
