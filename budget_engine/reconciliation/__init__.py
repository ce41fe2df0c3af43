"""Budget reconciliation package."""

from budget_engine.reconciliation.reconciler import BudgetReconciler, calculate_actuals

__all__ = ["BudgetReconciler", "calculate_actuals"]
