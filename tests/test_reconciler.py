"""Tests for budget reconciliation."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from budget_engine.models import Budget, Category, Movement, MovementType, Period
from budget_engine.reconciliation import BudgetReconciler, calculate_actuals
from budget_engine.services.storage import NotFoundError


def movement(amount: str, movement_type: MovementType, day: date, *categories: Category) -> Movement:
    return Movement(
        description=f"{movement_type.value} {amount}",
        amount=Decimal(amount),
        type=movement_type,
        movement_date=day,
        category_ids={c.id for c in categories},
    )


@pytest.fixture
def march(storage):
    """The March 2025 ledger: salary, groceries and rent."""
    period = storage.save_period(Period.for_month(2025, 3))
    groceries = storage.save_category(Category(name="Groceries"))
    rent = storage.save_category(Category(name="Rent"))

    storage.save_movement(movement("2000.00", MovementType.INCOME, date(2025, 3, 5)))
    storage.save_movement(movement("150.00", MovementType.EXPENSE, date(2025, 3, 10), groceries))
    storage.save_movement(movement("300.00", MovementType.EXPENSE, date(2025, 3, 2), rent))
    # Outside the period
    storage.save_movement(movement("999.00", MovementType.EXPENSE, date(2025, 4, 1), groceries))
    storage.save_movement(movement("999.00", MovementType.INCOME, date(2025, 2, 28)))

    return period, groceries, rent


@pytest.fixture
def reconciler(storage) -> BudgetReconciler:
    return BudgetReconciler(storage)


class TestCalculateActuals:
    """Tests for the pure actuals calculation."""

    def test_empty_ledger(self):
        totals = calculate_actuals([], None)
        assert totals.income == Decimal("0")
        assert totals.expenses == Decimal("0")

    def test_multi_category_movement_counts_fully_in_each(self):
        """Test that a movement in two categories counts in full for both."""
        a, b = Category(name="A"), Category(name="B")
        shared = movement("80.00", MovementType.EXPENSE, date(2025, 3, 1), a, b)

        assert calculate_actuals([shared], a.id).expenses == Decimal("80.00")
        assert calculate_actuals([shared], b.id).expenses == Decimal("80.00")
        assert calculate_actuals([shared], None).expenses == Decimal("80.00")

    def test_uncategorized_expense_only_in_general(self):
        loose = movement("12.00", MovementType.EXPENSE, date(2025, 3, 1))
        assert calculate_actuals([loose], None).expenses == Decimal("12.00")
        assert calculate_actuals([loose], uuid4()).expenses == Decimal("0")


class TestReconcile:
    """Tests for reconciling budgets against the March 2025 ledger."""

    def test_general_budget(self, storage, reconciler, march):
        period, _, _ = march
        budget = storage.save_budget(Budget(
            period_id=period.id,
            planned_income=Decimal("2000"),
            planned_expenses=Decimal("500"),
        ))

        result = reconciler.reconcile(budget)

        assert result.actual_income == Decimal("2000.00")
        assert result.actual_expenses == Decimal("450.00")
        assert result.variance_balance == Decimal("50")
        assert not result.is_over_budget
        assert storage.get_budget_by_id(budget.id).actual_expenses == Decimal("450.00")

    def test_category_budget(self, storage, reconciler, march):
        period, groceries, _ = march
        budget = storage.save_budget(Budget(
            period_id=period.id,
            category_id=groceries.id,
            planned_expenses=Decimal("200"),
        ))

        result = reconciler.reconcile(budget)

        assert result.actual_income == Decimal("2000.00")
        assert result.actual_expenses == Decimal("150.00")
        assert not result.is_over_budget

    def test_income_is_period_wide(self, storage, reconciler, march):
        """Test that every budget of a period gets the same income."""
        period, groceries, rent = march
        for category_id in (None, groceries.id, rent.id):
            storage.save_budget(Budget(period_id=period.id, category_id=category_id))

        reconciler.reconcile_all()

        incomes = {b.actual_income for b in storage.find_budgets_by_period(period.id)}
        assert incomes == {Decimal("2000.00")}

    def test_idempotent(self, storage, reconciler, march):
        """Test that reconciling twice with no ledger change gives the same figures."""
        period, groceries, _ = march
        budget = storage.save_budget(Budget(period_id=period.id, category_id=groceries.id))

        first = reconciler.reconcile(budget)
        second = reconciler.reconcile(storage.get_budget_by_id(budget.id))

        assert (first.actual_income, first.actual_expenses) == (
            second.actual_income,
            second.actual_expenses,
        )

    def test_full_recompute_after_deletion(self, storage, reconciler, march):
        """Test that deleted movements drop out of the totals."""
        period, _, rent = march
        budget = storage.save_budget(Budget(period_id=period.id, category_id=rent.id))
        reconciler.reconcile(budget)

        for m in storage.find_movements_by_category(rent.id):
            storage.delete_movement(m.id)
        result = reconciler.reconcile(storage.get_budget_by_id(budget.id))

        assert result.actual_expenses == Decimal("0")

    def test_missing_period(self, reconciler):
        with pytest.raises(NotFoundError):
            reconciler.reconcile(Budget(period_id=uuid4()))


class TestReconcileAll:
    """Tests for batch reconciliation with partial failures."""

    def test_failure_does_not_stop_batch(self, storage, reconciler, march):
        period, groceries, _ = march
        good = storage.save_budget(Budget(period_id=period.id))
        orphan = storage.save_budget(Budget(period_id=uuid4(), category_id=groceries.id))
        also_good = storage.save_budget(Budget(period_id=period.id, category_id=groceries.id))

        report = reconciler.reconcile_all()

        assert report.reconciled == [good.id, also_good.id]
        assert report.total == 3
        assert report.has_failures
        failure = report.failures[0]
        assert failure.item_id == orphan.id
        assert failure.error_type == "NotFoundError"
        assert storage.get_budget_by_id(also_good.id).actual_expenses == Decimal("150.00")

    def test_reconcile_period(self, storage, reconciler, march):
        period, _, _ = march
        other = storage.save_period(Period.for_month(2025, 4))
        in_march = storage.save_budget(Budget(period_id=period.id))
        in_april = storage.save_budget(Budget(period_id=other.id))

        report = reconciler.reconcile_period(period.id)

        assert report.reconciled == [in_march.id]
        assert storage.get_budget_by_id(in_april.id).actual_expenses == Decimal("0")

    def test_reconcile_unknown_period(self, reconciler):
        with pytest.raises(NotFoundError):
            reconciler.reconcile_period(uuid4())
