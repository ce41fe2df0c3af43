"""Tests for the in-memory storage backend."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from budget_engine.models import (
    AmortizationPlan,
    Budget,
    Category,
    Movement,
    MovementType,
    Period,
    RecurrenceType,
    ScheduledExpense,
)
from budget_engine.services.storage import DuplicateBudgetError, DuplicateError


def make_movement(day: date, amount: str = "10.00") -> Movement:
    return Movement(
        description="test",
        amount=Decimal(amount),
        type=MovementType.EXPENSE,
        movement_date=day,
    )


class TestCopySemantics:
    """Tests that callers never hold references into the store."""

    def test_mutating_a_loaded_entity_changes_nothing(self, storage):
        category = storage.save_category(Category(name="Food"))
        loaded = storage.get_category_by_id(category.id)
        loaded.name = "Changed"

        assert storage.get_category_by_id(category.id).name == "Food"

    def test_mutating_after_save_changes_nothing(self, storage):
        movement = make_movement(date(2025, 3, 1))
        storage.save_movement(movement)
        movement.description = "changed"

        assert storage.get_movement_by_id(movement.id).description == "test"


class TestMovements:
    """Tests for ledger queries."""

    def test_date_range_is_inclusive_and_sorted(self, storage):
        late = storage.save_movement(make_movement(date(2025, 3, 31)))
        early = storage.save_movement(make_movement(date(2025, 3, 1)))
        storage.save_movement(make_movement(date(2025, 4, 1)))

        found = storage.find_movements_by_date_range(date(2025, 3, 1), date(2025, 3, 31))
        assert [m.id for m in found] == [early.id, late.id]

    def test_find_by_category(self, storage):
        category_id = uuid4()
        tagged = make_movement(date(2025, 3, 1))
        tagged.add_category(category_id)
        storage.save_movement(tagged)
        storage.save_movement(make_movement(date(2025, 3, 2)))

        assert [m.id for m in storage.find_movements_by_category(category_id)] == [tagged.id]

    def test_delete(self, storage):
        movement = storage.save_movement(make_movement(date(2025, 3, 1)))
        assert storage.delete_movement(movement.id)
        assert not storage.delete_movement(movement.id)
        assert storage.get_movement_by_id(movement.id) is None


class TestBudgets:
    """Tests for budget uniqueness."""

    def test_second_general_budget_is_rejected(self, storage):
        """Test that a period can only have one general budget."""
        period_id = uuid4()
        storage.save_budget(Budget(period_id=period_id))
        with pytest.raises(DuplicateBudgetError):
            storage.save_budget(Budget(period_id=period_id))

    def test_second_category_budget_is_rejected(self, storage):
        period_id, category_id = uuid4(), uuid4()
        storage.save_budget(Budget(period_id=period_id, category_id=category_id))
        with pytest.raises(DuplicateError):
            storage.save_budget(Budget(period_id=period_id, category_id=category_id))

    def test_resaving_same_budget_is_allowed(self, storage):
        budget = storage.save_budget(Budget(period_id=uuid4()))
        budget.notes = "updated"
        storage.save_budget(budget)
        assert storage.get_budget_by_id(budget.id).notes == "updated"

    def test_find_budget(self, storage):
        period_id, category_id = uuid4(), uuid4()
        general = storage.save_budget(Budget(period_id=period_id))
        scoped = storage.save_budget(Budget(period_id=period_id, category_id=category_id))

        assert storage.find_budget(period_id, None).id == general.id
        assert storage.find_budget(period_id, category_id).id == scoped.id
        assert storage.find_budget(uuid4(), None) is None
        assert len(storage.find_budgets_by_period(period_id)) == 2


class TestLookups:
    """Tests for categories, periods, schedules and plans."""

    def test_find_category_by_name_is_case_insensitive(self, storage):
        parent = storage.save_category(Category(name="Home"))
        child = storage.save_category(Category(name="Utilities", parent_id=parent.id))

        assert storage.find_category_by_name("utilities", parent.id).id == child.id
        assert storage.find_category_by_name("Utilities") is None
        assert storage.find_category_by_name("HOME").id == parent.id

    def test_active_categories(self, storage):
        storage.save_category(Category(name="On"))
        storage.save_category(Category(name="Off", active=False))
        assert [c.name for c in storage.list_active_categories()] == ["On"]

    def test_find_period_by_name(self, storage):
        period = storage.save_period(Period.for_month(2025, 3))
        assert storage.find_period_by_name("2025-03").id == period.id
        assert storage.find_period_by_name("2025-04") is None

    def test_scheduled_expense_queries(self, storage):
        monthly = storage.save_scheduled_expense(ScheduledExpense(
            description="Rent",
            amount=Decimal("300.00"),
            due_date=date(2025, 3, 20),
            recurrence_type=RecurrenceType.MONTHLY,
        ))
        once = storage.save_scheduled_expense(ScheduledExpense(
            description="Repair",
            amount=Decimal("80.00"),
            due_date=date(2025, 3, 10),
        ))

        assert [e.id for e in storage.find_scheduled_expenses_by_recurrence()] == [monthly.id]
        assert [e.id for e in storage.find_scheduled_expenses_by_recurrence(RecurrenceType.NONE)] == [once.id]
        in_range = storage.find_scheduled_expenses_by_due_range(date(2025, 3, 1), date(2025, 3, 31))
        assert [e.id for e in in_range] == [once.id, monthly.id]

    def test_amortization_plans(self, storage):
        plan = storage.save_amortization_plan(AmortizationPlan(
            name="Loan",
            total_amount=Decimal("1200.00"),
            interest_rate=Decimal("0"),
            number_of_installments=12,
            start_date=date(2025, 1, 1),
        ))
        assert storage.get_amortization_plan_by_id(plan.id).name == "Loan"
        assert len(storage.list_amortization_plans()) == 1
