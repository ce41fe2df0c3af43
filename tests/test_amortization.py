"""Tests for amortization schedule generation."""

import pytest
from datetime import date
from decimal import Decimal

from budget_engine.errors import DomainValidationError
from budget_engine.models import AmortizationPlan, MovementType
from budget_engine.scheduling import AmortizationScheduler, monthly_payment, monthly_rate


def make_plan(**overrides) -> AmortizationPlan:
    fields = {
        "name": "Car loan",
        "total_amount": Decimal("1000.00"),
        "interest_rate": Decimal("0.12"),
        "number_of_installments": 12,
        "start_date": date(2025, 1, 1),
    }
    fields.update(overrides)
    return AmortizationPlan(**fields)


@pytest.fixture
def scheduler(clock) -> AmortizationScheduler:
    return AmortizationScheduler(clock)


class TestRates:
    """Tests for rate and payment rounding."""

    def test_monthly_rate_rounds_to_six_places(self):
        assert monthly_rate(Decimal("0.12")) == Decimal("0.010000")
        assert monthly_rate(Decimal("0.05")) == Decimal("0.004167")

    def test_annuity_payment(self):
        """Test the classic 1000 at 1% a month over 12 months."""
        assert monthly_payment(Decimal("1000.00"), Decimal("0.01"), 12) == Decimal("88.85")

    def test_zero_rate_payment(self):
        assert monthly_payment(Decimal("1000.00"), Decimal("0"), 3) == Decimal("333.33")


class TestZeroRatePlan:
    """Tests for interest-free plans."""

    def test_twelve_equal_installments(self, scheduler):
        """Test 1200.00 over 12 months at 0%: twelve payments of 100.00."""
        plan = make_plan(
            total_amount=Decimal("1200.00"),
            interest_rate=Decimal("0"),
            start_date=date(2025, 1, 1),
        )
        installments = scheduler.generate_installments(plan)

        assert len(installments) == 12
        assert all(m.amount == Decimal("100.00") for m in installments)
        assert plan.total_interest == Decimal("0.00")
        assert installments[0].movement_date == date(2025, 1, 1)
        assert installments[-1].movement_date == date(2025, 12, 1)

    def test_last_installment_absorbs_remainder(self, scheduler):
        plan = make_plan(
            total_amount=Decimal("1000.00"),
            interest_rate=Decimal("0"),
            number_of_installments=3,
        )
        amounts = [m.amount for m in scheduler.generate_installments(plan)]
        assert amounts == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]


class TestInterestPlan:
    """Tests for plans that charge interest."""

    def test_first_rows(self, scheduler):
        rows = scheduler.breakdown(make_plan())
        assert rows[0].payment == Decimal("88.85")
        assert rows[0].interest == Decimal("10.00")
        assert rows[0].principal == Decimal("78.85")
        assert rows[0].remaining_principal == Decimal("921.15")
        assert rows[1].interest == Decimal("9.21")

    @pytest.mark.parametrize("total, rate, n", [
        (Decimal("1000.00"), Decimal("0.12"), 12),
        (Decimal("25000.00"), Decimal("0.049"), 60),
        (Decimal("180000.00"), Decimal("0.0375"), 360),
        (Decimal("999.99"), Decimal("0.2"), 7),
    ])
    def test_principal_sums_to_total(self, scheduler, total, rate, n):
        """Test that principal portions add up to the loan exactly."""
        plan = make_plan(total_amount=total, interest_rate=rate, number_of_installments=n)
        rows = scheduler.breakdown(plan)

        assert sum(r.principal for r in rows) == total
        assert rows[-1].remaining_principal == Decimal("0.00")

        scheduler.generate_installments(plan)
        assert sum(m.amount for m in plan.installments) - total == plan.total_interest
        assert plan.total_interest == sum(r.interest for r in rows)


class TestGeneratedMovements:
    """Tests for the installment movements."""

    def test_movement_fields(self, scheduler):
        plan = make_plan()
        first = scheduler.generate_installments(plan)[0]

        assert first.description == "Car loan - Installment 1/12"
        assert first.type == MovementType.EXPENSE
        assert first.scheduled
        assert first.amortization_plan_id == plan.id
        assert first.notes == "Principal: 78.85, Interest: 10.00"

    def test_month_end_dates_do_not_drift(self, scheduler):
        """Test that a start on the 31st comes back to the 31st."""
        plan = make_plan(start_date=date(2025, 1, 31), number_of_installments=4)
        dates = [m.movement_date for m in scheduler.generate_installments(plan)]
        assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]

    def test_regeneration_replaces(self, scheduler):
        plan = make_plan()
        old = scheduler.generate_installments(plan)
        plan.number_of_installments = 6
        new = scheduler.generate_installments(plan)

        assert len(plan.installments) == 6
        assert {m.id for m in old}.isdisjoint(m.id for m in new)

    def test_failed_regeneration_keeps_previous_list(self, scheduler):
        """Test that the plan keeps its installments when generation fails."""
        plan = make_plan(
            total_amount=Decimal("1.00"),
            interest_rate=Decimal("0"),
            number_of_installments=4,
        )
        old = scheduler.generate_installments(plan)

        plan.number_of_installments = 40
        with pytest.raises(DomainValidationError):
            scheduler.generate_installments(plan)

        assert [m.id for m in plan.installments] == [m.id for m in old]


class TestOverRepayment:
    """Tests for plans whose rounded payment over-repays the loan."""

    def test_negative_last_installment_is_rejected(self, scheduler):
        """Test 1.00 over 40 months at 0%: 39 payments of 0.03 exceed the loan."""
        plan = make_plan(
            total_amount=Decimal("1.00"),
            interest_rate=Decimal("0"),
            number_of_installments=40,
        )

        with pytest.raises(DomainValidationError, match="over-repays"):
            scheduler.breakdown(plan)
        with pytest.raises(DomainValidationError):
            scheduler.generate_installments(plan)
        assert plan.installments == []

    def test_small_loan_that_fits(self, scheduler):
        plan = make_plan(
            total_amount=Decimal("1.00"),
            interest_rate=Decimal("0"),
            number_of_installments=3,
        )
        amounts = [m.amount for m in scheduler.generate_installments(plan)]
        assert amounts == [Decimal("0.33"), Decimal("0.33"), Decimal("0.34")]


class TestDerivedQueries:
    """Tests for progress queries (today is 2025-03-15)."""

    def test_progress(self, scheduler):
        plan = make_plan(
            total_amount=Decimal("1200.00"),
            interest_rate=Decimal("0"),
        )
        scheduler.generate_installments(plan)

        assert scheduler.completed_installments(plan) == 3
        assert scheduler.remaining_amount(plan) == Decimal("900.00")
        assert scheduler.total_interest(plan) == Decimal("0.00")
