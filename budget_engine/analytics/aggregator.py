"""
Statistics Aggregator

Read-only statistics over the ledger and the reconciled budgets.

DESIGN DECISION: Statistics are DETERMINISTIC and derived on demand.
Nothing here is cached or persisted; every figure comes straight from
what storage returns for the requested range. Empty ranges produce zero
totals, never estimates.

Category breakdowns are lists of CategoryAmount keyed by category id, so
two categories that share a name under different parents never collide.
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta

from budget_engine.errors import DomainValidationError
from budget_engine.models.category import Category
from budget_engine.models.ledger import Movement, MovementType
from budget_engine.models.money import CENT, ONE_HUNDRED, ZERO
from budget_engine.models.reports import (
    BudgetPerformance,
    CategoryAmount,
    PeriodTotals,
    StatisticsReport,
)
from budget_engine.services.storage.interface import LedgerStorage, NotFoundError

DEFAULT_TOP_CATEGORIES = 5


def _validate_range(start: date, end: date) -> None:
    if start > end:
        raise DomainValidationError(f"Start date {start} is after end date {end}")


def month_buckets(start: date, end: date) -> Iterator[tuple[str, date, date]]:
    """
    Calendar months overlapping [start, end], clipped to the range.

    Yields (YYYY-MM, bucket_start, bucket_end) in chronological order.
    """
    month = start.replace(day=1)
    while month <= end:
        month_end = month + relativedelta(months=1, days=-1)
        yield (
            month.strftime("%Y-%m"),
            max(month, start),
            min(month_end, end),
        )
        month = month + relativedelta(months=1)


def _sum(movements: list[Movement], movement_type: MovementType) -> Decimal:
    return sum((m.amount for m in movements if m.type == movement_type), ZERO)


class StatisticsAggregator:
    """
    Computes period and category statistics.

    Usage:
        aggregator = StatisticsAggregator(storage)
        report = aggregator.statistics_for_period(date(2025, 1, 1), date(2025, 3, 31))
    """

    def __init__(self, storage: LedgerStorage):
        self._storage = storage

    # =========================================================================
    # Totals
    # =========================================================================

    def period_totals(self, start: date, end: date) -> PeriodTotals:
        """Income and expenses of every movement dated in [start, end]."""
        _validate_range(start, end)
        movements = self._storage.find_movements_by_date_range(start, end)
        return PeriodTotals(
            income=_sum(movements, MovementType.INCOME),
            expenses=_sum(movements, MovementType.EXPENSE),
        )

    def category_totals(self, category: Category, start: date, end: date) -> PeriodTotals:
        """Income and expenses of the movements tagged with `category` in [start, end]."""
        _validate_range(start, end)
        movements = self._category_movements(category.id, start, end)
        return PeriodTotals(
            income=_sum(movements, MovementType.INCOME),
            expenses=_sum(movements, MovementType.EXPENSE),
        )

    def amounts_by_category(
        self,
        start: date,
        end: date,
        movement_type: MovementType,
    ) -> list[CategoryAmount]:
        """
        Total of one movement type per active category.

        Categories with a zero total are left out. Order follows the
        storage order of active categories.
        """
        _validate_range(start, end)
        movements = self._storage.find_movements_by_date_range(start, end)

        totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for movement in movements:
            if movement.type != movement_type:
                continue
            for category_id in movement.category_ids:
                totals[category_id] += movement.amount

        return [
            CategoryAmount(
                category_id=category.id,
                category_name=category.name,
                amount=totals[category.id],
            )
            for category in self._storage.list_active_categories()
            if totals.get(category.id, ZERO) > ZERO
        ]

    # =========================================================================
    # Reports
    # =========================================================================

    def statistics_for_period(self, start: date, end: date) -> StatisticsReport:
        totals = self.period_totals(start, end)
        return StatisticsReport(
            start_date=start,
            end_date=end,
            total_income=totals.income,
            total_expenses=totals.expenses,
            income_by_category=self.amounts_by_category(start, end, MovementType.INCOME),
            expenses_by_category=self.amounts_by_category(start, end, MovementType.EXPENSE),
            monthly_trend=self.monthly_trend(start, end),
        )

    def statistics_for_category(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> StatisticsReport:
        """Totals for a single category; breakdowns and trend are left empty."""
        category = self._get_category(category_id)
        totals = self.category_totals(category, start, end)
        return StatisticsReport(
            start_date=start,
            end_date=end,
            total_income=totals.income,
            total_expenses=totals.expenses,
        )

    def compare_periods(
        self,
        first_start: date,
        first_end: date,
        second_start: date,
        second_end: date,
    ) -> dict[str, StatisticsReport]:
        return {
            "period1": self.statistics_for_period(first_start, first_end),
            "period2": self.statistics_for_period(second_start, second_end),
        }

    # =========================================================================
    # Trends
    # =========================================================================

    def monthly_trend(self, start: date, end: date) -> dict[str, Decimal]:
        """Income minus expenses per calendar month, keyed YYYY-MM."""
        _validate_range(start, end)
        movements = self._storage.find_movements_by_date_range(start, end)

        trend: dict[str, Decimal] = {}
        for key, bucket_start, bucket_end in month_buckets(start, end):
            trend[key] = sum(
                (
                    m.signed_amount for m in movements
                    if bucket_start <= m.movement_date <= bucket_end
                ),
                ZERO,
            )
        return trend

    def category_spending_trend(
        self,
        category_id: UUID,
        start: date,
        end: date,
    ) -> dict[str, Decimal]:
        """Expenses of one category per calendar month, keyed YYYY-MM."""
        _validate_range(start, end)
        category = self._get_category(category_id)
        movements = self._category_movements(category.id, start, end)

        trend: dict[str, Decimal] = {}
        for key, bucket_start, bucket_end in month_buckets(start, end):
            trend[key] = sum(
                (
                    m.amount for m in movements
                    if m.is_expense and bucket_start <= m.movement_date <= bucket_end
                ),
                ZERO,
            )
        return trend

    def top_spending_categories(
        self,
        start: date,
        end: date,
        limit: int = DEFAULT_TOP_CATEGORIES,
    ) -> list[CategoryAmount]:
        """
        Active categories with the highest expenses, largest first.

        Ties keep the storage order of the categories.
        """
        if limit < 0:
            raise DomainValidationError(f"Limit must be non-negative, got {limit}")
        spending = self.amounts_by_category(start, end, MovementType.EXPENSE)
        # sorted() is stable, so equal totals stay in first-encountered order
        ranked = sorted(spending, key=lambda c: c.amount, reverse=True)
        return ranked[:limit]

    # =========================================================================
    # Budgets
    # =========================================================================

    def budget_performance_analysis(self, period_id: UUID) -> BudgetPerformance:
        """
        How the budgets of a period performed against their plans.

        Uses the stored actual figures, so reconcile first for fresh numbers.

        Raises:
            NotFoundError: If the period does not exist
        """
        if self._storage.get_period_by_id(period_id) is None:
            raise NotFoundError(f"Period not found: {period_id}")

        budgets = self._storage.find_budgets_by_period(period_id)
        total = len(budgets)
        over = sum(1 for b in budgets if b.is_over_budget)
        variance = sum((b.variance_balance for b in budgets), ZERO)

        over_percentage = 0.0
        if total:
            ratio = Decimal(over) * ONE_HUNDRED / Decimal(total)
            over_percentage = float(ratio.quantize(CENT, rounding=ROUND_HALF_UP))

        return BudgetPerformance(
            period_id=period_id,
            total_budgets=total,
            over_budget_count=over,
            total_variance=variance,
            over_budget_percentage=over_percentage,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_category(self, category_id: UUID) -> Category:
        category: Optional[Category] = self._storage.get_category_by_id(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category

    def _category_movements(self, category_id: UUID, start: date, end: date) -> list[Movement]:
        return [
            m for m in self._storage.find_movements_by_category(category_id)
            if start <= m.movement_date <= end
        ]
