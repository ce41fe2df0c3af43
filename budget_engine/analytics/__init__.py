"""Ledger statistics package."""

from budget_engine.analytics.aggregator import StatisticsAggregator, month_buckets

__all__ = ["StatisticsAggregator", "month_buckets"]
