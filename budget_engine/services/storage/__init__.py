"""
Storage Services Package

Provides abstract interfaces and the in-memory implementation for data
storage. Real backends implement `LedgerStorage` and plug in unchanged.
"""

from budget_engine.services.storage.interface import (
    AmortizationPlanStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    DuplicateBudgetError,
    DuplicateError,
    LedgerStorage,
    MovementStorageInterface,
    NotFoundError,
    PeriodStorageInterface,
    ScheduledExpenseStorageInterface,
    StorageError,
)
from budget_engine.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "AmortizationPlanStorageInterface",
    "BudgetStorageInterface",
    "CategoryStorageInterface",
    "LedgerStorage",
    "MovementStorageInterface",
    "PeriodStorageInterface",
    "ScheduledExpenseStorageInterface",
    # Exceptions
    "DuplicateBudgetError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryStorage",
]
