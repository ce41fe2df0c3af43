"""Services package."""

from budget_engine.services.storage import (
    DuplicateBudgetError,
    DuplicateError,
    InMemoryStorage,
    LedgerStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    "DuplicateBudgetError",
    "DuplicateError",
    "InMemoryStorage",
    "LedgerStorage",
    "NotFoundError",
    "StorageError",
]
