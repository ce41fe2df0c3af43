"""
Domain Exceptions

DESIGN DECISION: The engine raises typed errors only. Turning them into
human-readable messages is the job of the presentation layer.

Storage-related errors (not found, duplicates) live with the storage
interface in `budget_engine.services.storage.interface`.
"""


class BudgetEngineError(Exception):
    """Base exception for every error raised by the engine."""
    pass


class DomainValidationError(BudgetEngineError, ValueError):
    """An operation would violate a domain invariant."""
    pass


class CycleError(DomainValidationError):
    """A category assignment would create a cycle in the hierarchy."""
    pass


class DuplicateCategoryNameError(DomainValidationError):
    """Another category with the same name already exists under the same parent."""
    pass


class CategoryHasChildrenError(DomainValidationError):
    """A category cannot be deleted while it still has sub-categories."""
    pass


class CategoryInUseError(DomainValidationError):
    """A category cannot be deleted while movements still reference it."""
    pass


class AlreadyCompletedError(BudgetEngineError):
    """The scheduled expense has already been completed."""
    pass


class NotRecurringError(BudgetEngineError):
    """A recurrence operation was requested on a non-recurring schedule."""
    pass


class RecurrenceExhaustedError(BudgetEngineError):
    """The recurrence has no further occurrence (end date reached)."""
    pass
