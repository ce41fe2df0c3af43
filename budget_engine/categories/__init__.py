"""Category hierarchy package."""

from budget_engine.categories.tree import CategoryTree

__all__ = ["CategoryTree"]
