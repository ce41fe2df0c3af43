"""Structured logging package."""

from budget_engine.observability.logger import (
    EngineLogger,
    configure_logging,
    create_correlation_id,
)

__all__ = ["EngineLogger", "configure_logging", "create_correlation_id"]
