"""Configuration package."""

from budget_engine.config.settings import (
    AppSettings,
    LoggingSettings,
    ReconciliationSettings,
    SchedulingSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "ReconciliationSettings",
    "SchedulingSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
