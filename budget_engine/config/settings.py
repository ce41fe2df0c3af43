"""
Configuration Management for the Budget Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every section has safe defaults, so the engine runs without any
environment set up; a .env file or BUDGET_* variables override them.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        validation_alias="BUDGET_LOG_JSON",
        description="Render log lines as JSON (console rendering otherwise)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'")
        return level


class SchedulingSettings(BaseSettings):
    """Scheduled expense monitoring."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_SCHEDULING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    attention_days: int = Field(
        default=3,
        ge=0,
        le=365,
        description="Expenses due within this many days need attention"
    )


class ReconciliationSettings(BaseSettings):
    """Budget reconciliation behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_RECONCILIATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    auto_reconcile: bool = Field(
        default=False,
        description="Re-run reconciliation of every budget after each ledger write"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_category_name_length: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Longest category name accepted"
    )
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        description="Default size of the top spending categories list"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sections are loaded lazily so a bad value only fails the section it is in

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def scheduling(self) -> SchedulingSettings:
        return SchedulingSettings()

    @property
    def reconciliation(self) -> ReconciliationSettings:
        return ReconciliationSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {section_name: is_valid}, plus
    {section_name_error: message} for every invalid section.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    for section in ("app", "logging", "scheduling", "reconciliation"):
        try:
            getattr(settings, section)
            results[section] = True
        except Exception as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
