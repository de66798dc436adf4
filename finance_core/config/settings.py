"""
Configuration Management for Finance Core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger engine itself takes no configuration; only the services
around it (validation, budgets, dashboard queries, logging) do.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger and dashboard defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_LEDGER_",
        extra="ignore"
    )

    default_currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="ISO currency code for newly created books"
    )
    default_history_months: int = Field(
        default=24,
        ge=1,
        le=240,
        description="Months of history loaded for the 'all' chart period"
    )
    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Number of transactions shown in recent activity lists"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are stored upper-case."""
        return v.upper()


class ValidationSettings(BaseSettings):
    """Thresholds for transaction sanity checks."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_VALIDATION_",
        extra="ignore"
    )

    max_transaction_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amount above which a transaction is flagged as suspicious"
    )
    future_date_tolerance_days: int = Field(
        default=365,
        ge=0,
        description="How many days in the future a transaction date can be"
    )
    duplicate_tolerance_seconds: int = Field(
        default=300,
        ge=0,
        description="Window within which two similar transactions count as duplicates"
    )


class BudgetSettings(BaseSettings):
    """Budget defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_BUDGET_",
        extra="ignore"
    )

    default_alert_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Fraction of the budget after which an alert is raised"
    )
    include_recurring_by_default: bool = Field(
        default=True,
        description="Count projected recurring expenses towards new budgets"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def validation(self) -> ValidationSettings:
        return ValidationSettings()

    @property
    def budget(self) -> BudgetSettings:
        return BudgetSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failing ones.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "validation", "budget", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
