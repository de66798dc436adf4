"""Configuration package."""

from finance_core.config.logging import configure_logging, get_logger
from finance_core.config.settings import (
    AppSettings,
    BudgetSettings,
    LedgerSettings,
    Settings,
    ValidationSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BudgetSettings",
    "LedgerSettings",
    "Settings",
    "ValidationSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
    "validate_all_settings",
]
