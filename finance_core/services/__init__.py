"""
Services Package

Storage-backed services around the ledger engine.
"""

from finance_core.services.budget import BudgetService
from finance_core.services.integrity import (
    DataIntegrityService,
    accounts_equivalent,
    conti_equivalent,
    is_duplicate_transaction,
)
from finance_core.services.statistics import StatisticsService

__all__ = [
    "BudgetService",
    "DataIntegrityService",
    "StatisticsService",
    "accounts_equivalent",
    "conti_equivalent",
    "is_duplicate_transaction",
]
