"""
Queries Package

Read-side adapters that feed stored data into the ledger engine.
"""

from finance_core.queries.dashboard import DashboardQueries

__all__ = ["DashboardQueries"]
