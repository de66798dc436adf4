"""
Ledger Engine Package

Pure, synchronous computation over the transaction log:
- projection: entities -> immutable snapshots and inputs
- recurrence: next / projected occurrence dates
- calculator: balances, deltas and chart series

Nothing in this package performs I/O or logs.
"""

from finance_core.ledger.calculator import (
    absolute_change,
    balance_history,
    chart_y_domain,
    conti_changes,
    monthly_totals,
    multi_account_balance_history,
    multi_conto_balance_history,
    net_change,
    percentage_change,
    period_start_balance,
    split_balance_history,
    total_balance,
)
from finance_core.ledger.projection import (
    AccountInput,
    ContoInput,
    TransactionSnapshot,
    account_balance,
    account_input_of,
    conto_balance,
    conto_input_of,
    snapshot_of,
    snapshots_for_scope,
)
from finance_core.ledger.recurrence import (
    generate_recurrence_dates,
    is_recurrence_active,
    next_recurrence_date,
    project_occurrences,
)

__all__ = [
    # Calculator
    "absolute_change",
    "balance_history",
    "chart_y_domain",
    "conti_changes",
    "monthly_totals",
    "multi_account_balance_history",
    "multi_conto_balance_history",
    "net_change",
    "percentage_change",
    "period_start_balance",
    "split_balance_history",
    "total_balance",
    # Projection
    "AccountInput",
    "ContoInput",
    "TransactionSnapshot",
    "account_balance",
    "account_input_of",
    "conto_balance",
    "conto_input_of",
    "snapshot_of",
    "snapshots_for_scope",
    # Recurrence
    "generate_recurrence_dates",
    "is_recurrence_active",
    "next_recurrence_date",
    "project_occurrences",
]
