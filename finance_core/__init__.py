"""
Finance Core - Source Package

A personal finance ledger: books ("libri") group wallets ("conti"),
transactions move money in, out and between them, and every balance
is derived from the transaction log plus a stored initial balance.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. The ledger engine is pure: immutable snapshots in, new values out
3. Recurrence is projected, never materialized
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Core Team"
