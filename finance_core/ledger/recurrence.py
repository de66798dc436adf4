"""
Recurrence Engine

Pure functions over a Transaction's recurrence descriptor.

A recurring transaction is ONE row. Its later occurrences are never
stored; they are computed on demand (budgets project them, the UI
lists them). Nothing here mutates the transaction.

Each occurrence is one step after the previous one. Day clamping
carries forward: a monthly series starting on Jan 31 goes Feb 29,
Mar 29, Apr 29 in a leap year.
"""

from datetime import datetime
from typing import Iterator, Optional

from finance_core.models.entities import Transaction


def _occurrences(tx: Transaction) -> Iterator[datetime]:
    """Endless iterator of occurrences strictly after tx.date."""
    step = tx.recurrence_frequency.step
    current = tx.date
    while True:
        current = current + step
        yield current


def next_recurrence_date(tx: Transaction) -> Optional[datetime]:
    """Date of the occurrence right after tx.date, or None if not recurring."""
    if not tx.is_recurring or tx.recurrence_frequency is None:
        return None
    return tx.date + tx.recurrence_frequency.step


def is_recurrence_active(tx: Transaction, today: Optional[datetime] = None) -> bool:
    """A recurrence is active while today has not passed its end date."""
    if not tx.is_recurring:
        return False
    if tx.recurrence_end_date is None:
        return True
    today = today or datetime.now()
    return today <= tx.recurrence_end_date


def generate_recurrence_dates(tx: Transaction, until: datetime) -> list[datetime]:
    """
    Enumerate occurrence dates up to a horizon.

    Returns every occurrence strictly after tx.date and no later than
    min(recurrence_end_date, until). The original date itself is the
    stored row and is not repeated here.

    Example:
        Monthly from Jan 15, until Apr 15 -> [Feb 15, Mar 15, Apr 15]
    """
    if not tx.is_recurring or tx.recurrence_frequency is None:
        return []

    horizon = until
    if tx.recurrence_end_date is not None and tx.recurrence_end_date < horizon:
        horizon = tx.recurrence_end_date

    dates = []
    for occurrence in _occurrences(tx):
        if occurrence > horizon:
            break
        dates.append(occurrence)
    return dates


def project_occurrences(
    tx: Transaction,
    start: datetime,
    end: datetime,
) -> list[datetime]:
    """Occurrences of tx falling inside [start, end]."""
    return [d for d in generate_recurrence_dates(tx, until=end) if d >= start]
