"""
Data Integrity Service

Duplicate detection for imports and manual entry.

IMPORTANT: Nothing here deletes or merges. Callers get the candidates
and decide (usually by asking the user).
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from finance_core.config import get_logger, get_settings
from finance_core.models.entities import (
    Account,
    Category,
    Conto,
    ContoType,
    Transaction,
    TransactionType,
)
from finance_core.services.storage import LedgerStorageInterface

logger = get_logger(__name__)


def _same_name(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").casefold() == (b or "").casefold()


def _default_tolerance() -> timedelta:
    return timedelta(seconds=get_settings().validation.duplicate_tolerance_seconds)


def is_duplicate_transaction(
    tx: Transaction,
    other: Transaction,
    tolerance: Optional[timedelta] = None,
) -> bool:
    """
    Two transactions look like the same movement.

    Same amount and type, dates within tolerance, and at least one
    leg set on both that points at the same conto.
    """
    tolerance = tolerance if tolerance is not None else _default_tolerance()
    if tx.amount != other.amount or tx.type is not other.type:
        return False
    if abs(tx.date - other.date) > tolerance:
        return False
    same_source = tx.from_conto_id is not None and tx.from_conto_id == other.from_conto_id
    same_target = tx.to_conto_id is not None and tx.to_conto_id == other.to_conto_id
    return same_source or same_target


def accounts_equivalent(account: Account, other: Account) -> bool:
    """Same name (case-insensitive) and same currency."""
    return _same_name(account.name, other.name) and account.currency == other.currency


def conti_equivalent(conto: Conto, other: Conto) -> bool:
    """Same name (case-insensitive), same type, same owning book."""
    return (
        _same_name(conto.name, other.name)
        and conto.type is other.type
        and conto.account_id == other.account_id
    )


class DataIntegrityService:
    """Storage-backed duplicate lookups."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    def find_duplicate_transactions(
        self,
        amount: Decimal,
        date: datetime,
        type: TransactionType,
        conto_id: Optional[UUID] = None,
        tolerance: Optional[timedelta] = None,
        exclude_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Stored transactions matching amount and type within tolerance of date.

        Args:
            amount: Amount to match exactly
            date: Reference moment
            type: Transaction type to match
            conto_id: When given, only transactions with a leg on this conto
            tolerance: Time window on each side; defaults to the configured one
            exclude_id: Transaction to leave out (the one being checked)

        Returns:
            Matching transactions ordered by date
        """
        tolerance = tolerance if tolerance is not None else _default_tolerance()
        candidates = self._storage.list_transactions(
            conto_ids=[conto_id] if conto_id is not None else None,
            date_from=date - tolerance,
            date_to=date + tolerance,
            types=[type],
        )
        matches = [
            tx for tx in candidates
            if tx.amount == amount and tx.id != exclude_id
        ]
        if matches:
            logger.info(
                "duplicate_transactions_found",
                amount=str(amount),
                date=date.isoformat(),
                count=len(matches),
            )
        return matches

    def find_duplicates_of(
        self,
        tx: Transaction,
        tolerance: Optional[timedelta] = None,
    ) -> list[Transaction]:
        """Stored transactions that look like the same movement as tx."""
        tolerance = tolerance if tolerance is not None else _default_tolerance()
        candidates = self._storage.list_transactions(
            date_from=tx.date - tolerance,
            date_to=tx.date + tolerance,
            types=[tx.type],
        )
        return [
            other for other in candidates
            if other.id != tx.id and is_duplicate_transaction(tx, other, tolerance)
        ]

    def find_duplicate_accounts(self, name: str, currency: str) -> list[Account]:
        return [
            account for account in self._storage.list_accounts()
            if _same_name(account.name, name) and account.currency == currency.upper()
        ]

    def find_duplicate_conti(
        self,
        name: str,
        type: ContoType,
        account_id: UUID,
    ) -> list[Conto]:
        return [
            conto for conto in self._storage.list_conti(account_id=account_id)
            if _same_name(conto.name, name) and conto.type is type
        ]

    def find_duplicate_categories(self, name: str, account_id: UUID) -> list[Category]:
        return [
            category for category in self._storage.list_categories(account_id=account_id)
            if _same_name(category.name, name)
        ]
