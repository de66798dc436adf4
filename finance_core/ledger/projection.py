"""
Snapshot Projection

Turns persisted entities into the small immutable inputs the ledger
engine consumes. The engine never sees a Transaction, Conto or Account
model: only TransactionSnapshot, AccountInput and ContoInput.

Projection is read-only and does not log.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from finance_core.models.entities import Account, Conto, Transaction, TransactionType
from finance_core.models.money import ZERO


class TransactionSnapshot(BaseModel):
    """Minimal immutable view of a transaction used by all balance math."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    amount: Decimal
    type: TransactionType
    date: datetime
    from_conto_id: Optional[UUID] = None
    to_conto_id: Optional[UUID] = None


class AccountInput(BaseModel):
    """A book reduced to what the multi-series history needs."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    conto_ids: frozenset[UUID] = Field(default_factory=frozenset)
    initial_balance: Decimal = ZERO
    color_index: int = 0


class ContoInput(BaseModel):
    """A conto reduced to what the multi-series history needs."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    initial_balance: Decimal = ZERO
    color_index: int = 0


def snapshot_of(tx: Transaction) -> TransactionSnapshot:
    return TransactionSnapshot(
        id=tx.id,
        amount=tx.amount,
        type=tx.type,
        date=tx.date,
        from_conto_id=tx.from_conto_id,
        to_conto_id=tx.to_conto_id,
    )


def snapshots_for_scope(
    transactions: Iterable[Transaction],
    conto_ids: Iterable[UUID],
) -> list[TransactionSnapshot]:
    """
    Project the transactions that touch the scope, ordered by date.

    A transaction touches the scope when either leg is one of conto_ids,
    regardless of type. Each transaction appears once even if both legs
    match.
    """
    scope = set(conto_ids)
    seen: set[UUID] = set()
    snapshots = []
    for tx in transactions:
        if tx.id in seen or not tx.touches(scope):
            continue
        seen.add(tx.id)
        snapshots.append(snapshot_of(tx))
    snapshots.sort(key=lambda s: s.date)
    return snapshots


def account_input_of(
    account: Account,
    conti: Iterable[Conto],
    color_index: int = 0,
) -> AccountInput:
    """
    Build the AccountInput of a book from its conti.

    Only active conti belonging to the book are members; the initial
    balance is the sum of theirs.
    """
    members = [c for c in conti if c.is_active and c.account_id == account.id]
    return AccountInput(
        id=account.id,
        name=account.name,
        conto_ids=frozenset(c.id for c in members),
        initial_balance=sum((c.initial_balance for c in members), ZERO),
        color_index=color_index,
    )


def conto_input_of(conto: Conto, color_index: int = 0) -> ContoInput:
    return ContoInput(
        id=conto.id,
        name=conto.name,
        initial_balance=conto.initial_balance,
        color_index=color_index,
    )


def conto_balance(
    conto: Union[Conto, ContoInput],
    snapshots: Iterable[TransactionSnapshot],
) -> Decimal:
    """
    Current balance of a conto, derived from the log.

    initial + incoming income/transfer - outgoing expense/transfer.
    A leg only counts when its type matches the direction: an expense
    that names this conto as its target adds nothing.
    """
    balance = conto.initial_balance
    for s in snapshots:
        if s.to_conto_id == conto.id and s.type in (TransactionType.INCOME, TransactionType.TRANSFER):
            balance += s.amount
        if s.from_conto_id == conto.id and s.type in (TransactionType.EXPENSE, TransactionType.TRANSFER):
            balance -= s.amount
    return balance


def account_balance(
    conti: Iterable[Union[Conto, ContoInput]],
    snapshots: Iterable[TransactionSnapshot],
) -> Decimal:
    """Sum of conto_balance over every conto of a book."""
    snapshots = list(snapshots)
    return sum((conto_balance(c, snapshots) for c in conti), ZERO)
