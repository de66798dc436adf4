"""
Shared fixtures.

Test strategy:
1. Unit tests for the pure ledger engine (no storage at all)
2. Service and query tests over InMemoryLedgerStorage
3. No real persistence, no network
"""

import os
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_core.config import get_settings
from finance_core.ledger.projection import TransactionSnapshot
from finance_core.models.entities import (
    Account,
    Category,
    Conto,
    ContoType,
    Transaction,
    TransactionType,
)
from finance_core.services.storage import InMemoryLedgerStorage


def make_snapshot(amount, type, date, from_conto_id=None, to_conto_id=None) -> TransactionSnapshot:
    """Build a snapshot with less ceremony."""
    return TransactionSnapshot(
        id=uuid4(),
        amount=Decimal(str(amount)),
        type=TransactionType(type),
        date=date,
        from_conto_id=from_conto_id,
        to_conto_id=to_conto_id,
    )


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from default settings."""
    for key in list(os.environ):
        if key.startswith("FINANCE_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 15, 12, 0)


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def book(storage) -> Account:
    account = Account(name="Famiglia")
    storage.save_account(account)
    return account


@pytest.fixture
def checking(storage, book) -> Conto:
    conto = Conto(
        account_id=book.id,
        name="Conto Corrente",
        type=ContoType.CHECKING,
        initial_balance=Decimal("1000"),
        created_at=datetime(2024, 1, 1),
    )
    storage.save_conto(conto)
    return conto


@pytest.fixture
def savings(storage, book) -> Conto:
    conto = Conto(
        account_id=book.id,
        name="Risparmi",
        type=ContoType.SAVINGS,
        initial_balance=Decimal("500"),
        created_at=datetime(2024, 1, 2),
    )
    storage.save_conto(conto)
    return conto


@pytest.fixture
def groceries(storage, book) -> Category:
    category = Category(account_id=book.id, name="Alimentari", color="#F44336")
    storage.save_category(category)
    return category


@pytest.fixture
def salary_category(storage, book) -> Category:
    category = Category(account_id=book.id, name="Stipendio", color="#4CAF50")
    storage.save_category(category)
    return category


@pytest.fixture
def add_tx(storage):
    """Save a transaction and return it."""
    def _add(amount, type, date, from_conto=None, to_conto=None, **kwargs) -> Transaction:
        tx = Transaction(
            amount=Decimal(str(amount)),
            type=TransactionType(type),
            date=date,
            from_conto_id=from_conto.id if from_conto else None,
            to_conto_id=to_conto.id if to_conto else None,
            **kwargs,
        )
        storage.save_transaction(tx)
        return tx
    return _add


@pytest.fixture
def snap():
    return make_snapshot
