"""
Tests for duplicate detection.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_core.models.entities import Account, Conto, ContoType, Transaction, TransactionType
from finance_core.services import (
    DataIntegrityService,
    accounts_equivalent,
    conti_equivalent,
    is_duplicate_transaction,
)


@pytest.fixture
def service(storage) -> DataIntegrityService:
    return DataIntegrityService(storage)


def expense(amount, date, from_conto_id=None, to_conto_id=None) -> Transaction:
    return Transaction(
        amount=Decimal(str(amount)),
        type=TransactionType.EXPENSE,
        date=date,
        from_conto_id=from_conto_id,
        to_conto_id=to_conto_id,
    )


class TestIsDuplicateTransaction:
    """Pairwise comparison."""

    def test_same_movement(self):
        """Same amount, type and source within the window."""
        conto = uuid4()
        a = expense(10, datetime(2024, 6, 1, 12, 0), from_conto_id=conto)
        b = expense(10, datetime(2024, 6, 1, 12, 3), from_conto_id=conto)
        assert is_duplicate_transaction(a, b)

    def test_outside_window(self):
        """Beyond the default five minutes they are different."""
        conto = uuid4()
        a = expense(10, datetime(2024, 6, 1, 12, 0), from_conto_id=conto)
        b = expense(10, datetime(2024, 6, 1, 12, 6), from_conto_id=conto)
        assert not is_duplicate_transaction(a, b)
        assert is_duplicate_transaction(a, b, tolerance=timedelta(minutes=10))

    def test_different_amount(self):
        """Amounts must match exactly."""
        conto = uuid4()
        a = expense(10, datetime(2024, 6, 1), from_conto_id=conto)
        b = expense("10.01", datetime(2024, 6, 1), from_conto_id=conto)
        assert not is_duplicate_transaction(a, b)

    def test_unset_legs_do_not_match(self):
        """Two rows with no legs at all are not duplicates of each other."""
        a = expense(10, datetime(2024, 6, 1))
        b = expense(10, datetime(2024, 6, 1))
        assert not is_duplicate_transaction(a, b)

    def test_different_conto(self):
        """Different source conti are different movements."""
        a = expense(10, datetime(2024, 6, 1), from_conto_id=uuid4())
        b = expense(10, datetime(2024, 6, 1), from_conto_id=uuid4())
        assert not is_duplicate_transaction(a, b)


class TestEquivalence:
    """Name-based equivalence of books and conti."""

    def test_accounts(self):
        """Case-insensitive name, same currency."""
        assert accounts_equivalent(Account(name="Famiglia"), Account(name="FAMIGLIA"))
        assert not accounts_equivalent(Account(name="Famiglia"), Account(name="Famiglia", currency="USD"))

    def test_conti(self):
        """Case-insensitive name, same type, same book."""
        book = uuid4()
        a = Conto(account_id=book, name="Carta", type=ContoType.CREDIT)
        assert conti_equivalent(a, Conto(account_id=book, name="carta", type=ContoType.CREDIT))
        assert not conti_equivalent(a, Conto(account_id=book, name="carta", type=ContoType.CASH))
        assert not conti_equivalent(a, Conto(account_id=uuid4(), name="Carta", type=ContoType.CREDIT))


class TestDataIntegrityService:
    """Storage-backed lookups."""

    def test_find_duplicate_transactions(self, service, checking, savings, add_tx):
        """Matches within tolerance on the given conto, excluding the given id."""
        when = datetime(2024, 6, 1, 12, 0)
        first = add_tx(10, "expense", when, from_conto=checking)
        second = add_tx(10, "expense", when + timedelta(minutes=2), from_conto=checking)
        add_tx(10, "expense", when, from_conto=savings)
        add_tx(10, "expense", when + timedelta(hours=1), from_conto=checking)

        found = service.find_duplicate_transactions(
            Decimal("10"), when, TransactionType.EXPENSE,
            conto_id=checking.id, exclude_id=first.id,
        )

        assert [t.id for t in found] == [second.id]

    def test_find_duplicates_of(self, service, checking, add_tx):
        """The transaction itself is never its own duplicate."""
        when = datetime(2024, 6, 1, 12, 0)
        first = add_tx(10, "expense", when, from_conto=checking)
        second = add_tx(10, "expense", when + timedelta(seconds=30), from_conto=checking)

        assert [t.id for t in service.find_duplicates_of(first)] == [second.id]

    def test_find_duplicate_accounts(self, service, book):
        """Case-insensitive name and currency."""
        assert [a.id for a in service.find_duplicate_accounts("famiglia", "eur")] == [book.id]
        assert service.find_duplicate_accounts("famiglia", "USD") == []

    def test_find_duplicate_conti(self, service, book, checking):
        """Same name and type within the book."""
        found = service.find_duplicate_conti("conto corrente", ContoType.CHECKING, book.id)
        assert [c.id for c in found] == [checking.id]
        assert service.find_duplicate_conti("conto corrente", ContoType.SAVINGS, book.id) == []

    def test_find_duplicate_categories(self, service, book, groceries):
        """Same name within the book."""
        assert [c.id for c in service.find_duplicate_categories("ALIMENTARI", book.id)] == [groceries.id]
        assert service.find_duplicate_categories("Alimentari", uuid4()) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
