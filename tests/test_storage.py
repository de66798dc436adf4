"""
Tests for the in-memory storage collaborator.

Focus on what other layers rely on: copy semantics, error taxonomy,
filters and ownership cascades.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from finance_core.models.entities import (
    Account,
    Budget,
    Category,
    Conto,
    SavingsGoal,
    Transaction,
    TransactionType,
    TransferLink,
    create_linked_transfer,
)
from finance_core.services.storage import DuplicateError, NotFoundError, StorageError


class TestErrors:
    """Error taxonomy."""

    def test_hierarchy(self):
        """Both specific errors are StorageErrors."""
        assert issubclass(NotFoundError, StorageError)
        assert issubclass(DuplicateError, StorageError)

    def test_duplicate_save(self, storage, book):
        """Saving the same id twice raises DuplicateError."""
        with pytest.raises(DuplicateError):
            storage.save_account(book)

    def test_update_unknown(self, storage):
        """Updating something never saved raises NotFoundError."""
        with pytest.raises(NotFoundError):
            storage.update_conto(Conto(name="Fantasma"))

    def test_delete_unknown(self, storage):
        """Deleting an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            storage.delete_transaction(Transaction(amount=Decimal("1"), type="income").id)

    def test_get_unknown_is_none(self, storage):
        """Lookups of unknown ids return None."""
        assert storage.get_account(Account(name="X").id) is None


class TestCopySemantics:
    """Stored state only changes through save/update/delete."""

    def test_mutating_returned_entity(self, storage, checking):
        """Editing a fetched conto does not edit the stored one."""
        fetched = storage.get_conto(checking.id)
        fetched.name = "Cambiato"
        assert storage.get_conto(checking.id).name == "Conto Corrente"

    def test_update_persists(self, storage, checking):
        """update_conto writes the change."""
        fetched = storage.get_conto(checking.id)
        fetched.name = "Cambiato"
        storage.update_conto(fetched)
        assert storage.get_conto(checking.id).name == "Cambiato"


class TestListing:
    """List filters and ordering."""

    def test_list_conti_filters(self, storage, book, checking, savings):
        """By book and by active flag, ordered by creation."""
        other = Account(name="Lavoro")
        storage.save_account(other)
        storage.save_conto(Conto(account_id=other.id, name="Aziendale"))
        savings.is_active = False
        storage.update_conto(savings)

        assert [c.id for c in storage.list_conti(account_id=book.id)] == [checking.id, savings.id]
        assert [c.id for c in storage.list_conti(account_id=book.id, active_only=True)] == [checking.id]
        assert len(storage.list_conti()) == 3

    def test_categories_sorted_by_name(self, storage, book, groceries, salary_category):
        """Categories come back alphabetically, case-insensitively."""
        storage.save_category(Category(account_id=book.id, name="affitto"))
        names = [c.name for c in storage.list_categories(account_id=book.id)]
        assert names == ["affitto", "Alimentari", "Stipendio"]

    def test_transactions_by_scope_and_date(self, storage, checking, savings, add_tx):
        """Scope matches either leg; date bounds are inclusive; results are date-ordered."""
        late = add_tx(10, "income", datetime(2024, 3, 10), to_conto=checking)
        early = add_tx(20, "expense", datetime(2024, 3, 1), from_conto=checking)
        add_tx(30, "income", datetime(2024, 3, 5), to_conto=savings)
        moved = add_tx(5, "transfer", datetime(2024, 3, 20), from_conto=savings, to_conto=checking)

        found = storage.list_transactions(conto_ids={checking.id})
        assert [t.id for t in found] == [early.id, late.id, moved.id]

        bounded = storage.list_transactions(
            conto_ids={checking.id},
            date_from=datetime(2024, 3, 1),
            date_to=datetime(2024, 3, 10),
        )
        assert [t.id for t in bounded] == [early.id, late.id]

    def test_transactions_by_type_category_recurrence(self, storage, checking, groceries, add_tx):
        """Type, category and recurring filters combine."""
        match = add_tx(
            40, "expense", datetime(2024, 3, 1), from_conto=checking,
            category_id=groceries.id, is_recurring=True, recurrence_frequency="monthly",
        )
        add_tx(40, "expense", datetime(2024, 3, 2), from_conto=checking, category_id=groceries.id)
        add_tx(40, "income", datetime(2024, 3, 3), to_conto=checking, category_id=groceries.id)

        found = storage.list_transactions(
            category_ids={groceries.id},
            types={TransactionType.EXPENSE},
            recurring_only=True,
        )
        assert [t.id for t in found] == [match.id]


class TestTransferLinks:
    """Links between the two rows of a split transfer."""

    def test_save_and_list(self, storage, checking, savings):
        """Each row lists the link it owns."""
        outgoing, incoming, links = create_linked_transfer(
            Decimal("100"), checking.id, savings.id, date=datetime(2024, 3, 1),
        )
        storage.save_transaction(outgoing)
        storage.save_transaction(incoming)
        for link in links:
            storage.save_transfer_link(link)

        owned = storage.list_transfer_links(outgoing.id)
        assert [l.linked_transaction_id for l in owned] == [incoming.id]

    def test_link_requires_both_rows(self, storage, checking, add_tx):
        """A link to a missing transaction is refused."""
        tx = add_tx(1, "transfer", datetime(2024, 3, 1), from_conto=checking)
        dangling = Transaction(amount=Decimal("1"), type="transfer")
        with pytest.raises(NotFoundError):
            storage.save_transfer_link(
                TransferLink(transaction_id=tx.id, linked_transaction_id=dangling.id)
            )

    def test_deleting_a_row_removes_links_both_ways(self, storage, checking, savings):
        """No link survives pointing at a deleted row."""
        outgoing, incoming, links = create_linked_transfer(Decimal("100"), checking.id, savings.id)
        storage.save_transaction(outgoing)
        storage.save_transaction(incoming)
        for link in links:
            storage.save_transfer_link(link)

        storage.delete_transaction(outgoing.id)

        assert storage.list_transfer_links(incoming.id) == []
        assert storage.list_transfer_links(outgoing.id) == []


class TestCascades:
    """Ownership cascades on delete."""

    def test_delete_conto_removes_single_leg_transactions(self, storage, checking, add_tx):
        """Transactions whose only leg was the conto go with it."""
        tx = add_tx(10, "expense", datetime(2024, 3, 1), from_conto=checking)
        storage.delete_conto(checking.id)
        assert storage.get_transaction(tx.id) is None

    def test_delete_conto_detaches_transfers(self, storage, checking, savings, add_tx):
        """A transfer to another conto survives with the deleted leg cleared."""
        tx = add_tx(10, "transfer", datetime(2024, 3, 1), from_conto=checking, to_conto=savings)
        storage.delete_conto(checking.id)

        kept = storage.get_transaction(tx.id)
        assert kept.from_conto_id is None
        assert kept.to_conto_id == savings.id

    def test_delete_conto_removes_income_with_ignored_source(self, storage, checking, savings,
                                                             add_tx):
        """An income landing in the conto goes with it even when a source is set."""
        tx = add_tx(10, "income", datetime(2024, 3, 1), from_conto=savings, to_conto=checking)
        storage.delete_conto(checking.id)
        assert storage.get_transaction(tx.id) is None

    def test_delete_conto_removes_expense_with_ignored_target(self, storage, checking, savings,
                                                              add_tx):
        """An expense leaving the conto goes with it even when a target is set."""
        tx = add_tx(10, "expense", datetime(2024, 3, 1), from_conto=checking, to_conto=savings)
        storage.delete_conto(checking.id)
        assert storage.get_transaction(tx.id) is None

    def test_delete_conto_clears_ignored_leg(self, storage, checking, savings, add_tx):
        """An income into another conto only loses its ignored source."""
        tx = add_tx(10, "income", datetime(2024, 3, 1), from_conto=checking, to_conto=savings)
        storage.delete_conto(checking.id)

        kept = storage.get_transaction(tx.id)
        assert kept.from_conto_id is None
        assert kept.to_conto_id == savings.id

    def test_delete_category_nullifies_references(self, storage, book, checking, groceries, add_tx):
        """Transactions lose the category, budgets drop it, children are re-rooted."""
        tx = add_tx(10, "expense", datetime(2024, 3, 1), from_conto=checking,
                    category_id=groceries.id)
        budget = Budget(account_id=book.id, name="Spesa", amount=Decimal("400"),
                        category_ids=[groceries.id])
        storage.save_budget(budget)
        child = Category(account_id=book.id, name="Frutta", parent_category_id=groceries.id)
        storage.save_category(child)

        storage.delete_category(groceries.id)

        assert storage.get_transaction(tx.id).category_id is None
        assert storage.get_budget(budget.id).category_ids == []
        assert storage.get_category(child.id).parent_category_id is None

    def test_delete_account_removes_everything_owned(
        self, storage, book, checking, savings, groceries, add_tx,
    ):
        """Conti, categories, budgets, goals and their transactions all go."""
        tx = add_tx(10, "income", datetime(2024, 3, 1), to_conto=checking)
        internal = add_tx(5, "transfer", datetime(2024, 3, 2), from_conto=checking, to_conto=savings)
        budget = Budget(account_id=book.id, name="Spesa", amount=Decimal("400"))
        goal = SavingsGoal(account_id=book.id, name="Vacanza", target_amount=Decimal("1000"))
        storage.save_budget(budget)
        storage.save_savings_goal(goal)

        storage.delete_account(book.id)

        assert storage.get_account(book.id) is None
        assert storage.list_conti(account_id=book.id) == []
        assert storage.list_categories(account_id=book.id) == []
        assert storage.get_budget(budget.id) is None
        assert storage.get_savings_goal(goal.id) is None
        assert storage.get_transaction(tx.id) is None
        assert storage.get_transaction(internal.id) is None

    def test_delete_account_leaves_other_books(self, storage, book, checking):
        """Other books are untouched."""
        other = Account(name="Lavoro")
        storage.save_account(other)
        conto = Conto(account_id=other.id, name="Aziendale")
        storage.save_conto(conto)

        storage.delete_account(book.id)

        assert storage.get_conto(conto.id) is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
