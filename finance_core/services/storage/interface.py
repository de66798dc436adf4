"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Plug the ledger into any persistence layer (SQL, documents, files)
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the services and dashboard queries need.

Ownership cascades (deleting a book deletes its conti, etc.) are part
of the contract: every implementation must enforce them.

The interface is synchronous: the ledger engine it feeds is synchronous
and CPU-bound, and callers hand it already-fetched collections.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from finance_core.models.entities import (
    Account,
    Budget,
    Category,
    Conto,
    SavingsGoal,
    Transaction,
    TransactionType,
    TransferLink,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    save_* inserts and raises DuplicateError for a known id;
    update_* replaces and raises NotFoundError for an unknown id;
    delete_* raises NotFoundError for an unknown id.
    """

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_account(self, account: Account) -> bool:
        """
        Save a new book.

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If a book with the same id exists
        """
        pass

    @abstractmethod
    def update_account(self, account: Account) -> bool:
        pass

    @abstractmethod
    def get_account(self, account_id: UUID) -> Optional[Account]:
        pass

    @abstractmethod
    def delete_account(self, account_id: UUID) -> bool:
        """
        Delete a book and everything it owns.

        Cascades to its conti (and through them their transactions),
        categories, budgets and savings goals.
        """
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        pass

    # -------------------------------------------------------------------------
    # Conti
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_conto(self, conto: Conto) -> bool:
        pass

    @abstractmethod
    def update_conto(self, conto: Conto) -> bool:
        pass

    @abstractmethod
    def get_conto(self, conto_id: UUID) -> Optional[Conto]:
        pass

    @abstractmethod
    def delete_conto(self, conto_id: UUID) -> bool:
        """
        Delete a conto.

        Income landing in it and expenses leaving it are deleted with it.
        A leg the transaction type ignores is cleared instead. Transfers
        survive with this leg cleared while their other leg exists.
        """
        pass

    @abstractmethod
    def list_conti(
        self,
        account_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[Conto]:
        pass

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_category(self, category: Category) -> bool:
        pass

    @abstractmethod
    def update_category(self, category: Category) -> bool:
        pass

    @abstractmethod
    def get_category(self, category_id: UUID) -> Optional[Category]:
        pass

    @abstractmethod
    def delete_category(self, category_id: UUID) -> bool:
        """
        Delete a category.

        Transactions keep existing with category_id cleared; budgets
        stop tracking it; subcategories become top-level.
        """
        pass

    @abstractmethod
    def list_categories(self, account_id: Optional[UUID] = None) -> list[Category]:
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> bool:
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> bool:
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: UUID) -> bool:
        """Delete a transaction and every transfer link that references it."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        conto_ids: Optional[Iterable[UUID]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        category_ids: Optional[Iterable[UUID]] = None,
        types: Optional[Iterable[TransactionType]] = None,
        recurring_only: bool = False,
    ) -> list[Transaction]:
        """
        List transactions with optional filters, ordered by date.

        Args:
            conto_ids: Keep transactions with either leg in this set
            date_from: Keep transactions on or after this moment
            date_to: Keep transactions on or before this moment
            category_ids: Keep transactions in one of these categories
            types: Keep transactions of one of these types
            recurring_only: Keep only recurring transactions

        Returns:
            Matching transactions, oldest first
        """
        pass

    # -------------------------------------------------------------------------
    # Transfer links
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_transfer_link(self, link: TransferLink) -> bool:
        pass

    @abstractmethod
    def list_transfer_links(self, transaction_id: UUID) -> list[TransferLink]:
        """Links owned by the given transaction."""
        pass

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_budget(self, budget: Budget) -> bool:
        pass

    @abstractmethod
    def update_budget(self, budget: Budget) -> bool:
        pass

    @abstractmethod
    def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    def delete_budget(self, budget_id: UUID) -> bool:
        pass

    @abstractmethod
    def list_budgets(
        self,
        account_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[Budget]:
        pass

    # -------------------------------------------------------------------------
    # Savings goals
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_savings_goal(self, goal: SavingsGoal) -> bool:
        pass

    @abstractmethod
    def update_savings_goal(self, goal: SavingsGoal) -> bool:
        pass

    @abstractmethod
    def get_savings_goal(self, goal_id: UUID) -> Optional[SavingsGoal]:
        pass

    @abstractmethod
    def delete_savings_goal(self, goal_id: UUID) -> bool:
        pass

    @abstractmethod
    def list_savings_goals(self, account_id: Optional[UUID] = None) -> list[SavingsGoal]:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
