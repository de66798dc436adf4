"""
In-Memory Storage Implementation

Dictionary-backed storage used by the tests and by embedders that
load a ledger from elsewhere and only need it in process.

Entities are copied on the way in and on the way out, so mutating a
returned model never changes stored state without an update_* call.
This mirrors what a serializing backend does.
"""

from datetime import datetime
from typing import Iterable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from finance_core.config import get_logger
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
from finance_core.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """In-process implementation of the ledger storage interface."""

    def __init__(self):
        self._accounts: dict[UUID, Account] = {}
        self._conti: dict[UUID, Conto] = {}
        self._categories: dict[UUID, Category] = {}
        self._transactions: dict[UUID, Transaction] = {}
        self._links: dict[UUID, TransferLink] = {}
        self._budgets: dict[UUID, Budget] = {}
        self._goals: dict[UUID, SavingsGoal] = {}

    # -------------------------------------------------------------------------
    # Generic table helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _insert(table: dict[UUID, M], entity: M, kind: str) -> bool:
        if entity.id in table:
            raise DuplicateError(f"{kind} {entity.id} already exists")
        table[entity.id] = entity.model_copy(deep=True)
        logger.debug(f"{kind}_saved", entity_id=str(entity.id))
        return True

    @staticmethod
    def _replace(table: dict[UUID, M], entity: M, kind: str) -> bool:
        if entity.id not in table:
            raise NotFoundError(f"{kind} {entity.id} not found")
        table[entity.id] = entity.model_copy(deep=True)
        logger.debug(f"{kind}_updated", entity_id=str(entity.id))
        return True

    @staticmethod
    def _get(table: dict[UUID, M], entity_id: UUID) -> Optional[M]:
        entity = table.get(entity_id)
        return entity.model_copy(deep=True) if entity is not None else None

    @staticmethod
    def _remove(table: dict[UUID, M], entity_id: UUID, kind: str) -> M:
        try:
            entity = table.pop(entity_id)
        except KeyError:
            raise NotFoundError(f"{kind} {entity_id} not found")
        logger.debug(f"{kind}_deleted", entity_id=str(entity_id))
        return entity

    @staticmethod
    def _copies(entities: Iterable[M]) -> list[M]:
        return [e.model_copy(deep=True) for e in entities]

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------

    def save_account(self, account: Account) -> bool:
        return self._insert(self._accounts, account, "account")

    def update_account(self, account: Account) -> bool:
        return self._replace(self._accounts, account, "account")

    def get_account(self, account_id: UUID) -> Optional[Account]:
        return self._get(self._accounts, account_id)

    def delete_account(self, account_id: UUID) -> bool:
        self._remove(self._accounts, account_id, "account")

        conto_ids = [c.id for c in self._conti.values() if c.account_id == account_id]
        for conto_id in conto_ids:
            self.delete_conto(conto_id)

        category_ids = [c.id for c in self._categories.values() if c.account_id == account_id]
        for category_id in category_ids:
            self.delete_category(category_id)

        for table in (self._budgets, self._goals):
            for entity_id in [e.id for e in table.values() if e.account_id == account_id]:
                del table[entity_id]

        logger.info(
            "account_deleted",
            account_id=str(account_id),
            conti_deleted=len(conto_ids),
            categories_deleted=len(category_ids),
        )
        return True

    def list_accounts(self, active_only: bool = False) -> list[Account]:
        accounts = [a for a in self._accounts.values() if a.is_active or not active_only]
        return self._copies(sorted(accounts, key=lambda a: a.created_at))

    # -------------------------------------------------------------------------
    # Conti
    # -------------------------------------------------------------------------

    def save_conto(self, conto: Conto) -> bool:
        return self._insert(self._conti, conto, "conto")

    def update_conto(self, conto: Conto) -> bool:
        return self._replace(self._conti, conto, "conto")

    def get_conto(self, conto_id: UUID) -> Optional[Conto]:
        return self._get(self._conti, conto_id)

    def delete_conto(self, conto_id: UUID) -> bool:
        self._remove(self._conti, conto_id, "conto")

        orphaned = []
        detached = 0
        for tx in list(self._transactions.values()):
            if tx.from_conto_id != conto_id and tx.to_conto_id != conto_id:
                continue
            # Only the leg the type counts decides; ignored legs are just cleared.
            if tx.type is TransactionType.INCOME:
                orphan = tx.to_conto_id == conto_id
            elif tx.type is TransactionType.EXPENSE:
                orphan = tx.from_conto_id == conto_id
            else:
                other = tx.to_conto_id if tx.from_conto_id == conto_id else tx.from_conto_id
                orphan = other is None or other == conto_id
            if orphan:
                orphaned.append(tx.id)
                continue
            if tx.from_conto_id == conto_id:
                tx.from_conto_id = None
            if tx.to_conto_id == conto_id:
                tx.to_conto_id = None
            detached += 1

        for tx_id in orphaned:
            self.delete_transaction(tx_id)

        logger.info(
            "conto_deleted",
            conto_id=str(conto_id),
            transactions_deleted=len(orphaned),
            transactions_detached=detached,
        )
        return True

    def list_conti(
        self,
        account_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[Conto]:
        conti = [
            c for c in self._conti.values()
            if (account_id is None or c.account_id == account_id)
            and (c.is_active or not active_only)
        ]
        return self._copies(sorted(conti, key=lambda c: c.created_at))

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def save_category(self, category: Category) -> bool:
        return self._insert(self._categories, category, "category")

    def update_category(self, category: Category) -> bool:
        return self._replace(self._categories, category, "category")

    def get_category(self, category_id: UUID) -> Optional[Category]:
        return self._get(self._categories, category_id)

    def delete_category(self, category_id: UUID) -> bool:
        self._remove(self._categories, category_id, "category")

        for tx in self._transactions.values():
            if tx.category_id == category_id:
                tx.category_id = None
        for budget in self._budgets.values():
            budget.remove_category(category_id)
        for category in self._categories.values():
            if category.parent_category_id == category_id:
                category.parent_category_id = None
        return True

    def list_categories(self, account_id: Optional[UUID] = None) -> list[Category]:
        categories = [
            c for c in self._categories.values()
            if account_id is None or c.account_id == account_id
        ]
        return self._copies(sorted(categories, key=lambda c: c.name.lower()))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def save_transaction(self, transaction: Transaction) -> bool:
        return self._insert(self._transactions, transaction, "transaction")

    def update_transaction(self, transaction: Transaction) -> bool:
        return self._replace(self._transactions, transaction, "transaction")

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._get(self._transactions, transaction_id)

    def delete_transaction(self, transaction_id: UUID) -> bool:
        self._remove(self._transactions, transaction_id, "transaction")
        stale = [
            link.id for link in self._links.values()
            if transaction_id in (link.transaction_id, link.linked_transaction_id)
        ]
        for link_id in stale:
            del self._links[link_id]
        return True

    def list_transactions(
        self,
        conto_ids: Optional[Iterable[UUID]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        category_ids: Optional[Iterable[UUID]] = None,
        types: Optional[Iterable[TransactionType]] = None,
        recurring_only: bool = False,
    ) -> list[Transaction]:
        scope = set(conto_ids) if conto_ids is not None else None
        categories = set(category_ids) if category_ids is not None else None
        kinds = set(types) if types is not None else None

        results = []
        for tx in self._transactions.values():
            if scope is not None and not tx.touches(scope):
                continue
            if date_from and tx.date < date_from:
                continue
            if date_to and tx.date > date_to:
                continue
            if categories is not None and tx.category_id not in categories:
                continue
            if kinds is not None and tx.type not in kinds:
                continue
            if recurring_only and not tx.is_recurring:
                continue
            results.append(tx)

        return self._copies(sorted(results, key=lambda t: t.date))

    # -------------------------------------------------------------------------
    # Transfer links
    # -------------------------------------------------------------------------

    def save_transfer_link(self, link: TransferLink) -> bool:
        for tx_id in (link.transaction_id, link.linked_transaction_id):
            if tx_id not in self._transactions:
                raise NotFoundError(f"transaction {tx_id} not found")
        return self._insert(self._links, link, "transfer_link")

    def list_transfer_links(self, transaction_id: UUID) -> list[TransferLink]:
        return [
            link for link in self._links.values()
            if link.transaction_id == transaction_id
        ]

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def save_budget(self, budget: Budget) -> bool:
        return self._insert(self._budgets, budget, "budget")

    def update_budget(self, budget: Budget) -> bool:
        return self._replace(self._budgets, budget, "budget")

    def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        return self._get(self._budgets, budget_id)

    def delete_budget(self, budget_id: UUID) -> bool:
        self._remove(self._budgets, budget_id, "budget")
        return True

    def list_budgets(
        self,
        account_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[Budget]:
        budgets = [
            b for b in self._budgets.values()
            if (account_id is None or b.account_id == account_id)
            and (b.is_active or not active_only)
        ]
        return self._copies(sorted(budgets, key=lambda b: b.created_at))

    # -------------------------------------------------------------------------
    # Savings goals
    # -------------------------------------------------------------------------

    def save_savings_goal(self, goal: SavingsGoal) -> bool:
        return self._insert(self._goals, goal, "savings_goal")

    def update_savings_goal(self, goal: SavingsGoal) -> bool:
        return self._replace(self._goals, goal, "savings_goal")

    def get_savings_goal(self, goal_id: UUID) -> Optional[SavingsGoal]:
        return self._get(self._goals, goal_id)

    def delete_savings_goal(self, goal_id: UUID) -> bool:
        self._remove(self._goals, goal_id, "savings_goal")
        return True

    def list_savings_goals(self, account_id: Optional[UUID] = None) -> list[SavingsGoal]:
        goals = [
            g for g in self._goals.values()
            if account_id is None or g.account_id == account_id
        ]
        return self._copies(sorted(goals, key=lambda g: g.created_at))
