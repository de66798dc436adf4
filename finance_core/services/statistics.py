"""
Statistics Service

Per-book statistics and the 50/30/20 spending analysis, computed on
demand from the transaction log.
Results are never persisted: recomputing is cheap and never stale.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from finance_core.config import get_logger
from finance_core.ledger.projection import account_balance, snapshots_for_scope
from finance_core.models.entities import Transaction, TransactionType
from finance_core.models.money import ZERO
from finance_core.models.reports import (
    AccountStatisticsResult,
    AnalysisPeriod,
    CategoryAmount,
    CategoryAnalysis,
    FinancialAnalysis,
    Rule502010Analysis,
    StatisticsPeriod,
)
from finance_core.services.storage import LedgerStorageInterface, NotFoundError

logger = get_logger(__name__)

TOP_CATEGORIES = 5

# 50/30/20 buckets by expense category name
NECESSITIES_CATEGORIES = frozenset({"Casa", "Utenze", "Alimentari", "Trasporti", "Salute"})
WANTS_CATEGORIES = frozenset({"Intrattenimento", "Abbigliamento", "Regali", "Altro"})


class StatisticsService:
    """Account statistics over a storage backend."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    def account_statistics(
        self,
        account_id: UUID,
        period: StatisticsPeriod,
    ) -> AccountStatisticsResult:
        """
        Compute statistics for one book over one period.

        Transactions are those touching any of the book's conti inside
        the period's [start, end) range. The total balance is the
        book's current balance, not a period figure.

        Raises:
            NotFoundError: If the book doesn't exist
        """
        account = self._storage.get_account(account_id)
        if account is None:
            raise NotFoundError(f"account {account_id} not found")

        conti = self._storage.list_conti(account_id=account_id)
        conto_ids = {c.id for c in conti}

        everything = self._storage.list_transactions(conto_ids=conto_ids) if conto_ids else []
        total_balance = account_balance(conti, snapshots_for_scope(everything, conto_ids))

        start, end = period.date_range()
        transactions = [
            tx for tx in everything
            if (start is None or tx.date >= start) and (end is None or tx.date < end)
        ]

        income = [tx for tx in transactions if tx.type is TransactionType.INCOME]
        expenses = [tx for tx in transactions if tx.type is TransactionType.EXPENSE]
        transfers = [tx for tx in transactions if tx.type is TransactionType.TRANSFER]

        result = AccountStatisticsResult(
            account_id=account_id,
            period=period,
            total_balance=total_balance,
            total_income=sum((tx.amount for tx in income), ZERO),
            total_expenses=sum((tx.amount for tx in expenses), ZERO),
            transaction_count=len(transactions),
            income_transaction_count=len(income),
            expense_transaction_count=len(expenses),
            transfer_transaction_count=len(transfers),
            top_expense_categories=self._top_categories(expenses),
            top_income_categories=self._top_categories(income),
            last_transaction_date=max((tx.date for tx in transactions), default=None),
        )

        logger.info(
            "account_statistics_calculated",
            account_id=str(account_id),
            period=period.display_name,
            transaction_count=result.transaction_count,
        )
        return result

    def _top_categories(self, transactions: list[Transaction]) -> list[CategoryAmount]:
        """Largest categories by total amount, uncategorized rows skipped."""
        totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for tx in transactions:
            if tx.category_id is not None:
                totals[tx.category_id] += tx.amount

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        top = []
        for category_id, amount in ranked[:TOP_CATEGORIES]:
            category = self._storage.get_category(category_id)
            top.append(CategoryAmount(
                id=category_id,
                name=category.name if category else "Sconosciuta",
                amount=amount,
                color=category.color if category else None,
            ))
        return top

    def all_account_statistics(
        self,
        period: StatisticsPeriod,
    ) -> list[AccountStatisticsResult]:
        """Statistics for every active book."""
        return [
            self.account_statistics(account.id, period)
            for account in self._storage.list_accounts(active_only=True)
        ]

    def financial_analysis(
        self,
        account_id: UUID,
        period: AnalysisPeriod,
        now: Optional[datetime] = None,
    ) -> FinancialAnalysis:
        """
        Spending breakdown and 50/30/20 check for one book.

        Income counts when it lands in one of the book's conti, an
        expense when it leaves one. Savings are income minus expenses
        and go negative when the book overspent. Expense categories are
        ranked by amount; uncategorized expenses count towards the total
        but get no row. Necessities and wants are matched by category
        name.

        Raises:
            NotFoundError: If the book doesn't exist
        """
        account = self._storage.get_account(account_id)
        if account is None:
            raise NotFoundError(f"account {account_id} not found")

        start, end = period.date_range(now)
        conto_ids = {c.id for c in self._storage.list_conti(account_id=account_id)}
        transactions = (
            self._storage.list_transactions(conto_ids=conto_ids, date_from=start, date_to=end)
            if conto_ids else []
        )
        # date_to is inclusive
        transactions = [tx for tx in transactions if tx.date < end]

        income = [
            tx for tx in transactions
            if tx.type is TransactionType.INCOME and tx.to_conto_id in conto_ids
        ]
        expenses = [
            tx for tx in transactions
            if tx.type is TransactionType.EXPENSE and tx.from_conto_id in conto_ids
        ]
        total_income = sum((tx.amount for tx in income), ZERO)
        total_expenses = sum((tx.amount for tx in expenses), ZERO)
        total_savings = total_income - total_expenses

        categories = self._category_analysis(expenses, total_expenses)
        necessities = sum((c.amount for c in categories if c.name in NECESSITIES_CATEGORIES), ZERO)
        wants = sum((c.amount for c in categories if c.name in WANTS_CATEGORIES), ZERO)

        analysis = FinancialAnalysis(
            period=period,
            period_start=start,
            period_end=end,
            total_income=total_income,
            total_expenses=total_expenses,
            total_savings=total_savings,
            categories=categories,
            rule_502010=Rule502010Analysis(
                necessities=necessities,
                wants=wants,
                savings=total_savings,
                total_income=total_income,
            ),
        )

        logger.info(
            "financial_analysis_calculated",
            account_id=str(account_id),
            period=period.value,
            categories=len(categories),
            savings_rate=round(analysis.savings_rate, 2),
        )
        return analysis

    def _category_analysis(
        self,
        expenses: list[Transaction],
        total_expenses: Decimal,
    ) -> list[CategoryAnalysis]:
        grouped: dict[UUID, list[Transaction]] = defaultdict(list)
        for tx in expenses:
            if tx.category_id is not None:
                grouped[tx.category_id].append(tx)

        rows = []
        for category_id, transactions in grouped.items():
            category = self._storage.get_category(category_id)
            amount = sum((tx.amount for tx in transactions), ZERO)
            rows.append(CategoryAnalysis(
                id=category_id,
                name=category.name if category else "Sconosciuta",
                color=category.color if category else None,
                amount=amount,
                percentage=float(amount / total_expenses * 100) if total_expenses > 0 else 0.0,
                transaction_count=len(transactions),
            ))
        return sorted(rows, key=lambda row: row.amount, reverse=True)
