"""
Budget Service

Computes how much of a budget has been spent. Spending is always
derived from the transaction log, never stored on the budget.

A budget counts:
- expense transactions in one of its categories dated inside the window
- when include_recurring_transactions is on, the projected occurrences
  of active recurring expenses in those categories that fall inside
  the window (the stored row itself is already counted above)
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from finance_core.config import get_logger
from finance_core.ledger.recurrence import is_recurrence_active, project_occurrences
from finance_core.models.entities import Budget, TransactionType
from finance_core.models.money import ZERO
from finance_core.models.reports import BudgetStatus
from finance_core.services.storage import LedgerStorageInterface

logger = get_logger(__name__)


class BudgetService:
    """Budget spending calculations over a storage backend."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    def calculate_spent(
        self,
        budget: Budget,
        start: datetime,
        end: datetime,
        today: Optional[datetime] = None,
    ) -> Decimal:
        """
        Total spent for the budget's categories in [start, end].

        Args:
            budget: The budget to calculate for
            start: Window start (inclusive)
            end: Window end (inclusive)
            today: Reference moment for recurrence activity; defaults to now

        Returns:
            Spent amount; 0 for a budget with no categories
        """
        if not budget.category_ids:
            return ZERO

        spent = sum(
            (tx.amount for tx in self._storage.list_transactions(
                date_from=start,
                date_to=end,
                category_ids=budget.category_ids,
                types=[TransactionType.EXPENSE],
            )),
            ZERO,
        )

        if budget.include_recurring_transactions:
            spent += self._recurring_spent(budget, start, end, today or datetime.now())

        return spent

    def _recurring_spent(
        self,
        budget: Budget,
        start: datetime,
        end: datetime,
        today: datetime,
    ) -> Decimal:
        recurring = self._storage.list_transactions(
            category_ids=budget.category_ids,
            types=[TransactionType.EXPENSE],
            recurring_only=True,
        )
        total = ZERO
        for tx in recurring:
            if not is_recurrence_active(tx, today):
                continue
            occurrences = project_occurrences(tx, start, end)
            total += tx.amount * len(occurrences)
        return total

    def current_spent(self, budget: Budget, now: Optional[datetime] = None) -> Decimal:
        now = now or datetime.now()
        start, end = budget.current_period_range(now)
        return self.calculate_spent(budget, start, end, today=now)

    def previous_period_spent(self, budget: Budget, now: Optional[datetime] = None) -> Decimal:
        now = now or datetime.now()
        start, end = budget.previous_period_range(now)
        return self.calculate_spent(budget, start, end, today=now)

    def status(self, budget: Budget, now: Optional[datetime] = None) -> BudgetStatus:
        """
        Summarize where the budget stands at `now`.

        days_remaining counts calendar days from today to the period
        end; period_progress is the elapsed fraction of the period.
        """
        now = now or datetime.now()
        start, end = budget.current_period_range(now)

        spent = self.calculate_spent(budget, start, end, today=now)
        previous = self.previous_period_spent(budget, now)

        days_remaining = max((end.date() - now.date()).days, 0)
        total_seconds = (end - start).total_seconds()
        elapsed = (now - start).total_seconds()
        progress = min(max(elapsed / total_seconds, 0.0), 1.0) if total_seconds > 0 else 0.0

        result = BudgetStatus(
            budget_id=budget.id,
            period_start=start,
            period_end=end,
            amount=budget.amount,
            spent=spent,
            previous_period_spent=previous,
            alert_threshold=budget.alert_threshold,
            days_remaining=days_remaining,
            period_progress=progress,
        )

        if result.should_alert:
            logger.warning(
                "budget_threshold_reached",
                budget_id=str(budget.id),
                budget_name=budget.name,
                spent=str(spent),
                amount=str(budget.amount),
                spent_percentage=round(result.spent_percentage, 1),
            )
        return result

    def statuses_for_account(
        self,
        account_id: UUID,
        now: Optional[datetime] = None,
    ) -> list[BudgetStatus]:
        """Status of every active budget of a book."""
        return [
            self.status(budget, now)
            for budget in self._storage.list_budgets(account_id=account_id, active_only=True)
        ]
