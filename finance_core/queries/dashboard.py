"""
Dashboard Queries

DESIGN DECISION: This module is the ONLY place that wires storage into
the ledger engine. It fetches entities once per call, projects them to
snapshots and hands them to the pure functions in finance_core.ledger.
No balance arithmetic lives here.

Every method takes `now` (and, where relevant, `selected_month`)
explicitly, defaulting to the current time, so results are
reproducible in tests.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from finance_core.config import get_logger, get_settings
from finance_core.ledger import calculator
from finance_core.ledger.dates import add_months, end_of_month, start_of_month, tomorrow_start
from finance_core.ledger.projection import (
    TransactionSnapshot,
    account_balance,
    account_input_of,
    conto_balance,
    conto_input_of,
    snapshots_for_scope,
)
from finance_core.models.chart import AccountBalanceDataPoint, ChartPeriod
from finance_core.models.entities import Account, Conto, Transaction
from finance_core.models.money import ZERO
from finance_core.models.reports import (
    BalanceChart,
    ExpensesTrend,
    MonthlyExpensePoint,
    PeriodSummary,
)
from finance_core.services.storage import LedgerStorageInterface, NotFoundError

logger = get_logger(__name__)


class DashboardQueries:
    """
    Read-side queries for the dashboard.

    A "selection" is a list of book ids; its scope is the set of their
    active conti.
    """

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage
        self._settings = get_settings().ledger

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _accounts(self, account_ids: Iterable[UUID]) -> list[Account]:
        accounts = []
        for account_id in account_ids:
            account = self._storage.get_account(account_id)
            if account is None:
                raise NotFoundError(f"account {account_id} not found")
            accounts.append(account)
        return accounts

    def _conti(self, accounts: list[Account]) -> list[Conto]:
        conti = []
        for account in accounts:
            conti.extend(self._storage.list_conti(account_id=account.id, active_only=True))
        return conti

    def _snapshots(self, conto_ids: set[UUID]) -> list[TransactionSnapshot]:
        if not conto_ids:
            return []
        return snapshots_for_scope(self._storage.list_transactions(conto_ids=conto_ids), conto_ids)

    def _load(
        self,
        account_ids: Iterable[UUID],
    ) -> tuple[list[Account], list[Conto], set[UUID], list[TransactionSnapshot]]:
        accounts = self._accounts(account_ids)
        conti = self._conti(accounts)
        scope = {c.id for c in conti}
        return accounts, conti, scope, self._snapshots(scope)

    def _months(self, period: ChartPeriod) -> int:
        return period.months_count or self._settings.default_history_months

    # -------------------------------------------------------------------------
    # Periods
    # -------------------------------------------------------------------------

    def period_bounds(
        self,
        period: ChartPeriod,
        selected_month: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> tuple[datetime, datetime]:
        """
        (start, end) of the chart window.

        One month: the selected month, from midnight of its first day to
        the last instant of its last day.
        Longer periods: from the first day of the month `months - 1`
        before the current one, up to now.
        """
        now = now or datetime.now()
        if period is ChartPeriod.ONE_MONTH:
            month = start_of_month(selected_month or now)
            return month, tomorrow_start(end_of_month(month)) - timedelta(microseconds=1)
        start = add_months(start_of_month(now), -(self._months(period) - 1))
        return start, now

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def conto_balance(self, conto_id: UUID) -> Decimal:
        """
        Current balance of one conto.

        Raises:
            NotFoundError: If the conto doesn't exist
        """
        conto = self._storage.get_conto(conto_id)
        if conto is None:
            raise NotFoundError(f"conto {conto_id} not found")
        return conto_balance(conto, self._snapshots({conto.id}))

    def account_balance(self, account_id: UUID) -> Decimal:
        """Current balance of one book: the sum over all of its conti."""
        if self._storage.get_account(account_id) is None:
            raise NotFoundError(f"account {account_id} not found")
        conti = self._storage.list_conti(account_id=account_id)
        return account_balance(conti, self._snapshots({c.id for c in conti}))

    def period_summary(
        self,
        account_ids: Iterable[UUID],
        period: ChartPeriod,
        selected_month: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> PeriodSummary:
        """
        Header figures: balance now, balance at the period start, the
        change between them, and income/expenses of the current month.
        """
        now = now or datetime.now()
        _, conti, scope, snapshots = self._load(account_ids)

        current = account_balance(conti, snapshots)
        start, end = self.period_bounds(period, selected_month, now)
        start_balance = calculator.period_start_balance(current, snapshots, scope, start, now)

        month = start_of_month(now)
        totals = calculator.monthly_totals(snapshots, scope, month, add_months(month, 1))

        summary = PeriodSummary(
            period_start=start,
            period_end=end,
            current_balance=current,
            start_balance=start_balance,
            absolute_change=calculator.absolute_change(current, start_balance),
            percentage_change=calculator.percentage_change(current, start_balance),
            income=totals.income,
            expenses=totals.expenses,
        )
        logger.debug(
            "period_summary_loaded",
            period=period.value,
            conti=len(scope),
            transactions=len(snapshots),
        )
        return summary

    # -------------------------------------------------------------------------
    # Charts
    # -------------------------------------------------------------------------

    def balance_chart(
        self,
        account_ids: Iterable[UUID],
        period: ChartPeriod,
        selected_month: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> BalanceChart:
        """Single aggregate line over the selection, split at today."""
        now = now or datetime.now()
        selected_month = selected_month or now
        _, conti, scope, snapshots = self._load(account_ids)

        start, end = self.period_bounds(period, selected_month, now)
        initial = sum((c.initial_balance for c in conti), ZERO)
        history = calculator.balance_history(snapshots, scope, initial, start, end)
        split = calculator.split_balance_history(history, now, period, selected_month)

        return BalanceChart(
            period_start=start,
            period_end=end,
            history=history,
            split=split,
            y_domain=calculator.chart_y_domain(split.past + split.future),
        )

    def accounts_history(
        self,
        account_ids: Iterable[UUID],
        period: ChartPeriod,
        now: Optional[datetime] = None,
    ) -> list[AccountBalanceDataPoint]:
        """One monthly line per book."""
        now = now or datetime.now()
        accounts, conti, _, snapshots = self._load(account_ids)
        inputs = [
            account_input_of(account, conti, color_index=index)
            for index, account in enumerate(accounts)
        ]
        return calculator.multi_account_balance_history(
            inputs, snapshots, self._months(period), now,
        )

    def conti_history(
        self,
        account_ids: Iterable[UUID],
        period: ChartPeriod,
        now: Optional[datetime] = None,
    ) -> list[AccountBalanceDataPoint]:
        """One monthly line per active conto; idle conti are left out."""
        now = now or datetime.now()
        _, conti, _, snapshots = self._load(account_ids)
        inputs = [conto_input_of(conto, color_index=index) for index, conto in enumerate(conti)]
        return calculator.multi_conto_balance_history(
            inputs, snapshots, self._months(period), now,
        )

    def conti_month_changes(
        self,
        account_ids: Iterable[UUID],
        now: Optional[datetime] = None,
    ) -> dict[UUID, Decimal]:
        """Net change of each conto over the current calendar month."""
        now = now or datetime.now()
        _, _, scope, snapshots = self._load(account_ids)
        month = start_of_month(now)
        return calculator.conti_changes(snapshots, scope, month, add_months(month, 1))

    def monthly_expenses_trend(
        self,
        account_ids: Iterable[UUID],
        period: ChartPeriod,
        now: Optional[datetime] = None,
    ) -> ExpensesTrend:
        """
        Income and expenses per month over the period, oldest first.

        Averages are over completed months (the current month is left
        out); with a single month they are 0.
        """
        now = now or datetime.now()
        _, _, scope, snapshots = self._load(account_ids)
        months = self._months(period)

        points = []
        for i in reversed(range(months)):
            month = start_of_month(add_months(now, -i))
            totals = calculator.monthly_totals(snapshots, scope, month, add_months(month, 1))
            points.append(MonthlyExpensePoint(
                month=month,
                income=totals.income,
                expenses=totals.expenses,
            ))

        completed = points[:-1]
        if not completed:
            return ExpensesTrend(points=points)

        return ExpensesTrend(
            points=points,
            average_income=sum((p.income for p in completed), ZERO) / len(completed),
            average_expenses=sum((p.expenses for p in completed), ZERO) / len(completed),
        )

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def recent_transactions(
        self,
        account_ids: Iterable[UUID],
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """Most recent transactions touching the selection, newest first."""
        limit = limit or self._settings.recent_transactions_limit
        scope = {c.id for c in self._conti(self._accounts(account_ids))}
        if not scope:
            return []
        transactions = self._storage.list_transactions(conto_ids=scope)
        return list(reversed(transactions))[:limit]
