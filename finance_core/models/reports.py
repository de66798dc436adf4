"""
Computed report models.

Statistics and budget status are derived on demand from the
transaction log. They are never persisted.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, model_validator

from finance_core.models.chart import BalanceDataPoint, BalanceSplit, YDomain
from finance_core.models.money import ZERO


# =============================================================================
# STATISTICS
# =============================================================================

class StatisticsPeriodKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ALL_TIME = "all_time"


class StatisticsPeriod(BaseModel):
    """
    A statistics window.

    Build through the classmethods rather than the constructor:
    StatisticsPeriod.monthly(2024, 3), StatisticsPeriod.all_time().
    Weeks are ISO weeks.
    """

    model_config = ConfigDict(frozen=True)

    kind: StatisticsPeriodKind
    day: Optional[date] = None
    year: Optional[int] = None
    week: Optional[int] = Field(default=None, ge=1, le=53)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @model_validator(mode="after")
    def check_components(self) -> "StatisticsPeriod":
        required = {
            StatisticsPeriodKind.DAILY: ("day",),
            StatisticsPeriodKind.WEEKLY: ("year", "week"),
            StatisticsPeriodKind.MONTHLY: ("year", "month"),
            StatisticsPeriodKind.YEARLY: ("year",),
            StatisticsPeriodKind.ALL_TIME: (),
        }[self.kind]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.kind.value} period requires {', '.join(missing)}")
        return self

    @classmethod
    def daily(cls, day: date) -> "StatisticsPeriod":
        if isinstance(day, datetime):
            day = day.date()
        return cls(kind=StatisticsPeriodKind.DAILY, day=day)

    @classmethod
    def weekly(cls, year: int, week: int) -> "StatisticsPeriod":
        return cls(kind=StatisticsPeriodKind.WEEKLY, year=year, week=week)

    @classmethod
    def monthly(cls, year: int, month: int) -> "StatisticsPeriod":
        return cls(kind=StatisticsPeriodKind.MONTHLY, year=year, month=month)

    @classmethod
    def yearly(cls, year: int) -> "StatisticsPeriod":
        return cls(kind=StatisticsPeriodKind.YEARLY, year=year)

    @classmethod
    def all_time(cls) -> "StatisticsPeriod":
        return cls(kind=StatisticsPeriodKind.ALL_TIME)

    @classmethod
    def current_month(cls, now: Optional[datetime] = None) -> "StatisticsPeriod":
        now = now or datetime.now()
        return cls.monthly(now.year, now.month)

    @classmethod
    def current_year(cls, now: Optional[datetime] = None) -> "StatisticsPeriod":
        now = now or datetime.now()
        return cls.yearly(now.year)

    def date_range(self) -> tuple[Optional[datetime], Optional[datetime]]:
        """Half-open [start, end) range; (None, None) for all time."""
        if self.kind is StatisticsPeriodKind.DAILY:
            start = datetime.combine(self.day, time.min)
            return start, start + timedelta(days=1)
        if self.kind is StatisticsPeriodKind.WEEKLY:
            start = datetime.combine(date.fromisocalendar(self.year, self.week, 1), time.min)
            return start, start + timedelta(weeks=1)
        if self.kind is StatisticsPeriodKind.MONTHLY:
            start = datetime(self.year, self.month, 1)
            return start, start + relativedelta(months=1)
        if self.kind is StatisticsPeriodKind.YEARLY:
            start = datetime(self.year, 1, 1)
            return start, start + relativedelta(years=1)
        return None, None

    @property
    def display_name(self) -> str:
        if self.kind is StatisticsPeriodKind.DAILY:
            return self.day.isoformat()
        if self.kind is StatisticsPeriodKind.WEEKLY:
            return f"Settimana {self.week}, {self.year}"
        if self.kind is StatisticsPeriodKind.MONTHLY:
            return f"{self.month:02d}/{self.year}"
        if self.kind is StatisticsPeriodKind.YEARLY:
            return str(self.year)
        return "Tutti i periodi"


class CategoryAmount(BaseModel):
    """A category with its total for a statistics breakdown."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    amount: Decimal
    color: Optional[str] = None


class AccountStatisticsResult(BaseModel):
    """Statistics for one book over one period."""

    account_id: UUID
    period: StatisticsPeriod

    total_balance: Decimal = Field(
        ...,
        description="Current balance of the book (not limited to the period)"
    )
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO

    transaction_count: int = 0
    income_transaction_count: int = 0
    expense_transaction_count: int = 0
    transfer_transaction_count: int = 0

    top_expense_categories: list[CategoryAmount] = Field(default_factory=list)
    top_income_categories: list[CategoryAmount] = Field(default_factory=list)

    last_transaction_date: Optional[datetime] = None
    calculated_at: datetime = Field(default_factory=datetime.now)

    @property
    def net_income(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def savings_rate(self) -> float:
        """Share of income kept, in percent. 0 when there was no income."""
        if self.total_income <= 0:
            return 0.0
        return float(self.net_income / self.total_income * 100)


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetStatus(BaseModel):
    """Where a budget stands in its current period."""

    budget_id: UUID
    period_start: datetime
    period_end: datetime

    amount: Decimal
    spent: Decimal
    previous_period_spent: Decimal = ZERO

    alert_threshold: float
    days_remaining: int = Field(..., ge=0)
    period_progress: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Elapsed fraction of the period"
    )

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent

    @property
    def spent_percentage(self) -> float:
        if self.amount <= 0:
            return 0.0
        return float(self.spent / self.amount * 100)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.amount

    @property
    def should_alert(self) -> bool:
        return self.spent_percentage >= self.alert_threshold * 100

    @property
    def daily_suggested_spending(self) -> Decimal:
        """What can still be spent per remaining day without going over."""
        if self.days_remaining <= 0:
            return ZERO
        return max(self.remaining, ZERO) / self.days_remaining

    @property
    def projected_spending(self) -> Decimal:
        """Spending extrapolated to the end of the period at the current pace."""
        if self.period_progress <= 0:
            return self.spent
        return self.spent / Decimal(str(self.period_progress))

    @property
    def change_from_previous_period(self) -> float:
        """Change in spending versus the previous period, in percent."""
        if self.previous_period_spent <= 0:
            return 0.0
        return float(
            (self.spent - self.previous_period_spent) / self.previous_period_spent * 100
        )


# =============================================================================
# DASHBOARD
# =============================================================================

class PeriodSummary(BaseModel):
    """Header figures of the dashboard for the selected books and period."""

    period_start: datetime
    period_end: datetime
    current_balance: Decimal
    start_balance: Decimal
    absolute_change: Decimal
    percentage_change: float
    income: Decimal
    expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class BalanceChart(BaseModel):
    """Everything the single-line balance chart renders."""

    period_start: datetime
    period_end: datetime
    history: list[BalanceDataPoint] = Field(default_factory=list)
    split: BalanceSplit = Field(default_factory=BalanceSplit)
    y_domain: YDomain


class MonthlyExpensePoint(BaseModel):
    """Expenses of one calendar month."""

    model_config = ConfigDict(frozen=True)

    month: datetime = Field(
        ...,
        description="First day of the month"
    )
    income: Decimal = ZERO
    expenses: Decimal = ZERO


class ExpensesTrend(BaseModel):
    """
    Monthly expenses over a period, oldest first.

    Averages cover completed months only; the current month is excluded.
    """

    points: list[MonthlyExpensePoint] = Field(default_factory=list)
    average_income: Decimal = ZERO
    average_expenses: Decimal = ZERO


# =============================================================================
# FINANCIAL ANALYSIS
# =============================================================================

class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"

    @property
    def icon(self) -> str:
        return {
            TrendDirection.UP: "arrow.up",
            TrendDirection.DOWN: "arrow.down",
            TrendDirection.STABLE: "minus",
        }[self]

    @property
    def display_name(self) -> str:
        return {
            TrendDirection.UP: "In crescita",
            TrendDirection.DOWN: "In diminuzione",
            TrendDirection.STABLE: "Stabile",
        }[self]


class AnalysisPeriod(str, Enum):
    """A window relative to now: this week, month, quarter or year."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def display_name(self) -> str:
        return {
            AnalysisPeriod.WEEK: "Questa Settimana",
            AnalysisPeriod.MONTH: "Questo Mese",
            AnalysisPeriod.QUARTER: "Questo Trimestre",
            AnalysisPeriod.YEAR: "Quest'Anno",
        }[self]

    def date_range(self, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
        """Half-open [start, end) range containing now. Weeks start on Monday."""
        now = now or datetime.now()
        today = datetime.combine(now.date(), time.min)
        if self is AnalysisPeriod.WEEK:
            start = today - timedelta(days=today.weekday())
            return start, start + timedelta(weeks=1)
        if self is AnalysisPeriod.MONTH:
            start = today.replace(day=1)
            return start, start + relativedelta(months=1)
        if self is AnalysisPeriod.QUARTER:
            start = today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)
            return start, start + relativedelta(months=3)
        start = today.replace(month=1, day=1)
        return start, start + relativedelta(years=1)


class RuleStatus(str, Enum):
    """How one 50/30/20 bucket compares with its target."""

    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_BUDGET = "over_budget"

    @property
    def color(self) -> str:
        return {
            RuleStatus.ON_TRACK: "#34C759",
            RuleStatus.WARNING: "#FF9500",
            RuleStatus.OVER_BUDGET: "#FF3B30",
        }[self]

    @property
    def display_name(self) -> str:
        return {
            RuleStatus.ON_TRACK: "In linea",
            RuleStatus.WARNING: "Attenzione",
            RuleStatus.OVER_BUDGET: "Fuori budget",
        }[self]


def _share(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


class Rule502010Analysis(BaseModel):
    """
    The 50/30/20 rule applied to a period's income.

    Targets: 50% on necessities, 30% on wants, 20% saved. Each bucket
    gets a ten-point grace band before it is over budget; for savings the
    band is below the target.
    """

    model_config = ConfigDict(frozen=True)

    necessities: Decimal = ZERO
    wants: Decimal = ZERO
    savings: Decimal = ZERO
    total_income: Decimal = ZERO

    @property
    def necessities_percentage(self) -> float:
        return _share(self.necessities, self.total_income)

    @property
    def wants_percentage(self) -> float:
        return _share(self.wants, self.total_income)

    @property
    def savings_percentage(self) -> float:
        return _share(self.savings, self.total_income)

    @property
    def ideal_necessities(self) -> Decimal:
        return self.total_income * Decimal("0.5")

    @property
    def ideal_wants(self) -> Decimal:
        return self.total_income * Decimal("0.3")

    @property
    def ideal_savings(self) -> Decimal:
        return self.total_income * Decimal("0.2")

    @property
    def necessities_status(self) -> RuleStatus:
        percentage = self.necessities_percentage
        if percentage <= 50:
            return RuleStatus.ON_TRACK
        if percentage <= 60:
            return RuleStatus.WARNING
        return RuleStatus.OVER_BUDGET

    @property
    def wants_status(self) -> RuleStatus:
        percentage = self.wants_percentage
        if percentage <= 30:
            return RuleStatus.ON_TRACK
        if percentage <= 40:
            return RuleStatus.WARNING
        return RuleStatus.OVER_BUDGET

    @property
    def savings_status(self) -> RuleStatus:
        percentage = self.savings_percentage
        if percentage >= 20:
            return RuleStatus.ON_TRACK
        if percentage >= 10:
            return RuleStatus.WARNING
        return RuleStatus.OVER_BUDGET


class CategoryAnalysis(BaseModel):
    """One expense category's share of the period's spending."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    color: Optional[str] = None
    amount: Decimal
    percentage: float = Field(
        ...,
        ge=0.0,
        description="Share of total expenses, in percent"
    )
    transaction_count: int = Field(..., ge=0)
    trend: TrendDirection = TrendDirection.STABLE


class FinancialAnalysis(BaseModel):
    """Income, spending by category and the 50/30/20 check for one period."""

    period: AnalysisPeriod
    period_start: datetime
    period_end: datetime
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_savings: Decimal = ZERO
    categories: list[CategoryAnalysis] = Field(default_factory=list)
    rule_502010: Rule502010Analysis = Field(default_factory=Rule502010Analysis)

    @property
    def net_income(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def savings_rate(self) -> float:
        """Savings as a share of income, in percent. 0 when there was no income."""
        return _share(self.total_savings, self.total_income)
