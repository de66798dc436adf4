"""
Data Models Package

This package contains all Pydantic models used by Finance Core.
All data flowing through the system must conform to these schemas.
"""

from finance_core.models.money import (
    ZERO,
    MoneyLike,
    format_compact_currency,
    quantize_money,
    to_money,
)
from finance_core.models.entities import (
    DEFAULT_CATEGORIES,
    Account,
    Budget,
    BudgetPeriod,
    Category,
    Conto,
    ContoType,
    RecurrenceFrequency,
    SavingsGoal,
    SavingsGoalCategory,
    SavingsGoalStatus,
    Transaction,
    TransactionType,
    TransferLink,
    create_linked_transfer,
    default_categories,
)
from finance_core.models.chart import (
    AccountBalanceDataPoint,
    BalanceDataPoint,
    BalanceSplit,
    ChartPeriod,
    MonthlyTotals,
    YDomain,
)
from finance_core.models.reports import (
    AccountStatisticsResult,
    AnalysisPeriod,
    BalanceChart,
    BudgetStatus,
    CategoryAmount,
    CategoryAnalysis,
    ExpensesTrend,
    FinancialAnalysis,
    MonthlyExpensePoint,
    PeriodSummary,
    Rule502010Analysis,
    RuleStatus,
    StatisticsPeriod,
    StatisticsPeriodKind,
    TrendDirection,
)
from finance_core.models.validation import (
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Money
    "ZERO",
    "MoneyLike",
    "format_compact_currency",
    "quantize_money",
    "to_money",
    # Entities
    "DEFAULT_CATEGORIES",
    "Account",
    "Budget",
    "BudgetPeriod",
    "Category",
    "Conto",
    "ContoType",
    "RecurrenceFrequency",
    "SavingsGoal",
    "SavingsGoalCategory",
    "SavingsGoalStatus",
    "Transaction",
    "TransactionType",
    "TransferLink",
    "create_linked_transfer",
    "default_categories",
    # Chart types
    "AccountBalanceDataPoint",
    "BalanceDataPoint",
    "BalanceSplit",
    "ChartPeriod",
    "MonthlyTotals",
    "YDomain",
    # Reports
    "AccountStatisticsResult",
    "AnalysisPeriod",
    "BalanceChart",
    "BudgetStatus",
    "CategoryAmount",
    "CategoryAnalysis",
    "ExpensesTrend",
    "FinancialAnalysis",
    "MonthlyExpensePoint",
    "PeriodSummary",
    "Rule502010Analysis",
    "RuleStatus",
    "StatisticsPeriod",
    "StatisticsPeriodKind",
    "TrendDirection",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
