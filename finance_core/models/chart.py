"""
Chart and history value types.

Everything the ledger engine returns. All of them are immutable:
a history is computed, handed to the caller and never edited in place.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from finance_core.models.money import ZERO


class ChartPeriod(str, Enum):
    """Dashboard period selector. Values are the labels shown in the UI."""
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1A"
    ALL = "Tutto"

    @property
    def months_count(self) -> Optional[int]:
        """Length of the period in months; None means all history."""
        return {
            ChartPeriod.ONE_MONTH: 1,
            ChartPeriod.THREE_MONTHS: 3,
            ChartPeriod.SIX_MONTHS: 6,
            ChartPeriod.ONE_YEAR: 12,
            ChartPeriod.ALL: None,
        }[self]


class BalanceDataPoint(BaseModel):
    """One point of a balance series."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    balance: Decimal


class AccountBalanceDataPoint(BaseModel):
    """A point of a per-account (or per-conto) series in a multi-line chart."""

    model_config = ConfigDict(frozen=True)

    account_id: UUID = Field(
        ...,
        description="Book or conto the point belongs to"
    )
    account_name: str
    date: datetime
    balance: Decimal
    color_index: int = Field(
        default=0,
        description="Caller-assigned palette slot, passed through untouched"
    )


class BalanceSplit(BaseModel):
    """A balance series cut at today: solid past line and dashed future line."""

    model_config = ConfigDict(frozen=True)

    past: list[BalanceDataPoint] = Field(default_factory=list)
    future: list[BalanceDataPoint] = Field(default_factory=list)


class YDomain(BaseModel):
    """Vertical axis range for a chart."""

    model_config = ConfigDict(frozen=True)

    lower: Decimal
    upper: Decimal


class MonthlyTotals(BaseModel):
    """Income and expenses over a range. Transfers are never included."""

    model_config = ConfigDict(frozen=True)

    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses
