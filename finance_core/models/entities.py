"""
Core Data Models for Finance Core

These models define the entities the ledger is built from:
books (Account), wallets (Conto), categories, transactions, the links
between the two rows of a split transfer, savings goals and budgets.

They are plain pydantic models, independent of any storage technology.
Relationships are held as identifiers (account_id, from_conto_id, ...),
never as object references, so any persistence layer can hydrate them.

DESIGN DECISION: A Conto's balance is NOT a field. It is always derived
from the transaction log (see finance_core.ledger.projection).
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_core.config import get_settings
from finance_core.models.money import ZERO


def _new_external_id() -> str:
    return str(uuid4()).upper()


def _default_currency() -> str:
    return get_settings().ledger.default_currency


def _default_alert_threshold() -> float:
    return get_settings().budget.default_alert_threshold


def _default_include_recurring() -> bool:
    return get_settings().budget.include_recurring_by_default


class EntityModel(BaseModel):
    """Base for mutable entities: assignments are validated like construction."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    def touch(self) -> None:
        """Bump updated_at after a direct field mutation."""
        self.updated_at = datetime.now()


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ContoType(str, Enum):
    """Kinds of wallet a book can hold."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    CASH = "cash"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return {
            ContoType.CHECKING: "Conto Corrente",
            ContoType.SAVINGS: "Conto Risparmio",
            ContoType.CREDIT: "Carta di Credito",
            ContoType.INVESTMENT: "Investimenti",
            ContoType.CASH: "Contanti",
            ContoType.OTHER: "Altro",
        }[self]


class TransactionType(str, Enum):
    """
    The closed set of transaction kinds.

    Direction is carried by the type together with which conto leg is set:
    income -> to_conto, expense -> from_conto, transfer -> both (or one,
    when the other side is outside the ledger).
    """
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    @property
    def display_name(self) -> str:
        return {
            TransactionType.INCOME: "Entrata",
            TransactionType.EXPENSE: "Spesa",
            TransactionType.TRANSFER: "Trasferimento",
        }[self]


class RecurrenceFrequency(str, Enum):
    """How often a recurring transaction repeats."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUALLY = "semiannually"
    YEARLY = "yearly"

    @property
    def step(self) -> relativedelta:
        """Calendar step between two occurrences."""
        return {
            RecurrenceFrequency.DAILY: relativedelta(days=1),
            RecurrenceFrequency.WEEKLY: relativedelta(weeks=1),
            RecurrenceFrequency.BIWEEKLY: relativedelta(weeks=2),
            RecurrenceFrequency.MONTHLY: relativedelta(months=1),
            RecurrenceFrequency.QUARTERLY: relativedelta(months=3),
            RecurrenceFrequency.SEMIANNUALLY: relativedelta(months=6),
            RecurrenceFrequency.YEARLY: relativedelta(years=1),
        }[self]

    @property
    def display_name(self) -> str:
        return {
            RecurrenceFrequency.DAILY: "Giornaliera",
            RecurrenceFrequency.WEEKLY: "Settimanale",
            RecurrenceFrequency.BIWEEKLY: "Ogni 2 settimane",
            RecurrenceFrequency.MONTHLY: "Mensile",
            RecurrenceFrequency.QUARTERLY: "Trimestrale",
            RecurrenceFrequency.SEMIANNUALLY: "Semestrale",
            RecurrenceFrequency.YEARLY: "Annuale",
        }[self]


class SavingsGoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class SavingsGoalCategory(str, Enum):
    EMERGENCY = "emergency"
    VACATION = "vacation"
    HOME = "home"
    CAR = "car"
    EDUCATION = "education"
    RETIREMENT = "retirement"
    OTHER = "other"


class BudgetPeriod(str, Enum):
    """Budget windows. Each maps to a calendar-aligned range."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def step(self) -> relativedelta:
        return {
            BudgetPeriod.WEEKLY: relativedelta(weeks=1),
            BudgetPeriod.MONTHLY: relativedelta(months=1),
            BudgetPeriod.QUARTERLY: relativedelta(months=3),
            BudgetPeriod.YEARLY: relativedelta(years=1),
        }[self]


# =============================================================================
# BOOKS AND CONTI
# =============================================================================

class Account(EntityModel):
    """
    A book ("libro"): the top-level container.

    Owns conti, categories, budgets and savings goals. Deleting a book
    deletes everything it owns (enforced by the storage layer).
    """

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    name: str = Field(..., min_length=1, max_length=200)
    currency: str = Field(
        default_factory=_default_currency,
        min_length=3,
        max_length=3,
        description="ISO currency code; no conversion is ever performed"
    )
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Conto(EntityModel):
    """
    A wallet owned by a book: checking account, card, cash, etc.

    Only the initial balance is stored. The type-specific attributes are
    optional and carry no weight in balance math.
    """

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    account_id: Optional[UUID] = Field(
        default=None,
        description="Owning book"
    )
    name: str = Field(..., min_length=1, max_length=200)
    type: ContoType = ContoType.CHECKING
    initial_balance: Decimal = ZERO
    is_active: bool = True
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # Credit cards
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    statement_closing_day: Optional[int] = Field(default=None, ge=1, le=31)
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31)
    # Savings / investment
    interest_rate: Optional[Decimal] = None
    savings_goal_target: Optional[Decimal] = Field(default=None, ge=0)


class Category(EntityModel):
    """A spending/earning category, optionally nested under a parent."""

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    account_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    color: str = "#007AFF"
    icon: str = "tag"
    parent_category_id: Optional[UUID] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_subcategory(self) -> bool:
        return self.parent_category_id is not None


# (name, color, icon) seeds for a freshly created book
DEFAULT_CATEGORIES: list[tuple[str, str, str]] = [
    # Income
    ("Stipendio", "#4CAF50", "dollarsign.circle"),
    ("Freelance", "#8BC34A", "briefcase"),
    ("Investimenti", "#CDDC39", "chart.line.uptrend.xyaxis"),
    ("Vendite", "#FFC107", "cart"),
    ("Bonus", "#2E7D32", "gift.circle"),
    ("Rimborsi", "#388E3C", "arrow.counterclockwise.circle"),
    # Expense
    ("Alimentari", "#F44336", "cart"),
    ("Trasporti", "#2196F3", "car"),
    ("Casa", "#9C27B0", "house"),
    ("Utenze", "#673AB7", "bolt"),
    ("Salute", "#E91E63", "cross.case"),
    ("Intrattenimento", "#FF5722", "gamecontroller"),
    ("Abbigliamento", "#795548", "tshirt"),
    ("Educazione", "#607D8B", "book"),
    ("Regali", "#FF4081", "gift"),
    ("Ristoranti", "#FF6F00", "fork.knife"),
    ("Viaggi", "#1976D2", "airplane"),
    ("Sport", "#FF9800", "figure.run"),
    ("Tecnologia", "#455A64", "iphone"),
    # Generic
    ("Altro", "#9E9E9E", "questionmark.circle"),
]


def default_categories(account_id: UUID) -> list[Category]:
    """Build the seed categories for a book."""
    return [
        Category(account_id=account_id, name=name, color=color, icon=icon)
        for name, color, icon in DEFAULT_CATEGORIES
    ]


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(EntityModel):
    """
    A single movement of money.

    Amounts are non-negative by convention. Which legs matter depends on
    the type: income only reads to_conto_id, expense only reads
    from_conto_id, transfer reads both. A transfer with one leg unset is
    external on that side.
    """

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    amount: Decimal
    type: TransactionType
    date: datetime = Field(default_factory=datetime.now)
    from_conto_id: Optional[UUID] = None
    to_conto_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    description: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)

    # Recurrence is a descriptor only; occurrences are never stored
    is_recurring: bool = False
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_end_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def transfer(
        cls,
        amount: Decimal,
        from_conto_id: Optional[UUID],
        to_conto_id: Optional[UUID],
        date: Optional[datetime] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "Transaction":
        """Build a transfer as a single row carrying both legs."""
        return cls(
            amount=amount,
            type=TransactionType.TRANSFER,
            date=date or datetime.now(),
            from_conto_id=from_conto_id,
            to_conto_id=to_conto_id,
            description=description,
            notes=notes,
        )

    @property
    def display_amount(self) -> Decimal:
        """Signed amount as shown in a single-conto list."""
        if self.type is TransactionType.EXPENSE:
            return -self.amount
        return self.amount

    def display_amount_for(self, conto_id: UUID) -> Decimal:
        """
        Signed amount from the point of view of one conto.

        For transfers the sign depends on which leg the viewer occupies.
        """
        if self.type is TransactionType.TRANSFER:
            if self.from_conto_id == conto_id and self.to_conto_id != conto_id:
                return -self.amount
            return self.amount
        return self.display_amount

    @property
    def is_transfer(self) -> bool:
        return self.type is TransactionType.TRANSFER

    def is_internal_to(self, conto_ids: set[UUID]) -> bool:
        """True for a transfer whose both legs sit inside conto_ids."""
        return (
            self.is_transfer
            and self.from_conto_id in conto_ids
            and self.to_conto_id in conto_ids
        )

    def touches(self, conto_ids: set[UUID]) -> bool:
        """True when either leg references one of conto_ids."""
        return self.from_conto_id in conto_ids or self.to_conto_id in conto_ids


class TransferLink(BaseModel):
    """
    Back-reference between the two rows of a split transfer.

    Owned by transaction_id (deleted with it); linked_transaction_id is
    a plain identifier, not an ownership relation.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    transaction_id: UUID
    linked_transaction_id: UUID
    created_at: datetime = Field(default_factory=datetime.now)


def create_linked_transfer(
    amount: Decimal,
    from_conto_id: UUID,
    to_conto_id: UUID,
    date: Optional[datetime] = None,
    description: Optional[str] = None,
    notes: Optional[str] = None,
) -> tuple[Transaction, Transaction, list[TransferLink]]:
    """
    Build a transfer as two rows, one per leg, linked to each other.

    The outgoing row only has a source leg and the incoming row only a
    target leg, so each row on its own is an external transfer and the
    pair nets to zero when both conti are in scope.
    """
    when = date or datetime.now()
    outgoing = Transaction(
        amount=amount,
        type=TransactionType.TRANSFER,
        date=when,
        from_conto_id=from_conto_id,
        description=description,
        notes=notes,
    )
    incoming = Transaction(
        amount=amount,
        type=TransactionType.TRANSFER,
        date=when,
        to_conto_id=to_conto_id,
        description=description,
        notes=notes,
    )
    links = [
        TransferLink(transaction_id=outgoing.id, linked_transaction_id=incoming.id),
        TransferLink(transaction_id=incoming.id, linked_transaction_id=outgoing.id),
    ]
    return outgoing, incoming, links


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class SavingsGoal(EntityModel):
    """A target amount the user is saving towards."""

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    account_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., ge=0)
    current_amount: Decimal = ZERO
    target_date: Optional[date] = None
    category: SavingsGoalCategory = SavingsGoalCategory.OTHER
    status: SavingsGoalStatus = SavingsGoalStatus.ACTIVE
    description: Optional[str] = Field(default=None, max_length=1000)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def progress_percentage(self) -> float:
        """Progress in percent, capped at 100. Display only."""
        if self.target_amount <= 0:
            return 0.0
        return float(min(self.current_amount / self.target_amount, Decimal(1)) * 100)

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, ZERO)

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    def days_until_target(self, today: Optional[date] = None) -> Optional[int]:
        if self.target_date is None:
            return None
        today = today or date.today()
        return (self.target_date - today).days

    def add_progress(self, amount: Decimal) -> None:
        """Record a contribution; an active goal that reaches its target completes."""
        self.current_amount = self.current_amount + amount
        self.touch()
        if self.is_completed and self.status is SavingsGoalStatus.ACTIVE:
            self.status = SavingsGoalStatus.COMPLETED


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(EntityModel):
    """
    A spending limit over one or more categories for a recurring window.

    The alert threshold is a fraction (0.8 = alert at 80% spent) and is
    clamped into [0, 1].
    """

    id: UUID = Field(default_factory=uuid4)
    external_id: str = Field(default_factory=_new_external_id)
    account_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    alert_threshold: float = Field(default_factory=_default_alert_threshold)
    include_recurring_transactions: bool = Field(default_factory=_default_include_recurring)
    category_ids: list[UUID] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator('alert_threshold')
    @classmethod
    def clamp_threshold(cls, v: float) -> float:
        return max(0.0, min(1.0, v))

    def add_category(self, category_id: UUID) -> None:
        if category_id not in self.category_ids:
            self.category_ids = [*self.category_ids, category_id]

    def remove_category(self, category_id: UUID) -> None:
        self.category_ids = [cid for cid in self.category_ids if cid != category_id]

    def current_period_range(self, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
        """
        Calendar-aligned window containing now, as (start, end) inclusive.

        Weeks start on Monday; quarters on Jan/Apr/Jul/Oct.
        """
        now = now or datetime.now()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

        if self.period is BudgetPeriod.WEEKLY:
            start = midnight - timedelta(days=midnight.weekday())
        elif self.period is BudgetPeriod.MONTHLY:
            start = midnight.replace(day=1)
        elif self.period is BudgetPeriod.QUARTERLY:
            quarter_month = ((midnight.month - 1) // 3) * 3 + 1
            start = midnight.replace(month=quarter_month, day=1)
        else:
            start = midnight.replace(month=1, day=1)

        end = start + self.period.step - timedelta(microseconds=1)
        return start, end

    def previous_period_range(self, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
        """The window immediately before current_period_range(now)."""
        current_start, _ = self.current_period_range(now)
        start = current_start - self.period.step
        return start, current_start - timedelta(microseconds=1)
