"""
Ledger Engine - Balance Calculator

Pure functions over TransactionSnapshots. A "scope" is a set of conto
ids; every function answers a question about the aggregate of the conti
in scope.

DESIGN DECISION: The engine is TOTAL.
Empty inputs, inverted ranges and conto ids that match nothing all
produce a documented value (0, [], the default domain). Nothing here
raises, logs, mutates its arguments or touches storage.

DESIGN DECISION: Everything reduces to net_change().
Balances, period deltas, monthly series and per-conto changes are all
sums of net_change over some slice of the log, so the reconciliation
property holds by construction:

    end_balance - start_balance == sum(net_change(tx) for tx in between)
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import AbstractSet, Iterable, Sequence
from uuid import UUID

from finance_core.ledger.dates import (
    add_months,
    end_of_month,
    same_day,
    start_of_day,
    start_of_month,
    tomorrow_start,
)
from finance_core.ledger.projection import AccountInput, ContoInput, TransactionSnapshot
from finance_core.models.chart import (
    AccountBalanceDataPoint,
    BalanceDataPoint,
    BalanceSplit,
    ChartPeriod,
    MonthlyTotals,
    YDomain,
)
from finance_core.models.entities import TransactionType
from finance_core.models.money import ZERO

DEFAULT_Y_DOMAIN = YDomain(lower=Decimal("0"), upper=Decimal("100"))
FLAT_Y_PADDING = Decimal("50")
Y_PADDING_RATIO = Decimal("0.1")


# =============================================================================
# SCALARS
# =============================================================================

def net_change(snapshot: TransactionSnapshot, scope: AbstractSet[UUID]) -> Decimal:
    """
    Signed effect of one transaction on the aggregate balance of scope.

    income   -> +amount if the target is in scope
    expense  -> -amount if the source is in scope
    transfer -> -amount leaving scope, +amount entering it, 0 when
                both legs are inside (internal) or both outside
    """
    if snapshot.type is TransactionType.INCOME:
        return snapshot.amount if snapshot.to_conto_id in scope else ZERO

    if snapshot.type is TransactionType.EXPENSE:
        return -snapshot.amount if snapshot.from_conto_id in scope else ZERO

    change = ZERO
    if snapshot.from_conto_id in scope:
        change -= snapshot.amount
    if snapshot.to_conto_id in scope:
        change += snapshot.amount
    return change


def total_balance(balances: Iterable[Decimal]) -> Decimal:
    return sum(balances, ZERO)


def absolute_change(current: Decimal, start: Decimal) -> Decimal:
    return current - start


def percentage_change(current: Decimal, start: Decimal) -> float:
    """
    Relative change in percent, for display only.

    Divides by |start| so going from -100 to +50 reads as +150%, not
    -150%. A zero start yields 0.
    """
    if start == 0:
        return 0.0
    return float((current - start) / abs(start) * 100)


def period_start_balance(
    current_total: Decimal,
    snapshots: Iterable[TransactionSnapshot],
    scope: AbstractSet[UUID],
    period_start: datetime,
    now: datetime,
) -> Decimal:
    """
    Aggregate balance at period_start, walking back from the current total.

    Subtracts the net change of every transaction dated in
    [period_start, now]. Transfers crossing the scope boundary are
    included like any other movement.
    """
    moved = sum(
        (net_change(s, scope) for s in snapshots if period_start <= s.date <= now),
        ZERO,
    )
    return current_total - moved


def monthly_totals(
    snapshots: Iterable[TransactionSnapshot],
    scope: AbstractSet[UUID],
    start: datetime,
    end: datetime,
) -> MonthlyTotals:
    """Income and expenses in [start, end). Transfers are not counted."""
    income = ZERO
    expenses = ZERO
    for s in snapshots:
        if not start <= s.date < end:
            continue
        if s.type is TransactionType.INCOME and s.to_conto_id in scope:
            income += s.amount
        elif s.type is TransactionType.EXPENSE and s.from_conto_id in scope:
            expenses += s.amount
    return MonthlyTotals(income=income, expenses=expenses)


def conti_changes(
    snapshots: Iterable[TransactionSnapshot],
    conto_ids: Iterable[UUID],
    start: datetime,
    end: datetime,
) -> dict[UUID, Decimal]:
    """
    Net change of each conto on its own over [start, end).

    Every requested id is present in the result, with 0 when idle. A
    transfer between two requested conti shows up on both: negative on
    the source, positive on the target.
    """
    in_range = [s for s in snapshots if start <= s.date < end]
    changes = {}
    for conto_id in conto_ids:
        scope = {conto_id}
        changes[conto_id] = sum((net_change(s, scope) for s in in_range), ZERO)
    return changes


# =============================================================================
# SERIES
# =============================================================================

def _month_end_anchors(period_start: datetime, period_end: datetime) -> list[datetime]:
    """Last day of every calendar month spanned, capped at period_end."""
    anchors = []
    month = start_of_month(period_start)
    while month <= period_end:
        anchors.append(min(end_of_month(month), period_end))
        month = add_months(month, 1)
    return anchors


def balance_history(
    snapshots: Iterable[TransactionSnapshot],
    scope: AbstractSet[UUID],
    initial_balance: Decimal,
    period_start: datetime,
    period_end: datetime,
) -> list[BalanceDataPoint]:
    """
    Running balance of scope over [period_start, period_end].

    Points, in date order:
    - one at period_start with the balance carried in from before it
    - one per day with activity, at that day's midnight (or at
      period_start for its own day), after the day's net effect
    - one at the end of each month spanned (capped at period_end) with
      the balance at that moment, unless a point already sits on that
      day

    A period with no activity is the single starting point.
    Returns [] when period_start > period_end.
    """
    if period_start > period_end:
        return []

    ordered = sorted(snapshots, key=lambda s: s.date)

    running = initial_balance
    by_day: dict[datetime, Decimal] = defaultdict(lambda: ZERO)
    for s in ordered:
        if s.date < period_start:
            running += net_change(s, scope)
        elif s.date <= period_end:
            by_day[max(start_of_day(s.date), period_start)] += net_change(s, scope)

    points = [BalanceDataPoint(date=period_start, balance=running)]
    if not by_day:
        return points

    for day in sorted(by_day):
        running += by_day[day]
        points.append(BalanceDataPoint(date=day, balance=running))

    anchors = []
    for anchor in _month_end_anchors(period_start, period_end):
        if any(same_day(p.date, anchor) for p in points):
            continue
        balance = points[0].balance
        for p in points:
            if p.date > anchor:
                break
            balance = p.balance
        anchors.append(BalanceDataPoint(date=anchor, balance=balance))

    return sorted(points + anchors, key=lambda p: p.date)


def split_balance_history(
    history: Sequence[BalanceDataPoint],
    today: datetime,
    period: ChartPeriod,
    selected_month: datetime,
) -> BalanceSplit:
    """
    Cut a history at the end of today into a past and a future segment.

    Only the one-month view projects a future. When it does, the future
    starts with a connector point (today, last past balance) and runs to
    the end of the selected month; with no future activity it is a flat
    line at the last known balance.
    """
    cutoff = tomorrow_start(today)
    past = [p for p in history if p.date < cutoff]

    if period is not ChartPeriod.ONE_MONTH:
        return BalanceSplit(past=past, future=[])

    future = [p for p in history if p.date >= cutoff]
    if not past:
        return BalanceSplit(past=past, future=future)

    today_start = start_of_day(today)
    last_balance = past[-1].balance
    today_point = BalanceDataPoint(date=today_start, balance=last_balance)
    month_end = end_of_month(selected_month)

    if not future:
        if month_end > today_start:
            return BalanceSplit(
                past=past,
                future=[today_point, BalanceDataPoint(date=month_end, balance=last_balance)],
            )
        return BalanceSplit(past=past, future=[])

    future = [today_point, *future]
    if future[-1].date < month_end:
        future.append(BalanceDataPoint(date=month_end, balance=future[-1].balance))
    return BalanceSplit(past=past, future=future)


def _monthly_nets(
    snapshots: Sequence[TransactionSnapshot],
    scope: AbstractSet[UUID],
    months: int,
    now: datetime,
) -> list[tuple[datetime, Decimal, bool]]:
    """
    (month start, net change, had activity) for the current month and
    the months - 1 before it, most recent first.

    The current month is cut at now; earlier months are [start, next start).
    """
    nets = []
    for i in range(months):
        month = start_of_month(add_months(now, -i))
        next_month = add_months(month, 1)
        net = ZERO
        active = False
        for s in snapshots:
            if i == 0:
                in_month = month <= s.date <= now
            else:
                in_month = month <= s.date < next_month
            if not in_month:
                continue
            if s.from_conto_id in scope or s.to_conto_id in scope:
                active = True
            net += net_change(s, scope)
        nets.append((month, net, active))
    return nets


def _backward_series(
    entity_id: UUID,
    name: str,
    color_index: int,
    balance_now: Decimal,
    nets: list[tuple[datetime, Decimal, bool]],
) -> list[AccountBalanceDataPoint]:
    """
    Walk back from balance_now, one point per month, oldest first.

    The point dated at a month's first day carries the balance at the
    close of that month (at now for the current month).
    """
    series = []
    running = balance_now
    for index, (month, _, _) in enumerate(nets):
        if index > 0:
            running -= nets[index - 1][1]
        series.append(AccountBalanceDataPoint(
            account_id=entity_id,
            account_name=name,
            date=month,
            balance=running,
            color_index=color_index,
        ))
    series.reverse()
    return series


def _balance_as_of(
    initial_balance: Decimal,
    snapshots: Iterable[TransactionSnapshot],
    scope: AbstractSet[UUID],
    now: datetime,
) -> Decimal:
    return initial_balance + sum(
        (net_change(s, scope) for s in snapshots if s.date <= now),
        ZERO,
    )


def multi_account_balance_history(
    accounts: Iterable[AccountInput],
    snapshots: Iterable[TransactionSnapshot],
    months: int,
    now: datetime,
) -> list[AccountBalanceDataPoint]:
    """
    One monthly series per book over the trailing `months` months.

    Computed backward from the balance as of now. Series are
    concatenated in the order the books were given, each oldest first.
    """
    snapshots = list(snapshots)
    data = []
    for account in accounts:
        scope = account.conto_ids
        balance_now = _balance_as_of(account.initial_balance, snapshots, scope, now)
        nets = _monthly_nets(snapshots, scope, months, now)
        data.extend(_backward_series(
            account.id, account.name, account.color_index, balance_now, nets,
        ))
    return data


def multi_conto_balance_history(
    conti: Iterable[ContoInput],
    snapshots: Iterable[TransactionSnapshot],
    months: int,
    now: datetime,
) -> list[AccountBalanceDataPoint]:
    """
    Like multi_account_balance_history, one series per conto.

    A conto with no transaction referencing it anywhere in the window
    gets no series at all.
    """
    snapshots = list(snapshots)
    data = []
    for conto in conti:
        scope = {conto.id}
        nets = _monthly_nets(snapshots, scope, months, now)
        if not any(active for _, _, active in nets):
            continue
        balance_now = _balance_as_of(conto.initial_balance, snapshots, scope, now)
        data.extend(_backward_series(
            conto.id, conto.name, conto.color_index, balance_now, nets,
        ))
    return data


# =============================================================================
# CHART HELPERS
# =============================================================================

def chart_y_domain(points: Iterable[BalanceDataPoint]) -> YDomain:
    """
    Padded vertical range for a set of points.

    10% of the spread on each side; +-50 around a flat series. A series
    that never goes negative never gets a negative lower bound.
    Empty input yields 0...100.
    """
    balances = [p.balance for p in points]
    if not balances:
        return DEFAULT_Y_DOMAIN

    low = min(balances)
    high = max(balances)
    if low == high:
        return YDomain(lower=low - FLAT_Y_PADDING, upper=high + FLAT_Y_PADDING)

    padding = (high - low) * Y_PADDING_RATIO
    lower = max(ZERO, low - padding) if low >= 0 else low - padding
    return YDomain(lower=lower, upper=high + padding)
