"""Calendar helpers shared by the engine and the dashboard queries."""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt).replace(day=1)


def end_of_month(dt: datetime) -> datetime:
    """Midnight at the start of the last day of dt's month."""
    return start_of_month(dt) + relativedelta(months=1, days=-1)


def same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month."""
    return dt + relativedelta(months=months)


def tomorrow_start(dt: datetime) -> datetime:
    return start_of_day(dt) + timedelta(days=1)
