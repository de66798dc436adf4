"""
Monetary values.

Every amount in the system is a decimal.Decimal. Floats never enter
monetary arithmetic: a float handed to to_money() is converted through
its shortest repr, so 0.1 becomes Decimal("0.1"), not the binary
approximation.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

ZERO = Decimal("0")

MoneyLike = Union[Decimal, int, str, float]


def to_money(value: MoneyLike) -> Decimal:
    """Convert a value to Decimal without going through binary floating point."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not monetary values")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def quantize_money(value: Decimal, places: int = 2) -> Decimal:
    """Round for display. Not used inside balance arithmetic."""
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_EVEN)


def format_compact_currency(value: Decimal, symbol: str = "€") -> str:
    """
    Format a value as a compact currency label for chart axes.

    1500000 -> "1.5M €", 5000 -> "5K €", 42 -> "42 €".
    """
    abs_value = abs(value)

    if abs_value >= 1_000_000:
        scaled = (value / Decimal(1_000_000)).quantize(Decimal("0.1"), rounding=ROUND_HALF_EVEN)
        return f"{scaled}M {symbol}"
    elif abs_value >= 1_000:
        scaled = (value / Decimal(1_000)).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
        return f"{scaled}K {symbol}"
    else:
        scaled = value.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
        return f"{scaled} {symbol}"
