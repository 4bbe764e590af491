"""Decimal money helpers. Amounts are kept to cents, rounded half-up."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion
    return Decimal(str(value))


def quantize_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, percent: Number) -> Decimal:
    """``amount × percent / 100`` rounded to cents."""
    return quantize_money(to_decimal(amount) * to_decimal(percent) / Decimal(100))
