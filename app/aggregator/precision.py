"""BizInsights — Decimal helpers for money and counts.

Monetary values stay `Decimal` end to end; floats only appear at the
JSON boundary through `format_money`.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal | None:
    """Parse a stored value into a finite Decimal, or None if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    elif isinstance(value, float):
        # str() gives the shortest repr, so 0.1 becomes Decimal("0.1")
        result = Decimal(str(value))
    else:
        return None
    if not result.is_finite():
        return None
    return result


def decimal_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals exactly, starting from Decimal zero."""
    total = Decimal("0")
    for v in values:
        total += v
    return total


def floor_count(value: Decimal) -> int:
    """Whole-number count from a stored aggregate (orders must be integers)."""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def format_money(value: Decimal) -> float:
    """Round to cents and convert for display."""
    return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))
