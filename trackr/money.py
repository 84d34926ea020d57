"""
Money helpers.

Amounts arrive as decimal strings, Decimals or floats. They are accumulated
as Decimal and only rounded when a value leaves the engine.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Parse an amount; None and empty strings count as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 40.005 stays 40.005
        return Decimal(str(value))
    return Decimal(str(value).strip())


def money_sum(values: Iterable[Any]) -> Decimal:
    """Sum amounts without intermediate rounding."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def round_money(value: Any) -> float:
    """Round to cents (half up) at the output boundary."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
