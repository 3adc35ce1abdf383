"""Decimal helpers shared by the ledger and calculator modules"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal going through str so floats keep their printed value"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number, places: int) -> float:
    """Round half away from zero to `places` decimals (banker's rounding is wrong for money)"""
    quantum = Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def decimal_places(value: Number) -> int:
    """Number of significant fractional digits, e.g. 100.50 -> 1, 0.125 -> 3"""
    normalized = to_decimal(value).normalize()
    exponent = normalized.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def format_amount(value: Number) -> str:
    """Render an amount for messages: 100 -> '100', 5.50 -> '5.5'"""
    d = to_decimal(value)
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")
