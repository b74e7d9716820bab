"""Decimal helpers for money, kilograms and bag counts."""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

MONEY_PLACES = Decimal("0.01")
KG_PLACES = Decimal("0.001")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without going through binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Number) -> Decimal:
    """Quantize a currency amount to 2 places, rounding half up."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_kg(value: Number) -> Decimal:
    """Quantize a weight in kilograms to 3 places, rounding half up."""
    return to_decimal(value).quantize(KG_PLACES, rounding=ROUND_HALF_UP)


def bags_for_weight(weight_kg: Number, weight_per_bag: int) -> int:
    """
    Convert a raw weight into a bag count.

    Always rounds up, so a partial bag is counted as a whole one.
    """
    if weight_per_bag <= 0:
        raise ValueError("weight_per_bag must be positive")
    return math.ceil(to_decimal(weight_kg) / Decimal(weight_per_bag))
