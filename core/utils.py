"""
Numeric helpers shared by the gradebook and dashboard code.

All percentages go through ``round2`` so that subject-level and overall
figures are rounded the same way (half-up, two decimal places).
"""
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal('0.01')
WHOLE = Decimal('1')


def to_decimal(value):
    """Coerce ints, floats, strings and Decimals to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value):
    """Round to two decimal places using round-half-up."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percentage(part, whole):
    """
    ``part / whole * 100`` rounded with ``round2``.

    Returns ``Decimal('0.00')`` when ``whole`` is zero instead of raising.
    """
    whole = to_decimal(whole)
    if whole == 0:
        return Decimal('0.00')
    return round2(to_decimal(part) / whole * 100)


def whole_percentage(part, whole):
    """Percentage rounded half-up to a whole number, or None when ``whole`` is zero."""
    if not whole:
        return None
    value = to_decimal(part) / to_decimal(whole) * 100
    return int(value.quantize(WHOLE, rounding=ROUND_HALF_UP))
