"""Decimal money utilities.

Snapshot figures are Decimal in the platform's base currency unit.
Legacy ledger tables store minor units (cents); aggregator tables store
decimal units. Everything is normalised here, nothing uses float.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def to_decimal(value: object) -> Decimal:
    """Coerce a DB value to Decimal. None, NaN and junk become 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def scale_units(raw: object, scale: int) -> Decimal:
    """Convert a raw stored amount to currency units: 50000 (scale=100) -> 500.00."""
    return quantize(to_decimal(raw) / scale)


def quantize(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def non_negative(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO
