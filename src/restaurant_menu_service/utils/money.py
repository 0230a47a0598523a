"""Conversion between currency amounts and integer minor units (cents).

All monetary fields are stored as integer cents. Decimal amounts only exist
at the edges: incoming requests and outgoing views.
"""

from decimal import ROUND_HALF_UP, Decimal

MIN_PRICE_CENTS = 1
MAX_PRICE_CENTS = 99_999_900

_CENTS_PER_UNIT = Decimal(100)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a currency amount to integer cents.

    Rounds half-up to the nearest cent. Floats are converted through their
    string form so that 12.5 becomes 1250 rather than a binary approximation.

    Args:
        amount: Amount in major units (e.g. dollars)

    Returns:
        int: Amount in minor units
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * _CENTS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(minor: int) -> Decimal:
    """Convert integer cents to a Decimal amount for output."""
    return Decimal(int(minor)) / _CENTS_PER_UNIT


def is_valid_item_price(cents: int) -> bool:
    """Check that an item price lies within the accepted cent range."""
    return MIN_PRICE_CENTS <= cents <= MAX_PRICE_CENTS
