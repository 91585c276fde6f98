"""Numeric helpers for readings shown to users."""

import math
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties going away from zero.

    Python's built-in round() uses banker's rounding (round(2.5) == 2),
    which is not what users expect to see next to an AQI value.

    Args:
        value: Finite number to round

    Returns:
        Rounded integer

    Raises:
        ValueError: If value is NaN or infinite

    Example:
        >>> round_half_away_from_zero(2.5), round_half_away_from_zero(-2.5)
        (3, -3)
    """
    if not is_finite_number(value):
        raise ValueError(f"Cannot round non-finite value: {value!r}")

    # Decimal(float) is exact, so values just below .5 are not pushed up
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Format a configured threshold without a spurious trailing '.0'.

    Example:
        >>> format_number(50.0), format_number(42.5)
        ('50', '42.5')
    """
    return f"{value:g}"


def is_finite_number(value: object) -> bool:
    """Check that value is a real, finite number (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)
