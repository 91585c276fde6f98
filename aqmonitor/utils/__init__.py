"""Utility functions for time handling and reading formatting."""

from .numbers import format_number, is_finite_number, round_half_away_from_zero
from .timestamps import (
    ensure_utc,
    format_for_display,
    format_timestamp,
    milliseconds,
    parse_timestamp,
    utc_now,
)

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
    "format_for_display",
    "milliseconds",
    # Numbers
    "round_half_away_from_zero",
    "format_number",
    "is_finite_number",
]
