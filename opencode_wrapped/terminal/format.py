"""
Number and text formatting.

Shared by the terminal summary and the rendered image.
"""

from datetime import date, datetime
from typing import Union

from opencode_wrapped.core.dates import format_short_date

_COMPACT_SUFFIXES = ("K", "M", "B", "T")
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _trim(value: float) -> str:
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_number(num: float) -> str:
    """Compact notation with at most one decimal: 1.2K, 3.4M, 1.1B."""
    value = float(num)
    suffix = ""
    for next_suffix in _COMPACT_SUFFIXES:
        if abs(round(value, 1)) < 1000:
            break
        value /= 1000
        suffix = next_suffix
    return f"{_trim(value)}{suffix}"


def format_cost(cost: float) -> str:
    """Dollars with cents, switching to compact notation from $1000."""
    if cost >= 1000:
        return f"${format_number(cost)}"
    return f"${cost:,.2f}"


def format_date(day: Union[date, datetime]) -> str:
    """Long form, e.g. ``January 5, 2025``."""
    return f"{_MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


__all__ = ["format_number", "format_cost", "format_date", "format_short_date"]
