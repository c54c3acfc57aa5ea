"""Utility functions for the cascade calculator.

This module provides the monetary helpers every simulation step relies on
(rounding to cents, clamping, coercing user input into ``Decimal``) together
with a few date and display helpers used when reporting payoff dates.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: object) -> Decimal:
    """Convert a number or numeric string into a ``Decimal``.

    ``None`` and empty strings map to zero. Strings may contain thousands
    separators (commas). Floats go through ``str`` so that ``0.1`` becomes
    ``Decimal("0.1")`` rather than its binary expansion.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a number.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    try:
        cleaned = str(value).replace(",", "").strip()
        if not cleaned:
            return ZERO
        return Decimal(cleaned)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def round_money(value: Number) -> Decimal:
    """Round a monetary amount to the nearest cent, halves rounding up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, lo: Decimal, hi: Decimal) -> Decimal:
    """Saturate ``value`` into the closed interval ``[lo, hi]``."""
    return min(max(value, lo), hi)


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), 1)
    except Exception as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def format_months(total_months: int) -> str:
    """Render a month count as years and months, e.g. ``25 -> "2 years 1 months"``."""
    years, months = divmod(total_months, 12)
    if years == 0:
        return f"{months} months"
    if months == 0:
        return f"{years} years"
    return f"{years} years {months} months"
