"""Input normalisation for the cascade calculator.

Raw loan inputs arrive from forms, command-line options or JSON bodies and can
be missing, negative, absurdly large or not numbers at all. The functions here
turn anything into valid simulation parameters; they never raise.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Any, Mapping, Union

from .data_models import LoanTerms
from .utils import ZERO, clamp, round_money, to_decimal

MIN_BALANCE = Decimal("1")
MAX_BALANCE = Decimal("100000000")
MIN_RATE = Decimal("0")
MAX_RATE = Decimal("25")
MIN_MONTHS = 1
MAX_TERM_MONTHS = 6000
MAX_EXTRA = Decimal("1000000")


def _coerce(value: Any) -> Decimal:
    """Return ``value`` as a Decimal, mapping missing, NaN and junk to zero."""
    try:
        number = to_decimal(value)
    except ValueError:
        return ZERO
    if number.is_nan():
        return ZERO
    return number


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, LoanTerms):
        return getattr(raw, name)
    if isinstance(raw, Mapping):
        return raw.get(name)
    return None


def normalise_loan(raw: Union[Mapping[str, Any], LoanTerms, None]) -> LoanTerms:
    """Sanitize a raw ``{balance, rate, months}`` mapping into ``LoanTerms``.

    * balance is clamped to [1, 100,000,000] and rounded to cents
    * rate is clamped to [0, 25] percent
    * months is truncated to an integer and kept within [1, 6000]

    Missing or unusable values count as 0 before clamping, so an omitted
    balance becomes 1 and an omitted term becomes one month. Anything that is
    not a mapping counts as an empty one.
    """
    balance = round_money(clamp(_coerce(_field(raw, "balance")), MIN_BALANCE, MAX_BALANCE))
    rate = clamp(_coerce(_field(raw, "rate")), MIN_RATE, MAX_RATE)
    months_value = clamp(_coerce(_field(raw, "months")), Decimal(MIN_MONTHS), Decimal(MAX_TERM_MONTHS))
    months = int(months_value.to_integral_value(rounding=ROUND_FLOOR))
    return LoanTerms(balance=balance, rate=rate, months=months)


def normalise_extra(extra: Any) -> Decimal:
    """Clamp a monthly overpayment to [0, 1,000,000] and round it to cents."""
    return round_money(clamp(_coerce(extra), ZERO, MAX_EXTRA))
