"""Shared fixtures and helpers for the cascade calculator tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from cascade_calc.data_models import LoanTerms


def money(value) -> Decimal:
    return Decimal(str(value))


def assert_money_equal(actual, expected, tolerance="0.01") -> None:
    """Assert two money amounts agree within ``tolerance``."""
    diff = abs(Decimal(str(actual)) - Decimal(str(expected)))
    assert diff <= Decimal(tolerance), f"{actual} != {expected} (diff {diff})"


def assert_non_increasing(values, tolerance="0.00") -> None:
    limit = Decimal(tolerance)
    for i in range(1, len(values)):
        assert values[i] <= values[i - 1] + limit, f"balance rose at month {i}: {values[i - 1]} -> {values[i]}"


@pytest.fixture
def mortgage_a() -> dict:
    return {"balance": 200000, "rate": 5, "months": 300}


@pytest.fixture
def mortgage_b() -> dict:
    return {"balance": 150000, "rate": 3, "months": 300}


@pytest.fixture
def flat_loans():
    """Two interest-free loans whose schedules are easy to follow by hand.

    Loan A pays 100 a month, loan B 200 a month.
    """
    return (
        LoanTerms(balance=money(1200), rate=money(0), months=12),
        LoanTerms(balance=money(2400), rate=money(0), months=12),
    )
