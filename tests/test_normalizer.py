"""Tests for turning raw user input into valid loan terms."""

from decimal import Decimal

from cascade_calc.data_models import LoanTerms
from cascade_calc.normalizer import normalise_extra, normalise_loan


class TestNormaliseLoan:
    def test_valid_input_passes_through(self):
        loan = normalise_loan({"balance": 200000, "rate": 5, "months": 300})
        assert loan == LoanTerms(balance=Decimal("200000.00"), rate=Decimal("5"), months=300)

    def test_balance_is_clamped_and_rounded(self):
        assert normalise_loan({"balance": -10, "rate": 5, "months": 12}).balance == Decimal("1.00")
        assert normalise_loan({"balance": 5e9, "rate": 5, "months": 12}).balance == Decimal("100000000.00")
        assert normalise_loan({"balance": 1234.567, "rate": 5, "months": 12}).balance == Decimal("1234.57")

    def test_rate_is_clamped_to_percent_range(self):
        assert normalise_loan({"balance": 1000, "rate": -1, "months": 12}).rate == Decimal("0")
        assert normalise_loan({"balance": 1000, "rate": 500, "months": 12}).rate == Decimal("25")

    def test_months_truncated_and_floored(self):
        assert normalise_loan({"balance": 1000, "rate": 5, "months": 12.9}).months == 12
        assert normalise_loan({"balance": 1000, "rate": 5, "months": -4}).months == 1
        assert normalise_loan({"balance": 1000, "rate": 5, "months": 10**9}).months == 6000

    def test_missing_fields_map_to_floors(self):
        loan = normalise_loan({})
        assert loan == LoanTerms(balance=Decimal("1.00"), rate=Decimal("0"), months=1)

    def test_junk_and_nan_never_raise(self):
        loan = normalise_loan({"balance": "abc", "rate": float("nan"), "months": None})
        assert loan == LoanTerms(balance=Decimal("1.00"), rate=Decimal("0"), months=1)

    def test_huge_exponent_term_is_capped_without_expanding(self):
        loan = normalise_loan({"balance": 1000, "rate": 5, "months": "1e1000000"})
        assert loan.months == 6000
        assert normalise_loan({"balance": 1000, "rate": 5, "months": "-1e1000000"}).months == 1
        assert normalise_loan({"balance": 1000, "rate": 5, "months": float("inf")}).months == 6000

    def test_non_mapping_counts_as_empty(self):
        floor = LoanTerms(balance=Decimal("1.00"), rate=Decimal("0"), months=1)
        assert normalise_loan(None) == floor
        assert normalise_loan([1, 2, 3]) == floor
        assert normalise_loan("200000") == floor

    def test_accepts_existing_terms(self):
        terms = LoanTerms(balance=Decimal("500.00"), rate=Decimal("4"), months=24)
        assert normalise_loan(terms) == terms


class TestNormaliseExtra:
    def test_missing_is_zero(self):
        assert normalise_extra(None) == Decimal("0.00")

    def test_clamped_and_rounded(self):
        assert normalise_extra(-50) == Decimal("0.00")
        assert normalise_extra(2_000_000) == Decimal("1000000.00")
        assert normalise_extra("250.555") == Decimal("250.56")
