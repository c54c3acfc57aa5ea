"""Data models for the cascade calculator.

This module defines the dataclasses passed between the normalizer, the
simulators and whoever renders the results: the normalized loan terms, the
single-loan and two-loan traces, yearly summaries, attribution totals and the
final comparison. All of them are frozen; a simulation run builds them once
and nothing mutates them afterwards. Money values are ``Decimal`` rounded to
cents and every balance sequence starts with the opening balance at index 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple

from .utils import ZERO, round_money


@dataclass(frozen=True)
class LoanTerms:
    """A normalized loan.

    Attributes
    ----------
    balance: Decimal
        Outstanding principal, at least 1 and rounded to cents.
    rate: Decimal
        Annual nominal interest rate in percent, between 0 and 25.
    months: int
        Remaining term in months, at least 1.
    """

    balance: Decimal
    rate: Decimal
    months: int


@dataclass(frozen=True)
class SimulationTrace:
    """Outcome of running one loan to payoff."""

    months: int
    total_interest: Decimal
    balances: Tuple[Decimal, ...]
    scheduled_payment: Decimal


@dataclass(frozen=True)
class BaselineTrace:
    """Two loans paid independently, each with its own extra payment.

    ``balances`` is the month-wise sum of both loans, with the loan that
    finishes first contributing zero once it is paid off.
    """

    months: int
    total_interest: Decimal
    balances: Tuple[Decimal, ...]
    loan_a: SimulationTrace
    loan_b: SimulationTrace

    @property
    def loan_a_balances(self) -> Tuple[Decimal, ...]:
        return _pad(self.loan_a.balances, len(self.balances))

    @property
    def loan_b_balances(self) -> Tuple[Decimal, ...]:
        return _pad(self.loan_b.balances, len(self.balances))


@dataclass(frozen=True)
class YearlySummary:
    """Interest and overpayment flows for one 12-month block.

    The last block of a run may be shorter than 12 months. ``contributed_by_*``
    is the money each loan's budget put into the pool that was actually
    applied, ``extra_applied_to_*`` is where it went.
    """

    year: int
    interest_accrued: Decimal
    contributed_by_loan_a: Decimal
    contributed_by_loan_b: Decimal
    extra_applied_to_loan_a: Decimal
    extra_applied_to_loan_b: Decimal
    end_balance_loan_a: Decimal
    end_balance_loan_b: Decimal

    @property
    def total_contributed(self) -> Decimal:
        return self.contributed_by_loan_a + self.contributed_by_loan_b

    @property
    def total_applied(self) -> Decimal:
        return self.extra_applied_to_loan_a + self.extra_applied_to_loan_b


@dataclass(frozen=True)
class Attribution:
    """Which loan's budget paid down which loan.

    ``a_to_b`` is money that came from loan A's overpayment budget (its extra
    and, after payoff, its redirected scheduled payment) and reduced loan B.
    """

    a_to_a: Decimal = ZERO
    a_to_b: Decimal = ZERO
    b_to_a: Decimal = ZERO
    b_to_b: Decimal = ZERO

    def add(self, other: "Attribution") -> "Attribution":
        return Attribution(
            a_to_a=self.a_to_a + other.a_to_a,
            a_to_b=self.a_to_b + other.a_to_b,
            b_to_a=self.b_to_a + other.b_to_a,
            b_to_b=self.b_to_b + other.b_to_b,
        )

    def rounded(self) -> "Attribution":
        return Attribution(
            a_to_a=round_money(self.a_to_a),
            a_to_b=round_money(self.a_to_b),
            b_to_a=round_money(self.b_to_a),
            b_to_b=round_money(self.b_to_b),
        )

    @property
    def from_loan_a(self) -> Decimal:
        return self.a_to_a + self.a_to_b

    @property
    def from_loan_b(self) -> Decimal:
        return self.b_to_a + self.b_to_b

    @property
    def to_loan_a(self) -> Decimal:
        return self.a_to_a + self.b_to_a

    @property
    def to_loan_b(self) -> Decimal:
        return self.a_to_b + self.b_to_b


@dataclass(frozen=True)
class CascadeTrace:
    """Outcome of running both loans in lockstep with a shared overpayment pool.

    Attributes
    ----------
    stranded_surplus: Decimal
        Pool money left over in months where the target loan needed less than
        the pool while the other loan still had a balance. It is not applied
        to anything.
    effective_rate: Decimal
        Weighted average interest rate (percent) of the loans the pooled money
        was applied to; zero when nothing was applied.
    """

    months: int
    total_interest: Decimal
    interest_loan_a: Decimal
    interest_loan_b: Decimal
    balances: Tuple[Decimal, ...]
    loan_a_balances: Tuple[Decimal, ...]
    loan_b_balances: Tuple[Decimal, ...]
    yearly: Tuple[YearlySummary, ...]
    attribution: Attribution
    stranded_surplus: Decimal = ZERO
    effective_rate: Decimal = ZERO


@dataclass(frozen=True)
class ComparisonResult:
    """Everything an outside renderer needs for one scenario."""

    baseline: BaselineTrace
    cascade: CascadeTrace
    no_overpayment: BaselineTrace
    months_saved: int
    interest_saved: Decimal
    scheduled_payment_a: Decimal
    scheduled_payment_b: Decimal
    loan_a: LoanTerms
    loan_b: LoanTerms
    extra_a: Decimal
    extra_b: Decimal
    strategy: str = "avalanche"
    redirect_scheduled: bool = True
    redirect_extra: bool = True
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def _pad(values: Tuple[Decimal, ...], length: int) -> Tuple[Decimal, ...]:
    """Extend a balance sequence with zeros up to ``length`` entries."""
    if len(values) >= length:
        return values
    return values + (ZERO,) * (length - len(values))
