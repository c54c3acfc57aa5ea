"""Core calculation engine for the cascade calculator.

This module implements the month-by-month simulation of two amortising loans.
It provides the scheduled payment calculation, a single-loan simulator used
for the independent baseline, and the cascade simulator that pools voluntary
overpayments and directs them at one loan at a time according to a strategy.

Every monetary amount is rounded to cents after each arithmetic step so that
results do not drift over long simulations. The cascade month transition is a
pure function of a frozen ``CascadeState``; the driver loop threads the state
through and collects the balance sequences and yearly summaries.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional, Tuple

from .data_models import (
    Attribution,
    BaselineTrace,
    CascadeTrace,
    LoanTerms,
    SimulationTrace,
    YearlySummary,
)
from .errors import SafetyCapExceeded
from .utils import CENT, ZERO, round_money

logger = logging.getLogger(__name__)

MAX_MONTHS = 1000 * 12

AVALANCHE = "avalanche"
SNOWBALL = "snowball"
STRATEGIES = (AVALANCHE, SNOWBALL)

LOAN_A = "a"
LOAN_B = "b"

RATE_PLACES = Decimal("0.0001")


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert an annual nominal rate in percent to a monthly fraction."""
    return annual_rate_percent / Decimal(100) / Decimal(12)


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise ValueError("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def scheduled_payment(principal: Decimal, annual_rate_percent: Decimal, total_months: int) -> Decimal:
    """Return the fixed monthly payment that amortises a loan over its term.

    The payment is rounded to cents and never below 0.01. For interest-bearing
    loans it is forced above the first month's interest so that every
    scheduled payment reduces principal.
    """
    rate_per_month = monthly_rate(annual_rate_percent)
    payment = round_money(_calculate_annuity_payment(principal, rate_per_month, total_months))
    if payment < CENT:
        payment = CENT
    if annual_rate_percent > 0:
        first_interest = round_money(principal * rate_per_month)
        if payment <= first_interest:
            payment = round_money(first_interest + CENT)
    return payment


def scheduled_payment_for(loan: LoanTerms) -> Decimal:
    return scheduled_payment(loan.balance, loan.rate, loan.months)


def simulate_single(loan: LoanTerms, extra: Decimal) -> SimulationTrace:
    """Run one loan to payoff with a constant monthly overpayment.

    Each month interest accrues on the balance, the scheduled payment covers
    it and the rest reduces principal, then ``extra`` reduces principal
    further. The month in which the payment would exceed the balance pays off
    exactly what is left.

    Raises
    ------
    SafetyCapExceeded
        If the loan is still open after ``MAX_MONTHS`` months.
    """
    rate_per_month = monthly_rate(loan.rate)
    scheduled = scheduled_payment_for(loan)

    balance = loan.balance
    months = 0
    interest_total = ZERO
    balances: List[Decimal] = [balance]

    while balance > 0:
        if months >= MAX_MONTHS:
            raise SafetyCapExceeded("Single", MAX_MONTHS)
        interest = round_money(balance * rate_per_month)
        principal = max(ZERO, round_money(scheduled - interest))
        total_payment = round_money(principal + extra)
        interest_total = round_money(interest_total + interest)
        months += 1
        if total_payment >= balance:
            balance = ZERO
        else:
            balance = round_money(balance - total_payment)
        balances.append(balance)

    return SimulationTrace(
        months=months,
        total_interest=interest_total,
        balances=tuple(balances),
        scheduled_payment=scheduled,
    )


def simulate_baseline(
    loan_a: LoanTerms, loan_b: LoanTerms, extra_a: Decimal, extra_b: Decimal
) -> BaselineTrace:
    """Pay both loans independently, each with its own overpayment."""
    trace_a = simulate_single(loan_a, extra_a)
    trace_b = simulate_single(loan_b, extra_b)

    length = max(len(trace_a.balances), len(trace_b.balances))
    balances = []
    for i in range(length):
        bal_a = trace_a.balances[i] if i < len(trace_a.balances) else ZERO
        bal_b = trace_b.balances[i] if i < len(trace_b.balances) else ZERO
        balances.append(round_money(bal_a + bal_b))

    return BaselineTrace(
        months=max(trace_a.months, trace_b.months),
        total_interest=round_money(trace_a.total_interest + trace_b.total_interest),
        balances=tuple(balances),
        loan_a=trace_a,
        loan_b=trace_b,
    )


def normalise_strategy(strategy: str) -> str:
    """Return the canonical strategy name or raise ``ValueError``."""
    name = strategy.strip().lower() if isinstance(strategy, str) else ""
    if name not in STRATEGIES:
        raise ValueError(f"Strategy must be 'avalanche' or 'snowball'; got {strategy!r}")
    return name


@dataclass(frozen=True)
class CascadePolicy:
    """Fixed parameters of a cascade run."""

    loan_a: LoanTerms
    loan_b: LoanTerms
    extra_a: Decimal
    extra_b: Decimal
    scheduled_a: Decimal
    scheduled_b: Decimal
    redirect_scheduled: bool = True
    redirect_extra: bool = True
    strategy: str = AVALANCHE

    @property
    def pooling(self) -> bool:
        # With no voluntary extra at all there is no pool to redirect into.
        return self.extra_a + self.extra_b > 0


@dataclass(frozen=True)
class YearTotals:
    """Accumulators for the year that is currently open."""

    interest: Decimal = ZERO
    contributed_a: Decimal = ZERO
    contributed_b: Decimal = ZERO
    applied_a: Decimal = ZERO
    applied_b: Decimal = ZERO


@dataclass(frozen=True)
class CascadeState:
    """Everything that changes from one simulated month to the next."""

    month: int
    balance_a: Decimal
    balance_b: Decimal
    interest_total: Decimal = ZERO
    interest_a: Decimal = ZERO
    interest_b: Decimal = ZERO
    year: YearTotals = YearTotals()
    attribution: Attribution = Attribution()
    stranded_surplus: Decimal = ZERO

    @property
    def finished(self) -> bool:
        return self.balance_a <= 0 and self.balance_b <= 0


def initial_state(policy: CascadePolicy) -> CascadeState:
    return CascadeState(month=0, balance_a=policy.loan_a.balance, balance_b=policy.loan_b.balance)


def pool_contributions(policy: CascadePolicy, a_active: bool, b_active: bool) -> Tuple[Decimal, Decimal]:
    """Return how much each loan's budget puts into this month's pool.

    While both loans are open only their voluntary extras are pooled. Once a
    loan is cleared its extra and its freed scheduled payment keep feeding the
    pool only if the matching redirect toggle is on.
    """
    if not policy.pooling:
        return ZERO, ZERO
    if a_active and b_active:
        return policy.extra_a, policy.extra_b
    if b_active:
        from_a = ZERO
        if policy.redirect_extra:
            from_a += policy.extra_a
        if policy.redirect_scheduled:
            from_a += policy.scheduled_a
        return from_a, policy.extra_b
    if a_active:
        from_b = ZERO
        if policy.redirect_extra:
            from_b += policy.extra_b
        if policy.redirect_scheduled:
            from_b += policy.scheduled_b
        return policy.extra_a, from_b
    return ZERO, ZERO


def choose_target(policy: CascadePolicy, balance_a: Decimal, balance_b: Decimal) -> Optional[str]:
    """Pick the loan that receives this month's pool.

    Avalanche prefers the higher rate, snowball the smaller balance; ties go
    to loan A. With only one loan open, that loan is the target.
    """
    a_active = balance_a > 0
    b_active = balance_b > 0
    if a_active and b_active:
        if policy.strategy == AVALANCHE:
            return LOAN_A if policy.loan_a.rate >= policy.loan_b.rate else LOAN_B
        return LOAN_A if balance_a <= balance_b else LOAN_B
    if a_active:
        return LOAN_A
    if b_active:
        return LOAN_B
    return None


def _split_applied(applied: Decimal, from_a: Decimal, from_b: Decimal) -> Tuple[Decimal, Decimal]:
    """Split an applied amount between contributors in proportion to their share."""
    pool = from_a + from_b
    if pool <= 0 or applied <= 0:
        return ZERO, ZERO
    share_a = round_money(applied * from_a / pool)
    return share_a, applied - share_a


def _snap(balance: Decimal) -> Decimal:
    balance = round_money(balance)
    return ZERO if balance < CENT else balance


def step_month(state: CascadeState, policy: CascadePolicy) -> CascadeState:
    """Advance the cascade by one month and return the new state."""
    balance_a = state.balance_a
    balance_b = state.balance_b
    rate_a = monthly_rate(policy.loan_a.rate)
    rate_b = monthly_rate(policy.loan_b.rate)

    interest_a = round_money(balance_a * rate_a) if balance_a > 0 else ZERO
    interest_b = round_money(balance_b * rate_b) if balance_b > 0 else ZERO
    month_interest = interest_a + interest_b

    principal_a = ZERO
    if balance_a > 0:
        principal_a = max(ZERO, min(round_money(policy.scheduled_a - interest_a), balance_a))
    principal_b = ZERO
    if balance_b > 0:
        principal_b = max(ZERO, min(round_money(policy.scheduled_b - interest_b), balance_b))
    balance_a = round_money(balance_a - principal_a)
    balance_b = round_money(balance_b - principal_b)

    from_a, from_b = pool_contributions(policy, balance_a > 0, balance_b > 0)
    pool = from_a + from_b
    target = choose_target(policy, balance_a, balance_b)

    applied = ZERO
    share_a = share_b = ZERO
    stranded = ZERO
    flow = Attribution()
    if target is not None and pool > 0:
        target_balance = balance_a if target == LOAN_A else balance_b
        applied = min(pool, target_balance)
        share_a, share_b = _split_applied(applied, from_a, from_b)
        if target == LOAN_A:
            balance_a = round_money(balance_a - applied)
            flow = Attribution(a_to_a=share_a, b_to_a=share_b)
            other_active = balance_b > 0
        else:
            balance_b = round_money(balance_b - applied)
            flow = Attribution(a_to_b=share_a, b_to_b=share_b)
            other_active = balance_a > 0
        if other_active:
            stranded = pool - applied

    balance_a = _snap(balance_a)
    balance_b = _snap(balance_b)

    year = state.year
    year = replace(
        year,
        interest=round_money(year.interest + month_interest),
        contributed_a=year.contributed_a + share_a,
        contributed_b=year.contributed_b + share_b,
        applied_a=year.applied_a + (applied if target == LOAN_A else ZERO),
        applied_b=year.applied_b + (applied if target == LOAN_B else ZERO),
    )

    return replace(
        state,
        month=state.month + 1,
        balance_a=balance_a,
        balance_b=balance_b,
        interest_total=round_money(state.interest_total + month_interest),
        interest_a=round_money(state.interest_a + interest_a),
        interest_b=round_money(state.interest_b + interest_b),
        year=year,
        attribution=state.attribution.add(flow),
        stranded_surplus=state.stranded_surplus + stranded,
    )


def close_year(state: CascadeState) -> Tuple[CascadeState, YearlySummary]:
    """Summarise the open year and return a state with fresh accumulators."""
    totals = state.year
    summary = YearlySummary(
        year=math.ceil(state.month / 12),
        interest_accrued=round_money(totals.interest),
        contributed_by_loan_a=round_money(totals.contributed_a),
        contributed_by_loan_b=round_money(totals.contributed_b),
        extra_applied_to_loan_a=round_money(totals.applied_a),
        extra_applied_to_loan_b=round_money(totals.applied_b),
        end_balance_loan_a=round_money(state.balance_a),
        end_balance_loan_b=round_money(state.balance_b),
    )
    return replace(state, year=YearTotals()), summary


def effective_rate(attribution: Attribution, loan_a: LoanTerms, loan_b: LoanTerms) -> Decimal:
    """Weighted average rate of the loans that received pooled money."""
    applied = attribution.to_loan_a + attribution.to_loan_b
    if applied <= 0:
        return ZERO
    weighted = attribution.to_loan_a * loan_a.rate + attribution.to_loan_b * loan_b.rate
    return (weighted / applied).quantize(RATE_PLACES)


def simulate_cascade(
    loan_a: LoanTerms,
    loan_b: LoanTerms,
    extra_a: Decimal,
    extra_b: Decimal,
    redirect_scheduled: bool = True,
    redirect_extra: bool = True,
    strategy: str = AVALANCHE,
) -> CascadeTrace:
    """Run both loans in lockstep, pooling overpayments under ``strategy``.

    Parameters
    ----------
    loan_a, loan_b: LoanTerms
        Normalized loans.
    extra_a, extra_b: Decimal
        Monthly voluntary overpayment each loan's owner contributes.
    redirect_scheduled: bool
        Whether a cleared loan's scheduled payment joins the pool.
    redirect_extra: bool
        Whether a cleared loan's extra keeps joining the pool.
    strategy: str
        ``"avalanche"`` (highest rate first) or ``"snowball"`` (smallest
        balance first).

    Raises
    ------
    SafetyCapExceeded
        If either loan is still open after ``MAX_MONTHS`` months.
    """
    policy = CascadePolicy(
        loan_a=loan_a,
        loan_b=loan_b,
        extra_a=extra_a,
        extra_b=extra_b,
        scheduled_a=scheduled_payment_for(loan_a),
        scheduled_b=scheduled_payment_for(loan_b),
        redirect_scheduled=redirect_scheduled,
        redirect_extra=redirect_extra,
        strategy=normalise_strategy(strategy),
    )
    state = initial_state(policy)

    balances = [round_money(state.balance_a + state.balance_b)]
    balances_a = [state.balance_a]
    balances_b = [state.balance_b]
    yearly: List[YearlySummary] = []

    while not state.finished:
        if state.month >= MAX_MONTHS:
            raise SafetyCapExceeded("Cascade", MAX_MONTHS)
        state = step_month(state, policy)
        balances.append(round_money(state.balance_a + state.balance_b))
        balances_a.append(state.balance_a)
        balances_b.append(state.balance_b)
        if state.month % 12 == 0 or state.finished:
            state, summary = close_year(state)
            yearly.append(summary)

    attribution = state.attribution.rounded()
    logger.debug(
        "Cascade (%s) finished in %d months with interest %s",
        policy.strategy,
        state.month,
        state.interest_total,
    )
    return CascadeTrace(
        months=state.month,
        total_interest=round_money(state.interest_total),
        interest_loan_a=state.interest_a,
        interest_loan_b=state.interest_b,
        balances=tuple(balances),
        loan_a_balances=tuple(balances_a),
        loan_b_balances=tuple(balances_b),
        yearly=tuple(yearly),
        attribution=attribution,
        stranded_surplus=round_money(state.stranded_surplus),
        effective_rate=effective_rate(attribution, loan_a, loan_b),
    )
