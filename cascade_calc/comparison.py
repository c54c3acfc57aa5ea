"""Assemble cascade results and check them before they leave the engine.

``compare`` is the single entry point external callers use: it normalizes the
raw inputs, runs the independent baseline, the cascade and a reference run
with no overpayment at all, derives the savings figures and verifies the
numerical invariants. Either a complete ``ComparisonResult`` is returned or an
``InvariantViolation``/``SafetyCapExceeded`` is raised; nothing partial.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from .data_models import ComparisonResult, LoanTerms
from .engine import (
    AVALANCHE,
    STRATEGIES,
    normalise_strategy,
    scheduled_payment_for,
    simulate_baseline,
    simulate_cascade,
)
from .errors import InvariantViolation
from .normalizer import normalise_extra, normalise_loan
from .utils import ZERO, round_money

logger = logging.getLogger(__name__)

MONTHS_NOISE = 1
INTEREST_NOISE = Decimal("0.50")
INTEREST_TOLERANCE = Decimal("1.00")
CONSERVATION_TOLERANCE = Decimal("1.00")

LoanInput = Union[Mapping[str, Any], LoanTerms]


def compare(
    loan_a: LoanInput,
    loan_b: LoanInput,
    extra_a: Any = 0,
    extra_b: Any = 0,
    redirect_scheduled: bool = True,
    redirect_extra: bool = True,
    strategy: str = AVALANCHE,
) -> ComparisonResult:
    """Compare pooled overpayments against paying each loan separately.

    Parameters
    ----------
    loan_a, loan_b:
        Raw ``{"balance", "rate", "months"}`` mappings (or ``LoanTerms``). They
        are normalized first, so any numeric input is accepted.
    extra_a, extra_b:
        Monthly overpayment contributed by each loan's owner.
    redirect_scheduled, redirect_extra:
        Whether a paid-off loan's scheduled payment / extra keeps feeding the
        pool.
    strategy:
        ``"avalanche"`` or ``"snowball"``.

    Raises
    ------
    ValueError
        For an unknown strategy name.
    SimulationError
        If a simulation hits the safety cap or the result breaks an invariant.
    """
    strategy = normalise_strategy(strategy)
    terms_a = normalise_loan(loan_a)
    terms_b = normalise_loan(loan_b)
    extra_a = normalise_extra(extra_a)
    extra_b = normalise_extra(extra_b)

    baseline = simulate_baseline(terms_a, terms_b, extra_a, extra_b)
    cascade = simulate_cascade(
        terms_a,
        terms_b,
        extra_a,
        extra_b,
        redirect_scheduled=redirect_scheduled,
        redirect_extra=redirect_extra,
        strategy=strategy,
    )
    no_overpayment = simulate_baseline(terms_a, terms_b, ZERO, ZERO)

    raw_months_saved = baseline.months - cascade.months
    raw_interest_saved = round_money(baseline.total_interest - cascade.total_interest)
    months_saved = 0 if abs(raw_months_saved) <= MONTHS_NOISE else max(0, raw_months_saved)
    interest_saved = ZERO if abs(raw_interest_saved) < INTEREST_NOISE else max(ZERO, raw_interest_saved)

    result = ComparisonResult(
        baseline=baseline,
        cascade=cascade,
        no_overpayment=no_overpayment,
        months_saved=months_saved,
        interest_saved=interest_saved,
        scheduled_payment_a=scheduled_payment_for(terms_a),
        scheduled_payment_b=scheduled_payment_for(terms_b),
        loan_a=terms_a,
        loan_b=terms_b,
        extra_a=extra_a,
        extra_b=extra_b,
        strategy=strategy,
        redirect_scheduled=redirect_scheduled,
        redirect_extra=redirect_extra,
        warnings=tuple(_policy_warnings(baseline, cascade)),
    )
    check_invariants(result)
    for warning in result.warnings:
        logger.warning(warning)
    return result


def compare_strategies(
    loan_a: LoanInput,
    loan_b: LoanInput,
    extra_a: Any = 0,
    extra_b: Any = 0,
    redirect_scheduled: bool = True,
    redirect_extra: bool = True,
) -> Dict[str, ComparisonResult]:
    """Run ``compare`` once per strategy with otherwise identical inputs."""
    return {
        name: compare(loan_a, loan_b, extra_a, extra_b, redirect_scheduled, redirect_extra, name)
        for name in STRATEGIES
    }


def _policy_warnings(baseline, cascade) -> List[str]:
    warnings = []
    if cascade.total_interest > baseline.total_interest + INTEREST_TOLERANCE:
        warnings.append(
            f"Cascade interest {cascade.total_interest} exceeds separate payoff interest "
            f"{baseline.total_interest}"
        )
    if cascade.months > baseline.months + MONTHS_NOISE:
        warnings.append(
            f"Cascade takes {cascade.months} months against {baseline.months} when paid separately"
        )
    return warnings


def _is_leak_free(result: ComparisonResult) -> bool:
    """True when the cascade provably pays at least as much as the baseline each month."""
    return (
        result.strategy == AVALANCHE
        and result.redirect_scheduled
        and result.redirect_extra
        and result.cascade.stranded_surplus == 0
    )


def _check_sequence(name: str, values: Sequence[Decimal]) -> None:
    previous = None
    for month, value in enumerate(values):
        if value < 0:
            raise InvariantViolation(f"{name} balance negative in month {month}: {value}")
        if previous is not None and value > previous:
            raise InvariantViolation(
                f"{name} balance increased in month {month}: {previous} -> {value}"
            )
        previous = value


def _check_conservation(yearly: Iterable[Any]) -> None:
    contributed = sum((y.total_contributed for y in yearly), ZERO)
    applied = sum((y.total_applied for y in yearly), ZERO)
    if abs(contributed - applied) > CONSERVATION_TOLERANCE:
        raise InvariantViolation(
            f"Contributed overpayments {contributed} do not match applied {applied}"
        )


def check_invariants(result: ComparisonResult) -> None:
    """Raise ``InvariantViolation`` if ``result`` is numerically impossible."""
    baseline = result.baseline
    cascade = result.cascade
    reference = result.no_overpayment

    for label, trace in (("Baseline", baseline), ("Cascade", cascade), ("No-overpayment", reference)):
        if trace.months < 1:
            raise InvariantViolation(f"{label} finished in {trace.months} months")
        if trace.total_interest < 0:
            raise InvariantViolation(f"{label} interest is negative: {trace.total_interest}")

    _check_sequence("Baseline loan A", baseline.loan_a.balances)
    _check_sequence("Baseline loan B", baseline.loan_b.balances)
    _check_sequence("Cascade loan A", cascade.loan_a_balances)
    _check_sequence("Cascade loan B", cascade.loan_b_balances)
    _check_sequence("Cascade combined", cascade.balances)
    if cascade.loan_a_balances[-1] != 0 or cascade.loan_b_balances[-1] != 0:
        raise InvariantViolation("Cascade finished with an open balance")

    for summary in cascade.yearly:
        if summary.interest_accrued < 0:
            raise InvariantViolation(f"Negative interest in year {summary.year}")
    _check_conservation(cascade.yearly)

    # Every policy pays at least the scheduled amount on each loan.
    for label, trace in (("Baseline", baseline), ("Cascade", cascade)):
        if trace.total_interest > reference.total_interest + INTEREST_TOLERANCE:
            raise InvariantViolation(
                f"{label} interest {trace.total_interest} exceeds interest without "
                f"overpayments {reference.total_interest}"
            )
        if trace.months > reference.months:
            raise InvariantViolation(
                f"{label} takes {trace.months} months, longer than {reference.months} "
                "months without overpayments"
            )

    if _is_leak_free(result):
        if cascade.total_interest > baseline.total_interest + INTEREST_TOLERANCE:
            raise InvariantViolation(
                f"Cascade interest {cascade.total_interest} exceeds baseline "
                f"{baseline.total_interest}"
            )
        if cascade.months > baseline.months + MONTHS_NOISE:
            raise InvariantViolation(
                f"Cascade takes {cascade.months} months against baseline {baseline.months}"
            )
