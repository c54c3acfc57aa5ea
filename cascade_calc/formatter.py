"""Output helpers for the cascade calculator.

This module provides simple functions to render comparison results, yearly
payment flows and monthly balances in a tabular text format. We rely only on
built-in printing and string formatting, like the rest of the command-line
output.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Optional

from .data_models import ComparisonResult
from .utils import add_months, format_months


def _payoff_label(months: int, start: Optional[date]) -> str:
    if start is None:
        return format_months(months)
    return f"{add_months(start, months).strftime('%Y-%m')} ({format_months(months)})"


def print_summary(result: ComparisonResult, start: Optional[date] = None) -> None:
    """Print the cascade against the separate and no-overpayment scenarios."""
    cascade = result.cascade
    baseline = result.baseline
    reference = result.no_overpayment
    print("Summary")
    print("-" * 72)
    print(f"Scheduled payment A: {result.scheduled_payment_a:.2f}")
    print(f"Scheduled payment B: {result.scheduled_payment_b:.2f}")
    print(f"Strategy           : {result.strategy}")
    print(
        "Redirects          : "
        f"scheduled={'on' if result.redirect_scheduled else 'off'}, "
        f"extra={'on' if result.redirect_extra else 'off'}"
    )
    print("-" * 72)
    print(f"{'Scenario':24s} {'Debt free':>26s} {'Total interest':>18s}")
    rows = [
        ("Cascade", cascade.months, cascade.total_interest),
        ("Separate (same extras)", baseline.months, baseline.total_interest),
        ("No overpayments", reference.months, reference.total_interest),
    ]
    for label, months, interest in rows:
        print(f"{label:24s} {_payoff_label(months, start):>26s} {interest:18.2f}")
    print("-" * 72)
    print(f"Interest saved     : {result.interest_saved:.2f}")
    if result.months_saved:
        print(f"Term reduction     : {format_months(result.months_saved)}")
    if cascade.effective_rate:
        print(f"Effective rate     : {cascade.effective_rate:.2f}%")
    if cascade.stranded_surplus:
        print(f"Unapplied surplus  : {cascade.stranded_surplus:.2f}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    print("-" * 72)


def print_attribution(result: ComparisonResult) -> None:
    """Print where each loan's overpayment budget ended up."""
    attr = result.cascade.attribution
    print("Overpayment attribution")
    print(f"{'From':8s} {'To A':>15s} {'To B':>15s} {'Total':>15s}")
    print(f"{'Loan A':8s} {attr.a_to_a:15.2f} {attr.a_to_b:15.2f} {attr.from_loan_a:15.2f}")
    print(f"{'Loan B':8s} {attr.b_to_a:15.2f} {attr.b_to_b:15.2f} {attr.from_loan_b:15.2f}")


def print_yearly(result: ComparisonResult) -> None:
    """Print the year-by-year payment flow of the cascade."""
    headers = ["Year", "Interest", "FromA", "FromB", "ToA", "ToB", "EndBalA", "EndBalB"]
    print("\t".join(headers))
    for y in result.cascade.yearly:
        row = [
            str(y.year),
            f"{y.interest_accrued:.2f}",
            f"{y.contributed_by_loan_a:.2f}",
            f"{y.contributed_by_loan_b:.2f}",
            f"{y.extra_applied_to_loan_a:.2f}",
            f"{y.extra_applied_to_loan_b:.2f}",
            f"{y.end_balance_loan_a:.2f}",
            f"{y.end_balance_loan_b:.2f}",
        ]
        print("\t".join(row))
    yearly = result.cascade.yearly
    totals = [
        "Total",
        f"{sum(y.interest_accrued for y in yearly):.2f}",
        f"{sum(y.contributed_by_loan_a for y in yearly):.2f}",
        f"{sum(y.contributed_by_loan_b for y in yearly):.2f}",
        f"{sum(y.extra_applied_to_loan_a for y in yearly):.2f}",
        f"{sum(y.extra_applied_to_loan_b for y in yearly):.2f}",
        "-",
        "-",
    ]
    print("\t".join(totals))


def print_balances(result: ComparisonResult, max_rows: Optional[int] = None) -> None:
    """Print month-by-month balances of the cascade next to the baseline.

    Month 0 is the opening balance. ``max_rows`` limits the number of months
    printed.
    """
    cascade = result.cascade
    baseline_a = result.baseline.loan_a_balances
    baseline_b = result.baseline.loan_b_balances
    length = max(len(cascade.balances), len(baseline_a))
    if max_rows is not None:
        length = min(length, max_rows)
    print("\t".join(["Month", "CascadeA", "CascadeB", "Cascade", "SeparateA", "SeparateB", "Separate"]))
    for i in range(length):
        casc_a = cascade.loan_a_balances[i] if i < len(cascade.loan_a_balances) else 0
        casc_b = cascade.loan_b_balances[i] if i < len(cascade.loan_b_balances) else 0
        base_a = baseline_a[i] if i < len(baseline_a) else 0
        base_b = baseline_b[i] if i < len(baseline_b) else 0
        row = [
            str(i),
            f"{casc_a:.2f}",
            f"{casc_b:.2f}",
            f"{casc_a + casc_b:.2f}",
            f"{base_a:.2f}",
            f"{base_b:.2f}",
            f"{base_a + base_b:.2f}",
        ]
        print("\t".join(row))


def print_comparison(results: Dict[str, ComparisonResult]) -> None:
    """Print strategies side by side.

    The difference column is ``second - first``; a negative value means the
    second strategy is cheaper or shorter.
    """
    names = list(results)
    first, second = results[names[0]], results[names[1]]
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {names[0]:>15s} {names[1]:>15s} {'Difference':>15s}")
    metrics = [
        ("total_interest", lambda r: r.cascade.total_interest),
        ("months", lambda r: r.cascade.months),
        ("interest_saved", lambda r: r.interest_saved),
        ("effective_rate", lambda r: r.cascade.effective_rate),
    ]
    for key, getter in metrics:
        v1 = getter(first)
        v2 = getter(second)
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {v2 - v1:15.2f}")
    print("=" * 72)
