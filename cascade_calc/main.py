"""Command-line interface for the cascade calculator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compare pooled overpayments against paying two loans separately,
print the month-by-month balances, or put the avalanche and snowball
strategies side by side. Results can be printed to the terminal or exported
to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import re
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .comparison import compare, compare_strategies
from .data_models import (
    Attribution,
    BaselineTrace,
    CascadeTrace,
    ComparisonResult,
    LoanTerms,
    SimulationTrace,
    YearlySummary,
)
from .engine import STRATEGIES
from .errors import SimulationError
from .formatter import (
    print_attribution,
    print_balances,
    print_comparison,
    print_summary,
    print_yearly,
)
from .utils import parse_year_month

logger = logging.getLogger(__name__)

_TERM_PATTERN = re.compile(r"^(?:(\d+)\s*y)?\s*(?:(\d+)\s*m?)?$")


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_term(value: str) -> int:
    """Parse a loan term in months.

    Accepts a month count ("300"), years ("25y") or both ("14y5m").
    """
    cleaned = value.strip().lower()
    match = _TERM_PATTERN.match(cleaned)
    if not cleaned or not match or not any(match.groups()):
        raise click.BadParameter(f"Invalid term: {value}")
    years, months = match.groups()
    return int(years or 0) * 12 + int(months or 0)


def build_loan(balance: str, rate: float, term: str) -> Dict[str, Any]:
    """Build the raw loan mapping handed to the engine from CLI strings."""
    return {"balance": parse_amount(balance), "rate": rate, "months": parse_term(term)}


def _money(value: Decimal) -> float:
    return float(value)


def _sequence(values) -> List[float]:
    return [float(v) for v in values]


def _loan_to_dict(loan: LoanTerms) -> Dict[str, Any]:
    return {"balance": _money(loan.balance), "rate": float(loan.rate), "months": loan.months}


def _single_to_dict(trace: SimulationTrace) -> Dict[str, Any]:
    return {
        "months": trace.months,
        "interest": _money(trace.total_interest),
        "scheduled_payment": _money(trace.scheduled_payment),
        "balances": _sequence(trace.balances),
    }


def _baseline_to_dict(trace: BaselineTrace) -> Dict[str, Any]:
    return {
        "months": trace.months,
        "interest": _money(trace.total_interest),
        "balances": _sequence(trace.balances),
        "loan_a": _single_to_dict(trace.loan_a),
        "loan_b": _single_to_dict(trace.loan_b),
    }


def _yearly_to_dict(y: YearlySummary) -> Dict[str, Any]:
    return {
        "year": y.year,
        "interest": _money(y.interest_accrued),
        "contributed_by_loan_a": _money(y.contributed_by_loan_a),
        "contributed_by_loan_b": _money(y.contributed_by_loan_b),
        "extra_applied_to_loan_a": _money(y.extra_applied_to_loan_a),
        "extra_applied_to_loan_b": _money(y.extra_applied_to_loan_b),
        "end_balance_loan_a": _money(y.end_balance_loan_a),
        "end_balance_loan_b": _money(y.end_balance_loan_b),
    }


def _attribution_to_dict(attr: Attribution) -> Dict[str, float]:
    return {
        "a_to_a": _money(attr.a_to_a),
        "a_to_b": _money(attr.a_to_b),
        "b_to_a": _money(attr.b_to_a),
        "b_to_b": _money(attr.b_to_b),
    }


def _cascade_to_dict(trace: CascadeTrace) -> Dict[str, Any]:
    return {
        "months": trace.months,
        "interest": _money(trace.total_interest),
        "interest_loan_a": _money(trace.interest_loan_a),
        "interest_loan_b": _money(trace.interest_loan_b),
        "balances": _sequence(trace.balances),
        "loan_a_balances": _sequence(trace.loan_a_balances),
        "loan_b_balances": _sequence(trace.loan_b_balances),
        "yearly": [_yearly_to_dict(y) for y in trace.yearly],
        "attribution": _attribution_to_dict(trace.attribution),
        "stranded_surplus": _money(trace.stranded_surplus),
        "effective_rate": float(trace.effective_rate),
    }


def comparison_to_dict(result: ComparisonResult) -> Dict[str, Any]:
    """Convert a comparison into JSON-serialisable dictionaries."""
    return {
        "loan_a": _loan_to_dict(result.loan_a),
        "loan_b": _loan_to_dict(result.loan_b),
        "extra_a": _money(result.extra_a),
        "extra_b": _money(result.extra_b),
        "strategy": result.strategy,
        "redirect_scheduled": result.redirect_scheduled,
        "redirect_extra": result.redirect_extra,
        "scheduled_payment_a": _money(result.scheduled_payment_a),
        "scheduled_payment_b": _money(result.scheduled_payment_b),
        "months_saved": result.months_saved,
        "interest_saved": _money(result.interest_saved),
        "baseline": _baseline_to_dict(result.baseline),
        "cascade": _cascade_to_dict(result.cascade),
        "no_overpayment": _baseline_to_dict(result.no_overpayment),
        "warnings": list(result.warnings),
    }


def export_to_json(path: Path, result: ComparisonResult) -> None:
    """Export a comparison to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(comparison_to_dict(result), f, indent=2)


def export_to_csv(path: Path, result: ComparisonResult) -> None:
    """Export the cascade's yearly payment flow to a CSV file."""
    header = [
        "Year",
        "Interest",
        "Contributed_By_A",
        "Contributed_By_B",
        "Applied_To_A",
        "Applied_To_B",
        "End_Balance_A",
        "End_Balance_B",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for y in result.cascade.yearly:
            writer.writerow(
                [
                    y.year,
                    float(y.interest_accrued),
                    float(y.contributed_by_loan_a),
                    float(y.contributed_by_loan_b),
                    float(y.extra_applied_to_loan_a),
                    float(y.extra_applied_to_loan_b),
                    float(y.end_balance_loan_a),
                    float(y.end_balance_loan_b),
                ]
            )


def _run(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call into the engine, turning its errors into click errors."""
    try:
        return func(*args, **kwargs)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    except SimulationError as exc:
        logger.debug("Simulation failed", exc_info=True)
        raise click.ClickException(f"Computation failed: {exc}")


def loan_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options describing both loans and their overpayments."""
    options = [
        click.option("--balance-a", "balance_a", required=True, help="Loan A balance (e.g. 200k)"),
        click.option("--rate-a", "rate_a", required=True, type=float, help="Loan A annual rate (percent)"),
        click.option("--term-a", "term_a", required=True, help="Loan A remaining term (300, 25y or 14y5m)"),
        click.option("--extra-a", "extra_a", default="0", help="Monthly overpayment for loan A"),
        click.option("--balance-b", "balance_b", required=True, help="Loan B balance"),
        click.option("--rate-b", "rate_b", required=True, type=float, help="Loan B annual rate (percent)"),
        click.option("--term-b", "term_b", required=True, help="Loan B remaining term"),
        click.option("--extra-b", "extra_b", default="0", help="Monthly overpayment for loan B"),
        click.option(
            "--redirect-scheduled/--no-redirect-scheduled",
            default=True,
            help="Redirect a paid-off loan's scheduled payment to the other loan",
        ),
        click.option(
            "--redirect-extra/--no-redirect-extra",
            default=True,
            help="Keep a paid-off loan's overpayment going to the other loan",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _loans_from_options(opts: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "loan_a": build_loan(opts["balance_a"], opts["rate_a"], opts["term_a"]),
        "loan_b": build_loan(opts["balance_b"], opts["rate_b"], opts["term_b"]),
        "extra_a": parse_amount(opts["extra_a"]),
        "extra_b": parse_amount(opts["extra_b"]),
        "redirect_scheduled": opts["redirect_scheduled"],
        "redirect_extra": opts["redirect_extra"],
    }


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Compare paying two loans separately with pooling overpayments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("compare")
@loan_options
@click.option("--strategy", type=click.Choice(STRATEGIES), default="avalanche", help="Which loan receives the pool")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM) for payoff dates")
@click.option("--yearly", is_flag=True, help="Also print the year-by-year payment flow")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def compare_command(strategy: str, start_date: Optional[str], yearly: bool, output: Optional[str], **opts: Any) -> None:
    """Compare the cascade against paying each loan separately."""
    start: Optional[date] = None
    if start_date:
        try:
            start = parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    result = _run(compare, strategy=strategy, **_loans_from_options(opts))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Comparison exported to {path}")
        return
    print_summary(result, start)
    print_attribution(result)
    if yearly:
        print_yearly(result)


@cli.command("schedule")
@loan_options
@click.option("--strategy", type=click.Choice(STRATEGIES), default="avalanche", help="Which loan receives the pool")
@click.option("--all", "show_all", is_flag=True, help="Print every month instead of the first 120")
def schedule_command(strategy: str, show_all: bool, **opts: Any) -> None:
    """Print month-by-month balances of the cascade and the separate payoff."""
    result = _run(compare, strategy=strategy, **_loans_from_options(opts))
    max_rows = 121
    rows = len(result.cascade.balances)
    if not show_all and rows > max_rows:
        click.echo(f"Schedule has {rows} rows; showing first {max_rows} rows.")
        print_balances(result, max_rows)
    else:
        print_balances(result)


@cli.command("strategies")
@loan_options
def strategies_command(**opts: Any) -> None:
    """Put the avalanche and snowball strategies side by side."""
    results = _run(compare_strategies, **_loans_from_options(opts))
    print_comparison(results)


if __name__ == "__main__":
    cli()
