import json

import click
import pytest
from click.testing import CliRunner

from cascade_calc.comparison import compare
from cascade_calc.formatter import print_yearly
from cascade_calc.main import cli, parse_amount, parse_term

LOANS = [
    "--balance-a", "200k",
    "--rate-a", "5",
    "--term-a", "25y",
    "--extra-a", "500",
    "--balance-b", "150,000",
    "--rate-b", "3",
    "--term-b", "300",
    "--extra-b", "300",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.mark.parametrize("value,expected", [("500k", 500_000.0), ("1.5m", 1_500_000.0), ("2,500", 2500.0)])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value,expected", [("300", 300), ("25y", 300), ("14y5m", 173), ("7m", 7)])
def test_parse_term(value, expected):
    assert parse_term(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "y"])
def test_parse_term_rejects_garbage(value):
    with pytest.raises(click.BadParameter):
        parse_term(value)


def test_compare_prints_summary(runner):
    result = runner.invoke(cli, ["compare", *LOANS, "--start-date", "2026-01", "--yearly"])
    assert result.exit_code == 0, result.output
    assert "Scheduled payment A: 1169.18" in result.output
    assert "Interest saved" in result.output
    assert "Overpayment attribution" in result.output
    assert "Year\tInterest" in result.output


def test_compare_exports_json(runner, tmp_path):
    path = tmp_path / "result.json"
    result = runner.invoke(cli, ["compare", *LOANS, "--output", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["strategy"] == "avalanche"
    assert data["cascade"]["months"] <= data["baseline"]["months"]
    assert data["cascade"]["balances"][0] == 350000.0
    assert set(data["cascade"]["attribution"]) == {"a_to_a", "a_to_b", "b_to_a", "b_to_b"}


def test_compare_exports_csv(runner, tmp_path):
    path = tmp_path / "yearly.csv"
    result = runner.invoke(cli, ["compare", *LOANS, "--output", str(path)])
    assert result.exit_code == 0, result.output
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Year,Interest")
    assert len(lines) > 2


def test_compare_rejects_unknown_output(runner, tmp_path):
    result = runner.invoke(cli, ["compare", *LOANS, "--output", str(tmp_path / "out.xml")])
    assert result.exit_code != 0


def test_schedule_truncates(runner):
    result = runner.invoke(cli, ["schedule", *LOANS])
    assert result.exit_code == 0, result.output
    assert "showing first 121 rows" in result.output


def test_strategies_side_by_side(runner):
    result = runner.invoke(cli, ["strategies", *LOANS, "--no-redirect-extra"])
    assert result.exit_code == 0, result.output
    assert "avalanche" in result.output
    assert "snowball" in result.output
    assert "total_interest" in result.output


def test_simulation_failure_is_reported(runner, monkeypatch):
    monkeypatch.setattr("cascade_calc.engine.MAX_MONTHS", 3)
    result = runner.invoke(cli, ["compare", *LOANS])
    assert result.exit_code == 1
    assert "Computation failed" in result.output


def test_yearly_table_ends_with_totals(mortgage_a, mortgage_b, capsys):
    result = compare(mortgage_a, mortgage_b, 500, 300)
    print_yearly(result)
    last = capsys.readouterr().out.splitlines()[-1].split("\t")
    attribution = result.cascade.attribution
    assert last[0] == "Total"
    assert last[1] == f"{result.cascade.total_interest:.2f}"
    assert last[2] == f"{attribution.from_loan_a:.2f}"
    assert last[3] == f"{attribution.from_loan_b:.2f}"
    assert last[4] == f"{attribution.to_loan_a:.2f}"
    assert last[5] == f"{attribution.to_loan_b:.2f}"
    assert last[6:] == ["-", "-"]
