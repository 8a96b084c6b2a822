"""Tests for the ratio engine."""

import math
from decimal import Decimal

import pytest

from sec_analyzer.models import (
    BalanceSheet,
    HealthStatus,
    IncomeStatement,
    KeyFinancialMetrics,
    MonetaryValue,
    RatioCategory,
)
from sec_analyzer.ratios import RATIO_SPECS, compute_key_metrics, compute_ratio_list, health_status


def mv(amount, yoy=None):
    return MonetaryValue(amount=Decimal(str(amount)), yoy_change=None if yoy is None else Decimal(str(yoy)))


@pytest.fixture
def income():
    return IncomeStatement(
        total_revenue=mv(1000, yoy=25),
        cost_of_revenue=mv(600),
        operating_income=mv(200),
        interest_expense=mv(-25),
        net_income=mv(100, yoy=-10),
    )


@pytest.fixture
def balance():
    return BalanceSheet(
        cash_and_equivalents=mv(150),
        inventory=mv(100),
        total_current_assets=mv(400),
        total_assets=mv(2000),
        total_current_liabilities=mv(200),
        total_liabilities=mv(1200),
        total_stockholders_equity=mv(800),
    )


def test_key_metrics(income, balance):
    km = compute_key_metrics(income, balance)
    assert km.gross_margin == pytest.approx(40.0)
    assert km.operating_margin == pytest.approx(20.0)
    assert km.net_profit_margin == pytest.approx(10.0)
    assert km.return_on_assets == pytest.approx(5.0)
    assert km.return_on_equity == pytest.approx(12.5)
    assert km.current_ratio == pytest.approx(2.0)
    assert km.quick_ratio == pytest.approx(1.5)
    assert km.cash_ratio == pytest.approx(0.75)
    assert km.debt_to_equity == pytest.approx(1.5)
    assert km.debt_ratio == pytest.approx(0.6)
    assert km.interest_coverage == pytest.approx(8.0)
    assert km.asset_turnover == pytest.approx(0.5)
    assert km.revenue_growth == pytest.approx(25.0)
    assert km.net_income_growth == pytest.approx(-10.0)


def test_zero_current_liabilities_gives_none():
    km = compute_key_metrics(None, BalanceSheet(total_current_assets=mv(100), total_current_liabilities=mv(0)))
    assert km.current_ratio is None
    assert km.quick_ratio is None


def test_tiny_denominators_are_clamped():
    km = compute_key_metrics(
        IncomeStatement(total_revenue=mv("1e-9"), net_income=mv(100)),
        BalanceSheet(total_current_assets=mv(100), total_current_liabilities=mv("1e-9")),
    )
    assert km.net_profit_margin == 1000.0
    assert km.current_ratio == 100.0
    for value in km.model_dump().values():
        assert value is None or math.isfinite(value)


def test_negative_equity_skips_equity_ratios():
    km = compute_key_metrics(
        IncomeStatement(net_income=mv(50)),
        BalanceSheet(total_liabilities=mv(500), total_stockholders_equity=mv(-100)),
    )
    assert km.debt_to_equity is None
    assert km.return_on_equity is None


def test_missing_statements():
    assert compute_key_metrics(None, None) == KeyFinancialMetrics()


def test_health_status_bands():
    by_field = {spec.field: spec for spec in RATIO_SPECS}
    assert health_status(by_field["net_profit_margin"], 25.0) is HealthStatus.EXCELLENT
    assert health_status(by_field["net_profit_margin"], -3.0) is HealthStatus.WARNING
    assert health_status(by_field["current_ratio"], 1.2) is HealthStatus.NEUTRAL
    assert health_status(by_field["debt_to_equity"], 0.4) is HealthStatus.EXCELLENT
    assert health_status(by_field["debt_to_equity"], 4.0) is HealthStatus.WARNING


def test_ratio_list(income, balance):
    ratios = {r.name: r for r in compute_ratio_list(compute_key_metrics(income, balance))}
    npm = ratios["Net Profit Margin"]
    assert npm.value == pytest.approx(10.0)
    assert npm.formatted_value == "10.00%"
    assert npm.health_status is HealthStatus.GOOD
    assert npm.category is RatioCategory.PROFITABILITY
    assert npm.interpretation == "Healthy net profit margin at 10.00%"

    de = ratios["Debt to Equity"]
    assert de.formatted_value == "1.50x"
    assert de.health_status is HealthStatus.NEUTRAL
    assert de.category is RatioCategory.SOLVENCY


def test_ratio_list_skips_uncomputable():
    assert compute_ratio_list(KeyFinancialMetrics()) == []
    ratios = compute_ratio_list(KeyFinancialMetrics(current_ratio=1.6))
    assert [r.name for r in ratios] == ["Current Ratio"]
