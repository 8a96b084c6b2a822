"""Ratio engine — key metrics from statements, then a graded ratio list.

Every ratio needs both operands and a non-zero denominator, and every
output is clamped to a sane bound so a misparsed cell (a denominator of
1e-9, a revenue read in the wrong unit) cannot produce an infinity.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from sec_analyzer.config import get_config
from sec_analyzer.models import (
    BalanceSheet,
    CashFlowStatement,
    FinancialRatio,
    HealthStatus,
    IncomeStatement,
    KeyFinancialMetrics,
    MonetaryValue,
    RatioCategory,
)
from sec_analyzer.numeric import clamp, fmt_multiple, fmt_pct, safe_div, safe_float

log = logging.getLogger(__name__)

INTEREST_COVERAGE_BOUNDS = (-100.0, 1_000.0)


def _amt(v: MonetaryValue | None) -> float | None:
    return safe_float(v.amount) if v is not None else None


def _yoy(v: MonetaryValue | None) -> float | None:
    return safe_float(v.yoy_change) if v is not None else None


def _pct(a: float | None, b: float | None, *, positive_denominator: bool = True) -> float | None:
    """a / b as a percentage, clamped to ±percent_ratio_bound."""
    if positive_denominator and (b is None or b <= 0):
        return None
    bound = get_config().percent_ratio_bound
    r = safe_div(a, b)
    return clamp(r * 100, -bound, bound) if r is not None else None


def _multiple(a: float | None, b: float | None) -> float | None:
    """a / b as a multiple, clamped to 0..multiple_ratio_bound."""
    r = safe_div(a, b)
    return clamp(r, 0.0, get_config().multiple_ratio_bound) if r is not None else None


# ═══════════════════════════════════════════════════════════════════════════
#  Key metrics
# ═══════════════════════════════════════════════════════════════════════════

def compute_key_metrics(
    income: IncomeStatement | None,
    balance: BalanceSheet | None,
    cash_flow: CashFlowStatement | None = None,
) -> KeyFinancialMetrics:
    """Compute profitability, liquidity, solvency and efficiency ratios."""
    income = income or IncomeStatement()
    balance = balance or BalanceSheet()

    rev = _amt(income.total_revenue)
    gp = _amt(income.gross_profit)
    cogs = _amt(income.cost_of_revenue)
    oi = _amt(income.operating_income)
    ni = _amt(income.net_income)
    interest = _amt(income.interest_expense)

    ta = _amt(balance.total_assets)
    ca = _amt(balance.total_current_assets)
    cl = _amt(balance.total_current_liabilities)
    tl = _amt(balance.total_liabilities)
    eq = _amt(balance.total_stockholders_equity)
    cash = _amt(balance.cash_and_equivalents)
    inv = _amt(balance.inventory)

    if gp is None and rev is not None and cogs is not None:
        gp = rev - abs(cogs)

    quick = None
    if ca is not None and cl is not None:
        quick = _multiple(ca - (inv or 0.0), cl)

    coverage = None
    if oi is not None and interest is not None and abs(interest) > 0:
        low, high = INTEREST_COVERAGE_BOUNDS
        coverage = clamp(safe_div(oi, abs(interest)), low, high)

    bound = get_config().percent_ratio_bound
    return KeyFinancialMetrics(
        gross_margin=_pct(gp, rev),
        operating_margin=_pct(oi, rev),
        net_profit_margin=_pct(ni, rev),
        return_on_assets=_pct(ni, ta),
        return_on_equity=_pct(ni, eq),
        current_ratio=_multiple(ca, cl),
        quick_ratio=quick,
        cash_ratio=_multiple(cash, cl),
        debt_to_equity=_multiple(tl, eq) if eq is not None and eq > 0 else None,
        debt_ratio=_multiple(tl, ta) if ta is not None and ta > 0 else None,
        interest_coverage=coverage,
        asset_turnover=_multiple(rev, ta) if ta is not None and ta > 0 else None,
        revenue_growth=clamp(_yoy(income.total_revenue), -bound, bound),
        net_income_growth=clamp(_yoy(income.net_income), -bound, bound),
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Graded ratio list
# ═══════════════════════════════════════════════════════════════════════════

class RatioSpec(NamedTuple):
    field: str
    name: str
    category: RatioCategory
    description: str
    is_percent: bool
    # (threshold, status) checked top-down with ``value >= threshold``;
    # when ``higher_is_better`` is False the comparison is ``value <= threshold``
    bands: tuple[tuple[float, HealthStatus], ...]
    higher_is_better: bool = True


_E, _G, _N, _C, _W = (
    HealthStatus.EXCELLENT, HealthStatus.GOOD, HealthStatus.NEUTRAL,
    HealthStatus.CAUTION, HealthStatus.WARNING,
)

_MARGIN_BANDS = ((20.0, _E), (10.0, _G), (5.0, _N), (0.0, _C))

RATIO_SPECS: tuple[RatioSpec, ...] = (
    RatioSpec("gross_margin", "Gross Margin", RatioCategory.PROFITABILITY,
              "Gross profit as a share of revenue", True,
              ((50.0, _E), (30.0, _G), (15.0, _N), (0.0, _C))),
    RatioSpec("operating_margin", "Operating Margin", RatioCategory.PROFITABILITY,
              "Operating income as a share of revenue", True, _MARGIN_BANDS),
    RatioSpec("net_profit_margin", "Net Profit Margin", RatioCategory.PROFITABILITY,
              "Net income as a share of revenue", True, _MARGIN_BANDS),
    RatioSpec("return_on_assets", "Return on Assets (ROA)", RatioCategory.PROFITABILITY,
              "How efficiently assets generate profit", True,
              ((10.0, _E), (5.0, _G), (2.0, _N), (0.0, _C))),
    RatioSpec("return_on_equity", "Return on Equity (ROE)", RatioCategory.PROFITABILITY,
              "Profit generated on shareholders' capital", True,
              ((20.0, _E), (15.0, _G), (10.0, _N), (0.0, _C))),
    RatioSpec("current_ratio", "Current Ratio", RatioCategory.LIQUIDITY,
              "Ability to cover short-term obligations", False,
              ((2.0, _E), (1.5, _G), (1.0, _N), (0.5, _C))),
    RatioSpec("quick_ratio", "Quick Ratio", RatioCategory.LIQUIDITY,
              "Short-term coverage excluding inventory", False,
              ((1.5, _E), (1.0, _G), (0.7, _N), (0.4, _C))),
    RatioSpec("cash_ratio", "Cash Ratio", RatioCategory.LIQUIDITY,
              "Cash on hand relative to current liabilities", False,
              ((1.0, _E), (0.5, _G), (0.2, _N), (0.1, _C))),
    RatioSpec("debt_to_equity", "Debt to Equity", RatioCategory.SOLVENCY,
              "Total liabilities relative to shareholders' equity", False,
              ((0.5, _E), (1.0, _G), (2.0, _N), (3.0, _C)), higher_is_better=False),
    RatioSpec("debt_ratio", "Debt Ratio", RatioCategory.SOLVENCY,
              "Share of assets financed by liabilities", False,
              ((0.3, _E), (0.5, _G), (0.7, _N), (0.9, _C)), higher_is_better=False),
    RatioSpec("interest_coverage", "Interest Coverage", RatioCategory.SOLVENCY,
              "Operating income relative to interest expense", False,
              ((8.0, _E), (4.0, _G), (2.0, _N), (1.0, _C))),
    RatioSpec("asset_turnover", "Asset Turnover", RatioCategory.EFFICIENCY,
              "Revenue generated per dollar of assets", False,
              ((1.5, _E), (1.0, _G), (0.5, _N), (0.2, _C))),
)

_INTERPRETATIONS: dict[HealthStatus, str] = {
    _E: "Very strong",
    _G: "Healthy",
    _N: "In line with typical levels",
    _C: "Needs attention",
    _W: "Weak",
}


def health_status(spec: RatioSpec, value: float) -> HealthStatus:
    for threshold, status in spec.bands:
        if (value >= threshold) if spec.higher_is_better else (value <= threshold):
            return status
    return _W


def compute_ratio_list(key_metrics: KeyFinancialMetrics) -> list[FinancialRatio]:
    """Graded ``FinancialRatio`` entries for every computable key metric."""
    ratios: list[FinancialRatio] = []
    for spec in RATIO_SPECS:
        value = getattr(key_metrics, spec.field)
        if value is None:
            continue
        status = health_status(spec, value)
        formatted = fmt_pct(value) if spec.is_percent else fmt_multiple(value)
        ratios.append(FinancialRatio(
            name=spec.name,
            value=round(value, 4),
            formatted_value=formatted,
            description=spec.description,
            interpretation=f"{_INTERPRETATIONS[status]} {spec.name.lower()} at {formatted}",
            health_status=status,
            category=spec.category,
        ))
    log.debug("Computed %d graded ratios", len(ratios))
    return ratios
