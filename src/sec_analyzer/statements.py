"""Statement builder — merged metrics → income statement, balance sheet,
cash-flow statement, key ratios, data-quality grade and validation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from sec_analyzer.merger import metric_map
from sec_analyzer.models import (
    BalanceSheet,
    CanonicalCategory as C,
    CashFlowStatement,
    DataQuality,
    ExtendedFinancialMetric,
    IncomeStatement,
    MetricSource,
    MonetaryValue,
    PeriodType,
    StructuredFinancialData,
    ValidationWarning,
)
from sec_analyzer.numeric import fmt_money, safe_float
from sec_analyzer.ratios import compute_key_metrics

log = logging.getLogger(__name__)

CORE_CATEGORIES: tuple[C, ...] = (
    C.REVENUE, C.NET_INCOME, C.TOTAL_ASSETS, C.TOTAL_LIABILITIES, C.TOTAL_EQUITY,
)

# ═══════════════════════════════════════════════════════════════════════════
#  Field → category tables
# ═══════════════════════════════════════════════════════════════════════════

_INCOME_FIELDS: dict[str, C] = {
    "total_revenue": C.REVENUE,
    "cost_of_revenue": C.COST_OF_REVENUE,
    "gross_profit": C.GROSS_PROFIT,
    "research_and_development": C.RD_EXPENSE,
    "selling_general_admin": C.SGA_EXPENSE,
    "operating_income": C.OPERATING_INCOME,
    "interest_expense": C.INTEREST_EXPENSE,
    "interest_income": C.INTEREST_INCOME,
    "income_before_tax": C.INCOME_BEFORE_TAX,
    "income_tax_expense": C.INCOME_TAX,
    "depreciation": C.DEPRECIATION,
    "ebitda": C.EBITDA,
    "net_income": C.NET_INCOME,
}

_BALANCE_FIELDS: dict[str, C] = {
    "cash_and_equivalents": C.CASH,
    "accounts_receivable": C.RECEIVABLES,
    "inventory": C.INVENTORY,
    "total_current_assets": C.CURRENT_ASSETS,
    "total_assets": C.TOTAL_ASSETS,
    "accounts_payable": C.PAYABLES,
    "total_current_liabilities": C.CURRENT_LIABILITIES,
    "long_term_debt": C.LONG_TERM_DEBT,
    "total_liabilities": C.TOTAL_LIABILITIES,
    "retained_earnings": C.RETAINED_EARNINGS,
    "total_stockholders_equity": C.TOTAL_EQUITY,
}

_CASH_FLOW_FIELDS: dict[str, C] = {
    "net_cash_from_operating": C.OPERATING_CASH_FLOW,
    "capital_expenditures": C.CAPEX,
    "net_cash_from_investing": C.INVESTING_CASH_FLOW,
    "dividends_paid": C.DIVIDENDS_PAID,
    "net_cash_from_financing": C.FINANCING_CASH_FLOW,
    "free_cash_flow": C.FREE_CASH_FLOW,
}


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def monetary(metric: ExtendedFinancialMetric | None) -> MonetaryValue | None:
    if metric is None or metric.raw_value is None:
        return None
    return MonetaryValue(
        amount=metric.raw_value,
        yoy_change=metric.yoy_change,
        confidence=metric.confidence,
        formatted=metric.formatted_value,
    )


def build_income_statement(
    m: dict[C, ExtendedFinancialMetric],
    period: str | None = None,
    period_type: PeriodType | None = None,
) -> IncomeStatement | None:
    fields = {name: monetary(m.get(cat)) for name, cat in _INCOME_FIELDS.items()}
    basic = m.get(C.EPS_BASIC)
    diluted = m.get(C.EPS_DILUTED)
    if not any(fields.values()) and basic is None and diluted is None:
        return None
    return IncomeStatement(
        period_ending=period,
        period_type=period_type,
        basic_eps=basic.raw_value if basic else None,
        diluted_eps=diluted.raw_value if diluted else None,
        **fields,
    )


def build_balance_sheet(
    m: dict[C, ExtendedFinancialMetric],
    period: str | None = None,
) -> BalanceSheet | None:
    fields = {name: monetary(m.get(cat)) for name, cat in _BALANCE_FIELDS.items()}
    if not any(fields.values()):
        return None
    return BalanceSheet(period_ending=period, **fields)


def build_cash_flow_statement(
    m: dict[C, ExtendedFinancialMetric],
    period: str | None = None,
    period_type: PeriodType | None = None,
) -> CashFlowStatement | None:
    fields = {name: monetary(m.get(cat)) for name, cat in _CASH_FLOW_FIELDS.items()}
    if fields["free_cash_flow"] is None:
        fields["free_cash_flow"] = _derived_fcf(fields["net_cash_from_operating"], fields["capital_expenditures"])
    if not any(fields.values()):
        return None
    return CashFlowStatement(period_ending=period, period_type=period_type, **fields)


def build_structured_data(
    metrics: Iterable[ExtendedFinancialMetric],
    company_name: str | None = None,
    report_type: str | None = None,
    period: str | None = None,
    *,
    period_type: PeriodType | None = None,
    fiscal_year: str | None = None,
    fiscal_period: str | None = None,
) -> StructuredFinancialData:
    """Assemble the statements, ratios and quality grade from merged metrics."""
    metrics = list(metrics)
    m = metric_map(metrics)

    income = build_income_statement(m, period, period_type)
    balance = build_balance_sheet(m, period)
    cash_flow = build_cash_flow_statement(m, period, period_type)
    key_metrics = compute_key_metrics(income, balance, cash_flow)
    quality, confidence = assess_data_quality(metrics)
    warnings = validate_metrics(m)

    log.info(
        "Structured data: quality=%s confidence=%.2f warnings=%d",
        quality.value, confidence, len(warnings),
    )
    return StructuredFinancialData(
        company_name=company_name,
        report_type=report_type,
        fiscal_year=fiscal_year,
        fiscal_period=fiscal_period,
        income_statement=income,
        balance_sheet=balance,
        cash_flow_statement=cash_flow,
        key_metrics=key_metrics,
        data_quality=quality,
        parsing_confidence=confidence,
        validation=tuple(warnings),
    )


def assess_data_quality(metrics: Iterable[ExtendedFinancialMetric]) -> tuple[DataQuality, float]:
    """Grade extraction quality and return it with the average confidence."""
    metrics = list(metrics)
    if not metrics:
        return DataQuality.UNKNOWN, 0.0
    avg = round(sum(m.confidence for m in metrics) / len(metrics), 4)
    found = {m.category for m in metrics}
    core = sum(1 for c in CORE_CATEGORIES if c in found)
    has_table = any(m.source is MetricSource.TABLE for m in metrics)

    if core >= 4 and avg >= 0.8 and has_table:
        return DataQuality.HIGH, avg
    if core >= 3 and avg >= 0.6:
        return DataQuality.MEDIUM, avg
    if core >= 1:
        return DataQuality.LOW, avg
    return DataQuality.UNKNOWN, avg


# ═══════════════════════════════════════════════════════════════════════════
#  Validation
# ═══════════════════════════════════════════════════════════════════════════

def validate_metrics(m: dict[C, ExtendedFinancialMetric]) -> list[ValidationWarning]:
    """Run validation rules on merged metrics to flag data quality issues."""
    warnings: list[ValidationWarning] = []

    def v(cat: C) -> float | None:
        metric = m.get(cat)
        return safe_float(metric.raw_value) if metric else None

    rev = v(C.REVENUE)
    ni = v(C.NET_INCOME)
    ta = v(C.TOTAL_ASSETS)
    tl = v(C.TOTAL_LIABILITIES)
    eq = v(C.TOTAL_EQUITY)
    gp = v(C.GROSS_PROFIT)

    # Rule 1: Revenue must exceed net income for profitable companies
    if rev is not None and ni is not None and rev > 0 and ni > 0 and ni > rev:
        warnings.append(ValidationWarning(
            rule="revenue_gt_net_income",
            severity="error",
            message=(
                f"Net income ({fmt_money(ni)}) exceeds revenue ({fmt_money(rev)}). "
                f"Revenue row may be a segment rather than the total."
            ),
        ))

    # Rule 2: Accounting equation: A = L + E (within 5% tolerance)
    if ta is not None and tl is not None and eq is not None and ta != 0:
        expected = tl + eq
        diff_pct = abs(ta - expected) / abs(ta)
        if diff_pct > 0.05:
            warnings.append(ValidationWarning(
                rule="accounting_equation",
                severity="warning",
                message=(
                    f"Assets ({fmt_money(ta)}) != Liabilities ({fmt_money(tl)}) + "
                    f"Equity ({fmt_money(eq)}) = {fmt_money(expected)}. "
                    f"Difference: {diff_pct:.1%}"
                ),
            ))

    # Rule 3: Gross margin range
    if gp is not None and rev is not None and rev > 0:
        gm = gp / rev
        if gm < 0 or gm > 1.0:
            warnings.append(ValidationWarning(
                rule="gross_margin_range",
                severity="warning",
                message=f"Gross margin {gm:.1%} outside 0-100% range.",
            ))

    # Rule 4/5: core income figures missing
    if rev is None:
        warnings.append(ValidationWarning(
            rule="revenue_missing",
            severity="info",
            message="Could not resolve total revenue from the document.",
        ))
    if ni is None:
        warnings.append(ValidationWarning(
            rule="net_income_missing",
            severity="info",
            message="Could not resolve net income from the document.",
        ))

    # Rule 6: Net margin sanity (> 100% or < -100%)
    if rev is not None and ni is not None and rev > 0 and abs(ni / rev) > 1.0:
        warnings.append(ValidationWarning(
            rule="net_margin_range",
            severity="warning",
            message=f"Net margin {ni / rev:.1%} is outside -100%..100%; check units.",
        ))

    return warnings


def _derived_fcf(ocf: MonetaryValue | None, capex: MonetaryValue | None) -> MonetaryValue | None:
    """Free cash flow = operating cash flow − |capital expenditures|."""
    if ocf is None or capex is None:
        return None
    amount: Decimal = ocf.amount - abs(capex.amount)
    return MonetaryValue(
        amount=amount,
        confidence=round(min(ocf.confidence, capex.confidence), 4),
        formatted=fmt_money(amount),
    )
