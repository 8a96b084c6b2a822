"""Regex extraction of headline figures from running text.

This is the last-resort source: it looks for "<term> $<number> [unit]"
patterns such as ``Total Revenue $1,000 million`` anywhere in the clean
text.  Each term carries a weight; confidence decays with every further
match of the same term so the first mention wins.  The module also hosts
the document-level detectors (unit, period, period type) that the table
parser shares.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from sec_analyzer.config import get_config
from sec_analyzer.models import (
    CanonicalCategory as C,
    ExtendedFinancialMetric,
    MetricSource,
    MetricUnit,
    PeriodType,
)
from sec_analyzer.numeric import fmt_money

log = logging.getLogger(__name__)


class PatternTerm(NamedTuple):
    term: str
    category: C
    weight: float


# Ordered; "Net Income (Loss)" and friends come before their shorter forms.
PATTERN_TERMS: tuple[PatternTerm, ...] = (
    PatternTerm("Total Revenues", C.REVENUE, 1.0),
    PatternTerm("Total Revenue", C.REVENUE, 1.0),
    PatternTerm("Total Net Sales", C.REVENUE, 0.95),
    PatternTerm("Net Revenues", C.REVENUE, 0.95),
    PatternTerm("Net Revenue", C.REVENUE, 0.95),
    PatternTerm("Total Sales", C.REVENUE, 0.9),
    PatternTerm("Net Sales", C.REVENUE, 0.9),
    PatternTerm("Revenues", C.REVENUE, 0.8),
    PatternTerm("Revenue", C.REVENUE, 0.8),
    PatternTerm("Sales", C.REVENUE, 0.7),
    PatternTerm("Cost of Revenues", C.COST_OF_REVENUE, 1.0),
    PatternTerm("Cost of Revenue", C.COST_OF_REVENUE, 1.0),
    PatternTerm("Cost of Sales", C.COST_OF_REVENUE, 0.95),
    PatternTerm("COGS", C.COST_OF_REVENUE, 0.9),
    PatternTerm("Gross Profit", C.GROSS_PROFIT, 1.0),
    PatternTerm("Gross Margin", C.GROSS_PROFIT, 0.9),
    PatternTerm("Operating Income", C.OPERATING_INCOME, 1.0),
    PatternTerm("Operating Profit", C.OPERATING_INCOME, 0.95),
    PatternTerm("Income from Operations", C.OPERATING_INCOME, 0.95),
    PatternTerm("Net Income (Loss)", C.NET_INCOME, 1.0),
    PatternTerm("Net Income", C.NET_INCOME, 1.0),
    PatternTerm("Net Earnings", C.NET_INCOME, 0.95),
    PatternTerm("Net Profit", C.NET_INCOME, 0.95),
    PatternTerm("Net Loss", C.NET_INCOME, 0.9),
    PatternTerm("Adjusted EBITDA", C.EBITDA, 0.95),
    PatternTerm("EBITDA", C.EBITDA, 1.0),
    PatternTerm("Total Current Assets", C.CURRENT_ASSETS, 1.0),
    PatternTerm("Current Assets", C.CURRENT_ASSETS, 0.95),
    PatternTerm("Total Assets", C.TOTAL_ASSETS, 1.0),
    PatternTerm("Cash and Cash Equivalents", C.CASH, 1.0),
    PatternTerm("Cash and Equivalents", C.CASH, 0.95),
    PatternTerm("Cash", C.CASH, 0.7),
    PatternTerm("Accounts Receivable", C.RECEIVABLES, 1.0),
    PatternTerm("Trade Receivables", C.RECEIVABLES, 0.95),
    PatternTerm("Inventories", C.INVENTORY, 1.0),
    PatternTerm("Inventory", C.INVENTORY, 0.9),
    PatternTerm("Total Current Liabilities", C.CURRENT_LIABILITIES, 1.0),
    PatternTerm("Current Liabilities", C.CURRENT_LIABILITIES, 0.95),
    PatternTerm("Total Liabilities", C.TOTAL_LIABILITIES, 1.0),
    PatternTerm("Long-term Debt", C.LONG_TERM_DEBT, 1.0),
    PatternTerm("Long Term Debt", C.LONG_TERM_DEBT, 1.0),
    PatternTerm("Total Debt", C.LONG_TERM_DEBT, 0.9),
    PatternTerm("Total Stockholders' Equity", C.TOTAL_EQUITY, 1.0),
    PatternTerm("Total Shareholders' Equity", C.TOTAL_EQUITY, 1.0),
    PatternTerm("Total Equity", C.TOTAL_EQUITY, 1.0),
    PatternTerm("Stockholders' Equity", C.TOTAL_EQUITY, 0.95),
    PatternTerm("Shareholders' Equity", C.TOTAL_EQUITY, 0.95),
    PatternTerm("Retained Earnings", C.RETAINED_EARNINGS, 1.0),
    PatternTerm("Accumulated Deficit", C.RETAINED_EARNINGS, 0.9),
    PatternTerm("Net Cash Provided by Operating Activities", C.OPERATING_CASH_FLOW, 1.0),
    PatternTerm("Operating Cash Flow", C.OPERATING_CASH_FLOW, 1.0),
    PatternTerm("Cash from Operations", C.OPERATING_CASH_FLOW, 0.95),
    PatternTerm("Investing Cash Flow", C.INVESTING_CASH_FLOW, 1.0),
    PatternTerm("Financing Cash Flow", C.FINANCING_CASH_FLOW, 1.0),
    PatternTerm("Free Cash Flow", C.FREE_CASH_FLOW, 1.0),
    PatternTerm("Capital Expenditures", C.CAPEX, 1.0),
    PatternTerm("CapEx", C.CAPEX, 0.9),
    PatternTerm("Interest Expense", C.INTEREST_EXPENSE, 1.0),
    PatternTerm("Research and Development", C.RD_EXPENSE, 1.0),
    PatternTerm("R&D Expense", C.RD_EXPENSE, 1.0),
    PatternTerm("SG&A", C.SGA_EXPENSE, 1.0),
    PatternTerm("Depreciation", C.DEPRECIATION, 1.0),
    PatternTerm("Basic Earnings Per Share", C.EPS_BASIC, 1.0),
    PatternTerm("Diluted Earnings Per Share", C.EPS_DILUTED, 1.0),
    PatternTerm("Basic EPS", C.EPS_BASIC, 0.95),
    PatternTerm("Diluted EPS", C.EPS_DILUTED, 0.95),
    PatternTerm("Earnings Per Share", C.EPS_BASIC, 0.8),
    PatternTerm("EPS", C.EPS_BASIC, 0.7),
)

_NEGATIVE_TERMS = frozenset({"net loss", "accumulated deficit"})

_NUMBER_TAIL = (
    r"[:\s|]*(\()?\s*\$?\s*(\()?\s*(\d[\d,]*(?:\.\d+)?)\s*(\))?"
    r"(?:\s*(million|billion|thousand|mm|m|b|k)\b)?"
)

_TERM_RES: tuple[tuple[PatternTerm, re.Pattern[str]], ...] = tuple(
    (t, re.compile(rf"(?<![A-Za-z]){re.escape(t.term)}(?![A-Za-z]){_NUMBER_TAIL}", re.IGNORECASE))
    for t in PATTERN_TERMS
)

_SUFFIX_MULTIPLIERS: dict[str, Decimal] = {
    "thousand": Decimal(1_000), "k": Decimal(1_000),
    "million": Decimal(1_000_000), "m": Decimal(1_000_000), "mm": Decimal(1_000_000),
    "billion": Decimal(1_000_000_000), "b": Decimal(1_000_000_000),
}


# ═══════════════════════════════════════════════════════════════════════════
#  Document-level detectors
# ═══════════════════════════════════════════════════════════════════════════

_UNIT_HINTS: tuple[tuple[MetricUnit, tuple[str, ...]], ...] = (
    (MetricUnit.BILLIONS, ("in billions", "(billions)", "$ billions", "billions of dollars")),
    (MetricUnit.MILLIONS, ("in millions", "$ in millions", "amounts in millions",
                           "(millions)", "millions of dollars", "$ millions")),
    (MetricUnit.THOUSANDS, ("in thousands", "(thousands)", "thousands of dollars",
                            "$ in thousands", "$ thousands")),
)


def detect_unit(text: str, default: MetricUnit | None = MetricUnit.MILLIONS) -> MetricUnit | None:
    """Reporting unit from hints such as "(in millions)"; *default* when absent."""
    lower = (text or "").lower()
    for unit, hints in _UNIT_HINTS:
        if any(h in lower for h in hints):
            return unit
    return default


_MONTH_DATE = (
    r"(?:January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+\d{1,2},?\s+\d{4}"
)
_PERIOD_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(rf"(?:for\s+the\s+(?:fiscal\s+)?(?:year|quarter|quarterly\s+period|period)\s+ended|"
                rf"quarter\s+ended|year\s+ended|period\s+ended)\s+({_MONTH_DATE})", re.I), "{}"),
    (re.compile(rf"(?:three|six|nine|twelve)\s+months\s+ended\s+({_MONTH_DATE})", re.I), "{}"),
    (re.compile(r"\bQ([1-4])\s*(?:FY\s*)?(\d{4})\b", re.I), "Q{} {}"),
    (re.compile(r"\b(?:FY|fiscal\s+year)\s*(\d{4})\b", re.I), "FY {}"),
)


def detect_period(text: str) -> str | None:
    """Reporting period label ("December 31, 2024", "Q3 2024", "FY 2024")."""
    head = (text or "")[:20_000]
    for pattern, template in _PERIOD_PATTERNS:
        m = pattern.search(head)
        if m:
            groups = [re.sub(r"\s+", " ", g) for g in m.groups()]
            return template.format(*groups)
    return None


_PERIOD_TYPE_RULES: tuple[tuple[re.Pattern[str], PeriodType], ...] = (
    (re.compile(r"for\s+the\s+quarterly\s+period\s+ended|three\s+months\s+ended|quarter\s+ended", re.I),
     PeriodType.QUARTERLY),
    (re.compile(r"for\s+the\s+fiscal\s+year\s+ended|twelve\s+months\s+ended|year\s+ended", re.I),
     PeriodType.ANNUAL),
    (re.compile(r"(?:nine|six)\s+months\s+ended", re.I), PeriodType.YTD),
    (re.compile(r"\bquarterly\b|\bq[1-4]\b", re.I), PeriodType.QUARTERLY),
    (re.compile(r"\bannual\b|\bfiscal\s+year\b", re.I), PeriodType.ANNUAL),
)


def detect_period_type(text: str) -> PeriodType | None:
    head = (text or "")[:20_000]
    for pattern, ptype in _PERIOD_TYPE_RULES:
        if pattern.search(head):
            return ptype
    return None


# ═══════════════════════════════════════════════════════════════════════════
#  Pattern metrics
# ═══════════════════════════════════════════════════════════════════════════

def extract_pattern_metrics(
    text: str,
    skip: frozenset[C] | set[C] = frozenset(),
) -> list[ExtendedFinancialMetric]:
    """Best pattern match per category found in *text*.

    Categories in *skip* are not searched (callers pass what the tables
    already covered).
    """
    if not text:
        return []
    cfg = get_config()
    doc_unit = detect_unit(text, default=None)
    period = detect_period(text)
    period_type = detect_period_type(text)

    best: dict[C, ExtendedFinancialMetric] = {}
    for term, regex in _TERM_RES:
        if term.category in skip:
            continue
        for idx, m in enumerate(regex.finditer(text)):
            if idx >= cfg.pattern_max_matches:
                break
            metric = _metric_from_match(term, m, idx, text, doc_unit, period, period_type)
            if metric is None:
                continue
            current = best.get(term.category)
            if current is None or metric.confidence > current.confidence:
                best[term.category] = metric

    log.debug("Pattern extraction found %d categories", len(best))
    return list(best.values())


def _metric_from_match(
    term: PatternTerm,
    m: re.Match[str],
    idx: int,
    text: str,
    doc_unit: MetricUnit | None,
    period: str | None,
    period_type: PeriodType | None,
) -> ExtendedFinancialMetric | None:
    cfg = get_config()
    open1, open2, number, close, suffix = m.groups()
    try:
        value = Decimal(number.replace(",", ""))
    except InvalidOperation:
        return None

    has_dollar = "$" in m.group(0)
    per_share = term.category.is_per_share

    # A bare year after the term ("Net income 2024 ...") is not an amount
    if not has_dollar and not suffix and "." not in number and 1900 <= value <= 2100:
        return None

    if not per_share:
        if suffix:
            value *= _SUFFIX_MULTIPLIERS[suffix.lower()]
        elif doc_unit is not None:
            value *= doc_unit.multiplier

    if ((open1 or open2) and close) or term.term.lower() in _NEGATIVE_TERMS:
        value = -abs(value)

    if not per_share and abs(value) < Decimal(str(cfg.pattern_min_amount)):
        return None

    confidence = cfg.pattern_confidence * term.weight * (1 - cfg.pattern_decay * idx)
    confidence = round(max(0.0, min(1.0, confidence)), 4)

    lo = max(0, m.start() - 100)
    hi = min(len(text), m.end() + 100)
    context = re.sub(r"\s+", " ", text[lo:hi]).strip()

    return ExtendedFinancialMetric(
        name=term.term,
        formatted_value=f"${value:.2f}" if per_share else fmt_money(value),
        raw_value=value,
        unit=MetricUnit.PER_SHARE if per_share else MetricUnit.DOLLARS,
        category=term.category,
        period=period,
        period_type=period_type,
        source=MetricSource.PATTERN,
        confidence=confidence,
        context=context,
    )
