"""Inline XBRL fact extraction.

Modern filings tag their statement values with ``ix:nonFraction`` elements
that carry the concept name, a context (period) reference, the unit, a
scale exponent and an explicit sign.  Those are the most reliable numbers
in the document, so a conservative set of us-gaap concepts is mapped onto
canonical categories here.

Dimensional contexts (segment breakdowns) are ignored: only the
consolidated, dimension-free value of a concept represents the line item.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from bs4 import BeautifulSoup

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


class FactConcept(NamedTuple):
    concept: str            # local name, without the "us-gaap:" prefix
    category: C
    display_name: str


# Ordered by preference within each category.
FACT_CONCEPTS: tuple[FactConcept, ...] = (
    FactConcept("Revenues", C.REVENUE, "Total Revenue"),
    FactConcept("RevenueFromContractWithCustomerExcludingAssessedTax", C.REVENUE, "Revenue from Contract with Customer"),
    FactConcept("SalesRevenueNet", C.REVENUE, "Net Sales Revenue"),
    FactConcept("CostOfRevenue", C.COST_OF_REVENUE, "Cost of Revenue"),
    FactConcept("CostOfGoodsAndServicesSold", C.COST_OF_REVENUE, "Cost of Goods and Services Sold"),
    FactConcept("GrossProfit", C.GROSS_PROFIT, "Gross Profit"),
    FactConcept("ResearchAndDevelopmentExpense", C.RD_EXPENSE, "Research and Development"),
    FactConcept("SellingGeneralAndAdministrativeExpense", C.SGA_EXPENSE, "SG&A"),
    FactConcept("OperatingIncomeLoss", C.OPERATING_INCOME, "Operating Income"),
    FactConcept("InterestExpense", C.INTEREST_EXPENSE, "Interest Expense"),
    FactConcept("IncomeLossFromContinuingOperationsBeforeIncomeTaxesExtraordinaryItemsNoncontrollingInterest",
                C.INCOME_BEFORE_TAX, "Income Before Income Taxes"),
    FactConcept("IncomeTaxExpenseBenefit", C.INCOME_TAX, "Income Tax Expense"),
    FactConcept("NetIncomeLoss", C.NET_INCOME, "Net Income"),
    FactConcept("ProfitLoss", C.NET_INCOME, "Net Income (incl. NCI)"),
    FactConcept("EarningsPerShareBasic", C.EPS_BASIC, "Basic EPS"),
    FactConcept("EarningsPerShareDiluted", C.EPS_DILUTED, "Diluted EPS"),
    FactConcept("Assets", C.TOTAL_ASSETS, "Total Assets"),
    FactConcept("AssetsCurrent", C.CURRENT_ASSETS, "Total Current Assets"),
    FactConcept("CashAndCashEquivalentsAtCarryingValue", C.CASH, "Cash and Cash Equivalents"),
    FactConcept("AccountsReceivableNetCurrent", C.RECEIVABLES, "Accounts Receivable"),
    FactConcept("InventoryNet", C.INVENTORY, "Inventories"),
    FactConcept("Liabilities", C.TOTAL_LIABILITIES, "Total Liabilities"),
    FactConcept("LiabilitiesCurrent", C.CURRENT_LIABILITIES, "Total Current Liabilities"),
    FactConcept("AccountsPayableCurrent", C.PAYABLES, "Accounts Payable"),
    FactConcept("LongTermDebtNoncurrent", C.LONG_TERM_DEBT, "Long-term Debt"),
    FactConcept("StockholdersEquity", C.TOTAL_EQUITY, "Total Stockholders' Equity"),
    FactConcept("RetainedEarningsAccumulatedDeficit", C.RETAINED_EARNINGS, "Retained Earnings"),
    FactConcept("NetCashProvidedByUsedInOperatingActivities", C.OPERATING_CASH_FLOW, "Operating Cash Flow"),
    FactConcept("NetCashProvidedByUsedInInvestingActivities", C.INVESTING_CASH_FLOW, "Investing Cash Flow"),
    FactConcept("NetCashProvidedByUsedInFinancingActivities", C.FINANCING_CASH_FLOW, "Financing Cash Flow"),
    FactConcept("PaymentsToAcquirePropertyPlantAndEquipment", C.CAPEX, "Capital Expenditures"),
    FactConcept("DepreciationDepletionAndAmortization", C.DEPRECIATION, "Depreciation & Amortization"),
    FactConcept("PaymentsOfDividends", C.DIVIDENDS_PAID, "Dividends Paid"),
)

_CONCEPT_INDEX: dict[str, tuple[int, FactConcept]] = {
    fc.concept.lower(): (i, fc) for i, fc in enumerate(FACT_CONCEPTS)
}

_ZERO_TEXT = frozenset({"-", "\u2014", "\u2013", "no", "none", "nil", "zero"})


class _Context(NamedTuple):
    start: date | None
    end: date | None
    dimensional: bool

    @property
    def days(self) -> int | None:
        if self.start is None or self.end is None:
            return None
        return (self.end - self.start).days


class _Fact(NamedTuple):
    priority: int
    concept: FactConcept
    value: Decimal
    context: _Context
    unit: str
    decimals: str
    scale: int


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def has_inline_facts(html: str) -> bool:
    return "ix:nonfraction" in (html or "")[:5_000_000].lower()


def extract_structured_facts(html: str) -> list[ExtendedFinancialMetric]:
    """One structured-fact metric per mapped category.

    For each category the highest-priority concept wins; its latest
    dimension-free fact is the current value and the previous fact of the
    same duration supplies the YoY change.
    """
    if not html or not has_inline_facts(html):
        return []

    soup = BeautifulSoup(html, "html.parser")
    contexts = _parse_contexts(soup)
    facts = _parse_facts(soup, contexts)

    by_category: dict[C, list[_Fact]] = {}
    for fact in facts:
        by_category.setdefault(fact.concept.category, []).append(fact)

    metrics: list[ExtendedFinancialMetric] = []
    for category, group in by_category.items():
        metric = _best_metric(category, group)
        if metric is not None:
            metrics.append(metric)

    log.info("Inline XBRL: %d facts, %d categories", len(facts), len(metrics))
    return metrics


# ═══════════════════════════════════════════════════════════════════════════
#  Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _parse_date(text: str | None) -> date | None:
    if not text:
        return None
    try:
        return date.fromisoformat(text.strip()[:10])
    except ValueError:
        return None


def _parse_contexts(soup) -> dict[str, _Context]:
    contexts: dict[str, _Context] = {}
    for ctx in soup.find_all(re.compile(r"^(?:xbrli:)?context$")):
        cid = ctx.get("id")
        if not cid:
            continue
        instant = ctx.find(re.compile(r"^(?:xbrli:)?instant$"))
        start = ctx.find(re.compile(r"^(?:xbrli:)?startdate$"))
        end = ctx.find(re.compile(r"^(?:xbrli:)?enddate$"))
        dimensional = ctx.find(re.compile(r"^(?:xbrli:)?segment$|^(?:xbrli:)?scenario$")) is not None
        if instant is not None:
            d = _parse_date(instant.get_text())
            contexts[cid] = _Context(None, d, dimensional)
        else:
            contexts[cid] = _Context(
                _parse_date(start.get_text() if start is not None else None),
                _parse_date(end.get_text() if end is not None else None),
                dimensional,
            )
    return contexts


def _parse_facts(soup, contexts: dict[str, _Context]) -> list[_Fact]:
    facts: list[_Fact] = []
    for el in soup.find_all("ix:nonfraction"):
        name = (el.get("name") or "").strip()
        local = name.split(":", 1)[-1].lower()
        hit = _CONCEPT_INDEX.get(local)
        if hit is None:
            continue
        ctx = contexts.get(el.get("contextref") or "")
        if ctx is None or ctx.dimensional or ctx.end is None:
            continue
        value = _fact_value(el)
        if value is None:
            continue
        priority, concept = hit
        facts.append(_Fact(
            priority=priority,
            concept=concept,
            value=value,
            context=ctx,
            unit=el.get("unitref") or "",
            decimals=el.get("decimals") or "",
            scale=_int(el.get("scale")),
        ))
    return facts


def _fact_value(el) -> Decimal | None:
    text = el.get_text(" ", strip=True)
    if len(text) > 200:
        return None
    fmt = (el.get("format") or "").lower()
    if "zero" in fmt or text.lower() in _ZERO_TEXT:
        value = Decimal(0)
    else:
        if not re.search(r"\d", text):
            return None
        if "comma" in fmt:
            # ixt:num-comma-decimal, e.g. "1.234,5"
            num = text.replace(".", "").replace(",", ".")
        else:
            num = text.replace(",", "")
        digits = re.sub(r"[^\d.]", "", num)
        try:
            value = Decimal(digits)
        except InvalidOperation:
            return None
    scale = _int(el.get("scale"))
    if scale:
        value = value.scaleb(scale)
    if el.get("sign") == "-" or (text.startswith("(") and text.endswith(")")):
        value = -value
    return value


def _int(v: str | None) -> int:
    try:
        return int(v) if v not in (None, "") else 0
    except ValueError:
        return 0


def _period_type(ctx: _Context) -> PeriodType | None:
    days = ctx.days
    if days is None:
        return None
    if days >= 300:
        return PeriodType.ANNUAL
    if days <= 100:
        return PeriodType.QUARTERLY
    return PeriodType.YTD


def _best_metric(category: C, group: list[_Fact]) -> ExtendedFinancialMetric | None:
    cfg = get_config()
    top = min(f.priority for f in group)
    candidates = [f for f in group if f.priority == top]
    # Latest period first; for equal end dates the shortest duration wins
    candidates.sort(key=lambda f: (f.context.end, -(f.context.days or 0)), reverse=True)
    current = candidates[0]

    prior = None
    for f in candidates[1:]:
        if f.context.end < current.context.end and _same_length(f.context, current.context):
            prior = f
            break

    yoy = None
    if prior is not None and prior.value != 0:
        yoy = ((current.value - prior.value) / abs(prior.value) * 100).quantize(Decimal("0.01"))

    per_share = category.is_per_share
    period = current.context.end.isoformat()
    return ExtendedFinancialMetric(
        name=current.concept.display_name,
        formatted_value=f"${current.value:.2f}" if per_share else fmt_money(current.value),
        raw_value=current.value,
        unit=MetricUnit.PER_SHARE if per_share else MetricUnit.DOLLARS,
        category=category,
        period=period,
        period_type=_period_type(current.context),
        source=MetricSource.STRUCTURED_FACT,
        confidence=cfg.structured_fact_confidence,
        yoy_change=yoy,
        context=(
            f"period={period} unit={current.unit or 'n/a'} "
            f"decimals={current.decimals or 'n/a'} scale={current.scale}"
        ),
    )


def _same_length(a: _Context, b: _Context) -> bool:
    if a.days is None or b.days is None:
        return a.days is None and b.days is None
    return abs(a.days - b.days) <= 10
