"""Row label → canonical category mapping.

Labels are matched against an exact-label table first and then against an
ordered list of substring rules.  Order matters: per-share rows must be
tested before "net income", "income before income taxes" before "income
tax", and so on.  Each substring rule may carry an exclusion so compound
labels such as "Total liabilities and stockholders' equity" do not land in
the equity bucket.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from sec_analyzer.models import CanonicalCategory as C


class LabelRule(NamedTuple):
    category: C
    pattern: re.Pattern[str]
    exclude: re.Pattern[str] | None = None


def _rule(category: C, pattern: str, exclude: str | None = None) -> LabelRule:
    return LabelRule(category, re.compile(pattern), re.compile(exclude) if exclude else None)


# ═══════════════════════════════════════════════════════════════════════════
#  Rule tables
# ═══════════════════════════════════════════════════════════════════════════

_EXACT: dict[str, C] = {}


def _exact(category: C, *labels: str) -> None:
    for label in labels:
        _EXACT[label] = category


_exact(C.REVENUE,
       "total revenue", "total revenues", "net revenue", "net revenues",
       "revenue", "revenues", "net sales", "total net sales", "sales",
       "total net revenue", "total net revenues", "revenues, net", "revenue, net",
       "total sales", "net sales and revenue", "net operating revenues")
_exact(C.COST_OF_REVENUE, "cogs", "cost of sales", "total cost of revenue",
       "total cost of revenues", "total cost of sales")
_exact(C.GROSS_PROFIT, "gross profit", "gross margin", "total gross profit", "gross profit (loss)")
_exact(C.OPERATING_INCOME, "operating income", "operating income (loss)",
       "income from operations", "operating profit", "loss from operations",
       "income (loss) from operations", "operating loss")
_exact(C.NET_INCOME, "net income", "net earnings", "net loss", "net income (loss)",
       "net (loss) income", "net loss (income)", "net earnings (loss)", "net profit")
_exact(C.EBITDA, "ebitda", "adjusted ebitda")
_exact(C.TOTAL_ASSETS, "total assets")
_exact(C.CURRENT_ASSETS, "total current assets")
_exact(C.CASH, "cash", "cash and equivalents")
_exact(C.RECEIVABLES, "accounts receivable", "accounts receivable, net", "receivables", "receivables, net")
_exact(C.INVENTORY, "inventories", "inventory", "total inventories", "inventories, net", "inventory, net")
_exact(C.TOTAL_LIABILITIES, "total liabilities")
_exact(C.CURRENT_LIABILITIES, "total current liabilities")
_exact(C.PAYABLES, "accounts payable", "trade accounts payable")
_exact(C.TOTAL_EQUITY, "total equity", "total stockholders' equity", "total shareholders' equity",
       "stockholders' equity", "shareholders' equity", "total stockholders' equity (deficit)")
_exact(C.RETAINED_EARNINGS, "retained earnings", "accumulated deficit",
       "retained earnings (accumulated deficit)")
_exact(C.CAPEX, "capex", "capital expenditures", "purchases of property and equipment",
       "purchases of property, plant and equipment", "payments for acquisition of property, plant and equipment")
_exact(C.FREE_CASH_FLOW, "free cash flow")
_exact(C.EPS_BASIC, "basic eps", "earnings per share", "eps", "basic earnings per share")
_exact(C.EPS_DILUTED, "diluted eps", "diluted earnings per share")
_exact(C.RD_EXPENSE, "r&d expense", "r&d", "research and development")
_exact(C.SGA_EXPENSE, "sg&a", "sg&a expense")


_CONTAINS: tuple[LabelRule, ...] = (
    # Per-share rows carry "net income" in their labels; test them first.
    _rule(C.EPS_DILUTED, r"diluted (?:earnings|net income|net earnings|net \(?loss\)?|income)[^a-z]*(?:\(loss\) )?per (?:common )?share|per (?:common )?share[^a-z]*diluted|diluted eps"),
    _rule(C.EPS_BASIC, r"basic (?:earnings|net income|net earnings|net \(?loss\)?|income)[^a-z]*(?:\(loss\) )?per (?:common )?share|per (?:common )?share[^a-z]*basic|basic eps"),
    _rule(C.COST_OF_REVENUE, r"cost of (?:total )?revenues?|cost of (?:goods )?sold|cost of sales|cost of products sold"),
    _rule(C.GROSS_PROFIT, r"^gross (?:profit|margin)"),
    _rule(C.INCOME_BEFORE_TAX, r"before (?:provision for |benefit from )?(?:\(?benefit\)? )?income tax"),
    _rule(C.OPERATING_INCOME, r"operating income|income from operations|\(loss\) from operations|operating profit",
          r"non-?operating|other operating income"),
    _rule(C.NET_INCOME, r"^net income \(loss\)|^net \(loss\) income|^net income attributable to|^net earnings attributable to",
          r"non-?controlling|per share"),
    _rule(C.TOTAL_EQUITY, r"(?:stock|share)holders'? equity|total equity",
          r"liabilities and|statements? of|changes in|per share|non-?controlling"),
    _rule(C.OPERATING_CASH_FLOW, r"net cash (?:provided by|from|\(used in\)|used in|generated)[^a-z]*(?:\(used in\) |provided by )?(?:operating|operations)|cash (?:flows? )?from operations|cash provided by operations"),
    _rule(C.INVESTING_CASH_FLOW, r"net cash (?:used in|from|provided by|\(used in\))[^a-z]*(?:\(used in\) |provided by )?investing"),
    _rule(C.FINANCING_CASH_FLOW, r"net cash (?:used in|from|provided by|\(used in\))[^a-z]*(?:\(used in\) |provided by )?financing"),
    _rule(C.CASH, r"^cash and cash equivalents|^cash, cash equivalents",
          r"increase|decrease|change|beginning|effect of"),
    _rule(C.RECEIVABLES, r"trade receivables|accounts receivable",
          r"increase|decrease|change|allowance"),
    _rule(C.PAYABLES, r"^accounts payable", r"increase|decrease|change"),
    _rule(C.LONG_TERM_DEBT, r"long-?\s?term debt",
          r"^current (?:portion|maturities)|(?<!net of )(?<!less )(?<!excluding )current (?:portion|maturities)|due within"),
    _rule(C.CAPEX, r"capital expenditures|purchases? of property(?:,| and) (?:plant )?(?:and )?equipment"),
    _rule(C.RD_EXPENSE, r"research and development|research, development"),
    _rule(C.SGA_EXPENSE, r"selling,? general|general and administrative"),
    _rule(C.INTEREST_EXPENSE, r"interest expense"),
    _rule(C.INTEREST_INCOME, r"^interest income|^interest and dividend income"),
    _rule(C.INCOME_TAX, r"income tax|provision for income taxes", r"deferred|before|payable|receivable"),
    _rule(C.DEPRECIATION, r"depreciation", r"accumulated|net of"),
    _rule(C.DIVIDENDS_PAID, r"dividends paid|payments? of (?:cash )?dividends|cash dividends"),
    _rule(C.REVENUE, r"revenues?\b", r"deferred|unearned|cost|recogni[sz]ed|per |backlog"),
)


_FOOTNOTE_RE = re.compile(r"\s*(?:\(\d{1,2}\)|\[\d{1,2}\]|\*+)\s*$")


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def normalize_label(label: str) -> str:
    """Lower-case, unify quotes, drop footnote markers and trailing colons."""
    if not label:
        return ""
    s = label.replace("\u2019", "'").replace("`", "'").replace("\u00a0", " ")
    s = re.sub(r"\s+", " ", s).strip().lower()
    s = _FOOTNOTE_RE.sub("", s)
    s = s.strip(" :.$|")
    return s


def categorize(label: str) -> C | None:
    """Canonical category of a row label, or ``None`` when nothing matches."""
    norm = normalize_label(label)
    if not norm:
        return None
    hit = _EXACT.get(norm)
    if hit is not None:
        return hit
    for rule in _CONTAINS:
        if rule.pattern.search(norm):
            if rule.exclude is not None and rule.exclude.search(norm):
                continue
            return rule.category
    return None


def is_total(label: str) -> bool:
    norm = normalize_label(label)
    return re.search(r"\btotal\b", norm) is not None


def is_subtotal(label: str) -> bool:
    return "subtotal" in normalize_label(label)


_PADDING_RE = re.compile(
    r"(?:padding-left|margin-left|text-indent)\s*:\s*([\d.]+)\s*(px|pt|em|rem)?",
    re.IGNORECASE,
)
_UNIT_PX = {"px": 1.0, "pt": 4 / 3, "em": 16.0, "rem": 16.0}


def estimate_indent_level(label: str, style: str | None = None) -> int:
    """Nesting depth 0..3 from leading spaces (3 per level) or CSS padding (20px per level)."""
    raw = label or ""
    leading = len(raw) - len(raw.lstrip(" \u00a0"))
    if leading:
        return min(leading // 3, 3)
    if style:
        m = _PADDING_RE.search(style)
        if m:
            try:
                px = float(m.group(1)) * _UNIT_PX.get((m.group(2) or "px").lower(), 1.0)
            except ValueError:
                return 0
            return min(int(px // 20), 3)
    return 0
