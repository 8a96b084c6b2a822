"""Risk factor extraction from segmented filings.

Strategy is chosen by the filing profile:

* STANDARD: list items (bullets, numbered entries, "Title - description"
  lines) first, then blank-line separated paragraphs.
* QUARTERLY: "no material changes" boilerplate collapses to a single LOW
  placeholder; otherwise as STANDARD.
* CURRENT_EVENT: 8-K items that are risks in themselves (bankruptcy, debt
  acceleration, impairment) are synthesized from section presence.
* NONE: proxy statements carry no risk factors.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from sec_analyzer.config import get_config
from sec_analyzer.filing_types import RiskStrategy, get_profile
from sec_analyzer.models import (
    FormType,
    RiskCategory,
    RiskFactor,
    RiskSeverity,
    SectionMap,
)
from sec_analyzer.section_segmenter import find_section

log = logging.getLogger(__name__)

MAX_TITLE_CHARS = 100
MAX_SUMMARY_CHARS = 300
MAX_PARAGRAPH_SUMMARY_CHARS = 500

NO_MATERIAL_CHANGES = RiskFactor(
    title="No Material Changes",
    summary="No material changes to risk factors since last annual report",
    category=RiskCategory.OTHER,
    severity=RiskSeverity.LOW,
)


class EventRisk(NamedTuple):
    item: str
    title: str
    summary: str
    severity: RiskSeverity


EVENT_RISKS: tuple[EventRisk, ...] = (
    EventRisk("Item 1.03", "Bankruptcy Event",
              "Bankruptcy or receivership proceedings disclosed", RiskSeverity.CRITICAL),
    EventRisk("Item 2.04", "Debt Acceleration",
              "Triggering events that accelerate or increase obligations", RiskSeverity.HIGH),
    EventRisk("Item 2.06", "Material Impairment",
              "Material impairments disclosed", RiskSeverity.MEDIUM),
)

# (keywords, category) checked in order; first hit wins
_CATEGORY_RULES: tuple[tuple[tuple[str, ...], RiskCategory], ...] = (
    (("market", "economic", "demand"), RiskCategory.MARKET),
    (("operation", "supply chain", "manufacturing"), RiskCategory.OPERATIONAL),
    (("debt", "credit", "liquidity", "financial"), RiskCategory.FINANCIAL),
    (("regulat", "compliance", "government", "law"), RiskCategory.REGULATORY),
    (("competi", "rival"), RiskCategory.COMPETITIVE),
    (("technolog", "cyber", "security", "data"), RiskCategory.TECHNOLOGY),
    (("legal", "litigation", "lawsuit"), RiskCategory.LEGAL),
    (("environment", "climate", "sustain"), RiskCategory.ENVIRONMENTAL),
    (("geopolit", "international", "tariff", "trade war"), RiskCategory.GEOPOLITICAL),
)

_HIGH_SEVERITY = ("material adverse", "significant risk", "substantial harm", "critical")
_MEDIUM_SEVERITY = ("may adversely", "could harm", "potential risk")
_LOW_SEVERITY = ("minor", "limited impact")

_NO_CHANGES_RE = re.compile(r"no\s+material\s+changes", re.IGNORECASE)

# "• Title text", "- Title text", "1. Title text", "(a) Title text"
_LIST_ITEM_RE = re.compile(
    "^[ \\t]*(?:[\u2022\u25cf\u25aa\u00b7*]|\\d{1,2}[.)]|\\([a-z0-9]{1,2}\\))[ \\t]+([^\\n]{20,400})",
    re.MULTILINE,
)
# "Competition may reduce demand - Our markets are highly competitive and ..."
_TITLE_DASH_RE = re.compile(
    "^[ \\t]*([A-Z][^.\\n]{10,100}?)[ \\t]+[-\u2013\u2014:][ \\t]+([^\\n]{50,500})",
    re.MULTILINE,
)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n[ \t]*\n+")
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s")


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def extract_risk_factors(
    sections: SectionMap,
    clean_text: str = "",
    form_type: FormType | str | None = None,
) -> list[RiskFactor]:
    """Risk factors for a segmented filing, at most ``max_risk_factors``."""
    profile = get_profile(form_type)

    if profile.risk_strategy is RiskStrategy.NONE:
        return []
    if profile.risk_strategy is RiskStrategy.CURRENT_EVENT:
        return _event_risks(sections)

    section = find_section(sections, profile.risk_sections)
    if section is None and sections.is_fallback and clean_text:
        section = _risk_block(clean_text)
    if not section:
        log.debug("No risk factor section for %s", profile.form_type.value)
        return []

    body = _strip_heading(section)
    if profile.risk_strategy is RiskStrategy.QUARTERLY and _NO_CHANGES_RE.search(body):
        return [NO_MATERIAL_CHANGES]

    risks = _list_risks(body) or _paragraph_risks(body)
    risks = _distinct(risks)[: get_config().max_risk_factors]
    log.info("Extracted %d risk factors", len(risks))
    return risks


def categorize_risk(text: str) -> RiskCategory:
    lower = text.lower()
    for keywords, category in _CATEGORY_RULES:
        if any(k in lower for k in keywords):
            return category
    return RiskCategory.OTHER


def assess_severity(text: str) -> RiskSeverity:
    lower = text.lower()
    if any(k in lower for k in _HIGH_SEVERITY):
        return RiskSeverity.HIGH
    if any(k in lower for k in _MEDIUM_SEVERITY):
        return RiskSeverity.MEDIUM
    if any(k in lower for k in _LOW_SEVERITY):
        return RiskSeverity.LOW
    return RiskSeverity.MEDIUM


# ═══════════════════════════════════════════════════════════════════════════
#  Strategies
# ═══════════════════════════════════════════════════════════════════════════

def _event_risks(sections: SectionMap) -> list[RiskFactor]:
    risks = []
    for event in EVENT_RISKS:
        if sections.get(event.item):
            risks.append(RiskFactor(
                title=event.title,
                summary=event.summary,
                category=RiskCategory.FINANCIAL,
                severity=event.severity,
            ))
    return risks


def _list_risks(body: str) -> list[RiskFactor]:
    risks: list[RiskFactor] = []
    for m in _TITLE_DASH_RE.finditer(body):
        risks.append(_make_risk(m.group(1), m.group(2)))
    for m in _LIST_ITEM_RE.finditer(body):
        title, summary = _split_title(m.group(1))
        risks.append(_make_risk(title, summary))
    return risks


def _paragraph_risks(body: str) -> list[RiskFactor]:
    min_chars = get_config().min_risk_paragraph_chars
    risks = []
    for para in _PARAGRAPH_SPLIT_RE.split(body):
        para = " ".join(para.split())
        if len(para) < min_chars:
            continue
        title, _rest = _split_title(para)
        risks.append(_make_risk(title, para, summary_limit=MAX_PARAGRAPH_SUMMARY_CHARS))
    return risks


# ═══════════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _make_risk(title: str, summary: str, summary_limit: int = MAX_SUMMARY_CHARS) -> RiskFactor:
    title = title.strip().rstrip(".:")[:MAX_TITLE_CHARS]
    summary = summary.strip()[:summary_limit]
    text = f"{title} {summary}"
    return RiskFactor(
        title=title,
        summary=summary,
        category=categorize_risk(text),
        severity=assess_severity(text),
    )


def _split_title(text: str) -> tuple[str, str]:
    """First sentence as the title, the remainder as the summary."""
    parts = _SENTENCE_END_RE.split(text.strip(), maxsplit=1)
    title = parts[0]
    rest = parts[1] if len(parts) > 1 else ""
    if len(title) > MAX_TITLE_CHARS:
        cut = title.rfind(" ", 0, MAX_TITLE_CHARS)
        title = title[: cut if cut > 0 else MAX_TITLE_CHARS]
    return title, rest or text


def _strip_heading(section: str) -> str:
    """Drop the header line the segmenter leaves at the top of a section."""
    first, _sep, rest = section.partition("\n")
    if re.search(r"risk\s+factors|item\s+\d", first, re.IGNORECASE) and len(first) < 120:
        return rest.strip()
    return section.strip()


def _risk_block(text: str) -> str | None:
    """Risk factor text in an unsegmented document, up to the next item."""
    m = re.search(r"^[ \t]*risk\s+factors[ \t]*$", text, re.IGNORECASE | re.MULTILINE)
    if m is None:
        return None
    end = re.search(r"^[ \t]*item[ \t]+\d", text[m.end():], re.IGNORECASE | re.MULTILINE)
    stop = m.end() + end.start() if end else min(len(text), m.end() + get_config().text_section_max_chars)
    return text[m.start():stop]


def _distinct(risks: list[RiskFactor]) -> list[RiskFactor]:
    seen: set[str] = set()
    out = []
    for r in risks:
        key = r.title.lower()
        if key and key not in seen:
            seen.add(key)
            out.append(r)
    return out
