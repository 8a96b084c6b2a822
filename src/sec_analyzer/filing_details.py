"""Form-specific filing details.

Small cover-page and section-level facts that differ per form: fiscal
year / quarter, exhibits, MD&A sub-sections, 8-K event items with an
importance score, S-1 offering terms, proxy meeting details and 20-F
domicile / accounting basis.  Everything is best-effort: a pattern that
does not match leaves the field empty.
"""

from __future__ import annotations

import logging
import re

from sec_analyzer.filing_types import EIGHT_K_ITEMS
from sec_analyzer.models import FilingDetails, FormType, SectionMap
from sec_analyzer.section_segmenter import find_section, resolve_fiscal_quarter

log = logging.getLogger(__name__)

# 8-K items weighted by how much they matter to an investor
EVENT_IMPORTANCE: dict[str, int] = {
    "Item 1.03": 10,
    "Item 2.01": 8,
    "Item 2.04": 8,
    "Item 2.02": 7,
    "Item 5.01": 7,
    "Item 5.02": 6,
}

_MDNA_SECTIONS: dict[FormType, tuple[str, ...]] = {
    FormType.FORM_10K: ("Item 7",),
    FormType.FORM_10Q: ("Part I - Item 2",),
    FormType.FORM_S1: ("Management's Discussion",),
    FormType.FORM_20F: ("Item 5",),
    FormType.UNKNOWN: ("Item 7", "Management's Discussion"),
}

# (key, start pattern) in reading order; each runs to the next one found
_MDNA_SUBSECTIONS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("overview", re.compile(r"\b(?:overview|executive\s+summary)\b", re.IGNORECASE)),
    ("results_of_operations", re.compile(r"\bresults\s+of\s+operations\b", re.IGNORECASE)),
    ("liquidity", re.compile(r"\bliquidity\s+(?:and\s+)?capital\s+resources\b", re.IGNORECASE)),
    ("critical_accounting_policies", re.compile(
        r"\bcritical\s+accounting\s+(?:policies|estimates)\b", re.IGNORECASE)),
)
MDNA_SUBSECTION_MAX_CHARS = 2_500

_FISCAL_YEAR_RE = re.compile(
    r"(?:fiscal\s+year|year)\s+ended\s+[A-Za-z]+\.?\s+\d{1,2},?\s+(\d{4})", re.IGNORECASE,
)
_EXHIBIT_RE = re.compile(r"\bexhibit\s+(\d{1,3}(?:\.\d{1,3})?)\b", re.IGNORECASE)
_EVENT_DATE_RE = re.compile(
    r"date\s+of\s+(?:report\s*\(\s*date\s+of\s+)?(?:earliest\s+)?event\s+(?:reported)?\)?[:\s]+"
    r"([A-Za-z]+\.?\s+\d{1,2},?\s+\d{4})",
    re.IGNORECASE,
)
_OFFERING_PRICE_RE = re.compile(
    r"\$\s?\d[\d,]*\.\d{2}\s+(?:to|and)\s+\$\s?\d[\d,]*\.\d{2}\s+per\s+share", re.IGNORECASE,
)
_SINGLE_PRICE_RE = re.compile(r"(?:offering\s+price|price\s+to\s+(?:the\s+)?public)[^$\n]{0,40}\$\s?\d[\d,]*\.\d{2}",
                              re.IGNORECASE)
_SHARES_OFFERED_RE = re.compile(r"(\d[\d,]{2,})\s+shares\s+of\s+(?:our\s+)?(?:class\s+[a-z]\s+)?common\s+stock",
                                re.IGNORECASE)
_MEETING_DATE_RE = re.compile(
    r"annual\s+meeting\s+of\s+(?:stockholders|shareholders)[^\n]{0,120}?"
    r"([A-Z][a-z]+\.?\s+\d{1,2},?\s+\d{4})",
    re.IGNORECASE,
)
_PROPOSAL_RE = re.compile(r"^[ \t]*proposal\s+(?:no\.\s*)?(\d{1,2})[ \t]*[.:\-][ \t]*([^\n]{5,200})",
                          re.IGNORECASE | re.MULTILINE)
_COUNTRY_RE = re.compile(
    r"incorporated\s+(?:in|under\s+the\s+laws\s+of)\s+(?:the\s+)?([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+){0,3})",
)
_IFRS_RE = re.compile(r"\bIFRS\b|international\s+financial\s+reporting\s+standards", re.IGNORECASE)
_US_GAAP_RE = re.compile(r"\bU\.?S\.?\s+GAAP\b|generally\s+accepted\s+accounting\s+principles", re.IGNORECASE)

_COVER_CHARS = 20_000


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def extract_filing_details(
    sections: SectionMap,
    clean_text: str,
    form_type: FormType | str | None = None,
) -> FilingDetails:
    """Collect the details relevant to *form_type*."""
    form = FormType.from_string(form_type)
    cover = clean_text[:_COVER_CHARS]
    fields: dict = {"fiscal_year": extract_fiscal_year(cover)}

    if form in (FormType.FORM_10K, FormType.FORM_10Q, FormType.FORM_20F, FormType.UNKNOWN):
        fields["exhibits"] = tuple(extract_exhibits(clean_text))
        mdna = find_section(sections, _MDNA_SECTIONS.get(form, ()))
        if mdna:
            fields["mdna_subsections"] = extract_mdna_subsections(mdna)

    if form is FormType.FORM_10Q:
        quarter = resolve_fiscal_quarter(cover)
        fields["fiscal_quarter"] = quarter
        if fields["fiscal_year"] is None and quarter.year is not None:
            fields["fiscal_year"] = str(quarter.year)

    elif form is FormType.FORM_8K:
        items = reported_items(sections)
        fields["reported_items"] = tuple(items)
        fields["importance_score"] = importance_score(items)
        fields["event_date"] = _first_group(_EVENT_DATE_RE, cover)
        exhibit_text = sections.get("Item 9.01")
        if exhibit_text:
            fields["exhibits"] = tuple(extract_exhibits(exhibit_text))

    elif form is FormType.FORM_S1:
        m = _OFFERING_PRICE_RE.search(cover) or _SINGLE_PRICE_RE.search(cover)
        fields["offering_price"] = " ".join(m.group(0).split()) if m else None
        fields["shares_offered"] = _first_group(_SHARES_OFFERED_RE, cover)

    elif form is FormType.FORM_DEF14A:
        fields["meeting_date"] = _first_group(_MEETING_DATE_RE, cover)
        fields["voting_matters"] = tuple(extract_voting_matters(clean_text))

    if form is FormType.FORM_20F:
        fields["country_of_incorporation"] = _first_group(_COUNTRY_RE, cover)
        fields["accounting_standard"] = accounting_standard(clean_text)

    details = FilingDetails(**fields)
    log.debug("Filing details for %s: %s", form.value, details.model_dump(exclude_defaults=True))
    return details


def extract_fiscal_year(text: str) -> str | None:
    return _first_group(_FISCAL_YEAR_RE, text)


def extract_exhibits(text: str) -> list[str]:
    """Distinct exhibit numbers ("31.1", "99.1") in order of appearance."""
    seen: dict[str, None] = {}
    for m in _EXHIBIT_RE.finditer(text):
        seen.setdefault(m.group(1), None)
    return list(seen)


def extract_mdna_subsections(mdna: str) -> dict[str, str]:
    found: list[tuple[int, str]] = []
    for key, pattern in _MDNA_SUBSECTIONS:
        m = pattern.search(mdna)
        if m:
            found.append((m.start(), key))
    found.sort()
    out: dict[str, str] = {}
    for i, (start, key) in enumerate(found):
        end = found[i + 1][0] if i + 1 < len(found) else len(mdna)
        body = mdna[start:end].strip()
        if body:
            out[key] = body[:MDNA_SUBSECTION_MAX_CHARS]
    return out


def reported_items(sections: SectionMap) -> list[str]:
    """8-K item sections present in the filing, in document order."""
    return [
        name for name in sections.names()
        if name.startswith("Item ") and name[5:] in EIGHT_K_ITEMS
    ]


def importance_score(items: list[str]) -> int:
    return sum(EVENT_IMPORTANCE.get(item, 0) for item in items)


def extract_voting_matters(text: str) -> list[str]:
    matters: dict[str, str] = {}
    for m in _PROPOSAL_RE.finditer(text):
        matters.setdefault(m.group(1), f"Proposal {m.group(1)}: {m.group(2).strip()}")
    return list(matters.values())


def accounting_standard(text: str) -> str | None:
    if _IFRS_RE.search(text):
        return "IFRS"
    if _US_GAAP_RE.search(text):
        return "US GAAP"
    return None


def _first_group(pattern: re.Pattern[str], text: str) -> str | None:
    m = pattern.search(text)
    return " ".join(m.group(1).split()) if m else None
