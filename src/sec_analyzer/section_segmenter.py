"""Filing section segmenter — header-pattern boundary detection.

Item boundaries coincide with line starts and items follow a known order,
so each form type supplies an ordered list of line-anchored header regexes
(see ``filing_types``).  Table-of-contents entries are told apart from real
headers by clustering: a TOC packs many headers into a few lines.

Algorithm:
  1.  Run every header pattern for the form over the clean text.
  2.  Collapse matches that start at the same offset (profile order wins).
  3.  Mark candidates sitting in a TOC cluster (≥5 other headers within
      ±40 lines).
  4.  Keep one occurrence per canonical name: the first non-TOC one, or
      the first one if every occurrence is in a TOC.
  5.  Each section runs from its header to the next kept header (or the
      end of the document).

A document where nothing matches comes back as a single "Full Document"
section, never an empty map.
"""

from __future__ import annotations

import bisect
import logging
import re

from sec_analyzer.filing_types import get_profile
from sec_analyzer.models import (
    FULL_DOCUMENT,
    FiscalQuarter,
    FormType,
    SectionEntry,
    SectionMap,
)

log = logging.getLogger(__name__)

_TOC_WINDOW_LINES = 40
_TOC_MIN_NEIGHBOURS = 5

# ═══════════════════════════════════════════════════════════════════════════
#  Fiscal quarter patterns
# ═══════════════════════════════════════════════════════════════════════════

_MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
_MONTH_RE = "|".join(_MONTHS) + r"|jan|feb|mar|apr|jun|jul|aug|sept?|oct|nov|dec"

_QUARTERLY_PERIOD_RE = re.compile(
    rf"for\s+the\s+(?:quarterly\s+)?(?:period|quarter)\s+ended\s+({_MONTH_RE})\.?\s+\d{{1,2}},?\s+(\d{{4}})",
    re.IGNORECASE,
)
_Q_LABEL_RE = re.compile(r"\bQ([1-4])\s*(?:FY\s*)?'?(\d{4})\b", re.IGNORECASE)
_ORDINAL_QUARTER_RE = re.compile(
    r"\b(first|second|third|fourth)\s+(?:fiscal\s+)?quarter\s+(?:of\s+)?(?:fiscal\s+(?:year\s+)?)?(\d{4})\b",
    re.IGNORECASE,
)
_ORDINALS = {"first": "Q1", "second": "Q2", "third": "Q3", "fourth": "Q4"}
# Month index (0-based) of a calendar quarter end
_QUARTER_END_MONTHS = {2: "Q1", 5: "Q2", 8: "Q3", 11: "Q4"}


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def segment(clean_text: str, form_type: FormType | str | None = None) -> SectionMap:
    """Slice *clean_text* into named sections for *form_type*."""
    text = clean_text or ""
    profile = get_profile(form_type)

    candidates = _find_candidates(text, profile.headers)
    if not candidates:
        log.info("No section headers found for %s; using full document", profile.form_type.value)
        return _full_document(text)

    line_starts = _line_starts(text)
    lines = [bisect.bisect_right(line_starts, start) - 1 for start, _name in candidates]
    toc = _toc_flags(lines)

    chosen: dict[str, int] = {}
    fallback: dict[str, int] = {}
    for (start, name), in_toc in zip(candidates, toc):
        if name in chosen:
            log.debug("Ignoring duplicate header %r at offset %d", name, start)
            continue
        if in_toc:
            fallback.setdefault(name, start)
            continue
        chosen[name] = start
    for name, start in fallback.items():
        if name not in chosen:
            chosen[name] = start

    ordered = sorted(chosen.items(), key=lambda kv: kv[1])
    entries: list[SectionEntry] = []
    for idx, (name, start) in enumerate(ordered):
        end = ordered[idx + 1][1] if idx + 1 < len(ordered) else len(text)
        entries.append(SectionEntry(
            name=name,
            start=start,
            end=end,
            text=_clean_section_text(text[start:end]),
        ))

    log.info(
        "Segmented %s into %d sections: %s",
        profile.form_type.value, len(entries), ", ".join(e.name for e in entries),
    )
    return SectionMap(entries=tuple(entries))


def resolve_fiscal_quarter(text: str) -> FiscalQuarter:
    """Fiscal quarter and year of a quarterly report.

    A period ending in March, June, September or December names its
    calendar quarter.  Any other month end keeps only the year unless the
    text labels the quarter explicitly.
    """
    head = (text or "")[:20_000]

    year = None
    m = _QUARTERLY_PERIOD_RE.search(head)
    if m:
        year = int(m.group(2))
        quarter = _QUARTER_END_MONTHS.get(_month_index(m.group(1)))
        if quarter is not None:
            return FiscalQuarter(quarter=quarter, year=year)

    m = _Q_LABEL_RE.search(head)
    if m:
        return FiscalQuarter(quarter=f"Q{m.group(1)}", year=int(m.group(2)))

    m = _ORDINAL_QUARTER_RE.search(head)
    if m:
        return FiscalQuarter(quarter=_ORDINALS[m.group(1).lower()], year=int(m.group(2)))

    return FiscalQuarter(year=year)


def find_section(sections: SectionMap, names: tuple[str, ...] | list[str]) -> str | None:
    """Text of the first section in *names* that is present and non-empty."""
    for name in names:
        txt = sections.get(name)
        if txt:
            return txt
    return None


# ═══════════════════════════════════════════════════════════════════════════
#  Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _find_candidates(text: str, headers) -> list[tuple[int, str]]:
    """All header matches as ``(offset, name)`` sorted by offset.

    When several patterns match at the same offset the one listed first in
    the profile is kept.
    """
    by_offset: dict[int, tuple[int, str]] = {}
    for order, (name_tpl, pattern) in enumerate(headers):
        for m in pattern.finditer(text):
            name = name_tpl.format(m.group(1).upper()) if "{}" in name_tpl else name_tpl
            start = m.start()
            # Skip the leading indentation so the section text starts on the header
            while start < m.end() and text[start] in " \t":
                start += 1
            prev = by_offset.get(start)
            if prev is None or order < prev[0]:
                by_offset[start] = (order, name)
    return [(start, name) for start, (_order, name) in sorted(by_offset.items())]


def _line_starts(text: str) -> list[int]:
    starts = [0]
    starts.extend(m.end() for m in re.finditer(r"\n", text))
    return starts


def _toc_flags(lines: list[int]) -> list[bool]:
    """Flag candidates that sit in a dense cluster of headers."""
    flags = []
    for i, pos in enumerate(lines):
        nearby = sum(
            1 for j, p in enumerate(lines)
            if j != i and p != pos and abs(p - pos) <= _TOC_WINDOW_LINES
        )
        flags.append(nearby >= _TOC_MIN_NEIGHBOURS)
    return flags


def _full_document(text: str) -> SectionMap:
    return SectionMap(entries=(
        SectionEntry(name=FULL_DOCUMENT, start=0, end=len(text), text=text),
    ))


def _clean_section_text(text: str) -> str:
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _month_index(token: str) -> int | None:
    t = token.lower().rstrip(".")[:3]
    for i, month in enumerate(_MONTHS):
        if month.startswith(t):
            return i
    return None
