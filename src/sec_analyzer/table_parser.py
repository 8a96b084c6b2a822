"""Financial statement table locator and cell parser.

For each statement type the locator searches for a heading synonym
("Consolidated Statements of Operations", "Balance Sheets", ...) and cuts
the section off at the nearest "next major section" marker, bounded by a
hard cap so a 30 MB filing never costs more than a fixed scan.

Two row parsers share the same cell semantics:

* HTML — real ``<tr>``/``<td>`` markup via BeautifulSoup.
* Text — one row per line of the clean text, cells split on the `` | ``
  delimiter the normalizer emits, or on numeric tokens when there is none.

Cell values are Decimals; ``None`` means "not reported" and is distinct
from a reported zero.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

from bs4 import BeautifulSoup

from sec_analyzer.categorizer import categorize, estimate_indent_level, is_subtotal, is_total
from sec_analyzer.config import get_config
from sec_analyzer.filing_types import ALL_STATEMENTS, STATEMENT_HEADINGS
from sec_analyzer.models import (
    DocumentFormat,
    ExtendedFinancialMetric,
    MetricSource,
    MetricUnit,
    ParsedTable,
    PeriodType,
    RawDocument,
    StatementType,
    TableRow,
)
from sec_analyzer.normalizer import CELL_DELIMITER, clean_html_to_text, looks_like_html, normalize
from sec_analyzer.numeric import fmt_money
from sec_analyzer.pattern_extractor import detect_unit

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Section boundaries
# ═══════════════════════════════════════════════════════════════════════════

_HTML_END_MARKERS: tuple[str, ...] = (
    "consolidated statements of",
    "consolidated statement of",
    "consolidated balance sheet",
    "notes to consolidated",
    "notes to the consolidated",
    "notes to condensed",
    "item 1a",
    "item 1b",
    "item 1c",
    "item 2",
    "item 3",
    "item 4",
    "part ii",
    "part iii",
    "signatures",
    "report of independent",
)

_TEXT_END_MARKERS: tuple[str, ...] = (
    "notes to",
    "item ",
    "part ",
    "signatures",
    "consolidated statements of",
    "consolidated balance sheet",
    "statement of",
    "statements of",
)

_HTML_SEARCH_OFFSET = 100
_TEXT_SEARCH_OFFSET = 50
_MAX_OCCURRENCES = 25

# ═══════════════════════════════════════════════════════════════════════════
#  Period headers
# ═══════════════════════════════════════════════════════════════════════════

_DATE_RE = re.compile(
    r"\b((?:January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+\d{1,2},?\s+(?:19|20)\d{2})\b",
    re.IGNORECASE,
)
_QUARTER_RE = re.compile(r"\bQ([1-4])\s*(?:FY\s*)?((?:19|20)\d{2})\b", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?<![\d,.$])\b((?:199|20\d)\d)\b(?![\d,.%])")

FALLBACK_PERIODS: tuple[str, ...] = ("Current Period", "Prior Period")

# ═══════════════════════════════════════════════════════════════════════════
#  Row filters & numeric tokens
# ═══════════════════════════════════════════════════════════════════════════

_NUMERIC_ONLY_RE = re.compile(r"^[\s\d,.$()%\-]+$")
_HEADER_LABEL_RE = re.compile(
    r"\b(?:years?|months|quarters?|weeks|periods?)\s+ended\b|^(?:fiscal\s+)?years?\b|^as\s+of\b"
    r"|^(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2}\b",
    re.IGNORECASE,
)
_PAGE_FURNITURE_RE = re.compile(r"\bpage\s+\d+\b|^\s*F-\d+\s*$|\bF-\d+\b", re.IGNORECASE)
_TEXT_NUMBER_RE = re.compile(r"\(?\$?\s*\(?\d[\d,]*(?:\.\d+)?\)?")
_NUMBER_CELL_RE = re.compile(r"^\(?\s*\$?\s*\(?\s*-?\d[\d,]*(?:\.\d+)?\s*\)?\s*%?$")
_DASH_CELLS = frozenset({"-", "--", "\u2014", "\u2013", "\u2012"})
_FRAGMENT_CELLS = frozenset({"", "$", "%", "US$", "\u20ac", "\u00a3"})


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def parse_cell_value(text: str | None) -> Decimal | None:
    """Parse one table cell.

    ``""``, ``-`` and dashes → None; ``(1,234)`` → -1234; ``$`` and
    separators are ignored; anything unparseable → None.
    """
    if text is None:
        return None
    s = text.strip().replace("\u00a0", " ")
    if not s or s in _DASH_CELLS:
        return None
    s = s.replace("$", "").strip()
    negative = s.startswith("(") and s.endswith(")")
    s = s.replace(",", "").replace("(", "").replace(")", "").replace(" ", "")
    s = s.rstrip("%")
    if not s or s in _DASH_CELLS:
        return None
    try:
        value = Decimal(s)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return -value if negative else value


def parse_financial_tables(
    document: RawDocument | str,
    fmt: DocumentFormat | str | None = None,
    *,
    clean_text: str | None = None,
    statement_types: tuple[StatementType, ...] = ALL_STATEMENTS,
) -> list[ParsedTable]:
    """Locate and parse every statement table found in *document*.

    HTML input is parsed from its markup first; statements that cannot be
    read that way fall back to the line parser over the clean text.
    Missing statements are simply absent from the result.
    """
    if isinstance(document, RawDocument):
        raw = document.text
        resolved = document.format
    else:
        raw = document or ""
        resolved = DocumentFormat.coerce(fmt)
    if resolved is None:
        resolved = DocumentFormat.HTML if looks_like_html(raw) else DocumentFormat.PLAIN

    is_html = resolved is DocumentFormat.HTML
    if clean_text is None:
        clean_text = normalize(raw, resolved)

    tables: list[ParsedTable] = []
    for stype in statement_types:
        table = None
        if is_html and "<tr" in raw.lower():
            try:
                table = _parse_html_statement(raw, stype)
            except Exception as exc:
                log.warning("HTML table parse failed for %s: %s", stype.value, exc)
        if table is None:
            try:
                table = _parse_text_statement(clean_text, stype)
            except Exception as exc:
                log.warning("Text table parse failed for %s: %s", stype.value, exc)
        if table is not None:
            tables.append(table)

    log.info(
        "Parsed %d statement tables: %s",
        len(tables), ", ".join(f"{t.statement_type.value}({len(t.rows)})" for t in tables),
    )
    return tables


def convert_to_metrics(
    tables: list[ParsedTable],
    period_type: PeriodType | None = None,
) -> list[ExtendedFinancialMetric]:
    """Turn categorized table rows into metrics, one per category.

    The current value is the first non-null cell (newest period), the prior
    value the next non-null one.  Money rows are scaled by the table unit;
    per-share rows are not.
    """
    cfg = get_config()
    best: dict = {}
    for table in tables:
        for row in table.rows:
            if row.category is None:
                continue
            present = [(i, v) for i, v in enumerate(row.values) if v is not None]
            if not present:
                continue
            cur_idx, cur = present[0]
            prior = present[1][1] if len(present) > 1 else None

            per_share = row.category.is_per_share
            mult = Decimal(1) if per_share else table.unit.multiplier
            value = cur * mult
            yoy = None
            if prior is not None and prior != 0:
                yoy = ((cur - prior) / abs(prior) * 100).quantize(Decimal("0.01"))

            confidence = (
                cfg.table_total_confidence if (row.is_total or row.is_subtotal)
                else cfg.table_confidence
            )
            metric = ExtendedFinancialMetric(
                name=row.label,
                formatted_value=f"${value:.2f}" if per_share else fmt_money(value),
                raw_value=value,
                unit=MetricUnit.PER_SHARE if per_share else MetricUnit.DOLLARS,
                category=row.category,
                period=table.periods[cur_idx],
                period_type=period_type,
                source=MetricSource.TABLE,
                confidence=confidence,
                yoy_change=yoy,
                context=f"{table.title}: {row.label}",
            )
            current = best.get(row.category)
            if current is None or metric.confidence > current.confidence:
                best[row.category] = metric
    return list(best.values())


def extract_periods(section_text: str) -> tuple[tuple[str, ...], tuple[int, ...]]:
    """Period labels (newest first) from the head of a statement section.

    Returns ``(periods, columns)`` where ``columns[i]`` is the source value
    column holding ``periods[i]``.  At most ``max_periods`` of the most
    recent periods are kept, whatever order the source lists them in.
    """
    cfg = get_config()
    head = (section_text or "")[: cfg.period_scan_chars]

    dates = _distinct(re.sub(r"\s+", " ", d) for d in _DATE_RE.findall(head))
    if len(dates) >= 2:
        keys = [_date_key(d) for d in dates]
        return _order_newest_first(dates, keys, cfg.max_periods)

    quarters = _distinct(f"Q{q} {y}" for q, y in _QUARTER_RE.findall(head))
    if len(quarters) >= 2:
        keys = [(int(q[3:]), int(q[1])) for q in quarters]
        return _order_newest_first(quarters, keys, cfg.max_periods)

    years = _distinct(_YEAR_RE.findall(head))
    if len(years) >= 2:
        keys = [int(y) for y in years]
        return _order_newest_first(years, keys, cfg.max_periods)

    return FALLBACK_PERIODS, tuple(range(len(FALLBACK_PERIODS)))


# ═══════════════════════════════════════════════════════════════════════════
#  Location
# ═══════════════════════════════════════════════════════════════════════════

def iter_statement_sections(
    text: str,
    statement_type: StatementType,
    *,
    html: bool = False,
):
    """Yield ``(heading_as_written, section)`` for every usable heading match.

    Synonyms are tried in order; each occurrence is cut at the nearest end
    marker and capped.  Candidates shorter than the configured minimum or
    without any row-like content are skipped.
    """
    cfg = get_config()
    if html:
        markers, offset = _HTML_END_MARKERS, _HTML_SEARCH_OFFSET
        cap, minimum = cfg.table_section_max_chars, cfg.table_section_min_chars
    else:
        markers, offset = _TEXT_END_MARKERS, _TEXT_SEARCH_OFFSET
        cap, minimum = cfg.text_section_max_chars, cfg.text_section_min_chars

    lower = text.lower()
    for heading in STATEMENT_HEADINGS.get(statement_type, ()):
        idx = lower.find(heading)
        seen = 0
        while idx >= 0 and seen < _MAX_OCCURRENCES:
            seen += 1
            search_from = idx + len(heading) + offset
            end = min(len(text), idx + cap)
            for marker in markers:
                pos = lower.find(marker, search_from, end)
                if pos >= 0:
                    end = pos
            section = text[idx:end]
            if len(section) > minimum and _looks_tabular(section, html):
                yield text[idx: idx + len(heading)], section
            idx = lower.find(heading, idx + len(heading))


def locate_statement_section(
    text: str,
    statement_type: StatementType,
    *,
    html: bool = False,
) -> tuple[str, str] | None:
    """First usable ``(heading, section)`` for *statement_type*, or None."""
    return next(iter_statement_sections(text, statement_type, html=html), None)


def _looks_tabular(section: str, html: bool) -> bool:
    if html:
        return "<tr" in section.lower()
    numeric_lines = sum(
        1 for line in section.split("\n")
        if _TEXT_NUMBER_RE.search(line) and not _NUMERIC_ONLY_RE.match(line)
    )
    return numeric_lines >= 2


def _first_table(candidates, stype: StatementType, parse) -> ParsedTable | None:
    """Parse candidates in order; prefer the first with a categorized row.

    A table-of-contents hit parses to rows like "Balance Sheets ... 46" that
    never categorize, so the real statement further down wins.
    """
    fallback = None
    for heading, section in candidates:
        table = parse(heading, section, stype)
        if table is None:
            continue
        if any(r.category is not None for r in table.rows):
            return table
        if fallback is None:
            fallback = table
    return fallback


# ═══════════════════════════════════════════════════════════════════════════
#  HTML rows
# ═══════════════════════════════════════════════════════════════════════════

def _parse_html_statement(html: str, stype: StatementType) -> ParsedTable | None:
    return _first_table(iter_statement_sections(html, stype, html=True), stype, _parse_html_section)


def _parse_html_section(heading: str, section: str, stype: StatementType) -> ParsedTable | None:
    soup = BeautifulSoup(section, "html.parser")
    section_text = clean_html_to_text(section)
    unit = detect_unit(section_text)
    periods, columns = extract_periods(section_text)

    rows: list[TableRow] = []
    for tr in soup.find_all("tr"):
        cells = tr.find_all(["td", "th"])
        if not cells:
            continue
        label_idx = None
        for i, cell in enumerate(cells):
            txt = cell.get_text(" ", strip=True)
            if txt and not _NUMERIC_ONLY_RE.match(txt) and txt not in _FRAGMENT_CELLS:
                label_idx = i
                break
        if label_idx is None:
            continue
        label_cell = cells[label_idx]
        # Source whitespace is layout noise; only non-breaking spaces indent
        raw_label = label_cell.get_text(" ").lstrip(" \n\t\r")
        style = " ".join(
            t.get("style", "") for t in [label_cell, *label_cell.find_all(True)] if t.get("style")
        )
        value_texts = [c.get_text(" ", strip=True) for c in cells[label_idx + 1:]]
        row = _build_row(raw_label, value_texts, columns, style)
        if row is not None:
            rows.append(row)

    if not rows:
        return None
    return ParsedTable(
        statement_type=stype,
        title=re.sub(r"\s+", " ", heading).strip(),
        periods=periods,
        rows=tuple(rows),
        unit=unit,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Text rows
# ═══════════════════════════════════════════════════════════════════════════

def _parse_text_statement(text: str, stype: StatementType) -> ParsedTable | None:
    return _first_table(iter_statement_sections(text, stype, html=False), stype, _parse_text_section)


def _parse_text_section(heading: str, section: str, stype: StatementType) -> ParsedTable | None:
    unit = detect_unit(section)
    periods, columns = extract_periods(section)

    rows: list[TableRow] = []
    for line in section.split("\n")[1:]:
        if len(line.strip()) < 5:
            continue
        if CELL_DELIMITER.strip() in line:
            cells = [c.strip() for c in line.split("|")]
            label, value_texts = cells[0], cells[1:]
        else:
            m = _TEXT_NUMBER_RE.search(line)
            if m is None:
                continue
            label = line[: m.start()]
            value_texts = [t.strip() for t in _TEXT_NUMBER_RE.findall(line[m.start():])]
        row = _build_row(label, value_texts, columns, None)
        if row is not None:
            rows.append(row)

    if not rows:
        return None
    return ParsedTable(
        statement_type=stype,
        title=heading.strip(),
        periods=periods,
        rows=tuple(rows),
        unit=unit,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Shared row building
# ═══════════════════════════════════════════════════════════════════════════

def _build_row(
    raw_label: str,
    value_texts: list[str],
    columns: tuple[int, ...],
    style: str | None,
) -> TableRow | None:
    label = re.sub(r"\s+", " ", raw_label.replace("\u00a0", " ")).strip().rstrip(":$ ").strip()
    if len(label) < 3 or _NUMERIC_ONLY_RE.match(label):
        return None
    if _PAGE_FURNITURE_RE.search(label):
        log.debug("Skipping page furniture row %r", label)
        return None
    if _HEADER_LABEL_RE.search(label):
        return None

    slots = _value_slots(value_texts, max(columns) + 1)
    values = tuple(parse_cell_value(slots[i]) if i < len(slots) else None for i in columns)
    if all(v is None for v in values):
        return None

    return TableRow(
        label=label,
        values=values,
        is_subtotal=is_subtotal(label),
        is_total=is_total(label),
        indent_level=estimate_indent_level(raw_label, style),
        category=categorize(label),
    )


def _value_slots(cells: list[str], n_columns: int) -> list[str | None]:
    """One entry per value column; ``None`` marks a blank cell.

    Split cells (``"$"``, ``"(56"``, ``")"``) are joined into one token.
    A run of blank cells holds a single column, and blanks only hold a
    column at all when the row has fewer values than *n_columns*.
    """
    slots: list[str | None] = []
    for raw in cells:
        t = (raw or "").replace("\u00a0", " ").strip()
        if not t:
            if not slots or slots[-1] is not None:
                slots.append(None)
            continue
        if t in _FRAGMENT_CELLS:
            continue
        if t in (")", ")%"):
            last = slots[-1] if slots else None
            if last is not None and last.startswith("(") and not last.endswith(")"):
                slots[-1] = last + ")"
            continue
        if t.startswith("$"):
            t = t[1:].strip()
        if t in _DASH_CELLS:
            slots.append(t)
            continue
        t = t.rstrip("%").strip()
        if t == "(":
            slots.append("(")
            continue
        if slots and slots[-1] == "(":
            slots[-1] = "(" + t
            continue
        if _NUMBER_CELL_RE.match(t):
            slots.append(t)

    filled = [s for s in slots if s is not None and s != "("]
    if len(filled) >= n_columns:
        return filled
    return [None if s == "(" else s for s in slots]


def _distinct(items) -> list[str]:
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def _date_key(label: str) -> tuple[int, int, int]:
    cleaned = label.replace(",", "")
    try:
        dt = datetime.strptime(cleaned.title(), "%B %d %Y")
    except ValueError:
        return (0, 0, 0)
    return (dt.year, dt.month, dt.day)


def _order_newest_first(labels: list[str], keys: list, max_periods: int) -> tuple[tuple[str, ...], tuple[int, ...]]:
    """The *max_periods* most recent labels, newest first, with their source columns."""
    order = sorted(range(len(labels)), key=lambda i: keys[i], reverse=True)[:max_periods]
    return tuple(labels[i] for i in order), tuple(order)
