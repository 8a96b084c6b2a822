"""Document → AnalysisResult pipeline.

``analyze()`` is the single entry point.  It is a pure function of its
arguments: no I/O, no shared mutable state, safe to call concurrently for
independent documents.  Each stage is guarded; a failing stage logs a
warning and contributes its empty default, so the worst outcome is a
result with no metrics and ``DataQuality.UNKNOWN``.
"""

from __future__ import annotations

import logging
import re

from sec_analyzer.filing_details import extract_filing_details
from sec_analyzer.filing_types import detect_form_type, get_profile
from sec_analyzer.inline_facts import extract_structured_facts
from sec_analyzer.merger import merge
from sec_analyzer.models import (
    AnalysisHints,
    AnalysisResult,
    CanonicalCategory as C,
    DocumentFormat,
    ExtendedFinancialMetric,
    FULL_DOCUMENT,
    FilingDetails,
    FormType,
    ParsedTable,
    PeriodType,
    RawDocument,
    SectionEntry,
    SectionMap,
    StatementType,
    StructuredFinancialData,
    TableRow,
    TrendSummary,
)
from sec_analyzer.normalizer import looks_like_html, normalize
from sec_analyzer.numeric import safe_float
from sec_analyzer.pattern_extractor import detect_period, detect_period_type, extract_pattern_metrics
from sec_analyzer.ratios import compute_ratio_list
from sec_analyzer.risk_factors import extract_risk_factors
from sec_analyzer.section_segmenter import segment
from sec_analyzer.statements import build_structured_data
from sec_analyzer.table_parser import FALLBACK_PERIODS, convert_to_metrics, parse_financial_tables
from sec_analyzer.trends import detect_anomaly, growth_rate, margin_trend

log = logging.getLogger(__name__)

_COVER_CHARS = 20_000

_REGISTRANT_RE = re.compile(
    r"^[ \t]*([^\n]{2,120}?)[ \t]*\n[ \t]*\(?\s*exact\s+name\s+of\s+registrant",
    re.IGNORECASE | re.MULTILINE,
)
_CONFORMED_NAME_RE = re.compile(r"company\s+conformed\s+name:\s*([^\n]+)", re.IGNORECASE)

_FORM_PERIOD_TYPES: dict[FormType, PeriodType] = {
    FormType.FORM_10K: PeriodType.ANNUAL,
    FormType.FORM_20F: PeriodType.ANNUAL,
    FormType.FORM_10Q: PeriodType.QUARTERLY,
}


# ═══════════════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════════════

def analyze(
    content: str | bytes | RawDocument | None,
    format: DocumentFormat | str | None = None,
    form_type: FormType | str | None = None,
    hints: AnalysisHints | None = None,
) -> AnalysisResult:
    """Analyze one filing and return an immutable ``AnalysisResult``.

    Args:
        content: Raw filing text or bytes (or a ``RawDocument``).
        format: "html" / "plain"; sniffed from the content when omitted.
        form_type: Declared form ("10-K", "10-Q/A", "DEF 14A", ...); read
            from the cover page when omitted, ``UNKNOWN`` when unrecognized.
        hints: Optional company name / period supplied by the caller.

    Never raises for malformed input.
    """
    try:
        return _analyze(content, format, form_type, hints)
    except Exception as exc:
        log.warning("Analysis failed, returning empty result: %s", exc)
        declared = form_type if isinstance(form_type, str) else None
        return AnalysisResult(form_type=FormType.from_string(declared))


def _analyze(
    content: str | bytes | RawDocument | None,
    fmt: DocumentFormat | str | None,
    form_type: FormType | str | None,
    hints: AnalysisHints | None,
) -> AnalysisResult:
    hints = hints or AnalysisHints()

    if isinstance(content, RawDocument):
        fmt = fmt or content.format
        form_type = form_type or content.declared_form_type
        raw = content.text
    elif isinstance(content, bytes):
        raw = content.decode("utf-8", errors="replace")
    else:
        raw = content or ""

    resolved_fmt = DocumentFormat.coerce(fmt)
    if resolved_fmt is None:
        resolved_fmt = DocumentFormat.HTML if looks_like_html(raw) else DocumentFormat.PLAIN

    # ── Normalize ─────────────────────────────────────────────────────
    try:
        clean_text = normalize(raw, resolved_fmt)
    except Exception as exc:
        log.warning("Normalization failed: %s", exc)
        clean_text = raw

    form = FormType.from_string(form_type) if form_type else detect_form_type(clean_text)
    profile = get_profile(form)
    log.info("Analyzing %s document as %s (%d chars)", resolved_fmt.value, form.value, len(clean_text))

    # ── Segment ───────────────────────────────────────────────────────
    try:
        sections = segment(clean_text, form)
    except Exception as exc:
        log.warning("Segmentation failed: %s", exc)
        sections = SectionMap(entries=(
            SectionEntry(name=FULL_DOCUMENT, start=0, end=len(clean_text), text=clean_text),
        ))

    # ── Filing details ────────────────────────────────────────────────
    try:
        details = extract_filing_details(sections, clean_text, form)
    except Exception as exc:
        log.warning("Filing detail extraction failed: %s", exc)
        details = FilingDetails()

    cover = clean_text[:_COVER_CHARS]
    # 10-K, 20-F and 10-Q fix the period type; other forms are read from the cover
    period_type = _FORM_PERIOD_TYPES.get(form) or detect_period_type(cover)

    # ── Tables ────────────────────────────────────────────────────────
    tables: list[ParsedTable] = []
    table_metrics: list[ExtendedFinancialMetric] = []
    if profile.statement_types:
        try:
            tables = parse_financial_tables(
                raw, resolved_fmt, clean_text=clean_text, statement_types=profile.statement_types,
            )
            table_metrics = convert_to_metrics(tables, period_type)
        except Exception as exc:
            log.warning("Table extraction failed: %s", exc)

    # ── Structured facts ──────────────────────────────────────────────
    fact_metrics: list[ExtendedFinancialMetric] = []
    if resolved_fmt is DocumentFormat.HTML:
        try:
            fact_metrics = extract_structured_facts(raw)
        except Exception as exc:
            log.warning("Inline XBRL extraction failed: %s", exc)

    # ── Text patterns ─────────────────────────────────────────────────
    pattern_metrics: list[ExtendedFinancialMetric] = []
    try:
        covered = frozenset(m.category for m in (*table_metrics, *fact_metrics))
        pattern_metrics = extract_pattern_metrics(clean_text, skip=covered)
    except Exception as exc:
        log.warning("Pattern extraction failed: %s", exc)

    metrics = merge(table_metrics, fact_metrics, pattern_metrics)

    # ── Header fields ─────────────────────────────────────────────────
    company_name = hints.company_name_hint or extract_company_name(cover)
    report_type = form.value if form is not FormType.UNKNOWN else None
    period_ending = hints.period_hint or detect_period(cover) or _table_period(tables)

    # ── Statements & ratios ───────────────────────────────────────────
    try:
        structured = build_structured_data(
            metrics, company_name, report_type, period_ending,
            period_type=period_type,
            fiscal_year=details.fiscal_year,
            fiscal_period=details.fiscal_quarter.quarter if details.fiscal_quarter else None,
        )
    except Exception as exc:
        log.warning("Statement building failed: %s", exc)
        structured = StructuredFinancialData(company_name=company_name, report_type=report_type)

    try:
        ratios = compute_ratio_list(structured.key_metrics)
    except Exception as exc:
        log.warning("Ratio grading failed: %s", exc)
        ratios = []

    # ── Risk factors ──────────────────────────────────────────────────
    try:
        risks = extract_risk_factors(sections, clean_text, form)
    except Exception as exc:
        log.warning("Risk factor extraction failed: %s", exc)
        risks = []

    # ── Trends ────────────────────────────────────────────────────────
    try:
        trends = compute_table_trends(tables)
    except Exception as exc:
        log.warning("Trend computation failed: %s", exc)
        trends = TrendSummary()

    return AnalysisResult(
        company_name=company_name,
        report_type=report_type,
        period_ending=period_ending,
        form_type=form,
        metrics=tuple(metrics),
        structured_data=structured,
        ratios=tuple(ratios),
        risk_factors=tuple(risks),
        sections=sections,
        tables=tuple(tables),
        trends=trends,
        filing_details=details,
        data_quality=structured.data_quality,
        parsing_confidence=structured.parsing_confidence,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════════

def extract_company_name(text: str) -> str | None:
    """Registrant name from the cover page or the SGML header."""
    m = _CONFORMED_NAME_RE.search(text)
    if m:
        return m.group(1).strip() or None
    m = _REGISTRANT_RE.search(text)
    if m:
        name = m.group(1).strip(" |")
        if name and not re.fullmatch(r"[\d\-\s()]+", name):
            return name
    return None


def compute_table_trends(tables: list[ParsedTable]) -> TrendSummary:
    """Growth, margin trend and revenue anomaly from the income statement columns."""
    income = next((t for t in tables if t.statement_type is StatementType.INCOME_STATEMENT), None)
    if income is None or len(income.periods) < 2:
        return TrendSummary()

    revenue = _row_series(income, C.REVENUE)
    net_income = _row_series(income, C.NET_INCOME)
    cost = _row_series(income, C.COST_OF_REVENUE)
    if not cost and revenue:
        gross = _row_series(income, C.GROSS_PROFIT)
        if gross:
            cost = [
                (r - g) if r is not None and g is not None else None
                for r, g in zip(revenue, gross)
            ]

    revenue_growth = growth_rate(revenue[0], revenue[1]) if len(revenue) >= 2 else None
    ni_growth = growth_rate(net_income[0], net_income[1]) if len(net_income) >= 2 else None

    gm_trend = None
    if revenue and cost and len(revenue) == len(cost):
        # Table columns are newest first; the trend wants oldest first
        gm_trend = margin_trend(revenue[::-1], cost[::-1])

    anomaly = None
    if revenue and revenue[0] is not None:
        history = [v for v in revenue[1:] if v is not None]
        anomaly = detect_anomaly(revenue[0], history, metric_name="Revenue")

    return TrendSummary(
        revenue_growth=revenue_growth,
        net_income_growth=ni_growth,
        gross_margin_trend=gm_trend,
        revenue_anomaly=anomaly,
    )


def _row_series(table: ParsedTable, category: C) -> list[float | None]:
    """Scaled values (newest first) of the best row for *category*."""
    rows = [r for r in table.rows if r.category is category]
    if not rows:
        return []
    row: TableRow = next((r for r in rows if r.is_total), rows[0])
    mult = float(table.unit.multiplier) if not category.is_per_share else 1.0
    values = [safe_float(v) for v in row.values]
    return [v * mult if v is not None else None for v in values]


def _table_period(tables: list[ParsedTable]) -> str | None:
    for t in tables:
        if t.periods and t.periods[0] not in FALLBACK_PERIODS:
            return t.periods[0]
    return None
