"""sec-analyzer MCP server: filing analysis over caller-supplied text.

Tool hierarchy
──────────────
  Full analysis
    1. analyze_document         — metrics, statements, ratios, risks, trends
    2. get_financial_ratios     — just the graded ratios

  Building blocks
    3. segment_document         — section name → text
    4. parse_statement_tables   — statement tables as rows × periods
    5. get_risk_factors         — categorized risk factors

  Trend math
    6. growth_between           — YoY / QoQ growth of two values
    7. anomaly_check            — z-score of a value against its history

  Enrichment (optional)
    8. enrich_document          — sentiment + entities (needs the nlp extra)

The server never retrieves filings; callers pass the document text.
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from sec_analyzer.config import get_config
from sec_analyzer.enrichment import Enricher, RegexEnricher, enrich_result
from sec_analyzer.models import AnalysisHints
from sec_analyzer.normalizer import normalize
from sec_analyzer.pipeline import analyze
from sec_analyzer.section_segmenter import segment
from sec_analyzer.table_parser import parse_financial_tables
from sec_analyzer.trends import detect_anomaly, growth_rate

log = logging.getLogger(__name__)

mcp = FastMCP(name="sec-analyzer")

# Lazy singleton; the model-backed enricher loads on first use
_enricher: Enricher | None = None


def _get_enricher() -> Enricher:
    global _enricher
    if _enricher is None:
        if get_config().enrichment_enabled:
            from sec_analyzer.enrichment import TransformerEnricher

            _enricher = TransformerEnricher()
        else:
            _enricher = RegexEnricher()
        _enricher.init()
    return _enricher


# ═══════════════════════════════════════════════════════════════════════════
#  FULL ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

def analyze_document(
    text: str,
    form_type: str | None = None,
    format: str | None = None,
    company_name: str | None = None,
    period: str | None = None,
) -> dict:
    """Analyze one SEC filing (HTML or plain text).

    Args:
        text: the filing document
        form_type: '10-K', '10-Q', '8-K', 'S-1', 'DEF 14A' or '20-F';
            read from the cover page when omitted
        format: 'html' or 'plain'; detected when omitted
        company_name: overrides the name found on the cover page
        period: overrides the detected period label

    Returns metrics, structured statements, ratios, risk factors, section
    names, trends and a data-quality grade.  Section text is omitted.
    """
    hints = AnalysisHints(company_name_hint=company_name, period_hint=period)
    result = analyze(text, format, form_type, hints)
    data = result.model_dump(mode="json", exclude={"sections"})
    data["section_names"] = result.sections.names()
    return data


def get_financial_ratios(text: str, form_type: str | None = None, format: str | None = None) -> dict:
    """Key financial metrics and graded ratios for a filing."""
    result = analyze(text, format, form_type)
    return {
        "company_name": result.company_name,
        "period_ending": result.period_ending,
        "key_metrics": result.structured_data.key_metrics.model_dump(mode="json"),
        "ratios": [r.model_dump(mode="json") for r in result.ratios],
        "data_quality": result.data_quality.value,
    }


# ═══════════════════════════════════════════════════════════════════════════
#  BUILDING BLOCKS
# ═══════════════════════════════════════════════════════════════════════════

def segment_document(text: str, form_type: str | None = None, format: str | None = None) -> dict:
    """Split a filing into named sections (e.g. 'Item 1A', 'Part II - Item 1A')."""
    return segment(normalize(text, format), form_type).as_dict()


def parse_statement_tables(text: str, format: str | None = None) -> list[dict]:
    """Income statement, balance sheet and cash flow tables found in a filing."""
    return [t.model_dump(mode="json") for t in parse_financial_tables(text, format)]


def get_risk_factors(text: str, form_type: str | None = None, format: str | None = None) -> list[dict]:
    """Risk factors with category and severity."""
    result = analyze(text, format, form_type)
    return [r.model_dump(mode="json") for r in result.risk_factors]


# ═══════════════════════════════════════════════════════════════════════════
#  TREND MATH
# ═══════════════════════════════════════════════════════════════════════════

def growth_between(current: float, previous: float, kind: str = "YoY") -> dict:
    """Growth rate in percent from *previous* to *current* ('YoY' or 'QoQ')."""
    metric = growth_rate(current, previous, kind)
    if metric is None:
        return {"error": "Growth is undefined for a previous value of zero"}
    return metric.model_dump(mode="json")


def anomaly_check(current: float, history: list[float], metric_name: str = "Value") -> dict:
    """Z-score of *current* against *history* (which excludes current)."""
    return detect_anomaly(current, history, metric_name).model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
#  ENRICHMENT
# ═══════════════════════════════════════════════════════════════════════════

def enrich_document(text: str, form_type: str | None = None, format: str | None = None) -> dict:
    """Sentiment and entity annotations for the narrative sections of a filing.

    Model-based annotations need ENRICHMENT_ENABLED=true and the nlp extra;
    otherwise only regex financial entities are returned.
    """
    enriched = enrich_result(analyze(text, format, form_type), _get_enricher())
    if enriched.annotations is None:
        return {"error": "Enrichment failed"}
    return enriched.annotations.model_dump(mode="json")


for _tool in (
    analyze_document,
    get_financial_ratios,
    segment_document,
    parse_statement_tables,
    get_risk_factors,
    growth_between,
    anomaly_check,
    enrich_document,
):
    mcp.tool()(_tool)


# ═══════════════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════

def main() -> None:
    import sys

    logging.basicConfig(level=get_config().log_level)
    # python -m sec_analyzer.server --sse   for remote hosting; STDIO otherwise
    if "--sse" in sys.argv:
        mcp.run(transport="sse")
    else:
        mcp.run()


if __name__ == "__main__":
    main()
