"""End-to-end tests for analyze()."""

from decimal import Decimal

import pytest

from sec_analyzer.models import (
    AnalysisHints,
    AnalysisResult,
    AnomalySeverity,
    DataQuality,
    DocumentFormat,
    FormType,
    FULL_DOCUMENT,
    MetricSource,
    PeriodType,
    RawDocument,
    TrendDirection,
)
from sec_analyzer.pipeline import analyze, compute_table_trends, extract_company_name
from sec_analyzer.trends import INSUFFICIENT_HISTORY


def test_headline_figures_from_running_text():
    result = analyze("Total Revenue $1,000 million for the year. Net Income $100 million.")
    income = result.structured_data.income_statement
    assert income.total_revenue.amount == Decimal(1_000_000_000)
    assert income.net_income.amount == Decimal(100_000_000)
    assert result.structured_data.key_metrics.net_profit_margin == pytest.approx(10.0)
    assert all(m.source is MetricSource.PATTERN for m in result.metrics)
    assert result.data_quality is DataQuality.LOW


def test_annual_report(ten_k_text):
    result = analyze(ten_k_text)

    assert result.form_type is FormType.FORM_10K
    assert result.report_type == "10-K"
    assert result.company_name == "Acme Widgets, Inc."
    assert result.period_ending == "December 31, 2024"
    assert result.data_quality is DataQuality.HIGH
    assert result.parsing_confidence >= 0.8

    income = result.structured_data.income_statement
    assert income.total_revenue.amount == Decimal(1_200_000_000)
    assert income.period_type is PeriodType.ANNUAL
    assert income.diluted_eps == Decimal("1.20")
    assert result.structured_data.balance_sheet.total_assets.amount == Decimal(2_000_000_000)
    assert result.structured_data.cash_flow_statement.free_cash_flow.amount == Decimal(180_000_000)
    assert result.structured_data.fiscal_year == "2024"
    assert result.structured_data.validation == ()

    km = result.structured_data.key_metrics
    assert km.net_profit_margin == pytest.approx(10.0)
    assert km.current_ratio == pytest.approx(2.0)
    assert km.interest_coverage == pytest.approx(12.0)
    assert km.revenue_growth == pytest.approx(20.0)

    categories = [m.category for m in result.metrics]
    assert len(categories) == len(set(categories))
    assert {r.name for r in result.ratios} >= {"Net Profit Margin", "Current Ratio", "Debt to Equity"}
    assert len(result.risk_factors) == 2
    assert result.sections.names()[0] == "Item 1"
    assert len(result.tables) == 3


def test_annual_report_trends(ten_k_text):
    trends = analyze(ten_k_text, form_type="10-K").trends
    assert trends.revenue_growth.growth_rate == pytest.approx(20.0)
    assert trends.net_income_growth.growth_rate == pytest.approx(20.0)
    assert trends.gross_margin_trend.direction is TrendDirection.IMPROVING
    assert trends.gross_margin_trend.margins[0] == pytest.approx(37.78)
    assert trends.revenue_anomaly.severity is AnomalySeverity.NONE
    assert trends.revenue_anomaly.message == INSUFFICIENT_HISTORY


def test_quarterly_report(ten_q_text):
    result = analyze(ten_q_text, "plain", "10-Q")
    assert result.form_type is FormType.FORM_10Q
    assert [r.title for r in result.risk_factors] == ["No Material Changes"]
    assert result.filing_details.fiscal_quarter.quarter == "Q2"
    assert result.structured_data.fiscal_period == "Q2"


def test_current_report(eight_k_text):
    result = analyze(eight_k_text)
    assert result.form_type is FormType.FORM_8K
    assert result.filing_details.importance_score == 18
    assert result.risk_factors[0].title == "Bankruptcy Event"


def test_html_document(statement_html):
    result = analyze(statement_html.encode("utf-8"), form_type="10-K")
    income = result.structured_data.income_statement
    assert income.total_revenue.amount == Decimal(5_000_000)
    assert income.net_income.amount == Decimal(-56_000)
    assert result.tables[0].periods == ("2024", "2023")


def test_inline_facts_outrank_patterns(inline_html):
    result = analyze(inline_html, DocumentFormat.HTML, "10-K")
    revenue = next(m for m in result.metrics if m.category.value == "revenue")
    assert revenue.source is MetricSource.STRUCTURED_FACT
    assert revenue.raw_value == Decimal(1_200_000_000)


def test_hints_override_cover_page(ten_k_text):
    hints = AnalysisHints(company_name_hint="Acme Corp", period_hint="FY 2024")
    result = analyze(ten_k_text, hints=hints)
    assert result.company_name == "Acme Corp"
    assert result.period_ending == "FY 2024"
    assert result.structured_data.company_name == "Acme Corp"


def test_raw_document_input(ten_q_text):
    doc = RawDocument(content=ten_q_text.encode("utf-8"), format=DocumentFormat.PLAIN, declared_form_type="10-Q")
    assert analyze(doc).form_type is FormType.FORM_10Q


def test_idempotent(ten_k_text):
    assert analyze(ten_k_text, "plain", "10-K") == analyze(ten_k_text, "plain", "10-K")


@pytest.mark.parametrize("content", [None, "", b"\xff\xfe\x00\x81garbage", "<<<>>>", "\x00" * 100])
def test_never_raises_on_bad_input(content):
    result = analyze(content)
    assert isinstance(result, AnalysisResult)
    assert result.data_quality is DataQuality.UNKNOWN
    assert result.metrics == ()
    assert result.sections.names() == [FULL_DOCUMENT]


def test_unrecognized_declared_form(ten_k_text):
    result = analyze(ten_k_text, form_type="N-CSR")
    assert result.form_type is FormType.UNKNOWN
    assert result.report_type is None


def test_result_serializes(ten_k_text):
    result = analyze(ten_k_text)
    assert AnalysisResult.model_validate_json(result.model_dump_json()) == result


def test_result_is_frozen(ten_k_text):
    result = analyze(ten_k_text)
    with pytest.raises(Exception):
        result.company_name = "Other"


def test_extract_company_name():
    assert extract_company_name("COMPANY CONFORMED NAME: ACME WIDGETS INC\n") == "ACME WIDGETS INC"
    assert extract_company_name("Globex Corp\n(Exact name of registrant as specified)") == "Globex Corp"
    assert extract_company_name("no name here") is None


def test_table_trends_without_tables():
    assert compute_table_trends([]).revenue_growth is None


def test_declared_annual_form_fixes_period_type(ten_k_text):
    text = ten_k_text.replace(
        "Item 1. Business\n",
        "Item 1. Business\nShipments in the quarter ended March 31, 2024 set a record.\n",
    )
    result = analyze(text, form_type="10-K")
    assert result.structured_data.income_statement.period_type is PeriodType.ANNUAL
    revenue = next(m for m in result.metrics if m.category.value == "revenue")
    assert revenue.period_type is PeriodType.ANNUAL
