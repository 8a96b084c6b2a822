"""Tests for risk factor extraction."""

from sec_analyzer.models import FormType, RiskCategory, RiskSeverity
from sec_analyzer.normalizer import normalize
from sec_analyzer.risk_factors import (
    NO_MATERIAL_CHANGES,
    assess_severity,
    categorize_risk,
    extract_risk_factors,
)
from sec_analyzer.section_segmenter import segment


def _risks(text, form_type):
    clean = normalize(text, "plain")
    return extract_risk_factors(segment(clean, form_type), clean, form_type)


def test_ten_k_list_items(ten_k_text):
    risks = _risks(ten_k_text, FormType.FORM_10K)
    assert [r.title for r in risks] == [
        "Our business depends on economic conditions in our key markets",
        "We face intense competition from larger rivals",
    ]
    assert risks[0].category is RiskCategory.MARKET
    assert risks[0].severity is RiskSeverity.HIGH
    assert risks[1].category is RiskCategory.COMPETITIVE
    assert risks[1].severity is RiskSeverity.MEDIUM


def test_quarterly_no_material_changes(ten_q_text):
    risks = _risks(ten_q_text, FormType.FORM_10Q)
    assert risks == [NO_MATERIAL_CHANGES]
    assert risks[0].severity is RiskSeverity.LOW
    assert risks[0].title == "No Material Changes"


def test_quarterly_with_updated_risks():
    text = (
        "FORM 10-Q\n"
        "PART II - OTHER INFORMATION\n"
        "Item 1A. Risk Factors\n"
        "1. Rising interest rates increase our borrowing costs. Our credit facility carries a floating rate.\n"
    )
    risks = _risks(text, FormType.FORM_10Q)
    assert len(risks) == 1
    assert risks[0].category is RiskCategory.FINANCIAL


def test_current_report_event_risks(eight_k_text):
    risks = _risks(eight_k_text, FormType.FORM_8K)
    assert [(r.title, r.severity) for r in risks] == [
        ("Bankruptcy Event", RiskSeverity.CRITICAL),
        ("Debt Acceleration", RiskSeverity.HIGH),
    ]
    assert all(r.category is RiskCategory.FINANCIAL for r in risks)


def test_proxy_has_no_risks(proxy_text):
    assert _risks(proxy_text, FormType.FORM_DEF14A) == []


def test_title_dash_lines():
    text = (
        "Item 1A. Risk Factors\n"
        "Competition may reduce demand - Our markets are highly competitive and new entrants "
        "could take share from our core product lines.\n"
    )
    risks = _risks(text, FormType.FORM_10K)
    assert len(risks) == 1
    assert risks[0].title == "Competition may reduce demand"
    assert risks[0].category is RiskCategory.MARKET


def test_paragraph_fallback():
    para = (
        "We rely on third-party manufacturing partners located overseas. Any disruption at these "
        "facilities could harm our ability to deliver products on time."
    )
    text = f"Item 1A. Risk Factors\n{para}\n\nShort note.\n"
    risks = _risks(text, FormType.FORM_10K)
    assert len(risks) == 1
    assert risks[0].title == "We rely on third-party manufacturing partners located overseas"
    assert risks[0].summary == para
    assert risks[0].category is RiskCategory.OPERATIONAL


def test_unsegmented_risk_block():
    text = (
        "Annual letter\n"
        "Risk Factors\n"
        "1. Cyber attacks on our systems could expose customer data and disrupt service.\n"
        "Item 2. Description of facilities\n"
        "1. This numbered line belongs to another part of the document entirely.\n"
    )
    risks = _risks(text, FormType.FORM_10K)
    assert [r.category for r in risks] == [RiskCategory.TECHNOLOGY]


def test_at_most_ten_distinct_risks():
    lines = [f"{i}. Risk number {i} could affect results in unpredictable ways." for i in range(1, 13)]
    lines.append("13. Risk number 1 could affect results in unpredictable ways.")
    text = "Item 1A. Risk Factors\n" + "\n".join(lines) + "\n"
    risks = _risks(text, FormType.FORM_10K)
    assert len(risks) == 10
    assert len({r.title for r in risks}) == 10


def test_missing_section_gives_no_risks():
    assert _risks("Item 1. Business\nWe sell widgets.\n", FormType.FORM_10K) == []


def test_categorize_and_severity_keywords():
    assert categorize_risk("New tariff rules and international tensions") is RiskCategory.GEOPOLITICAL
    assert categorize_risk("Something unusual") is RiskCategory.OTHER
    assert assess_severity("This could have a material adverse effect") is RiskSeverity.HIGH
    assert assess_severity("Only a minor, limited impact") is RiskSeverity.LOW
    assert assess_severity("Plain statement") is RiskSeverity.MEDIUM
