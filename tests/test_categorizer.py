"""Tests for row label categorization."""

import pytest

from sec_analyzer.categorizer import (
    categorize,
    estimate_indent_level,
    is_subtotal,
    is_total,
    normalize_label,
)
from sec_analyzer.models import CanonicalCategory as C


@pytest.mark.parametrize("label, category", [
    ("Total revenues", C.REVENUE),
    ("Net sales", C.REVENUE),
    ("Revenues:", C.REVENUE),
    ("Cost of revenue", C.COST_OF_REVENUE),
    ("Income before provision for income taxes", C.INCOME_BEFORE_TAX),
    ("Provision for income taxes", C.INCOME_TAX),
    ("Net income (loss)", C.NET_INCOME),
    ("Net income attributable to Acme, Inc.", C.NET_INCOME),
    ("Diluted net income per share", C.EPS_DILUTED),
    ("Basic earnings per share", C.EPS_BASIC),
    ("Total stockholders\u2019 equity", C.TOTAL_EQUITY),
    ("Cash and cash equivalents", C.CASH),
    ("Long-term debt, net", C.LONG_TERM_DEBT),
    ("Long-term debt, net of current portion", C.LONG_TERM_DEBT),
    ("Long-term debt, less current portion", C.LONG_TERM_DEBT),
    ("Long-term debt, excluding current maturities", C.LONG_TERM_DEBT),
    ("Net cash provided by (used in) operating activities", C.OPERATING_CASH_FLOW),
    ("Purchases of property, plant and equipment", C.CAPEX),
    ("Total assets (1)", C.TOTAL_ASSETS),
])
def test_categorize(label, category):
    assert categorize(label) is category


@pytest.mark.parametrize("label", [
    "Total liabilities and stockholders' equity",
    "Deferred revenue",
    "Net income attributable to noncontrolling interests",
    "Increase in cash and cash equivalents",
    "Long-term debt, current portion",
    "Current portion of long-term debt",
    "Long-term debt due within one year",
    "",
])
def test_categorize_exclusions(label):
    assert categorize(label) is None


def test_normalize_label():
    assert normalize_label("  Total Assets (2) ") == "total assets"
    assert normalize_label("Stockholders\u2019 Equity*") == "stockholders' equity"


def test_total_and_subtotal():
    assert is_total("Total current assets")
    assert not is_total("Net income")
    assert is_subtotal("Subtotal of operating expenses")
    assert not is_total("Subtotal operating expenses")
    assert is_total("Revenue, total")


def test_indent_level():
    assert estimate_indent_level("Inventories") == 0
    assert estimate_indent_level("      Inventories") == 2
    assert estimate_indent_level("Inventories", "padding-left: 40px") == 2
    assert estimate_indent_level("Inventories", "text-indent:30pt") == 2
    assert estimate_indent_level("            Inventories") == 3
