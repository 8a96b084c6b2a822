"""Per-form configuration: section header patterns, statement headings and
risk-extraction strategy.

Each supported form type gets one ``FilingProfile``.  The segmenter, the
table locator and the risk extractor all read from these profiles instead
of branching on the form type themselves, so adding a form means adding
data here and nothing else.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from sec_analyzer.models import FormType, StatementType


class HeaderPattern(NamedTuple):
    name: str                    # canonical section name; "{}" is filled from group 1
    pattern: re.Pattern[str]


class RiskStrategy(str, Enum):
    STANDARD = "standard"            # list items, then paragraphs
    QUARTERLY = "quarterly"          # "no material changes" short-circuit
    CURRENT_EVENT = "current_event"  # synthesize from 8-K item presence
    NONE = "none"


class FilingProfile(NamedTuple):
    form_type: FormType
    description: str
    headers: tuple[HeaderPattern, ...]
    risk_sections: tuple[str, ...]
    risk_strategy: RiskStrategy
    statement_types: tuple[StatementType, ...]


_FLAGS = re.IGNORECASE | re.MULTILINE


def _item(number: str, title: str) -> re.Pattern[str]:
    """``Item <number>`` at the start of a line followed by its title.

    The title may sit on the next line; HTML cover pages often put the item
    number and its caption in separate cells.
    """
    num = number.replace(".", r"\.")
    return re.compile(
        rf"^[ \t]*(?:part[ \t]+[ivx]+[ \t.,:\-]*)?item[ \t]+{num}(?!\d)[ \t.:|\-]*\n?[ \t|]*(?:{title})",
        _FLAGS,
    )


def _heading(title: str) -> re.Pattern[str]:
    """A standalone heading line (short trailing text allowed, e.g. page numbers)."""
    return re.compile(rf"^[ \t]*(?:{title})\b[^\n]{{0,40}}$", _FLAGS)


# ═══════════════════════════════════════════════════════════════════════════
#  Section headers per form
# ═══════════════════════════════════════════════════════════════════════════

_10K_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern("Item 1", _item("1", r"business")),
    HeaderPattern("Item 1A", _item("1A", r"risk\s+factors?")),
    HeaderPattern("Item 1B", _item("1B", r"unresolved\s+staff\s+comments?")),
    HeaderPattern("Item 1C", _item("1C", r"cybersecurity")),
    HeaderPattern("Item 2", _item("2", r"properties")),
    HeaderPattern("Item 3", _item("3", r"legal\s+proceedings?")),
    HeaderPattern("Item 4", _item("4", r"mine\s+safety|submission\s+of\s+matters")),
    HeaderPattern("Item 5", _item("5", r"market\s+for\s+(?:the\s+)?registrant")),
    HeaderPattern("Item 6", _item("6", r"\[?reserved\]?|selected\s+financial")),
    HeaderPattern("Item 7", _item("7", r"management.{0,3}s?\s+discussion|md\s*&\s*a")),
    HeaderPattern("Item 7A", _item("7A", r"quantitative\s+and\s+qualitative")),
    HeaderPattern("Item 8", _item("8", r"financial\s+statements?")),
    HeaderPattern("Item 9", _item("9", r"changes?\s+in\s+and\s+disagreements?")),
    HeaderPattern("Item 9A", _item("9A", r"controls?\s+and\s+procedures?")),
    HeaderPattern("Item 9B", _item("9B", r"other\s+information")),
    HeaderPattern("Item 9C", _item("9C", r"disclosure\s+regarding\s+foreign")),
    HeaderPattern("Item 10", _item("10", r"directors?|executive\s+officers?|corporate\s+governance")),
    HeaderPattern("Item 11", _item("11", r"executive\s+compensation")),
    HeaderPattern("Item 12", _item("12", r"security\s+ownership")),
    HeaderPattern("Item 13", _item("13", r"certain\s+relationships?")),
    HeaderPattern("Item 14", _item("14", r"principal\s+account(?:ant|ing)\s+fees?")),
    HeaderPattern("Item 15", _item("15", r"exhibits?")),
    HeaderPattern("Item 16", _item("16", r"form\s+10-k\s+summary")),
)

_10Q_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern("Part I - Item 1", _item("1", r"financial\s+statements?")),
    HeaderPattern("Part I - Item 2", _item("2", r"management.{0,3}s?\s+discussion")),
    HeaderPattern("Part I - Item 3", _item("3", r"quantitative\s+and\s+qualitative")),
    HeaderPattern("Part I - Item 4", _item("4", r"controls?\s+and\s+procedures?")),
    HeaderPattern("Part II - Item 1", _item("1", r"legal\s+proceedings?")),
    HeaderPattern("Part II - Item 1A", _item("1A", r"risk\s+factors?")),
    HeaderPattern("Part II - Item 2", _item("2", r"unregistered\s+sales")),
    HeaderPattern("Part II - Item 3", _item("3", r"defaults?\s+upon\s+senior")),
    HeaderPattern("Part II - Item 4", _item("4", r"mine\s+safety")),
    HeaderPattern("Part II - Item 5", _item("5", r"other\s+information")),
    HeaderPattern("Part II - Item 6", _item("6", r"exhibits?")),
)

# 8-K item numbers and titles (Form 8-K General Instructions)
EIGHT_K_ITEMS: dict[str, str] = {
    "1.01": "Entry into a Material Definitive Agreement",
    "1.02": "Termination of a Material Definitive Agreement",
    "1.03": "Bankruptcy or Receivership",
    "1.04": "Mine Safety",
    "1.05": "Material Cybersecurity Incidents",
    "2.01": "Completion of Acquisition or Disposition of Assets",
    "2.02": "Results of Operations and Financial Condition",
    "2.03": "Creation of a Direct Financial Obligation",
    "2.04": "Triggering Events That Accelerate or Increase a Direct Financial Obligation",
    "2.05": "Costs Associated with Exit or Disposal Activities",
    "2.06": "Material Impairments",
    "3.01": "Notice of Delisting or Failure to Satisfy a Continued Listing Rule",
    "3.02": "Unregistered Sales of Equity Securities",
    "3.03": "Material Modification to Rights of Security Holders",
    "4.01": "Changes in Registrant's Certifying Accountant",
    "4.02": "Non-Reliance on Previously Issued Financial Statements",
    "5.01": "Changes in Control of Registrant",
    "5.02": "Departure or Appointment of Directors or Officers",
    "5.03": "Amendments to Articles of Incorporation or Bylaws",
    "5.07": "Submission of Matters to a Vote of Security Holders",
    "7.01": "Regulation FD Disclosure",
    "8.01": "Other Events",
    "9.01": "Financial Statements and Exhibits",
}

_8K_HEADERS: tuple[HeaderPattern, ...] = tuple(
    HeaderPattern(f"Item {num}", _item(num, r""))
    for num in EIGHT_K_ITEMS
)

_S1_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern("Prospectus Summary", _heading(r"prospectus\s+summary")),
    HeaderPattern("Risk Factors", _heading(r"risk\s+factors")),
    HeaderPattern("Use of Proceeds", _heading(r"use\s+of\s+proceeds")),
    HeaderPattern("Dividend Policy", _heading(r"dividend\s+policy")),
    HeaderPattern("Capitalization", _heading(r"capitalization")),
    HeaderPattern("Dilution", _heading(r"dilution")),
    HeaderPattern("Management's Discussion", _heading(r"management'?s?\s+discussion")),
    HeaderPattern("Business", _heading(r"(?:our\s+)?business")),
    HeaderPattern("Management", _heading(r"management")),
    HeaderPattern("Executive Compensation", _heading(r"executive\s+compensation")),
    HeaderPattern("Directors and Officers", _heading(r"directors\s+and\s+(?:executive\s+)?officers")),
    HeaderPattern("Principal Stockholders", _heading(r"principal\s+(?:and\s+selling\s+)?(?:stock|share)holders")),
    HeaderPattern("Underwriting", _heading(r"underwriting")),
    HeaderPattern("Legal Matters", _heading(r"legal\s+matters")),
)

_DEF14A_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern("Meeting Information", _heading(r"notice\s+of\s+(?:the\s+)?annual\s+meeting")),
    HeaderPattern("Voting Matters", _heading(r"(?:matters|proposals)\s+to\s+be\s+voted")),
    HeaderPattern("Directors", _heading(r"(?:proposal\s+(?:no\.\s*)?\d+[:.\-\s]+)?(?:proposal\s+for\s+|the\s+)?election\s+of\s+directors")),
    HeaderPattern("Corporate Governance", _heading(r"corporate\s+governance")),
    HeaderPattern("Executive Compensation", _heading(r"executive\s+compensation|compensation\s+discussion\s+and\s+analysis")),
    HeaderPattern("Compensation Tables", _heading(r"summary\s+compensation\s+table")),
    HeaderPattern("Audit", _heading(r"(?:report\s+of\s+the\s+)?audit\s+committee")),
    HeaderPattern("Stock Ownership", _heading(r"security\s+ownership")),
)

_20F_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern("Item 3", _item("3", r"key\s+information")),
    HeaderPattern("Risk Factors", _heading(r"(?:d\.\s*)?risk\s+factors")),
    HeaderPattern("Item 4", _item("4", r"information\s+on\s+the\s+company")),
    HeaderPattern("Item 5", _item("5", r"operating\s+and\s+financial")),
    HeaderPattern("Item 6", _item("6", r"directors,?\s+senior\s+management")),
    HeaderPattern("Item 7", _item("7", r"major\s+shareholders")),
    HeaderPattern("Item 8", _item("8", r"financial\s+information")),
    HeaderPattern("Item 11", _item("11", r"quantitative\s+and\s+qualitative")),
    HeaderPattern("Item 18", _item("18", r"financial\s+statements")),
)

_GENERIC_HEADERS: tuple[HeaderPattern, ...] = (
    HeaderPattern(
        "Item {}",
        re.compile(
            r"^[ \t]*(?:part[ \t]+[ivx]+[ \t.,:\-]*)?item[ \t]+(\d{1,2}[a-c]?)[ \t]*[.:\-][ \t]*\S",
            _FLAGS,
        ),
    ),
    HeaderPattern("Risk Factors", _heading(r"risk\s+factors")),
    HeaderPattern("Management's Discussion", _heading(r"management'?s\s+discussion\s+and\s+analysis")),
    HeaderPattern("Financial Statements", _heading(r"(?:consolidated\s+)?financial\s+statements")),
)


# ═══════════════════════════════════════════════════════════════════════════
#  Statement heading synonyms (ordered, most specific first)
# ═══════════════════════════════════════════════════════════════════════════

STATEMENT_HEADINGS: dict[StatementType, tuple[str, ...]] = {
    StatementType.INCOME_STATEMENT: (
        "consolidated statements of operations",
        "consolidated statement of operations",
        "consolidated statements of income",
        "consolidated statement of income",
        "consolidated statements of earnings",
        "statements of operations",
        "statement of operations",
        "statements of income",
        "statement of income",
        "income statements",
        "income statement",
        "results of operations",
    ),
    StatementType.BALANCE_SHEET: (
        "consolidated balance sheets",
        "consolidated balance sheet",
        "consolidated statements of financial position",
        "consolidated statement of financial position",
        "balance sheets",
        "balance sheet",
        "statements of financial position",
        "statement of financial position",
        "financial position",
    ),
    StatementType.CASH_FLOW_STATEMENT: (
        "consolidated statements of cash flows",
        "consolidated statement of cash flows",
        "statements of cash flows",
        "statement of cash flows",
        "cash flow statements",
        "cash flow statement",
        "cash flows",
    ),
    StatementType.COMPREHENSIVE_INCOME: (
        "consolidated statements of comprehensive income",
        "consolidated statement of comprehensive income",
        "consolidated statements of comprehensive income (loss)",
        "statements of comprehensive income",
        "statement of comprehensive income",
        "comprehensive income",
    ),
    StatementType.EQUITY_STATEMENT: (
        "consolidated statements of stockholders' equity",
        "consolidated statements of shareholders' equity",
        "consolidated statements of changes in equity",
        "statements of stockholders' equity",
        "statements of shareholders' equity",
        "statement of changes in equity",
        "stockholders' equity statement",
    ),
}

ALL_STATEMENTS: tuple[StatementType, ...] = tuple(STATEMENT_HEADINGS)
_PRIMARY_STATEMENTS: tuple[StatementType, ...] = (
    StatementType.INCOME_STATEMENT,
    StatementType.BALANCE_SHEET,
    StatementType.CASH_FLOW_STATEMENT,
)


# ═══════════════════════════════════════════════════════════════════════════
#  Profiles
# ═══════════════════════════════════════════════════════════════════════════

_PROFILES: dict[FormType, FilingProfile] = {
    FormType.FORM_10K: FilingProfile(
        FormType.FORM_10K, "Annual Report", _10K_HEADERS,
        ("Item 1A", "Risk Factors"), RiskStrategy.STANDARD, ALL_STATEMENTS,
    ),
    FormType.FORM_10Q: FilingProfile(
        FormType.FORM_10Q, "Quarterly Report", _10Q_HEADERS,
        ("Part II - Item 1A", "Risk Factors"), RiskStrategy.QUARTERLY, ALL_STATEMENTS,
    ),
    FormType.FORM_8K: FilingProfile(
        FormType.FORM_8K, "Current Report", _8K_HEADERS,
        (), RiskStrategy.CURRENT_EVENT, _PRIMARY_STATEMENTS,
    ),
    FormType.FORM_S1: FilingProfile(
        FormType.FORM_S1, "Registration Statement", _S1_HEADERS,
        ("Risk Factors",), RiskStrategy.STANDARD, ALL_STATEMENTS,
    ),
    FormType.FORM_DEF14A: FilingProfile(
        FormType.FORM_DEF14A, "Proxy Statement", _DEF14A_HEADERS,
        (), RiskStrategy.NONE, (),
    ),
    FormType.FORM_20F: FilingProfile(
        FormType.FORM_20F, "Foreign Annual Report", _20F_HEADERS,
        ("Risk Factors", "Item 3"), RiskStrategy.STANDARD, ALL_STATEMENTS,
    ),
    FormType.UNKNOWN: FilingProfile(
        FormType.UNKNOWN, "Filing", _GENERIC_HEADERS,
        ("Item 1A", "Risk Factors"), RiskStrategy.STANDARD, ALL_STATEMENTS,
    ),
}


def get_profile(form_type: FormType | str | None) -> FilingProfile:
    """Return the profile for *form_type*; unknown forms get the generic one."""
    return _PROFILES[FormType.from_string(form_type)]


_REPORT_TYPE_RE = re.compile(
    r"\bform\s+(10-K|10-Q|8-K|20-F|S-1|DEF\s*14A)\b", re.IGNORECASE,
)


def detect_form_type(text: str) -> FormType:
    """Guess the form type from the cover page when none was declared."""
    m = _REPORT_TYPE_RE.search(text[:10_000])
    if not m:
        return FormType.UNKNOWN
    return FormType.from_string(m.group(1))
