"""Shared sample filings."""

import pytest

TEN_K_TEXT = """\
UNITED STATES
SECURITIES AND EXCHANGE COMMISSION
Washington, D.C. 20549
FORM 10-K
ANNUAL REPORT PURSUANT TO SECTION 13 OR 15(d) OF THE SECURITIES EXCHANGE ACT OF 1934
For the fiscal year ended December 31, 2024
Acme Widgets, Inc.
(Exact name of registrant as specified in its charter)

Item 1. Business
Acme Widgets designs and manufactures industrial widgets for customers worldwide.

Item 1A. Risk Factors
1. Our business depends on economic conditions in our key markets. A downturn could reduce demand for our products and have a material adverse effect on our results.
2. We face intense competition from larger rivals. Competitors may cut prices, which could harm our margins over time.

Item 7. Management's Discussion and Analysis of Financial Condition and Results of Operations
Overview
Revenue increased 20% to $1.2 billion in 2024, driven by higher widget volumes.
Liquidity and Capital Resources
We ended the year with $300 million of cash and no borrowings under our revolving facility.

Item 8. Financial Statements and Supplementary Data
CONSOLIDATED STATEMENTS OF OPERATIONS
(In millions, except per share data)
Year Ended December 31, | 2024 | 2023 | 2022
Total revenue | 1,200 | 1,000 | 900
Cost of revenue | 700 | 600 | 560
Gross profit | 500 | 400 | 340
Research and development | 120 | 110 | 100
Selling, general and administrative | 140 | 130 | 120
Operating income | 240 | 160 | 120
Interest expense | (20) | (20) | (18)
Income before income taxes | 220 | 140 | 102
Provision for income taxes | 100 | 40 | 30
Net income | 120 | 100 | 72
Basic earnings per share | 1.25 | 1.05 | 0.76
Diluted earnings per share | 1.20 | 1.00 | 0.72

CONSOLIDATED BALANCE SHEETS
(In millions)
As of December 31, | 2024 | 2023
Cash and cash equivalents | 300 | 250
Accounts receivable, net | 150 | 140
Inventories | 100 | 90
Total current assets | 600 | 520
Total assets | 2,000 | 1,800
Accounts payable | 120 | 110
Total current liabilities | 300 | 280
Long-term debt | 500 | 450
Total liabilities | 1,000 | 900
Retained earnings | 700 | 600
Total stockholders' equity | 1,000 | 900
Total liabilities and stockholders' equity | 2,000 | 1,800

CONSOLIDATED STATEMENTS OF CASH FLOWS
(In millions)
Year Ended December 31, | 2024 | 2023
Net income | 120 | 100
Depreciation and amortization | 60 | 55
Net cash provided by operating activities | 260 | 210
Purchases of property and equipment | (80) | (70)
Net cash used in investing activities | (95) | (85)
Dividends paid | (30) | (25)
Net cash used in financing activities | (60) | (40)

Item 9A. Controls and Procedures
Our disclosure controls were effective.

Item 15. Exhibits and Financial Statement Schedules
Exhibit 31.1 Certification of Chief Executive Officer
Exhibit 32.1 Certification pursuant to Section 906
"""

TEN_Q_TEXT = """\
FORM 10-Q
QUARTERLY REPORT PURSUANT TO SECTION 13 OR 15(d) OF THE SECURITIES EXCHANGE ACT OF 1934
For the quarterly period ended June 30, 2024
Acme Widgets, Inc.
(Exact name of registrant as specified in its charter)

PART I - FINANCIAL INFORMATION
Item 1. Financial Statements
The condensed financial statements are presented below.

Item 2. Management's Discussion and Analysis of Financial Condition and Results of Operations
Demand for widgets remained steady during the second quarter.

PART II - OTHER INFORMATION
Item 1. Legal Proceedings
None.

Item 1A. Risk Factors
There have been no material changes to the risk factors disclosed in our most recent Annual Report on Form 10-K.

Item 6. Exhibits
Exhibit 31.1 Certification of Chief Executive Officer
"""

EIGHT_K_TEXT = """\
FORM 8-K
CURRENT REPORT
Date of Report (Date of earliest event reported): March 15, 2024
Acme Widgets, Inc.
(Exact name of registrant as specified in its charter)

Item 1.03 Bankruptcy or Receivership
On March 15, 2024, the Company filed a voluntary petition for relief under Chapter 11.

Item 2.04 Triggering Events That Accelerate or Increase a Direct Financial Obligation
The filing constituted an event of default under the credit agreement.

Item 9.01 Financial Statements and Exhibits
Exhibit 99.1 Press release dated March 15, 2024
"""

PROXY_TEXT = """\
SCHEDULE 14A
DEF 14A
NOTICE OF ANNUAL MEETING OF STOCKHOLDERS
The Annual Meeting of Stockholders will be held on May 20, 2025 at 9:00 a.m.

MATTERS TO BE VOTED ON
Proposal 1: Election of Directors
Proposal 2: Ratification of Independent Auditors
Proposal 3: Advisory Vote on Executive Compensation

CORPORATE GOVERNANCE
The board met eight times during the year. Several directors face risks of overcommitment.
"""

INLINE_HTML = """\
<html><body>
<ix:header><ix:resources>
<xbrli:context id="FY2024"><xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000000001</xbrli:identifier></xbrli:entity>
<xbrli:period><xbrli:startDate>2024-01-01</xbrli:startDate><xbrli:endDate>2024-12-31</xbrli:endDate></xbrli:period></xbrli:context>
<xbrli:context id="FY2023"><xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000000001</xbrli:identifier></xbrli:entity>
<xbrli:period><xbrli:startDate>2023-01-01</xbrli:startDate><xbrli:endDate>2023-12-31</xbrli:endDate></xbrli:period></xbrli:context>
<xbrli:context id="FY2024_Products"><xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000000001</xbrli:identifier>
<xbrli:segment><xbrldi:explicitMember dimension="srt:ProductOrServiceAxis">acme:WidgetsMember</xbrldi:explicitMember></xbrli:segment></xbrli:entity>
<xbrli:period><xbrli:startDate>2024-01-01</xbrli:startDate><xbrli:endDate>2024-12-31</xbrli:endDate></xbrli:period></xbrli:context>
<xbrli:context id="I2024"><xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000000001</xbrli:identifier></xbrli:entity>
<xbrli:period><xbrli:instant>2024-12-31</xbrli:instant></xbrli:period></xbrli:context>
</ix:resources></ix:header>
<p>Revenue was <ix:nonFraction name="us-gaap:Revenues" contextRef="FY2024" unitRef="usd" decimals="-6" scale="6">1,200</ix:nonFraction>
compared with <ix:nonFraction name="us-gaap:Revenues" contextRef="FY2023" unitRef="usd" decimals="-6" scale="6">1,000</ix:nonFraction>.</p>
<p>Widget revenue was <ix:nonFraction name="us-gaap:Revenues" contextRef="FY2024_Products" unitRef="usd" decimals="-6" scale="6">500</ix:nonFraction>.</p>
<p>Net loss was <ix:nonFraction name="us-gaap:NetIncomeLoss" contextRef="FY2024" unitRef="usd" decimals="-6" scale="6" sign="-">45</ix:nonFraction>.</p>
<p>Total assets were <ix:nonFraction name="us-gaap:Assets" contextRef="I2024" unitRef="usd" decimals="-6" scale="6">2,000</ix:nonFraction>.</p>
<p>Diluted EPS was <ix:nonFraction name="us-gaap:EarningsPerShareDiluted" contextRef="FY2024" unitRef="usdPerShare" decimals="2">1.20</ix:nonFraction>.</p>
</body></html>
"""

STATEMENT_HTML = """\
<html><body>
<p style="font-weight:bold">CONSOLIDATED STATEMENTS OF OPERATIONS</p>
<p>(In thousands)</p>
<table>
<tr><td></td><td>2024</td><td></td><td>2023</td></tr>
<tr><td>Net sales</td><td>$</td><td>5,000</td><td>$</td><td>4,000</td></tr>
<tr><td>Cost of sales</td><td>3,000</td><td>2,600</td></tr>
<tr><td style="padding-left:20px">Gross profit</td><td>2,000</td><td>1,400</td></tr>
<tr><td>Research and development</td><td>900</td><td>800</td></tr>
<tr><td>Selling, general and administrative</td><td>1,000</td><td>700</td></tr>
<tr><td>Operating income (loss)</td><td>100</td><td>(100</td><td>)</td></tr>
<tr><td>Provision for income taxes</td><td>156</td><td>&mdash;</td></tr>
<tr><td>Net loss</td><td>(56</td><td>)</td><td>&mdash;</td></tr>
</table>
<p>See accompanying notes to consolidated financial statements.</p>
</body></html>
"""


@pytest.fixture
def ten_k_text():
    return TEN_K_TEXT


@pytest.fixture
def ten_q_text():
    return TEN_Q_TEXT


@pytest.fixture
def eight_k_text():
    return EIGHT_K_TEXT


@pytest.fixture
def proxy_text():
    return PROXY_TEXT


@pytest.fixture
def inline_html():
    return INLINE_HTML


@pytest.fixture
def statement_html():
    return STATEMENT_HTML
