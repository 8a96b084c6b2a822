"""Pydantic models for pipeline inputs, intermediate products and outputs.

Every model is frozen: a value is created once per ``analyze()`` call and
never mutated afterwards, so results can be shared across threads and
serialized with ``model_dump_json()`` for an external cache.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DocumentFormat(str, Enum):
    HTML = "html"
    PLAIN = "plain"

    @classmethod
    def coerce(cls, value: DocumentFormat | str | None) -> DocumentFormat | None:
        """Accept an enum member, a loose string ("HTML", "txt") or None."""
        if value is None or isinstance(value, DocumentFormat):
            return value
        v = str(value).strip().lower()
        if v in ("html", "htm", "xhtml", "ixbrl"):
            return cls.HTML
        if v in ("plain", "text", "txt"):
            return cls.PLAIN
        return None


class FormType(str, Enum):
    FORM_10K = "10-K"
    FORM_10Q = "10-Q"
    FORM_8K = "8-K"
    FORM_S1 = "S-1"
    FORM_DEF14A = "DEF 14A"
    FORM_20F = "20-F"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_string(cls, value: FormType | str | None) -> FormType:
        """Map a declared form type ("10-K/A", "def14a", "20F") to a member."""
        if isinstance(value, FormType):
            return value
        if not value:
            return cls.UNKNOWN
        key = str(value).upper().replace("-", "").replace(" ", "")
        if key.endswith("/A"):
            key = key[:-2]
        return _FORM_KEYS.get(key, cls.UNKNOWN)


_FORM_KEYS: dict[str, FormType] = {
    "10K": FormType.FORM_10K,
    "10K405": FormType.FORM_10K,
    "10KSB": FormType.FORM_10K,
    "10Q": FormType.FORM_10Q,
    "10QSB": FormType.FORM_10Q,
    "8K": FormType.FORM_8K,
    "S1": FormType.FORM_S1,
    "DEF14A": FormType.FORM_DEF14A,
    "DEFM14A": FormType.FORM_DEF14A,
    "20F": FormType.FORM_20F,
}


class StatementType(str, Enum):
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW_STATEMENT = "cash_flow_statement"
    COMPREHENSIVE_INCOME = "comprehensive_income"
    EQUITY_STATEMENT = "equity_statement"


class MetricUnit(str, Enum):
    DOLLARS = "dollars"
    THOUSANDS = "thousands"
    MILLIONS = "millions"
    BILLIONS = "billions"
    PER_SHARE = "per_share"
    SHARES = "shares"
    PERCENTAGE = "percentage"
    NONE = "none"

    @property
    def multiplier(self) -> Decimal:
        return _UNIT_MULTIPLIERS.get(self, Decimal(1))


_UNIT_MULTIPLIERS: dict[MetricUnit, Decimal] = {
    MetricUnit.THOUSANDS: Decimal(1_000),
    MetricUnit.MILLIONS: Decimal(1_000_000),
    MetricUnit.BILLIONS: Decimal(1_000_000_000),
}


class PeriodType(str, Enum):
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    YTD = "ytd"


class CanonicalCategory(str, Enum):
    # Income statement
    REVENUE = "revenue"
    COST_OF_REVENUE = "cost_of_revenue"
    GROSS_PROFIT = "gross_profit"
    OPERATING_INCOME = "operating_income"
    NET_INCOME = "net_income"
    EBITDA = "ebitda"
    RD_EXPENSE = "rd_expense"
    SGA_EXPENSE = "sga_expense"
    INTEREST_EXPENSE = "interest_expense"
    INTEREST_INCOME = "interest_income"
    INCOME_BEFORE_TAX = "income_before_tax"
    INCOME_TAX = "income_tax"
    DEPRECIATION = "depreciation"
    # Balance sheet
    TOTAL_ASSETS = "total_assets"
    CURRENT_ASSETS = "current_assets"
    CASH = "cash"
    RECEIVABLES = "receivables"
    INVENTORY = "inventory"
    TOTAL_LIABILITIES = "total_liabilities"
    CURRENT_LIABILITIES = "current_liabilities"
    LONG_TERM_DEBT = "long_term_debt"
    PAYABLES = "payables"
    TOTAL_EQUITY = "total_equity"
    RETAINED_EARNINGS = "retained_earnings"
    # Cash flow
    OPERATING_CASH_FLOW = "operating_cash_flow"
    INVESTING_CASH_FLOW = "investing_cash_flow"
    FINANCING_CASH_FLOW = "financing_cash_flow"
    CAPEX = "capex"
    FREE_CASH_FLOW = "free_cash_flow"
    DIVIDENDS_PAID = "dividends_paid"
    # Per share
    EPS_BASIC = "eps_basic"
    EPS_DILUTED = "eps_diluted"
    OTHER = "other"

    @property
    def is_per_share(self) -> bool:
        return self in (CanonicalCategory.EPS_BASIC, CanonicalCategory.EPS_DILUTED)


class MetricSource(str, Enum):
    TABLE = "table"
    STRUCTURED_FACT = "structured-fact"
    PATTERN = "pattern"


class DataQuality(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


class RiskCategory(str, Enum):
    MARKET = "market"
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    REGULATORY = "regulatory"
    COMPETITIVE = "competitive"
    TECHNOLOGY = "technology"
    LEGAL = "legal"
    ENVIRONMENTAL = "environmental"
    GEOPOLITICAL = "geopolitical"
    OTHER = "other"


class RiskSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AnomalySeverity(str, Enum):
    NONE = "NONE"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TrendDirection(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


class HealthStatus(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    NEUTRAL = "NEUTRAL"
    CAUTION = "CAUTION"
    WARNING = "WARNING"


class RatioCategory(str, Enum):
    PROFITABILITY = "profitability"
    LIQUIDITY = "liquidity"
    SOLVENCY = "solvency"
    EFFICIENCY = "efficiency"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class RawDocument(_Value):
    content: str | bytes
    format: DocumentFormat = DocumentFormat.PLAIN
    declared_form_type: str | None = None

    @property
    def text(self) -> str:
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8", errors="replace")
        return self.content


class AnalysisHints(_Value):
    company_name_hint: str | None = None
    period_hint: str | None = None


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

FULL_DOCUMENT = "Full Document"


class SectionEntry(_Value):
    name: str
    start: int
    end: int
    text: str


class SectionMap(_Value):
    """Ordered ``name -> text`` mapping of a segmented filing.

    Entries are non-overlapping and ordered by source offset.  A filing
    with no recognized headers holds exactly one ``"Full Document"`` entry.
    """

    entries: tuple[SectionEntry, ...] = ()

    def get(self, name: str) -> str | None:
        for entry in self.entries:
            if entry.name == name:
                return entry.text
        return None

    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def as_dict(self) -> dict[str, str]:
        return {e.name: e.text for e in self.entries}

    @property
    def is_fallback(self) -> bool:
        return len(self.entries) == 1 and self.entries[0].name == FULL_DOCUMENT

    def __contains__(self, name: object) -> bool:
        return any(e.name == name for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"<SectionMap sections=[{', '.join(self.names())}]>"


class FiscalQuarter(_Value):
    quarter: str | None = None   # "Q1".."Q4"
    year: int | None = None


# ---------------------------------------------------------------------------
# Statement tables
# ---------------------------------------------------------------------------

class TableRow(_Value):
    label: str
    values: tuple[Decimal | None, ...]
    is_subtotal: bool = False
    is_total: bool = False
    indent_level: int = 0
    category: CanonicalCategory | None = None


class ParsedTable(_Value):
    statement_type: StatementType
    title: str
    periods: tuple[str, ...]             # newest first
    rows: tuple[TableRow, ...]
    unit: MetricUnit = MetricUnit.MILLIONS
    currency: str = "USD"

    @model_validator(mode="after")
    def _values_align_with_periods(self) -> ParsedTable:
        width = len(self.periods)
        for row in self.rows:
            if len(row.values) != width:
                raise ValueError(
                    f"row {row.label!r} has {len(row.values)} values for {width} periods"
                )
        return self

    def to_frame(self):
        """Return the table as a pandas DataFrame (labels × periods)."""
        import pandas as pd

        data = [
            [float(v) if v is not None else None for v in row.values]
            for row in self.rows
        ]
        frame = pd.DataFrame(data, columns=list(self.periods), index=[r.label for r in self.rows])
        frame.index.name = "label"
        return frame


# ---------------------------------------------------------------------------
# Metrics & statements
# ---------------------------------------------------------------------------

class ExtendedFinancialMetric(_Value):
    name: str
    formatted_value: str
    raw_value: Decimal | None = None
    unit: MetricUnit = MetricUnit.DOLLARS
    category: CanonicalCategory = CanonicalCategory.OTHER
    period: str | None = None
    period_type: PeriodType | None = None
    source: MetricSource = MetricSource.PATTERN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    yoy_change: Decimal | None = None
    context: str = ""


class MonetaryValue(_Value):
    amount: Decimal
    yoy_change: Decimal | None = None
    confidence: float = 0.0
    formatted: str = ""


class IncomeStatement(_Value):
    period_ending: str | None = None
    period_type: PeriodType | None = None
    total_revenue: MonetaryValue | None = None
    cost_of_revenue: MonetaryValue | None = None
    gross_profit: MonetaryValue | None = None
    research_and_development: MonetaryValue | None = None
    selling_general_admin: MonetaryValue | None = None
    operating_income: MonetaryValue | None = None
    interest_expense: MonetaryValue | None = None
    interest_income: MonetaryValue | None = None
    income_before_tax: MonetaryValue | None = None
    income_tax_expense: MonetaryValue | None = None
    depreciation: MonetaryValue | None = None
    ebitda: MonetaryValue | None = None
    net_income: MonetaryValue | None = None
    basic_eps: Decimal | None = None
    diluted_eps: Decimal | None = None


class BalanceSheet(_Value):
    period_ending: str | None = None
    cash_and_equivalents: MonetaryValue | None = None
    accounts_receivable: MonetaryValue | None = None
    inventory: MonetaryValue | None = None
    total_current_assets: MonetaryValue | None = None
    total_assets: MonetaryValue | None = None
    accounts_payable: MonetaryValue | None = None
    total_current_liabilities: MonetaryValue | None = None
    long_term_debt: MonetaryValue | None = None
    total_liabilities: MonetaryValue | None = None
    retained_earnings: MonetaryValue | None = None
    total_stockholders_equity: MonetaryValue | None = None


class CashFlowStatement(_Value):
    period_ending: str | None = None
    period_type: PeriodType | None = None
    net_cash_from_operating: MonetaryValue | None = None
    capital_expenditures: MonetaryValue | None = None
    net_cash_from_investing: MonetaryValue | None = None
    dividends_paid: MonetaryValue | None = None
    net_cash_from_financing: MonetaryValue | None = None
    free_cash_flow: MonetaryValue | None = None


class KeyFinancialMetrics(_Value):
    """Computed ratios.  None means not computable.

    Margins, returns and growth are percentages; the rest are multiples.
    """
    gross_margin: float | None = None
    operating_margin: float | None = None
    net_profit_margin: float | None = None
    return_on_assets: float | None = None
    return_on_equity: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    cash_ratio: float | None = None
    debt_to_equity: float | None = None
    debt_ratio: float | None = None
    interest_coverage: float | None = None
    asset_turnover: float | None = None
    revenue_growth: float | None = None
    net_income_growth: float | None = None


class FinancialRatio(_Value):
    name: str
    value: float
    formatted_value: str
    description: str
    interpretation: str
    health_status: HealthStatus
    category: RatioCategory


class ValidationWarning(_Value):
    """One validation check result."""
    rule: str
    severity: str                # "error" | "warning" | "info"
    message: str


class StructuredFinancialData(_Value):
    company_name: str | None = None
    report_type: str | None = None
    fiscal_year: str | None = None
    fiscal_period: str | None = None
    income_statement: IncomeStatement | None = None
    balance_sheet: BalanceSheet | None = None
    cash_flow_statement: CashFlowStatement | None = None
    key_metrics: KeyFinancialMetrics = KeyFinancialMetrics()
    data_quality: DataQuality = DataQuality.UNKNOWN
    parsing_confidence: float = 0.0
    validation: tuple[ValidationWarning, ...] = ()


# ---------------------------------------------------------------------------
# Risks & trends
# ---------------------------------------------------------------------------

class RiskFactor(_Value):
    title: str
    summary: str
    category: RiskCategory = RiskCategory.OTHER
    severity: RiskSeverity = RiskSeverity.MEDIUM


class GrowthMetric(_Value):
    kind: str                    # "YoY" | "QoQ"
    current: float
    previous: float
    growth_rate: float           # percent
    exceeds_threshold: bool = False
    interpretation: str = ""


class AnomalyDetection(_Value):
    current_value: float
    mean: float | None = None
    std_dev: float | None = None
    z_score: float | None = None
    severity: AnomalySeverity = AnomalySeverity.NONE
    is_anomaly: bool = False
    message: str = ""


class MarginTrend(_Value):
    margins: tuple[float, ...]   # percent, oldest first
    direction: TrendDirection
    change: float                # percentage points, last - first
    volatility: float
    interpretation: str = ""


class TrendSummary(_Value):
    revenue_growth: GrowthMetric | None = None
    net_income_growth: GrowthMetric | None = None
    gross_margin_trend: MarginTrend | None = None
    revenue_anomaly: AnomalyDetection | None = None


# ---------------------------------------------------------------------------
# Filing details & result
# ---------------------------------------------------------------------------

class FilingDetails(_Value):
    fiscal_year: str | None = None
    fiscal_quarter: FiscalQuarter | None = None
    exhibits: tuple[str, ...] = ()
    mdna_subsections: dict[str, str] = {}
    event_date: str | None = None
    reported_items: tuple[str, ...] = ()
    importance_score: int | None = None
    offering_price: str | None = None
    shares_offered: str | None = None
    meeting_date: str | None = None
    voting_matters: tuple[str, ...] = ()
    country_of_incorporation: str | None = None
    accounting_standard: str | None = None


class AnalysisResult(_Value):
    company_name: str | None = None
    report_type: str | None = None
    period_ending: str | None = None
    form_type: FormType = FormType.UNKNOWN
    metrics: tuple[ExtendedFinancialMetric, ...] = ()
    structured_data: StructuredFinancialData = StructuredFinancialData()
    ratios: tuple[FinancialRatio, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    sections: SectionMap = SectionMap()
    tables: tuple[ParsedTable, ...] = ()
    trends: TrendSummary = TrendSummary()
    filing_details: FilingDetails = FilingDetails()
    data_quality: DataQuality = DataQuality.UNKNOWN
    parsing_confidence: float = 0.0


# ---------------------------------------------------------------------------
# Optional enrichment annotations
# ---------------------------------------------------------------------------

class ChunkSentiment(_Value):
    chunk_index: int
    label: str
    score: float


class SentimentAnalysis(_Value):
    overall_label: str
    overall_score: float
    chunk_results: tuple[ChunkSentiment, ...] = ()
    num_chunks: int = 0


class Entity(_Value):
    text: str
    label: str
    score: float


class Annotations(_Value):
    """Supplementary annotations; never replaces core fields."""
    section_sentiment: dict[str, SentimentAnalysis] = {}
    entities: tuple[Entity, ...] = ()
    entity_counts: dict[str, int] = {}
    model_names: tuple[str, ...] = ()


class EnrichedAnalysis(_Value):
    result: AnalysisResult
    annotations: Annotations | None = None
