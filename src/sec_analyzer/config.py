"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables, e.g.
``TABLE_SECTION_MAX_CHARS=80000``.

Scan windows:
    TABLE_SECTION_MAX_CHARS / TEXT_SECTION_MAX_CHARS  — bound worst-case cost
    PERIOD_SCAN_CHARS                                 — header area for periods

Confidence bands:
    TABLE_CONFIDENCE / TABLE_TOTAL_CONFIDENCE / STRUCTURED_FACT_CONFIDENCE /
    PATTERN_CONFIDENCE

Optional:
    ENRICHMENT_ENABLED  — let the CLI / server attach transformer annotations
    LOG_LEVEL           — used by the CLI and server entry points only
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Statement table location
    table_section_max_chars: int = 50_000
    table_section_min_chars: int = 500
    text_section_max_chars: int = 20_000
    text_section_min_chars: int = 300
    period_scan_chars: int = 2_000
    max_periods: int = 4

    # Extraction confidence (0..1)
    table_confidence: float = 0.85
    table_total_confidence: float = 0.95
    structured_fact_confidence: float = 0.97
    pattern_confidence: float = 0.70
    pattern_decay: float = 0.08
    pattern_max_matches: int = 5
    pattern_min_amount: float = 1_000.0

    # Ratio clamp bounds
    percent_ratio_bound: float = 1_000.0
    multiple_ratio_bound: float = 100.0

    # Trend & anomaly engine
    growth_warning_threshold: float = 1_000.0
    margin_trend_threshold: float = 2.0
    anomaly_min_points: int = 3
    anomaly_medium_z: float = 1.5
    anomaly_high_z: float = 2.0
    anomaly_critical_z: float = 3.0

    # Risk factor extraction
    max_risk_factors: int = 10
    min_risk_paragraph_chars: int = 100

    # NLP enrichment (optional, needs the [nlp] extra)
    enrichment_enabled: bool = False
    sentiment_model: str = "ProsusAI/finbert"
    ner_model: str = "dslim/bert-base-NER"
    max_chunk_tokens: int = 512
    chunk_overlap_tokens: int = 128

    log_level: str = "INFO"

    # .env values are often quoted or carry trailing spaces
    @field_validator("sentiment_model", "ner_model", "log_level", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config
