"""Tests for NLP modules."""

import pytest

from sec_analyzer.nlp.chunker import chunk_text
from sec_analyzer.nlp.entities import (
    FISCAL_DATE_PATTERN,
    MONEY_PATTERN,
    PERCENT_PATTERN,
    EntityExtractor,
    count_entities,
    extract_financial_entities,
)
from sec_analyzer.nlp.sentiment import SentimentAnalyzer


class WordTokenizer:
    """One token per whitespace-separated word."""

    def encode(self, text, add_special_tokens=False):
        return text.split()

    def decode(self, tokens, skip_special_tokens=True):
        return " ".join(tokens)


# --- Regex tests (no model loading needed) ---


def test_money_pattern():
    text = "The company paid $3.5 billion for the acquisition and $200 million in fees."
    matches = MONEY_PATTERN.findall(text)
    assert len(matches) == 2
    assert "$3.5 billion" in matches
    assert "$200 million" in matches


def test_percent_pattern():
    text = "Revenue grew 25.3% year over year while margins declined 2%."
    matches = PERCENT_PATTERN.findall(text)
    assert len(matches) == 2


def test_fiscal_date_pattern():
    text = "In Q3 2024, the company reported results. Fiscal year 2023 was strong. FY24 outlook is positive."
    matches = FISCAL_DATE_PATTERN.findall(text)
    assert len(matches) >= 2


def test_extract_financial_entities():
    entities = extract_financial_entities("Sales of $1.2 billion rose 20% in Q4 2024.")
    assert [(e.label, e.text) for e in entities] == [
        ("MONEY", "$1.2 billion"),
        ("PERCENT", "20%"),
        ("DATE", "Q4 2024"),
    ]
    assert count_entities(entities) == {"MONEY": 1, "PERCENT": 1, "DATE": 1}
    assert extract_financial_entities("") == []


# --- Chunking ---


def test_chunk_short_text_is_single_chunk():
    assert chunk_text("one two three", WordTokenizer(), max_tokens=4) == ["one two three"]


def test_chunk_overlap():
    text = " ".join(f"w{i}" for i in range(10))
    chunks = chunk_text(text, WordTokenizer(), max_tokens=4, overlap_tokens=2)
    assert chunks == ["w0 w1 w2 w3", "w2 w3 w4 w5", "w4 w5 w6 w7", "w6 w7 w8 w9"]


def test_chunk_overlap_capped_below_window():
    text = " ".join(f"w{i}" for i in range(6))
    chunks = chunk_text(text, WordTokenizer(), max_tokens=3, overlap_tokens=10)
    assert chunks[0] == "w0 w1 w2"
    assert chunks[-1].endswith("w5")


def test_chunk_empty_text():
    assert chunk_text("", WordTokenizer()) == []
    assert chunk_text("   ", WordTokenizer()) == []


# --- Model tests (slow, require model download) ---


@pytest.mark.slow
def test_positive_sentiment():
    analyzer = SentimentAnalyzer()
    result = analyzer.analyze(
        "Revenue increased 25% year over year with strong margin expansion and record earnings."
    )
    assert result.overall_label == "positive"
    assert result.overall_score > 0.5
    assert result.num_chunks >= 1


@pytest.mark.slow
def test_negative_sentiment():
    analyzer = SentimentAnalyzer()
    result = analyzer.analyze(
        "The company reported significant losses, declining revenue, and increased debt obligations."
    )
    assert result.overall_label == "negative"
    assert result.overall_score > 0.5


@pytest.mark.slow
def test_entity_extraction():
    extractor = EntityExtractor()
    text = (
        "Apple Inc. acquired Beats Electronics from Dr. Dre for $3 billion in 2014. "
        "Tim Cook announced the deal at the Cupertino headquarters."
    )
    entities = extractor.extract(text)
    assert len(entities) > 0

    labels = {e.label for e in entities}
    # Should find at least ORG and PER entities
    assert "ORG" in labels or "PER" in labels

    # Should find money via regex
    assert any(e.label == "MONEY" for e in entities)
