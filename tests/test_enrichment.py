"""Tests for the optional enrichment layer."""

from sec_analyzer.enrichment import Enricher, RegexEnricher, enrich_result
from sec_analyzer.pipeline import analyze


class BrokenEnricher:
    def init(self):
        pass

    def enrich(self, result):
        raise RuntimeError("model crashed")

    def shutdown(self):
        pass


def test_regex_enricher_reads_narrative_sections(ten_k_text):
    result = analyze(ten_k_text)
    enricher = RegexEnricher()
    enricher.init()
    enriched = enrich_result(result, enricher)
    enricher.shutdown()

    money = [e.text for e in enriched.annotations.entities if e.label == "MONEY"]
    assert money == ["$1.2 billion", "$300 million"]
    assert enriched.annotations.entity_counts["MONEY"] == 2
    assert enriched.annotations.section_sentiment == {}
    assert enriched.result == result


def test_failing_enricher_keeps_core_result(ten_k_text):
    result = analyze(ten_k_text)
    enriched = enrich_result(result, BrokenEnricher())
    assert enriched.annotations is None
    assert enriched.result == result


def test_no_enricher():
    result = analyze("Total Revenue $1,000 million")
    assert enrich_result(result, None).annotations is None


def test_enricher_protocol():
    assert isinstance(RegexEnricher(), Enricher)
    assert isinstance(BrokenEnricher(), Enricher)
    assert not isinstance(object(), Enricher)
