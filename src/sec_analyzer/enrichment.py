"""Optional model-based enrichment of an ``AnalysisResult``.

The core pipeline never imports this module.  A caller that wants
sentiment and entity annotations creates an ``Enricher``, owns its
lifecycle (``init`` / ``shutdown``) and passes it to ``enrich_result``.
Annotations are attached next to the result; core fields are never
touched.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from sec_analyzer.models import AnalysisResult, Annotations, EnrichedAnalysis, FULL_DOCUMENT
from sec_analyzer.nlp.entities import EntityExtractor, count_entities, extract_financial_entities

log = logging.getLogger(__name__)

# Narrative sections worth scoring, by the names the segmenter gives them
NARRATIVE_SECTIONS: tuple[str, ...] = (
    "Item 1A", "Item 7", "Part I - Item 2", "Part II - Item 1A",
    "Risk Factors", "Management's Discussion", "Item 5", FULL_DOCUMENT,
)
MAX_SECTION_CHARS = 20_000


@runtime_checkable
class Enricher(Protocol):
    def init(self) -> None: ...

    def enrich(self, result: AnalysisResult) -> Annotations | None: ...

    def shutdown(self) -> None: ...


class RegexEnricher:
    """Financial entities (money, percent, fiscal dates) without any model."""

    def init(self) -> None:
        pass

    def enrich(self, result: AnalysisResult) -> Annotations | None:
        entities = []
        for name in _narrative_names(result):
            entities.extend(extract_financial_entities(result.sections.get(name) or ""))
        return Annotations(
            entities=tuple(entities),
            entity_counts=count_entities(entities),
        )

    def shutdown(self) -> None:
        pass


class TransformerEnricher:
    """FinBERT section sentiment and BERT NER (needs the ``nlp`` extra)."""

    def __init__(self, sentiment_model: str | None = None, ner_model: str | None = None):
        from sec_analyzer.nlp.sentiment import SentimentAnalyzer

        self._sentiment = SentimentAnalyzer(sentiment_model)
        self._ner = EntityExtractor(ner_model)

    def init(self) -> None:
        self._sentiment.load()
        self._ner.load()

    def enrich(self, result: AnalysisResult) -> Annotations | None:
        sentiment = {}
        entities = []
        for name in _narrative_names(result):
            text = (result.sections.get(name) or "")[:MAX_SECTION_CHARS]
            if not text.strip():
                continue
            sentiment[name] = self._sentiment.analyze(text)
            entities.extend(self._ner.extract(text))
        return Annotations(
            section_sentiment=sentiment,
            entities=tuple(entities),
            entity_counts=count_entities(entities),
            model_names=(self._sentiment.model_name, self._ner.model_name),
        )

    def shutdown(self) -> None:
        self._sentiment.unload()
        self._ner.unload()


def enrich_result(result: AnalysisResult, enricher: Enricher | None) -> EnrichedAnalysis:
    """Attach annotations from *enricher*; a failing enricher gives ``None``."""
    if enricher is None:
        return EnrichedAnalysis(result=result)
    try:
        annotations = enricher.enrich(result)
    except Exception as exc:
        log.warning("Enrichment failed, returning core result only: %s", exc)
        annotations = None
    return EnrichedAnalysis(result=result, annotations=annotations)


def _narrative_names(result: AnalysisResult) -> list[str]:
    return [name for name in NARRATIVE_SECTIONS if name in result.sections]
