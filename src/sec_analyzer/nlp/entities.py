"""Named entity recognition: BERT NER plus regex financial entities."""

from __future__ import annotations

import logging
import re
from collections import Counter

from sec_analyzer.config import get_config
from sec_analyzer.models import Entity
from sec_analyzer.nlp.chunker import chunk_text

log = logging.getLogger(__name__)

# Financial entities BERT NER does not tag
MONEY_PATTERN = re.compile(r"\$[\d,]+(?:\.\d+)?(?:\s*(?:million|billion|thousand|mn|bn|k))?", re.IGNORECASE)
PERCENT_PATTERN = re.compile(r"\d+\.?\d*\s*%")
FISCAL_DATE_PATTERN = re.compile(
    r"(?:Q[1-4]\s*\d{4}|fiscal\s+year\s+\d{4}|FY\s*\d{2,4}|(?:January|February|March|April|May|June|July|August|September|October|November|December)\s+\d{1,2},?\s+\d{4})",
    re.IGNORECASE,
)

_REGEX_LABELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (MONEY_PATTERN, "MONEY"),
    (PERCENT_PATTERN, "PERCENT"),
    (FISCAL_DATE_PATTERN, "DATE"),
)


def extract_financial_entities(text: str) -> list[Entity]:
    """Money, percent and fiscal-date entities; needs no model."""
    entities = []
    for pattern, label in _REGEX_LABELS:
        for match in pattern.finditer(text or ""):
            entities.append(Entity(text=match.group().strip(), label=label, score=1.0))
    return entities


def count_entities(entities: list[Entity]) -> dict[str, int]:
    return dict(Counter(e.label for e in entities))


class EntityExtractor:
    """Lazy-loaded NER using dslim/bert-base-NER + regex for financial patterns."""

    def __init__(self, model_name: str | None = None):
        self._pipeline = None
        self._tokenizer = None
        self.model_name = model_name or get_config().ner_model

    def load(self) -> None:
        if self._pipeline is None:
            from transformers import AutoTokenizer, pipeline

            log.info("Loading NER model %s", self.model_name)
            self._tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            self._pipeline = pipeline(
                "ner",
                model=self.model_name,
                tokenizer=self._tokenizer,
                aggregation_strategy="simple",
            )

    def unload(self) -> None:
        self._pipeline = None
        self._tokenizer = None

    def extract(self, text: str) -> list[Entity]:
        """Entities from BERT NER over chunks, then regex entities; first text wins."""
        self.load()

        config = get_config()
        chunks = chunk_text(
            text,
            self._tokenizer,
            max_tokens=config.max_chunk_tokens,
            overlap_tokens=config.chunk_overlap_tokens,
        )

        entities: list[Entity] = []
        seen: set[str] = set()
        for chunk in chunks:
            for r in self._pipeline(chunk):
                word = r["word"].strip()
                if word and word not in seen:
                    seen.add(word)
                    entities.append(Entity(text=word, label=r["entity_group"], score=round(float(r["score"]), 4)))

        for entity in extract_financial_entities(text):
            if entity.text not in seen:
                seen.add(entity.text)
                entities.append(entity)

        return entities
