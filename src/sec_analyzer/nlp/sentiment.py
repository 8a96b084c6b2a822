"""FinBERT sentiment for filing sections."""

from __future__ import annotations

import logging

from sec_analyzer.config import get_config
from sec_analyzer.models import ChunkSentiment, SentimentAnalysis
from sec_analyzer.nlp.chunker import chunk_text

log = logging.getLogger(__name__)

NEUTRAL = SentimentAnalysis(overall_label="neutral", overall_score=0.0)


class SentimentAnalyzer:
    """Lazy-loaded FinBERT sentiment analyzer."""

    def __init__(self, model_name: str | None = None):
        self._pipeline = None
        self._tokenizer = None
        self.model_name = model_name or get_config().sentiment_model

    @property
    def loaded(self) -> bool:
        return self._pipeline is not None

    def load(self) -> None:
        if self._pipeline is None:
            from transformers import AutoTokenizer, pipeline

            log.info("Loading sentiment model %s", self.model_name)
            self._tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            self._pipeline = pipeline(
                "text-classification",
                model=self.model_name,
                tokenizer=self._tokenizer,
                top_k=None,
                truncation=True,
            )

    def unload(self) -> None:
        self._pipeline = None
        self._tokenizer = None

    def analyze(self, text: str) -> SentimentAnalysis:
        """Length-weighted sentiment over the chunks of *text*."""
        self.load()

        config = get_config()
        chunks = chunk_text(
            text,
            self._tokenizer,
            max_tokens=config.max_chunk_tokens,
            overlap_tokens=config.chunk_overlap_tokens,
        )
        if not chunks:
            return NEUTRAL

        label_scores: dict[str, float] = {"positive": 0.0, "negative": 0.0, "neutral": 0.0}
        chunk_results: list[ChunkSentiment] = []
        total_weight = 0.0

        for i, chunk in enumerate(chunks):
            results = self._pipeline(chunk)[0]  # pipeline returns list of list
            weight = len(chunk)
            total_weight += weight

            best = max(results, key=lambda x: x["score"])
            chunk_results.append(ChunkSentiment(
                chunk_index=i,
                label=best["label"].lower(),
                score=round(best["score"], 4),
            ))
            for r in results:
                label = r["label"].lower()
                if label in label_scores:
                    label_scores[label] += r["score"] * weight

        if total_weight > 0:
            for label in label_scores:
                label_scores[label] /= total_weight

        overall_label = max(label_scores, key=label_scores.get)
        return SentimentAnalysis(
            overall_label=overall_label,
            overall_score=round(label_scores[overall_label], 4),
            chunk_results=tuple(chunk_results),
            num_chunks=len(chunks),
        )
