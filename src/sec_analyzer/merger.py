"""Metric merger — one metric per canonical category across all sources.

The winner for a category is the candidate with the highest confidence.
Ties go to the more reliable source (table > structured fact > pattern)
and then to whichever was seen first.  No plausibility cross-check is made
between sources: confidence ranking alone decides.

Metrics without a category (``OTHER``) are passed through untouched as
supplementary detail.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sec_analyzer.models import CanonicalCategory, ExtendedFinancialMetric, MetricSource

log = logging.getLogger(__name__)

SOURCE_PREFERENCE: dict[MetricSource, int] = {
    MetricSource.TABLE: 0,
    MetricSource.STRUCTURED_FACT: 1,
    MetricSource.PATTERN: 2,
}

_CATEGORY_ORDER: dict[CanonicalCategory, int] = {c: i for i, c in enumerate(CanonicalCategory)}


def _rank(metric: ExtendedFinancialMetric, seq: int) -> tuple[float, int, int]:
    return (-metric.confidence, SOURCE_PREFERENCE.get(metric.source, 99), seq)


def merge(
    table_metrics: Iterable[ExtendedFinancialMetric] = (),
    structured_fact_metrics: Iterable[ExtendedFinancialMetric] = (),
    pattern_metrics: Iterable[ExtendedFinancialMetric] = (),
) -> list[ExtendedFinancialMetric]:
    """Collapse the three metric streams into one list.

    Output order: categorized metrics in ``CanonicalCategory`` declaration
    order, then pass-through metrics in input order.
    """
    best: dict[CanonicalCategory, tuple[tuple[float, int, int], ExtendedFinancialMetric]] = {}
    passthrough: list[ExtendedFinancialMetric] = []
    seq = 0
    replaced = 0

    for stream in (table_metrics, structured_fact_metrics, pattern_metrics):
        for metric in stream:
            seq += 1
            if metric.category is CanonicalCategory.OTHER:
                passthrough.append(metric)
                continue
            rank = _rank(metric, seq)
            current = best.get(metric.category)
            if current is None:
                best[metric.category] = (rank, metric)
            elif rank < current[0]:
                log.debug(
                    "%s: %s (%.2f) replaces %s (%.2f)",
                    metric.category.value, metric.source.value, metric.confidence,
                    current[1].source.value, current[1].confidence,
                )
                best[metric.category] = (rank, metric)
                replaced += 1

    merged = [m for _rank_, m in sorted(best.values(), key=lambda rm: _CATEGORY_ORDER[rm[1].category])]
    log.info(
        "Merged metrics: %d categories (%d replaced), %d pass-through",
        len(merged), replaced, len(passthrough),
    )
    return merged + passthrough


def metric_map(metrics: Iterable[ExtendedFinancialMetric]) -> dict[CanonicalCategory, ExtendedFinancialMetric]:
    """Category → metric lookup over a merged list (pass-through excluded)."""
    return {m.category: m for m in metrics if m.category is not CanonicalCategory.OTHER}
