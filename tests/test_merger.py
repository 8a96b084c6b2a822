"""Tests for the metric merger."""

from decimal import Decimal

from sec_analyzer.merger import merge, metric_map
from sec_analyzer.models import CanonicalCategory as C, ExtendedFinancialMetric, MetricSource


def _metric(category, value, source, confidence, name=None):
    return ExtendedFinancialMetric(
        name=name or category.value,
        formatted_value=str(value),
        raw_value=Decimal(value),
        category=category,
        source=source,
        confidence=confidence,
    )


def test_one_metric_per_category():
    merged = merge(
        [_metric(C.REVENUE, 100, MetricSource.TABLE, 0.85), _metric(C.NET_INCOME, 10, MetricSource.TABLE, 0.85)],
        [_metric(C.REVENUE, 101, MetricSource.STRUCTURED_FACT, 0.97)],
        [_metric(C.REVENUE, 99, MetricSource.PATTERN, 0.7), _metric(C.TOTAL_ASSETS, 500, MetricSource.PATTERN, 0.7)],
    )
    categories = [m.category for m in merged]
    assert len(categories) == len(set(categories))
    assert categories == [C.REVENUE, C.NET_INCOME, C.TOTAL_ASSETS]
    assert metric_map(merged)[C.REVENUE].source is MetricSource.STRUCTURED_FACT


def test_confidence_tie_prefers_table():
    merged = merge(
        [_metric(C.REVENUE, 100, MetricSource.TABLE, 0.9)],
        [],
        [_metric(C.REVENUE, 99, MetricSource.PATTERN, 0.9)],
    )
    assert len(merged) == 1
    assert merged[0].source is MetricSource.TABLE


def test_tie_within_source_keeps_first_seen():
    merged = merge(pattern_metrics=[
        _metric(C.CASH, 1, MetricSource.PATTERN, 0.5, name="first"),
        _metric(C.CASH, 2, MetricSource.PATTERN, 0.5, name="second"),
    ])
    assert [m.name for m in merged] == ["first"]


def test_higher_confidence_pattern_beats_table():
    merged = merge(
        [_metric(C.NET_INCOME, 10, MetricSource.TABLE, 0.6)],
        [],
        [_metric(C.NET_INCOME, 12, MetricSource.PATTERN, 0.7)],
    )
    assert merged[0].raw_value == Decimal(12)


def test_uncategorized_metrics_pass_through():
    other = _metric(C.OTHER, 5, MetricSource.PATTERN, 0.4, name="Backlog")
    merged = merge([_metric(C.REVENUE, 100, MetricSource.TABLE, 0.85)], [], [other, other])
    assert [m.name for m in merged] == ["revenue", "Backlog", "Backlog"]
    assert C.OTHER not in metric_map(merged)


def test_merge_empty():
    assert merge() == []
