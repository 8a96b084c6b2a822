"""Trend & anomaly engine — growth rates, CAGR, z-score anomalies, margin trends.

All inputs are plain numbers (or Decimals); statistics go through pandas so
the same code works on a handful of table columns or a long history.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from decimal import Decimal

import pandas as pd

from sec_analyzer.config import get_config
from sec_analyzer.models import (
    AnomalyDetection,
    AnomalySeverity,
    GrowthMetric,
    MarginTrend,
    TrendDirection,
)
from sec_analyzer.numeric import safe_float

log = logging.getLogger(__name__)

Number = float | int | Decimal

INSUFFICIENT_HISTORY = "Insufficient historical data for anomaly detection"


# ═══════════════════════════════════════════════════════════════════════════
#  Growth
# ═══════════════════════════════════════════════════════════════════════════

def growth_rate(current: Number | None, previous: Number | None, kind: str = "YoY") -> GrowthMetric | None:
    """Percent change from ``previous`` to ``current``; None when previous is 0."""
    cur = safe_float(current)
    prev = safe_float(previous)
    if cur is None or prev is None or prev == 0:
        return None
    rate = round((cur - prev) / abs(prev) * 100, 2)
    exceeds = abs(rate) > get_config().growth_warning_threshold
    if exceeds:
        log.warning("%s growth %.2f%% exceeds plausibility threshold", kind, rate)
    return GrowthMetric(
        kind=kind,
        current=cur,
        previous=prev,
        growth_rate=rate,
        exceeds_threshold=exceeds,
        interpretation=interpret_growth(rate, kind),
    )


def cagr(begin: Number | None, end: Number | None, years: int) -> float | None:
    """Compound annual growth rate in percent: (end / begin)^(1/years) - 1."""
    b = safe_float(begin)
    e = safe_float(end)
    if b is None or e is None or b <= 0 or years <= 0 or e < 0:
        return None
    return round((math.pow(e / b, 1.0 / years) - 1) * 100, 2)


def growth_series(values: Sequence[Number | None]) -> list[float | None]:
    """Consecutive growth rates (percent) for an oldest-first series.

    Entry ``i`` is the change from ``values[i]`` to ``values[i + 1]``;
    a zero or missing base gives None.
    """
    s = pd.Series([safe_float(v) for v in values], dtype="float64")
    prev = s.shift(1)
    rates = (s - prev) / prev.abs() * 100
    rates = rates.where(prev != 0)
    return [None if pd.isna(r) else round(float(r), 2) for r in rates.iloc[1:]]


def interpret_growth(rate: float, kind: str = "YoY") -> str:
    if kind == "QoQ":
        if rate > 15:
            return f"Exceptional quarterly growth ({rate:.2f}%)"
        if rate > 5:
            return f"Strong quarter ({rate:.2f}%)"
        if rate > 0:
            return f"Positive quarter ({rate:.2f}%)"
        if rate > -5:
            return f"Weak quarter ({rate:.2f}%)"
        return f"Poor quarter ({rate:.2f}%)"
    if kind == "CAGR":
        if rate > 15:
            return f"Outstanding CAGR ({rate:.2f}%)"
        if rate > 10:
            return f"Excellent CAGR ({rate:.2f}%)"
        if rate > 5:
            return f"Good CAGR ({rate:.2f}%)"
        return f"Modest CAGR ({rate:.2f}%)"
    if rate > 20:
        return f"Exceptional growth ({rate:.2f}%)"
    if rate > 10:
        return f"Strong growth ({rate:.2f}%)"
    if rate > 5:
        return f"Moderate growth ({rate:.2f}%)"
    if rate > 0:
        return f"Slight growth ({rate:.2f}%)"
    if rate > -5:
        return f"Slight decline ({rate:.2f}%)"
    return f"Significant decline ({rate:.2f}%)"


# ═══════════════════════════════════════════════════════════════════════════
#  Anomalies
# ═══════════════════════════════════════════════════════════════════════════

def detect_anomaly(current: Number, history: Sequence[Number], metric_name: str = "Value") -> AnomalyDetection:
    """Score ``current`` against the population statistics of ``history``.

    ``history`` excludes the current value.  |z| above the critical / high /
    medium thresholds (3 / 2 / 1.5 by default) sets the severity; fewer than
    three historical points or a zero spread never flag an anomaly.
    """
    cfg = get_config()
    cur = safe_float(current) or 0.0
    points = pd.Series([safe_float(v) for v in history], dtype="float64").dropna()

    if len(points) < cfg.anomaly_min_points:
        return AnomalyDetection(current_value=cur, message=INSUFFICIENT_HISTORY)

    mean = float(points.mean())
    std = float(points.std(ddof=0))
    if std == 0 or not math.isfinite(std):
        return AnomalyDetection(
            current_value=cur, mean=mean, std_dev=0.0, z_score=0.0,
            message=f"{metric_name} is within normal range",
        )

    z = (cur - mean) / std
    az = abs(z)
    if az > cfg.anomaly_critical_z:
        severity = AnomalySeverity.CRITICAL
    elif az > cfg.anomaly_high_z:
        severity = AnomalySeverity.HIGH
    elif az > cfg.anomaly_medium_z:
        severity = AnomalySeverity.MEDIUM
    else:
        severity = AnomalySeverity.NONE

    is_anomaly = severity is not AnomalySeverity.NONE
    if is_anomaly:
        direction = "higher" if z > 0 else "lower"
        message = f"{metric_name} is {az:.2f}σ {direction} than historical average (Mean: {mean:.2f})"
    else:
        message = f"{metric_name} is within normal range"

    return AnomalyDetection(
        current_value=cur,
        mean=round(mean, 6),
        std_dev=round(std, 6),
        z_score=round(z, 6),
        severity=severity,
        is_anomaly=is_anomaly,
        message=message,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  Margins
# ═══════════════════════════════════════════════════════════════════════════

def margin_trend(revenues: Sequence[Number | None], costs: Sequence[Number | None]) -> MarginTrend | None:
    """Gross-margin direction over an oldest-first revenue / cost series.

    Periods with non-positive revenue are skipped; at least two margins are
    needed.  A change beyond ±2 percentage points is a direction.
    """
    if len(revenues) != len(costs) or len(revenues) < 2:
        return None
    frame = pd.DataFrame({
        "revenue": [safe_float(v) for v in revenues],
        "cost": [safe_float(v) for v in costs],
    }, dtype="float64").dropna()
    frame = frame[frame["revenue"] > 0]
    if len(frame) < 2:
        return None

    margins = ((frame["revenue"] - frame["cost"].abs()) / frame["revenue"] * 100).round(2)
    change = round(float(margins.iloc[-1] - margins.iloc[0]), 2)
    volatility = round(float(margins.diff().abs().dropna().mean()), 2)

    threshold = get_config().margin_trend_threshold
    if change > threshold:
        direction = TrendDirection.IMPROVING
    elif change < -threshold:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    latest = float(margins.iloc[-1])
    return MarginTrend(
        margins=tuple(float(m) for m in margins),
        direction=direction,
        change=change,
        volatility=volatility,
        interpretation=interpret_margin(latest, change, direction),
    )


def interpret_margin(current: float, change: float, direction: TrendDirection) -> str:
    if current > 30:
        level = "excellent"
    elif current > 20:
        level = "strong"
    elif current > 10:
        level = "moderate"
    elif current > 5:
        level = "weak"
    else:
        level = "concerning"
    tail = {
        TrendDirection.IMPROVING: "and improving",
        TrendDirection.DECLINING: "but declining",
        TrendDirection.STABLE: "and stable",
    }[direction]
    return f"Margin of {current:.2f}% is {level} {tail} ({change:+.2f}pp)"
