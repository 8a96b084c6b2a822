"""Small numeric helpers shared by the parser, statement builder and ratios."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def safe_float(v: Any) -> float | None:
    """Convert a value to float, returning None for invalid/missing values."""
    if v is None:
        return None
    if hasattr(v, "item"):
        v = v.item()
    try:
        f = float(v)
        if math.isnan(f) or math.isinf(f):
            return None
        return f
    except (TypeError, ValueError, InvalidOperation):
        return None


def safe_div(a: float | None, b: float | None) -> float | None:
    """Safe division — returns None if either operand is None or divisor is zero."""
    if a is None or b is None or b == 0:
        return None
    result = a / b
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def clamp(v: float | None, low: float, high: float) -> float | None:
    """Clamp to ``[low, high]``; non-finite values become None."""
    v = safe_float(v)
    if v is None:
        return None
    return max(low, min(high, v))


def to_decimal(v: Any) -> Decimal | None:
    if v is None:
        return None
    if isinstance(v, Decimal):
        return v if v.is_finite() else None
    try:
        d = Decimal(str(v))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def fmt_money(v: float | Decimal | None) -> str:
    """Format a number for display (e.g., $1.23B, $456M)."""
    v = safe_float(v)
    if v is None:
        return "N/A"
    sign = "-" if v < 0 else ""
    av = abs(v)
    if av >= 1e12:
        return f"{sign}${av / 1e12:,.2f}T"
    if av >= 1e9:
        return f"{sign}${av / 1e9:,.2f}B"
    if av >= 1e6:
        return f"{sign}${av / 1e6:,.2f}M"
    if av >= 1e3:
        return f"{sign}${av:,.0f}"
    return f"{sign}${av:,.2f}"


def fmt_pct(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}%"


def fmt_multiple(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}x"
