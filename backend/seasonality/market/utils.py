"""Shared market data helpers.

Numeric coercion for exchange payloads and the two percentage ratios used
throughout the explorer. Binance sends prices and quantities as decimal
strings; everything downstream works in float.
"""

from __future__ import annotations

import math


def to_float(value: float | int | str) -> float:
    """Convert an exchange numeric field to a finite float.

    Raises:
        ValueError: If the value is not numeric or is NaN/inf.
    """
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"Non-finite numeric value: {value!r}")
    return result


def percent_change(start: float, end: float) -> float:
    """``(end - start) / start * 100``, or NaN when ``start`` is 0."""
    if start == 0:
        return math.nan
    return (end - start) / start * 100


def percent_range(low: float, high: float) -> float:
    """``(high - low) / low * 100``, or NaN when ``low`` is 0."""
    if low == 0:
        return math.nan
    return (high - low) / low * 100


def is_missing(value: float | None) -> bool:
    """True for the engines' sentinels: None (insufficient data) or NaN."""
    return value is None or math.isnan(value)
