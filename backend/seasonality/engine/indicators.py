"""Trailing-window indicators over closing prices.

calculate_sma() and calculate_rsi() are pure functions of an ordered price
sequence and a window length. Both return None ("insufficient data") when
the sequence is too short, and never raise.

IndicatorSnapshot is a frozen dataclass holding the values the detail panel
shows. IndicatorCalculator composes the two functions with configured
periods and converts candles to closes at the boundary.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from seasonality.market.types import Candle


def calculate_sma(prices: Sequence[float], period: int) -> float | None:
    """Simple moving average of the last ``period`` prices.

    Returns None when fewer than ``period`` prices are available.
    """
    if period < 1 or len(prices) < period:
        return None
    total = 0.0
    for price in prices[-period:]:
        total += price
    return total / period


def calculate_rsi(prices: Sequence[float], period: int) -> float | None:
    """Wilder relative strength index, in [0, 100].

    Average gain/loss are seeded from the first ``period`` price differences
    and then smoothed over every later difference with
    ``avg = (avg * (period - 1) + x) / period``. Needs at least
    ``period + 1`` prices, otherwise returns None.

    A window with no losses yields exactly 100.0.
    """
    if period < 1 or len(prices) <= period:
        return None

    gain_sum = 0.0
    loss_sum = 0.0
    for i in range(1, period + 1):
        diff = prices[i] - prices[i - 1]
        if diff > 0:
            gain_sum += diff
        else:
            loss_sum -= diff
    avg_gain = gain_sum / period
    avg_loss = loss_sum / period

    for i in range(period + 1, len(prices)):
        diff = prices[i] - prices[i - 1]
        gain = diff if diff > 0 else 0.0
        loss = -diff if diff < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator values for the detail panel.

    Each value is None until enough closes are available for its window.
    """

    sma_fast: float | None = None
    sma_slow: float | None = None
    rsi: float | None = None
    sma_fast_period: int = 10
    sma_slow_period: int = 20
    rsi_period: int = 14
    sample_count: int = 0

    @property
    def is_complete(self) -> bool:
        """True when every indicator has a value."""
        return None not in (self.sma_fast, self.sma_slow, self.rsi)


class IndicatorCalculator:
    """Computes an IndicatorSnapshot from a close series.

    Defaults match the detail panel: 10- and 20-period SMA, 14-period RSI.
    """

    def __init__(
        self,
        sma_fast_period: int = 10,
        sma_slow_period: int = 20,
        rsi_period: int = 14,
    ) -> None:
        for name, value in (
            ("sma_fast_period", sma_fast_period),
            ("sma_slow_period", sma_slow_period),
            ("rsi_period", rsi_period),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        self.sma_fast_period = sma_fast_period
        self.sma_slow_period = sma_slow_period
        self.rsi_period = rsi_period

    @property
    def required_history(self) -> int:
        """Closes needed before every indicator is defined."""
        return max(self.sma_slow_period, self.sma_fast_period, self.rsi_period + 1)

    def calculate(self, closes: Sequence[float]) -> IndicatorSnapshot:
        return IndicatorSnapshot(
            sma_fast=calculate_sma(closes, self.sma_fast_period),
            sma_slow=calculate_sma(closes, self.sma_slow_period),
            rsi=calculate_rsi(closes, self.rsi_period),
            sma_fast_period=self.sma_fast_period,
            sma_slow_period=self.sma_slow_period,
            rsi_period=self.rsi_period,
            sample_count=len(closes),
        )

    def calculate_from_candles(self, candles: Iterable[Candle]) -> IndicatorSnapshot:
        """Extract closes (in the given order) and calculate."""
        return self.calculate([c.close for c in candles])
