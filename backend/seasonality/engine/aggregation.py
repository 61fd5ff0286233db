"""Calendar aggregation from fixed-interval candles to day/week/month buckets.

Pull-based and pure: group_by_period() takes the whole series and returns a
fresh list of buckets every call. There is no buffered state, unlike a
streaming aggregator, because the calendar is recomputed whenever the symbol
or timeframe selection changes.

Grouping is stable: buckets come out in the order their period is first
seen, and candles keep arrival order inside a bucket. Chronological output
therefore assumes the series arrives sorted by time, which every
MarketDataSource guarantees.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from seasonality.market.types import Candle, Timeframe
from seasonality.market.utils import percent_change
from seasonality.utils.time import (
    end_of_month,
    end_of_week,
    ms_to_datetime,
    start_of_month,
    start_of_week,
)


@dataclass(frozen=True)
class AggregatedBucket:
    """One calendar period summarizing one or more candles.

    ``period_start``/``period_end`` are inclusive UTC dates. ``time`` is the
    first constituent candle's open time, used as the chart/CSV anchor.
    ``volatility`` is the mean of the candles' own volatilities, not a range
    recomputed from the bucket's high and low.
    """

    period_start: date
    period_end: date
    time: int
    open: float
    close: float
    high: float
    low: float
    volume: float
    change: float
    volatility: float
    candles: tuple[Candle, ...]

    @property
    def candle_count(self) -> int:
        return len(self.candles)

    @property
    def timestamp(self) -> datetime:
        return ms_to_datetime(self.time)

    def contains(self, d: date) -> bool:
        """True when the date falls inside this bucket's period."""
        return self.period_start <= d <= self.period_end


def coerce_timeframe(timeframe: Timeframe | str) -> Timeframe:
    """Map a timeframe or its string value to Timeframe.

    Unrecognized values fall back to daily grouping.
    """
    if isinstance(timeframe, Timeframe):
        return timeframe
    try:
        return Timeframe(str(timeframe).lower())
    except ValueError:
        return Timeframe.DAILY


def period_bounds(moment: datetime | date, timeframe: Timeframe | str) -> tuple[date, date]:
    """Inclusive UTC (start, end) dates of the period containing ``moment``."""
    d = moment.date() if isinstance(moment, datetime) else moment
    tf = coerce_timeframe(timeframe)
    if tf is Timeframe.WEEKLY:
        return start_of_week(d), end_of_week(d)
    if tf is Timeframe.MONTHLY:
        return start_of_month(d), end_of_month(d)
    return d, d


def build_bucket(
    period_start: date,
    period_end: date,
    candles: list[Candle] | tuple[Candle, ...],
) -> AggregatedBucket:
    """Summarize a non-empty run of candles (in arrival order) into a bucket."""
    first = candles[0]
    last = candles[-1]

    volume = 0.0
    volatility_sum = 0.0
    high = first.high
    low = first.low
    for c in candles:
        volume += c.volume
        volatility_sum += c.volatility
        if c.high > high:
            high = c.high
        if c.low < low:
            low = c.low

    return AggregatedBucket(
        period_start=period_start,
        period_end=period_end,
        time=first.time,
        open=first.open,
        close=last.close,
        high=high,
        low=low,
        volume=volume,
        change=percent_change(first.open, last.close),
        volatility=volatility_sum / len(candles),
        candles=tuple(candles),
    )


def group_by_period(
    candles: Iterable[Candle],
    timeframe: Timeframe | str,
) -> list[AggregatedBucket]:
    """Group candles into calendar buckets.

    Args:
        candles: Candles in arrival order (normally time-ascending).
        timeframe: daily, weekly or monthly.

    Returns:
        Buckets in first-seen order. Empty input gives an empty list.
    """
    tf = coerce_timeframe(timeframe)
    # dict preserves insertion order, which is the first-seen bucket order
    groups: dict[tuple[date, date], list[Candle]] = {}
    for candle in candles:
        key = period_bounds(ms_to_datetime(candle.time), tf)
        groups.setdefault(key, []).append(candle)

    return [
        build_bucket(start, end, members)
        for (start, end), members in groups.items()
    ]
