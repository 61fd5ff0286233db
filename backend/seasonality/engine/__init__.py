"""Engine layer: calendar aggregation, indicators and the order-book cache."""

from seasonality.engine.aggregation import (
    AggregatedBucket,
    group_by_period,
    period_bounds,
)
from seasonality.engine.indicators import (
    IndicatorCalculator,
    IndicatorSnapshot,
    calculate_rsi,
    calculate_sma,
)
from seasonality.engine.order_book import OrderBookCache, OrderBookFeed

__all__ = [
    "AggregatedBucket",
    "IndicatorCalculator",
    "IndicatorSnapshot",
    "OrderBookCache",
    "OrderBookFeed",
    "calculate_rsi",
    "calculate_sma",
    "group_by_period",
    "period_bounds",
]
