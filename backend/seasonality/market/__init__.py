"""Market data abstraction layer.

Re-exports all public types, protocols, and errors for convenient imports:
    from seasonality.market import Candle, MarketDataSource, MarketDataError
"""

from seasonality.market.data_source import (
    MarketDataSource,
    OrderBookCallback,
    OrderBookSubscription,
)
from seasonality.market.errors import (
    MalformedPayloadError,
    MarketDataAPIError,
    MarketDataConnectionError,
    MarketDataError,
    MarketDataNotConnectedError,
    MarketDataTimeoutError,
)
from seasonality.market.types import (
    MAX_DEPTH_LEVELS,
    Candle,
    Metric,
    OrderBookLevel,
    OrderBookSnapshot,
    Timeframe,
)

__all__ = [
    "MAX_DEPTH_LEVELS",
    "Candle",
    "MalformedPayloadError",
    "MarketDataAPIError",
    "MarketDataConnectionError",
    "MarketDataError",
    "MarketDataNotConnectedError",
    "MarketDataSource",
    "MarketDataTimeoutError",
    "Metric",
    "OrderBookCallback",
    "OrderBookLevel",
    "OrderBookSnapshot",
    "OrderBookSubscription",
    "Timeframe",
]
