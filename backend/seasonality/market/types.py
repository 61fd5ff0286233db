"""Market data domain types shared across the explorer.

Frozen dataclasses for value objects. Prices and volumes are 64-bit floats;
derived ratios that would divide by zero are NaN rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from seasonality.market.utils import percent_change, percent_range
from seasonality.utils.time import ms_to_datetime

# Binance partial-depth streams deliver at most 20 levels per side
MAX_DEPTH_LEVELS = 20


class Timeframe(str, Enum):
    """Calendar granularity for bucket aggregation."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Metric(str, Enum):
    """Bucket field plotted on the chart and used for CSV/analysis views."""

    VOLATILITY = "volatility"
    VOLUME = "volume"
    CHANGE = "change"


# --- Value Objects (frozen) ---


@dataclass(frozen=True)
class Candle:
    """One fixed-interval OHLCV observation.

    ``time`` is the interval open time in epoch milliseconds.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def change(self) -> float:
        """Open-to-close change in percent. NaN when open is 0."""
        return percent_change(self.open, self.close)

    @property
    def volatility(self) -> float:
        """Intraperiod high-low range as a percent of the low. NaN when low is 0."""
        return percent_range(self.low, self.high)

    @property
    def timestamp(self) -> datetime:
        return ms_to_datetime(self.time)


@dataclass(frozen=True)
class OrderBookLevel:
    """A single (price, quantity) depth level."""

    price: float
    quantity: float


@dataclass(frozen=True)
class OrderBookSnapshot:
    """Latest known market depth for a symbol, in source order.

    No sort order is imposed here; levels are kept exactly as delivered.
    """

    symbol: str
    bids: tuple[OrderBookLevel, ...] = ()
    asks: tuple[OrderBookLevel, ...] = ()
    last_update_id: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks
