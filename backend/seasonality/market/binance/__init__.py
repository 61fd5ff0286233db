"""Binance public market data implementation."""

from seasonality.market.binance.data import (
    BinanceDataSource,
    BinanceOrderBookSubscription,
)

__all__ = ["BinanceDataSource", "BinanceOrderBookSubscription"]
