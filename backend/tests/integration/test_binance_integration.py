"""Integration tests against Binance's public market data endpoints.

No credentials are needed, but these make real network calls. They are
marked with @pytest.mark.integration (deselected by default) and skip
unless RUN_BINANCE_INTEGRATION=1 is set.

Run with: RUN_BINANCE_INTEGRATION=1 pytest -m integration -v
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from seasonality.engine.aggregation import group_by_period
from seasonality.engine.order_book import OrderBookFeed
from seasonality.market.types import MAX_DEPTH_LEVELS, Timeframe

pytestmark = pytest.mark.integration


class TestFetchSeriesIntegration:
    async def test_daily_klines(self, binance_source: Any) -> None:
        """Fetch 5 daily BTCUSDT candles and verify shape and order."""
        candles = await binance_source.fetch_series("BTCUSDT", "1d", 5)
        assert len(candles) == 5
        assert [c.time for c in candles] == sorted(c.time for c in candles)
        for candle in candles:
            assert candle.low <= candle.open <= candle.high
            assert candle.low <= candle.close <= candle.high
            assert candle.volume >= 0

    async def test_unknown_symbol_returns_empty(self, binance_source: Any) -> None:
        assert await binance_source.fetch_series("NOTAREALPAIR", "1d", 5) == []

    async def test_month_of_history_aggregates(self, binance_source: Any) -> None:
        candles = await binance_source.fetch_series("ETHUSDT", "1d", 60)
        monthly = group_by_period(candles, Timeframe.MONTHLY)
        assert 2 <= len(monthly) <= 3
        assert sum(b.candle_count for b in monthly) == len(candles)


class TestOrderBookIntegration:
    async def test_feed_receives_snapshot(self, binance_source: Any) -> None:
        """Open the BTCUSDT depth stream and wait for one snapshot."""
        async with OrderBookFeed(binance_source) as feed:
            assert await feed.switch("BTCUSDT")
            for _ in range(100):
                if feed.cache.snapshot is not None:
                    break
                await asyncio.sleep(0.1)

            snapshot = feed.cache.snapshot
            assert snapshot is not None
            assert snapshot.symbol == "BTCUSDT"
            assert 0 < len(snapshot.bids) <= MAX_DEPTH_LEVELS
            assert snapshot.bids[0].price < snapshot.asks[0].price
        assert not feed.is_live
