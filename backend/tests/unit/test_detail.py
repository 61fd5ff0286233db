"""Tests for the detail panel model."""

from __future__ import annotations

from datetime import date, timedelta

from seasonality.engine.aggregation import AggregatedBucket, group_by_period
from seasonality.engine.indicators import IndicatorSnapshot
from seasonality.engine.order_book import OrderBookCache
from seasonality.market.types import Timeframe
from seasonality.views.detail import build_detail, render_detail
from tests.factories import make_day_candle, make_snapshot


def _daily_bucket() -> AggregatedBucket:
    [bucket] = group_by_period([make_day_candle(date(2026, 2, 10))], Timeframe.DAILY)
    return bucket


class TestBuildDetail:
    def test_without_order_book(self) -> None:
        panel = build_detail("BTCUSDT", _daily_bucket())
        assert panel.bids == ()
        assert panel.asks == ()
        assert panel.indicators is None

    def test_takes_top_levels_from_cache(self) -> None:
        cache = OrderBookCache()
        bids = tuple((100.0 - i, 1.0) for i in range(20))
        cache.on_update(make_snapshot(bids=bids))
        panel = build_detail("BTCUSDT", _daily_bucket(), order_book=cache, levels=5)
        assert len(panel.bids) == 5
        assert len(panel.asks) == 2


class TestRenderDetail:
    def test_metrics_section(self) -> None:
        lines = render_detail(build_detail("BTCUSDT", _daily_bucket()))
        assert lines[0] == "Detailed Metrics"
        assert "Date: 2026-02-10" in lines
        assert "Symbol: BTCUSDT" in lines
        assert "Open: 100.00" in lines
        assert "Close: 105.00" in lines
        assert "High: 110.00" in lines
        assert "Low: 95.00" in lines
        assert "Price Change: 5.00%" in lines
        assert "Volatility (Avg Daily Range %): 15.79%" in lines
        assert "Volume: 1,000" in lines

    def test_weekly_bucket_shows_range(self) -> None:
        candles = [
            make_day_candle(date(2026, 2, 8) + timedelta(days=i)) for i in range(3)
        ]
        [bucket] = group_by_period(candles, Timeframe.WEEKLY)
        lines = render_detail(build_detail("BTCUSDT", bucket))
        assert "Date: 2026-02-08 to 2026-02-14" in lines

    def test_indicators_loading(self) -> None:
        lines = render_detail(build_detail("BTCUSDT", _daily_bucket()))
        assert "Technical Indicators" in lines
        assert "Loading indicators..." in lines

    def test_indicator_values_and_missing(self) -> None:
        indicators = IndicatorSnapshot(sma_fast=101.5, sma_slow=None, rsi=62.3)
        lines = render_detail(
            build_detail("BTCUSDT", _daily_bucket(), indicators=indicators)
        )
        assert "10-Day SMA: 101.50" in lines
        assert "20-Day SMA: N/A" in lines
        assert "14-Day RSI: 62.30" in lines
        assert "Loading indicators..." not in lines

    def test_waiting_for_order_book(self) -> None:
        lines = render_detail(build_detail("BTCUSDT", _daily_bucket()))
        assert "Real-time Order Book" in lines
        assert lines.count("  (waiting for order book)") == 2

    def test_order_book_levels(self) -> None:
        cache = OrderBookCache()
        cache.on_update(make_snapshot(bids=((100.0, 1.5),), asks=((100.5, 2.0),)))
        lines = render_detail(build_detail("BTCUSDT", _daily_bucket(), order_book=cache))
        bids_at = lines.index("Bids:")
        asks_at = lines.index("Asks:")
        assert lines[bids_at + 1] == "  100.0000  x  1.5000"
        assert lines[asks_at + 1] == "  100.5000  x  2.0000"

    def test_nan_fields_render_na(self) -> None:
        [bucket] = group_by_period(
            [make_day_candle(date(2026, 2, 10), open=0.0, low=0.0)],
            Timeframe.DAILY,
        )
        lines = render_detail(build_detail("BTCUSDT", bucket))
        assert "Price Change: N/A" in lines
        assert "Volatility (Avg Daily Range %): N/A" in lines
