"""Tests for the in-memory FakeMarketDataSource."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from seasonality.market.data_source import MarketDataSource, OrderBookSubscription
from seasonality.market.errors import MarketDataConnectionError
from seasonality.market.fake.data import FakeMarketDataSource
from seasonality.market.types import OrderBookSnapshot
from tests.factories import make_daily_series, make_snapshot


class TestFakeMarketDataSource:
    async def test_satisfies_protocol(self) -> None:
        assert isinstance(FakeMarketDataSource(), MarketDataSource)

    async def test_fetch_returns_last_limit_candles(self) -> None:
        series = make_daily_series(date(2026, 2, 1), [1.0, 2.0, 3.0, 4.0])
        async with FakeMarketDataSource({"BTCUSDT": series}) as source:
            candles = await source.fetch_series("BTCUSDT", "1d", 2)
        assert candles == series[-2:]
        assert source.fetch_calls == [("BTCUSDT", "1d", 2)]

    @pytest.mark.parametrize("limit", [0, -3])
    async def test_non_positive_limit_is_empty(self, limit: int) -> None:
        series = make_daily_series(date(2026, 2, 1), [1.0, 2.0, 3.0])
        async with FakeMarketDataSource({"BTCUSDT": series}) as source:
            assert await source.fetch_series("BTCUSDT", "1d", limit) == []

    async def test_unknown_symbol_is_empty(self) -> None:
        async with FakeMarketDataSource() as source:
            assert await source.fetch_series("NOPEUSDT") == []

    async def test_fetch_delay(self) -> None:
        source = FakeMarketDataSource(fetch_delays={"SLOWUSDT": 0.05})
        loop = asyncio.get_running_loop()
        started = loop.time()
        await source.fetch_series("SLOWUSDT")
        assert loop.time() - started >= 0.04

    async def test_subscription_delivers_pushed_snapshots(self) -> None:
        received: list[OrderBookSnapshot] = []
        async with FakeMarketDataSource() as source:
            sub = await source.subscribe_order_book("btcusdt", received.append)
            assert isinstance(sub, OrderBookSubscription)
            assert sub.symbol == "BTCUSDT"
            snapshot = make_snapshot()
            sub.push(snapshot)
            await sub.drain()
        assert received == [snapshot]

    async def test_subscribe_releases_previous(self) -> None:
        async with FakeMarketDataSource() as source:
            first = await source.subscribe_order_book("BTCUSDT", lambda s: None)
            second = await source.subscribe_order_book("ETHUSDT", lambda s: None)
            assert first.closed
            assert source.active_subscription is second

    async def test_fail_subscribe(self) -> None:
        async with FakeMarketDataSource(fail_subscribe=True) as source:
            with pytest.raises(MarketDataConnectionError):
                await source.subscribe_order_book("BTCUSDT", lambda s: None)

    async def test_disconnect_closes_subscriptions(self) -> None:
        source = FakeMarketDataSource()
        await source.connect()
        sub = await source.subscribe_order_book("BTCUSDT", lambda s: None)
        await source.disconnect()
        assert sub.closed
        assert source.active_subscription is None
