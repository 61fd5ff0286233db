"""FakeMarketDataSource — in-memory market data for testing.

Lightweight implementation of MarketDataSource for unit testing the
explorer, the order-book feed and the CLI without network access.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Self

from seasonality.market.data_source import OrderBookCallback
from seasonality.market.errors import MarketDataConnectionError
from seasonality.market.types import Candle, OrderBookSnapshot


class FakeOrderBookSubscription:
    """Queue-backed subscription; snapshots are pushed by the test."""

    def __init__(self, symbol: str, on_update: OrderBookCallback) -> None:
        self._symbol = symbol.upper()
        self._on_update = on_update
        self._queue: asyncio.Queue[OrderBookSnapshot] = asyncio.Queue()
        self._closed = False
        self.unsubscribe_calls = 0
        self._task = asyncio.create_task(self._run())

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, snapshot: OrderBookSnapshot) -> None:
        self._queue.put_nowait(snapshot)

    async def drain(self) -> None:
        """Wait until every pushed snapshot has been delivered."""
        await self._queue.join()

    async def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        if self._closed:
            return
        self._closed = True
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self) -> None:
        while True:
            snapshot = await self._queue.get()
            try:
                result = self._on_update(snapshot)
                if inspect.isawaitable(result):
                    await result
            finally:
                self._queue.task_done()


class FakeMarketDataSource:
    """In-memory MarketDataSource for testing.

    Supply canned candles per symbol at construction. ``fetch_delays`` lets a
    test make one symbol's response arrive later than another's, and
    ``subscribe_delay`` suspends each subscribe the way a WebSocket
    handshake would.
    """

    def __init__(
        self,
        series: dict[str, list[Candle]] | None = None,
        fetch_delays: dict[str, float] | None = None,
        fail_subscribe: bool = False,
        subscribe_delay: float = 0.0,
    ) -> None:
        self._series = series if series is not None else {}
        self._fetch_delays = fetch_delays if fetch_delays is not None else {}
        self._fail_subscribe = fail_subscribe
        self._subscribe_delay = subscribe_delay
        self._connected = False
        self.fetch_calls: list[tuple[str, str, int]] = []
        self.subscriptions: list[FakeOrderBookSubscription] = []

    @property
    def active_subscription(self) -> FakeOrderBookSubscription | None:
        live = [s for s in self.subscriptions if not s.closed]
        return live[-1] if live else None

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        for sub in self.subscriptions:
            await sub.unsubscribe()
        self._connected = False

    async def fetch_series(
        self,
        symbol: str,
        interval: str = "1d",
        limit: int = 30,
    ) -> list[Candle]:
        self.fetch_calls.append((symbol, interval, limit))
        delay = self._fetch_delays.get(symbol)
        if delay:
            await asyncio.sleep(delay)
        if limit <= 0:
            return []
        return list(self._series.get(symbol, []))[-limit:]

    async def subscribe_order_book(
        self,
        symbol: str,
        on_update: OrderBookCallback,
    ) -> FakeOrderBookSubscription:
        if self._fail_subscribe:
            raise MarketDataConnectionError(f"Fake stream refused for {symbol}")
        active = self.active_subscription
        if active is not None:
            await active.unsubscribe()
        if self._subscribe_delay:
            await asyncio.sleep(self._subscribe_delay)
        sub = FakeOrderBookSubscription(symbol, on_update)
        self.subscriptions.append(sub)
        return sub

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.disconnect()
