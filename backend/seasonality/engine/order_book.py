"""Latest-snapshot order-book cache and the feed that owns its subscription.

OrderBookCache keeps exactly one snapshot: each update replaces it with a
single assignment, with no delta merge and no history.

OrderBookFeed owns at most one live subscription. Switching symbols releases
the previous stream before opening the next one, so two streams never race
on the same cache. It is an async context manager; leaving the block always
releases the stream.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Self

from seasonality.market.data_source import MarketDataSource, OrderBookSubscription
from seasonality.market.errors import MarketDataConnectionError
from seasonality.market.types import OrderBookLevel, OrderBookSnapshot
from seasonality.utils.logging import get_logger

logger = get_logger(__name__)

# Levels per side shown in the detail panel
DEFAULT_TOP_LEVELS = 10


class OrderBookCache:
    """Holds the most recent OrderBookSnapshot."""

    __slots__ = ("_snapshot",)

    def __init__(self) -> None:
        self._snapshot: OrderBookSnapshot | None = None

    def on_update(self, snapshot: OrderBookSnapshot) -> None:
        """Replace the held snapshot."""
        self._snapshot = snapshot

    def clear(self) -> None:
        self._snapshot = None

    @property
    def snapshot(self) -> OrderBookSnapshot | None:
        """Latest snapshot, or None before the first update."""
        return self._snapshot

    def top(
        self,
        levels: int = DEFAULT_TOP_LEVELS,
    ) -> tuple[tuple[OrderBookLevel, ...], tuple[OrderBookLevel, ...]]:
        """First ``levels`` bids and asks, in delivered order."""
        if self._snapshot is None:
            return (), ()
        return self._snapshot.bids[:levels], self._snapshot.asks[:levels]


class OrderBookFeed:
    """Owns the single live order-book subscription for a cache."""

    def __init__(
        self,
        source: MarketDataSource,
        cache: OrderBookCache | None = None,
        on_snapshot: Callable[[OrderBookSnapshot], None] | None = None,
    ) -> None:
        self._source = source
        self.cache = cache if cache is not None else OrderBookCache()
        self._on_snapshot = on_snapshot
        self._subscription: OrderBookSubscription | None = None
        self._symbol: str | None = None
        # Held across release-then-subscribe
        self._switch_lock = asyncio.Lock()

    @property
    def symbol(self) -> str | None:
        """Symbol currently streamed, or None."""
        return self._symbol

    @property
    def is_live(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def _deliver(self, snapshot: OrderBookSnapshot) -> None:
        # A frame already in flight when the symbol changed must not
        # overwrite the new symbol's book.
        if self._symbol is None or snapshot.symbol.upper() != self._symbol:
            logger.debug(
                "order_book_stale_update_dropped",
                symbol=snapshot.symbol,
                current=self._symbol,
            )
            return
        self.cache.on_update(snapshot)
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

    async def switch(self, symbol: str) -> bool:
        """Release the current stream and subscribe to ``symbol``.

        Overlapping calls run one after another, so the last caller's
        symbol ends up live and every earlier stream is released.

        Returns:
            True if the new stream is live. False if the transport refused
            the connection; the failure is logged and the cache stays empty.
        """
        async with self._switch_lock:
            await self._release()
            self._symbol = symbol.upper()
            try:
                self._subscription = await self._source.subscribe_order_book(
                    self._symbol,
                    self._deliver,
                )
            except MarketDataConnectionError as e:
                logger.error(
                    "order_book_subscribe_failed",
                    symbol=self._symbol,
                    error=str(e),
                )
                self._subscription = None
                return False
            return True

    async def release(self) -> None:
        """Unsubscribe and clear the cache. Safe to call repeatedly."""
        async with self._switch_lock:
            await self._release()

    async def _release(self) -> None:
        subscription = self._subscription
        self._subscription = None
        self._symbol = None
        self.cache.clear()
        if subscription is not None:
            await subscription.unsubscribe()

    async def close(self) -> None:
        await self.release()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.close()
