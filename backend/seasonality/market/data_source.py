"""MarketDataSource protocol — abstract interface for exchange data.

All data source implementations (Binance, fake) must satisfy this protocol.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from seasonality.market.types import Candle, OrderBookSnapshot

OrderBookCallback = Callable[[OrderBookSnapshot], Awaitable[None] | None]


@runtime_checkable
class OrderBookSubscription(Protocol):
    """Handle for one live order-book stream.

    ``unsubscribe`` is idempotent: calling it again, or after the stream
    closed on its own, is a no-op.
    """

    @property
    def symbol(self) -> str:
        """Symbol this subscription streams."""
        ...

    @property
    def closed(self) -> bool:
        """True once the stream has been released."""
        ...

    async def unsubscribe(self) -> None:
        """Stop delivery and release the underlying transport."""
        ...


@runtime_checkable
class MarketDataSource(Protocol):
    """Async interface for historical candles and live order-book depth.

    Implementations must support ``async with`` for lifecycle management.
    At most one order-book subscription is live per source; subscribing
    again releases the previous one first.
    """

    async def connect(self) -> None:
        """Prepare transport resources (HTTP client, etc.)."""
        ...

    async def disconnect(self) -> None:
        """Release transport resources and any live subscription."""
        ...

    async def fetch_series(
        self,
        symbol: str,
        interval: str = "1d",
        limit: int = 30,
    ) -> list[Candle]:
        """Fetch the most recent candles for a symbol.

        Args:
            symbol: Exchange symbol (e.g. "BTCUSDT").
            interval: Kline interval (e.g. "1d").
            limit: Number of candles to retrieve.

        Returns:
            Candles ordered by time ascending. Empty on transport failure.
        """
        ...

    async def subscribe_order_book(
        self,
        symbol: str,
        on_update: OrderBookCallback,
    ) -> OrderBookSubscription:
        """Open a depth stream for a symbol.

        Returns once the transport confirms the connection. ``on_update``
        (sync or async) is called once per snapshot, never concurrently.
        """
        ...

    async def __aenter__(self) -> MarketDataSource:
        """Connect on context manager entry."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Disconnect on context manager exit."""
        ...
