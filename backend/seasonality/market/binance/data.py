"""BinanceDataSource — public market data via httpx and websockets.

- Historical klines come from the REST endpoint through one shared
  ``httpx.AsyncClient``.
- Order-book depth streams run over ``websockets``; each subscription owns
  its connection and a single reader task, so callbacks never overlap.
- Transport failures are logged and reduce to an empty result. Nothing
  transport-specific leaks past this module.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
from typing import Any, Self

import httpx
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from seasonality.config import BinanceConfig
from seasonality.market.binance.mappers import (
    depth_message_to_snapshot,
    klines_to_candles,
)
from seasonality.market.data_source import OrderBookCallback
from seasonality.market.errors import (
    MalformedPayloadError,
    MarketDataAPIError,
    MarketDataConnectionError,
    MarketDataError,
    MarketDataNotConnectedError,
    MarketDataTimeoutError,
)
from seasonality.market.types import Candle
from seasonality.utils.logging import get_logger

logger = get_logger(__name__)

KLINES_PATH = "/api/v3/klines"

# Initial reconnect backoff; doubles up to BinanceConfig.reconnect_max_delay_s
_RECONNECT_BASE_DELAY_S = 1.0


def depth_stream_url(config: BinanceConfig, symbol: str) -> str:
    """Partial book depth stream URL, e.g. ``.../btcusdt@depth20@100ms``."""
    return (
        f"{config.ws_url}/{symbol.lower()}"
        f"@depth{config.depth_levels}@{config.depth_update_ms}ms"
    )


def _error_message(response: httpx.Response) -> str:
    """Extract Binance's ``{"code", "msg"}`` error body, else raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and "msg" in body:
        return str(body["msg"])
    return response.text[:200]


async def _open_stream(url: str, timeout: float) -> Any:
    """Open a WebSocket, mapping handshake failures to MarketDataConnectionError."""
    try:
        return await websockets.connect(url, open_timeout=timeout)
    except (OSError, TimeoutError, WebSocketException) as e:
        raise MarketDataConnectionError(
            f"Failed to open depth stream {url}: {e}",
        ) from e


class BinanceOrderBookSubscription:
    """One live depth stream for one symbol.

    Owns the WebSocket and its reader task. Optionally reconnects with
    exponential backoff when the exchange drops the connection.
    """

    def __init__(
        self,
        symbol: str,
        url: str,
        ws: Any,
        on_update: OrderBookCallback,
        config: BinanceConfig,
    ) -> None:
        self._symbol = symbol.upper()
        self._url = url
        self._ws = ws
        self._on_update = on_update
        self._config = config
        self._closed = False
        self._task: asyncio.Task[None] = asyncio.create_task(
            self._run(),
            name=f"binance-depth-{self._symbol}",
        )

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def closed(self) -> bool:
        return self._closed

    async def unsubscribe(self) -> None:
        """Cancel the reader and close the socket. Idempotent."""
        if self._closed:
            return
        self._closed = True

        if self._task is not asyncio.current_task():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

        await self._close_ws()
        logger.info("order_book_unsubscribed", symbol=self._symbol)

    async def wait_closed(self) -> None:
        """Wait until the reader task finishes (stream ended or released)."""
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _close_ws(self) -> None:
        try:
            await self._ws.close()
        except Exception:
            logger.exception("order_book_close_failed", symbol=self._symbol)

    async def _run(self) -> None:
        delay = _RECONNECT_BASE_DELAY_S
        while not self._closed:
            try:
                async for raw in self._ws:
                    # A callback may have unsubscribed while frames were buffered
                    if self._closed:
                        break
                    await self._dispatch(raw)
                    delay = _RECONNECT_BASE_DELAY_S
            except ConnectionClosed as e:
                logger.warning(
                    "order_book_stream_dropped",
                    symbol=self._symbol,
                    reason=str(e),
                )

            if self._closed or not self._config.reconnect:
                break

            logger.info(
                "order_book_reconnecting",
                symbol=self._symbol,
                delay_s=delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._config.reconnect_max_delay_s)
            try:
                self._ws = await _open_stream(
                    self._url,
                    self._config.request_timeout_s,
                )
            except MarketDataConnectionError as e:
                logger.warning(
                    "order_book_reconnect_failed",
                    symbol=self._symbol,
                    error=str(e),
                )
                # Keep the old socket object; iterating a closed socket ends
                # immediately and the loop backs off again.

        if not self._closed:
            self._closed = True
            logger.info("order_book_stream_ended", symbol=self._symbol)

    async def _dispatch(self, raw: str | bytes) -> None:
        """Decode one frame and deliver it. Bad frames are logged and skipped."""
        try:
            message = json.loads(raw)
            snapshot = depth_message_to_snapshot(message, self._symbol)
        except (ValueError, MalformedPayloadError) as e:
            logger.warning(
                "order_book_frame_invalid",
                symbol=self._symbol,
                error=str(e),
            )
            return

        if snapshot is None:
            return

        try:
            result = self._on_update(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("order_book_callback_failed", symbol=self._symbol)


class BinanceDataSource:
    """MarketDataSource backed by Binance's public REST and WebSocket APIs."""

    def __init__(
        self,
        config: BinanceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._active: BinanceOrderBookSubscription | None = None
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the shared HTTP client."""
        async with self._lifecycle_lock:
            if self._client is not None:
                logger.warning("BinanceDataSource already connected")
                return
            self._client = httpx.AsyncClient(
                base_url=self._config.rest_url,
                timeout=self._config.request_timeout_s,
                transport=self._transport,
            )
            logger.info("binance_connected", rest_url=self._config.rest_url)

    async def disconnect(self) -> None:
        """Release the live subscription and the HTTP client."""
        async with self._lifecycle_lock:
            if self._active is not None:
                await self._active.unsubscribe()
                self._active = None
            if self._client is None:
                return
            await self._client.aclose()
            self._client = None
            logger.info("binance_disconnected")

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise MarketDataNotConnectedError(
                "Not connected. Call connect() first.",
            )
        return self._client

    async def fetch_series(
        self,
        symbol: str,
        interval: str = "1d",
        limit: int = 30,
    ) -> list[Candle]:
        """Fetch recent klines. Returns [] on any transport or payload error."""
        client = self._require_client()
        symbol = symbol.upper()
        try:
            payload = await self._get_klines(client, symbol, interval, limit)
            candles = klines_to_candles(payload)
        except MarketDataError as e:
            logger.error(
                "fetch_series_failed",
                symbol=symbol,
                interval=interval,
                limit=limit,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        logger.info(
            "fetch_series_loaded",
            symbol=symbol,
            interval=interval,
            candle_count=len(candles),
        )
        return candles

    async def _get_klines(
        self,
        client: httpx.AsyncClient,
        symbol: str,
        interval: str,
        limit: int,
    ) -> Any:
        params = {"symbol": symbol, "interval": interval, "limit": limit}
        try:
            response = await client.get(KLINES_PATH, params=params)
        except httpx.TimeoutException as e:
            raise MarketDataTimeoutError(f"Klines request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise MarketDataConnectionError(f"Klines request failed: {e}") from e

        if response.status_code >= 400:
            raise MarketDataAPIError(response.status_code, _error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise MalformedPayloadError(f"Klines body is not JSON: {e}") from e

    async def subscribe_order_book(
        self,
        symbol: str,
        on_update: OrderBookCallback,
    ) -> BinanceOrderBookSubscription:
        """Open a depth stream, releasing any previous one first.

        Raises:
            MarketDataConnectionError: If the WebSocket handshake fails.
        """
        async with self._lifecycle_lock:
            self._require_client()
            if self._active is not None:
                logger.info(
                    "order_book_replacing_subscription",
                    previous=self._active.symbol,
                    symbol=symbol.upper(),
                )
                await self._active.unsubscribe()
                self._active = None

            url = depth_stream_url(self._config, symbol)
            ws = await _open_stream(url, self._config.request_timeout_s)
            subscription = BinanceOrderBookSubscription(
                symbol=symbol,
                url=url,
                ws=ws,
                on_update=on_update,
                config=self._config,
            )
            self._active = subscription
            logger.info("order_book_subscribed", symbol=subscription.symbol, url=url)
            return subscription

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Disconnect on context manager exit.

        Wraps disconnect in try/except to avoid masking the original exception.
        """
        try:
            await self.disconnect()
        except Exception:
            logger.exception("Error during disconnect in __aexit__")
