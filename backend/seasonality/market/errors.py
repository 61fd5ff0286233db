"""Market data error hierarchy.

All data-source exceptions inherit from MarketDataError. fetch_series()
catches transport errors and reduces them to an empty result. Two errors
escape the adapters: MarketDataNotConnectedError (a caller bug) and
MarketDataConnectionError from subscribe_order_book(), which OrderBookFeed
handles.
"""

from __future__ import annotations


class MarketDataError(Exception):
    """Base exception for all market data errors."""


class MarketDataConnectionError(MarketDataError):
    """Connection failures: DNS, refused, TLS, WebSocket handshake."""


class MarketDataAPIError(MarketDataError):
    """Non-2xx REST response from the exchange.

    Stores the HTTP status code and error message from the exchange.
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Market data API error {status_code}: {message}")


class MarketDataTimeoutError(MarketDataError):
    """Request timeout when communicating with the exchange."""


class MalformedPayloadError(MarketDataError):
    """Payload could not be decoded or mapped to domain types."""


class MarketDataNotConnectedError(MarketDataError):
    """Method called before connect() was called."""
