"""Binance payload to domain type converters.

All string-to-float conversion happens here. Binance REST klines are arrays
of mixed ints and decimal strings; depth stream frames are JSON objects whose
levels are ``[price, quantity]`` string pairs.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from seasonality.market.errors import MalformedPayloadError
from seasonality.market.types import (
    MAX_DEPTH_LEVELS,
    Candle,
    OrderBookLevel,
    OrderBookSnapshot,
)
from seasonality.market.utils import to_float

# Kline array layout: [open_time, open, high, low, close, volume, close_time, ...]
_KLINE_MIN_FIELDS = 6


def kline_to_candle(kline: Sequence[Any]) -> Candle:
    """Convert one /api/v3/klines row to a Candle.

    Raises:
        MalformedPayloadError: If the row is short or has non-numeric fields.
    """
    if len(kline) < _KLINE_MIN_FIELDS:
        raise MalformedPayloadError(
            f"Kline has {len(kline)} fields, expected at least {_KLINE_MIN_FIELDS}"
        )
    try:
        return Candle(
            time=int(kline[0]),
            open=to_float(kline[1]),
            high=to_float(kline[2]),
            low=to_float(kline[3]),
            close=to_float(kline[4]),
            volume=to_float(kline[5]),
        )
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Invalid kline {kline!r}: {e}") from e


def klines_to_candles(payload: Any) -> list[Candle]:
    """Convert a klines response body to candles ordered by open time.

    Binance already returns rows oldest-first; the stable sort makes that a
    guarantee for the aggregation engine, which groups in arrival order.
    """
    if not isinstance(payload, list):
        raise MalformedPayloadError(
            f"Expected a JSON array of klines, got {type(payload).__name__}"
        )
    candles = [kline_to_candle(k) for k in payload]
    candles.sort(key=lambda c: c.time)
    return candles


def _levels(raw: Any) -> tuple[OrderBookLevel, ...]:
    if not isinstance(raw, list):
        raise MalformedPayloadError(f"Expected a list of levels, got {raw!r}")
    try:
        return tuple(
            OrderBookLevel(price=to_float(price), quantity=to_float(qty))
            for price, qty, *_ in raw[:MAX_DEPTH_LEVELS]
        )
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Invalid depth level: {e}") from e


def depth_message_to_snapshot(
    message: Any,
    symbol: str,
) -> OrderBookSnapshot | None:
    """Convert a depth stream frame to an OrderBookSnapshot.

    Handles the partial book payload (``lastUpdateId``/``bids``/``asks``),
    the diff-depth event (``e == "depthUpdate"``, ``b``/``a``) and the
    combined-stream envelope (``{"stream": ..., "data": ...}``).

    Returns:
        The snapshot, or None for frames that carry no depth (acks, pings).

    Raises:
        MalformedPayloadError: If a depth frame has unusable levels.
    """
    if not isinstance(message, dict):
        return None
    if "stream" in message and isinstance(message.get("data"), dict):
        message = message["data"]

    if message.get("e") == "depthUpdate":
        return OrderBookSnapshot(
            symbol=str(message.get("s", symbol)).upper(),
            bids=_levels(message.get("b", [])),
            asks=_levels(message.get("a", [])),
            last_update_id=message.get("u"),
        )

    if "bids" in message and "asks" in message:
        return OrderBookSnapshot(
            symbol=symbol.upper(),
            bids=_levels(message["bids"]),
            asks=_levels(message["asks"]),
            last_update_id=message.get("lastUpdateId"),
        )

    return None
