"""Detail panel model for a selected calendar cell.

Combines the selected bucket, the symbol's indicator snapshot and the top of
the live order book into plain text lines. Missing values (insufficient
history, zero denominators, no book yet) render as "N/A" or a loading note.
"""

from __future__ import annotations

from dataclasses import dataclass

from seasonality.engine.aggregation import AggregatedBucket
from seasonality.engine.indicators import IndicatorSnapshot
from seasonality.engine.order_book import DEFAULT_TOP_LEVELS, OrderBookCache
from seasonality.market.types import OrderBookLevel
from seasonality.views.calendar import format_percent, format_price, format_volume


@dataclass(frozen=True)
class DetailPanel:
    symbol: str
    bucket: AggregatedBucket
    indicators: IndicatorSnapshot | None = None
    bids: tuple[OrderBookLevel, ...] = ()
    asks: tuple[OrderBookLevel, ...] = ()


def build_detail(
    symbol: str,
    bucket: AggregatedBucket,
    indicators: IndicatorSnapshot | None = None,
    order_book: OrderBookCache | None = None,
    levels: int = DEFAULT_TOP_LEVELS,
) -> DetailPanel:
    bids: tuple[OrderBookLevel, ...] = ()
    asks: tuple[OrderBookLevel, ...] = ()
    if order_book is not None:
        bids, asks = order_book.top(levels)
    return DetailPanel(
        symbol=symbol,
        bucket=bucket,
        indicators=indicators,
        bids=bids,
        asks=asks,
    )


def _level_lines(title: str, levels: tuple[OrderBookLevel, ...]) -> list[str]:
    lines = [f"{title}:"]
    if not levels:
        lines.append("  (waiting for order book)")
    for level in levels:
        lines.append(f"  {level.price:.4f}  x  {level.quantity:.4f}")
    return lines


def render_detail(panel: DetailPanel) -> list[str]:
    """Render the panel as text lines, one metric per line."""
    b = panel.bucket
    if b.period_start == b.period_end:
        period = b.period_start.isoformat()
    else:
        period = f"{b.period_start.isoformat()} to {b.period_end.isoformat()}"

    lines = [
        "Detailed Metrics",
        f"Date: {period}",
        f"Symbol: {panel.symbol}",
        f"Open: {format_price(b.open)}",
        f"Close: {format_price(b.close)}",
        f"High: {format_price(b.high)}",
        f"Low: {format_price(b.low)}",
        f"Price Change: {format_percent(b.change)}",
        f"Volatility (Avg Daily Range %): {format_percent(b.volatility)}",
        f"Volume: {format_volume(b.volume)}",
        "",
        "Technical Indicators",
    ]

    ind = panel.indicators
    if ind is None:
        lines.append("Loading indicators...")
    else:
        lines.extend(
            [
                f"{ind.sma_fast_period}-Day SMA: {format_price(ind.sma_fast)}",
                f"{ind.sma_slow_period}-Day SMA: {format_price(ind.sma_slow)}",
                f"{ind.rsi_period}-Day RSI: {format_price(ind.rsi)}",
            ]
        )

    lines.extend(["", "Real-time Order Book"])
    lines.extend(_level_lines("Bids", panel.bids))
    lines.extend(_level_lines("Asks", panel.asks))
    return lines
