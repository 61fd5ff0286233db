"""Click CLI commands for the market seasonality explorer."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar

import click

from seasonality.config import VALID_METRICS, VALID_PALETTES, VALID_TIMEFRAMES, AppConfig
from seasonality.engine.order_book import OrderBookFeed
from seasonality.market.binance.data import BinanceDataSource
from seasonality.market.data_source import MarketDataSource
from seasonality.market.errors import MarketDataError
from seasonality.market.types import OrderBookSnapshot
from seasonality.utils.logging import setup_logging

T = TypeVar("T")

_TIMEFRAME_CHOICE = click.Choice(sorted(VALID_TIMEFRAMES), case_sensitive=False)


def _make_source(config: AppConfig) -> MarketDataSource:
    return BinanceDataSource(config.binance)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning data-source errors into CLI errors."""
    try:
        return asyncio.run(coro)
    except MarketDataError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Market seasonality explorer: calendar views of crypto volatility."""
    config = AppConfig()
    setup_logging(level=config.log_level, log_format=config.log_format)
    ctx.obj = config


_SYMBOL_OPTION = click.option(
    "--symbol",
    default=None,
    help="Exchange symbol (default: calendar.default_symbol).",
)


@cli.command()
@_SYMBOL_OPTION
@click.option("--timeframe", type=_TIMEFRAME_CHOICE, default=None, help="Bucket size.")
@click.option(
    "--month",
    type=click.DateTime(formats=["%Y-%m"]),
    default=None,
    help="Month to show (YYYY-MM, default: current month).",
)
@click.option(
    "--palette",
    type=click.Choice(sorted(VALID_PALETTES), case_sensitive=False),
    default=None,
    help="Cell color palette.",
)
@click.pass_obj
def calendar(
    config: AppConfig,
    symbol: str | None,
    timeframe: str | None,
    month: datetime | None,
    palette: str | None,
) -> None:
    """Show one month of aggregated volatility, volume and change."""
    from seasonality.explorer import SeasonalityExplorer
    from seasonality.utils.time import utc_today
    from seasonality.views.calendar import CalendarCell, format_percent, format_volume

    target = month.date() if month is not None else utc_today()

    async def _load() -> list[CalendarCell]:
        async with _make_source(config) as source:
            explorer = SeasonalityExplorer(source, config)
            explorer.select_symbol(symbol or config.calendar.default_symbol)
            if timeframe:
                explorer.select_timeframe(timeframe)
            await explorer.load_series()
            return explorer.calendar(target, palette=palette)

    cells = _run(_load())

    click.echo(f"{target:%B %Y}")
    if not cells:
        click.echo("No data for this month.")
        return
    for cell in cells:
        b = cell.bucket
        alert = "  ALERT" if cell.alert else ""
        in_range = "*" if cell.in_range else " "
        click.echo(
            f"{in_range}{cell.label:<16} {cell.background:<8} "
            f"vol {format_percent(b.volatility):>9}  "
            f"{cell.marker} {format_percent(b.change):>9}  "
            f"volume {format_volume(b.volume):>16}{alert}"
        )


@cli.command()
@_SYMBOL_OPTION
@click.option("--timeframe", type=_TIMEFRAME_CHOICE, default=None, help="Bucket size.")
@click.option(
    "--metric",
    type=click.Choice(sorted(VALID_METRICS), case_sensitive=False),
    default=None,
    help="Bucket field to list.",
)
@click.pass_obj
def chart(
    config: AppConfig,
    symbol: str | None,
    timeframe: str | None,
    metric: str | None,
) -> None:
    """List the chart series for a metric across the loaded history."""
    from seasonality.explorer import SeasonalityExplorer
    from seasonality.views.chart import ChartSeries, metric_series

    async def _load() -> ChartSeries:
        async with _make_source(config) as source:
            explorer = SeasonalityExplorer(source, config)
            explorer.select_symbol(symbol or config.calendar.default_symbol)
            await explorer.load_series()
            return metric_series(
                explorer.buckets(timeframe),
                metric or config.calendar.default_metric,
            )

    series = _run(_load())
    click.echo(series.label)
    for label, value in zip(series.labels, series.values, strict=True):
        click.echo(f"  {label}  {value:.4f}")


@cli.command()
@_SYMBOL_OPTION
@click.option(
    "--date",
    "on_date",
    required=True,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Date inside the period to inspect (YYYY-MM-DD).",
)
@click.option("--timeframe", type=_TIMEFRAME_CHOICE, default=None, help="Bucket size.")
@click.option(
    "--book-wait",
    default=0.0,
    type=click.FloatRange(min=0),
    help="Seconds to wait for a live order book (0 skips it).",
)
@click.pass_obj
def detail(
    config: AppConfig,
    symbol: str | None,
    on_date: datetime,
    timeframe: str | None,
    book_wait: float,
) -> None:
    """Show metrics, indicators and order book for one period."""
    from seasonality.explorer import SeasonalityExplorer
    from seasonality.views.detail import render_detail

    target: date = on_date.date()

    async def _load() -> list[str] | None:
        book_ready = asyncio.Event()

        def _book_arrived(snapshot: OrderBookSnapshot) -> None:
            book_ready.set()

        async with _make_source(config) as source:
            async with SeasonalityExplorer(
                source,
                config,
                on_book_update=_book_arrived,
            ) as explorer:
                explorer.select_symbol(symbol or config.calendar.default_symbol)
                if timeframe:
                    explorer.select_timeframe(timeframe)
                await asyncio.gather(
                    explorer.load_series(),
                    explorer.load_indicators(),
                )
                bucket = explorer.find_bucket(target)
                if bucket is None:
                    return None
                if book_wait > 0 and await explorer.watch_order_book():
                    await _wait_for_book(book_ready, book_wait)
                return render_detail(explorer.detail(bucket))

    lines = _run(_load())
    if lines is None:
        raise click.ClickException(f"No data covers {target.isoformat()}")
    for line in lines:
        click.echo(line)


async def _wait_for_book(ready: asyncio.Event, timeout: float) -> None:
    """Wait for the first snapshot; give up quietly after ``timeout``."""
    try:
        await asyncio.wait_for(ready.wait(), timeout=timeout)
    except TimeoutError:
        pass


@cli.command()
@_SYMBOL_OPTION
@click.option(
    "--updates",
    default=1,
    type=click.IntRange(min=1),
    help="Number of snapshots to print before exiting.",
)
@click.option(
    "--levels",
    default=10,
    type=click.IntRange(min=1, max=20),
    help="Levels per side to print.",
)
@click.option(
    "--timeout",
    default=10.0,
    type=click.FloatRange(min=0.1),
    help="Seconds to wait for the requested updates.",
)
@click.pass_obj
def orderbook(
    config: AppConfig,
    symbol: str | None,
    updates: int,
    levels: int,
    timeout: float,
) -> None:
    """Stream the live order book and print the top levels."""
    chosen = (symbol or config.calendar.default_symbol).upper()
    printed: list[OrderBookSnapshot] = []

    async def _stream() -> bool:
        done = asyncio.Event()

        def _print_snapshot(snapshot: OrderBookSnapshot) -> None:
            if len(printed) >= updates:
                return
            printed.append(snapshot)
            click.echo(f"--- {snapshot.symbol} update {len(printed)} ---")
            click.echo(f"  {'bid':>14} {'qty':>14}  |  {'ask':>14} {'qty':>14}")
            for bid, ask in zip(
                snapshot.bids[:levels],
                snapshot.asks[:levels],
                strict=False,
            ):
                click.echo(
                    f"  {bid.price:>14.4f} {bid.quantity:>14.4f}  |  "
                    f"{ask.price:>14.4f} {ask.quantity:>14.4f}"
                )
            if len(printed) >= updates:
                done.set()

        async with _make_source(config) as source:
            async with OrderBookFeed(source, on_snapshot=_print_snapshot) as feed:
                if not await feed.switch(chosen):
                    return False
                try:
                    await asyncio.wait_for(done.wait(), timeout=timeout)
                except TimeoutError:
                    pass
        return True

    live = _run(_stream())
    if not live:
        raise click.ClickException(f"Could not open order book stream for {chosen}")
    if len(printed) < updates:
        click.echo(f"Received {len(printed)} of {updates} updates before timeout.")


@cli.command()
@_SYMBOL_OPTION
@click.option("--timeframe", type=_TIMEFRAME_CHOICE, default=None, help="Bucket size.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination file (default: export.csv_filename).",
)
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Export the raw candles instead of aggregated buckets.",
)
@click.pass_obj
def export(
    config: AppConfig,
    symbol: str | None,
    timeframe: str | None,
    output: Path | None,
    raw: bool,
) -> None:
    """Export the loaded history as CSV."""
    from seasonality.explorer import SeasonalityExplorer
    from seasonality.export.csv_export import export_csv_file

    destination = output or Path(config.export.csv_filename)

    async def _load() -> list[Any]:
        async with _make_source(config) as source:
            explorer = SeasonalityExplorer(source, config)
            explorer.select_symbol(symbol or config.calendar.default_symbol)
            await explorer.load_series()
            if raw:
                return explorer.series
            return explorer.buckets(timeframe)

    rows = _run(_load())
    if not rows:
        raise click.ClickException("No data to export.")
    export_csv_file(rows, destination, precision=config.export.float_precision)
    click.echo(f"Exported {len(rows)} rows to {destination}")


@cli.command()
@click.pass_obj
def config(cfg: AppConfig) -> None:
    """Show current configuration."""
    click.echo("=== Seasonality Explorer Configuration ===\n")

    click.echo(f"Log Level:    {cfg.log_level}")
    click.echo(f"Log Format:   {cfg.log_format}")
    click.echo("")

    click.echo("[Binance]")
    click.echo(f"  REST URL:        {cfg.binance.rest_url}")
    click.echo(f"  WS URL:          {cfg.binance.ws_url}")
    click.echo(f"  Depth Levels:    {cfg.binance.depth_levels}")
    click.echo(f"  Depth Speed:     {cfg.binance.depth_update_ms}ms")
    click.echo("")

    click.echo("[Calendar]")
    click.echo(f"  Symbols:         {', '.join(cfg.calendar.symbols)}")
    click.echo(f"  Default Symbol:  {cfg.calendar.default_symbol}")
    click.echo(f"  History:         {cfg.calendar.history_limit} x {cfg.calendar.history_interval}")
    click.echo(f"  Timeframe:       {cfg.calendar.default_timeframe}")
    click.echo(f"  Palette:         {cfg.calendar.palette}")
    click.echo("")

    click.echo("[Indicators]")
    click.echo(f"  SMA Fast/Slow:   {cfg.indicators.sma_fast}/{cfg.indicators.sma_slow}")
    click.echo(f"  RSI Period:      {cfg.indicators.rsi_period}")
