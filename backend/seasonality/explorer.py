"""SeasonalityExplorer — wires a MarketDataSource to the engines and views.

Owns the current selection (symbol, timeframe), the loaded daily series, the
indicator snapshot and the order-book feed.

Every symbol selection bumps a generation counter. Fetches remember the
generation they started under; a response that arrives after the selection
moved on is logged and dropped instead of overwriting newer data.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import date
from typing import Self

from seasonality.config import AppConfig
from seasonality.engine.aggregation import (
    AggregatedBucket,
    coerce_timeframe,
    group_by_period,
)
from seasonality.engine.indicators import IndicatorCalculator, IndicatorSnapshot
from seasonality.engine.order_book import OrderBookFeed
from seasonality.market.data_source import MarketDataSource
from seasonality.market.types import Candle, OrderBookSnapshot, Timeframe
from seasonality.utils.logging import get_logger, new_correlation_id
from seasonality.utils.time import utc_today
from seasonality.views.calendar import (
    CalendarCell,
    DateRangeSelection,
    Palette,
    VolatilityThresholds,
    build_calendar,
)
from seasonality.views.detail import DetailPanel, build_detail

log = get_logger(__name__)


class SeasonalityExplorer:
    """Stateful front for one user's calendar session."""

    def __init__(
        self,
        source: MarketDataSource,
        config: AppConfig | None = None,
        on_book_update: Callable[[OrderBookSnapshot], None] | None = None,
    ) -> None:
        self._config = config or AppConfig()
        cal = self._config.calendar
        ind = self._config.indicators

        self._source = source
        self._calculator = IndicatorCalculator(
            sma_fast_period=ind.sma_fast,
            sma_slow_period=ind.sma_slow,
            rsi_period=ind.rsi_period,
        )
        self._thresholds = VolatilityThresholds(
            high=cal.high_volatility_pct,
            medium=cal.medium_volatility_pct,
        )
        self.feed = OrderBookFeed(source, on_snapshot=on_book_update)

        self._symbol = cal.default_symbol
        self._timeframe = Timeframe(cal.default_timeframe)
        self._generation = 0
        self._series: list[Candle] = []
        self._indicators: IndicatorSnapshot | None = None
        self._watching_book = False

    # --- Selection ---

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def timeframe(self) -> Timeframe:
        return self._timeframe

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def series(self) -> list[Candle]:
        return list(self._series)

    @property
    def indicators(self) -> IndicatorSnapshot | None:
        return self._indicators

    def select_symbol(self, symbol: str) -> int:
        """Make ``symbol`` current and invalidate in-flight fetches."""
        self._symbol = symbol.upper()
        self._generation += 1
        self._series = []
        self._indicators = None
        log.info(
            "symbol_selected",
            symbol=self._symbol,
            generation=self._generation,
        )
        return self._generation

    def select_timeframe(self, timeframe: Timeframe | str) -> Timeframe:
        self._timeframe = coerce_timeframe(timeframe)
        return self._timeframe

    def _is_current(self, generation: int, symbol: str, what: str) -> bool:
        if generation == self._generation:
            return True
        log.info(
            "stale_response_discarded",
            what=what,
            symbol=symbol,
            generation=generation,
            current_generation=self._generation,
            current_symbol=self._symbol,
        )
        return False

    # --- Loading ---

    async def load_series(self) -> list[Candle] | None:
        """Fetch the calendar history for the current symbol.

        Returns:
            The candles, or None if the selection changed while fetching.
        """
        generation, symbol = self._generation, self._symbol
        cal = self._config.calendar
        candles = await self._source.fetch_series(
            symbol,
            cal.history_interval,
            cal.history_limit,
        )
        if not self._is_current(generation, symbol, "series"):
            return None
        self._series = candles
        log.info("series_loaded", symbol=symbol, candle_count=len(candles))
        return candles

    async def load_indicators(self) -> IndicatorSnapshot | None:
        """Fetch indicator history and compute the snapshot.

        Returns:
            The snapshot, or None if the selection changed while fetching.
        """
        generation, symbol = self._generation, self._symbol
        ind = self._config.indicators
        candles = await self._source.fetch_series(
            symbol,
            ind.history_interval,
            ind.history_limit,
        )
        if not self._is_current(generation, symbol, "indicators"):
            return None
        self._indicators = self._calculator.calculate_from_candles(candles)
        log.info(
            "indicators_loaded",
            symbol=symbol,
            sample_count=self._indicators.sample_count,
            complete=self._indicators.is_complete,
        )
        return self._indicators

    async def change_symbol(self, symbol: str) -> None:
        """Select a symbol and reload everything tied to it.

        A live order-book feed follows the new symbol.
        """
        self.select_symbol(symbol)
        new_correlation_id()
        await asyncio.gather(self.load_series(), self.load_indicators())
        if self._watching_book:
            await self.feed.switch(self._symbol)

    async def watch_order_book(self) -> bool:
        """Start (or restart) the order-book stream for the current symbol."""
        self._watching_book = True
        return await self.feed.switch(self._symbol)

    # --- Derived views ---

    def buckets(self, timeframe: Timeframe | str | None = None) -> list[AggregatedBucket]:
        tf = self._timeframe if timeframe is None else coerce_timeframe(timeframe)
        return group_by_period(self._series, tf)

    def find_bucket(
        self,
        d: date,
        timeframe: Timeframe | str | None = None,
    ) -> AggregatedBucket | None:
        """Bucket whose period contains ``d``, if any data covers it."""
        for bucket in self.buckets(timeframe):
            if bucket.contains(d):
                return bucket
        return None

    def calendar(
        self,
        month: date,
        *,
        selection: DateRangeSelection | None = None,
        palette: Palette | str | None = None,
        today: date | None = None,
    ) -> list[CalendarCell]:
        cal = self._config.calendar
        return build_calendar(
            self.buckets(),
            month,
            self._timeframe,
            selection=selection,
            palette=palette or cal.palette,
            thresholds=self._thresholds,
            alert_threshold=cal.alert_threshold,
            today=today or utc_today(),
        )

    def detail(self, bucket: AggregatedBucket) -> DetailPanel:
        return build_detail(
            self._symbol,
            bucket,
            indicators=self._indicators,
            order_book=self.feed.cache if self.feed.symbol == self._symbol else None,
        )

    # --- Lifecycle ---

    async def close(self) -> None:
        self._watching_book = False
        await self.feed.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.close()
