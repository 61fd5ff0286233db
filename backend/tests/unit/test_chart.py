"""Tests for chart series extraction."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from seasonality.engine.aggregation import AggregatedBucket, group_by_period
from seasonality.market.types import Metric, Timeframe
from seasonality.views.chart import metric_series, metric_value
from tests.factories import make_day_candle


def _buckets() -> list[AggregatedBucket]:
    candles = [
        make_day_candle(date(2026, 2, 1) + timedelta(days=i), volume=100.0 * (i + 1))
        for i in range(3)
    ]
    return group_by_period(candles, Timeframe.DAILY)


class TestMetricSeries:
    def test_volume_series(self) -> None:
        series = metric_series(_buckets(), Metric.VOLUME)
        assert series.label == "Volume"
        assert series.labels == ("2026-02-01", "2026-02-02", "2026-02-03")
        assert series.values == (100.0, 200.0, 300.0)
        assert len(series) == 3

    def test_metric_by_name(self) -> None:
        series = metric_series(_buckets(), "change")
        assert series.label == "Change"
        assert series.values == (5.0, 5.0, 5.0)

    def test_empty_buckets(self) -> None:
        series = metric_series([], Metric.VOLATILITY)
        assert len(series) == 0
        assert series.labels == ()

    def test_unknown_metric_raises(self) -> None:
        with pytest.raises(ValueError):
            metric_series(_buckets(), "rsi")

    def test_metric_value(self) -> None:
        bucket = _buckets()[0]
        assert metric_value(bucket, "volatility") == bucket.volatility
