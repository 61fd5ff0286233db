"""Chart series extraction for the metric line chart."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from seasonality.engine.aggregation import AggregatedBucket
from seasonality.market.types import Metric


@dataclass(frozen=True)
class ChartSeries:
    """One labelled line: x labels are ISO dates of the bucket anchors."""

    label: str
    labels: tuple[str, ...]
    values: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.values)


def metric_value(bucket: AggregatedBucket, metric: Metric | str) -> float:
    return float(getattr(bucket, Metric(metric).value))


def metric_series(
    buckets: Iterable[AggregatedBucket],
    metric: Metric | str,
) -> ChartSeries:
    m = Metric(metric)
    rows = list(buckets)
    return ChartSeries(
        label=m.value.capitalize(),
        labels=tuple(b.timestamp.date().isoformat() for b in rows),
        values=tuple(metric_value(b, m) for b in rows),
    )
