"""Calendar view model: month filtering, cell styling and range selection.

Everything here is presentation logic over AggregatedBucket values. It holds
no state of its own; DateRangeSelection is an immutable value that returns a
new selection on every click.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from seasonality.engine.aggregation import AggregatedBucket, coerce_timeframe
from seasonality.market.types import Timeframe
from seasonality.market.utils import is_missing
from seasonality.utils.time import add_months, is_same_month, start_of_month

# Change magnitude (percent) below which a cell shows the flat marker
FLAT_CHANGE_PCT = 0.01


class Palette(str, Enum):
    """Cell color scheme."""

    STANDARD = "standard"
    COLORBLIND = "colorblind"
    HIGH_CONTRAST = "high_contrast"


# (high, medium, low) volatility backgrounds per palette
_PALETTE_COLORS: dict[Palette, tuple[str, str, str]] = {
    Palette.STANDARD: ("#e53935", "#fdd835", "#66bb6a"),
    Palette.COLORBLIND: ("#000", "#777", "#ccc"),
    Palette.HIGH_CONTRAST: ("#000", "#555", "#fff"),
}

# Light backgrounds that need dark text
_DARK_TEXT_BACKGROUNDS = frozenset({"#fdd835", "#ffeb3b", "#fff", "#ccc", "#66bb6a"})


@dataclass(frozen=True)
class VolatilityThresholds:
    """Volatility percentages separating high/medium/low cells."""

    high: float = 50.0
    medium: float = 20.0


def cell_color(
    volatility: float,
    palette: Palette | str = Palette.STANDARD,
    thresholds: VolatilityThresholds | None = None,
) -> str:
    """Background color for a volatility value. NaN renders as low."""
    limits = thresholds or VolatilityThresholds()
    high, medium, low = _PALETTE_COLORS[Palette(palette)]
    if volatility > limits.high:
        return high
    if volatility > limits.medium:
        return medium
    return low


def text_color(background: str) -> str:
    return "#000" if background in _DARK_TEXT_BACKGROUNDS else "#fff"


def change_marker(change: float) -> str:
    """Up/down/flat arrow for a percent change."""
    if change > FLAT_CHANGE_PCT:
        return "▲"
    if change < -FLAT_CHANGE_PCT:
        return "▼"
    return "•"


def format_percent(value: float | None) -> str:
    return "N/A" if is_missing(value) else f"{value:.2f}%"


def format_price(value: float | None, digits: int = 2) -> str:
    return "N/A" if is_missing(value) else f"{value:.{digits}f}"


def format_volume(value: float) -> str:
    """Whole-unit volume with thousands separators."""
    if math.isnan(value):
        return "N/A"
    return f"{round(value):,}"


def cell_label(bucket: AggregatedBucket, timeframe: Timeframe | str) -> str:
    """Short heading for a calendar cell."""
    tf = coerce_timeframe(timeframe)
    day = bucket.timestamp
    if tf is Timeframe.WEEKLY:
        return f"Week of {day:%b} {day.day}"
    if tf is Timeframe.MONTHLY:
        return f"{day:%b %Y}"
    return f"{day:%b} {day.day}"


def is_alert(bucket: AggregatedBucket, threshold: float) -> bool:
    """True when the bucket's volatility exceeds the alert threshold."""
    return bucket.volatility > threshold


def filter_month(
    buckets: Iterable[AggregatedBucket],
    month: date,
) -> list[AggregatedBucket]:
    """Buckets whose anchor time falls in the given month, order preserved."""
    return [b for b in buckets if is_same_month(b.timestamp.date(), month)]


def shift_month(month: date, step: int) -> date:
    """First day of the month ``step`` months away (negative goes back)."""
    return add_months(start_of_month(month), step)


@dataclass(frozen=True)
class DateRangeSelection:
    """Two-click range selection over calendar cells.

    The first click starts a range; the second click closes it, swapping
    ends if needed; a third click starts over.
    """

    start: AggregatedBucket | None = None
    end: AggregatedBucket | None = None

    def select(self, bucket: AggregatedBucket) -> DateRangeSelection:
        if self.start is None or self.end is not None:
            return DateRangeSelection(start=bucket)
        if bucket.time < self.start.time:
            return DateRangeSelection(start=bucket, end=self.start)
        return DateRangeSelection(start=self.start, end=bucket)

    def contains(self, bucket: AggregatedBucket) -> bool:
        if self.start is None:
            return False
        if bucket.time < self.start.time:
            return False
        return self.end is None or bucket.time <= self.end.time

    def selected(
        self,
        buckets: Iterable[AggregatedBucket],
    ) -> list[AggregatedBucket]:
        return [b for b in buckets if self.contains(b)]


@dataclass(frozen=True)
class CalendarCell:
    """Everything needed to draw one calendar cell."""

    bucket: AggregatedBucket
    label: str
    background: str
    text_color: str
    marker: str
    in_range: bool
    is_today: bool
    alert: bool

    @property
    def aria_label(self) -> str:
        b = self.bucket
        return (
            f"Date: {b.timestamp:%b} {b.timestamp.day}, "
            f"Volatility: {format_percent(b.volatility)}, "
            f"Volume: {format_volume(b.volume)}, "
            f"Change: {format_percent(b.change)}"
        )


def build_calendar(
    buckets: Iterable[AggregatedBucket],
    month: date,
    timeframe: Timeframe | str,
    *,
    selection: DateRangeSelection | None = None,
    palette: Palette | str = Palette.STANDARD,
    thresholds: VolatilityThresholds | None = None,
    alert_threshold: float = math.inf,
    today: date | None = None,
) -> list[CalendarCell]:
    """Build the cells for one month of already-aggregated buckets."""
    selection = selection or DateRangeSelection()
    cells: list[CalendarCell] = []
    for bucket in filter_month(buckets, month):
        background = cell_color(bucket.volatility, palette, thresholds)
        cells.append(
            CalendarCell(
                bucket=bucket,
                label=cell_label(bucket, timeframe),
                background=background,
                text_color=text_color(background),
                marker=change_marker(bucket.change),
                in_range=selection.contains(bucket),
                is_today=today is not None and bucket.contains(today),
                alert=is_alert(bucket, alert_threshold),
            )
        )
    return cells
