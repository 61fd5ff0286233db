"""View models for the calendar, chart and detail panel."""

from seasonality.views.calendar import (
    CalendarCell,
    DateRangeSelection,
    Palette,
    VolatilityThresholds,
    build_calendar,
    filter_month,
    shift_month,
)
from seasonality.views.chart import ChartSeries, metric_series
from seasonality.views.detail import DetailPanel, build_detail, render_detail

__all__ = [
    "CalendarCell",
    "ChartSeries",
    "DateRangeSelection",
    "DetailPanel",
    "Palette",
    "VolatilityThresholds",
    "build_calendar",
    "build_detail",
    "filter_month",
    "metric_series",
    "render_detail",
    "shift_month",
]
