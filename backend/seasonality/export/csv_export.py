"""CSV export of candles or aggregated buckets.

Columns follow the bucket field order: time, open, close, high, low, volume,
change, volatility. ``time`` is the epoch-millisecond anchor. NaN sentinels
are written as empty fields so spreadsheets read them as blanks.
"""

from __future__ import annotations

import csv
import io
import math
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, TextIO

from seasonality.utils.logging import get_logger

log = get_logger(__name__)

CSV_COLUMNS: tuple[str, ...] = (
    "time",
    "open",
    "close",
    "high",
    "low",
    "volume",
    "change",
    "volatility",
)


class CsvRow(Protocol):
    """Anything carrying the exported fields (Candle, AggregatedBucket)."""

    time: int
    open: float
    close: float
    high: float
    low: float
    volume: float

    @property
    def change(self) -> float: ...

    @property
    def volatility(self) -> float: ...


def _format_value(value: float | int, precision: int | None) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return ""
    if precision is None:
        return repr(value)
    return f"{value:.{precision}f}"


def row_values(row: CsvRow, precision: int | None = None) -> list[str]:
    return [_format_value(getattr(row, column), precision) for column in CSV_COLUMNS]


def write_csv(
    rows: Iterable[CsvRow],
    stream: TextIO,
    precision: int | None = None,
) -> int:
    """Write header plus one line per row. Returns the data row count."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    count = 0
    for row in rows:
        writer.writerow(row_values(row, precision))
        count += 1
    return count


def export_csv(rows: Iterable[CsvRow], precision: int | None = None) -> str:
    """Render rows to a CSV string."""
    buffer = io.StringIO()
    write_csv(rows, buffer, precision)
    return buffer.getvalue()


def export_csv_file(
    rows: Iterable[CsvRow],
    path: str | Path,
    precision: int | None = None,
) -> Path:
    """Write rows to ``path`` (parent directories created). Returns the path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as f:
        count = write_csv(rows, f, precision)
    log.info("csv_exported", path=str(target), row_count=count)
    return target
