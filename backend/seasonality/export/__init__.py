"""Data export helpers."""

from seasonality.export.csv_export import (
    CSV_COLUMNS,
    export_csv,
    export_csv_file,
    write_csv,
)

__all__ = ["CSV_COLUMNS", "export_csv", "export_csv_file", "write_csv"]
