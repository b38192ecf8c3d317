"""CSV export package."""

from finance_tracker.export.csv_encoder import (
    CSV_COLUMNS,
    CSV_MIME_TYPE,
    build_export,
    export_filename,
    to_csv,
)

__all__ = [
    "CSV_COLUMNS",
    "CSV_MIME_TYPE",
    "build_export",
    "export_filename",
    "to_csv",
]
