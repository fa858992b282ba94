"""CSV export package."""

from ledgerlight.services.export.csv_export import (
    FULL_WIDTH_COMMA,
    CsvExporter,
    ExportError,
    build_rows,
    export_filename,
    render_csv,
)

__all__ = [
    "FULL_WIDTH_COMMA",
    "CsvExporter",
    "ExportError",
    "build_rows",
    "export_filename",
    "render_csv",
]
