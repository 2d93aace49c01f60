"""CSV ingestion of reference data and offers."""

from mealdeal.ingest.csv_import import (
    TABLES,
    CSVImportError,
    ImportResult,
    export_table,
    import_csv,
    validate_csv,
)

__all__ = [
    "TABLES",
    "CSVImportError",
    "ImportResult",
    "export_table",
    "import_csv",
    "validate_csv",
]
