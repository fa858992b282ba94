"""Services package."""

from ledgerlight.services.export import CsvExporter, ExportError
from ledgerlight.services.seeding import SeedReport, seed_default_data
from ledgerlight.services.storage import (
    ConnectionError,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Export
    "CsvExporter",
    "ExportError",
    # Seeding
    "SeedReport",
    "seed_default_data",
    # Storage services
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageError",
]
