"""
Storage Services Package

Provides the abstract store interface, the in-memory working set,
and the Google Sheets cloud-sync replica.
"""

from ledgerlight.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from ledgerlight.services.storage.memory import InMemoryLedgerStore
from ledgerlight.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interface
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStore",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
