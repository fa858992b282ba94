"""Shared fixtures."""

import pytest

from ledgerlight.audit import AuditLogger
from ledgerlight.services.storage import InMemoryLedgerStore, StorageError


class FailingSaveStore(InMemoryLedgerStore):
    """Working set that accepts changes but can never persist them."""

    def save(self) -> None:
        raise StorageError("Failed to save to Google Sheets: network unreachable")


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def failing_store():
    return FailingSaveStore()


@pytest.fixture
def audit_logger():
    return AuditLogger()
