"""
Default-Data Seeding

Runs once at startup. Creates the default ledger when there are no
ledgers and the preset tags when there are no tags. Emptiness is
checked per entity type, so running it again is a no-op.
"""

from typing import Optional

from pydantic import BaseModel

from ledgerlight.audit import AuditLogger
from ledgerlight.models.audit import AuditEventBuilder
from ledgerlight.models.ledger import DEFAULT_LEDGER, DEFAULT_TAGS, Ledger, Tag
from ledgerlight.services.storage.interface import LedgerStoreInterface, StorageError


class SeedReport(BaseModel):
    """What seeding created, and whether it reached storage."""

    ledger_created: bool = False
    tags_created: int = 0
    persisted: bool = True
    error_message: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.ledger_created or self.tags_created > 0


def seed_default_data(
    store: LedgerStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    default_ledger_name: str = "Daily",
) -> SeedReport:
    """Create the default ledger and preset tags if they are missing."""
    report = SeedReport()

    if store.count(Ledger) == 0:
        color_hex, icon = DEFAULT_LEDGER
        store.insert(Ledger(
            name=default_ledger_name,
            color_hex=color_hex,
            icon=icon,
            is_default=True,
        ))
        report.ledger_created = True

    if store.count(Tag) == 0:
        for name, icon, color_hex in DEFAULT_TAGS:
            store.insert(Tag(name=name, color_hex=color_hex, icon=icon, is_default=True))
            report.tags_created += 1

    if not report.changed:
        return report

    try:
        store.save()
    except StorageError as e:
        report.persisted = False
        report.error_message = str(e)
        if audit_logger:
            audit_logger.log_save_failed("seed", None, str(e))
        return report

    if audit_logger:
        audit_logger.log(AuditEventBuilder.defaults_seeded(
            ledger_created=report.ledger_created,
            tags_created=report.tags_created,
        ))
    return report
