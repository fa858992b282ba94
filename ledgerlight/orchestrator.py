"""
Main Orchestrator for LedgerLight

This module ties together the store, the audit logger and the pure
aggregation engine, and defines the use-case flows behind each screen:
1. Record entry (keypad -> confirm -> insert -> save)
2. Ledger management and the home/analysis data
3. Tag management
4. CSV export

DESIGN DECISION: Save failures are NOT swallowed.
Every mutation is applied to the working set first, then saved.
If the save fails, the flow logs a SAVE_FAILED audit event and
returns persisted=False with a message the UI can show. The change
stays in the working set, so the next successful save persists it.
"""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import NamedTuple, Optional, Union
from uuid import UUID

import structlog

from ledgerlight.aggregation import (
    bucketed_trend,
    category_breakdown,
    date_range,
    month_summary,
    records_in_range,
)
from ledgerlight.audit import AuditLogger
from ledgerlight.calculator import InvalidAmountError
from ledgerlight.config import get_settings
from ledgerlight.models.audit import AuditEventBuilder
from ledgerlight.models.ledger import (
    INCOME_TAG_NAMES,
    SALARY_TAG_NAME,
    ChartSnapshot,
    Ledger,
    MonthSummary,
    Record,
    RecordType,
    Tag,
    TimeWindow,
)
from ledgerlight.services.export import CsvExporter
from ledgerlight.services.seeding import SeedReport, seed_default_data
from ledgerlight.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from ledgerlight.state import RecordForm
from ledgerlight.validation import EntityFormValidator, FormValidationError


logger = structlog.get_logger("ledgerlight.orchestrator")

SAVE_FAILED_MESSAGE = (
    "Your change is kept on this device but could not be saved. "
    "It will be saved again with your next change."
)


class LedgerOperationError(Exception):
    """The requested change is not allowed (e.g. deleting the default ledger)."""
    pass


class _StoreFlow:
    """Shared persistence handling for the flows."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _persist(self, entity_type: str, entity_id: Optional[UUID]) -> tuple[bool, str]:
        """
        Save the store.

        Returns:
            (persisted, message) - message is empty on success
        """
        try:
            self._store.save()
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(entity_type, entity_id, str(e))
            else:
                logger.error("save_failed", entity_type=entity_type, error=str(e))
            return False, SAVE_FAILED_MESSAGE
        return True, ""

    def _require(self, entity_type: type, entity_id: UUID):
        entity = self._store.get(entity_type, entity_id)
        if entity is None:
            raise NotFoundError(f"{entity_type.__name__} not found: {entity_id}")
        return entity


class RecordEntryFlow(_StoreFlow):
    """
    Orchestrates the add-record sheet.

    Flow:
    1. Keypad input builds the amount (RecordForm.calculator)
    2. Confirm -> amount must be > 0, otherwise nothing happens
    3. Insert the record into the ledger
    4. Save
    """

    def confirm(
        self,
        form: RecordForm,
        ledger_id: UUID,
    ) -> tuple[Optional[Record], bool, str]:
        """
        Create a record from the form.

        Returns:
            (record, persisted, message)

        An invalid amount blocks silently: (None, False, "").
        """
        try:
            amount = form.calculator.commit()
        except InvalidAmountError:
            self._audit(AuditEventBuilder.amount_rejected(form.calculator.current_amount))
            return None, False, ""

        self._require(Ledger, ledger_id)
        record = Record(
            amount=amount,
            type=form.record_type,
            note=form.note,
            date=form.entry_date,
            tag_id=form.tag_id,
            ledger_id=ledger_id,
        )
        self._store.insert(record)
        persisted, message = self._persist("record", record.id)

        self._audit(AuditEventBuilder.record_saved(
            record_id=record.id,
            record_type=record.type.value,
            amount=record.amount,
            ledger_id=ledger_id,
        ))
        form.reset()
        return record, persisted, message

    def delete_record(self, record_id: UUID) -> tuple[bool, str]:
        """Delete one record. Returns (persisted, message)."""
        record = self._require(Record, record_id)
        self._store.delete(record)
        persisted, message = self._persist("record", record_id)
        self._audit(AuditEventBuilder.record_deleted(record_id))
        return persisted, message


class LedgerFlow(_StoreFlow):
    """
    Ledger management plus the data behind the home and analysis screens.

    INVARIANT: after any call here, at most one ledger is the default.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[EntityFormValidator] = None,
        week_start: int = 0,
    ):
        super().__init__(store, audit_logger)
        self._validator = validator or EntityFormValidator(store)
        self._week_start = week_start

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_ledgers(self) -> list[Ledger]:
        return self._store.query(Ledger, sort_key=lambda ledger: ledger.created_at)

    def current_ledger(self) -> Optional[Ledger]:
        """The default ledger, else the first one, else None."""
        ledgers = self.list_ledgers()
        for ledger in ledgers:
            if ledger.is_default:
                return ledger
        return ledgers[0] if ledgers else None

    def ledger_records(self, ledger_id: UUID) -> list[Record]:
        return self._store.query(Record, lambda record: record.ledger_id == ledger_id)

    def month_summary(self, ledger_id: UUID, reference_date: Union[date, datetime]) -> MonthSummary:
        return month_summary(self.ledger_records(ledger_id), reference_date)

    def chart_snapshot(
        self,
        ledger_id: UUID,
        window: TimeWindow,
        reference_date: Union[date, datetime],
    ) -> ChartSnapshot:
        """
        Donut and bar data for one window.

        The donut only counts expenses; the trend carries both
        expense and income per bucket.
        """
        window = TimeWindow(window)
        span = date_range(window, reference_date, self._week_start)
        in_range = records_in_range(self.ledger_records(ledger_id), span)
        expenses = [record for record in in_range if record.type == RecordType.EXPENSE]

        return ChartSnapshot(
            window=window,
            date_range=span,
            total_expense=sum((record.amount for record in expenses), Decimal("0")),
            categories=category_breakdown(expenses, self._store.query(Tag)),
            trend=bucketed_trend(in_range, window, self._week_start),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_ledger(
        self,
        name: str,
        color_hex: str = "#007AFF",
        icon: str = "book.fill",
    ) -> tuple[Ledger, bool, str]:
        """
        Create a non-default ledger.

        Raises:
            FormValidationError: If the form has errors

        Returns:
            (ledger, persisted, message)
        """
        result = self._validator.validate_ledger_form(name, color_hex, icon)
        if not result.is_valid:
            raise FormValidationError(result)

        ledger = Ledger(name=name, color_hex=color_hex, icon=icon, is_default=False)
        self._store.insert(ledger)
        persisted, message = self._persist("ledger", ledger.id)
        self._audit(AuditEventBuilder.ledger_created(ledger.id, ledger.name))
        return ledger, persisted, message

    def edit_ledger(
        self,
        ledger_id: UUID,
        name: Optional[str] = None,
        color_hex: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> tuple[Ledger, bool, str]:
        """Edit a ledger in place. Omitted fields keep their value."""
        ledger = self._require(Ledger, ledger_id)
        new_name = ledger.name if name is None else name
        new_color = ledger.color_hex if color_hex is None else color_hex
        new_icon = ledger.icon if icon is None else icon

        result = self._validator.validate_ledger_form(new_name, new_color, new_icon, exclude_id=ledger_id)
        if not result.is_valid:
            raise FormValidationError(result)

        changes = {}
        for field, value in (("name", new_name), ("color_hex", new_color), ("icon", new_icon)):
            if getattr(ledger, field) != value:
                setattr(ledger, field, value)
                changes[field] = getattr(ledger, field)
        if not changes:
            return ledger, True, ""

        self._store.mark_dirty()
        persisted, message = self._persist("ledger", ledger_id)
        self._audit(AuditEventBuilder.ledger_updated(ledger_id, changes))
        return ledger, persisted, message

    def set_default_ledger(self, ledger_id: UUID) -> tuple[Ledger, bool, str]:
        """Make one ledger the default and clear the flag on all others."""
        target = self._require(Ledger, ledger_id)
        previous = self.current_ledger()
        previous_id = previous.id if previous and previous.is_default else None

        for ledger in self._store.query(Ledger):
            ledger.is_default = ledger.id == ledger_id
        self._store.mark_dirty()

        persisted, message = self._persist("ledger", ledger_id)
        self._audit(AuditEventBuilder.default_ledger_changed(ledger_id, previous_id))
        return target, persisted, message

    def delete_ledger(self, ledger_id: UUID) -> tuple[int, bool, str]:
        """
        Delete a ledger and all of its records.

        Raises:
            LedgerOperationError: If the ledger is the default one

        Returns:
            (records_removed, persisted, message)
        """
        ledger = self._require(Ledger, ledger_id)
        if ledger.is_default:
            raise LedgerOperationError("The default ledger cannot be deleted")

        removed = self._store.delete(ledger)
        persisted, message = self._persist("ledger", ledger_id)
        self._audit(AuditEventBuilder.ledger_deleted(ledger_id, ledger.name, removed))
        return removed, persisted, message


class TagFlow(_StoreFlow):
    """Tag management. Default (preset) tags can be edited but not deleted."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[EntityFormValidator] = None,
    ):
        super().__init__(store, audit_logger)
        self._validator = validator or EntityFormValidator(store)

    def list_tags(self) -> list[Tag]:
        return self._store.query(Tag, sort_key=lambda tag: tag.created_at)

    def tags_for_type(self, record_type: RecordType) -> list[Tag]:
        """Tags offered on the add-record sheet for the given type."""
        if RecordType(record_type) == RecordType.INCOME:
            return [tag for tag in self.list_tags() if tag.name in INCOME_TAG_NAMES]
        return [tag for tag in self.list_tags() if tag.name != SALARY_TAG_NAME]

    def create_tag(
        self,
        name: str,
        color_hex: str = "#8E8E93",
        icon: str = "tag.fill",
    ) -> tuple[Tag, bool, str]:
        result = self._validator.validate_tag_form(name, color_hex, icon)
        if not result.is_valid:
            raise FormValidationError(result)

        tag = Tag(name=name, color_hex=color_hex, icon=icon, is_default=False)
        self._store.insert(tag)
        persisted, message = self._persist("tag", tag.id)
        self._audit(AuditEventBuilder.tag_created(tag.id, tag.name))
        return tag, persisted, message

    def edit_tag(
        self,
        tag_id: UUID,
        name: Optional[str] = None,
        color_hex: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> tuple[Tag, bool, str]:
        tag = self._require(Tag, tag_id)
        new_name = tag.name if name is None else name
        new_color = tag.color_hex if color_hex is None else color_hex
        new_icon = tag.icon if icon is None else icon

        result = self._validator.validate_tag_form(new_name, new_color, new_icon, exclude_id=tag_id)
        if not result.is_valid:
            raise FormValidationError(result)

        changes = {}
        for field, value in (("name", new_name), ("color_hex", new_color), ("icon", new_icon)):
            if getattr(tag, field) != value:
                setattr(tag, field, value)
                changes[field] = getattr(tag, field)
        if not changes:
            return tag, True, ""

        self._store.mark_dirty()
        persisted, message = self._persist("tag", tag_id)
        self._audit(AuditEventBuilder.tag_updated(tag_id, changes))
        return tag, persisted, message

    def delete_tag(self, tag_id: UUID) -> tuple[int, bool, str]:
        """
        Delete a user tag. Its records stay, without a tag.

        Returns:
            (records_untagged, persisted, message)
        """
        tag = self._require(Tag, tag_id)
        if tag.is_default:
            raise LedgerOperationError("Preset tags cannot be deleted")

        untagged = self._store.delete(tag)
        persisted, message = self._persist("tag", tag_id)
        self._audit(AuditEventBuilder.tag_deleted(tag_id, tag.name, untagged))
        return untagged, persisted, message


class ExportFlow:
    """Exports every record of every ledger to CSV."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        exporter: CsvExporter,
        export_directory: Optional[Path] = None,
    ):
        self._store = store
        self._exporter = exporter
        self._export_directory = export_directory

    def export_csv(self, directory: Optional[Path] = None) -> Path:
        """
        Write the CSV file for sharing.

        Raises:
            ExportError: If the file cannot be written
        """
        return self._exporter.export(
            records=self._store.query(Record),
            tags=self._store.query(Tag),
            ledgers=self._store.query(Ledger),
            directory=directory or self._export_directory,
        )


class AppComponents(NamedTuple):
    store: LedgerStoreInterface
    audit_logger: AuditLogger
    record_flow: RecordEntryFlow
    ledger_flow: LedgerFlow
    tag_flow: TagFlow
    export_flow: ExportFlow
    seed_report: SeedReport
    cloud_sync: bool


def create_app_components(use_cloud_sync: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_cloud_sync: Whether to replicate to Google Sheets.
                        Falls back to an in-memory store when the
                        sheet is not configured or unreachable.
    """
    settings = get_settings().app
    audit_logger = AuditLogger()

    store: LedgerStoreInterface = InMemoryLedgerStore()
    cloud_sync = False
    if use_cloud_sync:
        try:
            sheets_store = GoogleSheetsLedgerStore(GoogleSheetsClient())
            sheets_store.load()
            store = sheets_store
            cloud_sync = True
        except (StorageError, ValueError) as e:
            # Cloud sync not configured - continue with local data only
            audit_logger.log_external_service_error("google_sheets", str(e))

    seed_report = seed_default_data(store, audit_logger, settings.default_ledger_name)
    validator = EntityFormValidator(store)

    return AppComponents(
        store=store,
        audit_logger=audit_logger,
        record_flow=RecordEntryFlow(store, audit_logger),
        ledger_flow=LedgerFlow(store, audit_logger, validator, settings.week_start),
        tag_flow=TagFlow(store, audit_logger, validator),
        export_flow=ExportFlow(
            store,
            CsvExporter(settings.export_locale, audit_logger),
            settings.export_path,
        ),
        seed_report=seed_report,
        cloud_sync=cloud_sync,
    )
