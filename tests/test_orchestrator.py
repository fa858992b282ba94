"""
Integration tests for the use-case flows (in-memory store, no cloud sync).
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from ledgerlight.models.audit import AuditEventType
from ledgerlight.models.ledger import Ledger, Record, RecordType, Tag, TimeWindow
from ledgerlight.orchestrator import (
    SAVE_FAILED_MESSAGE,
    ExportFlow,
    LedgerFlow,
    LedgerOperationError,
    RecordEntryFlow,
    TagFlow,
    create_app_components,
)
from ledgerlight.services.export import CsvExporter
from ledgerlight.services.seeding import seed_default_data
from ledgerlight.services.storage import NotFoundError
from ledgerlight.state import RecordForm
from ledgerlight.validation import FormValidationError


def fill_form(form: RecordForm, keys: str, **fields) -> RecordForm:
    for key in keys:
        form.calculator.press(key)
    if "record_type" in fields:
        form.set_record_type(fields["record_type"])
    if "tag_id" in fields:
        form.select_tag(fields["tag_id"])
    if "entry_date" in fields:
        form.set_entry_date(fields["entry_date"])
    return form


@pytest.fixture
def seeded(store, audit_logger):
    seed_default_data(store, audit_logger)
    ledger = store.query(Ledger)[0]
    return store, ledger


class TestRecordEntryFlow:
    """Tests for confirming the add-record sheet."""

    def test_confirm_saves_record(self, seeded, audit_logger):
        store, ledger = seeded
        flow = RecordEntryFlow(store, audit_logger)
        tag = store.query(Tag)[0]
        form = fill_form(RecordForm(), "12.5", tag_id=tag.id, entry_date=datetime(2024, 3, 6, 9, 0))
        form.set_note("lunch")

        record, persisted, message = flow.confirm(form, ledger.id)

        assert persisted is True
        assert message == ""
        assert record.amount == Decimal("12.5")
        assert record.tag_id == tag.id
        assert record.note == "lunch"
        assert store.get(Record, record.id) is record
        assert store.has_unsaved_changes is False
        # The form is cleared for the next entry
        assert form.calculator.display == ""
        assert form.tag_id is None

    def test_long_note_is_kept(self, seeded):
        store, ledger = seeded
        form = fill_form(RecordForm(), "12")
        form.set_note("souvenirs, " * 50)

        record, persisted, _ = RecordEntryFlow(store).confirm(form, ledger.id)

        assert persisted is True
        assert len(record.note) > 500
        assert store.get(Record, record.id).note.startswith("souvenirs,")

    def test_zero_amount_is_ignored(self, seeded, audit_logger):
        store, ledger = seeded
        flow = RecordEntryFlow(store, audit_logger)
        form = fill_form(RecordForm(), "0.00")

        record, persisted, message = flow.confirm(form, ledger.id)

        assert record is None
        assert persisted is False
        assert message == ""
        assert store.count(Record) == 0
        assert form.calculator.current_amount == "0.00"
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.AMOUNT_REJECTED

    def test_unknown_ledger(self, seeded):
        store, _ = seeded
        with pytest.raises(NotFoundError):
            RecordEntryFlow(store).confirm(fill_form(RecordForm(), "5"), Ledger(name="Ghost").id)

    def test_save_failure_is_surfaced(self, failing_store, audit_logger):
        seed_default_data(failing_store)
        ledger = failing_store.query(Ledger)[0]
        flow = RecordEntryFlow(failing_store, audit_logger)

        record, persisted, message = flow.confirm(fill_form(RecordForm(), "8"), ledger.id)

        assert record is not None
        assert persisted is False
        assert message == SAVE_FAILED_MESSAGE
        # Kept in the working set for the next save
        assert failing_store.count(Record) == 1
        event_types = [event.event_type for event in audit_logger.recent_events(2)]
        assert AuditEventType.SAVE_FAILED in event_types

    def test_delete_record(self, seeded):
        store, ledger = seeded
        flow = RecordEntryFlow(store)
        record, _, _ = flow.confirm(fill_form(RecordForm(), "3"), ledger.id)

        persisted, _ = flow.delete_record(record.id)

        assert persisted is True
        assert store.count(Record) == 0


class TestLedgerFlow:
    """Tests for ledger management and screen data."""

    def test_current_ledger_is_default(self, seeded):
        store, ledger = seeded
        flow = LedgerFlow(store)
        flow.create_ledger("Trip")
        assert flow.current_ledger() == ledger

    def test_current_ledger_falls_back_to_first(self, store):
        flow = LedgerFlow(store)
        assert flow.current_ledger() is None
        trip, _, _ = flow.create_ledger("Trip")
        assert flow.current_ledger() == trip

    def test_create_ledger_rejects_invalid_form(self, seeded):
        store, _ = seeded
        with pytest.raises(FormValidationError):
            LedgerFlow(store).create_ledger("", "#007AFF", "book.fill")
        assert store.count(Ledger) == 1

    def test_only_one_default(self, seeded, audit_logger):
        store, daily = seeded
        flow = LedgerFlow(store, audit_logger)
        trip, _, _ = flow.create_ledger("Trip")

        flow.set_default_ledger(trip.id)

        defaults = [ledger for ledger in store.query(Ledger) if ledger.is_default]
        assert defaults == [trip]
        event = audit_logger.recent_events(1)[0]
        assert event.event_type == AuditEventType.DEFAULT_LEDGER_CHANGED
        assert event.details["previous_default"] == str(daily.id)

    def test_edit_ledger(self, seeded):
        store, ledger = seeded
        flow = LedgerFlow(store)

        edited, persisted, _ = flow.edit_ledger(ledger.id, name="Household", color_hex="#FF9500")

        assert persisted is True
        assert edited.name == "Household"
        assert edited.icon == "book.fill"
        assert store.has_unsaved_changes is False

    def test_edit_ledger_rejects_bad_colour(self, seeded):
        store, ledger = seeded
        with pytest.raises(FormValidationError):
            LedgerFlow(store).edit_ledger(ledger.id, color_hex="orange")
        assert ledger.color_hex == "#007AFF"

    def test_delete_ledger_cascades(self, seeded):
        store, daily = seeded
        flow = LedgerFlow(store)
        trip, _, _ = flow.create_ledger("Trip")
        entry = RecordEntryFlow(store)
        entry.confirm(fill_form(RecordForm(), "10"), trip.id)
        entry.confirm(fill_form(RecordForm(), "20"), trip.id)
        kept, _, _ = entry.confirm(fill_form(RecordForm(), "30"), daily.id)

        removed, persisted, _ = flow.delete_ledger(trip.id)

        assert removed == 2
        assert persisted is True
        assert store.query(Record) == [kept]

    def test_default_ledger_cannot_be_deleted(self, seeded):
        store, daily = seeded
        with pytest.raises(LedgerOperationError):
            LedgerFlow(store).delete_ledger(daily.id)
        assert store.get(Ledger, daily.id) is daily

    def test_month_summary(self, seeded):
        store, ledger = seeded
        entry = RecordEntryFlow(store)
        entry.confirm(fill_form(RecordForm(), "40", entry_date=datetime(2024, 2, 29, 10)), ledger.id)
        entry.confirm(
            fill_form(RecordForm(), "100", record_type=RecordType.INCOME, entry_date=datetime(2024, 2, 3, 10)),
            ledger.id,
        )
        entry.confirm(fill_form(RecordForm(), "7", entry_date=datetime(2024, 3, 1, 10)), ledger.id)

        summary = LedgerFlow(store).month_summary(ledger.id, date(2024, 2, 10))

        assert summary.expense == Decimal("40")
        assert summary.income == Decimal("100")
        assert [group.day for group in summary.days] == [date(2024, 2, 29), date(2024, 2, 3)]

    def test_chart_snapshot(self, seeded):
        store, ledger = seeded
        tags = store.query(Tag)
        entry = RecordEntryFlow(store)
        wednesday = datetime(2024, 3, 6, 12)
        entry.confirm(fill_form(RecordForm(), "30", tag_id=tags[0].id, entry_date=wednesday), ledger.id)
        entry.confirm(fill_form(RecordForm(), "10", tag_id=tags[1].id, entry_date=wednesday), ledger.id)
        entry.confirm(fill_form(RecordForm(), "5", entry_date=datetime(2024, 3, 4, 9)), ledger.id)
        entry.confirm(
            fill_form(RecordForm(), "500", record_type=RecordType.INCOME, tag_id=tags[7].id, entry_date=wednesday),
            ledger.id,
        )
        # Outside the week
        entry.confirm(fill_form(RecordForm(), "99", entry_date=datetime(2024, 3, 11, 9)), ledger.id)

        snapshot = LedgerFlow(store).chart_snapshot(ledger.id, TimeWindow.WEEK, date(2024, 3, 6))

        assert snapshot.date_range.start == date(2024, 3, 4)
        assert snapshot.total_expense == Decimal("45")
        # Income and untagged records are not donut slices
        assert [share.tag_id for share in snapshot.categories] == [tags[0].id, tags[1].id]
        assert snapshot.categories[0].percentage == pytest.approx(75.0)
        assert [bucket.label for bucket in snapshot.trend] == ["Mon", "Wed"]
        assert snapshot.trend[1].income == Decimal("500")
        assert snapshot.trend[1].expense == Decimal("40")

    def test_chart_snapshot_empty(self, seeded):
        store, ledger = seeded
        snapshot = LedgerFlow(store).chart_snapshot(ledger.id, TimeWindow.YEAR, date(2024, 3, 6))
        assert snapshot.is_empty is True
        assert snapshot.categories == []


class TestTagFlow:
    """Tests for tag management."""

    def test_create_and_rename(self, seeded, audit_logger):
        store, _ = seeded
        flow = TagFlow(store, audit_logger)

        tag, persisted, _ = flow.create_tag("Coffee")
        renamed, _, _ = flow.edit_tag(tag.id, name="Cafe")

        assert persisted is True
        assert tag.is_default is False
        assert renamed.name == "Cafe"
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.TAG_UPDATED

    def test_delete_tag_keeps_records(self, seeded):
        store, ledger = seeded
        flow = TagFlow(store)
        tag, _, _ = flow.create_tag("Coffee")
        record, _, _ = RecordEntryFlow(store).confirm(fill_form(RecordForm(), "4", tag_id=tag.id), ledger.id)

        untagged, persisted, _ = flow.delete_tag(tag.id)

        assert untagged == 1
        assert persisted is True
        assert store.get(Record, record.id).tag_id is None

    def test_preset_tags_cannot_be_deleted(self, seeded):
        store, _ = seeded
        preset = store.query(Tag)[0]
        with pytest.raises(LedgerOperationError):
            TagFlow(store).delete_tag(preset.id)

    def test_list_tags_in_creation_order(self, seeded):
        store, _ = seeded
        names = [tag.name for tag in TagFlow(store).list_tags()]
        assert names[0] == "Dining"
        assert names[-1] == "Other"

    def test_tags_offered_by_record_type(self, seeded):
        store, _ = seeded
        flow = TagFlow(store)

        income = [tag.name for tag in flow.tags_for_type(RecordType.INCOME)]
        expense = [tag.name for tag in flow.tags_for_type(RecordType.EXPENSE)]

        assert income == ["Salary", "Other"]
        assert "Salary" not in expense
        assert expense[0] == "Dining"
        assert len(expense) == store.count(Tag) - 1


class TestExportFlow:
    """Tests for exporting the whole store."""

    def test_export_all_ledgers(self, seeded, tmp_path):
        store, daily = seeded
        trip, _, _ = LedgerFlow(store).create_ledger("Trip")
        entry = RecordEntryFlow(store)
        entry.confirm(fill_form(RecordForm(), "1"), daily.id)
        entry.confirm(fill_form(RecordForm(), "2"), trip.id)

        path = ExportFlow(store, CsvExporter(), tmp_path).export_csv()

        lines = path.read_text(encoding="utf-8-sig").splitlines()
        assert path.parent == tmp_path
        assert len(lines) == 3


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_local_only(self, monkeypatch, tmp_path):
        monkeypatch.setenv("EXPORT_DIRECTORY", str(tmp_path))
        components = create_app_components(use_cloud_sync=False)

        assert components.cloud_sync is False
        assert components.seed_report.ledger_created is True
        assert components.ledger_flow.current_ledger().is_default is True
        assert components.export_flow.export_csv().parent == tmp_path
