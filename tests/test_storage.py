"""
Tests for the ledger stores.

The Google Sheets store runs against an in-process fake spreadsheet.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from ledgerlight.config import GoogleSheetsSettings
from ledgerlight.models.ledger import Ledger, Record, RecordType, Tag
from ledgerlight.services.storage import (
    DuplicateError,
    GoogleSheetsLedgerStore,
    InMemoryLedgerStore,
    NotFoundError,
    StorageError,
)
from ledgerlight.services.storage.google_sheets import (
    RECORD_COLUMNS,
    record_to_row,
    row_to_record,
)


class FakeWorksheet:
    """Grid-limited worksheet; writes past row_count are refused like the real API."""

    def __init__(self, values=None, rows=1000, fail=False):
        self.values = values or []
        self.row_count = rows
        self.fail = fail

    def get_all_values(self):
        return [list(row) for row in self.values]

    def resize(self, rows=None, cols=None):
        if rows is not None:
            self.row_count = rows

    def update(self, range_name, values, value_input_option):
        if self.fail:
            raise RuntimeError("quota exceeded")
        if len(values) > self.row_count:
            raise RuntimeError("exceeds grid limits")
        self.values[:len(values)] = [list(row) for row in values]

    def batch_clear(self, ranges):
        for cell_range in ranges:
            first_row = int(cell_range.split(":")[0][1:])
            del self.values[first_row - 1:]


class FakeSheetsClient:
    def __init__(self, settings, fail=False, rows=1000):
        self.settings = settings
        self.sheets = {}
        self.fail = fail
        self.rows = rows

    def get_worksheet(self, title, columns):
        if title not in self.sheets:
            self.sheets[title] = FakeWorksheet([list(columns)], rows=self.rows, fail=self.fail)
        return self.sheets[title]

    def fail_writes(self):
        for sheet in self.sheets.values():
            sheet.fail = True


@pytest.fixture
def sheets_settings(tmp_path):
    credentials = tmp_path / "credentials.json"
    credentials.write_text("{}")
    return GoogleSheetsSettings(credentials_path=str(credentials), spreadsheet_id="sheet-1")


@pytest.fixture
def populated_store():
    store = InMemoryLedgerStore()
    ledger = Ledger(name="Daily", is_default=True)
    tag = Tag(name="Food")
    store.insert(ledger)
    store.insert(tag)
    store.insert(Record(amount=Decimal("12.5"), ledger_id=ledger.id, tag_id=tag.id))
    store.insert(Record(amount=Decimal("3"), ledger_id=ledger.id))
    return store, ledger, tag


class TestInMemoryLedgerStore:
    """Tests for the in-memory store."""

    def test_insert_and_get(self, populated_store):
        store, ledger, _ = populated_store
        assert store.get(Ledger, ledger.id) is ledger
        assert store.count(Record) == 2

    def test_duplicate_insert_is_rejected(self, populated_store):
        store, ledger, _ = populated_store
        with pytest.raises(DuplicateError):
            store.insert(ledger)

    def test_record_needs_existing_ledger(self):
        store = InMemoryLedgerStore()
        with pytest.raises(NotFoundError):
            store.insert(Record(amount=Decimal("1"), ledger_id=Ledger(name="Ghost").id))

    def test_deleting_ledger_removes_its_records(self, populated_store):
        store, ledger, _ = populated_store
        other = Ledger(name="Trip")
        store.insert(other)
        kept = Record(amount=Decimal("9"), ledger_id=other.id)
        store.insert(kept)

        removed = store.delete(ledger)

        assert removed == 2
        assert store.query(Record) == [kept]

    def test_deleting_tag_untags_records(self, populated_store):
        store, _, tag = populated_store
        untagged = store.delete(tag)
        assert untagged == 1
        assert all(record.tag_id is None for record in store.query(Record))
        assert store.count(Record) == 2

    def test_delete_missing_entity(self):
        with pytest.raises(NotFoundError):
            InMemoryLedgerStore().delete(Tag(name="Missing"))

    def test_query_predicate_and_sort(self, populated_store):
        store, _, _ = populated_store
        amounts = [r.amount for r in store.query(Record, sort_key=lambda r: r.amount)]
        assert amounts == [Decimal("3"), Decimal("12.5")]
        big = store.query(Record, lambda r: r.amount > 10)
        assert len(big) == 1

    def test_dirty_flag(self, populated_store):
        store, _, _ = populated_store
        assert store.has_unsaved_changes is True
        store.save()
        assert store.has_unsaved_changes is False
        store.mark_dirty()
        assert store.has_unsaved_changes is True

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            InMemoryLedgerStore().query(dict)


class TestRowConversion:
    """Tests for sheet row conversion."""

    def test_record_row_round_trip(self):
        record = Record(
            amount=Decimal("12.5"),
            type=RecordType.INCOME,
            note="salary, March",
            date=datetime(2024, 3, 1, 9, 0),
            ledger_id=Ledger(name="Daily").id,
        )
        row = record_to_row(record)

        assert len(row) == len(RECORD_COLUMNS)
        assert row[1] == "12.50"
        assert row[6] == ""
        assert row_to_record(row) == record


class TestGoogleSheetsLedgerStore:
    """Tests for the Google Sheets replica."""

    def test_save_then_load(self, sheets_settings, populated_store):
        cache, ledger, tag = populated_store
        client = FakeSheetsClient(sheets_settings)
        GoogleSheetsLedgerStore(client, cache).save()

        reloaded = GoogleSheetsLedgerStore(client)
        reloaded.load()

        assert [item.id for item in reloaded.query(Ledger)] == [ledger.id]
        assert reloaded.get(Tag, tag.id).name == "Food"
        assert reloaded.count(Record) == 2
        assert client.sheets["Records"].values[0] == RECORD_COLUMNS

    def test_load_skips_orphans_and_bad_rows(self, sheets_settings, populated_store):
        cache, ledger, _ = populated_store
        client = FakeSheetsClient(sheets_settings)
        GoogleSheetsLedgerStore(client, cache).save()

        orphan = Record(amount=Decimal("1"), ledger_id=Ledger(name="Gone").id)
        records_sheet = client.sheets["Records"]
        records_sheet.values.append(record_to_row(orphan))
        records_sheet.values.append(["not-a-uuid", "abc"])
        records_sheet.values.append([])

        store = GoogleSheetsLedgerStore(client)
        store.load()

        assert store.count(Record) == 2
        assert all(record.ledger_id == ledger.id for record in store.query(Record))

    def test_save_failure_raises_storage_error(self, sheets_settings, populated_store, monkeypatch):
        monkeypatch.setattr(GoogleSheetsLedgerStore._push.retry, "sleep", lambda seconds: None)
        cache, _, _ = populated_store
        store = GoogleSheetsLedgerStore(FakeSheetsClient(sheets_settings, fail=True), cache)

        with pytest.raises(StorageError):
            store.save()
        # The working set keeps the unsaved change
        assert cache.has_unsaved_changes is True
        assert store.count(Record) == 2

    def test_failed_save_keeps_previous_sheet_contents(self, sheets_settings, populated_store, monkeypatch):
        monkeypatch.setattr(GoogleSheetsLedgerStore._push.retry, "sleep", lambda seconds: None)
        cache, ledger, _ = populated_store
        client = FakeSheetsClient(sheets_settings)
        store = GoogleSheetsLedgerStore(client, cache)
        store.save()

        store.insert(Record(amount=Decimal("7"), ledger_id=ledger.id))
        client.fail_writes()
        with pytest.raises(StorageError):
            store.save()

        fresh = GoogleSheetsLedgerStore(client)
        fresh.load()
        assert [item.id for item in fresh.query(Ledger)] == [ledger.id]
        assert fresh.count(Tag) == 1
        assert fresh.count(Record) == 2

    def test_save_trims_deleted_rows(self, sheets_settings, populated_store):
        cache, _, _ = populated_store
        client = FakeSheetsClient(sheets_settings)
        store = GoogleSheetsLedgerStore(client, cache)
        store.save()

        store.delete(store.query(Record)[0])
        store.save()

        fresh = GoogleSheetsLedgerStore(client)
        fresh.load()
        assert fresh.count(Record) == 1
        assert len(client.sheets["Records"].values) == 2

    def test_save_grows_small_sheet(self, sheets_settings, populated_store):
        cache, _, _ = populated_store
        client = FakeSheetsClient(sheets_settings, rows=2)
        GoogleSheetsLedgerStore(client, cache).save()

        fresh = GoogleSheetsLedgerStore(client)
        fresh.load()
        assert fresh.count(Record) == 2
        assert client.sheets["Records"].row_count == 3

    def test_mutations_go_to_working_set(self, sheets_settings):
        store = GoogleSheetsLedgerStore(FakeSheetsClient(sheets_settings))
        ledger = Ledger(name="Daily")
        store.insert(ledger)
        store.insert(Record(amount=Decimal("5"), ledger_id=ledger.id))

        assert store.delete(ledger) == 1
        assert store.count(Record) == 0
