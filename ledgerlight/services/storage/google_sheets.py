"""
Google Sheets Cloud Sync

DESIGN DECISION: Cloud sync is a write-through replica.
The app works against an in-memory working set; save() rewrites
one worksheet per entity type and load() pulls them back. This
gives users a per-account copy they can open in Sheets.

TRADEOFFS:
- No conflict resolution: the last device to save wins
- save() rewrites whole sheets (fine for a personal ledger)
- Filtering happens in Python on the working set
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from ledgerlight.config import GoogleSheetsSettings, get_settings
from ledgerlight.models.ledger import Ledger, Record, RecordType, Tag
from ledgerlight.services.storage.interface import (
    ConnectionError,
    E,
    Entity,
    LedgerStoreInterface,
    StorageError,
)
from ledgerlight.services.storage.memory import InMemoryLedgerStore


logger = structlog.get_logger("ledgerlight.storage.google_sheets")

# Column mappings for the Ledgers and Tags sheets
LEDGER_COLUMNS = [
    "id",
    "name",
    "color_hex",
    "icon",
    "is_default",
    "created_at",
]
TAG_COLUMNS = LEDGER_COLUMNS

# Column mappings for the Records sheet
RECORD_COLUMNS = [
    "id",
    "amount",
    "type",
    "note",
    "date",
    "created_at",
    "tag_id",
    "ledger_id",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


# =============================================================================
# ROW CONVERSION
# =============================================================================

def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def ledger_to_row(ledger: Ledger) -> list:
    return [
        str(ledger.id),
        ledger.name,
        ledger.color_hex,
        ledger.icon,
        str(ledger.is_default),
        ledger.created_at.isoformat(),
    ]


def row_to_ledger(row: list) -> Ledger:
    return Ledger(
        id=UUID(_safe_get(row, 0)),
        name=_safe_get(row, 1),
        color_hex=_safe_get(row, 2, "#007AFF"),
        icon=_safe_get(row, 3, "book.fill"),
        is_default=_safe_get(row, 4).lower() == "true",
        created_at=datetime.fromisoformat(_safe_get(row, 5)),
    )


def tag_to_row(tag: Tag) -> list:
    return [
        str(tag.id),
        tag.name,
        tag.color_hex,
        tag.icon,
        str(tag.is_default),
        tag.created_at.isoformat(),
    ]


def row_to_tag(row: list) -> Tag:
    return Tag(
        id=UUID(_safe_get(row, 0)),
        name=_safe_get(row, 1),
        color_hex=_safe_get(row, 2, "#8E8E93"),
        icon=_safe_get(row, 3, "tag.fill"),
        is_default=_safe_get(row, 4).lower() == "true",
        created_at=datetime.fromisoformat(_safe_get(row, 5)),
    )


def record_to_row(record: Record) -> list:
    return [
        str(record.id),
        f"{record.amount:.2f}",
        record.type.value,
        record.note,
        record.date.isoformat(),
        record.created_at.isoformat(),
        str(record.tag_id) if record.tag_id else "",
        str(record.ledger_id),
    ]


def row_to_record(row: list) -> Record:
    tag_id = _safe_get(row, 6)
    return Record(
        id=UUID(_safe_get(row, 0)),
        amount=Decimal(_safe_get(row, 1)),
        type=RecordType(_safe_get(row, 2)),
        note=_safe_get(row, 3),
        date=datetime.fromisoformat(_safe_get(row, 4)),
        created_at=datetime.fromisoformat(_safe_get(row, 5)),
        tag_id=UUID(tag_id) if tag_id else None,
        ledger_id=UUID(_safe_get(row, 7)),
    )


def _parse_rows(rows: list[list], parse: Callable[[list], E], sheet: str) -> list[E]:
    """Parse data rows, skipping blank and malformed ones."""
    entities = []
    for row in rows:
        if not row or not row[0]:
            continue
        try:
            entities.append(parse(row))
        except (ValueError, ArithmeticError) as e:
            logger.warning("sheet_row_skipped", sheet=sheet, row_id=row[0], error=str(e))
    return entities


# =============================================================================
# STORE
# =============================================================================

class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets replica of the ledger store.

    Reads and mutations go to the in-memory working set.
    save() pushes the whole working set; load() replaces it.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        cache: Optional[InMemoryLedgerStore] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._cache = cache or InMemoryLedgerStore()

    def _sheet_names(self) -> tuple[str, str, str]:
        settings = self._client.settings
        return (
            settings.ledgers_sheet_name,
            settings.tags_sheet_name,
            settings.records_sheet_name,
        )

    def load(self) -> None:
        """
        Replace the working set with the spreadsheet contents.

        Raises:
            StorageError: If the spreadsheet cannot be read
        """
        ledgers_name, tags_name, records_name = self._sheet_names()
        try:
            ledger_rows = self._client.get_worksheet(ledgers_name, LEDGER_COLUMNS).get_all_values()[1:]
            tag_rows = self._client.get_worksheet(tags_name, TAG_COLUMNS).get_all_values()[1:]
            record_rows = self._client.get_worksheet(records_name, RECORD_COLUMNS).get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load from Google Sheets: {e}")

        ledgers = _parse_rows(ledger_rows, row_to_ledger, ledgers_name)
        tags = _parse_rows(tag_rows, row_to_tag, tags_name)
        ledger_ids = {ledger.id for ledger in ledgers}
        records = [
            record for record in _parse_rows(record_rows, row_to_record, records_name)
            if record.ledger_id in ledger_ids
        ]
        self._cache.replace_all(ledgers, tags, records)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _push(self) -> None:
        # Overwrite in place, then trim. A failed write leaves the old rows readable.
        ledgers_name, tags_name, records_name = self._sheet_names()
        tables = [
            (ledgers_name, LEDGER_COLUMNS, [ledger_to_row(e) for e in self._cache.query(Ledger)]),
            (tags_name, TAG_COLUMNS, [tag_to_row(e) for e in self._cache.query(Tag)]),
            (records_name, RECORD_COLUMNS, [record_to_row(e) for e in self._cache.query(Record)]),
        ]
        written = []
        for title, columns, rows in tables:
            sheet = self._client.get_worksheet(title, columns)
            values = [columns] + rows
            if sheet.row_count < len(values):
                sheet.resize(rows=len(values))
            sheet.update(range_name="A1", values=values, value_input_option="RAW")
            written.append((sheet, columns, len(values)))

        for sheet, columns, used in written:
            if sheet.row_count > used:
                last_column = chr(ord("A") + len(columns) - 1)
                sheet.batch_clear([f"A{used + 1}:{last_column}{sheet.row_count}"])

    def save(self) -> None:
        """Push the working set to Google Sheets."""
        try:
            self._push()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save to Google Sheets: {e}")
        self._cache.save()

    def insert(self, entity: Entity) -> None:
        self._cache.insert(entity)

    def delete(self, entity: Entity) -> int:
        return self._cache.delete(entity)

    def mark_dirty(self) -> None:
        self._cache.mark_dirty()

    def query(
        self,
        entity_type: type[E],
        predicate: Optional[Callable[[E], bool]] = None,
        sort_key: Optional[Callable[[E], Any]] = None,
        reverse: bool = False,
    ) -> list[E]:
        return self._cache.query(entity_type, predicate, sort_key, reverse)
