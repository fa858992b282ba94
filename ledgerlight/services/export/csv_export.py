"""
CSV Export

One row per record, newest entry date first:
    date, time, type, tag, amount, note, ledger

- date is the entry date (yyyy-MM-dd), time is the creation time (HH:mm:ss)
- ASCII commas in notes become full-width commas so columns stay aligned
  when the file is opened by tools that split on commas naively
- the file carries a UTF-8 byte-order mark so spreadsheet tools
  pick the right encoding
"""

import csv
import io
import tempfile
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Optional

from ledgerlight.audit import AuditLogger
from ledgerlight.models.audit import AuditEventBuilder
from ledgerlight.models.ledger import Ledger, Record, RecordType, Tag

FULL_WIDTH_COMMA = "，"

LABELS: dict[str, dict] = {
    "en": {
        "header": ["date", "time", "type", "tag", "amount", "note", "ledger"],
        RecordType.EXPENSE: "expense",
        RecordType.INCOME: "income",
        "untagged": "Uncategorized",
        "unknown_ledger": "Unknown ledger",
    },
    "zh_CN": {
        "header": ["日期", "时间", "类型", "标签", "金额", "备注", "账本"],
        RecordType.EXPENSE: "支出",
        RecordType.INCOME: "收入",
        "untagged": "未分类",
        "unknown_ledger": "未知账本",
    },
}


class ExportError(Exception):
    """The CSV file could not be written."""
    pass


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"ledgerlight_{now.strftime('%Y%m%d_%H%M%S')}.csv"


def build_rows(
    records: Iterable[Record],
    tags: Iterable[Tag],
    ledgers: Iterable[Ledger],
    locale: str = "en",
) -> list[list[str]]:
    """Header plus one row per record, sorted by descending entry date."""
    labels = LABELS[locale]
    tag_names = {tag.id: tag.name for tag in tags}
    ledger_names = {ledger.id: ledger.name for ledger in ledgers}

    rows = [list(labels["header"])]
    for record in sorted(records, key=lambda r: r.date, reverse=True):
        tag_name = tag_names.get(record.tag_id) if record.tag_id else None
        rows.append([
            record.date.strftime("%Y-%m-%d"),
            record.created_at.strftime("%H:%M:%S"),
            labels[record.type],
            tag_name or labels["untagged"],
            f"{record.amount:.2f}",
            record.note.replace(",", FULL_WIDTH_COMMA),
            ledger_names.get(record.ledger_id, labels["unknown_ledger"]),
        ])
    return rows


def render_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


class CsvExporter:
    """Writes a CSV snapshot of the store to disk."""

    def __init__(self, locale: str = "en", audit_logger: Optional[AuditLogger] = None):
        if locale not in LABELS:
            raise ValueError(f"Unsupported export locale: {locale}")
        self._locale = locale
        self._audit_logger = audit_logger

    def export(
        self,
        records: Iterable[Record],
        tags: Iterable[Tag],
        ledgers: Iterable[Ledger],
        directory: Optional[Path] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Write the CSV file and return its path.

        Raises:
            ExportError: If the file cannot be written. The caller
            must abort the share action.
        """
        rows = build_rows(records, tags, ledgers, self._locale)
        target_dir = Path(directory) if directory else Path(tempfile.gettempdir())
        path = target_dir / export_filename(now)

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            # utf-8-sig writes the byte-order mark
            with path.open("w", encoding="utf-8-sig", newline="") as handle:
                handle.write(render_csv(rows))
        except OSError as e:
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.export_failed(str(path), str(e)))
            raise ExportError(f"Failed to write {path}: {e}") from e

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.export_completed(str(path), len(rows) - 1))
        return path
