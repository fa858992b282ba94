"""
Screen State

DESIGN DECISION: UI state lives in plain objects owned by the screen
that uses them and changes only through explicit setters. Nothing
observes properties implicitly; the UI re-renders after calling a
setter.

AppState    - navigation-level state (month shown, chart window, ...)
RecordForm  - the add-record sheet (keypad, type, tag, note, date)
"""

from calendar import monthrange
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from ledgerlight.aggregation import date_range
from ledgerlight.calculator import AmountCalculator
from ledgerlight.models.ledger import DateRange, RecordType, TimeWindow


def _shift_month(day: date, months: int) -> date:
    """Move by whole months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return day.replace(year=year, month=month, day=min(day.day, monthrange(year, month)[1]))


class AppState:
    """Navigation-level state shared by the home and analysis screens."""

    def __init__(
        self,
        current_date: Optional[date] = None,
        week_start: int = 0,
        show_add_record: bool = True,
    ):
        # The app opens straight into the add-record sheet
        self.show_add_record = show_add_record
        self.selected_ledger_id: Optional[UUID] = None
        self.current_date = current_date or date.today()
        self.time_window = TimeWindow.MONTH
        self.week_start = week_start

    def present_add_record(self) -> None:
        self.show_add_record = True

    def dismiss_add_record(self) -> None:
        self.show_add_record = False

    def select_ledger(self, ledger_id: Optional[UUID]) -> None:
        self.selected_ledger_id = ledger_id

    def set_current_date(self, value: date) -> None:
        if isinstance(value, datetime):
            value = value.date()
        self.current_date = value

    def show_previous_month(self) -> None:
        self.current_date = _shift_month(self.current_date, -1)

    def show_next_month(self) -> None:
        self.current_date = _shift_month(self.current_date, 1)

    def set_time_window(self, window: TimeWindow) -> None:
        self.time_window = TimeWindow(window)

    def date_range(self) -> DateRange:
        return date_range(self.time_window, self.current_date, self.week_start)

    @property
    def month_label(self) -> str:
        return self.current_date.strftime("%B %Y")


class RecordForm:
    """State of the add-record sheet."""

    def __init__(self, entry_date: Optional[datetime] = None):
        self.calculator = AmountCalculator()
        self.record_type = RecordType.EXPENSE
        self.tag_id: Optional[UUID] = None
        self.note = ""
        self.entry_date = entry_date or datetime.now()

    def set_record_type(self, record_type: RecordType) -> None:
        self.record_type = RecordType(record_type)

    def select_tag(self, tag_id: Optional[UUID]) -> None:
        self.tag_id = tag_id

    def preselect_tag(self, offered: list[UUID]) -> None:
        """Fall back to the first offered tag when the current one is not on offer."""
        if self.tag_id not in offered:
            self.tag_id = offered[0] if offered else None

    def set_note(self, note: str) -> None:
        self.note = note

    def set_entry_date(self, value: datetime) -> None:
        if not isinstance(value, datetime):
            value = datetime.combine(value, datetime.now().time())
        self.entry_date = value

    @property
    def can_confirm(self) -> bool:
        return self.calculator.can_commit

    def reset(self, entry_date: Optional[datetime] = None) -> None:
        """Clear everything after a record is saved."""
        self.calculator.reset()
        self.record_type = RecordType.EXPENSE
        self.tag_id = None
        self.note = ""
        self.entry_date = entry_date or datetime.now()
