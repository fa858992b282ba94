"""
Core Data Models for LedgerLight

These models define the schemas for everything the app stores and
everything the aggregation engine derives. They are designed to:
1. Enforce invariants at runtime (positive amounts, valid colours)
2. Re-validate in-place edits made by edit forms
3. Be serializable for storage and export

DESIGN DECISION: Records reference their Ledger and Tag by id
(ledger_id, tag_id) instead of holding object back-references.
The store resolves lookups, so there is no cyclic ownership and
rows serialize as flat values.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordType(str, Enum):
    """Direction of money for a record."""
    EXPENSE = "expense"
    INCOME = "income"

    @property
    def sign(self) -> str:
        return "-" if self is RecordType.EXPENSE else "+"


class TimeWindow(str, Enum):
    """Granularity used to scope charts and aggregations."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# =============================================================================
# ENTITIES
# =============================================================================

class Ledger(BaseModel):
    """
    A named container for records (a budget, an account, a trip).

    CRITICAL: At most one ledger has is_default=True.
    The ledger flow enforces this, not the store.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique ledger ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name"
    )
    color_hex: str = Field(
        default="#007AFF",
        pattern=HEX_COLOR_PATTERN,
        description="Display colour as #RRGGBB"
    )
    icon: str = Field(
        default="book.fill",
        min_length=1,
        max_length=50,
        description="Icon identifier"
    )
    is_default: bool = False
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the ledger was created"
    )


class Tag(BaseModel):
    """
    A user-defined category label.

    Records reference tags weakly: deleting a tag leaves its
    records in place with no tag.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=30)
    color_hex: str = Field(default="#8E8E93", pattern=HEX_COLOR_PATTERN)
    icon: str = Field(default="tag.fill", min_length=1, max_length=50)
    is_default: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Record(BaseModel):
    """
    A single income or expense entry.

    A record belongs to exactly one ledger for its lifetime;
    ledger_id is never reassigned.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    amount: Annotated[
        Decimal,
        Field(gt=0, decimal_places=2, description="Positive amount, currency-agnostic")
    ]
    type: RecordType = Field(
        default=RecordType.EXPENSE,
        description="Expense or income"
    )
    note: str = Field(
        default="",
        description="Free-text note"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="Entry date chosen by the user"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the record was created"
    )
    tag_id: Optional[UUID] = None
    ledger_id: UUID

    @property
    def entry_day(self):
        # "date" is shadowed by the field inside this class body
        return self.date.date()

    def formatted_amount(self, currency_symbol: str = "¥") -> str:
        """Signed amount for list rows, e.g. -¥12.50."""
        return f"{self.type.sign}{currency_symbol}{self.amount:.2f}"


# =============================================================================
# DERIVED / RESULT MODELS
# =============================================================================

class DateRange(BaseModel):
    """An inclusive range of calendar days."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        return self.start <= day <= self.end


class CategoryShare(BaseModel):
    """One slice of the category donut chart."""

    tag_id: UUID
    tag: Optional[Tag] = None
    amount: Decimal = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0)


class TrendBucket(BaseModel):
    """
    One bar of the trend chart.

    order is the day-of-month / month-of-year number, or the
    weekday position relative to the configured week start.
    """

    label: str
    order: int
    expense: Decimal = Decimal("0")
    income: Decimal = Decimal("0")


class DayGroup(BaseModel):
    """Records sharing one entry day (a section of the home list)."""

    day: date
    records: list[Record] = Field(default_factory=list)

    @property
    def weekday_name(self) -> str:
        return self.day.strftime("%A")


class MonthSummary(BaseModel):
    """Totals and records for one calendar month of one ledger."""

    month: date = Field(..., description="First day of the month")
    expense: Decimal = Decimal("0")
    income: Decimal = Decimal("0")
    records: list[Record] = Field(default_factory=list)
    days: list[DayGroup] = Field(default_factory=list)

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    @property
    def is_empty(self) -> bool:
        return not self.records


class ChartSnapshot(BaseModel):
    """Everything the analysis screen renders for one time window."""

    window: TimeWindow
    date_range: DateRange
    total_expense: Decimal = Decimal("0")
    categories: list[CategoryShare] = Field(default_factory=list)
    trend: list[TrendBucket] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.trend


# =============================================================================
# PRESETS
# =============================================================================

COLOR_PALETTE: list[tuple[str, str]] = [
    ("Sky", "#007AFF"),
    ("Mint", "#34C759"),
    ("Coral", "#FF6B6B"),
    ("Amber", "#FF9500"),
    ("Violet", "#AF52DE"),
    ("Pink", "#FF2D55"),
    ("Cyan", "#5AC8FA"),
    ("Gray", "#8E8E93"),
]

LEDGER_ICONS: list[str] = [
    "book.fill",
    "creditcard.fill",
    "cart.fill",
    "house.fill",
    "car.fill",
    "airplane",
    "gift.fill",
    "heart.fill",
]

# (name, icon, colour)
DEFAULT_TAGS: list[tuple[str, str, str]] = [
    ("Dining", "fork.knife", "#FF6B6B"),
    ("Transport", "car.fill", "#007AFF"),
    ("Shopping", "bag.fill", "#FF9500"),
    ("Entertainment", "gamecontroller.fill", "#AF52DE"),
    ("Housing", "house.fill", "#34C759"),
    ("Medical", "cross.case.fill", "#FF2D55"),
    ("Education", "book.fill", "#5AC8FA"),
    ("Salary", "briefcase.fill", "#34C759"),
    ("Other", "ellipsis.circle.fill", "#8E8E93"),
]

# Income entry offers only these tags; expense entry hides the salary tag
SALARY_TAG_NAME = "Salary"
INCOME_TAG_NAMES: tuple[str, ...] = (SALARY_TAG_NAME, "Other")

# (colour, icon) of the ledger created on first run
DEFAULT_LEDGER: tuple[str, str] = ("#007AFF", "book.fill")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a ledger or tag form."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating a form. Warnings never block."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
