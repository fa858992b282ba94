"""
Data Models Package

This package contains all Pydantic models used in LedgerLight.
All data flowing through the system must conform to these schemas.
"""

from ledgerlight.models.ledger import (
    COLOR_PALETTE,
    DEFAULT_LEDGER,
    DEFAULT_TAGS,
    INCOME_TAG_NAMES,
    LEDGER_ICONS,
    SALARY_TAG_NAME,
    CategoryShare,
    ChartSnapshot,
    DateRange,
    DayGroup,
    Ledger,
    MonthSummary,
    Record,
    RecordType,
    Tag,
    TimeWindow,
    TrendBucket,
    ValidationIssue,
    ValidationResult,
)
from ledgerlight.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "Ledger",
    "Record",
    "RecordType",
    "Tag",
    "TimeWindow",
    # Derived models
    "CategoryShare",
    "ChartSnapshot",
    "DateRange",
    "DayGroup",
    "MonthSummary",
    "TrendBucket",
    "ValidationIssue",
    "ValidationResult",
    # Presets
    "COLOR_PALETTE",
    "DEFAULT_LEDGER",
    "DEFAULT_TAGS",
    "INCOME_TAG_NAMES",
    "LEDGER_ICONS",
    "SALARY_TAG_NAME",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
