"""
Audit Models for LedgerLight

Every state change of the ledger store is logged as an audit event.
This provides:
1. Traceability of what was created, edited and deleted
2. Debugging information when a save or export fails
3. A record of failures the UI chose to surface to the user

DESIGN DECISION: Audit events are append-only log lines.
They are emitted through structlog and never mutated afterwards.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Records
    RECORD_SAVED = "record_saved"
    RECORD_DELETED = "record_deleted"
    AMOUNT_REJECTED = "amount_rejected"

    # Ledgers
    LEDGER_CREATED = "ledger_created"
    LEDGER_UPDATED = "ledger_updated"
    LEDGER_DELETED = "ledger_deleted"
    DEFAULT_LEDGER_CHANGED = "default_ledger_changed"

    # Tags
    TAG_CREATED = "tag_created"
    TAG_UPDATED = "tag_updated"
    TAG_DELETED = "tag_deleted"

    # Startup
    DEFAULTS_SEEDED = "defaults_seeded"

    # Persistence
    SAVE_FAILED = "save_failed"

    # Export
    EXPORT_COMPLETED = "export_completed"
    EXPORT_FAILED = "export_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every store mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'ledger', 'tag', 'record')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved(record_id, "expense", amount, ledger_id)
        event = AuditEventBuilder.save_failed("record", record_id, str(exc))
    """

    @staticmethod
    def record_saved(
        record_id: UUID,
        record_type: str,
        amount: Decimal,
        ledger_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            entity_type="record",
            entity_id=record_id,
            description=f"Record saved: {record_type} {amount:.2f}",
            details={
                "type": record_type,
                "amount": f"{amount:.2f}",
                "ledger_id": str(ledger_id),
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type="record",
            entity_id=record_id,
            description="Record deleted",
            is_user_action=True,
        )

    @staticmethod
    def amount_rejected(raw_amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_REJECTED,
            severity=AuditSeverity.DEBUG,
            entity_type="record",
            description="Confirm ignored: amount is not a positive number",
            details={"raw_amount": raw_amount},
            is_user_action=True,
        )

    @staticmethod
    def ledger_created(ledger_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CREATED,
            entity_type="ledger",
            entity_id=ledger_id,
            description=f"Ledger created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def ledger_updated(ledger_id: UUID, changes: dict[str, Any]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_UPDATED,
            entity_type="ledger",
            entity_id=ledger_id,
            description=f"Ledger updated: {', '.join(sorted(changes))}",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def ledger_deleted(ledger_id: UUID, name: str, records_removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            entity_id=ledger_id,
            description=f"Ledger deleted: {name} ({records_removed} records removed)",
            details={
                "name": name,
                "records_removed": records_removed,
            },
            is_user_action=True,
        )

    @staticmethod
    def default_ledger_changed(ledger_id: UUID, previous_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEFAULT_LEDGER_CHANGED,
            entity_type="ledger",
            entity_id=ledger_id,
            description="Default ledger changed",
            details={"previous_default": str(previous_id) if previous_id else None},
            is_user_action=True,
        )

    @staticmethod
    def tag_created(tag_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAG_CREATED,
            entity_type="tag",
            entity_id=tag_id,
            description=f"Tag created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def tag_updated(tag_id: UUID, changes: dict[str, Any]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAG_UPDATED,
            entity_type="tag",
            entity_id=tag_id,
            description=f"Tag updated: {', '.join(sorted(changes))}",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def tag_deleted(tag_id: UUID, name: str, records_untagged: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAG_DELETED,
            entity_type="tag",
            entity_id=tag_id,
            description=f"Tag deleted: {name}",
            details={
                "name": name,
                "records_untagged": records_untagged,
            },
            is_user_action=True,
        )

    @staticmethod
    def defaults_seeded(ledger_created: bool, tags_created: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEFAULTS_SEEDED,
            description="Default data seeded",
            details={
                "ledger_created": ledger_created,
                "tags_created": tags_created,
            },
        )

    @staticmethod
    def save_failed(
        entity_type: str,
        entity_id: Optional[UUID],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Failed to persist {entity_type} change",
            error_message=error_message,
        )

    @staticmethod
    def export_completed(path: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            description=f"CSV export written with {row_count} rows",
            details={
                "path": path,
                "row_count": row_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            description="CSV export failed",
            error_message=error_message,
            details={"path": path},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
