"""
Audit Models for the Expense Ledger

Every user action on the ledger produces an audit event.
This provides:
1. A readable history of the session's changes
2. Debugging information when something goes wrong
3. A record of handled errors (validation, missing ids, empty months)

DESIGN DECISION: Audit events are append-only. They are never modified.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entry form
    FORM_OPENED = "form_opened"
    FORM_CANCELLED = "form_cancelled"
    VALIDATION_FAILED = "validation_failed"

    # Ledger mutations
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    ENTRY_NOT_FOUND = "entry_not_found"

    # Derived views
    DATE_FILTER_APPLIED = "date_filter_applied"
    BREAKDOWN_COMPUTED = "breakdown_computed"
    BREAKDOWN_NO_DATA = "breakdown_no_data"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Which ledger entry is this about?
    entity_id: Optional[int] = Field(
        default=None,
        description="Id of the ledger entry this event relates to"
    )

    # Correlation - ties together one form session
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

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
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_created(entry_id, category, amount)
        event = AuditEventBuilder.entry_not_found(entry_id, "update")
    """

    @staticmethod
    def form_opened(
        mode: str,
        entry_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_OPENED,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry form opened for {mode}",
            details={"mode": mode},
            is_user_action=True,
        )

    @staticmethod
    def form_cancelled(
        mode: str,
        entry_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORM_CANCELLED,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry form cancelled ({mode})",
            details={"mode": mode},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        field_errors: dict[str, str],
        entry_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry validation failed with {len(field_errors)} issues",
            details={"field_errors": field_errors},
            is_user_action=True,
        )

    @staticmethod
    def entry_created(
        entry_id: int,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry created: {category} {amount}",
            details={"category": category, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def entry_updated(
        entry_id: int,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry {entry_id} updated",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(entry_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_id=entry_id,
            description=f"Entry {entry_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def entry_not_found(
        entry_id: int,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Cannot {operation} entry {entry_id}: not found",
            details={"operation": operation},
        )

    @staticmethod
    def date_filter_applied(
        start: Optional[str],
        end: Optional[str],
        visible: int,
        total: int,
        destructive: bool = False,
    ) -> AuditEvent:
        if destructive:
            description = (
                f"Date filter applied destructively: "
                f"{total - visible} entries discarded"
            )
        else:
            description = f"Date filter applied: {visible} of {total} entries visible"
        return AuditEvent(
            event_type=AuditEventType.DATE_FILTER_APPLIED,
            severity=AuditSeverity.WARNING if destructive else AuditSeverity.INFO,
            description=description,
            details={
                "start": start,
                "end": end,
                "visible": visible,
                "total": total,
                "destructive": destructive,
            },
            is_user_action=True,
        )

    @staticmethod
    def breakdown_computed(
        month: str,
        categories: int,
        entry_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BREAKDOWN_COMPUTED,
            severity=AuditSeverity.DEBUG,
            description=f"Category breakdown for {month}: {categories} categories",
            details={
                "month": month,
                "categories": categories,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def breakdown_no_data(month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BREAKDOWN_NO_DATA,
            description=f"No data to break down for {month}",
            details={"month": month},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
