"""
Audit Logger

DESIGN DECISION: Every user action on the ledger is logged.
This provides:
1. Traceability of the session's changes
2. Debugging capability
3. A recent-activity list the UI can show

The audit logger:
- Always logs locally through structlog
- Keeps the event in its sink if one is configured
- Never raises if the sink fails (logging must not break the ledger)
- Supports correlation IDs to trace one form session
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_ledger.audit.sink import AuditSink
from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _configure_structlog(json_output: bool = True) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog on top of stdlib logging.

    Called once at application start with values from AppSettings.
    Only the application installs root handlers; importing the package
    never does.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(numeric_level)
    _configure_structlog(json_output)


# Default configuration for local logging
_configure_structlog()


_SEVERITY_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
}


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit sink (for the in-session activity trail)
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        """
        Initialize audit logger.

        Args:
            sink: Where to keep events. If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("expense_ledger.audit")

    @property
    def sink(self) -> Optional[AuditSink]:
        return self._sink

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Records to the sink if available.

        Returns True if the sink write succeeded (or no sink configured).
        """
        method = getattr(self._logger, _SEVERITY_METHODS[event.severity])
        method("audit_event", **event.to_log_dict())

        if self._sink is not None:
            try:
                return self._sink.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_form_opened(
        self,
        mode: str,
        entry_id: Optional[int],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.form_opened(mode, entry_id, correlation_id))

    def log_form_cancelled(
        self,
        mode: str,
        entry_id: Optional[int],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.form_cancelled(mode, entry_id, correlation_id))

    def log_validation_failed(
        self,
        field_errors: dict[str, str],
        entry_id: Optional[int],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected form submission."""
        self.log(AuditEventBuilder.validation_failed(
            field_errors=field_errors,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    def log_entry_created(
        self,
        entry_id: int,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.entry_created(
            entry_id=entry_id,
            category=category,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_entry_updated(
        self,
        entry_id: int,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.entry_updated(
            entry_id=entry_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    def log_entry_deleted(self, entry_id: int) -> None:
        self.log(AuditEventBuilder.entry_deleted(entry_id))

    def log_entry_not_found(
        self,
        entry_id: int,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.entry_not_found(
            entry_id=entry_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    def log_date_filter_applied(
        self,
        start: Optional[str],
        end: Optional[str],
        visible: int,
        total: int,
        destructive: bool = False,
    ) -> None:
        self.log(AuditEventBuilder.date_filter_applied(
            start=start,
            end=end,
            visible=visible,
            total=total,
            destructive=destructive,
        ))

    def log_breakdown_computed(
        self,
        month: str,
        categories: int,
        entry_count: int,
    ) -> None:
        self.log(AuditEventBuilder.breakdown_computed(month, categories, entry_count))

    def log_breakdown_no_data(self, month: str) -> None:
        self.log(AuditEventBuilder.breakdown_no_data(month))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a form session starts and pass it through
    every event of that session.
    """
    return uuid4()
