"""Audit logging package."""

from expense_ledger.audit.logger import AuditLogger, configure_logging, create_correlation_id
from expense_ledger.audit.sink import AuditSink, InMemoryAuditSink

__all__ = [
    "AuditLogger",
    "AuditSink",
    "InMemoryAuditSink",
    "configure_logging",
    "create_correlation_id",
]
