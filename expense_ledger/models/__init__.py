"""
Data Models Package

This package contains all Pydantic models used by the expense ledger.
Everything passed between the ledger core and the UI conforms to these schemas.
"""

from expense_ledger.models.entry import (
    CategoryBreakdown,
    CategoryShare,
    LedgerEntry,
    MonthSelection,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
    is_known_payment_method,
    payment_method_label,
    payment_methods,
    register_payment_method,
    register_payment_methods_from_string,
    unregister_payment_method,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CategoryBreakdown",
    "CategoryShare",
    "LedgerEntry",
    "MonthSelection",
    "PaymentMethod",
    "ValidationIssue",
    "ValidationResult",
    # Payment method registry
    "is_known_payment_method",
    "payment_method_label",
    "payment_methods",
    "register_payment_method",
    "register_payment_methods_from_string",
    "unregister_payment_method",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
