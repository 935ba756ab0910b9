"""
Ledger Exceptions

Every error in the ledger is local and recoverable. Nothing here is
fatal to the session: callers either show the problem to the user or
treat it as a no-op.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class NotFoundError(LedgerError):
    """No entry with the given id exists in the ledger."""

    def __init__(self, entry_id: int, message: Optional[str] = None):
        self.entry_id = entry_id
        super().__init__(message or f"No ledger entry with id {entry_id}")


class EntryValidationError(LedgerError):
    """
    Candidate entry failed validation.

    Carries the full list of issues so the form can highlight
    every offending field at once.
    """

    def __init__(self, issues: list):
        self.issues = issues
        # first message per field, as ValidationResult.field_errors
        self.field_errors: dict[str, str] = {}
        for issue in issues:
            if issue.severity == "error":
                self.field_errors.setdefault(issue.field, issue.message)
        fields = ", ".join(self.field_errors) or "entry"
        super().__init__(f"Invalid ledger entry: {fields}")


class NoDataError(LedgerError):
    """Aggregation was requested for a month with nothing to aggregate."""

    def __init__(self, month):
        self.month = month
        super().__init__(f"No ledger data for {month.label}")


class FormStateError(LedgerError):
    """The entry form was driven through an illegal transition."""
    pass


class UnknownPaymentMethodError(LedgerError, ValueError):
    """Payment method code is not registered."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown payment method: {code!r}")
