"""Entry validation package."""

from expense_ledger.validation.validator import ENTRY_FIELDS, FIELD_LABELS, EntryValidator

__all__ = ["ENTRY_FIELDS", "FIELD_LABELS", "EntryValidator"]
