"""Entry form package."""

from expense_ledger.forms.controller import (
    EntryFormController,
    FormOutcome,
    FormState,
    blank_form_values,
    entry_to_form_values,
)

__all__ = [
    "EntryFormController",
    "FormOutcome",
    "FormState",
    "blank_form_values",
    "entry_to_form_values",
]
