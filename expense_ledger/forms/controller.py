"""
Entry Form Controller

Drives the create/edit dialog for ledger entries.

State machine:

    CLOSED ──open_create()──▶ OPEN_FOR_CREATE ──submit()──▶ VALIDATING
    CLOSED ──open_edit()────▶ OPEN_FOR_EDIT ────submit()──▶ VALIDATING

    VALIDATING ──valid──▶ CLOSED            (entry committed to the store)
    VALIDATING ──errors─▶ OPEN_FOR_CREATE / OPEN_FOR_EDIT (values retained)

    OPEN_* ──cancel()──▶ CLOSED             (values discarded)

CRITICAL: Nothing reaches the store unless validation passed.
"""

from enum import Enum
from typing import Any, Mapping, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from expense_ledger.audit import AuditLogger, create_correlation_id
from expense_ledger.errors import EntryValidationError, FormStateError, NotFoundError
from expense_ledger.models.entry import LedgerEntry, ValidationResult
from expense_ledger.store import LedgerStore
from expense_ledger.validation import ENTRY_FIELDS, EntryValidator


class FormState(str, Enum):
    """Lifecycle of the entry dialog."""
    CLOSED = "closed"
    OPEN_FOR_CREATE = "open_for_create"
    OPEN_FOR_EDIT = "open_for_edit"
    VALIDATING = "validating"


class FormOutcome(BaseModel):
    """Result of one submit() call."""

    committed: bool
    entry: Optional[LedgerEntry] = None
    created: bool = False
    field_errors: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


def entry_to_form_values(entry: LedgerEntry) -> dict[str, Any]:
    """Field values used to pre-populate the form when editing."""
    return {
        "date": entry.date,
        "category": entry.category,
        "description": entry.description,
        "amount": entry.amount,
        "payment_method": entry.payment_method,
    }


def blank_form_values() -> dict[str, Any]:
    return {field: None for field in ENTRY_FIELDS}


class EntryFormController:
    """
    Validates form input and commits entries to the store.

    Holds the dialog's state between renders: the current mode, the
    values typed so far and the errors from the last submission.
    """

    def __init__(
        self,
        store: LedgerStore,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator if validator is not None else EntryValidator()
        self._audit_logger = audit_logger

        self._state = FormState.CLOSED
        self._editing_id: Optional[int] = None
        self._values: dict[str, Any] = blank_form_values()
        self._field_errors: dict[str, str] = {}
        self._correlation_id: Optional[UUID] = None
        self._summary: Optional[str] = None

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state in (FormState.OPEN_FOR_CREATE, FormState.OPEN_FOR_EDIT)

    @property
    def is_editing(self) -> bool:
        return self._state == FormState.OPEN_FOR_EDIT

    @property
    def editing_id(self) -> Optional[int]:
        return self._editing_id

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self._field_errors)

    @property
    def summary(self) -> Optional[str]:
        """Readable list of the problems from the last rejected submit."""
        return self._summary

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    @property
    def title(self) -> str:
        return "Edit entry" if self.is_editing else "New entry"

    @property
    def _mode(self) -> str:
        return "edit" if self._editing_id is not None else "create"

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _require_closed(self, action: str) -> None:
        if self._state != FormState.CLOSED:
            raise FormStateError(f"Cannot {action}: form is {self._state.value}")

    def open_create(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        """Open an empty form for a new entry."""
        self._require_closed("open a new entry")
        self._values = blank_form_values()
        if defaults:
            self._values.update({k: v for k, v in defaults.items() if k in ENTRY_FIELDS})
        self._editing_id = None
        self._field_errors = {}
        self._summary = None
        self._correlation_id = create_correlation_id()
        self._state = FormState.OPEN_FOR_CREATE

        if self._audit_logger:
            self._audit_logger.log_form_opened("create", None, self._correlation_id)

    def open_edit(self, entry: Union[LedgerEntry, int]) -> None:
        """
        Open the form pre-populated from an existing entry.

        Raises:
            NotFoundError: If the entry is no longer in the store
        """
        self._require_closed("edit an entry")
        entry_id = entry if isinstance(entry, int) else entry.id
        current = self._store.get(entry_id) if entry_id is not None else None
        if current is None:
            if self._audit_logger:
                self._audit_logger.log_entry_not_found(entry_id, "edit")
            raise NotFoundError(entry_id)

        self._values = entry_to_form_values(current)
        self._editing_id = current.id
        self._field_errors = {}
        self._summary = None
        self._correlation_id = create_correlation_id()
        self._state = FormState.OPEN_FOR_EDIT

        if self._audit_logger:
            self._audit_logger.log_form_opened("edit", current.id, self._correlation_id)

    def cancel(self) -> None:
        """Close the form and discard its values. No-op when already closed."""
        if not self.is_open:
            return
        if self._audit_logger:
            self._audit_logger.log_form_cancelled(
                self._mode, self._editing_id, self._correlation_id
            )
        self._close()

    def _close(self) -> None:
        self._state = FormState.CLOSED
        self._editing_id = None
        self._values = blank_form_values()
        self._field_errors = {}
        self._summary = None
        self._correlation_id = None

    def submit(self, values: Optional[Mapping[str, Any]] = None) -> FormOutcome:
        """
        Validate the form and commit the entry.

        Args:
            values: Field values from the UI; merged over the values
                    already held by the form

        Returns:
            FormOutcome; when not committed the form stays open with the
            submitted values and field errors retained

        Raises:
            FormStateError: If the form is not open
        """
        if not self.is_open:
            raise FormStateError(f"Cannot submit: form is {self._state.value}")

        return_state = self._state
        if values:
            self._values.update({k: v for k, v in values.items() if k in ENTRY_FIELDS})
            if "paymentMethod" in values and "payment_method" not in values:
                self._values["payment_method"] = values["paymentMethod"]
        self._state = FormState.VALIDATING

        try:
            entry, result = self._validator.build_entry(
                self._values, entry_id=self._editing_id
            )
        except EntryValidationError as e:
            self._field_errors = e.field_errors
            self._summary = self._validator.get_user_friendly_summary(
                ValidationResult(is_valid=False, issues=e.issues)
            )
            self._state = return_state
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    e.field_errors, self._editing_id, self._correlation_id
                )
            return FormOutcome(committed=False, field_errors=e.field_errors)

        if self._editing_id is None:
            stored = self._store.add(entry)
            if self._audit_logger:
                self._audit_logger.log_entry_created(
                    entry_id=stored.id,
                    category=stored.category,
                    amount=str(stored.amount),
                    correlation_id=self._correlation_id,
                )
            created = True
        else:
            previous = self._store.get(self._editing_id)
            try:
                stored = self._store.update(self._editing_id, entry)
            except NotFoundError:
                # deleted while the dialog was open
                if self._audit_logger:
                    self._audit_logger.log_entry_not_found(
                        self._editing_id, "update", self._correlation_id
                    )
                self._close()
                return FormOutcome(
                    committed=False,
                    field_errors={"entry": "This entry no longer exists."},
                )
            if self._audit_logger:
                changed = [
                    field for field in ENTRY_FIELDS
                    if getattr(previous, field) != getattr(stored, field)
                ]
                self._audit_logger.log_entry_updated(
                    entry_id=stored.id,
                    changed_fields=changed,
                    correlation_id=self._correlation_id,
                )
            created = False

        self._close()
        return FormOutcome(
            committed=True,
            entry=stored,
            created=created,
            warnings=result.warnings,
        )
