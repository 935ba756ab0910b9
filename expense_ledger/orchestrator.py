"""
Ledger Session Orchestrator

This module ties together all the components for one UI session:
1. Entry editing (form → validate → store)
2. Table view (store snapshot → date range / payment method / sort)
3. Monthly analysis (store snapshot → category breakdown → chart)

DESIGN DECISION: The session is the single owner of the ledger.
The UI never touches the store directly; it calls the session and renders
what comes back. Every derived view is recomputed from the full ledger
on each call, so a change to the ledger or to a filter is always
reflected in the next render.
"""

from datetime import date
from typing import Iterable, Optional

from expense_ledger.audit import AuditLogger, InMemoryAuditSink
from expense_ledger.config import get_settings
from expense_ledger.config.settings import AppSettings
from expense_ledger.forms import EntryFormController
from expense_ledger.models.audit import AuditEvent
from expense_ledger.models.entry import (
    CategoryBreakdown,
    LedgerEntry,
    MonthLike,
    MonthSelection,
    register_payment_methods_from_string,
)
from expense_ledger.queries import LedgerView, aggregate_by_month, filter_by_date_range
from expense_ledger.queries.filters import DateBound
from expense_ledger.store import LedgerStore
from expense_ledger.validation import EntryValidator


class LedgerSession:
    """
    Orchestrates one user's ledger session.

    Holds:
    - the store (the only copy of the ledger)
    - the entry form controller
    - the current table view (date range, payment methods, sort)
    - the month selected for analysis
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings if settings is not None else get_settings().app
        self._store = store if store is not None else LedgerStore()
        self._audit_logger = audit_logger
        self._form = EntryFormController(
            store=self._store,
            validator=validator if validator is not None else EntryValidator(self._settings),
            audit_logger=audit_logger,
        )
        self._view = LedgerView()
        self._month = MonthSelection.from_value(date.today())

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def form(self) -> EntryFormController:
        return self._form

    @property
    def view(self) -> LedgerView:
        return self._view

    @property
    def month(self) -> MonthSelection:
        return self._month

    @property
    def settings(self) -> AppSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    def delete_entry(self, entry_id: int) -> bool:
        """
        Remove an entry. Unknown ids are a logged no-op.

        Returns True if an entry was removed.
        """
        removed = self._store.remove(entry_id)
        if self._audit_logger:
            if removed:
                self._audit_logger.log_entry_deleted(entry_id)
            else:
                self._audit_logger.log_entry_not_found(entry_id, "delete")
        return removed

    # ------------------------------------------------------------------
    # Table view
    # ------------------------------------------------------------------

    def set_date_range(
        self,
        start: DateBound = None,
        end: DateBound = None,
    ) -> list[LedgerEntry]:
        """
        Change the date range of the table.

        By default this only changes the view. With the
        destructive_date_filter setting the ledger itself is replaced by
        the filtered entries, which cannot be undone.

        Returns the newly visible entries.
        """
        self._view = LedgerView.model_validate(
            {**self._view.model_dump(), "start": start, "end": end}
        )
        start_day, end_day = self._view.start, self._view.end

        total = len(self._store)
        destructive = self._settings.destructive_date_filter and self._view.has_date_range
        if destructive:
            self._store.replace_all(
                filter_by_date_range(self._store.list(), start_day, end_day)
            )
            # the range is now baked into the ledger
            self._view = self._view.model_copy(update={"start": None, "end": None})

        visible = self.visible_entries()
        if self._audit_logger:
            self._audit_logger.log_date_filter_applied(
                start=start_day.isoformat() if start_day else None,
                end=end_day.isoformat() if end_day else None,
                visible=len(visible),
                total=total,
                destructive=destructive,
            )
        return visible

    def clear_date_range(self) -> list[LedgerEntry]:
        self._view = self._view.model_copy(update={"start": None, "end": None})
        return self.visible_entries()

    def set_payment_methods(self, methods: Optional[Iterable[str]]) -> None:
        codes = tuple(getattr(m, "value", m) for m in methods or ())
        self._view = self._view.model_copy(update={"payment_methods": codes})

    def set_amount_order(self, order: Optional[str]) -> None:
        """Sort the table by amount: 'asc', 'desc' or None for insertion order."""
        self._view = LedgerView.model_validate(
            {**self._view.model_dump(), "amount_order": order}
        )

    def visible_entries(self) -> list[LedgerEntry]:
        """The table rows, derived from the full ledger."""
        return self._view.apply(self._store.list())

    def table_rows(self) -> list[dict]:
        """Visible entries as plain dicts for the table widget."""
        return [
            {
                "id": entry.id,
                "date": entry.date.strftime(self._settings.date_format),
                "category": entry.category,
                "description": entry.description,
                "amount": float(entry.amount),
                "payment_method": entry.payment_method_label,
            }
            for entry in self.visible_entries()
        ]

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def select_month(self, month: MonthLike) -> MonthSelection:
        self._month = MonthSelection.from_value(month)
        return self._month

    def category_breakdown(
        self,
        month: Optional[MonthLike] = None,
    ) -> CategoryBreakdown:
        """
        Category breakdown of the selected (or given) month.

        Always computed over the full ledger, not the table view.
        """
        if month is not None:
            self.select_month(month)

        breakdown = aggregate_by_month(
            self._store.list(),
            self._month,
            sort_by_share=self._settings.chart_sort_by_share,
        )

        if self._audit_logger:
            if breakdown.data_found:
                self._audit_logger.log_breakdown_computed(
                    month=breakdown.month.key,
                    categories=len(breakdown.shares),
                    entry_count=breakdown.entry_count,
                )
            else:
                self._audit_logger.log_breakdown_no_data(breakdown.month.key)

        return breakdown

    def months_with_entries(self) -> list[MonthSelection]:
        """Distinct months present in the ledger, newest first."""
        months = {MonthSelection.from_value(entry.date) for entry in self._store.list()}
        return sorted(months, key=lambda m: (m.year, m.month), reverse=True)

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    def recent_activity(self, limit: int = 20) -> list[AuditEvent]:
        if self._audit_logger and self._audit_logger.sink is not None:
            return self._audit_logger.sink.get_recent_events(limit=limit)
        return []

    def entry_history(self, entry_id: int) -> list[AuditEvent]:
        """Audit events recorded for one entry, oldest first."""
        if self._audit_logger and self._audit_logger.sink is not None:
            return self._audit_logger.sink.get_events_by_entry(entry_id)
        return []

    def report_error(self, error: Exception, context: Optional[str] = None) -> None:
        """Record an unexpected error raised while handling a user action."""
        if self._audit_logger:
            self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"context": context} if context else None,
                correlation_id=self._form.correlation_id,
            )


def create_app_components(
    settings: Optional[AppSettings] = None,
    with_audit_trail: bool = True,
) -> LedgerSession:
    """
    Factory function to create a fresh ledger session.

    Args:
        settings: Settings to use; loaded from the environment if None
        with_audit_trail: Keep audit events in memory for the session.
                          Set to False to only log locally.

    Returns:
        A LedgerSession with an empty ledger
    """
    settings = settings if settings is not None else get_settings().app

    if settings.extra_payment_methods:
        register_payment_methods_from_string(settings.extra_payment_methods)

    sink = InMemoryAuditSink(max_events=settings.audit_trail_size) if with_audit_trail else None
    audit_logger = AuditLogger(sink)

    return LedgerSession(
        store=LedgerStore(),
        audit_logger=audit_logger,
        settings=settings,
    )
