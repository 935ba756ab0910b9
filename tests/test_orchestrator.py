"""Tests for the ledger session that the UI drives."""

import pytest
from datetime import date

from expense_ledger.config.settings import AppSettings
from expense_ledger.models.audit import AuditEventType, AuditSeverity
from expense_ledger.models.entry import (
    MonthSelection,
    is_known_payment_method,
    unregister_payment_method,
)
from expense_ledger.orchestrator import LedgerSession, create_app_components

from tests.conftest import make_entry


@pytest.fixture
def session(store, settings, audit_logger):
    return LedgerSession(store=store, audit_logger=audit_logger, settings=settings)


@pytest.fixture
def filled(session):
    """Session holding one entry per month from February to April 2024."""
    store = session.store
    store.add(make_entry(day="2024-02-10", category="food", amount="10", payment_method="cash"))
    store.add(make_entry(day="2024-03-02", category="food", amount="100", payment_method="creditCard"))
    store.add(make_entry(day="2024-03-20", category="rent", amount="300", payment_method="transfer"))
    store.add(make_entry(day="2024-04-01", category="food", amount="5", payment_method="cash"))
    return session


def categories(entries):
    return [entry.category for entry in entries]


class TestSessionWiring:
    """The session works on the objects it is given."""

    def test_uses_given_empty_store(self, store, settings):
        """Test that a fresh, empty store is shared rather than replaced."""
        session = LedgerSession(store=store, settings=settings)
        assert session.store is store

        store.add(make_entry())
        assert len(session.visible_entries()) == 1
        assert session.form is not None

    def test_uses_given_settings(self, store):
        settings = AppSettings(_env_file=None, date_format="%d.%m.%Y")
        assert LedgerSession(store=store, settings=settings).settings is settings

    def test_entry_history(self, session, sink):
        session.form.open_create()
        created = session.form.submit({
            "date": "2024-03-05",
            "category": "food",
            "description": "lunch",
            "amount": "20",
            "payment_method": "cash",
        })
        session.delete_entry(created.entry.id)

        assert [e.event_type for e in session.entry_history(created.entry.id)] == [
            AuditEventType.ENTRY_CREATED,
            AuditEventType.ENTRY_DELETED,
        ]

    def test_report_error(self, session, sink):
        session.form.open_create()
        session.report_error(RuntimeError("chart failed"), context="Analysis")

        event = sink.get_recent_events()[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "chart failed"
        assert event.details == {"context": "Analysis"}
        assert event.correlation_id == session.form.correlation_id

    def test_history_and_errors_without_audit_trail(self, store, settings):
        session = LedgerSession(store=store, settings=settings)
        session.report_error(RuntimeError("ignored"))
        assert session.entry_history(1) == []


class TestTableView:
    """Date range, payment method and sort on the table."""

    def test_default_shows_everything(self, filled):
        assert len(filled.visible_entries()) == 4

    def test_date_range_is_a_view(self, filled):
        """Test that narrowing then widening the range brings entries back."""
        visible = filled.set_date_range("2024-03-01", "2024-03-31")
        assert categories(visible) == ["food", "rent"]
        assert len(filled.store) == 4

        widened = filled.set_date_range("2024-01-01", "2024-12-31")
        assert len(widened) == 4

        filled.set_date_range("2024-03-01", "2024-03-31")
        assert len(filled.clear_date_range()) == 4

    def test_date_range_event(self, filled, sink):
        filled.set_date_range(date(2024, 3, 1), date(2024, 3, 31))
        event = sink.get_recent_events()[0]
        assert event.event_type == AuditEventType.DATE_FILTER_APPLIED
        assert event.severity == AuditSeverity.INFO
        assert event.details["visible"] == 2

    def test_payment_method_and_sort(self, filled):
        filled.set_payment_methods(["cash", "creditCard"])
        filled.set_amount_order("desc")
        amounts = [entry.amount for entry in filled.visible_entries()]
        assert amounts == [100, 10, 5]

        filled.set_amount_order(None)
        filled.set_payment_methods(None)
        assert categories(filled.visible_entries()) == ["food", "food", "rent", "food"]

    def test_view_follows_store_changes(self, filled):
        """Test that a new entry shows up without re-applying the filter."""
        filled.set_date_range("2024-03-01", "2024-03-31")
        filled.store.add(make_entry(day="2024-03-25", category="travel"))
        assert "travel" in categories(filled.visible_entries())

    def test_table_rows(self, filled):
        filled.set_date_range("2024-03-20", "2024-03-20")
        assert filled.table_rows() == [{
            "id": filled.store.list()[2].id,
            "date": "2024-03-20",
            "category": "rent",
            "description": "lunch",
            "amount": 300.0,
            "payment_method": "Transfer",
        }]

    def test_table_rows_use_date_format(self, store):
        session = LedgerSession(
            store=store,
            settings=AppSettings(_env_file=None, date_format="%d/%m/%Y"),
        )
        store.add(make_entry(day="2024-03-05"))
        assert session.table_rows()[0]["date"] == "05/03/2024"


class TestDestructiveDateFilter:
    """The opt-in mode where a date range discards entries."""

    @pytest.fixture
    def destructive(self, store, audit_logger):
        session = LedgerSession(
            store=store,
            audit_logger=audit_logger,
            settings=AppSettings(_env_file=None, destructive_date_filter=True),
        )
        store.add(make_entry(day="2024-02-10", category="feb"))
        store.add(make_entry(day="2024-03-10", category="mar"))
        return session

    def test_entries_outside_range_are_gone(self, destructive, sink):
        destructive.set_date_range("2024-03-01", "2024-03-31")
        assert categories(destructive.store.list()) == ["mar"]

        widened = destructive.set_date_range("2024-01-01", "2024-12-31")
        assert categories(widened) == ["mar"]

        event = sink.get_recent_events(event_type=AuditEventType.DATE_FILTER_APPLIED)[-1]
        assert event.severity == AuditSeverity.WARNING

    def test_clearing_range_discards_nothing(self, destructive):
        destructive.set_date_range(None, None)
        assert len(destructive.store) == 2


class TestDelete:
    """Tests for LedgerSession.delete_entry."""

    def test_delete_existing(self, filled, sink):
        target = filled.store.list()[1]
        assert filled.delete_entry(target.id) is True
        assert target.id not in filled.store
        event = sink.get_recent_events()[0]
        assert event.event_type == AuditEventType.ENTRY_DELETED
        assert event.entity_id == target.id

    def test_delete_unknown_is_logged_noop(self, filled, sink):
        assert filled.delete_entry(404) is False
        assert len(filled.store) == 4
        assert sink.get_recent_events()[0].event_type == AuditEventType.ENTRY_NOT_FOUND


class TestAnalysis:
    """Monthly breakdown through the session."""

    def test_breakdown_for_month(self, filled, sink):
        breakdown = filled.category_breakdown("2024-03")
        assert breakdown.as_chart_data() == [("food", 0.25), ("rent", 0.75)]
        assert filled.month == MonthSelection(year=2024, month=3)
        assert sink.get_recent_events()[0].event_type == AuditEventType.BREAKDOWN_COMPUTED

    def test_breakdown_ignores_table_view(self, filled):
        """Test the chart is computed from the full ledger."""
        filled.set_payment_methods(["cash"])
        filled.set_date_range("2024-04-01", "2024-04-30")
        breakdown = filled.category_breakdown("2024-03")
        assert breakdown.total == 400

    def test_empty_month(self, filled, sink):
        breakdown = filled.category_breakdown("2023-01")
        assert not breakdown.data_found
        assert sink.get_recent_events()[0].event_type == AuditEventType.BREAKDOWN_NO_DATA

    def test_selected_month_is_reused(self, filled):
        filled.select_month(date(2024, 2, 14))
        assert filled.category_breakdown().as_chart_data() == [("food", 1.0)]

    def test_default_month_is_current(self, session):
        assert session.month == MonthSelection.from_value(date.today())

    def test_months_with_entries(self, filled):
        assert [m.key for m in filled.months_with_entries()] == [
            "2024-04", "2024-03", "2024-02",
        ]

    def test_sort_by_share_setting(self, store):
        session = LedgerSession(
            store=store,
            settings=AppSettings(_env_file=None, chart_sort_by_share=True),
        )
        store.add(make_entry(day="2024-03-01", category="small", amount="1"))
        store.add(make_entry(day="2024-03-02", category="big", amount="9"))
        assert [s.category for s in session.category_breakdown("2024-03").shares] == [
            "big", "small",
        ]


class TestFullScenario:
    """Create, edit and delete through the form, as the UI does."""

    def test_create_edit_delete(self, session):
        session.form.open_create()
        created = session.form.submit({
            "date": "2024-03-05",
            "category": "food",
            "description": "lunch",
            "amount": "20",
            "payment_method": "cash",
        })
        assert created.committed
        assert len(session.visible_entries()) == 1

        session.form.open_edit(created.entry.id)
        edited = session.form.submit({"amount": "25"})
        assert edited.committed
        assert session.visible_entries()[0].amount == 25

        session.delete_entry(created.entry.id)
        assert session.visible_entries() == []

        trail = [e.event_type for e in session.recent_activity()]
        assert trail[0] == AuditEventType.ENTRY_DELETED
        assert AuditEventType.ENTRY_UPDATED in trail
        assert AuditEventType.ENTRY_CREATED in trail


class TestCreateAppComponents:
    """Tests for the session factory."""

    def test_factory_builds_empty_session(self, settings):
        session = create_app_components(settings)
        assert len(session.store) == 0
        assert session.recent_activity() == []

    def test_factory_without_audit_trail(self, settings):
        session = create_app_components(settings, with_audit_trail=False)
        session.delete_entry(1)
        assert session.recent_activity() == []

    def test_factory_registers_extra_payment_methods(self):
        settings = AppSettings(_env_file=None, extra_payment_methods="giftCard:Gift card")
        try:
            session = create_app_components(settings)
            assert is_known_payment_method("giftCard")

            session.form.open_create()
            outcome = session.form.submit({
                "date": "2024-03-05",
                "category": "gifts",
                "description": "voucher",
                "amount": "15",
                "payment_method": "giftCard",
            })
            assert outcome.committed
            assert session.table_rows()[0]["payment_method"] == "Gift card"
        finally:
            unregister_payment_method("giftCard")

    def test_audit_trail_size(self):
        session = create_app_components(AppSettings(_env_file=None, audit_trail_size=2))
        for missing_id in (1, 2, 3):
            session.delete_entry(missing_id)
        assert [e.entity_id for e in session.recent_activity()] == [3, 2]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
