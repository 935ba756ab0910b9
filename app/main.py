"""
Streamlit Frontend for the Expense Ledger

This is the page users interact with: a table of entries, a form to
add or edit them, and a monthly category chart.

DESIGN PRINCIPLES:
1. The page only renders; every decision lives in LedgerSession
2. Nothing is saved without an explicit "Save" action
3. Clear, field-level error messages
4. One ledger per browser session, gone when the session ends
"""

from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

from expense_ledger.audit import configure_logging
from expense_ledger.config import get_settings, validate_all_settings
from expense_ledger.models.entry import MonthSelection, payment_method_label, payment_methods
from expense_ledger.orchestrator import LedgerSession, create_app_components
from expense_ledger.validation import FIELD_LABELS


# Page configuration
st.set_page_config(
    page_title="Expense Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.0em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

MONTH_NAMES = [date(2000, m, 1).strftime("%B") for m in range(1, 13)]
AMOUNT_ORDERS = {
    None: "Insertion order",
    "asc": "Amount ↑",
    "desc": "Amount ↓",
}


@st.cache_resource
def init_logging() -> None:
    """Configure structured logging once per process."""
    settings = get_settings().app
    configure_logging(settings.log_level, json_output=settings.log_json)


def get_session() -> LedgerSession:
    """The ledger session for this browser session (created on first use)."""
    if "ledger_session" not in st.session_state:
        st.session_state.ledger_session = create_app_components()
    return st.session_state.ledger_session


def format_amount(session: LedgerSession, amount: float) -> str:
    symbol = session.settings.currency_symbol
    return f"{symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    init_logging()
    session = get_session()

    st.sidebar.title("📒 Expense Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📋 Ledger", "📊 Analysis", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add entries with **New entry**
        2. Narrow the table with the date range
        3. See where the money went in **Analysis**

        Entries live only as long as this browser session.
        """
    )

    try:
        if page == "📋 Ledger":
            render_ledger_page(session)
        elif page == "📊 Analysis":
            render_analysis_page(session)
        elif page == "⚙️ Settings":
            render_settings_page(session)
    except Exception as e:
        session.report_error(e, context=page)
        st.error(f"Something went wrong: {str(e)}")


def render_filters(session: LedgerSession) -> None:
    """Date range, payment method and sort controls."""
    col1, col2, col3 = st.columns([2, 2, 1])

    with col1:
        date_range = st.date_input(
            "Filter by date",
            value=[],
            help="Select a start and end date (both inclusive)",
        )
        start = date_range[0] if len(date_range) > 0 else None
        end = date_range[1] if len(date_range) > 1 else None
        # only a complete range (or none) changes the view
        if len(date_range) != 1 and (start, end) != st.session_state.get("applied_range"):
            if date_range:
                session.set_date_range(start, end)
            else:
                session.clear_date_range()
            st.session_state.applied_range = (start, end)

    with col2:
        methods = st.multiselect(
            "Payment method",
            options=list(payment_methods()),
            format_func=payment_method_label,
        )
        session.set_payment_methods(methods)

    with col3:
        order = st.selectbox(
            "Sort",
            options=list(AMOUNT_ORDERS),
            format_func=AMOUNT_ORDERS.get,
        )
        session.set_amount_order(order)


def render_entry_form(session: LedgerSession) -> None:
    """The create/edit form, shown while the controller is open."""
    form = session.form
    values = form.values
    errors = form.field_errors
    methods = list(payment_methods())

    st.markdown(f"### {form.title}")

    if form.summary:
        st.error(form.summary)

    if form.is_editing:
        history = session.entry_history(form.editing_id)
        if history:
            with st.expander(f"History ({len(history)} events)"):
                for event in history:
                    st.caption(f"{event.timestamp.strftime('%H:%M:%S')} · {event.description}")

    with st.form("entry_form"):
        col1, col2 = st.columns(2)

        with col1:
            entry_date = st.date_input(
                f"{FIELD_LABELS['date']} *",
                value=values["date"],
            )
            if "date" in errors:
                st.error(errors["date"])

            category = st.text_input(
                f"{FIELD_LABELS['category']} *",
                value=values["category"] or "",
                placeholder="e.g. food, rent, travel",
            )
            if "category" in errors:
                st.error(errors["category"])

            description = st.text_input(
                f"{FIELD_LABELS['description']} *",
                value=values["description"] or "",
            )
            if "description" in errors:
                st.error(errors["description"])

        with col2:
            amount = st.number_input(
                f"{FIELD_LABELS['amount']} *",
                value=float(values["amount"]) if values["amount"] is not None else None,
                step=0.01,
                format="%.2f",
            )
            if "amount" in errors:
                st.error(errors["amount"])

            current_method = values["payment_method"]
            payment_method = st.selectbox(
                f"{FIELD_LABELS['payment_method']} *",
                options=methods,
                index=methods.index(current_method) if current_method in methods else None,
                format_func=payment_method_label,
                placeholder="Choose a payment method",
            )
            if "payment_method" in errors:
                st.error(errors["payment_method"])

        col_save, col_cancel = st.columns(2)
        with col_save:
            saved = st.form_submit_button("✅ Save", type="primary")
        with col_cancel:
            cancelled = st.form_submit_button("✖ Cancel")

    if cancelled:
        form.cancel()
        st.rerun()

    if saved:
        outcome = form.submit({
            "date": entry_date,
            "category": category,
            "description": description,
            "amount": amount,
            "payment_method": payment_method,
        })
        if outcome.committed:
            st.session_state.last_warnings = outcome.warnings
            st.session_state.last_saved = outcome.entry.id
        elif "entry" in outcome.field_errors:
            # the form closed itself; keep the message for the next render
            st.session_state.form_notice = outcome.field_errors["entry"]
        st.rerun()


def render_ledger_page(session: LedgerSession):
    """Render the ledger table page."""
    st.title("📋 Ledger")

    render_filters(session)

    if not session.form.is_open:
        if st.button("➕ New entry", type="primary"):
            session.form.open_create({"date": date.today()})
            st.rerun()
    else:
        render_entry_form(session)

    if st.session_state.get("form_notice"):
        st.error(st.session_state.form_notice)
        st.session_state.form_notice = None

    if st.session_state.get("last_saved"):
        st.success("Entry saved.")
        for warning in st.session_state.get("last_warnings", []):
            st.warning(warning)
        st.session_state.last_saved = None
        st.session_state.last_warnings = []

    st.markdown("---")

    rows = session.table_rows()
    if not rows:
        if len(session.store):
            st.info("No entries match the current filters.")
        else:
            st.info("📋 Your entries will appear here. Use **New entry** to add the first one.")
        return

    st.caption(f"Showing {len(rows)} of {len(session.store)} entries: {session.view.describe()}")

    df = pd.DataFrame(rows).set_index("id")
    df.columns = ["Date", "Category", "Description", "Amount", "Payment method"]
    st.dataframe(df, use_container_width=True, hide_index=True)

    total = sum(row["amount"] for row in rows)
    st.markdown(
        f"**Total shown:** <span class='big-number'>{format_amount(session, total)}</span>",
        unsafe_allow_html=True,
    )

    with st.expander("✏️ Edit or delete entries"):
        for row in rows:
            col1, col2, col3 = st.columns([6, 1, 1])
            with col1:
                st.markdown(
                    f"{row['date']} · **{row['category']}** · {row['description']} · "
                    f"{format_amount(session, row['amount'])} · {row['payment_method']}"
                )
            with col2:
                if st.button("Edit", key=f"edit_{row['id']}", disabled=session.form.is_open):
                    session.form.open_edit(row["id"])
                    st.rerun()
            with col3:
                if st.button("Delete", key=f"delete_{row['id']}", type="secondary"):
                    session.delete_entry(row["id"])
                    st.rerun()


def render_analysis_page(session: LedgerSession):
    """Render the monthly category breakdown."""
    st.title("📊 Analysis")
    st.markdown("Where did the money go in a given month?")

    current = session.month
    col1, col2 = st.columns(2)
    with col1:
        month = st.selectbox(
            "Month",
            options=list(range(1, 13)),
            index=current.month - 1,
            format_func=lambda m: MONTH_NAMES[m - 1],
        )
    with col2:
        year = st.number_input(
            "Year",
            min_value=1,
            max_value=9999,
            value=current.year,
            step=1,
        )

    months = session.months_with_entries()
    if months:
        st.caption("Months with entries: " + ", ".join(m.label for m in months[:12]))

    breakdown = session.category_breakdown(MonthSelection(year=int(year), month=month))

    if not breakdown.data_found:
        st.info(f"📭 {breakdown.description}")
        return

    chart_df = pd.DataFrame(breakdown.as_chart_data(), columns=["Category", "Share"])
    fig = px.pie(
        chart_df,
        names="Category",
        values="Share",
        title=f"Spending by category, {breakdown.month.label}",
        hole=0.3,
    )
    st.plotly_chart(fig, use_container_width=True)

    st.markdown(
        f"**Total:** <span class='big-number'>"
        f"{format_amount(session, float(breakdown.total))}</span>",
        unsafe_allow_html=True,
    )
    table = pd.DataFrame([
        {
            "Category": share.category,
            "Total": float(share.total),
            "Share": f"{share.fraction:.1%}",
        }
        for share in breakdown.shares
    ])
    st.dataframe(table, use_container_width=True, hide_index=True)


def render_settings_page(session: LedgerSession):
    """Render the settings page."""
    st.title("⚙️ Settings")

    status = validate_all_settings()
    if status.get("app", False):
        st.success("✅ Configuration loaded")
    else:
        st.error(f"❌ Configuration error: {status.get('app_error', 'unknown')}")

    settings = session.settings
    st.markdown("### Configuration")
    st.json(settings.model_dump())

    st.markdown("### Payment methods")
    st.table(pd.DataFrame(
        [{"Code": code, "Label": label} for code, label in payment_methods().items()]
    ))

    st.markdown("### Recent activity")
    events = session.recent_activity(limit=20)
    if not events:
        st.info("No activity yet.")
    else:
        st.dataframe(
            pd.DataFrame([
                {
                    "Time": event.timestamp.strftime("%H:%M:%S"),
                    "Event": event.event_type.value,
                    "Severity": event.severity.value,
                    "Description": event.description,
                }
                for event in events
            ]),
            use_container_width=True,
            hide_index=True,
        )

    st.markdown("---")
    st.markdown(
        "To configure the application, set environment variables or create a "
        "`.env` file (e.g. `EXTRA_PAYMENT_METHODS=debitCard:Debit card`)."
    )


if __name__ == "__main__":
    main()
