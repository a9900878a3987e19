"""
Streamlit Frontend for FinTrack

A thin presentation layer over the SyncCoordinator. It never touches
the Entry Store directly: it calls the coordinator's operations and
renders the snapshots it gets back.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything destructive
3. Clear error messages in simple language
4. Always show whether the data is live or offline
"""

import asyncio
from datetime import date

import streamlit as st

from fintrack.config import validate_all_settings
from fintrack.models import DataSource, TransactionType
from fintrack.orchestrator import SyncCoordinator, create_coordinator
from fintrack.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="FinTrack",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
    }
    .income { color: #28a745; }
    .expense { color: #dc3545; }
</style>
""", unsafe_allow_html=True)


SOURCE_LABELS = {
    DataSource.REMOTE: "🟢 Synced with server",
    DataSource.CACHE: "🟡 Offline - showing saved data",
    DataSource.LOCAL: "🟡 Offline - changes saved on this device",
    DataSource.EMPTY: "⚪ No data yet",
}


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """One loop for the whole session; the coordinator's lock lives on it."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = get_event_loop()
    asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@st.cache_resource
def get_coordinator() -> SyncCoordinator:
    """Get or create the coordinator (cached) and load the initial data."""
    coordinator = create_coordinator()
    run_async(coordinator.start())
    return coordinator


def format_money(value) -> str:
    return f"${value:,.2f}"


def main():
    """Main application entry point."""
    coordinator = get_coordinator()

    st.sidebar.title("💰 FinTrack")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(SOURCE_LABELS[coordinator.source])
    if st.sidebar.button("🔄 Reconnect"):
        run_async(coordinator.refresh())
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(coordinator)
    elif page == "⚙️ Settings":
        render_settings_page(coordinator)


def render_summary(coordinator: SyncCoordinator):
    """Income, expenses and balance with their progress bars."""
    summary = coordinator.get_summary()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**Income**")
        st.markdown(
            f'<div class="big-number income">{format_money(summary.income)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("**Expenses**")
        st.markdown(
            f'<div class="big-number expense">{format_money(summary.expenses)}</div>',
            unsafe_allow_html=True,
        )
    with col3:
        st.markdown("**Balance**")
        st.markdown(
            f'<div class="big-number">{format_money(summary.balance)}</div>',
            unsafe_allow_html=True,
        )

    # Both bars are relative to income and clamped to the widget's range
    st.caption(f"Balance: {summary.balance_percent:.0f}% of income")
    st.progress(min(max(int(summary.balance_percent), 0), 100))
    st.caption(f"Spent: {summary.spent_percent:.0f}% of income")
    st.progress(min(max(int(summary.spent_percent), 0), 100))


def render_add_form(coordinator: SyncCoordinator):
    """Form for a new transaction."""
    st.markdown("### ➕ Add Transaction")

    with st.form("add_transaction", clear_on_submit=True):
        description = st.text_input("Description")
        col1, col2, col3 = st.columns(3)
        with col1:
            amount = st.text_input("Amount", placeholder="0.00")
        with col2:
            kind = st.selectbox(
                "Type",
                options=list(TransactionType),
                index=1,
                format_func=lambda x: x.value.title(),
            )
        with col3:
            when = st.date_input("Date", value=date.today())

        submitted = st.form_submit_button("Add")

    if submitted:
        try:
            record = run_async(coordinator.add_transaction({
                "description": description,
                "amount": amount,
                "type": kind,
                "date": when,
            }))
        except ValidationError as e:
            st.error(f"❌ {e}")
        else:
            st.success(f"✅ Added: {record.description}")
            st.rerun()


def render_transaction_list(coordinator: SyncCoordinator):
    """Table of transactions with a delete button per row."""
    st.markdown("### 📋 Transactions")

    transactions = coordinator.get_transactions()
    if not transactions:
        st.info("No transactions yet. Add your first one above.")
        return

    for record in transactions:
        col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
        with col1:
            st.write(record.date.isoformat())
        with col2:
            st.write(record.description)
        with col3:
            sign = "+" if record.type == TransactionType.INCOME else "-"
            st.write(f"{sign}{format_money(record.amount)}")
        with col4:
            if st.button("🗑️", key=f"delete_{record.id}"):
                run_async(coordinator.delete_transaction(record.id))
                st.rerun()

    st.markdown("---")
    render_clear_all(coordinator)


def render_clear_all(coordinator: SyncCoordinator):
    """Clear everything, only after an explicit confirmation."""
    if "confirm_clear" not in st.session_state:
        st.session_state.confirm_clear = False

    if not st.session_state.confirm_clear:
        if st.button("Clear all transactions"):
            st.session_state.confirm_clear = True
            st.rerun()
        return

    st.warning("⚠️ This removes every transaction on this device. Continue?")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Yes, clear all", type="primary"):
            run_async(coordinator.clear_all())
            st.session_state.confirm_clear = False
            st.rerun()
    with col2:
        if st.button("Cancel"):
            st.session_state.confirm_clear = False
            st.rerun()


def render_dashboard_page(coordinator: SyncCoordinator):
    """Render the main page."""
    st.title("📊 Dashboard")

    render_summary(coordinator)
    st.markdown("---")
    render_add_form(coordinator)
    st.markdown("---")
    render_transaction_list(coordinator)


def render_settings_page(coordinator: SyncCoordinator):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    if not coordinator.has_remote:
        st.info("ℹ️ Remote service disabled - running in local mode")
    elif run_async(coordinator.check_remote()):
        st.success("✅ Remote service - Connected")
    else:
        st.error("❌ Remote service - Unreachable")

    status = validate_all_settings()
    for name in ("remote", "cache", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings - OK")
        else:
            error = status.get(f"{name}_error", "Not configured")
            st.error(f"❌ {name.title()} settings - {error}")

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = coordinator.audit_logger.recent_events(limit=20)
    if not events:
        st.caption("Nothing yet.")
    for event in events:
        st.write(f"{event.timestamp:%H:%M:%S} - {event.description}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
