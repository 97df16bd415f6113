"""
Streamlit Frontend for Budget Tracker

The presentation layer: month dashboard, transaction entry, spending
limits and Chase CSV import.

DESIGN PRINCIPLES:
1. Edits show immediately; saving happens in the background
2. The save indicator is always visible
3. Imports are reviewed before anything is written
4. Clear error messages in simple language

The ledger store runs on its own asyncio loop in a background thread so
its debounce timers and remote subscription survive Streamlit reruns.
"""

import asyncio
import threading
from datetime import date

import streamlit as st

from budget_tracker.config import get_settings, validate_all_settings
from budget_tracker.ingestion import StatementImport, clean_description
from budget_tracker.ledger import group_by_date, next_transaction_id, summarize_month
from budget_tracker.models.budget import (
    MONTH_NAMES,
    ImportStep,
    SaveStatus,
    Transaction,
    TransactionType,
    month_for_date,
)
from budget_tracker.orchestrator import create_app_components, create_statement_import
from budget_tracker.sync import LedgerDocumentStore


st.set_page_config(
    page_title="Budget Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_LABELS = {
    SaveStatus.IDLE: "☁️ Synced",
    SaveStatus.SAVING: "⏳ Saving...",
    SaveStatus.SAVED: "✅ Saved",
}


class BackgroundLoop:
    """An event loop running forever in a daemon thread."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self._thread.start()

    def run(self, coro):
        """Run a coroutine on the loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def call(self, fn, *args):
        """Call a plain function on the loop thread and wait for its result."""
        async def invoke():
            return fn(*args)
        return self.run(invoke())


@st.cache_resource
def get_components():
    """Create and start the ledger store once per server process."""
    background = BackgroundLoop()
    store, audit_logger, is_persistent = create_app_components(use_storage=True)
    background.run(store.start())
    return background, store, audit_logger, is_persistent


def main():
    """Main application entry point."""
    background, store, audit_logger, is_persistent = get_components()

    st.sidebar.title("💰 Budget Tracker")
    month = st.sidebar.selectbox(
        "Month",
        MONTH_NAMES,
        index=date.today().month - 1,
    )
    st.sidebar.markdown(f"**{STATUS_LABELS[store.status]}**")
    if not is_persistent:
        st.sidebar.warning(
            "Cloud storage is not configured. Changes are kept only "
            "while this app is running."
        )
        if get_settings().app.debug_mode:
            st.sidebar.caption(validate_all_settings().get("google_sheets_error", ""))
    if st.sidebar.button("🔄 Refresh"):
        st.rerun()

    render_income(background, store)

    dashboard, add, limits, imports = st.tabs(
        ["📊 Dashboard", "➕ Add Transaction", "🎯 Limits", "📥 Import CSV"]
    )
    with dashboard:
        render_dashboard(background, store, month)
    with add:
        render_transaction_form(background, store)
    with limits:
        render_limits(background, store, month)
    with imports:
        render_import(background, store, audit_logger)


def render_income(background: BackgroundLoop, store: LedgerDocumentStore):
    """Global income input."""
    income = st.number_input(
        "Monthly income",
        value=float(store.document.income),
        step=100.0,
    )
    if income != store.document.income:
        background.call(store.set_income, income)


def render_dashboard(background: BackgroundLoop, store: LedgerDocumentStore, month: str):
    """Month figures, category breakdown and the transaction list."""
    doc = store.document
    summary = summarize_month(doc, month)

    col1, col2, col3 = st.columns(3)
    col1.metric("Spent", f"${summary.total_expenses:,.2f}")
    col2.metric("Balance", f"${summary.balance:,.2f}")
    col3.metric("Projected left", f"${summary.projected_savings:,.2f}")
    st.progress(int(summary.spent_percent))

    st.subheader("Spending breakdown")
    if not summary.category_totals:
        st.info(f"No expenses recorded for {month} yet.")
    for total in summary.category_totals:
        label = f"{total.category}: ${total.total:,.2f}"
        if total.limit:
            label += f" of ${total.limit:,.2f}"
        if total.is_over_limit:
            label += "  🚨 Over limit"
        st.markdown(label)
        if total.limit:
            st.progress(int(total.percent_of_limit))

    st.subheader("Transactions")
    for day, transactions in group_by_date(doc.ledger(month).expenses).items():
        st.markdown(f"**{date.fromisoformat(day):%b %d}**")
        for transaction in transactions:
            render_transaction_row(background, store, month, transaction)


def render_transaction_row(
    background: BackgroundLoop,
    store: LedgerDocumentStore,
    month: str,
    transaction: Transaction,
):
    categories = store.document.categories
    desc_col, amount_col, category_col, delete_col = st.columns([4, 2, 3, 1])
    desc_col.write(clean_description(transaction.description))
    sign = "+" if transaction.type == TransactionType.INCOME else "-"
    amount_col.write(f"{sign}${transaction.amount:,.2f}")

    if transaction.type == TransactionType.EXPENSE and categories:
        current = transaction.category if transaction.category in categories else categories[0]
        chosen = category_col.selectbox(
            "Category",
            categories,
            index=categories.index(current),
            key=f"category-{transaction.id}",
            label_visibility="collapsed",
        )
        if chosen != transaction.category and transaction.category in categories:
            background.call(store.update_transaction_category, month, transaction.id, chosen)

    if delete_col.button("🗑️", key=f"delete-{transaction.id}"):
        background.call(store.delete_transaction, month, transaction.id)
        st.rerun()


def render_transaction_form(background: BackgroundLoop, store: LedgerDocumentStore):
    """Manual entry, filed under the month of the chosen date."""
    categories = store.document.categories
    with st.form("transaction", clear_on_submit=True):
        kind = st.radio("Type", ["− Expense", "+ Income"], horizontal=True)
        is_income = kind == "+ Income"
        description = st.text_input("Description")
        amount = st.number_input("Amount", min_value=0.0, step=1.0)
        when = st.date_input("Date", value=date.today())
        category = None
        if not is_income and categories:
            category = st.selectbox("Category", categories)
        submitted = st.form_submit_button("Save")

    if submitted:
        if not description or not amount:
            st.error("Please enter a description and an amount.")
            return
        transaction = Transaction(
            id=next_transaction_id(store.document),
            description=description,
            amount=amount,
            category=category,
            date=when,
            type=TransactionType.INCOME if is_income else TransactionType.EXPENSE,
        )
        background.call(store.record_transaction, transaction)
        st.success(f"Saved to {month_for_date(when)}.")


def render_limits(background: BackgroundLoop, store: LedgerDocumentStore, month: str):
    """Per-category monthly targets."""
    doc = store.document
    summary = summarize_month(doc, month)
    limits = doc.ledger(month).limits

    if summary.is_over_budget:
        st.warning(f"${summary.total_limits - summary.income:,.2f} over income")
    else:
        st.caption(
            f"${summary.total_limits:,.2f} budgeted, ${summary.projected_savings:,.2f} unallocated"
        )
    st.progress(int(summary.budgeted_percent))

    for category in doc.categories:
        current = float(limits.get(category, 0.0))
        value = st.number_input(
            category,
            min_value=0.0,
            step=50.0,
            value=current,
            key=f"limit-{month}-{category}",
        )
        if value != current:
            background.call(store.update_limit, month, category, value)


def render_import(background: BackgroundLoop, store: LedgerDocumentStore, audit_logger):
    """Chase CSV upload, review and confirmation."""
    if "statement_import" not in st.session_state:
        st.session_state.statement_import = create_statement_import(store, audit_logger)
    session: StatementImport = st.session_state.statement_import

    st.caption(session.status_message)

    if session.step == ImportStep.UPLOAD:
        app_settings = get_settings().app
        uploaded = st.file_uploader(
            "Choose CSV file",
            type=app_settings.supported_formats_list,
        )
        if uploaded is not None and st.button("Read file", type="primary"):
            if uploaded.size > app_settings.max_upload_size_bytes:
                st.error("This file is too large.")
                return
            session.load_bytes(uploaded.getvalue())
            st.rerun()
        if session.error:
            st.error(session.error)

    elif session.step == ImportStep.REVIEW:
        categories = store.document.categories
        for idx, candidate in enumerate(session.candidates):
            date_col, desc_col, amount_col, category_col = st.columns([1, 4, 2, 3])
            date_col.write(f"{candidate.date:%b %d}")
            desc_col.write(candidate.description)
            amount_col.write(f"${candidate.amount:,.2f}")
            index = categories.index(candidate.category) if candidate.category in categories else 0
            chosen = category_col.selectbox(
                "Category",
                categories,
                index=index,
                key=f"import-{session.correlation_id}-{idx}",
                label_visibility="collapsed",
            )
            if chosen != candidate.category:
                session.override_category(idx, chosen)
        st.caption("Categories were auto-matched from Chase where possible. Adjust any that look off.")
        if session.error:
            st.error(session.error)
        if st.button(f"Import {len(session.candidates)} transactions", type="primary"):
            background.call(session.confirm, store)
            st.rerun()

    else:
        st.success(
            f"{session.imported_count} transactions added. "
            "Each one was placed in its correct month automatically."
        )
        if st.button("Import another file"):
            st.session_state.statement_import = create_statement_import(store, audit_logger)
            st.rerun()


if __name__ == "__main__":
    main()
