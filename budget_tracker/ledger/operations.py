"""
Ledger Operations

Pure mutations of the budget document. Each function takes the current
document and returns a NEW document; the input is never modified.

DESIGN DECISION: Keeping mutations pure means the sync store can apply
them optimistically, and tests can check them without any I/O.
"""

from typing import Iterable

from budget_tracker.models.budget import (
    BudgetDocument,
    MonthLedger,
    Transaction,
    TransactionDraft,
    month_for_date,
)


DEFAULT_INCOME = 20000.0

DEFAULT_CATEGORIES = [
    "🏠 Rent/Mortgage",
    "🛒 Groceries",
    "⚡ Utilities",
    "🎢 Kids/Family",
    "⚾ Cubs Trip",
    "🚗 Transport",
    "✈️ Travel",
    "🍔 Dining Out",
    "💰 Savings",
]


def default_document() -> BudgetDocument:
    """Document used when no remote copy exists yet."""
    return BudgetDocument(
        income=DEFAULT_INCOME,
        categories=list(DEFAULT_CATEGORIES),
        monthly_data={},
    )


def next_transaction_id(doc: BudgetDocument) -> int:
    """
    Next free transaction id for this document.

    Ids are unique across every month, so the counter is one past the
    largest id filed anywhere in the document.
    """
    return max((t.id for t in doc.all_transactions()), default=0) + 1


def _with_ledger(doc: BudgetDocument, month_key: str) -> tuple[BudgetDocument, MonthLedger]:
    """Deep copy the document and return it with the (possibly new) month ledger."""
    updated = doc.model_copy(deep=True)
    ledger = updated.monthly_data.get(month_key)
    if ledger is None:
        ledger = MonthLedger()
        updated.monthly_data[month_key] = ledger
    return updated, ledger


def set_income(doc: BudgetDocument, amount: float) -> BudgetDocument:
    """Replace the baseline income. Zero and negative values are accepted."""
    return doc.model_copy(update={"income": float(amount)}, deep=True)


def add_transaction(
    doc: BudgetDocument,
    month_key: str,
    transaction: Transaction,
) -> BudgetDocument:
    """Prepend a transaction to a month's ledger."""
    updated, ledger = _with_ledger(doc, month_key)
    ledger.expenses.insert(0, transaction.model_copy(deep=True))
    return updated


def delete_transaction(
    doc: BudgetDocument,
    month_key: str,
    transaction_id: int,
) -> BudgetDocument:
    """Remove a transaction by id. Unknown ids are a no-op."""
    updated = doc.model_copy(deep=True)
    ledger = updated.monthly_data.get(month_key)
    if ledger is not None:
        ledger.expenses = [t for t in ledger.expenses if t.id != transaction_id]
    return updated


def update_transaction_category(
    doc: BudgetDocument,
    month_key: str,
    transaction_id: int,
    category: str,
) -> BudgetDocument:
    """Re-categorize a transaction in place. Unknown ids are a no-op."""
    updated = doc.model_copy(deep=True)
    ledger = updated.monthly_data.get(month_key)
    if ledger is not None:
        transaction = ledger.find(transaction_id)
        if transaction is not None:
            transaction.category = category
    return updated


def update_limit(
    doc: BudgetDocument,
    month_key: str,
    category: str,
    amount: float,
) -> BudgetDocument:
    """Set a category's monthly limit. The amount is stored as given."""
    updated, ledger = _with_ledger(doc, month_key)
    ledger.limits[category] = amount
    return updated


def merge_bulk_transactions(
    doc: BudgetDocument,
    drafts: Iterable[TransactionDraft],
) -> BudgetDocument:
    """
    File a batch of drafts into the months they belong to.

    Each draft is bucketed purely by its own date and given a fresh id.
    There is no de-duplication: merging the same draft twice files it twice.
    """
    updated = doc.model_copy(deep=True)
    next_id = next_transaction_id(updated)

    for draft in drafts:
        month_key = month_for_date(draft.date)
        ledger = updated.monthly_data.get(month_key)
        if ledger is None:
            ledger = MonthLedger()
            updated.monthly_data[month_key] = ledger

        ledger.expenses.insert(0, Transaction(
            id=next_id,
            description=draft.description,
            amount=draft.amount,
            category=draft.category,
            date=draft.date,
            type=draft.type,
        ))
        next_id += 1

    return updated


def record_transaction(doc: BudgetDocument, transaction: Transaction) -> BudgetDocument:
    """File a transaction under the month of its own date."""
    return add_transaction(doc, month_for_date(transaction.date), transaction)
