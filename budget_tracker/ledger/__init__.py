"""Ledger operations and summaries."""

from budget_tracker.ledger.operations import (
    DEFAULT_CATEGORIES,
    DEFAULT_INCOME,
    add_transaction,
    default_document,
    delete_transaction,
    merge_bulk_transactions,
    next_transaction_id,
    record_transaction,
    set_income,
    update_limit,
    update_transaction_category,
)
from budget_tracker.ledger.summary import (
    CategoryTotal,
    MonthSummary,
    group_by_date,
    summarize_month,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_INCOME",
    "add_transaction",
    "default_document",
    "delete_transaction",
    "merge_bulk_transactions",
    "next_transaction_id",
    "record_transaction",
    "set_income",
    "update_limit",
    "update_transaction_category",
    "CategoryTotal",
    "MonthSummary",
    "group_by_date",
    "summarize_month",
]
