"""Document synchronization package."""

from budget_tracker.sync.store import DocumentListener, LedgerDocumentStore

__all__ = ["DocumentListener", "LedgerDocumentStore"]
