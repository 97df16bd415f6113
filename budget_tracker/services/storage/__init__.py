"""
Storage Services Package

Provides the abstract document store interface and concrete implementations.
Google Sheets is the hosted backend; the in-memory store serves tests and
offline use.
"""

from budget_tracker.services.storage.interface import (
    ChangeCallback,
    ConnectionError,
    DocumentPayload,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    Unsubscribe,
)
from budget_tracker.services.storage.memory import InMemoryDocumentStore
from budget_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interface
    "ChangeCallback",
    "DocumentPayload",
    "DocumentStoreInterface",
    "Unsubscribe",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
