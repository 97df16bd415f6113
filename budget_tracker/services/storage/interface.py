"""
Abstract Document Store Interface

DESIGN DECISION: The budget lives in a single JSON document stored
remotely under a fixed key. The core depends on exactly three
operations of the remote store:
1. fetch the document
2. upsert (replace) the document
3. subscribe to change notifications

Keeping the interface this small lets us:
1. Swap Google Sheets for another realtime backend later
2. Use in-memory storage for testing
3. Keep sync logic decoupled from the storage implementation

Documents cross this boundary as plain JSON-compatible dicts.
Validation into models happens in the sync store.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


DocumentPayload = dict[str, Any]
ChangeCallback = Callable[[DocumentPayload], None]
Unsubscribe = Callable[[], None]


class DocumentStoreInterface(ABC):
    """
    Abstract interface for a single-row key/value store with push notifications.

    Any remote backend must implement these methods.
    """

    @abstractmethod
    async def fetch(self, key: str) -> Optional[DocumentPayload]:
        """
        Retrieve the document stored under a key.

        Args:
            key: The document key

        Returns:
            The document if it exists, None otherwise

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def upsert(self, key: str, document: DocumentPayload) -> bool:
        """
        Replace the document stored under a key, creating it if absent.

        The write is unconditional: whatever is stored is overwritten.

        Args:
            key: The document key
            document: The full document

        Returns:
            True if written successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def subscribe(self, key: str, on_change: ChangeCallback) -> Unsubscribe:
        """
        Get notified whenever the document under a key changes.

        Args:
            key: The document key
            on_change: Called with the new document payload

        Returns:
            A callable that cancels the subscription

        Raises:
            StorageError: If the subscription cannot be set up
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
