"""
In-Memory Document Store

A single-process implementation of the document store. Used by tests and
when no remote backend is configured (the app then works offline).

Every successful upsert notifies every subscriber of that key, the
writer included, the same way a realtime channel echoes writes back.
"""

import json
from typing import Optional

from budget_tracker.services.storage.interface import (
    ChangeCallback,
    DocumentPayload,
    DocumentStoreInterface,
    StorageError,
    Unsubscribe,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dict-backed document store.

    Documents are stored as JSON text so callers can never share
    mutable state with the store.

    Set `fetch_error`, `upsert_error` or `subscribe_error` to make the
    corresponding operation fail with that exception.
    """

    def __init__(self, documents: Optional[dict[str, DocumentPayload]] = None):
        self._documents: dict[str, str] = {
            key: json.dumps(value) for key, value in (documents or {}).items()
        }
        self._subscribers: dict[str, list[ChangeCallback]] = {}
        self.writes: list[tuple[str, DocumentPayload]] = []
        self.upsert_attempts = 0
        self.fetch_error: Optional[Exception] = None
        self.upsert_error: Optional[Exception] = None
        self.subscribe_error: Optional[Exception] = None

    def get(self, key: str) -> Optional[DocumentPayload]:
        """Synchronous peek at the stored document."""
        raw = self._documents.get(key)
        return json.loads(raw) if raw is not None else None

    def subscriber_count(self, key: str) -> int:
        return len(self._subscribers.get(key, []))

    async def fetch(self, key: str) -> Optional[DocumentPayload]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.get(key)

    async def upsert(self, key: str, document: DocumentPayload) -> bool:
        self.upsert_attempts += 1
        if self.upsert_error is not None:
            raise self.upsert_error
        try:
            raw = json.dumps(document)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document is not JSON serializable: {e}")

        self._documents[key] = raw
        self.writes.append((key, json.loads(raw)))
        self.publish(key, document)
        return True

    def publish(self, key: str, document: DocumentPayload) -> None:
        """
        Deliver a change notification without storing anything.

        Lets tests replay a late or out-of-order notification.
        """
        raw = json.dumps(document)
        for callback in list(self._subscribers.get(key, [])):
            callback(json.loads(raw))

    async def subscribe(self, key: str, on_change: ChangeCallback) -> Unsubscribe:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self._subscribers.setdefault(key, []).append(on_change)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key, [])
            if on_change in callbacks:
                callbacks.remove(on_change)

        return unsubscribe

    def snapshot(self) -> dict[str, DocumentPayload]:
        """Copy of every stored document."""
        return {key: json.loads(raw) for key, raw in self._documents.items()}
