"""
Ledger Document Store

Holds the authoritative in-memory budget document for one session and
keeps the remote copy eventually consistent with it.

PROTOCOL:
1. Bootstrap: fetch the document by key. If absent (or the fetch fails),
   start from the default document. It is not written until the first
   local edit.
2. Local edit: the new document replaces the local one immediately.
   A full-document upsert is scheduled `debounce_seconds` after the most
   recent edit; a newer edit cancels and reschedules it, so a burst of
   edits produces one write.
3. Remote change: the pushed document replaces the local one wholesale.

CONFLICT POLICY (debounce/clobber race):
- A remote update that arrives while a local write is still waiting on
  its debounce timer wins: the local document is replaced and the
  pending write is dropped, so stale edits never overwrite it.
- A write whose network call has already been issued cannot be
  cancelled; whichever physical write lands last persists remotely.
- Notifications echoing any of this session's writes that has not been
  superseded by a later echo are ignored, so a lagging change feed
  cannot roll the session back to its own older state.

Nothing here retries. A failed write leaves the edits in memory and the
next edit schedules a fresh attempt.
"""

import asyncio
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from budget_tracker.audit import AuditLogger
from budget_tracker.config import get_settings
from budget_tracker.ledger import operations
from budget_tracker.models.budget import (
    BudgetDocument,
    SaveStatus,
    Transaction,
    TransactionDraft,
)
from budget_tracker.services.storage import (
    DocumentPayload,
    DocumentStoreInterface,
    StorageError,
    Unsubscribe,
)


DocumentListener = Callable[[BudgetDocument], None]

# Own writes remembered for echo suppression
MAX_UNECHOED_WRITES = 16


class LedgerDocumentStore:
    """
    Optimistic, debounced, last-write-wins store for the shared budget document.

    All methods must be called from the event loop the store was started on.
    """

    def __init__(
        self,
        remote: DocumentStoreInterface,
        document_key: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        saved_display_seconds: Optional[float] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize the store.

        Args:
            remote: Remote document collaborator
            document_key: Key of the shared document (settings default if None)
            debounce_seconds: Quiet period before a push (settings default if None)
            saved_display_seconds: How long 'saved' shows (settings default if None)
            audit_logger: Where sync events are logged
        """
        if None in (document_key, debounce_seconds, saved_display_seconds):
            sync_settings = get_settings().sync
            document_key = document_key if document_key is not None else sync_settings.document_key
            if debounce_seconds is None:
                debounce_seconds = sync_settings.debounce_seconds
            if saved_display_seconds is None:
                saved_display_seconds = sync_settings.saved_display_seconds

        self._remote = remote
        self._key = document_key
        self._debounce = debounce_seconds
        self._saved_display = saved_display_seconds
        self._audit = audit_logger or AuditLogger()

        self._document = operations.default_document()
        self._status = SaveStatus.IDLE
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._revert: Optional[asyncio.TimerHandle] = None
        self._write_lock = asyncio.Lock()
        self._write_tasks: set[asyncio.Task] = set()
        self._unechoed: list[DocumentPayload] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._listeners: list[DocumentListener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def document(self) -> BudgetDocument:
        """The current local document (always reflects the latest local edit)."""
        return self._document

    @property
    def document_key(self) -> str:
        return self._key

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def started(self) -> bool:
        return self._loop is not None

    @property
    def has_pending_write(self) -> bool:
        """A debounced write is scheduled but not yet issued."""
        return self._pending is not None

    def add_listener(self, listener: DocumentListener) -> Callable[[], None]:
        """
        Be told about every replacement of the local document.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> BudgetDocument:
        """
        Bootstrap from the remote copy and subscribe to its changes.

        Never raises for remote failures: they are logged and the store
        falls back to the default document.
        """
        self._loop = asyncio.get_running_loop()

        document = None
        try:
            payload = await self._remote.fetch(self._key)
        except StorageError as e:
            self._audit.log_fetch_failed(self._key, str(e))
        else:
            if payload is None:
                self._audit.log_document_created(self._key)
            else:
                try:
                    document = BudgetDocument.from_payload(payload)
                except ValidationError as e:
                    self._audit.log_fetch_failed(self._key, f"Invalid document: {e}")
                else:
                    self._audit.log_document_loaded(
                        self._key, len(document.all_transactions())
                    )

        self._replace(document or operations.default_document())

        try:
            self._unsubscribe = await self._remote.subscribe(
                self._key, self._on_remote_change
            )
        except StorageError as e:
            self._audit.log_subscribe_failed(self._key, str(e))

        return self._document

    async def flush(self) -> bool:
        """
        Issue the pending write now instead of waiting for the timer.

        Also waits for writes already in flight. Returns False if the
        write failed.
        """
        ok = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            ok = await self._push(self._document)
        if self._write_tasks:
            results = await asyncio.gather(*list(self._write_tasks))
            ok = ok and all(results)
        return ok

    async def stop(self, flush_pending: bool = False) -> None:
        """Unsubscribe and cancel timers, optionally pushing pending edits first."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if flush_pending:
            await self.flush()
        elif self._pending is not None:
            self._pending.cancel()
            self._pending = None

        if self._write_tasks:
            await asyncio.gather(*list(self._write_tasks))
        self._cancel_revert()
        self._status = SaveStatus.IDLE

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def apply(self, operation: Callable[..., BudgetDocument], *args: Any, **kwargs: Any) -> BudgetDocument:
        """
        Apply a pure ledger operation to the local document and schedule a push.

        The operation receives the current document followed by args.
        """
        if self._loop is None:
            raise RuntimeError("LedgerDocumentStore.start() must be awaited before editing")

        self._replace(operation(self._document, *args, **kwargs))
        self._schedule_push()
        return self._document

    def set_income(self, amount: float) -> BudgetDocument:
        return self.apply(operations.set_income, amount)

    def add_transaction(self, month_key: str, transaction: Transaction) -> BudgetDocument:
        return self.apply(operations.add_transaction, month_key, transaction)

    def record_transaction(self, transaction: Transaction) -> BudgetDocument:
        return self.apply(operations.record_transaction, transaction)

    def delete_transaction(self, month_key: str, transaction_id: int) -> BudgetDocument:
        return self.apply(operations.delete_transaction, month_key, transaction_id)

    def update_transaction_category(
        self,
        month_key: str,
        transaction_id: int,
        category: str,
    ) -> BudgetDocument:
        return self.apply(
            operations.update_transaction_category, month_key, transaction_id, category
        )

    def update_limit(self, month_key: str, category: str, amount: float) -> BudgetDocument:
        return self.apply(operations.update_limit, month_key, category, amount)

    def merge_bulk_transactions(self, drafts: Iterable[TransactionDraft]) -> BudgetDocument:
        return self.apply(operations.merge_bulk_transactions, list(drafts))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _replace(self, document: BudgetDocument) -> None:
        self._document = document
        for listener in list(self._listeners):
            listener(document)

    def _cancel_revert(self) -> None:
        if self._revert is not None:
            self._revert.cancel()
            self._revert = None

    def _schedule_push(self) -> None:
        # At most one pending write per session
        if self._pending is not None:
            self._pending.cancel()
        self._cancel_revert()
        self._pending = self._loop.call_later(self._debounce, self._on_debounce_elapsed)
        self._status = SaveStatus.SAVING

    def _on_debounce_elapsed(self) -> None:
        self._pending = None
        task = self._loop.create_task(self._push(self._document))
        self._write_tasks.add(task)
        task.add_done_callback(self._write_tasks.discard)

    def _other_writes_in_flight(self) -> bool:
        current = asyncio.current_task()
        return any(task is not current for task in self._write_tasks)

    async def _push(self, document: BudgetDocument) -> bool:
        payload = document.to_payload()
        async with self._write_lock:
            self._unechoed.append(payload)
            del self._unechoed[:-MAX_UNECHOED_WRITES]
            try:
                await self._remote.upsert(self._key, payload)
            except StorageError as e:
                self._unechoed = [p for p in self._unechoed if p is not payload]
                self._audit.log_save_failed(self._key, str(e))
                if self._pending is None and not self._other_writes_in_flight():
                    self._status = SaveStatus.IDLE
                return False

        self._audit.log_document_saved(self._key, len(document.all_transactions()))
        if self._pending is None and not self._other_writes_in_flight():
            self._status = SaveStatus.SAVED
            self._cancel_revert()
            self._revert = self._loop.call_later(self._saved_display, self._on_saved_display_elapsed)
        return True

    def _on_saved_display_elapsed(self) -> None:
        self._revert = None
        if self._status == SaveStatus.SAVED:
            self._status = SaveStatus.IDLE

    def _is_own_echo(self, payload: DocumentPayload) -> bool:
        """
        True if the payload is one of this session's writes.

        Writes older than the matched one can no longer be echoed and are
        forgotten; the matched one stays to absorb repeated notifications.
        """
        for idx, pushed in enumerate(self._unechoed):
            if payload == pushed:
                del self._unechoed[:idx]
                return True
        return False

    def _on_remote_change(self, payload: DocumentPayload) -> None:
        if self._is_own_echo(payload):
            return

        try:
            document = BudgetDocument.from_payload(payload)
        except ValidationError as e:
            self._audit.log_remote_update_rejected(self._key, str(e))
            return

        discarded = self._pending is not None
        if discarded:
            self._pending.cancel()
            self._pending = None
            if not self._write_tasks:
                self._status = SaveStatus.IDLE

        self._replace(document)
        self._audit.log_remote_update_applied(self._key, discarded)
