"""
Component Wiring for Budget Tracker

Builds the remote document store, the audit logger and the
LedgerDocumentStore from settings.

DESIGN DECISION: If Google Sheets is not configured the app still runs,
against an in-memory store. Edits then live only as long as the process,
which is stated plainly in the UI rather than hidden.
"""

from typing import Optional

from budget_tracker.audit import AuditLogger, get_logger
from budget_tracker.config import get_settings
from budget_tracker.ingestion import StatementImport
from budget_tracker.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)
from budget_tracker.sync import LedgerDocumentStore


logger = get_logger(__name__)


def create_remote_store(use_storage: bool = True) -> tuple[DocumentStoreInterface, bool]:
    """
    Create the remote document collaborator.

    Returns:
        (remote_store, is_persistent)
    """
    if use_storage:
        try:
            client = GoogleSheetsClient()
            return GoogleSheetsDocumentStore(client), True
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
    return InMemoryDocumentStore(), False


def create_app_components(
    use_storage: bool = True,
    remote: Optional[DocumentStoreInterface] = None,
) -> tuple[LedgerDocumentStore, AuditLogger, bool]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets.
                    Set to False for offline use and tests.
        remote: Explicit remote store (overrides use_storage)

    Returns:
        (ledger_store, audit_logger, is_persistent)
    """
    settings = get_settings().sync
    audit_logger = AuditLogger()

    if remote is not None:
        is_persistent = not isinstance(remote, InMemoryDocumentStore)
    else:
        remote, is_persistent = create_remote_store(use_storage)

    store = LedgerDocumentStore(
        remote,
        document_key=settings.document_key,
        debounce_seconds=settings.debounce_seconds,
        saved_display_seconds=settings.saved_display_seconds,
        audit_logger=audit_logger,
    )
    return store, audit_logger, is_persistent


def create_statement_import(
    store: LedgerDocumentStore,
    audit_logger: Optional[AuditLogger] = None,
) -> StatementImport:
    """Start an import session against the store's current categories."""
    return StatementImport(
        categories=store.document.categories,
        audit_logger=audit_logger,
    )
