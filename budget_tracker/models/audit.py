"""
Audit Models for Budget Tracker

Every remote interaction and every statement import is recorded as an
audit event. This provides:
1. Traceability of what each session wrote and when
2. Debugging information when sync misbehaves
3. A record of which imports were committed

DESIGN DECISION: Audit events are logged, never raised. A failure to
record one must not affect the document or the import.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Remote document
    DOCUMENT_LOADED = "document_loaded"
    DOCUMENT_CREATED = "document_created"
    FETCH_FAILED = "fetch_failed"
    DOCUMENT_SAVED = "document_saved"
    SAVE_FAILED = "save_failed"
    SUBSCRIBE_FAILED = "subscribe_failed"
    REMOTE_UPDATE_APPLIED = "remote_update_applied"
    REMOTE_UPDATE_REJECTED = "remote_update_rejected"
    PENDING_WRITE_DISCARDED = "pending_write_discarded"

    # Statement ingestion
    STATEMENT_PARSED = "statement_parsed"
    STATEMENT_REJECTED = "statement_rejected"
    IMPORT_COMMITTED = "import_committed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Which document or import this is about
    document_key: Optional[str] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together the events of one import session"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "document_key": self.document_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.document_saved("1", transaction_count=12)
        event = AuditEventBuilder.import_committed(correlation_id, 40)
    """

    @staticmethod
    def document_loaded(document_key: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_LOADED,
            document_key=document_key,
            description="Budget document loaded from remote store",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def document_created(document_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_CREATED,
            document_key=document_key,
            description="No remote document found, starting from defaults",
        )

    @staticmethod
    def fetch_failed(document_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            document_key=document_key,
            description="Initial fetch failed, falling back to default document",
            error_message=error_message,
        )

    @staticmethod
    def document_saved(document_key: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_SAVED,
            document_key=document_key,
            description="Budget document pushed to remote store",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def save_failed(document_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            document_key=document_key,
            description="Remote write failed; edits kept locally",
            error_message=error_message,
        )

    @staticmethod
    def subscribe_failed(document_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIBE_FAILED,
            severity=AuditSeverity.ERROR,
            document_key=document_key,
            description="Could not subscribe to remote changes",
            error_message=error_message,
        )

    @staticmethod
    def remote_update_applied(document_key: str, discarded_pending: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_UPDATE_APPLIED,
            severity=AuditSeverity.WARNING if discarded_pending else AuditSeverity.INFO,
            document_key=document_key,
            description=(
                "Remote update replaced local document and discarded a pending write"
                if discarded_pending
                else "Remote update replaced local document"
            ),
            details={"discarded_pending": discarded_pending},
        )

    @staticmethod
    def remote_update_rejected(document_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_UPDATE_REJECTED,
            severity=AuditSeverity.WARNING,
            document_key=document_key,
            description="Ignored a remote update that is not a valid budget document",
            error_message=error_message,
        )

    @staticmethod
    def statement_parsed(
        correlation_id: UUID,
        candidate_count: int,
        auto_matched: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_PARSED,
            correlation_id=correlation_id,
            description=f"Statement parsed: {candidate_count} expense rows",
            details={
                "candidate_count": candidate_count,
                "auto_matched": auto_matched,
            },
        )

    @staticmethod
    def statement_rejected(
        correlation_id: UUID,
        outcome: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Statement not imported: {outcome}",
            details={"outcome": outcome},
            error_message=error_message,
        )

    @staticmethod
    def import_committed(
        correlation_id: UUID,
        transaction_count: int,
        months: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMMITTED,
            correlation_id=correlation_id,
            description=f"Imported {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "months": months,
            },
        )
