"""
Audit Logger

DESIGN DECISION: Every remote interaction and every import is logged.
This provides:
1. Traceability of which session wrote what
2. Debugging capability for sync races
3. A history of committed imports

The audit logger:
- Is synchronous: it is called from timer callbacks and mutation paths
- Never raises (logging must not break the main flow)
- Supports correlation IDs to trace the events of one import
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from budget_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None) -> Any:
    """Module-level structured logger."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log. Recent events are also kept
    in memory so the UI can show a short activity trail.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("budget_tracker.audit")
        self._history_size = history_size
        self._history: list[AuditEvent] = []

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[0]

        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

    def log_document_loaded(self, document_key: str, transaction_count: int) -> None:
        self.log(AuditEventBuilder.document_loaded(document_key, transaction_count))

    def log_document_created(self, document_key: str) -> None:
        self.log(AuditEventBuilder.document_created(document_key))

    def log_fetch_failed(self, document_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.fetch_failed(document_key, error_message))

    def log_document_saved(self, document_key: str, transaction_count: int) -> None:
        self.log(AuditEventBuilder.document_saved(document_key, transaction_count))

    def log_save_failed(self, document_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(document_key, error_message))

    def log_subscribe_failed(self, document_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.subscribe_failed(document_key, error_message))

    def log_remote_update_applied(self, document_key: str, discarded_pending: bool) -> None:
        self.log(AuditEventBuilder.remote_update_applied(document_key, discarded_pending))

    def log_remote_update_rejected(self, document_key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.remote_update_rejected(document_key, error_message))

    def log_statement_parsed(
        self,
        correlation_id: UUID,
        candidate_count: int,
        auto_matched: int,
    ) -> None:
        self.log(AuditEventBuilder.statement_parsed(
            correlation_id=correlation_id,
            candidate_count=candidate_count,
            auto_matched=auto_matched,
        ))

    def log_statement_rejected(
        self,
        correlation_id: UUID,
        outcome: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.statement_rejected(
            correlation_id=correlation_id,
            outcome=outcome,
            error_message=error_message,
        ))

    def log_import_committed(
        self,
        correlation_id: UUID,
        transaction_count: int,
        months: list[str],
    ) -> None:
        self.log(AuditEventBuilder.import_committed(
            correlation_id=correlation_id,
            transaction_count=transaction_count,
            months=months,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new import session and pass it through
    parsing, review and commit.
    """
    return uuid4()
