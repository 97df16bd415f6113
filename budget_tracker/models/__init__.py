"""
Data Models Package

This package contains all Pydantic models used in the Budget Tracker.
The shared document and everything merged into it must conform to these schemas.
"""

from budget_tracker.models.budget import (
    MONTH_NAMES,
    BudgetDocument,
    CandidateTransaction,
    ImportOutcome,
    ImportStep,
    MonthLedger,
    SaveStatus,
    Transaction,
    TransactionDraft,
    TransactionType,
    month_for_date,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "MONTH_NAMES",
    "BudgetDocument",
    "CandidateTransaction",
    "ImportOutcome",
    "ImportStep",
    "MonthLedger",
    "SaveStatus",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "month_for_date",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
