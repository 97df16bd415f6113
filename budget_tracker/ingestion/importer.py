"""
Statement Import Session

Drives one import from file to ledger:

    upload  -> load(text)          parse, categorize, stop on errors
    review  -> override_category() user fixes suggestions row by row
    done    <- confirm(store)      batch handed to merge_bulk_transactions

CRITICAL: Nothing reaches the document store before confirm().
Errors never escape as exceptions; they become a message for the UI and
the session stays on the upload step.
"""

from typing import Mapping, Optional

from pydantic import BaseModel

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.ingestion.categories import VENDOR_CATEGORY_MAP
from budget_tracker.ingestion.parser import StatementFormatError, parse_statement
from budget_tracker.models.budget import (
    CandidateTransaction,
    ImportOutcome,
    ImportStep,
    TransactionType,
    month_for_date,
)
from budget_tracker.sync.store import LedgerDocumentStore


FORMAT_ERROR_MESSAGE = (
    "Could not read this file. Make sure you exported it as a CSV from Chase."
)
NO_EXPENSES_MESSAGE = (
    "No expense transactions found in this file. "
    "Chase credits and payments are excluded automatically."
)
MISSING_CATEGORY_MESSAGE = "Pick a category for every expense before importing."


class ImportResult(BaseModel):
    """What happened when a file was loaded."""

    outcome: ImportOutcome
    message: Optional[str] = None
    candidate_count: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome == ImportOutcome.OK


class StatementImport:
    """
    One upload/review/confirm cycle.

    Args:
        categories: The budget's category list; the first one is the
            placeholder for rows the bank label could not be mapped from
        mapping: Bank label -> user category
        audit_logger: Where import events are logged
    """

    def __init__(
        self,
        categories: list[str],
        mapping: Mapping[str, str] = VENDOR_CATEGORY_MAP,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._categories = list(categories)
        self._mapping = mapping
        self._audit = audit_logger or AuditLogger()
        self.correlation_id = create_correlation_id()
        self.step = ImportStep.UPLOAD
        self.error: Optional[str] = None
        self.imported_count = 0
        self._candidates: list[CandidateTransaction] = []

    @property
    def candidates(self) -> list[CandidateTransaction]:
        return list(self._candidates)

    @property
    def default_category(self) -> Optional[str]:
        return self._categories[0] if self._categories else None

    @property
    def status_message(self) -> str:
        """One-line description of the current step."""
        if self.step == ImportStep.REVIEW:
            return (
                f"{len(self._candidates)} expenses found: "
                "review categories before importing"
            )
        if self.step == ImportStep.DONE:
            return (
                f"{self.imported_count} transactions imported "
                "across your monthly ledgers"
            )
        return "Upload your Chase transaction export"

    def load(self, text: str) -> ImportResult:
        """Parse a statement and move to review if it has expenses."""
        self.step = ImportStep.UPLOAD
        self.error = None
        self._candidates = []

        try:
            candidates = parse_statement(
                text,
                default_category=self.default_category,
                mapping=self._mapping,
            )
        except StatementFormatError as e:
            self.error = FORMAT_ERROR_MESSAGE
            self._audit.log_statement_rejected(
                self.correlation_id, ImportOutcome.FORMAT_ERROR.value, str(e)
            )
            return ImportResult(outcome=ImportOutcome.FORMAT_ERROR, message=self.error)

        if not candidates:
            self.error = NO_EXPENSES_MESSAGE
            self._audit.log_statement_rejected(
                self.correlation_id, ImportOutcome.NO_EXPENSES.value, NO_EXPENSES_MESSAGE
            )
            return ImportResult(outcome=ImportOutcome.NO_EXPENSES, message=self.error)

        self._candidates = candidates
        self.step = ImportStep.REVIEW
        self._audit.log_statement_parsed(
            self.correlation_id,
            candidate_count=len(candidates),
            auto_matched=sum(1 for c in candidates if c.was_auto_matched),
        )
        return ImportResult(outcome=ImportOutcome.OK, candidate_count=len(candidates))

    def load_bytes(self, data: bytes, encoding: str = "utf-8") -> ImportResult:
        """Decode uploaded file content and load it."""
        return self.load(data.decode(encoding, errors="replace"))

    def override_category(self, index: int, category: str) -> CandidateTransaction:
        """
        Replace the category of one reviewed row.

        Raises:
            RuntimeError: If the session is not in review
            IndexError: If there is no such row
            ValueError: If the category is not one of the budget's categories
        """
        if self.step != ImportStep.REVIEW:
            raise RuntimeError("Categories can only be changed during review")
        if category not in self._categories:
            raise ValueError(f"Unknown category: {category}")

        updated = self._candidates[index].model_copy(update={"category": category})
        self._candidates[index] = updated
        return updated

    def confirm(self, store: LedgerDocumentStore) -> int:
        """
        Commit the reviewed batch into the ledger.

        Returns the number of transactions imported (0 if the batch was
        refused because a row has no category).
        """
        if self.step != ImportStep.REVIEW:
            raise RuntimeError("Nothing to import: load a statement first")

        if any(
            c.type == TransactionType.EXPENSE and not c.category
            for c in self._candidates
        ):
            self.error = MISSING_CATEGORY_MESSAGE
            return 0

        store.merge_bulk_transactions(c.to_draft() for c in self._candidates)

        self.error = None
        self.imported_count = len(self._candidates)
        self.step = ImportStep.DONE
        self._audit.log_import_committed(
            self.correlation_id,
            transaction_count=self.imported_count,
            months=sorted({month_for_date(c.date) for c in self._candidates}),
        )
        return self.imported_count

    def reset(self) -> None:
        """Start over with a new file."""
        self.correlation_id = create_correlation_id()
        self.step = ImportStep.UPLOAD
        self.error = None
        self.imported_count = 0
        self._candidates = []
