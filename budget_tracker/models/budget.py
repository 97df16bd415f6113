"""
Core Data Models for Budget Tracker

These models define the shape of the single shared budget document and
of the rows flowing through statement ingestion. They are designed to:
1. Round-trip losslessly to the JSON document stored remotely
2. Enforce the storage invariants (non-negative amounts, ISO dates)
3. Tolerate fields added by newer clients (no migrations)

DESIGN DECISION: The remote document uses camelCase keys (`monthlyData`).
Models use snake_case attributes with aliases, and `to_payload()` always
serializes by alias so every client reads the same shape.
"""

import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def month_for_date(value: dt.date) -> str:
    """Return the ledger key (calendar month name) a date is filed under."""
    return MONTH_NAMES[value.month - 1]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    Amounts are always stored positive; the type carries spend vs. income.
    """
    EXPENSE = "expense"
    INCOME = "income"


class SaveStatus(str, Enum):
    """Save indicator exposed to the presentation layer."""
    IDLE = "idle"      # Nothing pending
    SAVING = "saving"  # Debounce timer active or write in flight
    SAVED = "saved"    # Write acknowledged, shown briefly


class ImportStep(str, Enum):
    """Where a statement import session currently is."""
    UPLOAD = "upload"
    REVIEW = "review"
    DONE = "done"


class ImportOutcome(str, Enum):
    """Result of loading a statement file."""
    OK = "ok"
    FORMAT_ERROR = "format_error"
    NO_EXPENSES = "no_expenses"


# =============================================================================
# DOCUMENT MODELS
# =============================================================================

class DocumentModel(BaseModel):
    """
    Base for everything stored in the shared document.

    Unknown keys are kept so that a document written by a newer client
    survives a round trip through an older one.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )


class TransactionDraft(DocumentModel):
    """
    A transaction that has not been filed yet (no id).

    Both the manual entry form and statement ingestion produce drafts.
    """

    description: str = Field(
        ...,
        description="What the money was spent on (or received for)"
    )
    amount: float = Field(
        ...,
        allow_inf_nan=False,
        description="Absolute amount; sign is carried by `type`"
    )
    category: Optional[str] = Field(
        default=None,
        description="User category label (income entries may have none)"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date; decides which month ledger holds it"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="expense or income"
    )

    @field_validator('amount')
    @classmethod
    def store_absolute_amount(cls, v: float) -> float:
        """Amounts are stored as absolute values."""
        return abs(v)

    @property
    def month(self) -> str:
        """Ledger key this transaction belongs to."""
        return month_for_date(self.date)


class Transaction(TransactionDraft):
    """A filed transaction. `id` is unique within the whole document."""

    id: int = Field(
        ...,
        description="Identity key used for update and delete"
    )


class MonthLedger(DocumentModel):
    """Transactions and spending limits of one calendar month."""

    expenses: list[Transaction] = Field(
        default_factory=list,
        description="Newest first"
    )
    limits: dict[str, float] = Field(
        default_factory=dict,
        description="Per-category monthly ceiling; absent means no limit"
    )

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Return the transaction with this id, if filed here."""
        for transaction in self.expenses:
            if transaction.id == transaction_id:
                return transaction
        return None


class BudgetDocument(DocumentModel):
    """
    The single shared root object.

    CRITICAL: The document is only ever replaced wholesale. Local edits
    build a new value from the previous one; remote updates replace it.
    """

    income: float = Field(
        default=0.0,
        description="Global monthly baseline income"
    )
    categories: list[str] = Field(
        default_factory=list,
        description="Category labels in display order"
    )
    monthly_data: dict[str, MonthLedger] = Field(
        default_factory=dict,
        alias="monthlyData",
        description="Month name -> ledger; absent means no data yet"
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BudgetDocument":
        """Build a document from its remote JSON representation."""
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the remote JSON representation."""
        return self.model_dump(mode="json", by_alias=True)

    def ledger(self, month_key: str) -> MonthLedger:
        """Return a month's ledger, or an empty one if none exists yet."""
        return self.monthly_data.get(month_key) or MonthLedger()

    def all_transactions(self) -> list[Transaction]:
        """Every filed transaction, across all months."""
        return [
            transaction
            for ledger in self.monthly_data.values()
            for transaction in ledger.expenses
        ]


# =============================================================================
# INGESTION MODELS
# =============================================================================

class CandidateTransaction(TransactionDraft):
    """
    A statement row awaiting user review.

    CRITICAL: This is PROPOSED data. Nothing reaches the ledger until
    the user confirms the batch.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
    )

    source_category: Optional[str] = Field(
        default=None,
        description="Category label assigned by the bank export"
    )
    suggested_category: Optional[str] = Field(
        default=None,
        description="User category mapped from the bank label, if any"
    )

    @property
    def was_auto_matched(self) -> bool:
        return self.suggested_category is not None

    def to_draft(self) -> TransactionDraft:
        """Strip review-only fields."""
        return TransactionDraft(
            description=self.description,
            amount=self.amount,
            category=self.category,
            date=self.date,
            type=self.type,
        )
