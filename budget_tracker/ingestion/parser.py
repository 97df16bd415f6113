"""
Bank Statement Parser

Turns a Chase CSV export into candidate expense transactions.

Two export layouts are understood without the caller saying which:
- credit card: header starts with "Transaction Date"
- checking account: header starts with "Details" and dates are in "Posting Date"

Pipeline:
1. Normalize text (BOM, line endings, blank lines)
2. Find the header line
3. Resolve column positions by exact name
4. Parse rows, keep debits only, normalize fields
5. Suggest a user category from the export's own category label

CRITICAL: A missing header or required column is a format error.
A single malformed row is NOT: it is skipped so that one bad line
cannot sink a statement with hundreds of good ones.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from pydantic import BaseModel

from budget_tracker.ingestion.categories import VENDOR_CATEGORY_MAP, categorize, suggest_category
from budget_tracker.models.budget import CandidateTransaction, TransactionType


HEADER_PREFIXES = ("Transaction Date", "Date,", "Details,")

# Priority order: credit card, checking, generic
DATE_COLUMNS = ("Transaction Date", "Posting Date", "Date")
DESCRIPTION_COLUMN = "Description"
AMOUNT_COLUMN = "Amount"
CATEGORY_COLUMN = "Category"
TYPE_COLUMN = "Type"

EXCLUDED_TYPES = frozenset({"Payment", "Return", "Credit"})

BYTE_ORDER_MARK = "\ufeff"


class IngestionError(Exception):
    """Base exception for statement ingestion."""
    pass


class StatementFormatError(IngestionError):
    """The file is not a recognizable statement export."""
    pass


class ColumnLayout(BaseModel):
    """Column positions resolved from the header line."""

    date: int
    description: int
    amount: int
    category: Optional[int] = None
    type: Optional[int] = None


def normalize_lines(text: str) -> list[str]:
    """Strip a leading BOM, unify line endings and drop blank lines."""
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]
    text = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    return [line for line in text.split("\n") if line.strip()]


def find_header_index(lines: list[str]) -> Optional[int]:
    """Index of the first line that looks like a known export header."""
    for idx, line in enumerate(lines):
        normalized = line.replace('"', "").strip()
        if normalized.startswith(HEADER_PREFIXES):
            return idx
    return None


def split_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into trimmed cells.

    A quote character toggles quoted mode and is dropped; commas inside
    quotes do not split.
    """
    cells = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    cells.append("".join(current).strip())
    return cells


def _clean(value: str) -> str:
    return value.replace('"', "").strip()


def resolve_columns(header_line: str) -> ColumnLayout:
    """
    Find the columns the parser needs.

    Raises:
        StatementFormatError: If date, description or amount is missing
    """
    headers = [_clean(h) for h in split_csv_line(header_line)]

    def index_of(name: str) -> Optional[int]:
        return headers.index(name) if name in headers else None

    date_idx = next(
        (idx for idx in (index_of(name) for name in DATE_COLUMNS) if idx is not None),
        None,
    )
    description_idx = index_of(DESCRIPTION_COLUMN)
    amount_idx = index_of(AMOUNT_COLUMN)

    missing = [
        name for name, idx in (
            ("date", date_idx),
            (DESCRIPTION_COLUMN, description_idx),
            (AMOUNT_COLUMN, amount_idx),
        )
        if idx is None
    ]
    if missing:
        raise StatementFormatError(
            f"Statement header is missing required columns: {', '.join(missing)}"
        )

    return ColumnLayout(
        date=date_idx,
        description=description_idx,
        amount=amount_idx,
        category=index_of(CATEGORY_COLUMN),
        type=index_of(TYPE_COLUMN),
    )


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a signed decimal amount. Returns None instead of raising."""
    if raw is None:
        return None
    try:
        value = Decimal(_clean(raw))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_statement_date(raw: Optional[str]) -> Optional[dt.date]:
    """Parse MM/DD/YYYY (ISO dates are accepted as is). Returns None when invalid."""
    if not raw:
        return None
    value = _clean(raw)
    parts = value.split("/")
    try:
        if len(parts) == 3:
            month, day, year = (int(part) for part in parts)
            return dt.date(year, month, day)
        return dt.date.fromisoformat(value)
    except ValueError:
        return None


def _cell(cells: list[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(cells):
        return None
    return _clean(cells[idx])


def parse_statement(
    text: str,
    default_category: Optional[str] = None,
    mapping: Mapping[str, str] = VENDOR_CATEGORY_MAP,
) -> list[CandidateTransaction]:
    """
    Parse a statement export into expense candidates.

    Args:
        text: Raw file content
        default_category: Category for rows whose bank label is unmapped
        mapping: Bank label -> user category

    Returns:
        Candidates in file order. An empty list means the file was valid
        but had no debits.

    Raises:
        StatementFormatError: If no header or required column is found
    """
    lines = normalize_lines(text)
    header_idx = find_header_index(lines)
    if header_idx is None:
        raise StatementFormatError("No recognizable statement header found")

    layout = resolve_columns(lines[header_idx])

    candidates = []
    for line in lines[header_idx + 1:]:
        cells = split_csv_line(line)

        amount = parse_amount(_cell(cells, layout.amount))
        # Debits are negative; credits, refunds and payments are not imported
        if amount is None or amount >= 0:
            continue
        if layout.type is not None and _cell(cells, layout.type) in EXCLUDED_TYPES:
            continue

        date = parse_statement_date(_cell(cells, layout.date))
        if date is None:
            continue

        source_category = _cell(cells, layout.category) or None
        suggested = suggest_category(source_category, mapping)

        candidates.append(CandidateTransaction(
            date=date,
            description=_cell(cells, layout.description) or "",
            amount=float(abs(amount)),
            type=TransactionType.EXPENSE,
            source_category=source_category,
            suggested_category=suggested,
            category=categorize(source_category, default_category, mapping),
        ))

    return candidates
