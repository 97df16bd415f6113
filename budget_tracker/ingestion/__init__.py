"""Statement ingestion package."""

from budget_tracker.ingestion.categories import (
    VENDOR_CATEGORY_MAP,
    categorize,
    suggest_category,
)
from budget_tracker.ingestion.descriptions import clean_description
from budget_tracker.ingestion.parser import (
    ColumnLayout,
    IngestionError,
    StatementFormatError,
    parse_statement,
)
from budget_tracker.ingestion.importer import ImportResult, StatementImport

__all__ = [
    "VENDOR_CATEGORY_MAP",
    "categorize",
    "suggest_category",
    "clean_description",
    "ColumnLayout",
    "IngestionError",
    "StatementFormatError",
    "parse_statement",
    "ImportResult",
    "StatementImport",
]
