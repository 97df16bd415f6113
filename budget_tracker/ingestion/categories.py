"""
Vendor Category Mapping

Chase exports carry their own category label per row. This table maps
those labels onto the default category vocabulary of the budget.

DESIGN DECISION: The mapping is plain data, not branching logic, so it
can be tested and extended without touching the parser. Lookups are
exact matches; anything else is left for the user to categorize.
"""

from types import MappingProxyType
from typing import Mapping, Optional


VENDOR_CATEGORY_MAP: Mapping[str, str] = MappingProxyType({
    "Food & Drink": "🍔 Dining Out",
    "Groceries": "🛒 Groceries",
    "Travel": "✈️ Travel",
    "Gas": "🚗 Transport",
    "Automotive": "🚗 Transport",
    "Bills & Utilities": "⚡ Utilities",
    "Home": "🏠 Rent/Mortgage",
    "Mortgage & Rent": "🏠 Rent/Mortgage",
    "Entertainment": "🎢 Kids/Family",
    "Health & Wellness": "🛒 Groceries",
    "Fees & Adjustments": "⚡ Utilities",
})


def suggest_category(
    source_category: Optional[str],
    mapping: Mapping[str, str] = VENDOR_CATEGORY_MAP,
) -> Optional[str]:
    """User category for a vendor label, or None when unmapped."""
    if not source_category:
        return None
    return mapping.get(source_category)


def categorize(
    source_category: Optional[str],
    default_category: Optional[str],
    mapping: Mapping[str, str] = VENDOR_CATEGORY_MAP,
) -> Optional[str]:
    """Mapped category, falling back to the caller's default."""
    return suggest_category(source_category, mapping) or default_category
