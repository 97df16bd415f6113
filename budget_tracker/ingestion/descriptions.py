"""
Description Cleanup

Bank descriptions are full of processor noise ("POS DEBIT", ACH
originator fields, web ids, long reference numbers). This strips the
noise for display; stored descriptions are left untouched.
"""

import re
from typing import Optional


_NOISE_PATTERNS = [
    (re.compile(r"^POS DEBIT\s+", re.IGNORECASE), ""),
    (re.compile(r"ORIG CO NAME:\s*", re.IGNORECASE), ""),
    (re.compile(r"\s*CO ENTRY DESCR:.*$", re.IGNORECASE), ""),
    (re.compile(r"\s+WEB ID:.*$", re.IGNORECASE | re.DOTALL), ""),
    (re.compile(r"\s+PPD ID:.*$", re.IGNORECASE | re.DOTALL), ""),
    # Trailing date codes like 02/23
    (re.compile(r"\s+\d{2}/\d{2,3}$"), ""),
    # Long numeric reference ids
    (re.compile(r"\b\d{9,}\b"), ""),
    (re.compile(r"\s{2,}"), " "),
]

_WORD_START = re.compile(r"\b\w")


def clean_description(description: Optional[str]) -> Optional[str]:
    """
    Readable form of a raw bank description, in title case.

    Falls back to the trimmed original if cleaning leaves nothing.
    """
    if not description:
        return description

    cleaned = description
    for pattern, replacement in _NOISE_PATTERNS:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = cleaned.strip()

    cleaned = _WORD_START.sub(lambda m: m.group(0).upper(), cleaned.lower())
    return cleaned.strip() or description.strip()
