"""
Text utilities for product names with accents and umlauts.

Used for catalog search and ordering.
"""

import unicodedata
from typing import Optional


def fold_name(name: Optional[str]) -> str:
    """
    Fold a product name for comparison.

    Removes accent marks and case:
    - "Äpfel" → "apfel"
    - "Crème Fraîche" → "creme fraiche"
    - "STRASSE" and "Straße" both → "strasse"

    Args:
        name: Product name (may be None)

    Returns:
        Folded string, empty for None
    """
    if not name:
        return ""

    # NFD splits base characters from their combining marks
    normalized = unicodedata.normalize('NFD', name)
    without_marks = ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )

    return without_marks.casefold()


def collation_key(name: str) -> tuple[str, str, str]:
    """
    Sort key approximating locale-aware ordering.

    Primary level ignores accents and case, the second level breaks
    ties on case-folded text with accents, the original string last
    so the order is total.
    """
    return (fold_name(name), name.casefold(), name)


def matches_query(name: str, query: Optional[str]) -> bool:
    """Case-insensitive substring match. An empty query matches everything."""
    if not query:
        return True
    return query.casefold() in name.casefold()
