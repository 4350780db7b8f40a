"""
Label Matching Utilities

Compares labels rendered on a page (user-tools info, option lists, headings)
with the titles we expect from the catalog link.

Problem: catalog titles and page labels drift apart in punctuation and
abbreviation ("Iceland & Greenland" vs. "iceland greenland", "Vik" vs.
"Vik, Iceland").
Solution: normalise both sides, then accept equality, containment in either
direction, or a shared significant word. The match is deliberately loose.
"""

import re
from typing import List


# Words this short ("of", "&", "st") are too common to count as evidence.
_MIN_WORD_LENGTH = 3

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """Lower-case, drop '&' and '+', collapse whitespace and trim.

    Args:
        text: Any label; None and empty strings are accepted.

    Returns:
        The normalised label, or '' for empty input.
    """
    if not text:
        return ''
    normalized = text.lower().replace('&', '').replace('+', '')
    return _WHITESPACE_RE.sub(' ', normalized).strip()


def _significant_words(normalized: str) -> List[str]:
    return [w for w in normalized.split(' ') if len(w) >= _MIN_WORD_LENGTH]


def texts_match(text1: str, text2: str) -> bool:
    """Check if two labels plausibly name the same thing.

    Examples:
    - "Iceland & Greenland" matches "iceland greenland"
    - "Vik" matches "Vik, Iceland"
    - "" never matches anything

    Args:
        text1: First label.
        text2: Second label.

    Returns:
        True if the labels are equal after normalisation, one contains the
        other, or any word longer than two characters of one appears in the
        other.
    """
    normalized1 = normalize_text(text1)
    normalized2 = normalize_text(text2)
    if not normalized1 or not normalized2:
        return False

    if normalized1 == normalized2:
        return True

    if normalized1 in normalized2 or normalized2 in normalized1:
        return True

    return (
        any(word in normalized1 for word in _significant_words(normalized2))
        or any(word in normalized2 for word in _significant_words(normalized1))
    )


def contains_either_way(text1: str, text2: str) -> bool:
    """Case-insensitive containment in either direction (no normalisation).

    Used for option lists whose labels are short and exact, such as ship
    names and activity filters.
    """
    if not text1 or not text2:
        return False
    lower1, lower2 = text1.lower(), text2.lower()
    return lower1 in lower2 or lower2 in lower1
