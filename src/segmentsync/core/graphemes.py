"""Approximate extended grapheme cluster segmentation.

Python strings index by code point, so surrogate pairs never split.  What
still needs care is combining marks, variation selectors, emoji modifiers,
zero-width-joiner sequences and regional-indicator flag pairs; those are
glued onto the preceding base character here.
"""

from __future__ import annotations

import unicodedata
from typing import List


_ZWJ = "\u200d"


def _extends(ch: str) -> bool:
    """True when *ch* attaches to the previous character."""
    if unicodedata.combining(ch):
        return True
    if unicodedata.category(ch) in ("Mn", "Me", "Mc"):
        return True
    code = ord(ch)
    if 0xFE00 <= code <= 0xFE0F or 0xE0100 <= code <= 0xE01EF:  # variation selectors
        return True
    if 0x1F3FB <= code <= 0x1F3FF:  # skin tone modifiers
        return True
    if 0xE0020 <= code <= 0xE007F:  # tag characters
        return True
    return ch == _ZWJ


def _is_regional_indicator(ch: str) -> bool:
    return 0x1F1E6 <= ord(ch) <= 0x1F1FF


def graphemes(text: str) -> List[str]:
    """Split *text* into grapheme clusters."""
    clusters: List[str] = []
    for ch in text:
        if clusters:
            prev = clusters[-1]
            if _extends(ch) or prev.endswith(_ZWJ):
                clusters[-1] = prev + ch
                continue
            if (
                _is_regional_indicator(ch)
                and len(prev) == 1
                and _is_regional_indicator(prev)
            ):
                clusters[-1] = prev + ch
                continue
        clusters.append(ch)
    return clusters


def grapheme_len(text: str) -> int:
    return len(graphemes(text))


def take_graphemes(text: str, count: int) -> str:
    """Return the first *count* grapheme clusters of *text*."""
    if count <= 0:
        return ""
    return "".join(graphemes(text)[:count])


def last_grapheme(text: str) -> str:
    clusters = graphemes(text)
    return clusters[-1] if clusters else ""


def first_grapheme(text: str) -> str:
    clusters = graphemes(text)
    return clusters[0] if clusters else ""
