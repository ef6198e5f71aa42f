"""
Fuzzy product search.

Products are scored against the query on name and description with
rapidfuzz; a product matches when either field scores at least
MATCH_THRESHOLD (0-100).
"""

import re
from typing import Any, Iterable, Sequence

from rapidfuzz import fuzz

# Similarity cutoff, equivalent to a 0.4 fuzzy distance threshold
MATCH_THRESHOLD = 60.0

SEARCH_KEYS = ("name", "description")

_STRIP = re.compile(r"[^a-z0-9\s]")


def normalize_query(text: str) -> str:
    """Lowercase and drop everything except letters, digits and spaces."""
    return _STRIP.sub("", (text or "").lower()).strip()


def _field(item: Any, key: str) -> str:
    value = item.get(key) if isinstance(item, dict) else getattr(item, key, None)
    return normalize_query(value or "")


def score_product(query: str, item: Any, keys: Iterable[str] = SEARCH_KEYS) -> float:
    """Best partial-ratio score of ``query`` over the searchable fields."""
    best = 0.0
    for key in keys:
        text = _field(item, key)
        if text:
            best = max(best, fuzz.partial_ratio(query, text))
    return best


def search_products(
    items: Sequence[Any],
    query: str,
    threshold: float = MATCH_THRESHOLD,
) -> list[Any]:
    """
    Rank ``items`` against ``query``.

    Args:
        items: Products (ORM rows or dicts)
        query: Raw search text; normalized before matching
        threshold: Minimum score to count as a match

    Returns:
        Matching items, best match first. An empty (normalized) query
        returns no results.
    """
    normalized = normalize_query(query)
    if not normalized:
        return []

    scored = []
    for index, item in enumerate(items):
        score = score_product(normalized, item)
        if score >= threshold:
            scored.append((score, index, item))

    scored.sort(key=lambda entry: (-entry[0], entry[1]))
    return [item for _, _, item in scored]
