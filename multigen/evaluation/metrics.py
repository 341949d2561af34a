"""Small text and numeric helpers shared by scoring and consensus."""

from __future__ import annotations

import math
from typing import Iterable


def normalize_text(text: str) -> str:
    """Normalize whitespace and case for robust text comparisons."""
    return " ".join(text.lower().split())


def token_set(text: str) -> set[str]:
    """Convert text to a normalized token set."""
    return set(normalize_text(text).split())


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard similarity on normalized token sets.

    Two empty texts count as identical.
    """
    sa, sb = token_set(a), token_set(b)
    if not sa and not sb:
        return 1.0
    union = sa | sb
    if not union:
        return 0.0
    return len(sa & sb) / len(union)


def mean(values: Iterable[float]) -> float:
    """Safe arithmetic mean."""
    values_list = list(values)
    if not values_list:
        return 0.0
    return sum(values_list) / len(values_list)


def entropy_from_probs(probs: list[float]) -> float:
    """Normalized Shannon entropy in [0, 1] when possible."""
    filtered = [p for p in probs if p > 0]
    if not filtered:
        return 0.0
    raw = -sum(p * math.log(p) for p in filtered)
    if len(filtered) == 1:
        return 0.0
    return raw / math.log(len(filtered))


def lexical_diversity(text: str) -> float:
    """Type-token ratio for one text."""
    tokens = normalize_text(text).split()
    if not tokens:
        return 0.0
    return len(set(tokens)) / len(tokens)
