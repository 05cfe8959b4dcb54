"""
Similarity utilities — lexical token overlap between reading history and a candidate.
"""

import unicodedata
from typing import List


def _is_separator(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch).startswith("P")


def tokenize(text: str) -> List[str]:
    """
    Lowercase text and split on whitespace and Unicode punctuation.

    Tokens of a single character are dropped.
    """
    if not text:
        return []
    lowered = text.lower()
    spaced = "".join(" " if _is_separator(ch) else ch for ch in lowered)
    return [tok for tok in spaced.split() if len(tok) > 1]


def similarity(history_text: str, candidate_text: str) -> float:
    """
    Jaccard index of the two token sets: |intersection| / |union|.

    Returns 0.0 when either side has no tokens or nothing overlaps.
    """
    tokens_a = tokenize(history_text)
    tokens_b = tokenize(candidate_text)
    if not tokens_a or not tokens_b:
        return 0.0
    set_a = set(tokens_a)
    set_b = set(tokens_b)
    intersection = set_a & set_b
    if not intersection:
        return 0.0
    return len(intersection) / len(set_a | set_b)
