"""Shared utilities for scoring, similarity, and time handling."""

from .scores import days_since, ensure_utc, freshness, utcnow
from .similarity import similarity, tokenize

__all__ = [
    "days_since",
    "ensure_utc",
    "freshness",
    "utcnow",
    "similarity",
    "tokenize",
]
