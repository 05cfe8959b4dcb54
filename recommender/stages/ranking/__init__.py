"""
Content ranking: blend similarity, freshness and author affinity into a sorted list.

Public API: rank_candidates, build_history_text, newest_first.
- core: main orchestration (rank_candidates).
- Submodules: blended_scoring, history.
"""

from .core import newest_first, rank_candidates
from .history import build_history_text, completed_thread_ids

__all__ = [
    "build_history_text",
    "completed_thread_ids",
    "newest_first",
    "rank_candidates",
]
