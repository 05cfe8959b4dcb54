"""Pipeline stages: candidate pool (Stage A), content ranking, tag-based path, orchestration."""

from .candidate_pool import get_candidate_pool, recent_pool
from .diversity import shuffle_tail
from .orchestrator import Recommender
from .ranking import build_history_text, rank_candidates
from .tag_based import rank_by_tags, top_tags

__all__ = [
    "Recommender",
    "build_history_text",
    "get_candidate_pool",
    "rank_by_tags",
    "rank_candidates",
    "recent_pool",
    "shuffle_tail",
    "top_tags",
]
