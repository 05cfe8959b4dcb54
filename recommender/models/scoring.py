"""
Scoring model — a Thread carrying its recommendation score components.
"""

from .thread import Thread


class ScoredThread(Thread):
    """
    A thread with all its scoring components.

    recommendation_score = w_sim * content_similarity + w_fresh * freshness_score
    + w_author * author_affinity. Fallback top-up entries carry zero scores and
    is_fallback=True.
    """

    recommendation_score: float = 0.0
    content_similarity: float = 0.0
    freshness_score: float = 0.0
    author_affinity: float = 0.0
    is_fallback: bool = False

    @classmethod
    def from_thread(cls, thread: Thread, **scores) -> "ScoredThread":
        return cls.model_validate({**thread.model_dump(), **scores})
