"""
Per-candidate blended scoring: lexical similarity, freshness, author affinity.

Builds a ScoredThread for one candidate given the reading-history text.
"""

from datetime import datetime
from typing import Optional

from ...models.config import RecommendationConfig
from ...models.scoring import ScoredThread
from ...models.thread import Thread
from ...utils.scores import freshness
from ...utils.similarity import similarity


def build_scored_thread(
    thread: Thread,
    history_text: str,
    config: RecommendationConfig,
    now: Optional[datetime] = None,
) -> ScoredThread:
    """
    score = weight_similarity * sim + weight_freshness * fresh + weight_author * author.

    author_affinity is always 0: no author identity is ingested.
    """
    sim_score = similarity(history_text, thread.text())
    fresh_score = freshness(
        thread.published_or_created(), now, config.freshness_horizon_days
    )
    author_affinity = 0.0
    final = (
        config.weight_similarity * sim_score
        + config.weight_freshness * fresh_score
        + config.weight_author * author_affinity
    )
    return ScoredThread.from_thread(
        thread,
        recommendation_score=final,
        content_similarity=sim_score,
        freshness_score=fresh_score,
        author_affinity=author_affinity,
    )
