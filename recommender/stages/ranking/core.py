"""
Main ranking orchestration: blended scoring, threshold relaxation, forced-refresh
diversity, truncation and the newest-unread fallback top-up.

Submodules used: blended_scoring, ..diversity.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional

from ...models.config import DEFAULT_CONFIG, RecommendationConfig
from ...models.scoring import ScoredThread
from ...models.thread import Thread
from ..diversity import shuffle_tail
from .blended_scoring import build_scored_thread

logger = logging.getLogger(__name__)


def _apply_score_threshold(
    scored: List[ScoredThread],
    config: RecommendationConfig,
) -> List[ScoredThread]:
    """Keep score > score_threshold; relax to score > 0 when too few survive."""
    kept = [s for s in scored if s.recommendation_score > config.score_threshold]
    if len(kept) < config.min_scored_results:
        logger.debug(
            "[recommender] SCORE_THRESHOLD_RELAXED survivors=%d min=%d",
            len(kept), config.min_scored_results,
        )
        kept = [s for s in scored if s.recommendation_score > 0]
    return kept


def newest_first(threads: List[Thread]) -> List[Thread]:
    """Sort by published_at (or created_at) descending; undated threads last."""
    dated = [t for t in threads if t.published_or_created() is not None]
    undated = [t for t in threads if t.published_or_created() is None]
    dated.sort(key=lambda t: t.published_or_created(), reverse=True)
    return dated + undated


def _fallback_top_up(
    ranked: List[ScoredThread],
    unread_pool: List[Thread],
    limit: int,
    config: RecommendationConfig,
) -> List[ScoredThread]:
    """
    Append up to max_fallback_threads of the newest unread threads not already
    ranked. Entries carry zero scores and is_fallback=True.
    """
    present = {s.thread_id for s in ranked}
    extras: List[ScoredThread] = []
    for thread in newest_first(unread_pool):
        if len(extras) >= config.max_fallback_threads:
            break
        if thread.thread_id in present:
            continue
        present.add(thread.thread_id)
        extras.append(ScoredThread.from_thread(thread, is_fallback=True))
    logger.info("[recommender] FALLBACK_TOP_UP added=%d", len(extras))
    return (ranked + extras)[:limit]


def rank_candidates(
    history_text: str,
    candidates: List[Thread],
    unread_pool: List[Thread],
    limit: int = 10,
    force_refresh: bool = False,
    now: Optional[datetime] = None,
    config: RecommendationConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> List[ScoredThread]:
    """
    Rank candidates by blended score and apply the post-ranking policies.

    Args:
        history_text: Concatenated text of the user's completed threads.
        candidates: Filtered candidate pool (Stage A output).
        unread_pool: Recent, forum-filtered threads minus read ones; source of
            the fallback top-up.
        limit: Maximum number of results.
        force_refresh: Shuffle the tail below the fixed top fraction.
        now: Reference time for freshness.
        config: Weights, thresholds and fallback sizes.
        rng: Random source for the forced-refresh shuffle.

    Returns:
        Up to limit ScoredThreads, best first, fallback entries last.
    """
    # 1) Score every candidate
    scored = [build_scored_thread(t, history_text, config, now) for t in candidates]

    # 2) Threshold with relaxation, then stable sort by score
    ranked = _apply_score_threshold(scored, config)
    ranked.sort(key=lambda s: s.recommendation_score, reverse=True)

    # 3) Forced refresh: keep the top fraction, shuffle the rest
    if force_refresh:
        ranked = shuffle_tail(ranked, limit, config.fixed_top_fraction, rng)

    ranked = ranked[:limit]

    # 4) Too few results: top up with the newest unread threads
    if len(ranked) < config.min_results_before_fallback:
        ranked = _fallback_top_up(ranked, unread_pool, limit, config)

    return ranked
