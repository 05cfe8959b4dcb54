"""
Stage A: Candidate Pool Pre-Selection

Narrows the thread set to recent threads of the requested forum, then applies
the behavioral exclusions: read threads always, disliked and clicked threads
unless the request is a forced refresh.

The public entry points are recent_pool and get_candidate_pool.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Set

from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.thread import Thread
from ..utils.scores import utcnow

logger = logging.getLogger(__name__)

ALL_FORUMS = "all"


def _within_recency_window(
    thread: Thread,
    cutoff: datetime,
) -> bool:
    """True if the thread was published (or first stored) after cutoff."""
    ts = thread.published_or_created()
    return ts is not None and ts > cutoff


def filter_by_forum(threads: List[Thread], forum: str) -> List[Thread]:
    """Keep threads of one forum; "all" keeps everything."""
    if forum == ALL_FORUMS:
        return list(threads)
    return [t for t in threads if t.forum_id == forum]


def recent_pool(
    threads: List[Thread],
    forum: str = ALL_FORUMS,
    now: Optional[datetime] = None,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> List[Thread]:
    """
    Threads inside the recency window, restricted to forum.

    The window is advisory: when fewer than min_recent_threads fall inside it,
    the whole thread set is used so low-volume forums still get candidates.
    """
    now = now or utcnow()
    cutoff = now - timedelta(days=config.recency_window_days)
    recent = [t for t in threads if _within_recency_window(t, cutoff)]
    if len(recent) < config.min_recent_threads:
        logger.debug(
            "[recommender] RECENCY_WINDOW_RELAXED recent=%d total=%d",
            len(recent), len(threads),
        )
        recent = list(threads)
    return filter_by_forum(recent, forum)


def exclude_threads(
    threads: List[Thread],
    read_ids: Set[str],
    disliked_ids: Set[str],
    clicked_ids: Set[str],
    force_refresh: bool = False,
) -> List[Thread]:
    """
    Drop read threads unconditionally; drop disliked and clicked threads unless
    force_refresh. Order of the input is preserved.
    """
    kept = []
    for thread in threads:
        tid = thread.thread_id
        if tid in read_ids:
            logger.debug("[recommender] FILTER_READ thread_id=%s", tid)
            continue
        if not force_refresh and tid in disliked_ids:
            logger.debug("[recommender] FILTER_DISLIKED thread_id=%s", tid)
            continue
        if not force_refresh and tid in clicked_ids:
            logger.debug("[recommender] FILTER_CLICKED thread_id=%s", tid)
            continue
        kept.append(thread)
    return kept


def get_candidate_pool(
    threads: List[Thread],
    read_ids: Set[str],
    disliked_ids: Set[str],
    clicked_ids: Set[str],
    forum: str = ALL_FORUMS,
    force_refresh: bool = False,
    now: Optional[datetime] = None,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> List[Thread]:
    """
    Stage A: recency window (advisory), forum filter, then exclusions.

    A thread in read_ids never appears in the result, whatever force_refresh is.
    """
    pool = recent_pool(threads, forum, now, config)
    return exclude_threads(pool, read_ids, disliked_ids, clicked_ids, force_refresh)
