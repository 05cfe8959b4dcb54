"""
Tag-based recommendations — newest unread threads carrying the user's favorite tags.

An alternate ranking path that ignores lexical similarity: the most frequent
tags across completed reads select the pool, publication time orders it.
"""

import logging
import random
from collections import Counter
from typing import Dict, List, Optional, Set

from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.engagement import ReadEvent
from ..models.thread import Thread
from .candidate_pool import ALL_FORUMS, exclude_threads, filter_by_forum
from .diversity import shuffle_tail
from .ranking.core import newest_first

logger = logging.getLogger(__name__)


def top_tags(
    read_events: List[ReadEvent],
    threads_by_id: Dict[str, Thread],
    count: int = 5,
) -> List[str]:
    """
    Most frequent tags over the threads of completed read events.

    Every completed event counts its thread's tags once. Ties keep
    first-encountered order.
    """
    counts: Counter = Counter()
    for event in read_events:
        if not event.is_completed:
            continue
        thread = threads_by_id.get(event.thread_id)
        if thread is None:
            continue
        counts.update(thread.tags)
    return [tag for tag, _ in counts.most_common(count)]


def rank_by_tags(
    threads: List[Thread],
    tags: List[str],
    read_ids: Set[str],
    disliked_ids: Set[str],
    clicked_ids: Set[str],
    limit: int = 5,
    forum: str = ALL_FORUMS,
    force_refresh: bool = False,
    config: RecommendationConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> List[Thread]:
    """
    Threads with at least one of tags, filtered like the candidate pool
    (read, disliked, clicked, forum), newest first, truncated to limit.
    """
    if not tags:
        return []
    wanted = set(tags)
    matching = [t for t in threads if wanted.intersection(t.tags)]
    pool = exclude_threads(matching, read_ids, disliked_ids, clicked_ids, force_refresh)
    pool = filter_by_forum(pool, forum)
    logger.debug(
        "[recommender] TAG_POOL tags=%s matching=%d eligible=%d",
        tags, len(matching), len(pool),
    )

    ranked = newest_first(pool)
    if force_refresh:
        ranked = shuffle_tail(ranked, limit, config.fixed_top_fraction, rng)
    return ranked[:limit]
