"""
Pipeline orchestrator — loads engagement and thread data from the store, runs
Stage A (candidate pool) then the content ranker or the tag-based path, and
merges both for mixed recommendations.

The entry point is the Recommender class. Every public method is a failure
boundary: errors are logged and an empty list is returned, so recommendation
problems never break engagement tracking or ingestion.
"""

import asyncio
import logging
import math
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple

from ..models.config import RecommendationConfig, resolve_config
from ..models.engagement import DislikedThread, ReadEvent, ensure_read_events
from ..models.scoring import ScoredThread
from ..models.thread import Thread, ensure_threads
from ..utils.scores import utcnow
from .candidate_pool import ALL_FORUMS, exclude_threads, recent_pool
from .ranking import build_history_text, rank_candidates
from .tag_based import rank_by_tags, top_tags

logger = logging.getLogger(__name__)


class RecommendationStore(Protocol):
    """Read side of the store the recommender depends on."""

    async def get_all_threads(self) -> List[Thread]:
        ...

    async def get_all_read_events(self) -> List[ReadEvent]:
        ...

    async def get_all_disliked_threads(self) -> List[DislikedThread]:
        ...


class ClickSource(Protocol):
    """Clicked-recommendation suppression set."""

    async def get_clicked(self) -> Set[str]:
        ...

    async def clear_clicked(self) -> None:
        ...


def _dedupe_by_thread_id(threads: List[Thread]) -> List[Thread]:
    """Keep the first occurrence of each thread_id."""
    seen: Set[str] = set()
    unique = []
    for thread in threads:
        if thread.thread_id in seen:
            continue
        seen.add(thread.thread_id)
        unique.append(thread)
    return unique


class Recommender:
    """
    Recommendation façade over a store and a click tracker.

    Holds the config, random source and clock so tests can pin shuffles and
    freshness. Read-only with respect to the store; only mixed recommendations
    with force_refresh mutate the click tracker (clearing it).
    """

    def __init__(
        self,
        store: RecommendationStore,
        clicks: ClickSource,
        config: Optional[RecommendationConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.clicks = clicks
        self.config = resolve_config(config)
        self.rng = rng or random.Random()
        self.clock = clock

    async def _load(
        self,
    ) -> Tuple[List[ReadEvent], List[Thread], Set[str], Set[str]]:
        """Fetch read events, threads, disliked ids and clicked ids concurrently."""
        read_events, threads, disliked, clicked = await asyncio.gather(
            self.store.get_all_read_events(),
            self.store.get_all_threads(),
            self.store.get_all_disliked_threads(),
            self.clicks.get_clicked(),
        )
        disliked_ids = {d.thread_id for d in disliked}
        return (
            ensure_read_events(read_events),
            ensure_threads(threads),
            disliked_ids,
            set(clicked),
        )

    async def generate_recommendations(
        self,
        limit: int = 10,
        forum: str = ALL_FORUMS,
        force_refresh: bool = False,
    ) -> List[ScoredThread]:
        """
        Content-similarity recommendations for unread threads.

        Returns [] when there is no reading history or no thread at all.
        """
        try:
            read_events, threads, disliked_ids, clicked_ids = await self._load()
            logger.info(
                "[recommender] DATA_LOADED read_events=%d threads=%d disliked=%d clicked=%d",
                len(read_events), len(threads), len(disliked_ids), len(clicked_ids),
            )
            if not read_events or not threads:
                logger.info("[recommender] NO_HISTORY_OR_THREADS")
                return []

            now = self.clock()
            threads_by_id: Dict[str, Thread] = {t.thread_id: t for t in threads}
            history_text = build_history_text(read_events, threads_by_id)

            pool = recent_pool(threads, forum, now, self.config)
            if not pool:
                logger.info("[recommender] EMPTY_POOL forum=%s", forum)
                return []

            read_ids = {e.thread_id for e in read_events}
            candidates = exclude_threads(
                pool, read_ids, disliked_ids, clicked_ids, force_refresh
            )
            unread_pool = exclude_threads(pool, read_ids, set(), set())
            ranked = rank_candidates(
                history_text,
                candidates,
                unread_pool,
                limit=limit,
                force_refresh=force_refresh,
                now=now,
                config=self.config,
                rng=self.rng,
            )
            logger.info(
                "[recommender] GENERATED count=%d forum=%s force_refresh=%s",
                len(ranked), forum, force_refresh,
            )
            return ranked
        except Exception:
            logger.exception("[recommender] Failed to generate recommendations")
            return []

    async def get_tag_based_recommendations(
        self,
        limit: int = 5,
        forum: str = ALL_FORUMS,
        force_refresh: bool = False,
    ) -> List[Thread]:
        """Newest unread threads sharing the user's most frequent completed-read tags."""
        try:
            read_events, threads, disliked_ids, clicked_ids = await self._load()
            if not read_events:
                return []

            threads_by_id = {t.thread_id: t for t in threads}
            tags = top_tags(read_events, threads_by_id, self.config.top_tag_count)
            if not tags:
                return []

            read_ids = {e.thread_id for e in read_events}
            return rank_by_tags(
                threads,
                tags,
                read_ids,
                disliked_ids,
                clicked_ids,
                limit=limit,
                forum=forum,
                force_refresh=force_refresh,
                config=self.config,
                rng=self.rng,
            )
        except Exception:
            logger.exception("[recommender] Failed to get tag-based recommendations")
            return []

    async def get_mixed_recommendations(
        self,
        limit: int = 10,
        forum: str = ALL_FORUMS,
        force_refresh: bool = False,
    ) -> List[Thread]:
        """
        Content results first, then tag-based results, deduplicated by thread_id.

        A forced refresh clears the clicked set before scoring.
        """
        try:
            if force_refresh:
                logger.info("[recommender] FORCE_REFRESH clearing clicked recommendations")
                await self.clicks.clear_clicked()

            content_limit = math.ceil(limit * self.config.mixed_content_share)
            tag_limit = math.ceil(limit * self.config.mixed_tag_share)
            content_recs, tag_recs = await asyncio.gather(
                self.generate_recommendations(content_limit, forum, force_refresh),
                self.get_tag_based_recommendations(tag_limit, forum, force_refresh),
            )
            unique = _dedupe_by_thread_id([*content_recs, *tag_recs])[:limit]
            logger.info(
                "[recommender] MIXED count=%d forum=%s force_refresh=%s",
                len(unique), forum, force_refresh,
            )
            return unique
        except Exception:
            logger.exception("[recommender] Failed to get mixed recommendations")
            return []
