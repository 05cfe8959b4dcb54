"""
Engagement aggregator: turns reader open/heartbeat/close reports into read events.

Resolves the current session through the injected SessionManager and delegates
the merge to the store. Store errors propagate to the caller unchanged.
"""

import logging
from datetime import datetime
from typing import Optional

from recommender import HeartbeatSample, ReadEvent
from recommender.utils import utcnow

from ..models.common import ReaderMetrics, ReaderThread
from .sessions import SessionManager
from .store import Store

logger = logging.getLogger(__name__)


class EngagementAggregator:
    """Records reading activity for the current session."""

    def __init__(self, store: Store, sessions: SessionManager):
        self.store = store
        self.sessions = sessions

    async def _sample(
        self,
        thread: ReaderThread,
        metrics: ReaderMetrics,
        now: datetime,
    ) -> HeartbeatSample:
        session_id = await self.sessions.get_or_create(now)
        return HeartbeatSample(
            session_id=session_id,
            thread_id=thread.thread_id,
            url=thread.url,
            active_ms_delta=metrics.active_ms_delta,
            max_scroll_pct=metrics.max_scroll_pct,
            at=now,
        )

    async def open(
        self,
        thread: ReaderThread,
        now: Optional[datetime] = None,
    ) -> ReadEvent:
        """Store the opened thread (no longer new) and start its read event with zero deltas."""
        now = now or utcnow()
        await self.store.upsert_thread(thread.to_thread(now, is_new=False))
        sample = await self._sample(thread, ReaderMetrics(), now)
        logger.debug("[engagement] OPEN thread_id=%s", thread.thread_id)
        return await self.store.update_read_event(sample, now)

    async def heartbeat(
        self,
        thread: ReaderThread,
        metrics: ReaderMetrics,
        now: Optional[datetime] = None,
    ) -> ReadEvent:
        now = now or utcnow()
        sample = await self._sample(thread, metrics, now)
        logger.debug(
            "[engagement] HEARTBEAT thread_id=%s active_ms_delta=%s max_scroll_pct=%s",
            thread.thread_id, metrics.active_ms_delta, metrics.max_scroll_pct,
        )
        return await self.store.update_read_event(sample, now)

    async def close(
        self,
        thread: ReaderThread,
        metrics: ReaderMetrics,
        now: Optional[datetime] = None,
    ) -> ReadEvent:
        """Fold the last partial interval in; creates the event if none exists."""
        now = now or utcnow()
        sample = await self._sample(thread, metrics, now)
        event = await self.store.finalize_read_event(sample, now)
        logger.info(
            "[engagement] CLOSE thread_id=%s dwell_ms=%d completed=%d",
            thread.thread_id, event.dwell_ms_effective, event.completed,
        )
        return event
