"""
Thread ingestion: source adapters that fetch normalized thread records and
store the ones not seen before.

Each adapter enforces a minimum interval between fetches and keeps fetch
statistics. Adapter failures are reported in the fetch result, never raised,
so one broken source cannot stop the others.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests

from recommender.utils import utcnow

from .store import Store

logger = logging.getLogger(__name__)

MIN_FETCH_INTERVAL = timedelta(minutes=5)
REQUEST_TIMEOUT_SECONDS = 30


class SourceAdapter(Protocol):
    """Protocol for a forum source producing normalized thread records."""

    forum_id: str

    async def fetch_latest(self) -> List[Dict[str, Any]]:
        """Latest threads as dicts with thread_id, url, title, category, tags, published_at."""
        ...

    async def perform_incremental_fetch(self, store: Store, force: bool = False) -> Dict[str, Any]:
        ...

    def get_fetch_stats(self) -> Dict[str, Any]:
        ...


class BaseSourceAdapter:
    """Cooldown, statistics and new-thread detection shared by all adapters."""

    def __init__(
        self,
        forum_id: str,
        min_fetch_interval: timedelta = MIN_FETCH_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.forum_id = forum_id
        self.min_fetch_interval = min_fetch_interval
        self.clock = clock
        self.last_fetch: Optional[datetime] = None
        self.last_successful_fetch: Optional[datetime] = None
        self.fetch_count = 0

    async def fetch_latest(self) -> List[Dict[str, Any]]:
        raise NotImplementedError("fetch_latest must be implemented by subclasses")

    def is_in_cooldown(self) -> bool:
        if self.last_fetch is None:
            return False
        return self.clock() - self.last_fetch < self.min_fetch_interval

    def get_fetch_stats(self) -> Dict[str, Any]:
        return {
            "forum_id": self.forum_id,
            "last_fetch": self.last_fetch.isoformat() if self.last_fetch else None,
            "last_successful_fetch": (
                self.last_successful_fetch.isoformat() if self.last_successful_fetch else None
            ),
            "fetch_count": self.fetch_count,
        }

    async def mark_new_topics(self, store: Store, topics: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Store the topics whose thread_id is not yet known; return them."""
        known = {t.thread_id for t in await store.get_all_threads()}
        new_topics = []
        for topic in topics:
            thread_id = topic.get("thread_id") or topic.get("threadId")
            if not thread_id or thread_id in known:
                continue
            known.add(thread_id)
            await store.upsert_thread({"forum_id": self.forum_id, "is_new": True, **topic})
            new_topics.append(topic)
        return new_topics

    async def perform_incremental_fetch(self, store: Store, force: bool = False) -> Dict[str, Any]:
        if not force and self.is_in_cooldown():
            logger.info("[ingest] COOLDOWN_SKIP forum_id=%s", self.forum_id)
            return {"success": False, "reason": "cooldown", "forum_id": self.forum_id}

        self.last_fetch = self.clock()
        self.fetch_count += 1
        try:
            topics = await self.fetch_latest()
            new_topics = await self.mark_new_topics(store, topics) if topics else []
        except Exception as e:
            logger.exception("[ingest] FETCH_FAILED forum_id=%s", self.forum_id)
            return {"success": False, "error": str(e), "forum_id": self.forum_id}

        self.last_successful_fetch = self.clock()
        logger.info(
            "[ingest] FETCH_DONE forum_id=%s fetched=%d new=%d",
            self.forum_id, len(topics), len(new_topics),
        )
        return {"success": True, "new_topics": len(new_topics), "forum_id": self.forum_id}


class HttpJsonSourceAdapter(BaseSourceAdapter):
    """
    Adapter for an endpoint serving normalized thread records as JSON.

    Accepts either a bare list or an object with a "threads" list.
    """

    def __init__(
        self,
        forum_id: str,
        url: str,
        min_fetch_interval: timedelta = MIN_FETCH_INTERVAL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(forum_id, min_fetch_interval, clock)
        self.url = url
        self.timeout = timeout

    def _get(self) -> Any:
        response = requests.get(
            self.url,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def fetch_latest(self) -> List[Dict[str, Any]]:
        data = await asyncio.to_thread(self._get)
        if isinstance(data, dict):
            data = data.get("threads") or []
        if not isinstance(data, list):
            raise ValueError(f"Unexpected payload from {self.url}")
        return [d for d in data if isinstance(d, dict)]


class IngestionManager:
    """Runs every configured adapter concurrently."""

    def __init__(self, adapters: Optional[List[SourceAdapter]] = None):
        self.adapters: List[SourceAdapter] = list(adapters or [])

    async def perform_incremental_fetch(self, store: Store, force: bool = False) -> Dict[str, Any]:
        results = await asyncio.gather(
            *(a.perform_incremental_fetch(store, force) for a in self.adapters)
        )
        total_new = sum(r.get("new_topics", 0) for r in results)
        successful = sum(1 for r in results if r.get("success"))
        return {
            "success": successful > 0,
            "new_topics": total_new,
            "results": list(results),
            "summary": {
                "total_new_topics": total_new,
                "successful_forums": successful,
                "total_forums": len(results),
            },
        }

    def get_fetch_stats(self) -> List[Dict[str, Any]]:
        return [a.get_fetch_stats() for a in self.adapters]
