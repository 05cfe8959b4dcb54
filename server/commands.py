"""
Command dispatch: routes a validated Command to the component that handles it.

Every handler returns {"ok": True, ...}. A StoreError from any component is
turned into {"ok": False, "error": ...}; other exceptions propagate.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict

from recommender import Recommender
from recommender.utils import utcnow

from .models.commands import (
    Command,
    DbClear,
    DbDeduplicate,
    DbExport,
    DbImport,
    DebugCheck,
    DislikeAdd,
    DislikeList,
    DislikeRemove,
    FetchStats,
    FetchTrigger,
    ReaderClose,
    ReaderHeartbeat,
    ReaderOpen,
    RecommendClearClicked,
    RecommendClicked,
    RecommendContent,
    RecommendMixed,
    RecommendTags,
)
from .services.clicks import ClickTracker
from .services.engagement import EngagementAggregator
from .services.ingestion import IngestionManager
from .services.sessions import SessionManager
from .services.store import Store, StoreError

logger = logging.getLogger(__name__)

# Recommendations warmed after a fetch that found new topics
WARM_LIMIT = 10
WARM_FORUM = "all"


def _records(items) -> list:
    return [item.to_record() for item in items]


class CommandDispatcher:
    """Executes commands against the store, trackers, recommender and ingestion."""

    def __init__(
        self,
        store: Store,
        clicks: ClickTracker,
        sessions: SessionManager,
        aggregator: EngagementAggregator,
        recommender: Recommender,
        ingestion: IngestionManager,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.clicks = clicks
        self.sessions = sessions
        self.aggregator = aggregator
        self.recommender = recommender
        self.ingestion = ingestion
        self.clock = clock

    async def dispatch(self, command: Command) -> Dict[str, Any]:
        try:
            return await self._handle(command)
        except StoreError as e:
            logger.error("[commands] STORE_ERROR type=%s error=%s", command.type, e)
            return {"ok": False, "error": str(e)}

    async def _handle(self, command: Command) -> Dict[str, Any]:
        match command:
            case ReaderOpen(thread=thread):
                event = await self.aggregator.open(thread, self.clock())
                return {"ok": True, "event": event.to_record()}
            case ReaderHeartbeat(thread=thread, metrics=metrics):
                event = await self.aggregator.heartbeat(thread, metrics, self.clock())
                return {"ok": True, "event": event.to_record()}
            case ReaderClose(thread=thread, metrics=metrics):
                event = await self.aggregator.close(thread, metrics, self.clock())
                return {"ok": True, "event": event.to_record()}

            case RecommendContent(limit=limit, forum=forum, force_refresh=force):
                recs = await self.recommender.generate_recommendations(limit, forum, force)
                return {"ok": True, "recommendations": _records(recs)}
            case RecommendTags(limit=limit, forum=forum, force_refresh=force):
                recs = await self.recommender.get_tag_based_recommendations(limit, forum, force)
                return {"ok": True, "recommendations": _records(recs)}
            case RecommendMixed(limit=limit, forum=forum, force_refresh=force):
                recs = await self.recommender.get_mixed_recommendations(limit, forum, force)
                return {"ok": True, "recommendations": _records(recs)}
            case RecommendClicked(thread_id=thread_id):
                await self.clicks.add_clicked(thread_id)
                return {"ok": True}
            case RecommendClearClicked():
                await self.clicks.clear_clicked()
                return {"ok": True}

            case DislikeAdd(thread_id=thread_id, title=title):
                await self.store.add_disliked_thread(thread_id)
                logger.info("[commands] DISLIKED thread_id=%s title=%s", thread_id, title)
                return {"ok": True}
            case DislikeRemove(thread_id=thread_id):
                removed = await self.store.remove_disliked_thread(thread_id)
                return {"ok": True, "removed": removed}
            case DislikeList():
                disliked = await self.store.get_all_disliked_threads()
                return {"ok": True, "disliked_threads": _records(disliked)}

            case DbExport():
                return {"ok": True, "data": await self.store.export_all_data()}
            case DbImport(data=data):
                return {"ok": True, "result": await self.store.import_data(data)}
            case DbClear():
                await self.store.clear_all_data()
                return {"ok": True}
            case DbDeduplicate():
                result = await self.store.deduplicate_read_events()
                return {
                    "ok": True,
                    "result": {
                        "duplicates_removed": result.duplicates_removed,
                        "threads_affected": result.threads_affected,
                    },
                }

            case FetchTrigger():
                return {"ok": True, "result": await self.trigger_fetch()}
            case FetchStats():
                return {"ok": True, "stats": self.ingestion.get_fetch_stats()}

            case DebugCheck():
                current = self.sessions.current
                return {
                    "ok": True,
                    "debug": {
                        "current_session_id": current.session_id if current else None,
                        "session_last_activity_at": (
                            current.last_activity_at.isoformat()
                            if current and current.last_activity_at
                            else None
                        ),
                        "stats": await self.store.get_stats(),
                        "timestamp": self.clock().isoformat(),
                    },
                }

            case _:
                raise TypeError(f"Unhandled command type: {command.type}")

    async def trigger_fetch(self) -> Dict[str, Any]:
        """Force a fetch on every source; warm mixed recommendations when new topics arrived."""
        result = await self.ingestion.perform_incremental_fetch(self.store, force=True)
        if result["new_topics"] > 0:
            logger.info(
                "[commands] NEW_TOPICS count=%d, refreshing recommendations",
                result["new_topics"],
            )
            await self.recommender.get_mixed_recommendations(WARM_LIMIT, WARM_FORUM)
        return result
