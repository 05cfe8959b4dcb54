"""
In-memory store: dict-backed collections keyed by primary id.

Used by tests and STORE_BACKEND=memory, and as the base of JsonFileStore,
which overrides _persist to write the touched collection to disk.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from recommender import (
    DEFAULT_THRESHOLDS,
    DeduplicationResult,
    DislikedThread,
    EngagementThresholds,
    HeartbeatSample,
    ReadEvent,
    Session,
    Thread,
    apply_final_sample,
    apply_sample,
    event_id_for,
    merge_duplicate_events,
)
from recommender.models import forum_for_thread_id
from recommender.utils import utcnow

from .store import StoreError

logger = logging.getLogger(__name__)

THREADS = "threads"
READ_EVENTS = "read_events"
SESSIONS = "sessions"
DISLIKED_THREADS = "disliked_threads"
SETTINGS = "settings"

# Import/export keys accepted for the disliked collection
_DISLIKED_IMPORT_KEYS = ("disliked_threads", "dislikedThreads")
MAX_IMPORT_ERRORS = 10

_MISSING = object()


def _paginate(items: List[Any], offset: int, limit: int) -> Dict[str, Any]:
    """Slice one page and report whether more remain."""
    offset = max(0, offset)
    page = items[offset:offset + limit]
    end = offset + len(page)
    has_more = end < len(items)
    return {
        "items": page,
        "total": len(items),
        "has_more": has_more,
        "next_offset": end if has_more else None,
    }


def _in_date_range(ts: Optional[datetime], filters: Dict[str, Any]) -> bool:
    start = filters.get("start_date")
    end = filters.get("end_date")
    if ts is None:
        return start is None and end is None
    if start is not None and ts < start:
        return False
    if end is not None and ts > end:
        return False
    return True


def _newest_created_first(records: Iterable[Any]) -> List[Any]:
    floor = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(records, key=lambda r: r.created_at or floor, reverse=True)


class InMemoryStore:
    """Store implementation holding every collection in process memory."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self._threads: Dict[str, Thread] = {}
        self._events: Dict[str, ReadEvent] = {}
        self._sessions: Dict[str, Session] = {}
        self._disliked: Dict[str, DislikedThread] = {}
        self._thresholds: EngagementThresholds = DEFAULT_THRESHOLDS

    async def _persist(self, *collections: str) -> None:
        """Write the named collections to durable storage. No-op in memory."""
        return None

    async def _put(self, records: Dict[str, Any], key: str, value: Any, collection: str) -> None:
        """
        Set records[key] and persist the collection.

        A failed write restores the previous value (or removes the key), so a
        caller retrying after StoreError does not apply its change twice.
        """
        previous = records.get(key, _MISSING)
        records[key] = value
        try:
            await self._persist(collection)
        except StoreError:
            # A later write to the same key wins over this rollback.
            if records.get(key) is value:
                if previous is _MISSING:
                    del records[key]
                else:
                    records[key] = previous
            raise

    async def _replace_all(self, restore: Callable[[], None], *collections: str) -> None:
        """Persist a bulk change; on StoreError call restore before re-raising."""
        try:
            await self._persist(*collections)
        except StoreError:
            restore()
            raise

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    async def get_all_threads(self) -> List[Thread]:
        return list(self._threads.values())

    async def get_thread(self, thread_id: str) -> Optional[Thread]:
        return self._threads.get(thread_id)

    async def get_new_threads(self) -> List[Thread]:
        return [t for t in self._threads.values() if t.is_new]

    async def upsert_thread(self, thread: Union[Thread, Dict[str, Any]]) -> Thread:
        incoming = thread if isinstance(thread, Thread) else Thread.model_validate(thread)
        now = self.clock()
        existing = self._threads.get(incoming.thread_id)

        record = existing.model_dump() if existing else {}
        record.update(incoming.model_dump(exclude_unset=True))
        record.update(
            forum_id=record.get("forum_id") or forum_for_thread_id(incoming.thread_id),
            created_at=(existing.created_at if existing else None)
            or incoming.created_at
            or now,
            updated_at=now,
            last_seen_at=now,
            is_new=incoming.is_new if existing is None else (existing.is_new and incoming.is_new),
        )
        stored = Thread.model_validate(record)
        await self._put(self._threads, stored.thread_id, stored, THREADS)
        return stored

    # ------------------------------------------------------------------
    # Read events
    # ------------------------------------------------------------------

    async def get_all_read_events(self) -> List[ReadEvent]:
        return list(self._events.values())

    async def get_read_event(self, event_id: str) -> Optional[ReadEvent]:
        return self._events.get(event_id)

    async def update_read_event(
        self, sample: HeartbeatSample, now: Optional[datetime] = None
    ) -> ReadEvent:
        thresholds = await self.get_thresholds()
        event_id = event_id_for(sample.session_id, sample.thread_id)
        event, coalesced = apply_sample(
            self._events.get(event_id), sample, thresholds, now or self.clock()
        )
        if coalesced:
            logger.debug("[store] READ_EVENT_COALESCED event_id=%s", event_id)
        await self._put(self._events, event_id, event, READ_EVENTS)
        return event

    async def finalize_read_event(
        self, sample: HeartbeatSample, now: Optional[datetime] = None
    ) -> ReadEvent:
        thresholds = await self.get_thresholds()
        event_id = event_id_for(sample.session_id, sample.thread_id)
        event = apply_final_sample(
            self._events.get(event_id), sample, thresholds, now or self.clock()
        )
        await self._put(self._events, event_id, event, READ_EVENTS)
        return event

    async def deduplicate_read_events(self) -> DeduplicationResult:
        result = merge_duplicate_events(list(self._events.values()), self.clock())
        if result.duplicates_removed:
            previous = self._events
            self._events = {e.event_id: e for e in result.events}
            await self._replace_all(lambda: setattr(self, "_events", previous), READ_EVENTS)
        logger.info(
            "[store] DEDUPLICATED duplicates_removed=%d threads_affected=%d",
            result.duplicates_removed, result.threads_affected,
        )
        return result

    # ------------------------------------------------------------------
    # Disliked threads
    # ------------------------------------------------------------------

    async def get_all_disliked_threads(self) -> List[DislikedThread]:
        return list(self._disliked.values())

    async def add_disliked_thread(self, thread_id: str) -> DislikedThread:
        now = self.clock()
        existing = self._disliked.get(thread_id)
        marker = DislikedThread(
            thread_id=thread_id,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        await self._put(self._disliked, thread_id, marker, DISLIKED_THREADS)
        return marker

    async def remove_disliked_thread(self, thread_id: str) -> bool:
        marker = self._disliked.pop(thread_id, None)
        if marker is None:
            return False
        await self._replace_all(
            lambda: self._disliked.__setitem__(thread_id, marker), DISLIKED_THREADS
        )
        return True

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_thresholds(self) -> EngagementThresholds:
        return self._thresholds

    async def set_thresholds(self, thresholds: EngagementThresholds) -> EngagementThresholds:
        previous = self._thresholds
        self._thresholds = thresholds
        await self._replace_all(lambda: setattr(self, "_thresholds", previous), SETTINGS)
        return thresholds

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def save_session(self, session: Session) -> Session:
        await self._put(self._sessions, session.session_id, session, SESSIONS)
        return session

    async def get_all_sessions(self) -> List[Session]:
        return list(self._sessions.values())

    # ------------------------------------------------------------------
    # Paginated scans and stats
    # ------------------------------------------------------------------

    async def get_events_paginated(
        self, offset: int = 0, limit: int = 100, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        filters = {k: v for k, v in (filters or {}).items() if v is not None}
        matching = []
        for event in _newest_created_first(self._events.values()):
            if "thread_id" in filters and event.thread_id != filters["thread_id"]:
                continue
            if "session_id" in filters and event.session_id != filters["session_id"]:
                continue
            if "completed" in filters and event.completed != int(filters["completed"]):
                continue
            if not _in_date_range(event.created_at, filters):
                continue
            matching.append(event)
        return _paginate(matching, offset, limit)

    async def get_threads_paginated(
        self, offset: int = 0, limit: int = 100, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        filters = {k: v for k, v in (filters or {}).items() if v is not None}
        matching = []
        for thread in _newest_created_first(self._threads.values()):
            if "forum_id" in filters and thread.forum_id != filters["forum_id"]:
                continue
            if "is_new" in filters and thread.is_new != bool(filters["is_new"]):
                continue
            if "category" in filters and thread.category != filters["category"]:
                continue
            if not _in_date_range(thread.created_at, filters):
                continue
            matching.append(thread)
        return _paginate(matching, offset, limit)

    async def get_stats(self) -> Dict[str, int]:
        today = self.clock().date()
        today_events = [e for e in self._events.values() if e.created_at.date() == today]
        return {
            "total_events": len(self._events),
            "total_threads": len(self._threads),
            "new_threads": sum(1 for t in self._threads.values() if t.is_new),
            "today_events": len(today_events),
            "completed_today": sum(1 for e in today_events if e.is_completed),
            "disliked_threads": len(self._disliked),
        }

    # ------------------------------------------------------------------
    # Export / import / clear
    # ------------------------------------------------------------------

    async def export_all_data(self) -> Dict[str, Any]:
        return {
            "events": [e.to_record() for e in self._events.values()],
            "sessions": [s.to_record() for s in self._sessions.values()],
            "threads": [t.to_record() for t in self._threads.values()],
            "disliked_threads": [d.to_record() for d in self._disliked.values()],
            "exported_at": self.clock().isoformat(),
        }

    async def import_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Import read events and disliked markers from an export.

        Records missing their key fields, or already present, are skipped.
        Returns success, imported_count, skipped_count and the first errors.
        """
        imported_count = 0
        skipped_count = 0
        errors: List[str] = []
        previous_events = dict(self._events)
        previous_disliked = dict(self._disliked)

        for raw in data.get("events") or []:
            try:
                event = ReadEvent.model_validate(raw)
            except ValidationError:
                errors.append("Invalid event data: missing required fields")
                skipped_count += 1
                continue
            if not event.session_id:
                errors.append(f"Event {event.event_id}: missing session id")
                skipped_count += 1
                continue
            if event.event_id in self._events:
                skipped_count += 1
                continue
            self._events[event.event_id] = event
            imported_count += 1

        disliked_raw = next(
            (data[k] for k in _DISLIKED_IMPORT_KEYS if data.get(k)), []
        )
        for raw in disliked_raw:
            try:
                marker = DislikedThread.model_validate(raw)
            except ValidationError:
                errors.append("Invalid disliked thread data: missing thread id")
                skipped_count += 1
                continue
            if marker.thread_id in self._disliked:
                skipped_count += 1
                continue
            self._disliked[marker.thread_id] = marker
            imported_count += 1

        def restore() -> None:
            self._events = previous_events
            self._disliked = previous_disliked

        try:
            await self._replace_all(restore, READ_EVENTS, DISLIKED_THREADS)
        except StoreError as e:
            logger.error("[store] IMPORT_FAILED %s", e)
            return {"success": False, "error": str(e)}

        logger.info(
            "[store] IMPORT_DONE imported=%d skipped=%d", imported_count, skipped_count
        )
        return {
            "success": True,
            "imported_count": imported_count,
            "skipped_count": skipped_count,
            "errors": errors[:MAX_IMPORT_ERRORS],
        }

    async def clear_all_data(self) -> None:
        previous = (self._threads, self._sessions, self._events)

        def restore() -> None:
            self._threads, self._sessions, self._events = previous

        self._threads, self._sessions, self._events = {}, {}, {}
        await self._replace_all(restore, THREADS, SESSIONS, READ_EVENTS)
        logger.info("[store] CLEARED threads, sessions and read events")
