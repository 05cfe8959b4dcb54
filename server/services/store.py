"""
Store abstraction.

Owns threads, read events, sessions, disliked threads and engagement settings.
Implementations: in-memory (tests, STORE_BACKEND=memory) and JSON files on disk
(default). Swap via config.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from recommender import (
    DeduplicationResult,
    DislikedThread,
    EngagementThresholds,
    HeartbeatSample,
    ReadEvent,
    Session,
    Thread,
)


class StoreError(Exception):
    """A persistence operation failed (I/O error, corrupt file, ...)."""


class Store(Protocol):
    """Protocol for the persistent store. All operations are async."""

    # -- threads --

    async def get_all_threads(self) -> List[Thread]:
        ...

    async def get_thread(self, thread_id: str) -> Optional[Thread]:
        ...

    async def get_new_threads(self) -> List[Thread]:
        """Threads never opened in the reader (is_new=True)."""
        ...

    async def upsert_thread(self, thread: Union[Thread, Dict[str, Any]]) -> Thread:
        """
        Insert or update a thread by thread_id.
        Preserves created_at, refreshes updated_at/last_seen_at, and never
        turns is_new back on once it was cleared.
        """
        ...

    # -- read events --

    async def get_all_read_events(self) -> List[ReadEvent]:
        ...

    async def get_read_event(self, event_id: str) -> Optional[ReadEvent]:
        ...

    async def update_read_event(
        self, sample: HeartbeatSample, now: Optional[datetime] = None
    ) -> ReadEvent:
        """Merge one heartbeat into the (session, thread) read event."""
        ...

    async def finalize_read_event(
        self, sample: HeartbeatSample, now: Optional[datetime] = None
    ) -> ReadEvent:
        """Fold the closing sample in, creating the event if it does not exist."""
        ...

    async def deduplicate_read_events(self) -> DeduplicationResult:
        """Collapse read events per thread (lossy repair)."""
        ...

    # -- disliked threads --

    async def get_all_disliked_threads(self) -> List[DislikedThread]:
        ...

    async def add_disliked_thread(self, thread_id: str) -> DislikedThread:
        ...

    async def remove_disliked_thread(self, thread_id: str) -> bool:
        """Return True if a marker was removed."""
        ...

    # -- settings --

    async def get_thresholds(self) -> EngagementThresholds:
        ...

    async def set_thresholds(self, thresholds: EngagementThresholds) -> EngagementThresholds:
        ...

    # -- sessions --

    async def save_session(self, session: Session) -> Session:
        ...

    async def get_all_sessions(self) -> List[Session]:
        ...

    # -- maintenance and data management --

    async def get_events_paginated(
        self, offset: int = 0, limit: int = 100, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        ...

    async def get_threads_paginated(
        self, offset: int = 0, limit: int = 100, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        ...

    async def get_stats(self) -> Dict[str, int]:
        ...

    async def export_all_data(self) -> Dict[str, Any]:
        ...

    async def import_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def clear_all_data(self) -> None:
        """Remove threads, sessions and read events; disliked threads and settings survive."""
        ...
