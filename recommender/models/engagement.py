"""
Engagement models — reading sessions, per-thread read events, heartbeat samples,
and disliked-thread markers.

ReadEvent is the durable engagement record for one (session, thread) pair;
HeartbeatSample is one unit of browser telemetry merged into it.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, ValidationError

from .base import RecordModel, UtcDatetime

logger = logging.getLogger(__name__)


class Session(RecordModel):
    """A browsing session grouping read events; ended only by timeout replacement."""

    session_id: str = Field(min_length=1)
    started_at: UtcDatetime
    ended_at: Optional[UtcDatetime] = None
    last_activity_at: Optional[UtcDatetime] = None


class HeartbeatSample(RecordModel):
    """
    One telemetry sample for a (session, thread) pair.

    active_ms_delta counts only visible, focused, non-idle time since the previous sample.
    max_scroll_pct is the page's scroll high-water mark at sampling time.
    """

    session_id: str = Field(min_length=1)
    thread_id: str = Field(min_length=1)
    url: str = ""
    active_ms_delta: float = Field(default=0, ge=0)
    max_scroll_pct: float = Field(default=0, ge=0, le=100)
    at: Optional[UtcDatetime] = None


class ReadEvent(RecordModel):
    """
    Engagement record for one (session, thread) pair.

    dwell_ms_effective: cumulative active milliseconds.
    max_scroll_pct: monotonic scroll high-water mark (0-100).
    completed: 0 or 1; once 1 it never reverts.
    """

    event_id: str = Field(min_length=1)
    session_id: str = ""
    thread_id: str = Field(min_length=1)
    url: str = ""
    enter_at: UtcDatetime
    leave_at: UtcDatetime
    dwell_ms_effective: float = Field(default=0, ge=0)
    max_scroll_pct: float = Field(default=0, ge=0, le=100)
    completed: int = Field(default=0, ge=0, le=1)
    created_at: UtcDatetime
    updated_at: UtcDatetime

    @property
    def is_completed(self) -> bool:
        return self.completed == 1


class DislikedThread(RecordModel):
    """Suppression marker: exclude thread_id from ranking unless force-refreshed."""

    thread_id: str = Field(min_length=1)
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


def ensure_read_events(
    items: List[Union[Dict[str, Any], "ReadEvent"]],
) -> List["ReadEvent"]:
    """Convert list of dicts or ReadEvents to ReadEvent models, skipping malformed records."""
    events: List[ReadEvent] = []
    for item in items:
        if isinstance(item, ReadEvent):
            events.append(item)
            continue
        try:
            events.append(ReadEvent.model_validate(item))
        except ValidationError as e:
            logger.warning("[recommender] MALFORMED_READ_EVENT skipped: %s", e.errors()[:1])
    return events
