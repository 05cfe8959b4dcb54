from datetime import datetime, timedelta, timezone

import pytest

from recommender import ReadEvent, Thread
from server.services import InMemoryClickTracker, InMemoryStore

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_thread(thread_id, title="", tags=None, days_old=1.0, forum_id="linux.do", **extra):
    return Thread(
        thread_id=thread_id,
        forum_id=forum_id,
        url=f"https://{forum_id}/t/{thread_id}",
        title=title,
        category=extra.pop("category", ""),
        tags=tags or [],
        published_at=NOW - timedelta(days=days_old),
        **extra,
    )


def make_event(thread_id, session_id="s1", completed=1, dwell=30000, scroll=80, minutes_ago=60):
    at = NOW - timedelta(minutes=minutes_ago)
    return ReadEvent(
        event_id=f"{session_id}:{thread_id}",
        session_id=session_id,
        thread_id=thread_id,
        url=f"https://linux.do/t/{thread_id}",
        enter_at=at,
        leave_at=at,
        dwell_ms_effective=dwell,
        max_scroll_pct=scroll,
        completed=completed,
        created_at=at,
        updated_at=at,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryStore(clock=lambda: NOW)


@pytest.fixture
def clicks():
    return InMemoryClickTracker()


async def seed(store, threads=(), events=(), disliked=()):
    """Put threads, read events and disliked markers straight into a store."""
    for thread in threads:
        await store.upsert_thread(thread)
    for event in events:
        store._events[event.event_id] = event
    for thread_id in disliked:
        await store.add_disliked_thread(thread_id)
