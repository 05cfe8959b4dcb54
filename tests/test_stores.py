"""In-memory and JSON file stores."""

import asyncio
from datetime import timedelta

import pytest

from recommender import EngagementThresholds, HeartbeatSample, Session
from server.services import InMemoryStore, JsonFileStore, StoreError
from server.services import JsonClickTracker, json_store
from server.services import clicks as click_store

from conftest import NOW, make_event, make_thread, seed


class Clock:
    def __init__(self, start=NOW):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def heartbeat(delta, scroll, session_id="s1", thread_id="linuxdo:1"):
    return HeartbeatSample(
        session_id=session_id,
        thread_id=thread_id,
        url=f"https://linux.do/t/{thread_id}",
        active_ms_delta=delta,
        max_scroll_pct=scroll,
    )


# =============================================================================
# Threads
# =============================================================================


@pytest.mark.asyncio
async def test_upsert_sets_bookkeeping_and_forum_default():
    clock = Clock()
    store = InMemoryStore(clock=clock)
    stored = await store.upsert_thread({"threadId": "nodeseek:42", "title": "VPS deals"})

    assert stored.forum_id == "nodeseek.com"
    assert stored.created_at == NOW
    assert stored.updated_at == NOW
    assert stored.last_seen_at == NOW
    assert stored.is_new is True


@pytest.mark.asyncio
async def test_upsert_merges_and_preserves_created_at():
    clock = Clock()
    store = InMemoryStore(clock=clock)
    await store.upsert_thread({"thread_id": "linuxdo:1", "title": "old", "tags": ["go"]})
    clock.advance(hours=1)
    stored = await store.upsert_thread({"thread_id": "linuxdo:1", "title": "new"})

    assert stored.title == "new"
    assert stored.tags == ["go"]
    assert stored.created_at == NOW
    assert stored.updated_at == NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_is_new_never_comes_back():
    store = InMemoryStore(clock=Clock())
    await store.upsert_thread({"thread_id": "linuxdo:1", "is_new": True})
    await store.upsert_thread({"thread_id": "linuxdo:1", "is_new": False})
    again = await store.upsert_thread({"thread_id": "linuxdo:1", "is_new": True})

    assert again.is_new is False
    assert await store.get_new_threads() == []


# =============================================================================
# Read events
# =============================================================================


@pytest.mark.asyncio
async def test_update_and_finalize_read_event():
    clock = Clock()
    store = InMemoryStore(clock=clock)
    await store.update_read_event(heartbeat(10000, 30))
    clock.advance(seconds=15)
    await store.update_read_event(heartbeat(8000, 60))
    clock.advance(seconds=1)
    final = await store.finalize_read_event(heartbeat(3000, 40))

    assert final.event_id == "s1:linuxdo:1"
    assert final.dwell_ms_effective == 21000
    assert final.max_scroll_pct == 60
    assert final.completed == 1
    assert final.enter_at == NOW
    assert len(await store.get_all_read_events()) == 1


@pytest.mark.asyncio
async def test_thresholds_are_read_on_every_update(store):
    await store.update_read_event(heartbeat(2000, 20))
    event = await store.get_read_event("s1:linuxdo:1")
    assert event.completed == 0

    await store.set_thresholds(EngagementThresholds(threshold_seconds=1, threshold_scroll_pct=10))
    event = await store.update_read_event(heartbeat(0, 20), now=NOW + timedelta(seconds=30))
    assert event.completed == 1


@pytest.mark.asyncio
async def test_deduplicate_through_store(store):
    await seed(
        store,
        events=[
            make_event("linuxdo:1", session_id="a", dwell=1000),
            make_event("linuxdo:1", session_id="b", dwell=2000),
            make_event("linuxdo:2"),
        ],
    )
    result = await store.deduplicate_read_events()
    events = await store.get_all_read_events()

    assert result.duplicates_removed == 1
    assert result.threads_affected == 1
    assert sorted(e.thread_id for e in events) == ["linuxdo:1", "linuxdo:2"]
    merged = next(e for e in events if e.thread_id == "linuxdo:1")
    assert merged.dwell_ms_effective == 3000
    assert merged.event_id.startswith("merged:linuxdo:1:")


# =============================================================================
# Disliked threads
# =============================================================================


@pytest.mark.asyncio
async def test_disliked_add_is_idempotent_and_remove_reports():
    clock = Clock()
    store = InMemoryStore(clock=clock)
    first = await store.add_disliked_thread("linuxdo:1")
    clock.advance(minutes=5)
    second = await store.add_disliked_thread("linuxdo:1")

    assert len(await store.get_all_disliked_threads()) == 1
    assert second.created_at == first.created_at
    assert second.updated_at == NOW + timedelta(minutes=5)
    assert await store.remove_disliked_thread("linuxdo:1") is True
    assert await store.remove_disliked_thread("linuxdo:1") is False


# =============================================================================
# Pagination and stats
# =============================================================================


@pytest.mark.asyncio
async def test_threads_paginated_newest_first():
    clock = Clock()
    store = InMemoryStore(clock=clock)
    for i in range(5):
        await store.upsert_thread({"thread_id": f"linuxdo:{i}"})
        clock.advance(minutes=1)

    page = await store.get_threads_paginated(0, 2)
    assert [t.thread_id for t in page["items"]] == ["linuxdo:4", "linuxdo:3"]
    assert page["total"] == 5
    assert page["has_more"] is True
    assert page["next_offset"] == 2

    last = await store.get_threads_paginated(4, 2)
    assert [t.thread_id for t in last["items"]] == ["linuxdo:0"]
    assert last["has_more"] is False
    assert last["next_offset"] is None


@pytest.mark.asyncio
async def test_events_paginated_filters(store):
    await seed(
        store,
        events=[
            make_event("linuxdo:1", session_id="a", completed=1),
            make_event("linuxdo:2", session_id="a", completed=0),
            make_event("linuxdo:3", session_id="b", completed=1),
        ],
    )
    completed = await store.get_events_paginated(filters={"completed": 1})
    assert {e.thread_id for e in completed["items"]} == {"linuxdo:1", "linuxdo:3"}

    session_a = await store.get_events_paginated(filters={"session_id": "a", "thread_id": None})
    assert session_a["total"] == 2

    future = await store.get_events_paginated(filters={"start_date": NOW})
    assert future["items"] == []


@pytest.mark.asyncio
async def test_stats(store):
    await seed(
        store,
        threads=[make_thread("linuxdo:1"), make_thread("linuxdo:2", is_new=False)],
        events=[
            make_event("linuxdo:1", completed=1),
            make_event("linuxdo:2", completed=0),
            make_event("linuxdo:3", minutes_ago=60 * 24 * 3),
        ],
        disliked=["linuxdo:9"],
    )
    assert await store.get_stats() == {
        "total_events": 3,
        "total_threads": 2,
        "new_threads": 1,
        "today_events": 2,
        "completed_today": 1,
        "disliked_threads": 1,
    }


# =============================================================================
# Export / import / clear
# =============================================================================


@pytest.mark.asyncio
async def test_import_skips_invalid_and_existing(store):
    await seed(store, events=[make_event("linuxdo:1")])
    at = NOW.isoformat()
    data = {
        "events": [
            {
                "eventId": "s2:linuxdo:5",
                "sessionId": "s2",
                "threadId": "linuxdo:5",
                "enterAt": at,
                "leaveAt": at,
                "dwellMsEffective": 30000,
                "maxScrollPct": 90,
                "completed": 1,
                "createdAt": at,
                "updatedAt": at,
            },
            {"threadId": "linuxdo:6"},
            make_event("linuxdo:1").to_record(),
        ],
        "dislikedThreads": [{"threadId": "linuxdo:7"}],
    }
    result = await store.import_data(data)

    assert result["success"] is True
    assert result["imported_count"] == 2
    assert result["skipped_count"] == 2
    assert len(result["errors"]) == 1
    assert await store.get_read_event("s2:linuxdo:5") is not None
    assert [d.thread_id for d in await store.get_all_disliked_threads()] == ["linuxdo:7"]


@pytest.mark.asyncio
async def test_export_contains_every_collection(store):
    await seed(store, threads=[make_thread("linuxdo:1")], events=[make_event("linuxdo:1")])
    data = await store.export_all_data()
    assert set(data) == {"events", "sessions", "threads", "disliked_threads", "exported_at"}
    assert data["threads"][0]["thread_id"] == "linuxdo:1"


@pytest.mark.asyncio
async def test_clear_keeps_disliked(store):
    await seed(
        store,
        threads=[make_thread("linuxdo:1")],
        events=[make_event("linuxdo:1")],
        disliked=["linuxdo:2"],
    )
    await store.save_session(Session(session_id="s1", started_at=NOW))
    await store.clear_all_data()

    assert await store.get_all_threads() == []
    assert await store.get_all_read_events() == []
    assert await store.get_all_sessions() == []
    assert len(await store.get_all_disliked_threads()) == 1


# =============================================================================
# JSON file store
# =============================================================================


@pytest.mark.asyncio
async def test_json_store_survives_restart(tmp_path):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)
    await store.upsert_thread(make_thread("linuxdo:1", title="Rust", tags=["rust"]))
    await store.update_read_event(heartbeat(25000, 70))
    await store.add_disliked_thread("linuxdo:2")
    await store.set_thresholds(EngagementThresholds(threshold_seconds=40, threshold_scroll_pct=70))
    await store.save_session(Session(session_id="s1", started_at=NOW))

    reopened = JsonFileStore(tmp_path, clock=lambda: NOW)
    thread = await reopened.get_thread("linuxdo:1")
    assert thread.title == "Rust"
    assert thread.tags == ["rust"]
    assert thread.created_at == NOW

    event = await reopened.get_read_event("s1:linuxdo:1")
    assert event.dwell_ms_effective == 25000
    assert event.completed == 1
    assert [d.thread_id for d in await reopened.get_all_disliked_threads()] == ["linuxdo:2"]
    assert (await reopened.get_thresholds()).threshold_seconds == 40
    assert [s.session_id for s in await reopened.get_all_sessions()] == ["s1"]


@pytest.mark.asyncio
async def test_json_store_starts_empty_on_corrupt_file(tmp_path):
    (tmp_path / "threads.json").write_text("{not json", encoding="utf-8")
    store = JsonFileStore(tmp_path, clock=lambda: NOW)
    assert await store.get_all_threads() == []


@pytest.mark.asyncio
async def test_json_store_write_failure_raises_store_error(tmp_path, monkeypatch):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)

    def fail(path, data):
        raise OSError("read-only file system")

    monkeypatch.setattr(json_store, "atomic_write_json", fail)
    with pytest.raises(StoreError):
        await store.upsert_thread({"thread_id": "linuxdo:1"})

    result = await store.import_data({"events": []})
    assert result["success"] is False
    assert "read-only" in result["error"]


def fail_next_writes(monkeypatch, module, count=1):
    """Make the next count file writes in module raise OSError."""
    real_write = module.atomic_write_json
    remaining = [count]

    def write(path, data):
        if remaining[0] > 0:
            remaining[0] -= 1
            raise OSError("disk full")
        real_write(path, data)

    monkeypatch.setattr(module, "atomic_write_json", write)


@pytest.mark.asyncio
async def test_failed_heartbeat_is_not_counted_twice_on_retry(tmp_path, monkeypatch):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)

    fail_next_writes(monkeypatch, json_store)
    with pytest.raises(StoreError):
        await store.update_read_event(heartbeat(1000, 10), now=NOW)
    assert await store.get_read_event("s1:linuxdo:1") is None

    event = await store.update_read_event(heartbeat(1000, 10), now=NOW + timedelta(seconds=10))
    assert event.dwell_ms_effective == 1000

    fail_next_writes(monkeypatch, json_store)
    with pytest.raises(StoreError):
        await store.update_read_event(heartbeat(500, 40), now=NOW + timedelta(seconds=20))
    await store.update_read_event(heartbeat(500, 40), now=NOW + timedelta(seconds=30))

    reopened = JsonFileStore(tmp_path, clock=lambda: NOW)
    saved = await reopened.get_read_event("s1:linuxdo:1")
    assert saved.dwell_ms_effective == 1500
    assert saved.max_scroll_pct == 40


@pytest.mark.asyncio
async def test_failed_finalize_leaves_event_unchanged(tmp_path, monkeypatch):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)
    await store.update_read_event(heartbeat(1000, 10), now=NOW)

    fail_next_writes(monkeypatch, json_store)
    with pytest.raises(StoreError):
        await store.finalize_read_event(heartbeat(2000, 60), now=NOW + timedelta(seconds=10))

    event = await store.get_read_event("s1:linuxdo:1")
    assert event.dwell_ms_effective == 1000
    assert event.max_scroll_pct == 10


@pytest.mark.asyncio
async def test_failed_writes_keep_previous_state(tmp_path, monkeypatch):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)
    await store.upsert_thread({"thread_id": "linuxdo:1", "title": "kept"})
    await store.add_disliked_thread("linuxdo:2")

    fail_next_writes(monkeypatch, json_store, count=5)
    with pytest.raises(StoreError):
        await store.upsert_thread({"thread_id": "linuxdo:1", "title": "lost"})
    with pytest.raises(StoreError):
        await store.remove_disliked_thread("linuxdo:2")
    with pytest.raises(StoreError):
        await store.set_thresholds(EngagementThresholds(threshold_seconds=90))
    with pytest.raises(StoreError):
        await store.clear_all_data()
    result = await store.import_data({"dislikedThreads": [{"threadId": "linuxdo:3"}]})
    assert result["success"] is False

    assert (await store.get_thread("linuxdo:1")).title == "kept"
    assert [d.thread_id for d in await store.get_all_disliked_threads()] == ["linuxdo:2"]
    assert (await store.get_thresholds()).threshold_seconds == 20


@pytest.mark.asyncio
async def test_click_tracker_rolls_back_failed_writes(tmp_path, monkeypatch):
    tracker = JsonClickTracker(tmp_path)
    await tracker.add_clicked("linuxdo:1")

    fail_next_writes(monkeypatch, click_store)
    with pytest.raises(StoreError):
        await tracker.add_clicked("linuxdo:2")
    assert await tracker.get_clicked() == {"linuxdo:1"}

    fail_next_writes(monkeypatch, click_store)
    with pytest.raises(StoreError):
        await tracker.clear_clicked()
    assert await tracker.get_clicked() == {"linuxdo:1"}

    await tracker.add_clicked("linuxdo:2")
    assert await JsonClickTracker(tmp_path).get_clicked() == {"linuxdo:1", "linuxdo:2"}


@pytest.mark.asyncio
async def test_concurrent_writes_leave_latest_state_on_disk(tmp_path):
    store = JsonFileStore(tmp_path, clock=lambda: NOW)
    await asyncio.gather(
        *(store.update_read_event(heartbeat(1000, 10, thread_id=f"linuxdo:{i}")) for i in range(20))
    )

    reopened = JsonFileStore(tmp_path, clock=lambda: NOW)
    assert len(await reopened.get_all_read_events()) == 20
