"""Recommender façade: content, tag-based and mixed recommendations over a store."""

import random

import pytest

from recommender import Recommender
from recommender.stages import top_tags

from conftest import NOW, make_event, make_thread, seed


def ids(threads):
    return [t.thread_id for t in threads]


def build(store, clicks, **kwargs):
    return Recommender(store, clicks, rng=random.Random(0), clock=lambda: NOW, **kwargs)


class BrokenStore:
    async def get_all_threads(self):
        raise OSError("disk unavailable")

    async def get_all_read_events(self):
        return []

    async def get_all_disliked_threads(self):
        return []


# =============================================================================
# Empty inputs
# =============================================================================


@pytest.mark.asyncio
async def test_no_history_returns_empty(store, clicks):
    await seed(store, threads=[make_thread("linuxdo:1", title="Go news", tags=["go"], days_old=0)])
    rec = build(store, clicks)
    assert await rec.generate_recommendations() == []
    assert await rec.get_tag_based_recommendations() == []
    assert await rec.get_mixed_recommendations() == []


@pytest.mark.asyncio
async def test_no_threads_returns_empty(store, clicks):
    await seed(store, events=[make_event("linuxdo:1")])
    assert await build(store, clicks).generate_recommendations() == []


@pytest.mark.asyncio
async def test_store_failure_returns_empty(clicks):
    rec = build(BrokenStore(), clicks)
    assert await rec.generate_recommendations() == []
    assert await rec.get_tag_based_recommendations() == []
    assert await rec.get_mixed_recommendations() == []


# =============================================================================
# Content recommendations
# =============================================================================


@pytest.mark.asyncio
async def test_content_recommendations_prefer_similar_threads(store, clicks):
    read = make_thread("linuxdo:read", title="kubernetes operator guide", days_old=2)
    similar = make_thread("linuxdo:k8s", title="kubernetes operator tips", days_old=3)
    fresh = make_thread("linuxdo:fresh", title="weekend cooking", days_old=0)
    other = make_thread("linuxdo:other", title="phone plans", days_old=4)
    await seed(store, threads=[read, similar, fresh, other], events=[make_event("linuxdo:read")])

    recs = await build(store, clicks).generate_recommendations(limit=10)
    assert ids(recs)[0] == "linuxdo:k8s"
    assert "linuxdo:read" not in ids(recs)
    assert recs[0].content_similarity > 0


@pytest.mark.asyncio
async def test_disliked_and_clicked_excluded_until_forced(store, clicks):
    threads = [make_thread(f"linuxdo:{i}", title=f"topic{i}", days_old=1) for i in range(6)]
    await seed(
        store,
        threads=threads,
        events=[make_event("linuxdo:0")],
        disliked=["linuxdo:1"],
    )
    await clicks.add_clicked("linuxdo:2")
    rec = build(store, clicks)

    normal = ids(await rec.generate_recommendations(limit=10))
    assert "linuxdo:1" not in normal
    assert "linuxdo:2" not in normal
    assert "linuxdo:0" not in normal

    forced = ids(await rec.generate_recommendations(limit=10, force_refresh=True))
    assert {"linuxdo:1", "linuxdo:2"} <= set(forced)
    assert "linuxdo:0" not in forced


@pytest.mark.asyncio
async def test_forum_with_no_threads_returns_empty(store, clicks):
    await seed(
        store,
        threads=[make_thread("linuxdo:1"), make_thread("linuxdo:2")],
        events=[make_event("linuxdo:1")],
    )
    assert await build(store, clicks).generate_recommendations(forum="nodeseek.com") == []


# =============================================================================
# Tag-based recommendations
# =============================================================================


def test_top_tags_counts_per_completed_event_with_first_seen_ties():
    threads = {
        "a": make_thread("a", tags=["go", "infra"]),
        "b": make_thread("b", tags=["rust", "go"]),
        "c": make_thread("c", tags=["cooking"]),
    }
    events = [make_event("a"), make_event("b"), make_event("c", completed=0)]
    assert top_tags(events, threads, count=5) == ["go", "infra", "rust"]
    assert top_tags(events, threads, count=1) == ["go"]


@pytest.mark.asyncio
async def test_tag_based_returns_newest_first(store, clicks):
    read = make_thread("linuxdo:read", tags=["go", "infra"], days_old=3)
    candidates = [make_thread(f"linuxdo:go{i}", tags=["go"], days_old=1 + i) for i in range(5)]
    unrelated = make_thread("linuxdo:cook", tags=["cooking"], days_old=0)
    await seed(store, threads=[read, unrelated, *reversed(candidates)], events=[make_event("linuxdo:read")])

    recs = await build(store, clicks).get_tag_based_recommendations(limit=5)
    assert ids(recs) == [f"linuxdo:go{i}" for i in range(5)]

    capped = await build(store, clicks).get_tag_based_recommendations(limit=2)
    assert ids(capped) == ["linuxdo:go0", "linuxdo:go1"]


@pytest.mark.asyncio
async def test_tag_based_without_completed_reads(store, clicks):
    await seed(
        store,
        threads=[make_thread("linuxdo:1", tags=["go"]), make_thread("linuxdo:2", tags=["go"])],
        events=[make_event("linuxdo:1", completed=0)],
    )
    assert await build(store, clicks).get_tag_based_recommendations() == []


# =============================================================================
# Mixed recommendations
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 3, 7, 10])
async def test_mixed_has_no_duplicates_and_respects_limit(store, clicks, limit):
    read = make_thread("linuxdo:read", title="golang generics", tags=["go"], days_old=2)
    threads = [
        make_thread(f"linuxdo:{i}", title=f"golang item{i}", tags=["go"], days_old=0.5 * i)
        for i in range(12)
    ]
    await seed(store, threads=[read, *threads], events=[make_event("linuxdo:read")])

    recs = await build(store, clicks).get_mixed_recommendations(limit=limit)
    assert len(recs) <= limit
    assert len(ids(recs)) == len(set(ids(recs)))
    assert "linuxdo:read" not in ids(recs)


@pytest.mark.asyncio
async def test_mixed_force_refresh_clears_clicked(store, clicks):
    await seed(
        store,
        threads=[make_thread("linuxdo:1"), make_thread("linuxdo:2")],
        events=[make_event("linuxdo:1")],
    )
    await clicks.add_clicked("linuxdo:2")
    await build(store, clicks).get_mixed_recommendations(force_refresh=True)
    assert await clicks.get_clicked() == set()
