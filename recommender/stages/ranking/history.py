"""
Reading-history text: the lexical profile candidates are compared against.
"""

from typing import Dict, List

from ...models.engagement import ReadEvent
from ...models.thread import Thread


def completed_thread_ids(read_events: List[ReadEvent]) -> List[str]:
    """Ids of threads with at least one completed read, in first-completion order."""
    seen: Dict[str, None] = {}
    for event in read_events:
        if event.is_completed and event.thread_id not in seen:
            seen[event.thread_id] = None
    return list(seen)


def build_history_text(
    read_events: List[ReadEvent],
    threads_by_id: Dict[str, Thread],
) -> str:
    """
    Concatenate title, category and tags of every completed thread.

    Completed events whose thread is no longer stored contribute nothing.
    """
    parts = []
    for thread_id in completed_thread_ids(read_events):
        thread = threads_by_id.get(thread_id)
        if thread is None:
            continue
        parts.append(thread.text())
    return " ".join(parts)
