"""
Engagement aggregation — merge heartbeat samples into durable read events.

Pure functions used by the stores: apply_sample (heartbeat update with the
duplicate-delivery coalescing window), apply_final_sample (reader close), and
merge_duplicate_events (offline repair that collapses events per thread).
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from .models.config import DEFAULT_THRESHOLDS, EngagementThresholds
from .models.engagement import HeartbeatSample, ReadEvent
from .utils.scores import ensure_utc, utcnow

# Updates to the same event closer together than this are one delivery.
COALESCE_WINDOW_MS = 5000


class DeduplicationResult(BaseModel):
    """Outcome of merge_duplicate_events."""

    events: List[ReadEvent]
    duplicates_removed: int = 0
    threads_affected: int = 0


def event_id_for(session_id: str, thread_id: str) -> str:
    """Deterministic read-event key for a (session, thread) pair."""
    return f"{session_id}:{thread_id}"


def _with_completion(event: ReadEvent, thresholds: EngagementThresholds) -> ReadEvent:
    """Set completed=1 once both thresholds are met; never clears it."""
    if event.is_completed:
        return event
    if (
        event.dwell_ms_effective >= thresholds.threshold_ms
        and event.max_scroll_pct >= thresholds.threshold_scroll_pct
    ):
        return event.model_copy(update={"completed": 1})
    return event


def _accumulate(existing: ReadEvent, sample: HeartbeatSample, now: datetime) -> ReadEvent:
    return existing.model_copy(
        update={
            "leave_at": now,
            "dwell_ms_effective": existing.dwell_ms_effective + sample.active_ms_delta,
            "max_scroll_pct": max(existing.max_scroll_pct, sample.max_scroll_pct),
            "updated_at": now,
        }
    )


def _new_event(sample: HeartbeatSample, now: datetime) -> ReadEvent:
    return ReadEvent(
        event_id=event_id_for(sample.session_id, sample.thread_id),
        session_id=sample.session_id,
        thread_id=sample.thread_id,
        url=sample.url,
        enter_at=now,
        leave_at=now,
        dwell_ms_effective=sample.active_ms_delta,
        max_scroll_pct=sample.max_scroll_pct,
        completed=0,
        created_at=now,
        updated_at=now,
    )


def apply_sample(
    existing: Optional[ReadEvent],
    sample: HeartbeatSample,
    thresholds: EngagementThresholds = DEFAULT_THRESHOLDS,
    now: Optional[datetime] = None,
    coalesce_window_ms: float = COALESCE_WINDOW_MS,
) -> Tuple[ReadEvent, bool]:
    """
    Merge one heartbeat into the (session, thread) read event.

    Returns (event, coalesced). coalesced is True when the existing record was
    updated less than coalesce_window_ms ago and the sample was folded into it
    as a duplicate delivery. Otherwise the record is updated (or created) with
    enter_at/created_at preserved and url refreshed from the sample.
    """
    now = ensure_utc(now) if now is not None else utcnow()

    if existing is not None:
        elapsed_ms = (now - existing.updated_at).total_seconds() * 1000
        if elapsed_ms < coalesce_window_ms:
            return _with_completion(_accumulate(existing, sample, now), thresholds), True
        updated = _accumulate(existing, sample, now)
        if sample.url:
            updated = updated.model_copy(update={"url": sample.url})
        return _with_completion(updated, thresholds), False

    return _with_completion(_new_event(sample, now), thresholds), False


def apply_final_sample(
    existing: Optional[ReadEvent],
    sample: HeartbeatSample,
    thresholds: EngagementThresholds = DEFAULT_THRESHOLDS,
    now: Optional[datetime] = None,
) -> ReadEvent:
    """
    Fold the last partial interval into the read event at reader close.

    Creates the record with zero priors when no heartbeat was ever stored.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    if existing is None:
        return _with_completion(_new_event(sample, now), thresholds)
    return _with_completion(_accumulate(existing, sample, now), thresholds)


def merge_duplicate_events(
    events: List[ReadEvent],
    now: Optional[datetime] = None,
) -> DeduplicationResult:
    """
    Collapse all read events of each thread into one merged record.

    Lossy repair: sessions reading the same thread become a single event.
    enter_at = earliest, leave_at = latest, dwell summed, scroll maxed,
    completed if any member completed. Other fields come from the
    earliest-created member; the merged record gets a synthetic event id.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    groups: Dict[str, List[ReadEvent]] = {}
    for event in events:
        groups.setdefault(event.thread_id, []).append(event)

    merged_events: List[ReadEvent] = []
    duplicates_removed = 0
    threads_affected = 0
    stamp = int(now.timestamp() * 1000)
    for thread_id, group in groups.items():
        if len(group) == 1:
            merged_events.append(group[0])
            continue
        ordered = sorted(group, key=lambda e: e.created_at)
        merged = ordered[0].model_copy(
            update={
                "event_id": f"merged:{thread_id}:{stamp}",
                "enter_at": min(e.enter_at for e in ordered),
                "leave_at": max(e.leave_at for e in ordered),
                "dwell_ms_effective": sum(e.dwell_ms_effective for e in ordered),
                "max_scroll_pct": max(e.max_scroll_pct for e in ordered),
                "completed": 1 if any(e.is_completed for e in ordered) else 0,
                "updated_at": now,
            }
        )
        merged_events.append(merged)
        duplicates_removed += len(group) - 1
        threads_affected += 1

    return DeduplicationResult(
        events=merged_events,
        duplicates_removed=duplicates_removed,
        threads_affected=threads_affected,
    )
