"""Data models for the recommendation engine."""

from .config import (
    DEFAULT_CONFIG,
    DEFAULT_THRESHOLDS,
    EngagementThresholds,
    RecommendationConfig,
    resolve_config,
)
from .engagement import (
    DislikedThread,
    HeartbeatSample,
    ReadEvent,
    Session,
    ensure_read_events,
)
from .scoring import ScoredThread
from .thread import Thread, ensure_threads, forum_for_thread_id

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_THRESHOLDS",
    "DislikedThread",
    "EngagementThresholds",
    "HeartbeatSample",
    "ReadEvent",
    "RecommendationConfig",
    "ScoredThread",
    "Session",
    "Thread",
    "ensure_read_events",
    "ensure_threads",
    "forum_for_thread_id",
    "resolve_config",
]
