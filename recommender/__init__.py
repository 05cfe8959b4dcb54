"""
Forum Recommender — engagement scoring and thread ranking

Single entry point for the recommender package:
- models/: Thread, ReadEvent, Session, RecommendationConfig, ScoredThread
- engagement: heartbeat merge, finalize and duplicate-event repair
- stages/: candidate_pool (Stage A), ranking, tag_based, orchestrator
- utils/: similarity and freshness scorers
"""

from .engagement import (
    DeduplicationResult,
    apply_final_sample,
    apply_sample,
    event_id_for,
    merge_duplicate_events,
)
from .models import (
    DEFAULT_CONFIG,
    DEFAULT_THRESHOLDS,
    DislikedThread,
    EngagementThresholds,
    HeartbeatSample,
    ReadEvent,
    RecommendationConfig,
    ScoredThread,
    Session,
    Thread,
)
from .stages import Recommender
from .utils import freshness, similarity

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_THRESHOLDS",
    "DeduplicationResult",
    "DislikedThread",
    "EngagementThresholds",
    "HeartbeatSample",
    "ReadEvent",
    "RecommendationConfig",
    "Recommender",
    "ScoredThread",
    "Session",
    "Thread",
    "apply_final_sample",
    "apply_sample",
    "event_id_for",
    "freshness",
    "merge_duplicate_events",
    "similarity",
]
