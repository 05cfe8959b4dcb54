"""
Recommender configuration — candidate pool, scoring, fallback, tag and mixed parameters.

RecommendationConfig defaults are defined here. The server may pass a dict
(e.g. from a JSON file named by RECOMMENDER_CONFIG_PATH); from_dict() merges it
with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class EngagementThresholds(BaseModel):
    """User-adjustable thresholds that decide when a read counts as completed."""

    # Minimum accumulated active dwell time, in seconds.
    threshold_seconds: float = Field(default=20, gt=0)
    # Minimum scroll depth high-water mark, in percent.
    threshold_scroll_pct: float = Field(default=50, ge=0, le=100)

    @property
    def threshold_ms(self) -> float:
        return self.threshold_seconds * 1000


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation engine."""

    # -------------------------------------------------------------------------
    # Candidate pool
    # -------------------------------------------------------------------------

    # Threads published within this many days form the preferred pool.
    recency_window_days: int = 30
    # When fewer recent threads than this exist, the whole thread set is used.
    min_recent_threads: int = 10

    # -------------------------------------------------------------------------
    # Blended scoring weights (must sum to 1.0)
    # score = weight_similarity * sim + weight_freshness * fresh + weight_author * author
    # -------------------------------------------------------------------------

    weight_similarity: float = 0.5
    weight_freshness: float = 0.3
    # Author identity is not ingested; the term always contributes zero.
    weight_author: float = 0.2

    # Linear freshness decay reaches zero at this many days.
    freshness_horizon_days: float = 7.0

    # -------------------------------------------------------------------------
    # Score threshold and relaxation
    # -------------------------------------------------------------------------

    score_threshold: float = 0.01
    # Fewer survivors than this relaxes the threshold to "score > 0".
    min_scored_results: int = 5

    # -------------------------------------------------------------------------
    # Fallback top-up with newest unread threads
    # -------------------------------------------------------------------------

    min_results_before_fallback: int = 3
    max_fallback_threads: int = 5

    # -------------------------------------------------------------------------
    # Forced-refresh diversity: keep this fraction (ceil) fixed, shuffle the rest
    # -------------------------------------------------------------------------

    fixed_top_fraction: float = Field(default=0.5, ge=0, le=1)

    # -------------------------------------------------------------------------
    # Tag-based and mixed recommendations
    # -------------------------------------------------------------------------

    top_tag_count: int = 5
    mixed_content_share: float = Field(default=0.7, ge=0, le=1)
    mixed_tag_share: float = Field(default=0.3, ge=0, le=1)

    @model_validator(mode="after")
    def weights_sum_to_one(self):
        total = self.weight_similarity + self.weight_freshness + self.weight_author
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        if "weights" in config_dict:
            w = config_dict["weights"]
            if "similarity" in w:
                flat["weight_similarity"] = w["similarity"]
            if "freshness" in w:
                flat["weight_freshness"] = w["freshness"]
            if "author" in w:
                flat["weight_author"] = w["author"]
        if "candidate_pool" in config_dict:
            flat.update(config_dict["candidate_pool"])
        if "ranking" in config_dict:
            flat.update(config_dict["ranking"])
        if "tags" in config_dict:
            tags = config_dict["tags"]
            if "top_count" in tags:
                flat["top_tag_count"] = tags["top_count"]
        if "mixed" in config_dict:
            mixed = config_dict["mixed"]
            if "content_share" in mixed:
                flat["mixed_content_share"] = mixed["content_share"]
            if "tag_share" in mixed:
                flat["mixed_tag_share"] = mixed["tag_share"]
        # Flat keys are accepted too
        flat.update({k: v for k, v in config_dict.items() if k in cls.model_fields})
        return cls.model_validate(flat)


DEFAULT_CONFIG = RecommendationConfig()
DEFAULT_THRESHOLDS = EngagementThresholds()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
