"""
Thread model — a forum topic, the unit of recommendation.

Used by the candidate pool, ranking, and tag-based stages instead of raw dicts.
Built from store/adapter dicts via Thread.model_validate(d) or ensure_threads().
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, ValidationError, field_validator

from .base import RecordModel, UtcDatetime

logger = logging.getLogger(__name__)

# threadId namespace prefix -> forum id
FORUM_BY_NAMESPACE = {
    "linuxdo": "linux.do",
    "nodeseek": "nodeseek.com",
}
DEFAULT_FORUM_ID = "linux.do"


def forum_for_thread_id(thread_id: str) -> str:
    """Forum id implied by a namespaced thread id such as "nodeseek:123"."""
    namespace, sep, _ = thread_id.partition(":")
    if not sep:
        return DEFAULT_FORUM_ID
    return FORUM_BY_NAMESPACE.get(namespace, DEFAULT_FORUM_ID)


class Thread(RecordModel):
    """
    A forum thread as normalized by a source adapter and persisted by the store.

    thread_id is the primary key, namespaced by forum ("<forum>:<native-id>").
    created_at / updated_at / last_seen_at are bookkeeping set by the store.
    """

    thread_id: str = Field(min_length=1)
    forum_id: str = ""
    url: str = ""
    title: str = ""
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
    last_seen_at: Optional[UtcDatetime] = None
    is_new: bool = True

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, v):
        return [] if v is None else v

    @field_validator("forum_id", "url", "title", "category", mode="before")
    @classmethod
    def _text_default(cls, v):
        return "" if v is None else v

    def published_or_created(self) -> Optional[datetime]:
        """Timestamp used for recency, freshness, and newest-first ordering."""
        return self.published_at or self.created_at

    def text(self) -> str:
        """Title, category, and tags joined for lexical similarity."""
        return f"{self.title} {self.category} {' '.join(self.tags)}"


def ensure_threads(items: List[Union[Dict[str, Any], "Thread"]]) -> List["Thread"]:
    """
    Convert list of dicts or Threads to Thread models for the pipeline.

    Records that fail validation are skipped rather than aborting the pass.
    """
    threads: List[Thread] = []
    for item in items:
        if isinstance(item, Thread):
            threads.append(item)
            continue
        try:
            threads.append(Thread.model_validate(item))
        except ValidationError as e:
            logger.warning("[recommender] MALFORMED_THREAD skipped: %s", e.errors()[:1])
    return threads
