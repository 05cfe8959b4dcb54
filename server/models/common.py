"""Common Pydantic models shared across routes and commands."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recommender import Thread


class CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase keys sent by the browser extension."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ReaderThread(CamelModel):
    """Thread as described by the reader page."""

    thread_id: str = Field(min_length=1)
    url: str = ""
    title: str = ""
    category: Optional[str] = ""
    tags: Optional[List[str]] = None
    published_at: Optional[datetime] = None

    def to_thread(self, now: datetime, is_new: bool = False) -> Thread:
        return Thread(
            thread_id=self.thread_id,
            url=self.url,
            title=self.title,
            category=self.category or "",
            tags=self.tags or [],
            published_at=self.published_at or now,
            is_new=is_new,
        )


class ReaderMetrics(CamelModel):
    """Activity measured by the reader since its previous report."""

    active_ms_delta: float = Field(default=0, ge=0)
    max_scroll_pct: float = Field(default=0, ge=0, le=100)
    is_visible: Optional[bool] = None
    is_focused: Optional[bool] = None
    idle: Optional[bool] = None


class ThreadIdRequest(CamelModel):
    thread_id: str = Field(min_length=1)
    title: Optional[str] = None
