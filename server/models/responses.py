"""Response models for the HTTP routes."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class OkResponse(BaseModel):
    ok: bool = True
    error: Optional[str] = None


class RecommendationsResponse(BaseModel):
    ok: bool = True
    recommendations: List[Dict[str, Any]] = []


class PageResponse(BaseModel):
    items: List[Dict[str, Any]]
    total: int
    has_more: bool
    next_offset: Optional[int] = None


class DeduplicateResponse(BaseModel):
    duplicates_removed: int
    threads_affected: int
