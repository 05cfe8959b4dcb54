"""Data management: stats, paginated scans, export/import, repair, clear."""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query

from ..models import DeduplicateResponse, OkResponse, PageResponse
from ..state import get_state

router = APIRouter()

MAX_PAGE_SIZE = 500
DEFAULT_PAGE_SIZE = 100


def _page(result: Dict[str, Any]) -> PageResponse:
    return PageResponse(
        items=[item.to_record() for item in result["items"]],
        total=result["total"],
        has_more=result["has_more"],
        next_offset=result["next_offset"],
    )


@router.get("/stats")
async def get_stats():
    return await get_state().store.get_stats()


@router.get("/events", response_model=PageResponse)
async def list_events(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    thread_id: Optional[str] = None,
    session_id: Optional[str] = None,
    completed: Optional[int] = Query(None, ge=0, le=1),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    """Read events, newest first."""
    result = await get_state().store.get_events_paginated(
        offset,
        limit,
        {
            "thread_id": thread_id,
            "session_id": session_id,
            "completed": completed,
            "start_date": start_date,
            "end_date": end_date,
        },
    )
    return _page(result)


@router.get("/threads", response_model=PageResponse)
async def list_threads(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    forum_id: Optional[str] = None,
    is_new: Optional[bool] = None,
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    """Stored threads, most recently stored first."""
    result = await get_state().store.get_threads_paginated(
        offset,
        limit,
        {
            "forum_id": forum_id,
            "is_new": is_new,
            "category": category,
            "start_date": start_date,
            "end_date": end_date,
        },
    )
    return _page(result)


@router.get("/export")
async def export_data():
    return await get_state().store.export_all_data()


@router.post("/import")
async def import_data(data: Dict[str, Any] = Body(...)):
    return await get_state().store.import_data(data)


@router.post("/deduplicate", response_model=DeduplicateResponse)
async def deduplicate():
    """Collapse read events per thread. Lossy: session granularity is lost."""
    result = await get_state().store.deduplicate_read_events()
    return DeduplicateResponse(
        duplicates_removed=result.duplicates_removed,
        threads_affected=result.threads_affected,
    )


@router.delete("", response_model=OkResponse)
async def clear_data():
    """Remove threads, sessions and read events. Disliked threads are kept."""
    await get_state().store.clear_all_data()
    return OkResponse()
