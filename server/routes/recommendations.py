"""Recommendation endpoints: content, tag-based and mixed lists, clicked suppression."""

from fastapi import APIRouter, Query

from ..models import OkResponse, RecommendationsResponse, ThreadIdRequest
from ..state import get_state

router = APIRouter()

MAX_LIMIT = 100


@router.get("/content", response_model=RecommendationsResponse)
async def content_recommendations(
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    forum: str = "all",
    force_refresh: bool = False,
):
    """Unread threads ranked by similarity to the reading history and freshness."""
    recs = await get_state().recommender.generate_recommendations(limit, forum, force_refresh)
    return RecommendationsResponse(recommendations=[r.to_record() for r in recs])


@router.get("/tags", response_model=RecommendationsResponse)
async def tag_recommendations(
    limit: int = Query(5, ge=1, le=MAX_LIMIT),
    forum: str = "all",
    force_refresh: bool = False,
):
    """Newest unread threads sharing the most frequent tags of completed reads."""
    recs = await get_state().recommender.get_tag_based_recommendations(limit, forum, force_refresh)
    return RecommendationsResponse(recommendations=[r.to_record() for r in recs])


@router.get("/mixed", response_model=RecommendationsResponse)
async def mixed_recommendations(
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    forum: str = "all",
    force_refresh: bool = False,
):
    """Content and tag-based results merged; force_refresh also clears clicked threads."""
    recs = await get_state().recommender.get_mixed_recommendations(limit, forum, force_refresh)
    return RecommendationsResponse(recommendations=[r.to_record() for r in recs])


@router.post("/clicked", response_model=OkResponse)
async def mark_clicked(request: ThreadIdRequest):
    await get_state().clicks.add_clicked(request.thread_id)
    return OkResponse()


@router.get("/clicked")
async def list_clicked():
    clicked = await get_state().clicks.get_clicked()
    return {"ok": True, "clicked": sorted(clicked)}


@router.delete("/clicked", response_model=OkResponse)
async def clear_clicked():
    await get_state().clicks.clear_clicked()
    return OkResponse()
