"""Engagement threshold settings."""

from fastapi import APIRouter

from recommender import EngagementThresholds

from ..state import get_state

router = APIRouter()


@router.get("/thresholds", response_model=EngagementThresholds)
async def get_thresholds():
    return await get_state().store.get_thresholds()


@router.put("/thresholds", response_model=EngagementThresholds)
async def set_thresholds(thresholds: EngagementThresholds):
    """Takes effect on the next engagement update."""
    return await get_state().store.set_thresholds(thresholds)
