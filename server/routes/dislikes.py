"""Disliked-thread endpoints."""

from fastapi import APIRouter, Query

from ..models import ThreadIdRequest
from ..state import get_state

router = APIRouter()


@router.get("")
async def list_disliked():
    disliked = await get_state().store.get_all_disliked_threads()
    return {"ok": True, "disliked_threads": [d.to_record() for d in disliked]}


@router.post("")
async def add_disliked(request: ThreadIdRequest):
    marker = await get_state().store.add_disliked_thread(request.thread_id)
    return {"ok": True, "disliked_thread": marker.to_record()}


@router.delete("")
async def remove_disliked(thread_id: str = Query(..., min_length=1)):
    removed = await get_state().store.remove_disliked_thread(thread_id)
    return {"ok": True, "removed": removed}
