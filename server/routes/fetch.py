"""Ingestion endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.post("/trigger")
async def trigger_fetch():
    """Fetch every source now, ignoring cooldowns."""
    result = await get_state().dispatcher.trigger_fetch()
    return {"ok": True, "result": result}


@router.get("/stats")
def fetch_stats():
    return {"ok": True, "stats": get_state().ingestion.get_fetch_stats()}
