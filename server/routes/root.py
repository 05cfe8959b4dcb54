"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Forum Recommender API",
        "version": "1.0.0",
        "store": type(state.store).__name__,
        "sources": [a.forum_id for a in state.ingestion.adapters],
        "endpoints": {
            "messages": ["/api/messages"],
            "recommendations": [
                "/api/recommendations/content",
                "/api/recommendations/tags",
                "/api/recommendations/mixed",
                "/api/recommendations/clicked",
            ],
            "dislikes": ["/api/dislikes"],
            "settings": ["/api/settings/thresholds"],
            "data": [
                "/api/data/stats",
                "/api/data/events",
                "/api/data/threads",
                "/api/data/export",
                "/api/data/import",
                "/api/data/deduplicate",
            ],
            "fetch": ["/api/fetch/trigger", "/api/fetch/stats"],
        },
    }


@router.get("/api/health")
async def health():
    state = get_state()
    current = state.sessions.current
    return {
        "status": "healthy",
        "store": type(state.store).__name__,
        "current_session_id": current.session_id if current else None,
    }
