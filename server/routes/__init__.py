"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .data import router as data_router
from .dislikes import router as dislikes_router
from .fetch import router as fetch_router
from .messages import router as messages_router
from .recommendations import router as recommendations_router
from .root import router as root_router
from .settings import router as settings_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(messages_router, prefix="/api/messages", tags=["messages"])
    app.include_router(
        recommendations_router, prefix="/api/recommendations", tags=["recommendations"]
    )
    app.include_router(dislikes_router, prefix="/api/dislikes", tags=["dislikes"])
    app.include_router(settings_router, prefix="/api/settings", tags=["settings"])
    app.include_router(data_router, prefix="/api/data", tags=["data"])
    app.include_router(fetch_router, prefix="/api/fetch", tags=["fetch"])
