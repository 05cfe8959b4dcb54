"""
Forum Recommender — FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import app
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import configure_logging, get_config
from .routes import register_routes
from .services import StoreError
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, error handling and startup."""
    app = FastAPI(
        title="Forum Recommender API",
        description="Reading engagement tracking and thread recommendations",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error("[app] STORE_ERROR path=%s error=%s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})

    @app.on_event("startup")
    async def _startup():
        config = get_config()
        configure_logging(config.log_level)
        ok, errors = config.validate()
        for error in errors:
            logger.warning("[startup] CONFIG %s", error)
        state = get_state()
        logger.info(
            "[startup] Forum Recommender API starting store=%s data_dir=%s valid_config=%s",
            type(state.store).__name__, config.data_dir, ok,
        )

    return app


app = create_app()
