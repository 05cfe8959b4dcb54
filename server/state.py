"""Application state: store, trackers, session manager, recommender and ingestion."""

import logging
from typing import Optional

from recommender import Recommender

from .commands import CommandDispatcher
from .config import ServerConfig, get_config
from .services import (
    EngagementAggregator,
    HttpJsonSourceAdapter,
    InMemoryClickTracker,
    InMemoryStore,
    IngestionManager,
    JsonClickTracker,
    JsonFileStore,
    SessionManager,
)

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig):
        self.config = config

        # Persistence: JSON files by default, in-memory for tests
        if config.store_backend == "memory":
            self.store = InMemoryStore()
            self.clicks = InMemoryClickTracker()
        else:
            self.store = JsonFileStore(config.data_dir)
            self.clicks = JsonClickTracker(config.data_dir)
        logger.info("[startup] Store: %s", type(self.store).__name__)

        self.sessions = SessionManager(self.store, config.session_timeout_minutes)
        self.aggregator = EngagementAggregator(self.store, self.sessions)
        self.recommender = Recommender(
            self.store,
            self.clicks,
            config.load_recommendation_config(),
        )

        adapters = [
            HttpJsonSourceAdapter(forum_id, url)
            for forum_id, url in config.source_feeds.items()
        ]
        self.ingestion = IngestionManager(adapters)
        logger.info("[startup] Source adapters: %s", [a.forum_id for a in adapters])

        self.dispatcher = CommandDispatcher(
            self.store,
            self.clicks,
            self.sessions,
            self.aggregator,
            self.recommender,
            self.ingestion,
        )


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (None resets it to lazy creation)."""
    global _state
    _state = state
