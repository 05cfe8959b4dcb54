"""Backing logic: stores, trackers, sessions, engagement and ingestion."""

from .clicks import ClickTracker, InMemoryClickTracker, JsonClickTracker
from .engagement import EngagementAggregator
from .ingestion import (
    BaseSourceAdapter,
    HttpJsonSourceAdapter,
    IngestionManager,
    SourceAdapter,
)
from .json_store import JsonFileStore
from .memory_store import InMemoryStore
from .sessions import SessionManager, generate_session_id
from .store import Store, StoreError

__all__ = [
    "BaseSourceAdapter",
    "ClickTracker",
    "EngagementAggregator",
    "HttpJsonSourceAdapter",
    "InMemoryClickTracker",
    "InMemoryStore",
    "IngestionManager",
    "JsonClickTracker",
    "JsonFileStore",
    "SessionManager",
    "SourceAdapter",
    "Store",
    "StoreError",
    "generate_session_id",
]
