"""
JSON file store: one file per collection under a data directory.

threads.json, read_events.json, sessions.json and disliked_threads.json hold
lists of records; settings.json holds the engagement thresholds. The touched
collection is rewritten atomically after each mutation, off the event loop.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

from pydantic import ValidationError

from recommender import DislikedThread, EngagementThresholds, Session
from recommender.models import ensure_read_events, ensure_threads
from recommender.utils import utcnow

from .json_io import atomic_write_json, read_json
from .memory_store import (
    DISLIKED_THREADS,
    READ_EVENTS,
    SESSIONS,
    SETTINGS,
    THREADS,
    InMemoryStore,
)
from .store import StoreError

logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """Store backed by JSON files (e.g. data/threads.json)."""

    def __init__(self, data_dir: Union[Path, str], clock: Callable[[], datetime] = utcnow):
        super().__init__(clock=clock)
        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        # One writer per file; concurrent writes land in call order.
        self._write_locks: Dict[str, asyncio.Lock] = {
            c: asyncio.Lock() for c in (THREADS, READ_EVENTS, SESSIONS, DISLIKED_THREADS, SETTINGS)
        }
        self._load()

    def _path(self, collection: str) -> Path:
        return self._dir / f"{collection}.json"

    def _read_list(self, collection: str) -> List[Dict[str, Any]]:
        path = self._path(collection)
        try:
            data = read_json(path, [])
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("[store] UNREADABLE_FILE path=%s error=%s, starting empty", path, e)
            return []
        if not isinstance(data, list):
            logger.warning("[store] UNEXPECTED_FORMAT path=%s, starting empty", path)
            return []
        return data

    def _load(self) -> None:
        for thread in ensure_threads(self._read_list(THREADS)):
            self._threads[thread.thread_id] = thread
        for event in ensure_read_events(self._read_list(READ_EVENTS)):
            self._events[event.event_id] = event
        for raw in self._read_list(SESSIONS):
            try:
                session = Session.model_validate(raw)
            except ValidationError:
                continue
            self._sessions[session.session_id] = session
        for raw in self._read_list(DISLIKED_THREADS):
            try:
                marker = DislikedThread.model_validate(raw)
            except ValidationError:
                continue
            self._disliked[marker.thread_id] = marker

        settings_path = self._path(SETTINGS)
        try:
            settings = read_json(settings_path, None)
            if settings is not None:
                self._thresholds = EngagementThresholds.model_validate(settings)
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            logger.warning("[store] INVALID_SETTINGS path=%s error=%s, using defaults", settings_path, e)

        logger.info(
            "[store] LOADED dir=%s threads=%d read_events=%d sessions=%d disliked=%d",
            self._dir, len(self._threads), len(self._events),
            len(self._sessions), len(self._disliked),
        )

    def _snapshot(self, collection: str) -> Any:
        if collection == THREADS:
            return [t.to_record() for t in self._threads.values()]
        if collection == READ_EVENTS:
            return [e.to_record() for e in self._events.values()]
        if collection == SESSIONS:
            return [s.to_record() for s in self._sessions.values()]
        if collection == DISLIKED_THREADS:
            return [d.to_record() for d in self._disliked.values()]
        if collection == SETTINGS:
            return self._thresholds.model_dump(mode="json")
        raise ValueError(f"Unknown collection: {collection}")

    async def _persist(self, *collections: str) -> None:
        for collection in collections:
            path = self._path(collection)
            async with self._write_locks[collection]:
                # Snapshot on the loop thread under the lock so the newest state is written last.
                payload = self._snapshot(collection)
                try:
                    await asyncio.to_thread(atomic_write_json, path, payload)
                except OSError as e:
                    raise StoreError(f"Failed to write {path}: {e}") from e
