"""
Click tracker: the set of recommended thread ids the user already clicked.

Persisted separately from the main store. Read by the candidate filter,
appended to by the click handler, cleared wholesale by a forced refresh.
Last write wins; no locking.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol, Set, Union

from .json_io import atomic_write_json, read_json
from .store import StoreError

logger = logging.getLogger(__name__)

CLICKED_FILENAME = "clicked_recommendations.json"


class ClickTracker(Protocol):
    """Protocol for the clicked-recommendation suppression set."""

    async def get_clicked(self) -> Set[str]:
        ...

    async def add_clicked(self, thread_id: str) -> None:
        """Record a click; adding an id twice is a no-op."""
        ...

    async def clear_clicked(self) -> None:
        ...


class InMemoryClickTracker:
    """Click tracker holding the set in process memory."""

    def __init__(self):
        self._clicked: Set[str] = set()

    async def _persist(self) -> None:
        return None

    async def get_clicked(self) -> Set[str]:
        return set(self._clicked)

    async def add_clicked(self, thread_id: str) -> None:
        if thread_id in self._clicked:
            return
        self._clicked.add(thread_id)
        try:
            await self._persist()
        except StoreError:
            self._clicked.discard(thread_id)
            raise

    async def clear_clicked(self) -> None:
        previous = self._clicked
        self._clicked = set()
        try:
            await self._persist()
        except StoreError:
            self._clicked = previous | self._clicked
            raise
        logger.info("[clicks] CLEARED clicked recommendations")


class JsonClickTracker(InMemoryClickTracker):
    """Click tracker backed by clicked_recommendations.json in the data directory."""

    def __init__(self, data_dir: Union[Path, str]):
        super().__init__()
        self._path = Path(data_dir) / CLICKED_FILENAME
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write_lock = asyncio.Lock()
        try:
            data = read_json(self._path, [])
            if isinstance(data, list):
                self._clicked = {str(tid) for tid in data}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("[clicks] UNREADABLE_FILE path=%s error=%s", self._path, e)

    async def _persist(self) -> None:
        async with self._write_lock:
            payload = sorted(self._clicked)
            try:
                await asyncio.to_thread(atomic_write_json, self._path, payload)
            except OSError as e:
                raise StoreError(f"Failed to write {self._path}: {e}") from e
