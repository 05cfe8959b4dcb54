"""
Session manager: the single current reading session of this process.

A new session starts when none exists or the previous one has been inactive
longer than the timeout window. The replaced session is saved with ended_at
set to its last activity.
"""

import logging
import random
import string
from datetime import datetime, timedelta
from typing import Optional

from recommender import Session

from .store import Store

logger = logging.getLogger(__name__)

SESSION_TIMEOUT_MINUTES = 30
_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id(now: datetime, rng: Optional[random.Random] = None) -> str:
    """session_<epoch-ms>_<9 random base-36 chars>"""
    rng = rng or random.Random()
    suffix = "".join(rng.choice(_BASE36) for _ in range(9))
    return f"session_{int(now.timestamp() * 1000)}_{suffix}"


class SessionManager:
    """Owns the current session id; inject into the engagement aggregator."""

    def __init__(
        self,
        store: Store,
        timeout_minutes: float = SESSION_TIMEOUT_MINUTES,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.timeout = timedelta(minutes=timeout_minutes)
        self.rng = rng or random.Random()
        self._current: Optional[Session] = None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    async def get_or_create(self, now: datetime) -> str:
        """
        Return the active session id, starting a new session when needed.

        Every call counts as activity and slides the inactivity window.
        """
        current = self._current
        if current is not None:
            last = current.last_activity_at or current.started_at
            if now - last <= self.timeout:
                self._current = current.model_copy(update={"last_activity_at": now})
                return current.session_id
            await self.store.save_session(current.model_copy(update={"ended_at": last}))
            logger.info(
                "[sessions] SESSION_EXPIRED session_id=%s idle_seconds=%d",
                current.session_id, (now - last).total_seconds(),
            )

        session = Session(
            session_id=generate_session_id(now, self.rng),
            started_at=now,
            last_activity_at=now,
        )
        await self.store.save_session(session)
        self._current = session
        logger.info("[sessions] SESSION_STARTED session_id=%s", session.session_id)
        return session.session_id
