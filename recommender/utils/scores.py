"""
Score helpers — freshness decay and time utilities used by ranking and the stores.
"""

from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; leave aware ones untouched."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def days_since(dt: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days between dt and now (negative for future timestamps)."""
    now = ensure_utc(now) if now is not None else utcnow()
    return (now - ensure_utc(dt)).total_seconds() / SECONDS_PER_DAY


def freshness(
    published_at: Optional[datetime],
    now: Optional[datetime] = None,
    horizon_days: float = 7.0,
) -> float:
    """
    Linear freshness decay: 1.0 at publication, 0.0 at horizon_days and beyond.

    Future-dated timestamps (clock skew) clamp to 1.0; a missing timestamp scores 0.
    """
    if published_at is None:
        return 0.0
    days = days_since(published_at, now)
    if days > horizon_days:
        return 0.0
    return min(1.0, max(0.0, 1.0 - days / horizon_days))
