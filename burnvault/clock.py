"""Time sources used by the store.

Every timestamp in burnvault is a timezone-aware UTC ``datetime``.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


class SystemClock:
    """Wall clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to.

    Used by tests and by tooling that replays a fixed point in time.
    """

    def __init__(self, start: Optional[datetime] = None):
        start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        """Move the clock forward and return the new time."""
        self._now = self._now + timedelta(seconds=seconds)
        return self._now

    def set(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._now = value
