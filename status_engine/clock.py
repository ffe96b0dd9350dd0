"""Clocks used to sample the query instant once per request."""

from datetime import datetime, timedelta, timezone

from .models import normalize_timestamp


class SystemClock:
    """Wall clock returning naive UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
    """Clock frozen at a given instant, for tests and replays."""

    def __init__(self, instant: datetime):
        self.instant = normalize_timestamp(instant, 'instant')

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta):
        self.instant = self.instant + delta

    def set(self, instant: datetime):
        self.instant = normalize_timestamp(instant, 'instant')
