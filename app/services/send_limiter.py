"""
Per-email sliding-window limiter for verification code sends.

Only successful sends are recorded, so a provider failure never burns
budget.  IP-level request throttling lives in :mod:`app.rate_limit`.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta

from app.services.code_store import Clock, utcnow


class SendRateLimiter:
    def __init__(
        self,
        *,
        limit: int = 3,
        window: timedelta = timedelta(hours=1),
        clock: Clock = utcnow,
    ) -> None:
        self._limit = limit
        self._window = window
        self._clock = clock
        self._sends: dict[str, deque[datetime]] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def _recent(self, email: str, now: datetime) -> deque[datetime] | None:
        """Prune *email*'s timestamps to the window; drop the record if empty."""
        sends = self._sends.get(email)
        if sends is None:
            return None
        cutoff = now - self._window
        while sends and sends[0] <= cutoff:
            sends.popleft()
        if not sends:
            del self._sends[email]
            return None
        return sends

    def can_send(self, email: str) -> bool:
        sends = self._recent(email, self._clock())
        return sends is None or len(sends) < self._limit

    def record_send(self, email: str) -> None:
        now = self._clock()
        sends = self._recent(email, now)
        if sends is None:
            sends = self._sends[email] = deque()
        sends.append(now)

    def retry_after(self, email: str) -> float:
        """Seconds until the oldest send in the window ages out (0 if free)."""
        now = self._clock()
        sends = self._recent(email, now)
        if sends is None or len(sends) < self._limit:
            return 0.0
        return max(0.0, (sends[0] + self._window - now).total_seconds())

    def prune(self) -> int:
        """Prune every record; returns the number of records removed."""
        now = self._clock()
        before = len(self._sends)
        for email in list(self._sends):
            self._recent(email, now)
        return before - len(self._sends)

    def __len__(self) -> int:
        return len(self._sends)
