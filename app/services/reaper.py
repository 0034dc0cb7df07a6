"""
Periodic sweep of expired codes and stale send-rate records.

Both stores already enforce expiry on read, so the reaper only keeps
memory bounded when many distinct addresses request codes.

Usage::

    reaper = Reaper(codes, limiter, interval=60)
    await reaper.start()        # spawns the background task
    ...
    await reaper.stop()         # cancels it
"""

from __future__ import annotations

import logging

from app.services.background import BackgroundWorker
from app.services.code_store import CodeStore
from app.services.send_limiter import SendRateLimiter

logger = logging.getLogger(__name__)


class Reaper(BackgroundWorker):
    def __init__(
        self,
        codes: CodeStore,
        limiter: SendRateLimiter,
        *,
        interval: float = 60.0,
    ) -> None:
        super().__init__(interval=interval, name="code-reaper")
        self._codes = codes
        self._limiter = limiter

    def sweep(self) -> tuple[int, int]:
        """Run one pass; returns (codes removed, rate records removed)."""
        codes = self._codes.purge_expired()
        records = self._limiter.prune()
        if codes or records:
            logger.debug("Reaper removed %d codes, %d rate records", codes, records)
        return codes, records

    async def _tick(self) -> None:
        self.sweep()
