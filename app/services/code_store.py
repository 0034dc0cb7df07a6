"""
In-memory store of one-time verification codes.

Each email maps to at most one live :class:`CodeEntry`.  Expiry is enforced
lazily on every lookup; the reaper's :meth:`CodeStore.purge_expired` only
bounds memory.  Nothing here is persisted across restarts.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.errors import CodeExpired, CodeNotFound, InvalidCode, TooManyAttempts

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CODE_MIN = 100_000
CODE_MAX = 999_999


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    """Uniformly random 6-digit code in 100000–999999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


@dataclass
class CodeEntry:
    email: str
    code: str
    expires_at: datetime
    failed_attempts: int = 0


class CodeStore:
    """
    Transient email → code mapping with TTL and single-use semantics.

    All methods are synchronous, so each call is atomic with respect to
    other coroutines on the same event loop.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(minutes=15),
        max_attempts: int = 5,
        clock: Clock = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self._ttl = ttl
        self._max_attempts = max_attempts
        self._clock = clock
        self._code_factory = code_factory
        self._entries: dict[str, CodeEntry] = {}

    # ── Write ──────────────────────────────────────────────────────────

    def generate(self) -> str:
        return self._code_factory()

    def put(self, email: str, code: str) -> CodeEntry:
        """Store *code* for *email*, replacing any previous entry."""
        entry = CodeEntry(email=email, code=code, expires_at=self._clock() + self._ttl)
        if email in self._entries:
            logger.debug("Replacing pending code for %s", email)
        self._entries[email] = entry
        return entry

    def issue(self, email: str) -> str:
        """Generate a fresh code for *email* and store it."""
        code = self.generate()
        self.put(email, code)
        return code

    # ── Verify ─────────────────────────────────────────────────────────

    def verify(self, email: str, submitted: str) -> None:
        """
        Check *submitted* against the stored code and consume it on success.

        Raises CodeNotFound, CodeExpired, InvalidCode or TooManyAttempts.
        A wrong code leaves the entry in place until the attempt bound
        is reached.
        """
        entry = self._entries.get(email)
        if entry is None:
            raise CodeNotFound()

        if self._clock() >= entry.expires_at:
            del self._entries[email]
            raise CodeExpired()

        if not secrets.compare_digest(submitted.strip().encode(), entry.code.encode()):
            entry.failed_attempts += 1
            if self._max_attempts > 0 and entry.failed_attempts >= self._max_attempts:
                del self._entries[email]
                logger.warning(
                    "Code for %s discarded after %d failed attempts",
                    email, entry.failed_attempts,
                )
                raise TooManyAttempts()
            raise InvalidCode()

        del self._entries[email]

    # ── Housekeeping ───────────────────────────────────────────────────

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [email for email, e in self._entries.items() if now >= e.expires_at]
        for email in expired:
            del self._entries[email]
        return len(expired)

    def __contains__(self, email: object) -> bool:
        return email in self._entries

    def __len__(self) -> int:
        return len(self._entries)
