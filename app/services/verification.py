"""
Verification code orchestration: send-code and verify-code flows.

Per email the lifecycle is::

    NoCode → Pending → Verified | Expired | (re-send) Pending

A send that is rate limited or whose delivery fails never touches the
stored code, so an earlier Pending code stays valid.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email

from app.config import ProviderConfig
from app.errors import RateLimited, ValidationError
from app.services.code_store import Clock, CodeStore, utcnow
from app.services.dispatcher import NotificationDispatcher
from app.services.send_limiter import SendRateLimiter

logger = logging.getLogger(__name__)


def normalize_email(raw: str | None) -> str:
    """Return the canonical (lower-cased) form of *raw* or raise ValidationError."""
    if raw is None or not str(raw).strip():
        raise ValidationError("Email required")
    try:
        result = validate_email(str(raw).strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email address") from exc
    return result.normalized.lower()


class KeyedLocks:
    """One asyncio.Lock per key, discarded once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class VerificationService:
    def __init__(
        self,
        codes: CodeStore,
        limiter: SendRateLimiter,
        dispatcher: NotificationDispatcher,
        *,
        ttl_minutes: int = 15,
    ) -> None:
        self.codes = codes
        self.limiter = limiter
        self.dispatcher = dispatcher
        self._ttl_minutes = ttl_minutes
        self._locks = KeyedLocks()

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        dispatcher: NotificationDispatcher,
        *,
        clock: Clock = utcnow,
    ) -> VerificationService:
        return cls(
            CodeStore(
                ttl=timedelta(minutes=config.code_ttl_minutes),
                max_attempts=config.max_verify_attempts,
                clock=clock,
            ),
            SendRateLimiter(limit=config.rate_limit_per_hour, clock=clock),
            dispatcher,
            ttl_minutes=config.code_ttl_minutes,
        )

    async def send_code(self, raw_email: str | None) -> str:
        """
        Issue and deliver a new code to *raw_email*.

        Returns the normalized address.  Raises ValidationError, RateLimited,
        ProviderMisconfigured or ProviderError.
        """
        email = normalize_email(raw_email)
        async with self._locks.hold(email):
            if not self.limiter.can_send(email):
                logger.info("Send-code rate limited for %s", email)
                raise RateLimited(self.limiter.retry_after(email))

            code = self.codes.generate()
            await self.dispatcher.send_code(email, code, self._ttl_minutes)

            self.codes.put(email, code)
            self.limiter.record_send(email)
        logger.info("Verification code sent to %s", email)
        return email

    def verify_code(self, raw_email: str | None, code: str | int | None) -> str:
        """Consume the pending code for *raw_email*; returns the normalized address."""
        if not raw_email or code is None or not str(code).strip():
            raise ValidationError("Email and code required")
        email = normalize_email(raw_email)
        self.codes.verify(email, str(code))
        logger.info("Email verified: %s", email)
        return email
