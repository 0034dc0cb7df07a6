"""
Typed exceptions and their mapping to JSON error responses.

Every error a route can raise derives from :class:`ServiceError`, which
carries the client-facing message and HTTP status.  The handlers
registered by :func:`register_exception_handlers` turn them into
``{"error": "<message>"}`` bodies.  Anything else becomes a generic 500.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal error"


class ServiceError(Exception):
    """Base exception carrying a client-safe message and HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = INTERNAL_ERROR

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ── Client errors ──────────────────────────────────────────────────────────


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class RateLimited(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many verification codes requested. Try again later."

    def __init__(self, retry_after_seconds: float | None = None) -> None:
        self.retry_after_seconds = retry_after_seconds
        message = None
        if retry_after_seconds is not None:
            minutes = max(1, int(-(-retry_after_seconds // 60)))
            message = (
                "Too many verification codes requested. "
                f"Try again in {minutes} minute{'s' if minutes != 1 else ''}."
            )
        super().__init__(message)


class CodeNotFound(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No verification code found for this email. Request a new code."


class CodeExpired(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Verification code has expired. Request a new code."


class InvalidCode(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid verification code"


class TooManyAttempts(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Too many incorrect attempts. Request a new code."


# ── Provider / server errors ───────────────────────────────────────────────


class ProviderMisconfigured(ServiceError):
    """Credentials or settings for the selected provider are missing."""

    default_message = "Email service is not configured"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        return self.detail


class ProviderError(ServiceError):
    """The upstream provider rejected the request or could not be reached.

    *status* and *body* are kept for logs only and never sent to the client.
    """

    default_message = "Failed to send verification email"

    def __init__(
        self,
        provider: str,
        detail: str,
        *,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        self.provider = provider
        self.detail = detail
        self.status = status
        self.body = body
        super().__init__()

    def __str__(self) -> str:
        parts = [f"{self.provider}: {self.detail}"]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.body:
            parts.append(f"body={self.body[:500]}")
        return " ".join(parts)


class PaymentProviderError(ServiceError):
    default_message = "Failed to reach payment provider"


class PaymentMisconfigured(ProviderMisconfigured):
    default_message = "Payment service is not configured"


# ── Handlers ───────────────────────────────────────────────────────────────


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after_seconds is not None:
        headers = {"Retry-After": str(max(1, int(exc.retry_after_seconds)))}
    return _error(exc.status_code, exc.message, headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error(status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}")


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
