"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Server ────────────────────────────────────────────────────────────────

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

# Comma-separated list, "*" allows any origin.
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]

# ── Email provider ────────────────────────────────────────────────────────

# One of: sendgrid, resend, smtp, console
EMAIL_PROVIDER: str = os.getenv("EMAIL_PROVIDER", "smtp").strip().lower()

SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY", "")
RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")

SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
# EMAIL_USER / EMAIL_PASS are the older names, still honoured.
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", os.getenv("EMAIL_USER", ""))
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", os.getenv("EMAIL_PASS", ""))
SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")

FROM_EMAIL: str = os.getenv("FROM_EMAIL", SMTP_USERNAME)
FROM_NAME: str = os.getenv("FROM_NAME", "LegalTenderPay")

# Upper bound on a single provider call (HTTP or SMTP).
PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "15"))

# ── Verification codes ────────────────────────────────────────────────────

RATE_LIMIT_PER_HOUR: int = int(os.getenv("RATE_LIMIT_PER_HOUR", "3"))
CODE_TTL_MINUTES: int = int(os.getenv("CODE_TTL_MINUTES", "15"))

# Wrong guesses allowed per issued code; 0 or less disables the bound.
MAX_VERIFY_ATTEMPTS: int = int(os.getenv("MAX_VERIFY_ATTEMPTS", "5"))

# How often the reaper sweeps expired codes and stale rate records (seconds).
REAPER_INTERVAL_SECONDS: float = float(os.getenv("REAPER_INTERVAL_SECONDS", "60"))

# ── Flutterwave ───────────────────────────────────────────────────────────

FLW_SECRET_KEY: str = os.getenv("FLW_SECRET_KEY", "")
FLW_BASE_URL: str = os.getenv("FLW_BASE_URL", "https://api.flutterwave.com/v3")
FLW_REDIRECT_URL: str = os.getenv(
    "FLW_REDIRECT_URL", "https://yourfrontenddomain.com/payment-success.html"
)
FLW_LOGO_URL: str = os.getenv("FLW_LOGO_URL", "https://yourwebsite.com/logo.png")


@dataclass(frozen=True)
class ProviderConfig:
    """Process-wide settings for code issuance and email delivery.

    Built once at startup and never mutated afterwards.
    """

    provider: str = "smtp"
    sendgrid_api_key: str = ""
    resend_api_key: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    from_email: str = ""
    from_name: str = "LegalTenderPay"
    rate_limit_per_hour: int = 3
    code_ttl_minutes: int = 15
    max_verify_attempts: int = 5
    timeout_seconds: float = 15.0

    @property
    def sender(self) -> str:
        """RFC 5322 ``From`` header value."""
        return f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email


def load_provider_config() -> ProviderConfig:
    """Snapshot the module-level settings into a :class:`ProviderConfig`."""
    return ProviderConfig(
        provider=EMAIL_PROVIDER,
        sendgrid_api_key=SENDGRID_API_KEY,
        resend_api_key=RESEND_API_KEY,
        smtp_host=SMTP_HOST,
        smtp_port=SMTP_PORT,
        smtp_username=SMTP_USERNAME,
        smtp_password=SMTP_PASSWORD,
        smtp_use_tls=SMTP_USE_TLS,
        from_email=FROM_EMAIL,
        from_name=FROM_NAME,
        rate_limit_per_hour=RATE_LIMIT_PER_HOUR,
        code_ttl_minutes=CODE_TTL_MINUTES,
        max_verify_attempts=MAX_VERIFY_ATTEMPTS,
        timeout_seconds=PROVIDER_TIMEOUT_SECONDS,
    )
