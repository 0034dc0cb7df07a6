"""
Email delivery providers.

Every provider satisfies :class:`NotificationProvider`: ``send`` returns
``None`` on success, raises :class:`ProviderError` when the upstream service
fails and :class:`ProviderMisconfigured` when its credentials are missing.
The provider is picked once at startup by :func:`build_provider`, so
callers never branch on which one is active.

  • sendgrid – SendGrid v3 mail/send JSON API
  • resend   – Resend emails JSON API
  • smtp     – direct submission to a mail relay via aiosmtplib
  • console  – development mode, logs the message instead of sending it
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Protocol

import aiosmtplib
import httpx

from app.config import ProviderConfig
from app.errors import ProviderError, ProviderMisconfigured

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
RESEND_URL = "https://api.resend.com/emails"


class NotificationProvider(Protocol):
    """Protocol that every email delivery backend must satisfy."""

    name: str

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        ...

    async def close(self) -> None:
        ...


# ── HTTP JSON providers ────────────────────────────────────────────────────


class _HttpEmailProvider:
    """Shared plumbing for bearer-token JSON email APIs."""

    name = "http"
    url = ""

    def __init__(
        self,
        config: ProviderConfig,
        api_key: str,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    def _payload(self, to: str, subject: str, text_body: str, html_body: str) -> dict[str, Any]:
        raise NotImplementedError

    def _check_config(self) -> None:
        if not self._api_key:
            raise ProviderMisconfigured(f"{self.name}: API key is not set")
        if not self._config.from_email:
            raise ProviderMisconfigured(f"{self.name}: FROM_EMAIL is not set")

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        self._check_config()
        try:
            resp = await self._client.post(
                self.url,
                json=self._payload(to, subject, text_body, html_body),
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc!r}") from exc

        if not resp.is_success:
            raise ProviderError(
                self.name,
                "provider rejected message",
                status=resp.status_code,
                body=resp.text,
            )
        logger.info("Email sent to %s via %s", to, self.name)


class SendGridProvider(_HttpEmailProvider):
    name = "sendgrid"
    url = SENDGRID_URL

    def _payload(self, to: str, subject: str, text_body: str, html_body: str) -> dict[str, Any]:
        sender: dict[str, str] = {"email": self._config.from_email}
        if self._config.from_name:
            sender["name"] = self._config.from_name
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": sender,
            "subject": subject,
            # SendGrid requires text/plain to come before text/html
            "content": [
                {"type": "text/plain", "value": text_body},
                {"type": "text/html", "value": html_body},
            ],
        }


class ResendProvider(_HttpEmailProvider):
    name = "resend"
    url = RESEND_URL

    def _payload(self, to: str, subject: str, text_body: str, html_body: str) -> dict[str, Any]:
        return {
            "from": self._config.sender,
            "to": [to],
            "subject": subject,
            "text": text_body,
            "html": html_body,
        }


# ── SMTP ───────────────────────────────────────────────────────────────────


class SmtpProvider:
    name = "smtp"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    async def close(self) -> None:
        pass

    def _build_message(self, to: str, subject: str, text_body: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._config.sender
        msg["To"] = to
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        cfg = self._config
        missing = [
            key
            for key, value in [
                ("SMTP_HOST", cfg.smtp_host),
                ("SMTP_USERNAME", cfg.smtp_username),
                ("SMTP_PASSWORD", cfg.smtp_password),
                ("FROM_EMAIL", cfg.from_email),
            ]
            if not value
        ]
        if missing:
            raise ProviderMisconfigured(f"smtp: missing settings: {', '.join(missing)}")

        msg = self._build_message(to, subject, text_body, html_body)
        try:
            await aiosmtplib.send(
                msg,
                hostname=cfg.smtp_host,
                port=cfg.smtp_port,
                username=cfg.smtp_username,
                password=cfg.smtp_password,
                start_tls=cfg.smtp_use_tls,
                timeout=cfg.timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise ProviderError(self.name, f"delivery failed: {exc!r}") from exc
        logger.info("Email sent to %s via smtp (%s)", to, cfg.smtp_host)


# ── Console (dev) ──────────────────────────────────────────────────────────


class ConsoleProvider:
    """Logs emails instead of sending them. Never use in production."""

    name = "console"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config

    async def close(self) -> None:
        pass

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> None:
        logger.info(
            "📧 [DEV] Would send email to %s:\n  Subject: %s\n%s",
            to, subject, text_body,
        )


# ── Factory ────────────────────────────────────────────────────────────────


PROVIDERS = ("sendgrid", "resend", "smtp", "console")


def build_provider(config: ProviderConfig) -> NotificationProvider:
    """Instantiate the provider named by ``config.provider``."""
    if config.provider == "sendgrid":
        return SendGridProvider(config, config.sendgrid_api_key)
    if config.provider == "resend":
        return ResendProvider(config, config.resend_api_key)
    if config.provider == "smtp":
        return SmtpProvider(config)
    if config.provider == "console":
        logger.warning("EMAIL_PROVIDER=console: verification emails are only logged")
        return ConsoleProvider(config)
    raise ProviderMisconfigured(
        f"unknown EMAIL_PROVIDER {config.provider!r}; expected one of {', '.join(PROVIDERS)}"
    )
