"""Tests for the email delivery providers."""

import json
from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest

from app.errors import ProviderError, ProviderMisconfigured
from app.services.email import (
    RESEND_URL,
    SENDGRID_URL,
    ConsoleProvider,
    ResendProvider,
    SendGridProvider,
    SmtpProvider,
    build_provider,
)
from tests.mocks.models import make_config


def _mock_client(status_code: int = 202, body: str = "", captured: list | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, text=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── SendGrid ───────────────────────────────────────────────────────────────


class TestSendGridProvider:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        captured: list[httpx.Request] = []
        cfg = make_config(provider="sendgrid")
        provider = SendGridProvider(cfg, cfg.sendgrid_api_key, client=_mock_client(202, captured=captured))

        await provider.send("user@example.com", "Subject", "plain 123456", "<b>123456</b>")

        req = captured[0]
        assert str(req.url) == SENDGRID_URL
        assert req.headers["Authorization"] == "Bearer SG.test-key"
        payload = json.loads(req.content)
        assert payload["personalizations"] == [{"to": [{"email": "user@example.com"}]}]
        assert payload["from"] == {"email": "no-reply@legaltenderpay.test", "name": "LegalTenderPay"}
        assert payload["content"] == [
            {"type": "text/plain", "value": "plain 123456"},
            {"type": "text/html", "value": "<b>123456</b>"},
        ]

    @pytest.mark.asyncio
    async def test_non_2xx_is_provider_error(self):
        cfg = make_config(provider="sendgrid")
        provider = SendGridProvider(cfg, cfg.sendgrid_api_key, client=_mock_client(401, body='{"errors":["bad key"]}'))

        with pytest.raises(ProviderError) as exc_info:
            await provider.send("user@example.com", "s", "t", "h")

        assert exc_info.value.status == 401
        assert "bad key" in exc_info.value.body
        assert exc_info.value.message == "Failed to send verification email"

    @pytest.mark.asyncio
    async def test_missing_key_is_misconfigured(self):
        captured: list[httpx.Request] = []
        cfg = make_config(provider="sendgrid", sendgrid_api_key="")
        provider = SendGridProvider(cfg, cfg.sendgrid_api_key, client=_mock_client(captured=captured))

        with pytest.raises(ProviderMisconfigured):
            await provider.send("user@example.com", "s", "t", "h")
        assert captured == []

    @pytest.mark.asyncio
    async def test_transport_error_is_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        cfg = make_config(provider="sendgrid")
        provider = SendGridProvider(
            cfg, cfg.sendgrid_api_key,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        with pytest.raises(ProviderError):
            await provider.send("user@example.com", "s", "t", "h")


# ── Resend ─────────────────────────────────────────────────────────────────


class TestResendProvider:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        captured: list[httpx.Request] = []
        cfg = make_config(provider="resend")
        provider = ResendProvider(cfg, cfg.resend_api_key, client=_mock_client(200, '{"id":"x"}', captured))

        await provider.send("user@example.com", "Subject", "plain", "<p>html</p>")

        req = captured[0]
        assert str(req.url) == RESEND_URL
        assert req.headers["Authorization"] == "Bearer re_test_key"
        payload = json.loads(req.content)
        assert payload == {
            "from": "LegalTenderPay <no-reply@legaltenderpay.test>",
            "to": ["user@example.com"],
            "subject": "Subject",
            "text": "plain",
            "html": "<p>html</p>",
        }

    @pytest.mark.asyncio
    async def test_non_2xx_is_provider_error(self):
        cfg = make_config(provider="resend")
        provider = ResendProvider(cfg, cfg.resend_api_key, client=_mock_client(422, '{"message":"invalid from"}'))

        with pytest.raises(ProviderError) as exc_info:
            await provider.send("user@example.com", "s", "t", "h")
        assert exc_info.value.status == 422

    @pytest.mark.asyncio
    async def test_missing_sender_is_misconfigured(self):
        cfg = make_config(provider="resend", from_email="")
        provider = ResendProvider(cfg, cfg.resend_api_key, client=_mock_client())

        with pytest.raises(ProviderMisconfigured):
            await provider.send("user@example.com", "s", "t", "h")


# ── SMTP ───────────────────────────────────────────────────────────────────


class TestSmtpProvider:
    @pytest.mark.asyncio
    async def test_sends_multipart_message(self):
        provider = SmtpProvider(make_config(provider="smtp"))
        mock_send = AsyncMock()

        with patch("app.services.email.aiosmtplib.send", mock_send):
            await provider.send("user@example.com", "Subject", "plain", "<p>html</p>")

        msg = mock_send.call_args.args[0]
        kwargs = mock_send.call_args.kwargs
        assert msg["To"] == "user@example.com"
        assert msg["From"] == "LegalTenderPay <no-reply@legaltenderpay.test>"
        assert [p.get_content_type() for p in msg.get_payload()] == ["text/plain", "text/html"]
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["username"] == "mailer@example.com"
        assert kwargs["start_tls"] is True
        assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_auth_failure_is_provider_error(self):
        provider = SmtpProvider(make_config(provider="smtp"))
        mock_send = AsyncMock(side_effect=aiosmtplib.SMTPAuthenticationError(535, "bad credentials"))

        with patch("app.services.email.aiosmtplib.send", mock_send):
            with pytest.raises(ProviderError):
                await provider.send("user@example.com", "s", "t", "h")

    @pytest.mark.asyncio
    async def test_connection_failure_is_provider_error(self):
        provider = SmtpProvider(make_config(provider="smtp"))
        mock_send = AsyncMock(side_effect=ConnectionRefusedError())

        with patch("app.services.email.aiosmtplib.send", mock_send):
            with pytest.raises(ProviderError):
                await provider.send("user@example.com", "s", "t", "h")

    @pytest.mark.asyncio
    async def test_missing_credentials_is_misconfigured(self):
        provider = SmtpProvider(make_config(provider="smtp", smtp_password=""))
        mock_send = AsyncMock()

        with patch("app.services.email.aiosmtplib.send", mock_send):
            with pytest.raises(ProviderMisconfigured) as exc_info:
                await provider.send("user@example.com", "s", "t", "h")

        assert "SMTP_PASSWORD" in str(exc_info.value)
        mock_send.assert_not_called()


# ── Factory ────────────────────────────────────────────────────────────────


class TestBuildProvider:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("sendgrid", SendGridProvider),
            ("resend", ResendProvider),
            ("smtp", SmtpProvider),
            ("console", ConsoleProvider),
        ],
    )
    def test_selects_variant(self, name, cls):
        assert isinstance(build_provider(make_config(provider=name)), cls)

    def test_unknown_provider(self):
        with pytest.raises(ProviderMisconfigured):
            build_provider(make_config(provider="carrier-pigeon"))
