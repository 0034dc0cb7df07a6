"""
Shared test fixtures.

Provides a FastAPI TestClient wired to:
  • a FakeProvider instead of a real email backend
  • a FakeClock driving code expiry and the per-email send window
  • a Flutterwave client whose HTTP calls hit an httpx.MockTransport

The `client` fixture runs the full lifespan so the reaper starts and
stops exactly as in production.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.dispatcher import NotificationDispatcher
from app.services.payments import FlutterwaveClient
from app.services.verification import VerificationService
from tests.mocks.models import make_config
from tests.mocks.services import FakeClock, FakeProvider


# ── Helpers ────────────────────────────────────────────────────────────────


class FlutterwaveStub:
    """Programmable handler for httpx.MockTransport; records requests."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: dict = {
            "status": "success",
            "message": "Hosted Link",
            "data": {"link": "https://checkout.flutterwave.com/v3/hosted/pay/abc123"},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def flutterwave_stub() -> FlutterwaveStub:
    return FlutterwaveStub()


@pytest.fixture()
def service(provider: FakeProvider, clock: FakeClock) -> VerificationService:
    return VerificationService.from_config(
        make_config(), NotificationDispatcher(provider), clock=clock
    )


@pytest.fixture()
def _test_env(monkeypatch, service: VerificationService):
    """
    Disable IP rate limiting and hand the lifespan the `service` fixture,
    so the reaper it starts sweeps the same stores the routes use.
    """
    monkeypatch.setattr("app.main.build_provider", lambda cfg: FakeProvider())
    monkeypatch.setattr(
        VerificationService, "from_config", staticmethod(lambda *args, **kwargs: service)
    )

    from app.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)


@pytest.fixture()
def client(
    _test_env,
    flutterwave_stub: FlutterwaveStub,
) -> TestClient:
    """
    TestClient with fake email delivery and a stubbed Flutterwave API.

    Uses a context manager so the lifespan runs (reaper start/stop).
    """
    with TestClient(app, raise_server_exceptions=False) as tc:
        tc.app.state.flutterwave = FlutterwaveClient(
            "FLWSECK_TEST-key",
            base_url="https://api.flutterwave.test/v3",
            redirect_url="https://pay.example.com/done",
            client=httpx.AsyncClient(transport=httpx.MockTransport(flutterwave_stub)),
        )
        yield tc
