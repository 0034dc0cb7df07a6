"""
FastAPI application for the LegalTenderPay verification service.

The lifespan builds the process-wide services once (email provider,
code store, send limiter, Flutterwave client), keeps them on
``app.state`` and runs the reaper for as long as the app is up.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from app import __version__, config
from app.errors import register_exception_handlers
from app.rate_limit import limiter
from app.routers import codes, health, payments
from app.services.dispatcher import NotificationDispatcher
from app.services.email import build_provider
from app.services.payments import FlutterwaveClient, TransactionLedger
from app.services.reaper import Reaper
from app.services.verification import VerificationService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    provider_config = config.load_provider_config()
    dispatcher = NotificationDispatcher(
        build_provider(provider_config), brand=provider_config.from_name or "LegalTenderPay"
    )
    verification = VerificationService.from_config(provider_config, dispatcher)
    flutterwave = FlutterwaveClient(
        config.FLW_SECRET_KEY,
        base_url=config.FLW_BASE_URL,
        redirect_url=config.FLW_REDIRECT_URL,
        logo_url=config.FLW_LOGO_URL,
        brand=provider_config.from_name or "LegalTenderPay",
        timeout=provider_config.timeout_seconds,
    )
    reaper = Reaper(
        verification.codes,
        verification.limiter,
        interval=config.REAPER_INTERVAL_SECONDS,
    )

    app.state.verification = verification
    app.state.flutterwave = flutterwave
    app.state.ledger = TransactionLedger()
    app.state.reaper = reaper

    logger.info(
        "Email provider: %s, %d codes/hour, TTL %d min",
        dispatcher.provider_name,
        provider_config.rate_limit_per_hour,
        provider_config.code_ttl_minutes,
    )
    await reaper.start()
    try:
        yield
    finally:
        await reaper.stop()
        await dispatcher.close()
        await flutterwave.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="LegalTenderPay Verification API",
        description="Email verification codes and Flutterwave payment links",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    # Applies the default tier to routes without their own @limiter.limit
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(codes.router)
    app.include_router(payments.router)
    return app


app = create_app()
